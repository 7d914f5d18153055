"""Tests for the SoulboundToken facade — entry points and the full lifecycle."""

import pytest
from eth_account import Account

from soulskills.errors import (
    AlreadyIssued,
    IncorrectOwner,
    NonTransferable,
    NotAdministrator,
    NotAuthorized,
    NotMinted,
)
from soulskills.models import VOID_ADDRESS, to_address
from soulskills.signing import sign_mint, split_signature
from soulskills.token import SoulboundToken

ADMIN = Account.from_key("0x" + "11" * 32)
RECIPIENT = to_address("0x" + "ab" * 20)
OTHER = to_address("0x" + "cd" * 20)


@pytest.fixture
def token() -> SoulboundToken:
    """Deployed collection with skills and one minted credential (token 1)."""
    token = SoulboundToken.deploy(ADMIN.address, base_locator="https://x/")
    token.add_skills(ADMIN.address, ["speed", "strength"])
    sig = sign_mint(RECIPIENT, [0, 1], [10, 20], ADMIN.key)
    token.mint(RECIPIENT, [0, 1], [10, 20], sig)
    return token


class TestDeploy:
    """Test collection deployment."""

    def test_deployer_holds_token_zero(self):
        token = SoulboundToken.deploy(ADMIN.address)
        assert token.owner_of(0) == ADMIN.address
        assert token.balance_of(ADMIN.address) == 1
        assert token.total_supply() == 1

    def test_deployer_is_administrator_and_authority(self):
        token = SoulboundToken.deploy(ADMIN.address.lower())
        assert token.current_administrator() == ADMIN.address
        assert token.authority == ADMIN.address

    def test_name_and_symbol(self):
        token = SoulboundToken.deploy(ADMIN.address, name="Guild", symbol="GLD")
        assert (token.name, token.symbol) == ("Guild", "GLD")


class TestEndToEnd:
    """The full issue-then-try-to-transfer scenario."""

    def test_scenario(self):
        token = SoulboundToken.deploy(ADMIN.address, base_locator="https://x/")
        assert token.owner_of(0) == ADMIN.address

        assert token.add_skills(ADMIN.address, ["speed", "strength"]) == [0, 1]

        sig = sign_mint(RECIPIENT, [0, 1], [10, 20], ADMIN.key)
        assert token.mint(RECIPIENT, [0, 1], [10, 20], sig) == 1
        assert token.owner_of(1) == RECIPIENT
        assert token.skill_value(1, 0) == 10
        assert token.skill_value(1, 1) == 20
        assert token.token_locator(1) == "https://x/1"

        with pytest.raises(AlreadyIssued):
            token.mint(RECIPIENT, [0, 1], [10, 20], sig)
        with pytest.raises(NonTransferable):
            token.transfer_from(RECIPIENT, RECIPIENT, OTHER, 1)


class TestTransfers:
    """Only burns get through the transfer entry points."""

    def test_transfer_blocked(self, token: SoulboundToken):
        with pytest.raises(NonTransferable):
            token.transfer_from(RECIPIENT, RECIPIENT, OTHER, 1)
        assert token.owner_of(1) == RECIPIENT
        assert token.balance_of(OTHER) == 0

    def test_safe_transfer_blocked(self, token: SoulboundToken):
        with pytest.raises(NonTransferable):
            token.safe_transfer_from(RECIPIENT, RECIPIENT, OTHER, 1, b"hello")

    def test_administrator_cannot_transfer_either(self, token: SoulboundToken):
        with pytest.raises(NonTransferable):
            token.transfer_from(ADMIN.address, RECIPIENT, ADMIN.address, 1)

    def test_approved_spender_cannot_transfer(self, token: SoulboundToken):
        token.approve(RECIPIENT, OTHER, 1)
        with pytest.raises(NonTransferable):
            token.transfer_from(OTHER, RECIPIENT, OTHER, 1)

    def test_transfer_to_void_burns(self, token: SoulboundToken):
        token.transfer_from(RECIPIENT, RECIPIENT, VOID_ADDRESS, 1)
        assert not token.exists(1)
        assert token.balance_of(RECIPIENT) == 0

    def test_administrator_burns_through_transfer_from(self, token: SoulboundToken):
        token.transfer_from(ADMIN.address, RECIPIENT, VOID_ADDRESS, 1)
        assert not token.exists(1)
        assert token.balance_of(RECIPIENT) == 0

    def test_burn_via_transfer_from_checks_holder(self, token: SoulboundToken):
        with pytest.raises(IncorrectOwner):
            token.transfer_from(ADMIN.address, OTHER, VOID_ADDRESS, 1)
        assert token.owner_of(1) == RECIPIENT

    def test_stranger_cannot_burn_via_transfer_from(self, token: SoulboundToken):
        with pytest.raises(NotAuthorized):
            token.transfer_from(OTHER, RECIPIENT, VOID_ADDRESS, 1)
        assert token.owner_of(1) == RECIPIENT

    def test_transfer_from_void_never_mints(self, token: SoulboundToken):
        with pytest.raises(NotMinted):
            token.transfer_from(OTHER, VOID_ADDRESS, OTHER, 5)
        with pytest.raises(IncorrectOwner):
            token.transfer_from(OTHER, VOID_ADDRESS, OTHER, 1)


class TestBurn:
    """Test the burn entry point."""

    def test_holder_burns(self, token: SoulboundToken):
        token.burn(RECIPIENT, 1)
        assert not token.exists(1)
        with pytest.raises(NotMinted):
            token.owner_of(1)

    def test_administrator_burns(self, token: SoulboundToken):
        token.burn(ADMIN.address, 1)
        assert not token.exists(1)
        assert token.balance_of(RECIPIENT) == 0

    def test_approved_burns(self, token: SoulboundToken):
        token.approve(RECIPIENT, OTHER, 1)
        token.burn(OTHER, 1)
        assert not token.exists(1)

    def test_stranger_cannot_burn(self, token: SoulboundToken):
        with pytest.raises(NotAuthorized):
            token.burn(OTHER, 1)
        assert token.owner_of(1) == RECIPIENT

    def test_burn_keeps_values_and_supply(self, token: SoulboundToken):
        token.burn(RECIPIENT, 1)
        assert token.skill_value(1, 0) == 10
        assert token.total_supply() == 2

    def test_burned_token_values_are_frozen(self, token: SoulboundToken):
        token.burn(RECIPIENT, 1)
        with pytest.raises(NotMinted):
            token.edit_skill_value(ADMIN.address, 1, 0, 99)

    def test_burn_missing(self, token: SoulboundToken):
        with pytest.raises(NotMinted):
            token.burn(ADMIN.address, 50)


class TestAdministration:
    """Administrator-only configuration."""

    def test_set_base_locator(self, token: SoulboundToken):
        token.set_base_locator(ADMIN.address, "ipfs://cid/")
        assert token.token_locator(1) == "ipfs://cid/1"

    def test_stranger_cannot_set_base_locator(self, token: SoulboundToken):
        with pytest.raises(NotAdministrator):
            token.set_base_locator(RECIPIENT, "evil://")
        assert token.base_locator == "https://x/"

    def test_empty_base_locator(self, token: SoulboundToken):
        token.set_base_locator(ADMIN.address, "")
        assert token.token_locator(1) == ""

    def test_locator_missing_token(self, token: SoulboundToken):
        with pytest.raises(NotMinted):
            token.token_locator(9)

    def test_edit_skill_value(self, token: SoulboundToken):
        token.edit_skill_value(ADMIN.address, 1, 0, 11)
        assert token.skill_value(1, 0) == 11

    def test_skill_queries(self, token: SoulboundToken):
        assert token.skill_count() == 2
        assert token.skill(1).name == "strength"
        token.edit_skill(ADMIN.address, 1, "power")
        assert token.skill(1).name == "power"

    def test_renounced_locks_everything(self, token: SoulboundToken):
        token.renounce_administrator(ADMIN.address)
        assert token.current_administrator() == VOID_ADDRESS
        with pytest.raises(NotAdministrator):
            token.add_skill(ADMIN.address, "x")
        with pytest.raises(NotAdministrator):
            token.set_base_locator(ADMIN.address, "x")
        with pytest.raises(NotAdministrator):
            token.edit_skill_value(ADMIN.address, 1, 0, 1)


class TestAtomicity:
    """A failing operation leaves state and events untouched."""

    def test_rollback_inside_atomic_block(self, token: SoulboundToken):
        before = token.state.model_copy(deep=True)
        events_before = list(token.events)

        with pytest.raises(RuntimeError):
            with token.atomic():
                token.state.base_locator = "changed"
                token.registry.write_value(1, 0, 12345)
                token.guard.move(RECIPIENT, VOID_ADDRESS, 1, operator=RECIPIENT)
                raise RuntimeError("abort")

        assert token.state == before
        assert token.events == events_before
        assert token.owner_of(1) == RECIPIENT

    def test_failed_add_skills_is_all_or_nothing(self, token: SoulboundToken):
        with pytest.raises(NotAdministrator):
            token.add_skills(RECIPIENT, ["a", "b"])
        assert token.skill_count() == 2


class TestHashQueries:
    """The verify and message-hash helpers exposed on the token."""

    def test_verify_mint_signature(self, token: SoulboundToken):
        sig = sign_mint(OTHER, [0], [3], ADMIN.key)
        v, r, s = split_signature(sig)
        framed = token.message_hash(token.mint_message_hash(OTHER, [0], [3]))
        assert token.verify(framed, v, r, s, ADMIN.address)
        assert not token.verify(framed, v, r, s, OTHER)
