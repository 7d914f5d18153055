"""SoulSkills Token — the soulbound credential ledger as one object.

Composition:
    Ledger ─▶ TransferGuard ─▶ IssuanceController
       │                            │
       └──────▶ SkillRegistry ◀─────┘
    Administrator gates the registry and configuration setters.

Every state-changing entry point takes the acting ``caller`` explicitly
and runs atomically: if it raises, state and event log are rolled back.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional, Sequence, Union

from . import signing
from .access import Administrator
from .guard import TransferGuard
from .issuance import IssuanceController
from .ledger import Ledger
from .models import VOID_ADDRESS, SkillDefinition, TokenState, to_address
from .registry import SkillRegistry

logger = logging.getLogger("soulskills.token")


class SoulboundToken:
    """A collection of non-transferable skill credentials.

    Args:
        state: Ledger state to operate on (shared with every component).
        name: Collection name.
        symbol: Collection ticker symbol.
    """

    def __init__(self, state: TokenState, name: str = "SoulSkills", symbol: str = "SOUL") -> None:
        self.state = state
        self.name = name
        self.symbol = symbol
        self.events: list = []

        self.ledger = Ledger(state, self.events)
        self.guard = TransferGuard(self.ledger)
        self.access = Administrator(state, self.events)
        self.registry = SkillRegistry(state, self.access, self.guard)
        self.issuance = IssuanceController(
            state, self.guard, self.registry, signing.SignatureVerifier()
        )

    @classmethod
    def deploy(
        cls,
        deployer: str,
        authority: Optional[str] = None,
        base_locator: str = "",
        name: str = "SoulSkills",
        symbol: str = "SOUL",
    ) -> "SoulboundToken":
        """Create a new collection; the deployer administers it and holds token 0.

        Args:
            deployer: Address deploying the collection.
            authority: Fixed mint signer. When omitted, mints must be signed by
                whoever is administrator at the time.
            base_locator: Prefix for token locators.
            name: Collection name.
            symbol: Collection ticker symbol.
        """
        deployer = to_address(deployer)
        state = TokenState(
            base_locator=base_locator,
            administrator=deployer,
            authority=authority,
        )
        token = cls(state, name=name, symbol=symbol)
        token.guard.move(VOID_ADDRESS, deployer, 0)
        state.total_issued = 1
        logger.info("Deployed %s (%s): administrator %s, authority %s",
                    name, symbol, deployer, token.authority)
        return token

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Apply everything inside the block or nothing at all."""
        snapshot = self.state.model_copy(deep=True)
        mark = len(self.events)
        try:
            yield
        except Exception:
            for field in TokenState.model_fields:
                setattr(self.state, field, getattr(snapshot, field))
            del self.events[mark:]
            raise

    # ── Issuance ──────────────────────────────────────────────────────

    def mint(
        self,
        recipient: str,
        skill_ids: Sequence[int],
        skill_values: Sequence[int],
        signature: bytes,
    ) -> int:
        """Mint a token with the authority's signature. Returns the token id."""
        with self.atomic():
            return self.issuance.mint(recipient, skill_ids, skill_values, signature)

    # ── Transfers (mint/burn only) ────────────────────────────────────

    def transfer_from(self, caller: str, from_: str, to: str, token_id: int) -> None:
        """Move a token; only burns (void destination) can ever succeed."""
        with self.atomic():
            operator = caller
            if to_address(to) == VOID_ADDRESS and to_address(from_) != VOID_ADDRESS:
                operator = self._burn_operator(caller, token_id)
            self.guard.move(from_, to, token_id, operator=operator)

    def safe_transfer_from(
        self, caller: str, from_: str, to: str, token_id: int, data: bytes = b""
    ) -> None:
        """Same as :meth:`transfer_from`; receivers are never contracts here."""
        self.transfer_from(caller, from_, to, token_id)

    def burn(self, caller: str, token_id: int) -> None:
        """Destroy a token. Holder, approved spender, operator or administrator may burn.

        Skill values of the token are kept.
        """
        with self.atomic():
            owner = self.ledger.owner_of(token_id)
            operator = self._burn_operator(caller, token_id)
            self.guard.move(owner, VOID_ADDRESS, token_id, operator=operator)
            logger.info("Burned token %d held by %s", token_id, owner)

    def _burn_operator(self, caller: str, token_id: int) -> str:
        """Who a burn is performed as: the administrator acts for the holder.

        Raises:
            NotMinted: If the token does not exist.
        """
        caller = to_address(caller)
        if self.ledger.is_authorized(caller, token_id):
            return caller
        if caller == self.access.current_administrator():
            return self.ledger.owner_of(token_id)
        return caller

    def approve(self, caller: str, spender: str, token_id: int) -> None:
        with self.atomic():
            self.ledger.approve(caller, spender, token_id)

    def set_approval_for_all(self, caller: str, operator: str, approved: bool) -> None:
        with self.atomic():
            self.ledger.set_approval_for_all(caller, operator, approved)

    # ── Administration ────────────────────────────────────────────────

    def set_base_locator(self, caller: str, base_locator: str) -> None:
        with self.atomic():
            self.access.require_administrator(caller)
            self.state.base_locator = base_locator
            logger.info("Base locator set to '%s'", base_locator)

    def add_skill(self, caller: str, name: str) -> int:
        with self.atomic():
            return self.registry.add_skill(caller, name)

    def add_skills(self, caller: str, names: Sequence[str]) -> list[int]:
        with self.atomic():
            return self.registry.add_skills(caller, names)

    def edit_skill(self, caller: str, skill_id: int, name: str) -> None:
        with self.atomic():
            self.registry.edit_skill(caller, skill_id, name)

    def edit_skill_value(self, caller: str, token_id: int, skill_id: int, value: int) -> None:
        with self.atomic():
            self.registry.edit_skill_value(caller, token_id, skill_id, value)

    def transfer_administrator(self, caller: str, new_administrator: str) -> None:
        with self.atomic():
            self.access.transfer_administrator(caller, new_administrator)

    def renounce_administrator(self, caller: str) -> None:
        with self.atomic():
            self.access.renounce_administrator(caller)

    # ── Queries ───────────────────────────────────────────────────────

    def owner_of(self, token_id: int) -> str:
        return self.ledger.owner_of(token_id)

    def balance_of(self, owner: str) -> int:
        return self.ledger.balance_of(owner)

    def exists(self, token_id: int) -> bool:
        return self.ledger.exists(token_id)

    def get_approved(self, token_id: int) -> str:
        return self.ledger.get_approved(token_id)

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        return self.ledger.is_approved_for_all(owner, operator)

    def total_supply(self) -> int:
        """Number of tokens ever issued; burns do not lower it."""
        return self.state.total_issued

    def skill(self, skill_id: int) -> SkillDefinition:
        return self.registry.skill(skill_id)

    def skill_count(self) -> int:
        return self.registry.skill_count()

    def skills(self) -> list[SkillDefinition]:
        return self.registry.skills()

    def skill_value(self, token_id: int, skill_id: int) -> int:
        return self.registry.skill_value(token_id, skill_id)

    def skill_values(self, token_id: int) -> dict[int, int]:
        return self.registry.skill_values(token_id)

    def token_locator(self, token_id: int) -> str:
        """Base locator followed by the decimal token id ("" without a base)."""
        self.ledger.owner_of(token_id)
        if not self.state.base_locator:
            return ""
        return f"{self.state.base_locator}{token_id}"

    def current_administrator(self) -> str:
        return self.access.current_administrator()

    @property
    def authority(self) -> str:
        """Address whose signature mints currently require."""
        return self.issuance.authority

    @property
    def base_locator(self) -> str:
        return self.state.base_locator

    @staticmethod
    def verify(
        hash_: bytes, v: int, r: Union[bytes, int], s: Union[bytes, int], signer: str
    ) -> bool:
        return signing.verify(hash_, v, r, s, signer)

    @staticmethod
    def message_hash(raw: bytes) -> bytes:
        return signing.message_hash(raw)

    @staticmethod
    def mint_message_hash(
        recipient: str, skill_ids: Sequence[int], skill_values: Sequence[int]
    ) -> bytes:
        return signing.mint_message_hash(recipient, skill_ids, skill_values)
