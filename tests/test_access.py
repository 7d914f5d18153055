"""Tests for SoulSkills access control — the single administrator."""

import pytest

from soulskills.access import Administrator
from soulskills.errors import NotAdministrator, ZeroAddress
from soulskills.models import VOID_ADDRESS, AdministratorTransferred, TokenState, to_address

ADMIN = to_address("0x" + "ad" * 20)
SUCCESSOR = to_address("0x" + "5c" * 20)


@pytest.fixture
def access() -> Administrator:
    return Administrator(TokenState(administrator=ADMIN), [])


class TestAdministrator:
    def test_current(self, access: Administrator):
        assert access.current_administrator() == ADMIN

    def test_require_accepts_any_case(self, access: Administrator):
        access.require_administrator(ADMIN.lower())

    def test_require_rejects_stranger(self, access: Administrator):
        with pytest.raises(NotAdministrator):
            access.require_administrator(SUCCESSOR)

    def test_transfer(self, access: Administrator):
        access.transfer_administrator(ADMIN, SUCCESSOR)
        assert access.current_administrator() == SUCCESSOR
        assert access.events == [AdministratorTransferred(previous=ADMIN, new=SUCCESSOR)]
        with pytest.raises(NotAdministrator):
            access.require_administrator(ADMIN)

    def test_transfer_to_void(self, access: Administrator):
        with pytest.raises(ZeroAddress):
            access.transfer_administrator(ADMIN, VOID_ADDRESS)
        assert access.current_administrator() == ADMIN

    def test_transfer_by_stranger(self, access: Administrator):
        with pytest.raises(NotAdministrator):
            access.transfer_administrator(SUCCESSOR, SUCCESSOR)

    def test_renounce_is_permanent(self, access: Administrator):
        access.renounce_administrator(ADMIN)
        assert access.current_administrator() == VOID_ADDRESS
        with pytest.raises(NotAdministrator):
            access.require_administrator(ADMIN)
        with pytest.raises(NotAdministrator):
            access.require_administrator(VOID_ADDRESS)
        with pytest.raises(NotAdministrator):
            access.transfer_administrator(ADMIN, SUCCESSOR)
