"""Tests for SoulSkills Registry — skill catalog and attribute store."""

import pytest

from soulskills.access import Administrator
from soulskills.errors import IndexOutOfRange, NotAdministrator, NotMinted
from soulskills.guard import TransferGuard
from soulskills.ledger import Ledger
from soulskills.models import VOID_ADDRESS, SkillDefinition, TokenState, to_address
from soulskills.registry import SkillRegistry

ADMIN = to_address("0x" + "ad" * 20)
HOLDER = to_address("0x" + "40" * 20)
STRANGER = to_address("0x" + "57" * 20)


@pytest.fixture
def registry() -> SkillRegistry:
    """A registry administered by ADMIN with token 0 held by HOLDER."""
    state = TokenState(administrator=ADMIN)
    events: list = []
    guard = TransferGuard(Ledger(state, events))
    guard.move(VOID_ADDRESS, HOLDER, 0)
    return SkillRegistry(state, Administrator(state, events), guard)


class TestCatalog:
    """Test skill definitions."""

    def test_empty(self, registry: SkillRegistry):
        assert registry.skill_count() == 0
        assert registry.skills() == []

    def test_add_skill_returns_position(self, registry: SkillRegistry):
        assert registry.add_skill(ADMIN, "speed") == 0
        assert registry.add_skill(ADMIN, "strength") == 1
        assert registry.skill(1) == SkillDefinition(name="strength")
        assert registry.skill_count() == 2

    def test_add_skills_in_order(self, registry: SkillRegistry):
        registry.add_skill(ADMIN, "speed")
        assert registry.add_skills(ADMIN, ["strength", "focus"]) == [1, 2]
        assert [s.name for s in registry.skills()] == ["speed", "strength", "focus"]

    def test_edit_skill_in_place(self, registry: SkillRegistry):
        registry.add_skills(ADMIN, ["speed", "strength"])
        registry.edit_skill(ADMIN, 0, "agility")
        assert [s.name for s in registry.skills()] == ["agility", "strength"]

    def test_edit_past_end(self, registry: SkillRegistry):
        registry.add_skill(ADMIN, "speed")
        with pytest.raises(IndexOutOfRange):
            registry.edit_skill(ADMIN, 1, "nope")

    def test_read_past_end(self, registry: SkillRegistry):
        with pytest.raises(IndexOutOfRange):
            registry.skill(0)

    def test_stranger_cannot_add(self, registry: SkillRegistry):
        with pytest.raises(NotAdministrator):
            registry.add_skill(STRANGER, "speed")
        with pytest.raises(NotAdministrator):
            registry.add_skills(HOLDER, ["speed"])
        assert registry.skill_count() == 0

    def test_stranger_cannot_edit(self, registry: SkillRegistry):
        registry.add_skill(ADMIN, "speed")
        with pytest.raises(NotAdministrator):
            registry.edit_skill(STRANGER, 0, "hacked")
        assert registry.skill(0).name == "speed"


class TestValues:
    """Test the sparse (token, skill) → value store."""

    def test_unset_reads_zero(self, registry: SkillRegistry):
        assert registry.skill_value(0, 0) == 0
        assert registry.skill_value(99, 99) == 0
        assert registry.skill_values(0) == {}

    def test_edit_then_read(self, registry: SkillRegistry):
        registry.edit_skill_value(ADMIN, 0, 1, 42)
        assert registry.skill_value(0, 1) == 42

    def test_latest_write_wins(self, registry: SkillRegistry):
        registry.edit_skill_value(ADMIN, 0, 0, 5)
        registry.edit_skill_value(ADMIN, 0, 0, 7)
        registry.edit_skill_value(ADMIN, 0, 0, 3)
        assert registry.skill_value(0, 0) == 3

    def test_explicit_zero_indistinguishable(self, registry: SkillRegistry):
        registry.edit_skill_value(ADMIN, 0, 2, 0)
        assert registry.skill_value(0, 2) == registry.skill_value(0, 3) == 0

    def test_value_for_undefined_skill(self, registry: SkillRegistry):
        """No referential integrity: values may name skills that don't exist yet."""
        registry.edit_skill_value(ADMIN, 0, 17, 9)
        assert registry.skill_count() == 0
        assert registry.skill_value(0, 17) == 9

    def test_missing_token(self, registry: SkillRegistry):
        with pytest.raises(NotMinted):
            registry.edit_skill_value(ADMIN, 5, 0, 1)

    def test_stranger_cannot_edit_value(self, registry: SkillRegistry):
        with pytest.raises(NotAdministrator):
            registry.edit_skill_value(HOLDER, 0, 0, 100)
        assert registry.skill_value(0, 0) == 0

    def test_negative_value_rejected(self, registry: SkillRegistry):
        with pytest.raises(ValueError):
            registry.edit_skill_value(ADMIN, 0, 0, -1)

    def test_values_listed_by_skill(self, registry: SkillRegistry):
        registry.edit_skill_value(ADMIN, 0, 3, 30)
        registry.edit_skill_value(ADMIN, 0, 1, 10)
        assert registry.skill_values(0) == {1: 10, 3: 30}
