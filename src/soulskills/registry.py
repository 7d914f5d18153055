"""SoulSkills Registry — skill catalog and per-token skill values.

Catalog:
    skills[0] = "speed", skills[1] = "strength", ...
    A skill's id is its position. Skills are appended or renamed, never
    removed or reordered.

Attribute store:
    skill_values[token_id][skill_id] = uint256
    Sparse; unset pairs read as 0. Values may reference skill ids beyond
    the catalog and survive token burns.
"""

from __future__ import annotations

import logging
from typing import Iterable

from .access import Administrator
from .errors import IndexOutOfRange, NotMinted
from .ledger import TokenMover
from .models import SkillDefinition, TokenState, to_uint256

logger = logging.getLogger("soulskills.registry")


class SkillRegistry:
    """Administrator-gated skill catalog and attribute store.

    Args:
        state: Shared ledger state (``skills`` and ``skill_values`` are owned here).
        administrator: Access control used to gate every mutation.
        tokens: Used to check token existence before editing values.
    """

    def __init__(self, state: TokenState, administrator: Administrator, tokens: TokenMover) -> None:
        self.state = state
        self.administrator = administrator
        self.tokens = tokens

    def add_skill(self, caller: str, name: str) -> int:
        """Append a skill definition and return its id."""
        self.administrator.require_administrator(caller)
        return self._append(name)

    def add_skills(self, caller: str, names: Iterable[str]) -> list[int]:
        """Append several skill definitions in order and return their ids."""
        self.administrator.require_administrator(caller)
        return [self._append(name) for name in names]

    def edit_skill(self, caller: str, skill_id: int, name: str) -> None:
        """Rename an existing skill in place.

        Raises:
            NotAdministrator: If the caller is not the administrator.
            IndexOutOfRange: If the skill id is past the end of the catalog.
        """
        self.administrator.require_administrator(caller)
        self._check_index(skill_id)
        self.state.skills[skill_id] = SkillDefinition(name=name)
        logger.info("Renamed skill %d to '%s'", skill_id, name)

    def edit_skill_value(self, caller: str, token_id: int, skill_id: int, value: int) -> None:
        """Overwrite the value of one skill for an existing token.

        Raises:
            NotAdministrator: If the caller is not the administrator.
            NotMinted: If the token does not exist.
        """
        self.administrator.require_administrator(caller)
        if not self.tokens.exists(token_id):
            raise NotMinted(f"Token {token_id} does not exist")
        self.write_value(token_id, skill_id, value)
        logger.info("Set skill %d of token %d to %d", skill_id, token_id, value)

    def write_value(self, token_id: int, skill_id: int, value: int) -> None:
        """Store a skill value without any access check (issuance path)."""
        to_uint256(skill_id)
        self.state.skill_values.setdefault(token_id, {})[skill_id] = to_uint256(value)

    # ── Queries ───────────────────────────────────────────────────────

    def skill(self, skill_id: int) -> SkillDefinition:
        self._check_index(skill_id)
        return self.state.skills[skill_id]

    def skill_count(self) -> int:
        return len(self.state.skills)

    def skills(self) -> list[SkillDefinition]:
        return list(self.state.skills)

    def skill_value(self, token_id: int, skill_id: int) -> int:
        """Return a skill value; never-written pairs read as 0."""
        return self.state.skill_values.get(token_id, {}).get(skill_id, 0)

    def skill_values(self, token_id: int) -> dict[int, int]:
        """All explicitly written values for a token, keyed by skill id."""
        return dict(sorted(self.state.skill_values.get(token_id, {}).items()))

    def _append(self, name: str) -> int:
        self.state.skills.append(SkillDefinition(name=name))
        skill_id = len(self.state.skills) - 1
        logger.info("Added skill %d: '%s'", skill_id, name)
        return skill_id

    def _check_index(self, skill_id: int) -> None:
        if skill_id < 0 or skill_id >= len(self.state.skills):
            raise IndexOutOfRange(
                f"Skill id {skill_id} out of range (have {len(self.state.skills)})"
            )
