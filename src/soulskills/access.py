"""SoulSkills access control — a single administrator address."""

from __future__ import annotations

import logging

from .errors import NotAdministrator, ZeroAddress
from .models import VOID_ADDRESS, AdministratorTransferred, TokenState, to_address

logger = logging.getLogger("soulskills.access")


class Administrator:
    """Holds the one address allowed to run configuration changes.

    Once renounced, the administrator is the void address and every
    administrator-gated operation is permanently unreachable.

    Args:
        state: Shared ledger state (the ``administrator`` field is owned here).
        events: Event log for administrator changes.
    """

    def __init__(self, state: TokenState, events: list) -> None:
        self.state = state
        self.events = events

    def current_administrator(self) -> str:
        return self.state.administrator

    def require_administrator(self, caller: str) -> None:
        """Raise NotAdministrator unless ``caller`` is the administrator."""
        caller = to_address(caller)
        if self.state.administrator == VOID_ADDRESS or caller != self.state.administrator:
            raise NotAdministrator(f"{caller} is not the administrator")

    def transfer_administrator(self, caller: str, new_administrator: str) -> None:
        """Hand the administrator role to a new address.

        Raises:
            NotAdministrator: If the caller is not the administrator.
            ZeroAddress: If the new administrator is void (use renounce).
        """
        self.require_administrator(caller)
        new_administrator = to_address(new_administrator)
        if new_administrator == VOID_ADDRESS:
            raise ZeroAddress("New administrator may not be the void address")
        self._set(new_administrator)

    def renounce_administrator(self, caller: str) -> None:
        """Permanently clear the administrator."""
        self.require_administrator(caller)
        self._set(VOID_ADDRESS)

    def _set(self, new_administrator: str) -> None:
        previous = self.state.administrator
        self.state.administrator = new_administrator
        self.events.append(AdministratorTransferred(previous=previous, new=new_administrator))
        logger.info("Administrator changed: %s -> %s", previous, new_administrator)
