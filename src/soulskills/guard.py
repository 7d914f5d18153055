"""SoulSkills Transfer Guard — the non-transferability rule.

Wraps any ledger that can ``move`` tokens and lets a move through only
if it is a mint (void origin) or a burn (void destination). Everything
else about the move is left to the wrapped ledger.
"""

from __future__ import annotations

import logging
from typing import Optional

from .errors import NonTransferable
from .ledger import TokenMover
from .models import VOID_ADDRESS, to_address

logger = logging.getLogger("soulskills.guard")


class TransferGuard:
    """A TokenMover that refuses holder-to-holder moves.

    Args:
        ledger: The ledger whose moves are being guarded.
    """

    def __init__(self, ledger: TokenMover) -> None:
        self.ledger = ledger

    def move(self, from_: str, to: str, token_id: int, operator: Optional[str] = None) -> None:
        """Delegate a mint or burn to the ledger.

        Raises:
            NonTransferable: If neither end of the move is void.
        """
        from_, to = to_address(from_), to_address(to)
        if from_ != VOID_ADDRESS and to != VOID_ADDRESS:
            logger.warning("Blocked transfer of token %d: %s -> %s", token_id, from_, to)
            raise NonTransferable(f"Token {token_id} is soulbound and cannot move to {to}")
        self.ledger.move(from_, to, token_id, operator)

    def owner_of(self, token_id: int) -> str:
        return self.ledger.owner_of(token_id)

    def balance_of(self, owner: str) -> int:
        return self.ledger.balance_of(owner)

    def exists(self, token_id: int) -> bool:
        return self.ledger.exists(token_id)
