"""SoulSkills Ledger — token ownership, balances and approvals.

The ledger is policy-free: its ``move`` primitive handles mints, burns
and holder-to-holder moves alike. The non-transferability rule lives in
:mod:`soulskills.guard`, which wraps this class.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from .errors import AlreadyMinted, IncorrectOwner, NotAuthorized, NotMinted, ZeroAddress
from .models import (
    VOID_ADDRESS,
    ApprovalEvent,
    ApprovalForAllEvent,
    TokenState,
    TransferEvent,
    to_address,
)

logger = logging.getLogger("soulskills.ledger")


class TokenMover(Protocol):
    """The capability consumed by issuance: move tokens and read ownership."""

    def move(self, from_: str, to: str, token_id: int, operator: Optional[str] = None) -> None: ...

    def owner_of(self, token_id: int) -> str: ...

    def balance_of(self, owner: str) -> int: ...

    def exists(self, token_id: int) -> bool: ...


class Ledger:
    """Token→holder and holder→count bookkeeping over a shared TokenState.

    Args:
        state: The mutable ledger state.
        events: Event log that Transfer/Approval events are appended to.
    """

    def __init__(self, state: TokenState, events: list) -> None:
        self.state = state
        self.events = events

    # ── Queries ───────────────────────────────────────────────────────

    def exists(self, token_id: int) -> bool:
        """A token exists iff it has a non-void holder."""
        return self.state.owners.get(token_id, VOID_ADDRESS) != VOID_ADDRESS

    def owner_of(self, token_id: int) -> str:
        """Return the holder of a token.

        Raises:
            NotMinted: If the token does not exist.
        """
        if not self.exists(token_id):
            raise NotMinted(f"Token {token_id} does not exist")
        return self.state.owners[token_id]

    def balance_of(self, owner: str) -> int:
        """Return how many tokens an address holds.

        Raises:
            ZeroAddress: If asked about the void address.
        """
        owner = to_address(owner)
        if owner == VOID_ADDRESS:
            raise ZeroAddress("Balance query for the void address")
        return self.state.balances.get(owner, 0)

    def get_approved(self, token_id: int) -> str:
        """Return the approved spender of a token (void if none)."""
        self.owner_of(token_id)
        return self.state.token_approvals.get(token_id, VOID_ADDRESS)

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        """Check whether ``operator`` may act on all of ``owner``'s tokens."""
        owner, operator = to_address(owner), to_address(operator)
        return self.state.operator_approvals.get(owner, {}).get(operator, False)

    def is_authorized(self, spender: str, token_id: int) -> bool:
        """Check whether ``spender`` is the holder, approved spender or an operator."""
        owner = self.owner_of(token_id)
        spender = to_address(spender)
        return (
            spender == owner
            or self.state.token_approvals.get(token_id) == spender
            or self.is_approved_for_all(owner, spender)
        )

    # ── Approvals ─────────────────────────────────────────────────────

    def approve(self, caller: str, spender: str, token_id: int) -> None:
        """Approve ``spender`` for a single token.

        Raises:
            NotMinted: If the token does not exist.
            NotAuthorized: If the caller is neither holder nor operator.
        """
        owner = self.owner_of(token_id)
        caller, spender = to_address(caller), to_address(spender)
        if caller != owner and not self.is_approved_for_all(owner, caller):
            raise NotAuthorized(f"{caller} may not approve token {token_id}")

        if spender == VOID_ADDRESS:
            self.state.token_approvals.pop(token_id, None)
        else:
            self.state.token_approvals[token_id] = spender
        self.events.append(ApprovalEvent(owner=owner, approved=spender, token_id=token_id))

    def set_approval_for_all(self, caller: str, operator: str, approved: bool) -> None:
        """Grant or revoke ``operator`` control over all of the caller's tokens.

        Raises:
            ZeroAddress: If the operator is the void address.
        """
        caller, operator = to_address(caller), to_address(operator)
        if operator == VOID_ADDRESS:
            raise ZeroAddress("Operator may not be the void address")

        grants = self.state.operator_approvals.setdefault(caller, {})
        if approved:
            grants[operator] = True
        else:
            grants.pop(operator, None)
            if not grants:
                del self.state.operator_approvals[caller]
        self.events.append(ApprovalForAllEvent(owner=caller, operator=operator, approved=approved))

    # ── Moves ─────────────────────────────────────────────────────────

    def move(self, from_: str, to: str, token_id: int, operator: Optional[str] = None) -> None:
        """Move a token, covering mint (void origin) and burn (void destination).

        ``operator=None`` marks an internal call; only internal calls may
        create tokens. An external operator must be authorized for the token.

        Raises:
            ZeroAddress: If both ends are void.
            AlreadyMinted: If an internal mint targets an existing token.
            NotMinted: If the token does not exist.
            IncorrectOwner: If ``from_`` is not the current holder.
            NotAuthorized: If the operator is not authorized.
        """
        from_, to = to_address(from_), to_address(to)
        if from_ == VOID_ADDRESS and to == VOID_ADDRESS:
            raise ZeroAddress("A move needs at least one non-void end")

        if from_ == VOID_ADDRESS and operator is None:
            if self.exists(token_id):
                raise AlreadyMinted(f"Token {token_id} already minted")
        else:
            owner = self.owner_of(token_id)
            if owner != from_:
                raise IncorrectOwner(f"Token {token_id} is held by {owner}, not {from_}")
            if operator is not None and not self.is_authorized(operator, token_id):
                raise NotAuthorized(f"{to_address(operator)} may not move token {token_id}")

        if from_ != VOID_ADDRESS:
            self.state.token_approvals.pop(token_id, None)
            remaining = self.state.balances[from_] - 1
            if remaining:
                self.state.balances[from_] = remaining
            else:
                del self.state.balances[from_]

        if to != VOID_ADDRESS:
            self.state.balances[to] = self.state.balances.get(to, 0) + 1
            self.state.owners[token_id] = to
        else:
            del self.state.owners[token_id]

        self.events.append(TransferEvent(from_=from_, to=to, token_id=token_id))
        logger.debug("Moved token %d: %s -> %s", token_id, from_, to)
