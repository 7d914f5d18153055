"""SoulSkills Issuance — signature-gated minting.

A mint goes through when the configured authority signed exactly
(recipient, skill ids, skill values) and the recipient holds no token.
"""

from __future__ import annotations

import logging
from typing import Sequence

from .errors import AlreadyIssued, InvalidSignature, SkillArityMismatch, ZeroAddress
from .ledger import TokenMover
from .models import VOID_ADDRESS, TokenState, to_address, to_uint256
from .registry import SkillRegistry
from .signing import SignatureVerifier, message_hash, mint_message_hash

logger = logging.getLogger("soulskills.issuance")


class IssuanceController:
    """Mint entry point.

    Depends only on a TokenMover (normally the TransferGuard), never on
    the concrete ledger.

    Args:
        state: Shared ledger state (``total_issued``, ``authority`` and
            ``administrator`` are read here).
        tokens: Guarded token mover used to create tokens.
        registry: Attribute store that receives the minted skill values.
        verifier: Signature checker.
    """

    def __init__(
        self,
        state: TokenState,
        tokens: TokenMover,
        registry: SkillRegistry,
        verifier: SignatureVerifier,
    ) -> None:
        self.state = state
        self.tokens = tokens
        self.registry = registry
        self.verifier = verifier

    @property
    def authority(self) -> str:
        """The configured signer, or the current administrator when unset."""
        return self.state.authority or self.state.administrator

    def mint(
        self,
        recipient: str,
        skill_ids: Sequence[int],
        skill_values: Sequence[int],
        signature: bytes,
    ) -> int:
        """Mint the next token to ``recipient`` and record its skill values.

        Returns:
            int: The new token id.

        Raises:
            SkillArityMismatch: If ids and values differ in length.
            ZeroAddress: If the recipient is void.
            AlreadyIssued: If the recipient already holds a token.
            InvalidSignatureLength: If the signature is not 65 bytes.
            InvalidSignature: If the authority did not sign this payload.
        """
        if len(skill_ids) != len(skill_values):
            raise SkillArityMismatch(
                f"{len(skill_ids)} skill ids but {len(skill_values)} skill values"
            )
        recipient = to_address(recipient)
        if recipient == VOID_ADDRESS:
            raise ZeroAddress("Cannot mint to the void address")
        if self.tokens.balance_of(recipient) != 0:
            raise AlreadyIssued(f"{recipient} already holds a token")

        ids = [to_uint256(i) for i in skill_ids]
        values = [to_uint256(v) for v in skill_values]
        framed = message_hash(mint_message_hash(recipient, ids, values))
        if not self.verifier.verify(framed, signature, self.authority):
            raise InvalidSignature(f"Mint for {recipient} is not signed by the authority")

        token_id = self.state.total_issued
        self.tokens.move(VOID_ADDRESS, recipient, token_id)
        for skill_id, value in zip(ids, values):
            self.registry.write_value(token_id, skill_id, value)
        self.state.total_issued = token_id + 1

        logger.info("Minted token %d to %s with %d skills", token_id, recipient, len(ids))
        return token_id
