"""SoulSkills error hierarchy.

Every failure aborts the whole operation; none of these are retryable.
"""


class SoulboundError(Exception):
    """Base exception for all SoulSkills ledger errors."""


class NonTransferable(SoulboundError):
    """A holder-to-holder move was attempted."""


class InvalidSignatureLength(SoulboundError):
    """Encoded signature is not exactly 65 bytes."""


class InvalidSignature(SoulboundError):
    """Signature does not recover to the configured authority."""


class SkillArityMismatch(SoulboundError):
    """Skill id and skill value sequences differ in length."""


class AlreadyIssued(SoulboundError):
    """Recipient already holds a token."""


class AlreadyMinted(SoulboundError):
    """Token id has already been minted."""


class NotMinted(SoulboundError):
    """Operation references a token that does not exist."""


class IncorrectOwner(SoulboundError):
    """Stated origin of a move is not the token's holder."""


class NotAuthorized(SoulboundError):
    """Caller lacks the approval required for a ledger operation."""


class NotAdministrator(SoulboundError):
    """Caller is not the configured administrator."""


class ZeroAddress(SoulboundError):
    """The void address was supplied where a real address is required."""


class IndexOutOfRange(SoulboundError):
    """Skill id is past the end of the skill definition list."""
