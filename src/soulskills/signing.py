"""SoulSkills signing — mint payload digests and authority signature checks.

Wire format:
    digest  = keccak256(address ‖ uint256[] ids ‖ uint256[] values)   (tightly packed)
    framed  = keccak256("\\x19Ethereum Signed Message:\\n32" ‖ digest)
    sig     = r (32 bytes) ‖ s (32 bytes) ‖ v (1 byte)

The authority signs ``framed`` with its secp256k1 key; anyone can recover
the signer address from (framed, v, r, s) and compare it to the authority.
There is no nonce or expiry in the payload.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Union

from eth_abi.packed import encode_packed
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError
from eth_utils import keccak

from .errors import InvalidSignatureLength
from .models import to_address, to_uint256

logger = logging.getLogger("soulskills.signing")

SIGNATURE_LENGTH = 65
PERSONAL_MESSAGE_PREFIX = b"\x19Ethereum Signed Message:\n32"


def mint_message_hash(recipient: str, skill_ids: Sequence[int], skill_values: Sequence[int]) -> bytes:
    """Canonical 32-byte digest of a mint payload, before framing."""
    ids = [to_uint256(i) for i in skill_ids]
    values = [to_uint256(v) for v in skill_values]
    packed = encode_packed(
        ["address", "uint256[]", "uint256[]"],
        [to_address(recipient), ids, values],
    )
    return keccak(packed)


def message_hash(raw: bytes) -> bytes:
    """Apply personal-message framing to a 32-byte digest.

    Raises:
        ValueError: If ``raw`` is not 32 bytes.
    """
    if len(raw) != 32:
        raise ValueError(f"Expected a 32-byte digest, got {len(raw)} bytes")
    return keccak(PERSONAL_MESSAGE_PREFIX + bytes(raw))


def split_signature(signature: bytes) -> tuple[int, bytes, bytes]:
    """Split a 65-byte signature into ``(v, r, s)``.

    Raises:
        InvalidSignatureLength: If the signature is not exactly 65 bytes.
    """
    if len(signature) != SIGNATURE_LENGTH:
        raise InvalidSignatureLength(
            f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(signature)}"
        )
    r = bytes(signature[0:32])
    s = bytes(signature[32:64])
    v = signature[64]
    return v, r, s


def _scalar(value: Union[bytes, int]) -> int:
    if isinstance(value, int):
        return value
    if len(value) != 32:
        raise ValueError(f"Signature scalars are 32 bytes, got {len(value)}")
    return int.from_bytes(value, "big")


def recover(hash_: bytes, v: int, r: Union[bytes, int], s: Union[bytes, int]) -> Optional[str]:
    """Recover the signer's checksum address, or None if recovery fails.

    Recovery ids below 27 are shifted by 27 first.
    """
    if v < 27:
        v += 27
    if v not in (27, 28):
        return None
    try:
        signature = keys.Signature(vrs=(v - 27, _scalar(r), _scalar(s)))
        public_key = signature.recover_public_key_from_msg_hash(bytes(hash_))
    except (BadSignature, ValidationError, ValueError) as exc:
        logger.debug("Signature recovery failed: %s", exc)
        return None
    return public_key.to_checksum_address()


def verify(hash_: bytes, v: int, r: Union[bytes, int], s: Union[bytes, int], signer: str) -> bool:
    """Check that (v, r, s) over ``hash_`` was produced by ``signer``."""
    recovered = recover(hash_, v, r, s)
    return recovered is not None and recovered == to_address(signer)


def sign_mint(
    recipient: str,
    skill_ids: Sequence[int],
    skill_values: Sequence[int],
    private_key: Union[str, bytes],
) -> bytes:
    """Produce the authority's 65-byte signature over a mint payload."""
    digest = mint_message_hash(recipient, skill_ids, skill_values)
    signed = Account.sign_message(encode_defunct(primitive=digest), private_key)
    return bytes(signed.signature)


class SignatureVerifier:
    """Checks detached signatures against an expected signer."""

    def verify(self, payload_hash: bytes, signature: bytes, expected_signer: str) -> bool:
        """Verify a 65-byte signature over an already-framed hash.

        Raises:
            InvalidSignatureLength: If the signature is not 65 bytes.
        """
        v, r, s = split_signature(signature)
        ok = verify(payload_hash, v, r, s, expected_signer)
        if not ok:
            logger.warning("Signature does not recover to %s", to_address(expected_signer))
        return ok
