"""
⚠️ DRAFT — requires crypto review before production use

Semaphore identities.

An identity is a pair of secret field scalars (trapdoor, nullifier) derived
from a seed with HKDF-SHA256. Only the commitment ``Hash(trapdoor,
nullifier)`` is public; it is the value inserted into groups.
"""

from __future__ import annotations

import logging
import secrets
from typing import Optional, Union

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from .config import (
    GENERATED_SEED_BYTES,
    IDENTITY_KDF_LENGTH,
    IDENTITY_KDF_SALT,
    IDENTITY_NULLIFIER_INFO,
    IDENTITY_TRAPDOOR_INFO,
    SNARK_SCALAR_FIELD,
)
from .exceptions import InvalidSeedError
from .hashing import Encodable, FieldHasher, default_hasher, encode_bytes32, hash_to_field

logger = logging.getLogger(__name__)

Seed = Union[bytes, bytearray, str]


def _derive_scalar(seed: bytes, info: bytes) -> int:
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=IDENTITY_KDF_LENGTH,
        salt=IDENTITY_KDF_SALT,
        info=info,
    )
    scalar = int.from_bytes(hkdf.derive(seed), "big") % SNARK_SCALAR_FIELD
    # A zero scalar would collide with the removed-member sentinel space.
    return scalar or 1


def _normalize_seed(seed: Seed) -> bytes:
    if isinstance(seed, str):
        seed = seed.encode("utf-8")
    if not isinstance(seed, (bytes, bytearray)):
        raise InvalidSeedError(
            f"seed must be bytes or str, got {type(seed).__name__}"
        )
    if not seed:
        raise InvalidSeedError("seed cannot be empty")
    return bytes(seed)


class Identity:
    """
    Semaphore identity.

    The same seed always yields the same identity, which is how identities
    are recovered. Secrets are exposed read-only for proof generation and are
    never included in ``repr`` or any serialization.

    Example:
        >>> identity = Identity(b"my secret seed")
        >>> identity.commitment == Identity(b"my secret seed").commitment
        True
    """

    __slots__ = ("_trapdoor", "_nullifier", "_commitment", "_hasher")

    def __init__(self, seed: Seed, hasher: Optional[FieldHasher] = None) -> None:
        seed_bytes = _normalize_seed(seed)
        self._hasher = hasher or default_hasher()
        self._trapdoor = _derive_scalar(seed_bytes, IDENTITY_TRAPDOOR_INFO)
        self._nullifier = _derive_scalar(seed_bytes, IDENTITY_NULLIFIER_INFO)
        self._commitment = self._hasher.hash(self._trapdoor, self._nullifier)
        logger.debug("Derived identity with commitment %d", self._commitment)

    @classmethod
    def generate(cls, hasher: Optional[FieldHasher] = None) -> "Identity":
        """Create an identity from a fresh random seed."""
        return cls(secrets.token_bytes(GENERATED_SEED_BYTES), hasher=hasher)

    @property
    def trapdoor(self) -> int:
        return self._trapdoor

    @property
    def nullifier(self) -> int:
        return self._nullifier

    @property
    def commitment(self) -> int:
        return self._commitment

    def derive_nullifier(self, scope: Encodable) -> int:
        """Public nullifier for ``scope``; identical for every message."""
        scope_hash = hash_to_field(encode_bytes32(scope))
        return self._hasher.hash(scope_hash, self._nullifier)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Identity):
            return NotImplemented
        return (
            self._trapdoor == other._trapdoor
            and self._nullifier == other._nullifier
        )

    def __hash__(self) -> int:
        return hash(self._commitment)

    def __repr__(self) -> str:
        return f"Identity(commitment={self._commitment})"
