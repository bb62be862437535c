"""
Field encoding and hashing for the Semaphore core.

All protocol values are BN254 scalar field elements represented as Python
ints. Message and scope words are hashed with keccak256 as Semaphore does
on-chain. The default tree/commitment hasher is SHA3-256 with domain
separation reduced into the field; deployments whose circuits use a
different native hash (e.g. Poseidon) inject their own ``FieldHasher`` into
groups, identities and the mock backend.
"""

from __future__ import annotations

import hashlib
from typing import Protocol, Union

from eth_utils import keccak

from .config import (
    DOMAIN_SEPARATORS,
    ELEMENT_SIZE_BYTES,
    FIELD_HASH_SHIFT_BITS,
    HASH_FUNCTION,
    MAX_ENCODED_VALUE,
    SNARK_SCALAR_FIELD,
)

Encodable = Union[str, bytes, bytearray, int]


class FieldHasher(Protocol):
    """Hash a fixed number of field elements to a field element."""

    def hash(self, *inputs: int) -> int:
        ...


def _new_digest():
    if HASH_FUNCTION == "SHA3-256":
        return hashlib.sha3_256()
    return hashlib.sha256()


def to_field(value: int, label: str = "value") -> int:
    """
    Validate that ``value`` is a field element.

    Raises:
        TypeError: If value is not an int
        ValueError: If value is outside [0, SNARK_SCALAR_FIELD)
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{label} must be int, got {type(value).__name__}")
    if value < 0 or value >= SNARK_SCALAR_FIELD:
        raise ValueError(f"{label} is not a field element: {value}")
    return value


def field_to_bytes(value: int) -> bytes:
    """Big-endian 32-byte encoding of a field element."""
    return to_field(value).to_bytes(ELEMENT_SIZE_BYTES, "big")


class Sha3FieldHasher:
    """
    Domain-separated hash over field elements.

    Layout: ``len(domain) || domain || arity || in_0 || ... || in_n`` with each input as a
    32-byte big-endian word; the digest is reduced modulo the scalar field.
    The arity byte keeps ``hash(a)`` and ``hash(a, 0)`` apart.
    """

    def __init__(self, domain_sep: bytes = DOMAIN_SEPARATORS["field_hash"]) -> None:
        if not isinstance(domain_sep, bytes) or not domain_sep:
            raise ValueError("domain_sep must be non-empty bytes")
        self._domain_sep = domain_sep

    def hash(self, *inputs: int) -> int:
        if not inputs:
            raise ValueError("at least one input is required")
        if len(inputs) > 255:
            raise ValueError("too many inputs")

        h = _new_digest()
        h.update(len(self._domain_sep).to_bytes(4, "big"))
        h.update(self._domain_sep)
        h.update(bytes([len(inputs)]))
        for idx, value in enumerate(inputs):
            h.update(to_field(value, f"inputs[{idx}]").to_bytes(ELEMENT_SIZE_BYTES, "big"))

        return int.from_bytes(h.digest(), "big") % SNARK_SCALAR_FIELD

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._domain_sep!r})"


_DEFAULT_HASHER = Sha3FieldHasher()


def default_hasher() -> FieldHasher:
    return _DEFAULT_HASHER


def hash_to_field(value: int) -> int:
    """
    Reduce a 256-bit word to a field element.

    Used for the signal hash and scope hash public inputs: keccak256 of the
    32-byte big-endian word, shifted right by 8 bits so the result is always
    below the field order. Matches Semaphore's on-chain ``_hash``.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"value must be int, got {type(value).__name__}")
    if value < 0 or value >= MAX_ENCODED_VALUE:
        raise ValueError("value must fit in 32 bytes")

    digest = keccak(value.to_bytes(ELEMENT_SIZE_BYTES, "big"))
    return int.from_bytes(digest, "big") >> FIELD_HASH_SHIFT_BITS


def encode_bytes32(data: Encodable) -> int:
    """
    Canonical 256-bit encoding of a message or scope.

    - ``str`` is UTF-8 encoded first.
    - Byte strings of at most 32 bytes are right-padded with zeros and read
      big-endian, so short text keeps its bytes visible in the value.
    - Longer byte strings are keccak256-hashed and shifted into the field.
    - ``int`` values are used as-is when they fit in 32 bytes.

    Raises:
        TypeError: For unsupported input types
        ValueError: For negative or oversized ints
    """
    if isinstance(data, bool):
        raise TypeError("bool is not a valid message or scope")

    if isinstance(data, int):
        if data < 0 or data >= MAX_ENCODED_VALUE:
            raise ValueError("integer message/scope must fit in 32 bytes")
        return data

    if isinstance(data, str):
        data = data.encode("utf-8")

    if not isinstance(data, (bytes, bytearray)):
        raise TypeError(
            f"message/scope must be str, bytes, or int, got {type(data).__name__}"
        )

    data = bytes(data)
    if len(data) <= ELEMENT_SIZE_BYTES:
        return int.from_bytes(data.ljust(ELEMENT_SIZE_BYTES, b"\x00"), "big")

    return int.from_bytes(keccak(data), "big") >> FIELD_HASH_SHIFT_BITS
