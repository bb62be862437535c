"""
⚠️ DRAFT — requires crypto review before production use

Proof exchange format.

Proofs travel as a flat JSON object with decimal-string field elements:

    {"merkleTreeDepth": 2, "merkleTreeRoot": "...", "nullifier": "...",
     "message": "...", "scope": "...",
     "points": {"a": [x, y], "b": [[x0, x1], [y0, y1]], "c": [x, y]},
     "version": 1}

The same mapping is available as canonical CBOR for compact storage.
Parsing is strict: anything that does not match the layout above raises
``MalformedProofError``.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Mapping

import cbor2

from .config import (
    BASE_FIELD_MODULUS,
    MAX_ENCODED_VALUE,
    PROOF_FORMAT_VERSION,
    SUPPORTED_PROOF_FORMAT_VERSIONS,
)
from .exceptions import MalformedProofError
from .types import Groth16Points, SemaphoreProof

_DECIMAL_RE = re.compile(r"0|[1-9][0-9]*")
# Longest decimal string that can still denote a 32-byte word.
_MAX_DECIMAL_DIGITS = len(str(MAX_ENCODED_VALUE - 1))

_REQUIRED_KEYS = (
    "merkleTreeDepth",
    "merkleTreeRoot",
    "nullifier",
    "message",
    "scope",
    "points",
)
_OPTIONAL_KEYS = ("version",)
_POINT_KEYS = ("a", "b", "c")


# ============================================================================
# ENCODING
# ============================================================================


def proof_to_dict(proof: SemaphoreProof) -> Dict[str, Any]:
    """Exchange-format mapping for ``proof`` (key order is significant)."""
    points = proof.points
    return {
        "merkleTreeDepth": proof.merkle_tree_depth,
        "merkleTreeRoot": str(proof.merkle_tree_root),
        "nullifier": str(proof.nullifier),
        "message": str(proof.message),
        "scope": str(proof.scope),
        "points": {
            "a": [str(points.a[0]), str(points.a[1])],
            "b": [
                [str(points.b[0][0]), str(points.b[0][1])],
                [str(points.b[1][0]), str(points.b[1][1])],
            ],
            "c": [str(points.c[0]), str(points.c[1])],
        },
        "version": PROOF_FORMAT_VERSION,
    }


def export_proof(proof: SemaphoreProof) -> str:
    """Serialize ``proof`` to compact JSON."""
    return json.dumps(proof_to_dict(proof), separators=(",", ":"))


def export_proof_cbor(proof: SemaphoreProof) -> bytes:
    """Serialize ``proof`` to canonical CBOR."""
    return cbor2.dumps(proof_to_dict(proof), canonical=True)


# ============================================================================
# DECODING
# ============================================================================


def proof_from_dict(data: Mapping[str, Any]) -> SemaphoreProof:
    """
    Build a proof from an exchange-format mapping.

    Raises:
        MalformedProofError: If the mapping does not match the format
    """
    if not isinstance(data, Mapping):
        raise MalformedProofError("proof must be a JSON object")

    missing = [key for key in _REQUIRED_KEYS if key not in data]
    if missing:
        raise MalformedProofError(f"missing fields: {', '.join(missing)}")
    extra = sorted(
        str(key) for key in data if key not in _REQUIRED_KEYS + _OPTIONAL_KEYS
    )
    if extra:
        raise MalformedProofError(f"unexpected fields: {', '.join(extra)}")

    version = data.get("version", PROOF_FORMAT_VERSION)
    if (
        isinstance(version, bool)
        or not isinstance(version, int)
        or version not in SUPPORTED_PROOF_FORMAT_VERSIONS
    ):
        raise MalformedProofError(f"unsupported proof format version: {version!r}")

    depth = data["merkleTreeDepth"]
    if isinstance(depth, bool) or not isinstance(depth, int) or depth < 0:
        raise MalformedProofError(
            f"merkleTreeDepth must be a non-negative integer, got {depth!r}"
        )

    return SemaphoreProof(
        merkle_tree_depth=depth,
        merkle_tree_root=_parse_word(data["merkleTreeRoot"], "merkleTreeRoot"),
        nullifier=_parse_word(data["nullifier"], "nullifier"),
        message=_parse_word(data["message"], "message"),
        scope=_parse_word(data["scope"], "scope"),
        points=_parse_points(data["points"]),
    )


def import_proof(text: str) -> SemaphoreProof:
    """
    Parse a JSON-encoded proof.

    Raises:
        MalformedProofError: On invalid JSON or layout
    """
    if isinstance(text, (bytes, bytearray)):
        try:
            text = bytes(text).decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedProofError(f"proof is not valid UTF-8: {e}") from e
    if not isinstance(text, str):
        raise MalformedProofError(f"proof must be str, got {type(text).__name__}")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedProofError(f"invalid JSON: {e}") from e

    return proof_from_dict(data)


def import_proof_cbor(data: bytes) -> SemaphoreProof:
    """
    Parse a CBOR-encoded proof.

    Raises:
        MalformedProofError: On invalid CBOR or layout
    """
    try:
        obj = cbor2.loads(data)
    except Exception as e:
        raise MalformedProofError(f"invalid CBOR: {e}") from e

    return proof_from_dict(obj)


# ============================================================================
# HELPERS
# ============================================================================


def _parse_decimal(value: Any, label: str) -> int:
    if not isinstance(value, str):
        raise MalformedProofError(f"{label} must be a decimal string, got {value!r}")
    if len(value) > _MAX_DECIMAL_DIGITS:
        raise MalformedProofError(f"{label} does not fit in 32 bytes")
    if not _DECIMAL_RE.fullmatch(value):
        raise MalformedProofError(f"{label} must be a decimal string, got {value!r}")
    return int(value)


def _parse_word(value: Any, label: str) -> int:
    parsed = _parse_decimal(value, label)
    if parsed >= MAX_ENCODED_VALUE:
        raise MalformedProofError(f"{label} does not fit in 32 bytes")
    return parsed


def _parse_coordinate(value: Any, label: str) -> int:
    parsed = _parse_decimal(value, label)
    if parsed >= BASE_FIELD_MODULUS:
        raise MalformedProofError(f"{label} is not a BN254 base field element")
    return parsed


def _parse_pair(value: Any, label: str) -> List[Any]:
    if not isinstance(value, list) or len(value) != 2:
        raise MalformedProofError(f"{label} must be a list of two elements")
    return value


def _parse_points(points: Any) -> Groth16Points:
    if not isinstance(points, Mapping):
        raise MalformedProofError("points must be an object")
    if set(points.keys()) != set(_POINT_KEYS):
        raise MalformedProofError("points must have exactly the keys a, b, c")

    a = _parse_pair(points["a"], "points.a")
    b = _parse_pair(points["b"], "points.b")
    c = _parse_pair(points["c"], "points.c")
    bx = _parse_pair(b[0], "points.b[0]")
    by = _parse_pair(b[1], "points.b[1]")

    return Groth16Points(
        a=(
            _parse_coordinate(a[0], "points.a[0]"),
            _parse_coordinate(a[1], "points.a[1]"),
        ),
        b=(
            (
                _parse_coordinate(bx[0], "points.b[0][0]"),
                _parse_coordinate(bx[1], "points.b[0][1]"),
            ),
            (
                _parse_coordinate(by[0], "points.b[1][0]"),
                _parse_coordinate(by[1], "points.b[1][1]"),
            ),
        ),
        c=(
            _parse_coordinate(c[0], "points.c[0]"),
            _parse_coordinate(c[1], "points.c[1]"),
        ),
    )
