"""
⚠️ DRAFT — requires crypto review before production use

Common types for Semaphore proofs.

This module provides:
1. Groth16Points - the opaque (a, b, c) argument with BN254 curve checks
2. PublicInputs - public signal vector bound by a proof
3. CircuitInputs / Witness - values exchanged with the proving backend
4. SemaphoreProof - the proof value produced by generate_proof
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from py_ecc import bn128

from .config import BASE_FIELD_MODULUS, MAX_ENCODED_VALUE, SNARK_SCALAR_FIELD

G1Coords = Tuple[int, int]
G2Coords = Tuple[Tuple[int, int], Tuple[int, int]]
PackedGroth16Proof = Tuple[int, int, int, int, int, int, int, int]


def _is_coordinate(value: Any) -> bool:
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and 0 <= value < BASE_FIELD_MODULUS
    )


# ============================================================================
# GROTH16 POINTS
# ============================================================================


@dataclass(frozen=True)
class Groth16Points:
    """
    Groth16 argument over BN254 in affine coordinates.

    ``b`` is a G2 point written as ``((x0, x1), (y0, y1))`` where
    ``x = x0 + x1 * u`` (snarkjs ordering).
    """

    a: G1Coords
    b: G2Coords
    c: G1Coords

    def __post_init__(self) -> None:
        object.__setattr__(self, "a", (self.a[0], self.a[1]))
        object.__setattr__(
            self, "b", ((self.b[0][0], self.b[0][1]), (self.b[1][0], self.b[1][1]))
        )
        object.__setattr__(self, "c", (self.c[0], self.c[1]))

    def coordinates(self) -> List[int]:
        return [
            self.a[0], self.a[1],
            self.b[0][0], self.b[0][1], self.b[1][0], self.b[1][1],
            self.c[0], self.c[1],
        ]

    def is_well_formed(self) -> bool:
        """
        True if every coordinate is a base field element and a, c lie on G1
        and b lies on the G2 twist.
        """
        if not all(_is_coordinate(v) for v in self.coordinates()):
            return False

        a = (bn128.FQ(self.a[0]), bn128.FQ(self.a[1]))
        c = (bn128.FQ(self.c[0]), bn128.FQ(self.c[1]))
        b = (
            bn128.FQ2([self.b[0][0], self.b[0][1]]),
            bn128.FQ2([self.b[1][0], self.b[1][1]]),
        )
        return (
            bn128.is_on_curve(a, bn128.b)
            and bn128.is_on_curve(b, bn128.b2)
            and bn128.is_on_curve(c, bn128.b)
        )

    def pack(self) -> PackedGroth16Proof:
        """Eight-word form used by on-chain verifiers (G2 limbs swapped)."""
        return (
            self.a[0],
            self.a[1],
            self.b[0][1],
            self.b[0][0],
            self.b[1][1],
            self.b[1][0],
            self.c[0],
            self.c[1],
        )

    @classmethod
    def from_packed(cls, packed: Sequence[int]) -> "Groth16Points":
        if len(packed) != 8:
            raise ValueError(f"packed proof must have 8 elements, got {len(packed)}")
        return cls(
            a=(packed[0], packed[1]),
            b=((packed[3], packed[2]), (packed[5], packed[4])),
            c=(packed[6], packed[7]),
        )

    def to_snarkjs(self) -> Dict[str, Any]:
        """snarkjs ``proof.json`` mapping (projective, z = 1)."""
        return {
            "pi_a": [str(self.a[0]), str(self.a[1]), "1"],
            "pi_b": [
                [str(self.b[0][0]), str(self.b[0][1])],
                [str(self.b[1][0]), str(self.b[1][1])],
                ["1", "0"],
            ],
            "pi_c": [str(self.c[0]), str(self.c[1]), "1"],
            "protocol": "groth16",
            "curve": "bn128",
        }

    @classmethod
    def from_snarkjs(cls, data: Mapping[str, Any]) -> "Groth16Points":
        pi_a = data["pi_a"]
        pi_b = data["pi_b"]
        pi_c = data["pi_c"]
        return cls(
            a=(int(pi_a[0]), int(pi_a[1])),
            b=(
                (int(pi_b[0][0]), int(pi_b[0][1])),
                (int(pi_b[1][0]), int(pi_b[1][1])),
            ),
            c=(int(pi_c[0]), int(pi_c[1])),
        )


# ============================================================================
# PUBLIC INPUTS / CIRCUIT INPUTS
# ============================================================================


@dataclass(frozen=True)
class PublicInputs:
    """
    Public values a proof is bound to.

    ``as_vector`` order is part of the protocol:
    ``[root, nullifier, signal_hash, scope_hash, depth]``.
    """

    merkle_tree_root: int
    nullifier: int
    signal_hash: int
    scope_hash: int
    merkle_tree_depth: int

    def as_vector(self) -> List[int]:
        return [
            self.merkle_tree_root,
            self.nullifier,
            self.signal_hash,
            self.scope_hash,
            self.merkle_tree_depth,
        ]

    def circuit_signals(self) -> List[int]:
        """Public signals of a compiled circuit; depth is fixed by its key."""
        return self.as_vector()[:4]


@dataclass(frozen=True)
class CircuitInputs:
    """Private and public inputs handed to the witness engine."""

    identity_trapdoor: int
    identity_nullifier: int
    merkle_proof_length: int
    merkle_proof_index: int
    merkle_proof_siblings: Tuple[int, ...]
    public: PublicInputs

    def to_circom(self) -> Dict[str, Any]:
        """
        Signal-name mapping written as the witness engine's input.json.

        The layout is Semaphore v4's (``merkleProofLength``,
        ``merkleProofIndex``, ``merkleProofSiblings``, ``message``,
        ``scope``; public signals ``[merkleRoot, nullifier, message,
        scope]``) with v4's single ``secret`` replaced by the
        ``identityTrapdoor``/``identityNullifier`` pair. The published
        Semaphore zkeys accept neither this pair nor a non-Poseidon hasher,
        so the snarkjs backend needs a circuit compiled for this layout and
        for the configured ``FieldHasher``. ``message`` and ``scope`` carry
        the already hashed values, as in v4.
        """
        return {
            "identityTrapdoor": str(self.identity_trapdoor),
            "identityNullifier": str(self.identity_nullifier),
            "merkleProofLength": str(self.merkle_proof_length),
            "merkleProofIndex": str(self.merkle_proof_index),
            "merkleProofSiblings": [str(s) for s in self.merkle_proof_siblings],
            "message": str(self.public.signal_hash),
            "scope": str(self.public.scope_hash),
        }


@dataclass(frozen=True)
class Witness:
    """
    Opaque witness produced by a backend.

    ``data`` is backend specific (e.g. a ``.wtns`` file body or a mapping of
    signal values); ``public`` records the public inputs it satisfies.
    """

    data: Any
    public: PublicInputs
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False)


# ============================================================================
# SEMAPHORE PROOF
# ============================================================================


@dataclass(frozen=True)
class SemaphoreProof:
    """
    Zero-knowledge proof of group membership bound to a message and scope.

    Attributes:
        merkle_tree_depth: Depth of the circuit the proof was generated for
        merkle_tree_root: Group root at generation time
        nullifier: ``Hash(scope_hash, identity nullifier)``
        message: 256-bit encoding of the signaled message
        scope: 256-bit encoding of the scope
        points: Groth16 argument
    """

    merkle_tree_depth: int
    merkle_tree_root: int
    nullifier: int
    message: int
    scope: int
    points: Groth16Points

    def is_well_formed(self) -> bool:
        """Structural checks only; use verify_proof for cryptographic checks."""
        depth = self.merkle_tree_depth
        if isinstance(depth, bool) or not isinstance(depth, int):
            return False
        for value in (self.merkle_tree_root, self.nullifier):
            if isinstance(value, bool) or not isinstance(value, int):
                return False
            if not 0 <= value < SNARK_SCALAR_FIELD:
                return False
        for value in (self.message, self.scope):
            if isinstance(value, bool) or not isinstance(value, int):
                return False
            if not 0 <= value < MAX_ENCODED_VALUE:
                return False
        if not isinstance(self.points, Groth16Points):
            return False
        return self.points.is_well_formed()

    def public_inputs(self) -> PublicInputs:
        from .hashing import hash_to_field

        return PublicInputs(
            merkle_tree_root=self.merkle_tree_root,
            nullifier=self.nullifier,
            signal_hash=hash_to_field(self.message),
            scope_hash=hash_to_field(self.scope),
            merkle_tree_depth=self.merkle_tree_depth,
        )

    def to_dict(self) -> Dict[str, Any]:
        from .serialization import proof_to_dict

        return proof_to_dict(self)

    def export(self) -> str:
        from .serialization import export_proof

        return export_proof(self)

    @classmethod
    def import_json(cls, text: str) -> "SemaphoreProof":
        from .serialization import import_proof

        return import_proof(text)
