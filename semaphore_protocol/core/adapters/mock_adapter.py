"""
Mock Groth16 backend for tests and local development.

Notes:
- The circuit's constraints are checked in Python before "proving", so an
  invalid witness fails exactly where a real prover would.
- Points are genuine BN254 group elements, but they are derived from the
  public inputs and a backend key. This is NOT zero-knowledge and NOT
  sound: anyone holding the key can forge proofs.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Any, Dict, List, Optional

from py_ecc.optimized_bn128 import G1, G2, curve_order, multiply, normalize

from ..config import DOMAIN_SEPARATORS, ELEMENT_SIZE_BYTES
from ..exceptions import ProvingError
from ..hashing import FieldHasher, default_hasher
from ..interfaces import ProvingBackend
from ..snark.assets import CircuitArtifacts
from ..types import CircuitInputs, Groth16Points, PublicInputs, Witness

logger = logging.getLogger(__name__)

DEFAULT_MOCK_KEY = b"semaphore-py mock backend key"


class MockProvingBackend(ProvingBackend):
    """
    Deterministic stand-in for a Groth16 prover.

    Args:
        hasher: Field hasher the groups and identities were built with
        key: Secret that binds points to this backend instance
    """

    _BACKEND_NAME = "MockProvingBackend"
    _BACKEND_VERSION = "0.1.0"

    def __init__(
        self,
        hasher: Optional[FieldHasher] = None,
        key: bytes = DEFAULT_MOCK_KEY,
    ) -> None:
        if not isinstance(key, bytes) or not key:
            raise ValueError("key must be non-empty bytes")
        self._hasher = hasher or default_hasher()
        self._key = key

    @property
    def backend_name(self) -> str:
        return self._BACKEND_NAME

    @property
    def backend_version(self) -> str:
        return self._BACKEND_VERSION

    # ========================================================================
    # CONSTRAINTS
    # ========================================================================

    def compute_witness(
        self, artifacts: CircuitArtifacts, inputs: CircuitInputs
    ) -> Witness:
        public = inputs.public
        depth = artifacts.depth

        if public.merkle_tree_depth != depth:
            raise ProvingError(
                f"circuit depth {depth} does not match public depth "
                f"{public.merkle_tree_depth}"
            )
        if len(inputs.merkle_proof_siblings) != depth:
            raise ProvingError(
                f"expected {depth} sibling slots, got {len(inputs.merkle_proof_siblings)}"
            )
        length = inputs.merkle_proof_length
        if length < 0 or length > depth:
            raise ProvingError(f"merkle proof length {length} exceeds depth {depth}")
        if inputs.merkle_proof_index >> length:
            raise ProvingError("merkle proof index has bits beyond the proof length")

        commitment = self._hasher.hash(
            inputs.identity_trapdoor, inputs.identity_nullifier
        )

        node = commitment
        for level in range(length):
            sibling = inputs.merkle_proof_siblings[level]
            if (inputs.merkle_proof_index >> level) & 1:
                node = self._hasher.hash(sibling, node)
            else:
                node = self._hasher.hash(node, sibling)
        if node != public.merkle_tree_root:
            raise ProvingError("constraint not satisfied: merkle root mismatch")

        nullifier = self._hasher.hash(public.scope_hash, inputs.identity_nullifier)
        if nullifier != public.nullifier:
            raise ProvingError("constraint not satisfied: nullifier mismatch")

        signals: Dict[str, Any] = {
            "commitment": commitment,
            "merkleTreeRoot": node,
            "nullifier": nullifier,
        }
        return Witness(
            data=signals,
            public=public,
            metadata={"backend": self._BACKEND_NAME, "depth": depth},
        )

    # ========================================================================
    # PROVE / VERIFY
    # ========================================================================

    def prove(self, artifacts: CircuitArtifacts, witness: Witness) -> Groth16Points:
        if witness.public.merkle_tree_depth != artifacts.depth:
            raise ProvingError(
                f"witness depth {witness.public.merkle_tree_depth} does not match "
                f"circuit depth {artifacts.depth}"
            )
        points = self._points_for(witness.public)
        logger.debug("Mock proof generated for depth %d", artifacts.depth)
        return points

    def verify(
        self,
        artifacts: CircuitArtifacts,
        public_inputs: PublicInputs,
        points: Groth16Points,
    ) -> bool:
        try:
            if public_inputs.merkle_tree_depth != artifacts.depth:
                return False
            return self._points_for(public_inputs) == points
        except Exception:
            return False

    # ========================================================================
    # INTERNALS
    # ========================================================================

    def _scalar(self, label: bytes, public: PublicInputs) -> int:
        domain = DOMAIN_SEPARATORS["mock_backend"]
        h = hashlib.sha3_256()
        for part in (domain, self._key, label):
            h.update(len(part).to_bytes(4, "big"))
            h.update(part)
        for value in public.as_vector():
            h.update(value.to_bytes(ELEMENT_SIZE_BYTES, "big"))
        scalar = int.from_bytes(h.digest(), "big") % curve_order
        return scalar or 1

    def _points_for(self, public: PublicInputs) -> Groth16Points:
        a_x, a_y = normalize(multiply(G1, self._scalar(b"A", public)))
        b_x, b_y = normalize(multiply(G2, self._scalar(b"B", public)))
        c_x, c_y = normalize(multiply(G1, self._scalar(b"C", public)))
        return Groth16Points(
            a=(int(a_x), int(a_y)),
            b=(_fq2_coeffs(b_x), _fq2_coeffs(b_y)),
            c=(int(c_x), int(c_y)),
        )


def _fq2_coeffs(element: Any) -> tuple:
    coeffs: List[int] = [int(c) for c in element.coeffs]
    return coeffs[0], coeffs[1]
