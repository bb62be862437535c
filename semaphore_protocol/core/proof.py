"""
⚠️ DRAFT — requires crypto review before production use

Semaphore proof generation and verification.

A proof shows that the prover knows the secrets behind a commitment in a
group with a given root, and binds a message and scope to that statement.
The nullifier ``Hash(scope_hash, identity_nullifier)`` is public and is the
same for every proof an identity makes in one scope.

Proving is delegated to a ``ProvingBackend`` together with the circuit
artifacts for the requested depth; both are carried by an immutable
``ProofSystem`` so proofs can be generated from worker threads.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional, Union

from .backends import create_backend
from .config import MIN_TREE_DEPTH, ZERO_VALUE
from .exceptions import MemberNotFoundError, ProvingError
from .group import Group, MerkleProof
from .hashing import Encodable, encode_bytes32, hash_to_field
from .identity import Identity
from .interfaces import ProvingBackend
from .snark.assets import ArtifactRegistry
from .types import CircuitInputs, PublicInputs, SemaphoreProof

logger = logging.getLogger(__name__)


# ============================================================================
# PROOF SYSTEM
# ============================================================================


@dataclass(frozen=True)
class ProofSystem:
    """
    Proving backend plus the depth-keyed circuit artifacts it runs.

    Example:
        >>> system = ProofSystem.from_env("mock")
        >>> system.artifacts.supports(16)
        True
    """

    backend: ProvingBackend
    artifacts: ArtifactRegistry

    @classmethod
    def from_env(cls, backend_name: Optional[str] = None) -> "ProofSystem":
        """
        Build a system for ``backend_name`` (default ``$SEMAPHORE_BACKEND``).

        File-backed backends load artifacts from ``$SEMAPHORE_ARTIFACTS_DIR``;
        the mock backend gets an in-memory registry for every depth.
        """
        backend = create_backend(backend_name)
        if backend.requires_artifact_files:
            artifacts = ArtifactRegistry.from_directory()
        else:
            artifacts = ArtifactRegistry.in_memory()
        return cls(backend=backend, artifacts=artifacts)


_system: Optional[ProofSystem] = None
_system_lock = threading.Lock()


def get_proof_system() -> ProofSystem:
    """Process-wide proof system, built from the environment on first use."""
    global _system
    with _system_lock:
        if _system is None:
            _system = ProofSystem.from_env()
            logger.debug(
                "Initialized proof system with %s (depths %s)",
                _system.backend.backend_name,
                _system.artifacts.depths,
            )
        return _system


def set_proof_system(system: Optional[ProofSystem]) -> None:
    """Replace the process-wide proof system; None rebuilds it lazily."""
    global _system
    if system is not None and not isinstance(system, ProofSystem):
        raise TypeError("system must be a ProofSystem or None")
    with _system_lock:
        _system = system


# ============================================================================
# GENERATION
# ============================================================================


def generate_proof(
    identity: Identity,
    group_or_merkle_proof: Union[Group, MerkleProof],
    message: Encodable,
    scope: Encodable,
    merkle_tree_depth: Optional[int] = None,
    *,
    system: Optional[ProofSystem] = None,
) -> SemaphoreProof:
    """
    Generate a Semaphore proof.

    Args:
        identity: Prover identity
        group_or_merkle_proof: Group containing the identity's commitment,
            or a Merkle proof for it
        message: Signal to bind (str, bytes or int)
        scope: External nullifier (str, bytes or int)
        merkle_tree_depth: Circuit depth; defaults to the path length
        system: Proof system; defaults to ``get_proof_system()``

    Raises:
        MemberNotFoundError: If the commitment is not in the group
        UnsupportedDepthError: If no circuit exists for the depth
        ProvingError: If the witness does not satisfy the circuit or the
            backend fails
    """
    if not isinstance(identity, Identity):
        raise TypeError("identity must be an Identity")
    system = system or get_proof_system()

    if isinstance(group_or_merkle_proof, Group):
        group = group_or_merkle_proof
        index = group.index_of(identity.commitment)
        if index is None:
            raise MemberNotFoundError("identity commitment is not a group member")
        merkle_proof = group.generate_merkle_proof(index)
    elif isinstance(group_or_merkle_proof, MerkleProof):
        merkle_proof = group_or_merkle_proof
    else:
        raise TypeError("expected a Group or a MerkleProof")

    path_length = len(merkle_proof.siblings)
    depth = (
        merkle_tree_depth
        if merkle_tree_depth is not None
        else max(MIN_TREE_DEPTH, path_length)
    )
    artifacts = system.artifacts.get_artifacts(depth)
    if path_length > depth:
        raise ProvingError(
            f"merkle proof has {path_length} siblings but the circuit depth is {depth}"
        )

    message_value = encode_bytes32(message)
    scope_value = encode_bytes32(scope)
    public = PublicInputs(
        merkle_tree_root=merkle_proof.root,
        nullifier=identity.derive_nullifier(scope_value),
        signal_hash=hash_to_field(message_value),
        scope_hash=hash_to_field(scope_value),
        merkle_tree_depth=depth,
    )
    inputs = CircuitInputs(
        identity_trapdoor=identity.trapdoor,
        identity_nullifier=identity.nullifier,
        merkle_proof_length=path_length,
        merkle_proof_index=merkle_proof.index,
        merkle_proof_siblings=tuple(merkle_proof.siblings)
        + (ZERO_VALUE,) * (depth - path_length),
        public=public,
    )

    backend = system.backend
    try:
        witness = backend.compute_witness(artifacts, inputs)
        points = backend.prove(artifacts, witness)
    except ProvingError:
        raise
    except Exception as e:
        raise ProvingError(f"{backend.backend_name} failed to prove: {e}") from e

    logger.debug("Generated proof at depth %d with %s", depth, backend.backend_name)
    return SemaphoreProof(
        merkle_tree_depth=depth,
        merkle_tree_root=merkle_proof.root,
        nullifier=public.nullifier,
        message=message_value,
        scope=scope_value,
        points=points,
    )


# ============================================================================
# VERIFICATION
# ============================================================================


def verify_proof(
    proof: SemaphoreProof, *, system: Optional[ProofSystem] = None
) -> bool:
    """
    Verify a Semaphore proof.

    Returns False, never raises, for unsupported depths, malformed values,
    points off the curve or any backend failure.
    """
    try:
        if not isinstance(proof, SemaphoreProof):
            return False
        system = system or get_proof_system()
        if not system.artifacts.supports(proof.merkle_tree_depth):
            logger.debug("Rejecting proof with depth %r", proof.merkle_tree_depth)
            return False
        if not proof.is_well_formed():
            logger.debug("Rejecting structurally invalid proof")
            return False

        artifacts = system.artifacts.get_artifacts(proof.merkle_tree_depth)
        valid = bool(
            system.backend.verify(artifacts, proof.public_inputs(), proof.points)
        )
    except Exception as e:
        logger.debug("Proof verification failed with %s", type(e).__name__)
        return False

    logger.debug("Proof verification result: %s", valid)
    return valid
