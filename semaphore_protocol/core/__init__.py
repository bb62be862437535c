"""Semaphore core: identities, groups, proofs and their serialization."""
from __future__ import annotations

from .exceptions import (
    AlreadyRemovedMemberError,
    BackendError,
    ConfigurationError,
    DuplicateMemberError,
    EmptyMemberError,
    GroupError,
    IndexOutOfRangeError,
    InvalidSeedError,
    MalformedProofError,
    MemberNotFoundError,
    ProvingError,
    RemovedMemberError,
    SemaphoreError,
    UnsupportedDepthError,
)
from .backends import available_backends, create_backend
from .group import Group, MerkleProof
from .hashing import FieldHasher, Sha3FieldHasher, encode_bytes32, hash_to_field
from .identity import Identity
from .interfaces import ProvingBackend
from .proof import (
    ProofSystem,
    generate_proof,
    get_proof_system,
    set_proof_system,
    verify_proof,
)
from .serialization import (
    export_proof,
    export_proof_cbor,
    import_proof,
    import_proof_cbor,
)
from .snark.assets import ArtifactRegistry, CircuitArtifacts
from .types import CircuitInputs, Groth16Points, PublicInputs, SemaphoreProof, Witness

__all__ = [
    "Identity",
    "Group",
    "MerkleProof",
    "SemaphoreProof",
    "Groth16Points",
    "PublicInputs",
    "CircuitInputs",
    "Witness",
    "FieldHasher",
    "Sha3FieldHasher",
    "encode_bytes32",
    "hash_to_field",
    "generate_proof",
    "verify_proof",
    "ProofSystem",
    "get_proof_system",
    "set_proof_system",
    "export_proof",
    "import_proof",
    "export_proof_cbor",
    "import_proof_cbor",
    "ProvingBackend",
    "ArtifactRegistry",
    "CircuitArtifacts",
    "create_backend",
    "available_backends",
    "SemaphoreError",
    "ConfigurationError",
    "InvalidSeedError",
    "GroupError",
    "DuplicateMemberError",
    "MemberNotFoundError",
    "IndexOutOfRangeError",
    "EmptyMemberError",
    "RemovedMemberError",
    "AlreadyRemovedMemberError",
    "UnsupportedDepthError",
    "ProvingError",
    "BackendError",
    "MalformedProofError",
]
