"""
⚠️ DRAFT — requires crypto review before production use

Protocol configuration for the Semaphore core.

Field parameters, tree depth range, hashing choices and serialization
versions shared by the identity, group and proof modules.
"""

# ============================================================================
# FIELD PARAMETERS (BN254)
# ============================================================================

# Circuits are compiled over the BN254 scalar field; every commitment, root,
# nullifier and signal hash is an element of this field.
CURVE_NAME = "bn254"

SNARK_SCALAR_FIELD = (
    21888242871839275222246405745257275088548364400416034343698204186575808495617
)
SNARK_SCALAR_FIELD_BITS = 254

# Base field of BN254; Groth16 point coordinates live here.
BASE_FIELD_MODULUS = (
    21888242871839275222246405745257275088696311157297823662689037894645226208583
)

# Message and scope are carried as 32-byte words.
ELEMENT_SIZE_BYTES = 32
MAX_ENCODED_VALUE = 2 ** (8 * ELEMENT_SIZE_BYTES)

# ============================================================================
# GROUP PARAMETERS
# ============================================================================

# One precompiled circuit exists per depth in this closed range.
MIN_TREE_DEPTH = 1
MAX_TREE_DEPTH = 32

# Removed members are replaced by this value; it is never a valid member.
ZERO_VALUE = 0

# ============================================================================
# HASH FUNCTIONS
# ============================================================================

HASH_FUNCTION = "SHA3-256"  # Options: "SHA3-256", "SHA256"
HASH_OUTPUT_BITS = 256

# hash_to_field drops the low byte so results always fit in the field.
FIELD_HASH_SHIFT_BITS = 8

DOMAIN_SEPARATOR_PREFIX = b"SEMAPHORE_PY_V1_"

DOMAIN_SEPARATORS = {
    "field_hash": DOMAIN_SEPARATOR_PREFIX + b"FIELD_HASH",
    "mock_backend": DOMAIN_SEPARATOR_PREFIX + b"MOCK_GROTH16",
}

# ============================================================================
# IDENTITY DERIVATION (HKDF-SHA256)
# ============================================================================

IDENTITY_KDF_SALT = DOMAIN_SEPARATOR_PREFIX + b"IDENTITY"
IDENTITY_TRAPDOOR_INFO = DOMAIN_SEPARATOR_PREFIX + b"TRAPDOOR"
IDENTITY_NULLIFIER_INFO = DOMAIN_SEPARATOR_PREFIX + b"NULLIFIER"

# 64 bytes of key material keep the modular reduction bias negligible.
IDENTITY_KDF_LENGTH = 64
GENERATED_SEED_BYTES = 32

# ============================================================================
# PROOF SERIALIZATION
# ============================================================================

PROOF_FORMAT_VERSION = 1
SUPPORTED_PROOF_FORMAT_VERSIONS = frozenset({1})

# ============================================================================
# VALIDATION
# ============================================================================


def validate_config() -> bool:
    """
    Validate configuration parameters.

    Returns:
        True if configuration is valid

    Raises:
        AssertionError: If configuration is invalid
    """
    assert CURVE_NAME == "bn254", "Circuits are compiled over BN254"
    assert SNARK_SCALAR_FIELD.bit_length() == SNARK_SCALAR_FIELD_BITS
    assert SNARK_SCALAR_FIELD < BASE_FIELD_MODULUS
    assert 1 <= MIN_TREE_DEPTH <= MAX_TREE_DEPTH, "Invalid depth range"
    assert ZERO_VALUE == 0, "Zero sentinel must be the field zero"
    assert HASH_FUNCTION in ["SHA3-256", "SHA256"], "Invalid hash function"
    assert (
        HASH_OUTPUT_BITS - FIELD_HASH_SHIFT_BITS < SNARK_SCALAR_FIELD_BITS
    ), "hash_to_field output must fit in the scalar field"
    assert IDENTITY_TRAPDOOR_INFO != IDENTITY_NULLIFIER_INFO
    assert IDENTITY_KDF_LENGTH * 8 >= SNARK_SCALAR_FIELD_BITS + 128
    assert PROOF_FORMAT_VERSION in SUPPORTED_PROOF_FORMAT_VERSIONS

    return True


# Auto-validate on import
validate_config()
