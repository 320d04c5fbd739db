"""
Protocol parameters for the private waitlist.

Every value here is shared between the off-chain helpers in this package and
the locker/redeemer circuits. Changing any of them breaks compatibility with
previously published commitments and roots.
"""

# ============================================================================
# FIELD
# ============================================================================

# BN254 scalar field order (circom / snarkjs default curve)
FIELD_MODULUS = (
    21888242871839275222246405745257275088548364400416034343698204186575808495617
)
FIELD_MODULUS_BITS = 254
FIELD_ELEMENT_BYTES = 32

# ============================================================================
# HASHING
# ============================================================================

# Two-input compression H2(a, b) = SHA-256(a_32 || b_32) mod FIELD_MODULUS
HASH_FUNCTION = "SHA256"
HASH_OUTPUT_BITS = 256

# Second H2 input when hashing a secret
COMMITMENT_DOMAIN = 0
NULLIFIER_DOMAIN = 1

DOMAIN_SEPARATORS = {
    "commitment": COMMITMENT_DOMAIN,
    "nullifier": NULLIFIER_DOMAIN,
}

# ============================================================================
# WAITLIST
# ============================================================================

# Capacity is stored as uint8 on-chain; 128 is the largest power of two it holds
MIN_CAPACITY = 1
MAX_CAPACITY = 128

# ============================================================================
# CIRCUITS
# ============================================================================

LOCKER_CIRCUIT = "locker"
REDEEMER_CIRCUIT = "redeemer"
CIRCUIT_IDS = frozenset({LOCKER_CIRCUIT, REDEEMER_CIRCUIT})

# Order of publicSignals emitted by each circuit
LOCKER_PUBLIC_SIGNALS = ("root",)
REDEEMER_PUBLIC_SIGNALS = ("nullifier", "root")

PUBLIC_SIGNAL_LAYOUTS = {
    LOCKER_CIRCUIT: LOCKER_PUBLIC_SIGNALS,
    REDEEMER_CIRCUIT: REDEEMER_PUBLIC_SIGNALS,
}

# ============================================================================
# PROVERS
# ============================================================================

# "mock" provides no zero-knowledge or soundness guarantee
PROVER_NAMES = ("mock", "snarkjs")
DEFAULT_PROVER = "mock"

# ============================================================================
# SERIALIZATION
# ============================================================================

SERIALIZATION_FORMAT = "CBOR"
PAYLOAD_VERSION = 1
STATE_VERSION = 1

MAX_WITNESS_BYTES = 64 * 1024
MAX_PROOF_BYTES = 16 * 1024
MAX_STATE_BYTES = 64 * 1024

# ============================================================================
# VALIDATION
# ============================================================================


def validate_config() -> bool:
    """
    Validate protocol parameters.

    Returns:
        True if configuration is valid

    Raises:
        AssertionError: If configuration is invalid
    """
    assert FIELD_MODULUS.bit_length() == FIELD_MODULUS_BITS, "Unexpected field size"
    assert FIELD_MODULUS < 2 ** (8 * FIELD_ELEMENT_BYTES), "Field element width too small"
    assert COMMITMENT_DOMAIN != NULLIFIER_DOMAIN, "Domain separators must differ"
    assert len(set(DOMAIN_SEPARATORS.values())) == len(DOMAIN_SEPARATORS)
    assert all(0 <= d < FIELD_MODULUS for d in DOMAIN_SEPARATORS.values())
    assert HASH_FUNCTION == "SHA256", "Invalid hash function"
    assert 1 <= MIN_CAPACITY <= MAX_CAPACITY <= 255, "Capacity must fit in uint8"
    assert MAX_CAPACITY & (MAX_CAPACITY - 1) == 0, "MAX_CAPACITY must be a power of two"
    assert set(PUBLIC_SIGNAL_LAYOUTS) == CIRCUIT_IDS
    assert DEFAULT_PROVER in PROVER_NAMES, "Default prover must be a known prover"
    assert SERIALIZATION_FORMAT == "CBOR"

    return True


# Auto-validate on import
validate_config()
