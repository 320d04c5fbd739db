"""
Commitment and nullifier derivation.

A secret is hashed twice under different domain separators:

    commitment = H2(secret, COMMITMENT_DOMAIN)
    nullifier  = H2(secret, NULLIFIER_DOMAIN)

H2 is also the Merkle node combination rule, so every public value lives in
the circuit field.
"""

import hashlib

from .config import COMMITMENT_DOMAIN, FIELD_MODULUS, NULLIFIER_DOMAIN
from .parsing import field_to_bytes, require_field_element


def hash_pair(left: int, right: int) -> int:
    """
    Two-input field hash.

    Args:
        left: First field element
        right: Second field element

    Returns:
        SHA-256(left_32 || right_32) reduced modulo FIELD_MODULUS

    Note:
        Input order matters; hash_pair(a, b) != hash_pair(b, a) in general.
    """
    digest = hashlib.sha256(field_to_bytes(left) + field_to_bytes(right)).digest()
    return int.from_bytes(digest, "big") % FIELD_MODULUS


def commit(secret: int) -> int:
    """
    Derive the public commitment for a secret.

    Raises:
        InvalidInputError: If secret is not a field element
    """
    require_field_element(secret, "secret")
    return hash_pair(secret, COMMITMENT_DOMAIN)


def nullify(secret: int) -> int:
    """
    Derive the nullifier revealed when redeeming a secret's slot.

    Raises:
        InvalidInputError: If secret is not a field element
    """
    require_field_element(secret, "secret")
    return hash_pair(secret, NULLIFIER_DOMAIN)
