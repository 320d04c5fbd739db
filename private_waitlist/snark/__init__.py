"""Proof payloads and prover adapters for the locker and redeemer circuits."""

from .errors import SchemaError, SizeLimitError
from .factory import get_prover
from .interfaces import Prover
from .messages import (
    LockerWitness,
    ProofRequest,
    ProofResult,
    RedeemerWitness,
    build_locker_request,
    build_redeemer_request,
    decode_request,
    decode_result,
    encode_request,
    encode_result,
)
from .mock import MockProver
from .snarkjs import SnarkjsProver, parse_solidity_calldata

__all__ = [
    "SchemaError",
    "SizeLimitError",
    "Prover",
    "MockProver",
    "SnarkjsProver",
    "get_prover",
    "LockerWitness",
    "RedeemerWitness",
    "ProofRequest",
    "ProofResult",
    "build_locker_request",
    "build_redeemer_request",
    "encode_request",
    "decode_request",
    "encode_result",
    "decode_result",
    "parse_solidity_calldata",
]
