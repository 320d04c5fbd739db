"""Commitments, Merkle tree, and the Commit -> Lock -> Redeem state machine."""
from __future__ import annotations

from .exceptions import (
    AlreadyRedeemedError,
    DuplicateCommitmentError,
    ExternalLedgerError,
    ExternalProverError,
    IndexOutOfBoundsError,
    InvalidInputError,
    LedgerConflictError,
    MerkleTreeShapeError,
    NotRedeemableError,
    ProtocolStateError,
    RootMismatchError,
    WaitlistError,
)
from .hashing import commit, hash_pair, nullify
from .machine import (
    LockPlan,
    RedemptionPlan,
    accept_commitment,
    find_slot,
    join,
    lock,
    phase,
    plan_lock,
    plan_redeem,
    record_nullifier,
    redeem,
)
from .merkle import (
    AuthPath,
    MerkleTree,
    build_tree,
    compute_root,
    extract_auth_path,
    verify_auth_path,
)
from .state import Phase, WaitlistState, decode_state, encode_state, new_waitlist

__all__ = [
    "commit",
    "nullify",
    "hash_pair",
    "MerkleTree",
    "AuthPath",
    "build_tree",
    "extract_auth_path",
    "compute_root",
    "verify_auth_path",
    "Phase",
    "WaitlistState",
    "new_waitlist",
    "encode_state",
    "decode_state",
    "LockPlan",
    "RedemptionPlan",
    "phase",
    "accept_commitment",
    "join",
    "plan_lock",
    "lock",
    "find_slot",
    "plan_redeem",
    "record_nullifier",
    "redeem",
    "WaitlistError",
    "InvalidInputError",
    "MerkleTreeShapeError",
    "IndexOutOfBoundsError",
    "ProtocolStateError",
    "DuplicateCommitmentError",
    "RootMismatchError",
    "NotRedeemableError",
    "AlreadyRedeemedError",
    "ExternalProverError",
    "ExternalLedgerError",
    "LedgerConflictError",
]
