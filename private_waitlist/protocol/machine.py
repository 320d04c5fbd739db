"""
Commit -> Lock -> Redeem protocol state machine.

Every transition is a pure function ``(state, input) -> (new_state, result)``
over immutable ``WaitlistState`` snapshots. The ledger applies the returned
state; this module never stores one.

Phase rules:
    COMMIT    accept_commitment / join until capacity is reached
    LOCK      lock() only from a full, unlocked waitlist; publishes the root
    REDEEM    redeem() / record_nullifier() once per nullifier
    EXHAUSTED every committed slot has been redeemed
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Tuple

from .exceptions import (
    AlreadyRedeemedError,
    DuplicateCommitmentError,
    NotRedeemableError,
    ProtocolStateError,
    RootMismatchError,
)
from .hashing import commit, nullify
from .merkle import AuthPath, MerkleTree, build_tree, extract_auth_path, verify_auth_path
from .parsing import require_field_element, short_hex
from .state import Phase, WaitlistState

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class LockPlan:
    """Tree and root to publish when locking."""

    tree: MerkleTree

    @property
    def root(self) -> int:
        return self.tree.root


@dataclass(frozen=True)
class RedemptionPlan:
    """
    Everything needed to build a redemption proof for one slot.

    Attributes:
        slot: Slot index of the commitment
        commitment: commit(secret)
        nullifier: nullify(secret), published at redemption
        auth_path: Sibling path from the commitment to the root
        root: Published root the path recombines to
    """

    slot: int
    commitment: int
    nullifier: int
    auth_path: AuthPath
    root: int

    @property
    def siblings(self) -> Tuple[int, ...]:
        return tuple(sibling for sibling, _ in self.auth_path)

    @property
    def flags(self) -> Tuple[bool, ...]:
        return tuple(is_left for _, is_left in self.auth_path)


def phase(state: WaitlistState) -> Phase:
    """Derive the protocol phase of a snapshot."""
    if not state.locked:
        return Phase.COMMIT
    if state.redeemed_count >= len(state.commitments):
        return Phase.EXHAUSTED
    return Phase.REDEEM


def _require_unlocked(state: WaitlistState, action: str) -> None:
    if state.locked:
        raise ProtocolStateError(f"cannot {action}: waitlist is locked")


def _require_locked(state: WaitlistState, action: str) -> None:
    if not state.locked:
        raise ProtocolStateError(f"cannot {action}: waitlist is not locked yet")


# ============================================================================
# COMMIT
# ============================================================================


def accept_commitment(
    state: WaitlistState, commitment: int
) -> Tuple[WaitlistState, int]:
    """
    Append a commitment and return its slot index.

    Raises:
        InvalidInputError: If commitment is not a field element
        ProtocolStateError: If the waitlist is locked or full
        DuplicateCommitmentError: If the commitment already holds a slot
    """
    require_field_element(commitment, "commitment")
    _require_unlocked(state, "accept commitment")
    if state.is_full:
        raise ProtocolStateError(
            f"cannot accept commitment: all {state.capacity} slots are taken"
        )
    if commitment in state.commitments:
        raise DuplicateCommitmentError(
            "commitment already claims a slot; this secret was already used"
        )

    slot = len(state.commitments)
    log.info("accepted commitment %s... in slot %d", short_hex(commitment), slot)
    return state.with_commitment(commitment), slot


def join(state: WaitlistState, secret: int) -> Tuple[WaitlistState, int]:
    """Commit to a secret and claim the next slot."""
    return accept_commitment(state, commit(secret))


# ============================================================================
# LOCK
# ============================================================================


def plan_lock(state: WaitlistState) -> LockPlan:
    """
    Build the tree that lock() would publish, without changing state.

    Raises:
        ProtocolStateError: If already locked or capacity is not reached
        MerkleTreeShapeError: If capacity is not a power of two
    """
    _require_unlocked(state, "lock")
    if len(state.commitments) != state.capacity:
        raise ProtocolStateError(
            f"cannot lock: {len(state.commitments)} of {state.capacity} slots claimed"
        )
    return LockPlan(tree=build_tree(state.commitments))


def lock(state: WaitlistState) -> Tuple[WaitlistState, LockPlan]:
    """Freeze commitments and publish the Merkle root."""
    plan = plan_lock(state)
    log.info(
        "locking waitlist: phase %s -> %s -> %s, root=%s...",
        Phase.COMMIT.value,
        Phase.LOCK.value,
        Phase.REDEEM.value,
        short_hex(plan.root),
    )
    return state.with_lock(plan.root), plan


# ============================================================================
# REDEEM
# ============================================================================


def find_slot(state: WaitlistState, secret: int) -> int:
    """
    Locate the slot a secret can redeem.

    Raises:
        NotRedeemableError: If commit(secret) holds no slot
    """
    commitment = commit(secret)
    try:
        return state.commitments.index(commitment)
    except ValueError:
        raise NotRedeemableError(
            "secret does not correspond to any waitlist slot"
        ) from None


def plan_redeem(state: WaitlistState, secret: int) -> RedemptionPlan:
    """
    Derive the nullifier and authentication path for a secret.

    Raises:
        ProtocolStateError: If the waitlist is not locked
        NotRedeemableError: If the secret holds no slot
        AlreadyRedeemedError: If the slot's nullifier is already recorded
        RootMismatchError: If the published root does not match the commitments
    """
    _require_locked(state, "redeem")
    slot = find_slot(state, secret)
    nullifier = nullify(secret)
    if nullifier in state.nullifiers:
        raise AlreadyRedeemedError("this secret has already redeemed its slot")

    tree = build_tree(state.commitments)
    commitment = state.commitments[slot]
    auth_path = extract_auth_path(tree, slot)
    if not verify_auth_path(commitment, auth_path, state.merkle_root):
        raise RootMismatchError("published root does not match the commitment list")

    return RedemptionPlan(
        slot=slot,
        commitment=commitment,
        nullifier=nullifier,
        auth_path=auth_path,
        root=state.merkle_root,
    )


def record_nullifier(state: WaitlistState, nullifier: int) -> WaitlistState:
    """
    Record a redemption's nullifier.

    This is the half of redemption the ledger can check on its own: it never
    sees the secret, only the nullifier and a proof.

    Raises:
        InvalidInputError: If nullifier is not a field element
        ProtocolStateError: If the waitlist is not locked or already exhausted
        AlreadyRedeemedError: If the nullifier is already recorded
    """
    require_field_element(nullifier, "nullifier")
    _require_locked(state, "redeem")
    if nullifier in state.nullifiers:
        raise AlreadyRedeemedError("nullifier has already been used")
    if phase(state) is Phase.EXHAUSTED:
        raise ProtocolStateError("cannot redeem: every slot has been redeemed")

    new_state = state.with_nullifier(nullifier)
    log.info(
        "recorded nullifier %s... (%d/%d redeemed)",
        short_hex(nullifier),
        new_state.redeemed_count,
        len(new_state.commitments),
    )
    if phase(new_state) is Phase.EXHAUSTED:
        log.info("waitlist exhausted")
    return new_state


def redeem(
    state: WaitlistState, secret: int
) -> Tuple[WaitlistState, RedemptionPlan]:
    """Redeem the slot belonging to a secret."""
    plan = plan_redeem(state, secret)
    return record_nullifier(state, plan.nullifier), plan
