"""
Unit tests for the Commit -> Lock -> Redeem transitions.
"""

import pytest

from private_waitlist.protocol import machine
from private_waitlist.protocol.exceptions import (
    AlreadyRedeemedError,
    DuplicateCommitmentError,
    InvalidInputError,
    NotRedeemableError,
    ProtocolStateError,
    RootMismatchError,
)
from private_waitlist.protocol.hashing import commit, nullify
from private_waitlist.protocol.merkle import build_tree, verify_auth_path
from private_waitlist.protocol.state import Phase, WaitlistState, new_waitlist

SECRETS = [1111, 2222, 3333, 4444]


def _full(capacity: int = 4) -> WaitlistState:
    state = new_waitlist(capacity)
    for secret in SECRETS[:capacity]:
        state, _ = machine.join(state, secret)
    return state


def _locked(capacity: int = 4) -> WaitlistState:
    state, _ = machine.lock(_full(capacity))
    return state


def test_join_assigns_slots_in_order():
    state = new_waitlist(4)
    for expected_slot, secret in enumerate(SECRETS):
        state, slot = machine.join(state, secret)
        assert slot == expected_slot
    assert state.commitments == tuple(commit(s) for s in SECRETS)
    assert machine.phase(state) is Phase.COMMIT


def test_transitions_do_not_mutate_input():
    state = new_waitlist(4)
    new_state, _ = machine.join(state, SECRETS[0])
    assert state.commitments == ()
    assert new_state.commitments == (commit(SECRETS[0]),)


def test_duplicate_commitment_rejected():
    state, _ = machine.join(new_waitlist(4), SECRETS[0])
    with pytest.raises(DuplicateCommitmentError):
        machine.join(state, SECRETS[0])


def test_commit_when_full_rejected():
    with pytest.raises(ProtocolStateError, match="slots are taken"):
        machine.join(_full(), 9999)


def test_commit_after_lock_rejected():
    with pytest.raises(ProtocolStateError, match="locked"):
        machine.accept_commitment(_locked(), commit(9999))


def test_accept_commitment_rejects_non_field_value():
    with pytest.raises(InvalidInputError):
        machine.accept_commitment(new_waitlist(4), -5)


def test_lock_before_full_rejected():
    state, _ = machine.join(new_waitlist(4), SECRETS[0])
    with pytest.raises(ProtocolStateError, match="1 of 4"):
        machine.lock(state)


def test_lock_publishes_tree_root():
    full = _full()
    state, plan = machine.lock(full)
    assert state.locked is True
    assert state.merkle_root == build_tree(full.commitments).root == plan.root
    assert state.commitments == full.commitments
    assert machine.phase(state) is Phase.REDEEM


def test_lock_twice_rejected():
    with pytest.raises(ProtocolStateError):
        machine.lock(_locked())


def test_plan_lock_does_not_change_state():
    full = _full()
    plan = machine.plan_lock(full)
    assert full.locked is False
    assert plan.tree.leaves == full.commitments


def test_redeem_before_lock_rejected():
    with pytest.raises(ProtocolStateError, match="not locked"):
        machine.redeem(_full(), SECRETS[0])


def test_redeem_second_slot():
    state = _locked()
    new_state, plan = machine.redeem(state, SECRETS[1])
    assert plan.slot == 1
    assert plan.commitment == commit(SECRETS[1])
    assert plan.nullifier == nullify(SECRETS[1])
    assert plan.root == state.merkle_root
    assert len(plan.siblings) == len(plan.flags) == 2
    assert verify_auth_path(plan.commitment, plan.auth_path, plan.root)
    assert new_state.nullifiers == (nullify(SECRETS[1]),)


def test_redeem_twice_rejected():
    state, _ = machine.redeem(_locked(), SECRETS[1])
    with pytest.raises(AlreadyRedeemedError):
        machine.redeem(state, SECRETS[1])


def test_redeem_unknown_secret_rejected():
    with pytest.raises(NotRedeemableError):
        machine.redeem(_locked(), 5555)


def test_find_slot():
    state = _full()
    assert machine.find_slot(state, SECRETS[2]) == 2
    with pytest.raises(NotRedeemableError):
        machine.find_slot(state, 5555)


def test_tampered_root_detected():
    state = _locked()
    tampered = WaitlistState(
        capacity=state.capacity,
        commitments=state.commitments,
        locked=True,
        merkle_root=commit(9999),
    )
    with pytest.raises(RootMismatchError):
        machine.plan_redeem(tampered, SECRETS[0])


def test_record_nullifier_rejects_reuse():
    state = machine.record_nullifier(_locked(), nullify(SECRETS[0]))
    with pytest.raises(AlreadyRedeemedError):
        machine.record_nullifier(state, nullify(SECRETS[0]))


def test_record_nullifier_requires_lock():
    with pytest.raises(ProtocolStateError):
        machine.record_nullifier(_full(), nullify(SECRETS[0]))


def test_all_slots_redeemed_exhausts_waitlist():
    state = _locked()
    for secret in SECRETS:
        state, _ = machine.redeem(state, secret)
    assert machine.phase(state) is Phase.EXHAUSTED
    with pytest.raises(ProtocolStateError, match="every slot"):
        machine.record_nullifier(state, nullify(9999))


def test_capacity_one_flow():
    state, slot = machine.join(new_waitlist(1), 77)
    assert slot == 0
    state, plan = machine.lock(state)
    assert plan.root == commit(77)
    state, redemption = machine.redeem(state, 77)
    assert redemption.auth_path == ()
    assert machine.phase(state) is Phase.EXHAUSTED
