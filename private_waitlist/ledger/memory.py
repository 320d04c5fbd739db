"""In-process ledger stub."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Optional, TypeVar

from ..protocol import machine
from ..protocol.config import LOCKER_CIRCUIT, REDEEMER_CIRCUIT
from ..protocol.exceptions import (
    AlreadyRedeemedError,
    DuplicateCommitmentError,
    ExternalLedgerError,
    LedgerConflictError,
    ProtocolStateError,
    WaitlistError,
)
from ..protocol.parsing import short_hex
from ..protocol.state import WaitlistState, new_waitlist
from ..snark.interfaces import Prover
from ..snark.messages import ProofResult
from .adapter import Ledger

log = logging.getLogger(__name__)

T = TypeVar("T")


class InMemoryLedger(Ledger):
    """
    Ledger stub that applies transitions one transaction at a time.

    Like the on-chain contract, it checks each submitted proof with a
    verifier and re-validates every transaction against its own state, so a
    client acting on a stale snapshot gets a LedgerConflictError.

    Example:
        >>> ledger = InMemoryLedger.create(4, verifier=MockProver())
        >>> slot = ledger.submit_commitment(commit(1234))
    """

    def __init__(self, state: WaitlistState, verifier: Optional[Prover] = None) -> None:
        self._state = state
        self._verifier = verifier
        self._mutex = threading.Lock()

    @classmethod
    def create(cls, capacity: int, verifier: Optional[Prover] = None) -> "InMemoryLedger":
        return cls(new_waitlist(capacity), verifier=verifier)

    # Storage hooks for subclasses
    def _current(self) -> WaitlistState:
        return self._state

    def _store(self, state: WaitlistState) -> None:
        self._state = state

    def read_state(self) -> WaitlistState:
        with self._mutex:
            return self._current()

    def submit_commitment(self, commitment: int) -> int:
        with self._mutex:
            state = self._current()
            new_state, slot = self._apply(
                "join", lambda: machine.accept_commitment(state, commitment)
            )
            self._store(new_state)
        return slot

    def submit_lock(self, root: int, proof: ProofResult) -> None:
        with self._mutex:
            state = self._current()
            plan = self._apply("lock", lambda: machine.plan_lock(state))
            if plan.root != root:
                log.warning("rejected lock: submitted root does not match commitments")
                raise ExternalLedgerError("submitted root does not match the commitments")
            self._check_proof(LOCKER_CIRCUIT, proof, {"root": root})
            self._store(state.with_lock(root))
        log.info("ledger locked with root %s...", short_hex(root))

    def submit_redemption(self, nullifier: int, proof: ProofResult) -> None:
        with self._mutex:
            state = self._current()
            if state.locked:
                self._check_proof(
                    REDEEMER_CIRCUIT,
                    proof,
                    {"nullifier": nullifier, "root": state.merkle_root},
                )
            new_state = self._apply(
                "redeem", lambda: machine.record_nullifier(state, nullifier)
            )
            self._store(new_state)

    def _apply(self, action: str, transition: Callable[[], T]) -> T:
        try:
            return transition()
        except DuplicateCommitmentError as exc:
            # Permanent for this secret; another attempt cannot succeed
            log.warning("rejected %s: %s", action, exc)
            raise ExternalLedgerError(f"{action} rejected by ledger: {exc}") from exc
        except (ProtocolStateError, AlreadyRedeemedError) as exc:
            log.warning("rejected %s: %s", action, exc)
            raise LedgerConflictError(f"{action} rejected by ledger: {exc}") from exc
        except WaitlistError as exc:
            log.warning("rejected %s: %s", action, exc)
            raise ExternalLedgerError(f"{action} rejected by ledger: {exc}") from exc

    def _check_proof(
        self, circuit_id: str, proof: ProofResult, expected: Dict[str, int]
    ) -> None:
        try:
            signals = proof.signals(circuit_id)
        except WaitlistError as exc:
            raise ExternalLedgerError(f"malformed {circuit_id} proof: {exc}") from exc
        if signals != expected:
            log.warning("rejected %s proof: public signals do not match", circuit_id)
            raise ExternalLedgerError(f"{circuit_id} proof public signals do not match")
        if self._verifier is not None and not self._verifier.verify(circuit_id, proof):
            log.warning("rejected %s proof: verification failed", circuit_id)
            raise ExternalLedgerError(f"{circuit_id} proof failed verification")
