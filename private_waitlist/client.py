"""
Waitlist client: snapshot -> validate -> prove -> verify -> submit.

Every operation re-reads the ledger first, so proofs are never built from a
stale snapshot the client held on to. Failures come back as an
``OperationResult`` rather than an exception; ``result.retryable`` tells the
caller whether trying again can help.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

from .ledger.adapter import Ledger
from .protocol import machine
from .protocol.config import LOCKER_CIRCUIT, REDEEMER_CIRCUIT
from .protocol.exceptions import (
    AlreadyRedeemedError,
    ExternalProverError,
    WaitlistError,
)
from .protocol.hashing import commit
from .protocol.parsing import short_hex
from .protocol.state import WaitlistState
from .snark.interfaces import Prover
from .snark.messages import (
    ProofRequest,
    ProofResult,
    build_locker_request,
    build_redeemer_request,
)

log = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """
    Outcome of a client operation.

    Attributes:
        ok: True on success
        value: Operation value when ok
        error: Typed WaitlistError when not ok
    """

    ok: bool
    value: Optional[T] = None
    error: Optional[WaitlistError] = None

    @classmethod
    def success(cls, value: T) -> "OperationResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: WaitlistError) -> "OperationResult[T]":
        return cls(ok=False, error=error)

    @property
    def retryable(self) -> bool:
        return self.error is not None and self.error.retryable

    @property
    def message(self) -> str:
        return "" if self.error is None else str(self.error)

    def unwrap(self) -> T:
        """Return the value or raise the stored error."""
        if not self.ok:
            raise self.error
        return self.value


@dataclass(frozen=True)
class LockReceipt:
    root: int
    proof: ProofResult


@dataclass(frozen=True)
class RedeemReceipt:
    slot: int
    nullifier: int
    proof: ProofResult


class WaitlistClient:
    """
    Drive the protocol against a ledger and a prover.

    Example:
        >>> client = WaitlistClient(ledger, MockProver())
        >>> client.join(1234).unwrap()
        0
    """

    def __init__(self, ledger: Ledger, prover: Prover) -> None:
        self._ledger = ledger
        self._prover = prover

    @property
    def prover(self) -> Prover:
        return self._prover

    def state(self) -> WaitlistState:
        return self._ledger.read_state()

    def join(self, secret: int) -> OperationResult[int]:
        """Claim the next slot with commit(secret)."""

        def _join() -> int:
            commitment = commit(secret)
            machine.accept_commitment(self.state(), commitment)
            slot = self._ledger.submit_commitment(commitment)
            log.info("joined waitlist in slot %d", slot)
            return slot

        return self._run("join", _join)

    def lock(self) -> OperationResult[LockReceipt]:
        """Prove and publish the Merkle root of a full waitlist."""

        def _lock() -> LockReceipt:
            plan = machine.plan_lock(self.state())
            result = self._prove(build_locker_request(plan.tree.leaves))
            signals = result.signals(LOCKER_CIRCUIT)
            if signals["root"] != plan.root:
                raise ExternalProverError("locker proof root does not match the commitments")
            self._ledger.submit_lock(plan.root, result)
            log.info("locked waitlist with root %s...", short_hex(plan.root))
            return LockReceipt(root=plan.root, proof=result)

        return self._run("lock", _lock)

    def check_redeemable(self, secret: int) -> OperationResult[int]:
        """Return the slot a secret can redeem, without proving anything."""
        return self._run("check", lambda: machine.find_slot(self.state(), secret))

    def redeem(self, secret: int) -> OperationResult[RedeemReceipt]:
        """Prove ownership of a slot and publish its nullifier."""

        def _redeem() -> RedeemReceipt:
            state = self.state()
            plan = machine.plan_redeem(state, secret)
            result = self._prove(build_redeemer_request(secret, plan))
            signals = result.signals(REDEEMER_CIRCUIT)
            if signals["nullifier"] in state.nullifiers:
                raise AlreadyRedeemedError(
                    "this secret has already been used to redeem a waitlist slot"
                )
            if signals != {"nullifier": plan.nullifier, "root": plan.root}:
                raise ExternalProverError("redeemer proof does not match the redemption")
            self._ledger.submit_redemption(plan.nullifier, result)
            log.info("redeemed slot %d", plan.slot)
            return RedeemReceipt(slot=plan.slot, nullifier=plan.nullifier, proof=result)

        return self._run("redeem", _redeem)

    def _prove(self, request: ProofRequest) -> ProofResult:
        try:
            result = self._prover.prove(request)
            result.validate(request.circuit_id)
        except ExternalProverError:
            raise
        except Exception as exc:  # noqa: BLE001 - prover failures are opaque
            raise ExternalProverError(f"{request.circuit_id} proof generation failed: {exc}") from exc
        if not self._prover.verify(request.circuit_id, result):
            raise ExternalProverError("Failed to verify proof.")
        return result

    def _run(self, action: str, operation: Callable[[], T]) -> OperationResult[T]:
        try:
            value = operation()
        except WaitlistError as exc:
            log.info("%s failed (%s): %s", action, type(exc).__name__, exc)
            return OperationResult.failure(exc)
        return OperationResult.success(value)
