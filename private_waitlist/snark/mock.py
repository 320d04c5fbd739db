from __future__ import annotations

import hashlib
import hmac
from typing import Tuple

from ..protocol.config import LOCKER_CIRCUIT, PAYLOAD_VERSION, REDEEMER_CIRCUIT
from ..protocol.exceptions import ExternalProverError, WaitlistError
from ..protocol.hashing import commit, nullify
from ..protocol.merkle import build_tree, compute_root
from .interfaces import Prover
from .messages import LockerWitness, ProofRequest, ProofResult

_TAG_DOMAIN = b"PRIVATE_WAITLIST_MOCK_PROOF_V1"


class MockProver(Prover):
    """
    Prover that evaluates the circuits' public outputs directly.

    Notes:
    - Proofs are keyed hashes over the circuit id and public signals.
    - It does NOT provide zero-knowledge or soundness; tests and demos only.
    """

    _PROVER_NAME = "MockProver"

    def __init__(self, key: bytes = b"mock-prover") -> None:
        self._key = key

    @property
    def prover_name(self) -> str:
        return self._PROVER_NAME

    def _tag(self, circuit_id: str, public_signals: Tuple[int, ...]) -> bytes:
        message = _TAG_DOMAIN + bytes([PAYLOAD_VERSION]) + circuit_id.encode("utf-8")
        for signal in public_signals:
            message += signal.to_bytes(32, "big")
        return hmac.new(self._key, message, hashlib.sha256).digest()

    def prove(self, request: ProofRequest) -> ProofResult:
        try:
            request.validate()
            witness = request.witness
            if isinstance(witness, LockerWitness):
                signals: Tuple[int, ...] = (build_tree(witness.commitments).root,)
            else:
                path = zip(witness.siblings, witness.flags)
                root = compute_root(commit(witness.secret), path)
                signals = (nullify(witness.secret), root)
        except WaitlistError as exc:
            raise ExternalProverError(f"mock prover rejected witness: {exc}") from exc
        return ProofResult(proof=self._tag(request.circuit_id, signals), public_signals=signals)

    def verify(self, circuit_id: str, result: ProofResult) -> bool:
        if circuit_id not in (LOCKER_CIRCUIT, REDEEMER_CIRCUIT):
            return False
        try:
            result.validate(circuit_id)
        except WaitlistError:
            return False
        expected = self._tag(circuit_id, tuple(result.public_signals))
        return hmac.compare_digest(expected, bytes(result.proof))
