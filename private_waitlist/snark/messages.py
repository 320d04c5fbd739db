"""Tagged proof payloads exchanged with the external prover."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Sequence, Tuple, Union

import cbor2

from ..protocol.config import (
    CIRCUIT_IDS,
    LOCKER_CIRCUIT,
    MAX_PROOF_BYTES,
    MAX_WITNESS_BYTES,
    PAYLOAD_VERSION,
    PUBLIC_SIGNAL_LAYOUTS,
    REDEEMER_CIRCUIT,
)
from ..protocol.exceptions import InvalidInputError
from ..protocol.machine import RedemptionPlan
from ..protocol.merkle import is_power_of_two
from ..protocol.parsing import require_field_element
from .errors import SchemaError, SizeLimitError


def _field(value: Any, label: str) -> int:
    try:
        return require_field_element(value, label)
    except InvalidInputError as exc:
        raise SchemaError(str(exc)) from exc


def _require_bytes(value: Any, label: str) -> bytes:
    if not isinstance(value, (bytes, bytearray)):
        raise SchemaError(f"{label} must be bytes")
    return bytes(value)


@dataclass(frozen=True)
class LockerWitness:
    commitments: Tuple[int, ...]

    def validate(self) -> None:
        if not is_power_of_two(len(self.commitments)):
            raise SchemaError("locker witness needs a power-of-two commitment count")
        for i, c in enumerate(self.commitments):
            _field(c, f"commitments[{i}]")

    def to_input(self) -> Dict[str, Any]:
        return {"commitments": [str(c) for c in self.commitments]}


@dataclass(frozen=True)
class RedeemerWitness:
    secret: int
    siblings: Tuple[int, ...]
    flags: Tuple[bool, ...]

    def validate(self) -> None:
        _field(self.secret, "secret")
        if len(self.siblings) != len(self.flags):
            raise SchemaError("siblings and flags must have the same length")
        for i, sibling in enumerate(self.siblings):
            _field(sibling, f"siblings[{i}]")
        for i, flag in enumerate(self.flags):
            if not isinstance(flag, bool):
                raise SchemaError(f"flags[{i}] must be bool")

    def to_input(self) -> Dict[str, Any]:
        # node_is_left flags the path node, not the sibling: "1" when the path
        # node is the left child. Circuits that flag the sibling's side (even
        # index -> "0") need the inverted value.
        return {
            "secret": str(self.secret),
            "merkle_branch": [str(s) for s in self.siblings],
            "node_is_left": ["1" if flag else "0" for flag in self.flags],
        }


Witness = Union[LockerWitness, RedeemerWitness]

_WITNESS_TYPES = {
    LOCKER_CIRCUIT: LockerWitness,
    REDEEMER_CIRCUIT: RedeemerWitness,
}


@dataclass(frozen=True)
class ProofRequest:
    """
    Input to the external prover: a circuit id tagged with its witness.

    Attributes:
        circuit_id: "locker" or "redeemer"
        witness: LockerWitness for locker, RedeemerWitness for redeemer
    """

    circuit_id: str
    witness: Witness

    def validate(self) -> None:
        if self.circuit_id not in CIRCUIT_IDS:
            raise SchemaError(f"unsupported circuit: {self.circuit_id!r}")
        expected = _WITNESS_TYPES[self.circuit_id]
        if not isinstance(self.witness, expected):
            raise SchemaError(
                f"{self.circuit_id} circuit expects {expected.__name__}, "
                f"got {type(self.witness).__name__}"
            )
        self.witness.validate()


@dataclass(frozen=True)
class ProofResult:
    """
    Output of the external prover.

    Attributes:
        proof: Opaque proof bytes (prover-specific encoding)
        public_signals: Public outputs in circuit order
    """

    proof: bytes
    public_signals: Tuple[int, ...]

    def validate(self, circuit_id: str) -> None:
        if circuit_id not in CIRCUIT_IDS:
            raise SchemaError(f"unsupported circuit: {circuit_id!r}")
        proof = _require_bytes(self.proof, "proof")
        if not proof:
            raise SchemaError("proof must not be empty")
        if len(proof) > MAX_PROOF_BYTES:
            raise SizeLimitError("proof too large")
        layout = PUBLIC_SIGNAL_LAYOUTS[circuit_id]
        if len(self.public_signals) != len(layout):
            raise SchemaError(
                f"{circuit_id} expects {len(layout)} public signals, "
                f"got {len(self.public_signals)}"
            )
        for name, value in zip(layout, self.public_signals):
            _field(value, f"public_signals.{name}")

    def signals(self, circuit_id: str) -> Dict[str, int]:
        """Public signals keyed by name, e.g. {"nullifier": ..., "root": ...}."""
        self.validate(circuit_id)
        return dict(zip(PUBLIC_SIGNAL_LAYOUTS[circuit_id], self.public_signals))


def build_locker_request(commitments: Sequence[int]) -> ProofRequest:
    req = ProofRequest(
        circuit_id=LOCKER_CIRCUIT,
        witness=LockerWitness(commitments=tuple(commitments)),
    )
    req.validate()
    return req


def build_redeemer_request(secret: int, plan: RedemptionPlan) -> ProofRequest:
    req = ProofRequest(
        circuit_id=REDEEMER_CIRCUIT,
        witness=RedeemerWitness(
            secret=secret, siblings=plan.siblings, flags=plan.flags
        ),
    )
    req.validate()
    return req


def encode_request(req: ProofRequest) -> bytes:
    req.validate()
    if isinstance(req.witness, LockerWitness):
        witness = {"commitments": list(req.witness.commitments)}
    else:
        witness = {
            "secret": req.witness.secret,
            "siblings": list(req.witness.siblings),
            "flags": list(req.witness.flags),
        }
    blob = cbor2.dumps({"v": PAYLOAD_VERSION, "circuit": req.circuit_id, "witness": witness})
    if len(blob) > MAX_WITNESS_BYTES:
        raise SizeLimitError("request too large")
    return blob


def decode_request(blob: bytes) -> ProofRequest:
    blob_bytes = _require_bytes(blob, "request blob")
    if len(blob_bytes) > MAX_WITNESS_BYTES:
        raise SizeLimitError("request too large")
    payload = _loads(blob_bytes, "request")
    if payload.get("v") != PAYLOAD_VERSION:
        raise SchemaError("unsupported payload version")
    circuit_id = payload.get("circuit")
    witness = payload.get("witness")
    if not isinstance(witness, dict):
        raise SchemaError("witness must be a dict")

    if circuit_id == LOCKER_CIRCUIT:
        parsed: Witness = LockerWitness(
            commitments=tuple(witness.get("commitments") or ())
        )
    elif circuit_id == REDEEMER_CIRCUIT:
        parsed = RedeemerWitness(
            secret=witness.get("secret"),
            siblings=tuple(witness.get("siblings") or ()),
            flags=tuple(witness.get("flags") or ()),
        )
    else:
        raise SchemaError(f"unsupported circuit: {circuit_id!r}")

    req = ProofRequest(circuit_id=circuit_id, witness=parsed)
    req.validate()
    return req


def encode_result(result: ProofResult, circuit_id: str) -> bytes:
    result.validate(circuit_id)
    payload = {
        "v": PAYLOAD_VERSION,
        "circuit": circuit_id,
        "proof": bytes(result.proof),
        "public_signals": list(result.public_signals),
    }
    return cbor2.dumps(payload)


def decode_result(blob: bytes) -> Tuple[str, ProofResult]:
    blob_bytes = _require_bytes(blob, "result blob")
    if len(blob_bytes) > MAX_PROOF_BYTES + MAX_WITNESS_BYTES:
        raise SizeLimitError("result too large")
    payload = _loads(blob_bytes, "result")
    if payload.get("v") != PAYLOAD_VERSION:
        raise SchemaError("unsupported payload version")
    circuit_id = payload.get("circuit")
    result = ProofResult(
        proof=_require_bytes(payload.get("proof", b""), "proof"),
        public_signals=tuple(payload.get("public_signals") or ()),
    )
    result.validate(circuit_id)
    return circuit_id, result


def _loads(blob: bytes, label: str) -> Dict[str, Any]:
    try:
        payload = cbor2.loads(blob)
    except cbor2.CBORDecodeError as exc:
        raise SchemaError(f"{label} is not valid CBOR") from exc
    if not isinstance(payload, dict):
        raise SchemaError(f"{label} payload must be a dict")
    return payload
