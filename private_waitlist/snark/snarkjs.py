"""snarkjs PLONK prover adapter."""

from __future__ import annotations

import json
import logging
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from ..protocol.exceptions import ExternalProverError, WaitlistError
from .assets import CircuitPaths, resolve_circuit
from .interfaces import Prover
from .messages import ProofRequest, ProofResult

log = logging.getLogger(__name__)

DEFAULT_PROVER_TIMEOUT = 120


@dataclass(frozen=True)
class SolidityCalldata:
    proof: str
    public_signals: List[str]


class SnarkjsProver(Prover):
    """Run ``snarkjs plonk fullprove`` / ``plonk verify`` as subprocesses."""

    _PROVER_NAME = "snarkjs-plonk"

    def __init__(
        self,
        circuits_dir: str | Path | None = None,
        snarkjs_bin: str = "snarkjs",
        timeout: float = DEFAULT_PROVER_TIMEOUT,
    ) -> None:
        self._circuits_dir = circuits_dir
        self._snarkjs_bin = snarkjs_bin
        self._timeout = timeout

    @property
    def prover_name(self) -> str:
        return self._PROVER_NAME

    def _paths(self, circuit_id: str) -> CircuitPaths:
        try:
            return resolve_circuit(circuit_id, self._circuits_dir)
        except FileNotFoundError as exc:
            raise ExternalProverError(str(exc)) from exc

    def prove(self, request: ProofRequest) -> ProofResult:
        request.validate()
        paths = self._paths(request.circuit_id)
        log.info("generating %s proof with snarkjs", request.circuit_id)

        with tempfile.TemporaryDirectory() as tmp_dir:
            tmp = Path(tmp_dir)
            input_path = tmp / "input.json"
            proof_path = tmp / "proof.json"
            public_path = tmp / "public.json"
            input_path.write_text(json.dumps(request.witness.to_input()), encoding="utf-8")
            self._run(
                [
                    "plonk",
                    "fullprove",
                    str(input_path),
                    str(paths.wasm_path),
                    str(paths.zkey_path),
                    str(proof_path),
                    str(public_path),
                ]
            )
            proof_bytes = _read_output(proof_path)
            public_signals = _parse_public_signals(_read_output(public_path))

        return ProofResult(proof=proof_bytes, public_signals=public_signals)

    def verify(self, circuit_id: str, result: ProofResult) -> bool:
        try:
            result.validate(circuit_id)
            paths = self._paths(circuit_id)
            with tempfile.TemporaryDirectory() as tmp_dir:
                proof_path, public_path = _write_result(Path(tmp_dir), result)
                completed = self._run(
                    ["plonk", "verify", str(paths.vkey_path), str(public_path), str(proof_path)],
                    check=False,
                )
        except WaitlistError as exc:
            log.warning("could not verify %s proof: %s", circuit_id, exc)
            return False
        return completed.returncode == 0 and "OK" in completed.stdout

    def export_calldata(self, result: ProofResult) -> SolidityCalldata:
        """Convert a proof into the calldata the on-chain verifier expects."""
        with tempfile.TemporaryDirectory() as tmp_dir:
            proof_path, public_path = _write_result(Path(tmp_dir), result)
            completed = self._run(
                ["zkey", "export", "soliditycalldata", str(public_path), str(proof_path)]
            )
        return parse_solidity_calldata(completed.stdout)

    def _run(
        self, args: Sequence[str], check: bool = True
    ) -> subprocess.CompletedProcess:
        command = [self._snarkjs_bin, *args]
        log.debug("running %s", " ".join(command[:3]))
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                check=False,
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise ExternalProverError(
                f"snarkjs timed out after {self._timeout}s"
            ) from exc
        except OSError as exc:
            raise ExternalProverError(f"unable to run snarkjs: {exc}") from exc
        if check and completed.returncode != 0:
            stderr = completed.stderr.strip() or "unknown snarkjs error"
            raise ExternalProverError(f"snarkjs failed: {stderr}")
        return completed


def parse_solidity_calldata(text: str) -> SolidityCalldata:
    """
    Split ``snarkjs zkey export soliditycalldata`` output.

    The output is ``<proof>,<json array of public signals>``.

    Raises:
        ExternalProverError: If the output is malformed
    """
    text = text.strip()
    sep = text.find(",")
    if sep <= 0:
        raise ExternalProverError("malformed solidity calldata")
    try:
        public_signals = json.loads(text[sep + 1 :])
    except json.JSONDecodeError as exc:
        raise ExternalProverError("malformed solidity calldata") from exc
    if not isinstance(public_signals, list):
        raise ExternalProverError("malformed solidity calldata")
    return SolidityCalldata(
        proof=text[:sep].strip(), public_signals=[str(s) for s in public_signals]
    )


def _read_output(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise ExternalProverError(f"snarkjs did not produce {path.name}") from exc


def _parse_public_signals(raw: bytes) -> tuple[int, ...]:
    try:
        values = json.loads(raw)
        return tuple(int(v) for v in values)
    except (ValueError, TypeError) as exc:
        raise ExternalProverError("snarkjs produced malformed public signals") from exc


def _write_result(directory: Path, result: ProofResult) -> tuple[Path, Path]:
    proof_path = directory / "proof.json"
    public_path = directory / "public.json"
    proof_path.write_bytes(bytes(result.proof))
    public_path.write_text(
        json.dumps([str(s) for s in result.public_signals]), encoding="utf-8"
    )
    return proof_path, public_path
