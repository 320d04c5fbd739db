"""Resolve compiled circuit artifacts (wasm, zkey, verification key)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from ..protocol.config import CIRCUIT_IDS
from .errors import SchemaError

_CIRCUITS_ENV_VAR = "PRIVATE_WAITLIST_CIRCUITS_DIR"


@dataclass(frozen=True)
class CircuitPaths:
    wasm_path: Path
    zkey_path: Path
    vkey_path: Path

    def missing(self) -> list[Path]:
        return [
            path
            for path in (self.wasm_path, self.zkey_path, self.vkey_path)
            if not path.exists()
        ]


def resolve_circuit(circuit_id: str, base_dir: str | Path | None = None) -> CircuitPaths:
    """
    Resolve artifact paths for a circuit.

    Layout under base_dir:
        <circuit>/<circuit>.wasm
        <circuit>/<circuit>_final.zkey
        <circuit>/<circuit>_verification_key.json

    Raises:
        SchemaError: If circuit_id is unknown
        FileNotFoundError: If any artifact is missing
    """
    if circuit_id not in CIRCUIT_IDS:
        raise SchemaError(f"unsupported circuit: {circuit_id!r}")
    root = Path(base_dir) if base_dir else _default_circuits_dir()
    circuit_dir = root / circuit_id
    paths = CircuitPaths(
        wasm_path=circuit_dir / f"{circuit_id}.wasm",
        zkey_path=circuit_dir / f"{circuit_id}_final.zkey",
        vkey_path=circuit_dir / f"{circuit_id}_verification_key.json",
    )
    missing = paths.missing()
    if missing:
        raise FileNotFoundError(
            f"Unable to resolve {circuit_id} artifacts. Missing: "
            + ", ".join(str(p) for p in missing)
        )
    return paths


def _default_circuits_dir() -> Path:
    return Path(os.getenv(_CIRCUITS_ENV_VAR, "circuits"))
