"""CBOR file-backed ledger stub used by the CLI."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from ..protocol.exceptions import ExternalLedgerError, InvalidInputError
from ..protocol.state import WaitlistState, decode_state, encode_state, new_waitlist
from ..snark.interfaces import Prover
from .memory import InMemoryLedger

log = logging.getLogger(__name__)


class FileLedger(InMemoryLedger):
    """
    Ledger stub persisted to a single CBOR file.

    The file is re-read before every transaction, so separate CLI
    invocations observe each other's changes. It is not safe for concurrent
    writers from different processes.
    """

    def __init__(self, path: str | Path, verifier: Optional[Prover] = None) -> None:
        self._path = Path(path)
        super().__init__(self._load(), verifier=verifier)

    @classmethod
    def initialize(
        cls,
        path: str | Path,
        capacity: int,
        verifier: Optional[Prover] = None,
        overwrite: bool = False,
    ) -> "FileLedger":
        path = Path(path)
        if path.exists() and not overwrite:
            raise ExternalLedgerError(f"ledger file already exists: {path}")
        _write_atomic(path, encode_state(new_waitlist(capacity)))
        log.info("initialized ledger at %s with capacity %d", path, capacity)
        return cls(path, verifier=verifier)

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> WaitlistState:
        try:
            blob = self._path.read_bytes()
        except OSError as exc:
            raise ExternalLedgerError(f"unable to read ledger file {self._path}: {exc}") from exc
        try:
            return decode_state(blob)
        except InvalidInputError as exc:
            raise ExternalLedgerError(f"corrupt ledger file {self._path}: {exc}") from exc

    def _current(self) -> WaitlistState:
        self._state = self._load()
        return self._state

    def _store(self, state: WaitlistState) -> None:
        _write_atomic(self._path, encode_state(state))
        self._state = state


def _write_atomic(path: Path, blob: bytes) -> None:
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        tmp_path.write_bytes(blob)
        os.replace(tmp_path, path)
    except OSError as exc:
        raise ExternalLedgerError(f"unable to write ledger file {path}: {exc}") from exc
