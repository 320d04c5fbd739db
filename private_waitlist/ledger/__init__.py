"""Ledger interface and local stubs."""

from .adapter import Ledger
from .file import FileLedger
from .memory import InMemoryLedger

__all__ = ["Ledger", "InMemoryLedger", "FileLedger"]
