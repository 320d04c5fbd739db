"""
Ledger interface.

The authoritative waitlist lives on an external ledger (a smart contract in
production). The client talks to it only through this interface, so tests
and the CLI can swap in a local stub without touching protocol logic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..protocol.state import WaitlistState
from ..snark.messages import ProofResult


class Ledger(ABC):
    """External owner of the waitlist state."""

    @abstractmethod
    def read_state(self) -> WaitlistState:
        """Return the most recent snapshot."""

    @abstractmethod
    def submit_commitment(self, commitment: int) -> int:
        """
        Claim the next slot.

        Returns:
            Slot index assigned by the ledger

        Raises:
            LedgerConflictError: If the ledger state no longer allows it
            ExternalLedgerError: For any other ledger failure
        """

    @abstractmethod
    def submit_lock(self, root: int, proof: ProofResult) -> None:
        """Publish the Merkle root together with the locker proof."""

    @abstractmethod
    def submit_redemption(self, nullifier: int, proof: ProofResult) -> None:
        """Record a nullifier together with the redeemer proof."""
