"""
Prover interface.

The proving system itself is external; implementations only adapt a concrete
prover (snarkjs, a test double) to this shape.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from .messages import ProofRequest, ProofResult


class Prover(ABC):
    """External prover/verifier for the locker and redeemer circuits."""

    @property
    @abstractmethod
    def prover_name(self) -> str:
        """Human-readable prover name."""

    @abstractmethod
    def prove(self, request: ProofRequest) -> ProofResult:
        """
        Generate a proof for a validated request.

        Raises:
            ExternalProverError: If the prover fails
        """

    @abstractmethod
    def verify(self, circuit_id: str, result: ProofResult) -> bool:
        """Return True iff the proof verifies for the given circuit."""
