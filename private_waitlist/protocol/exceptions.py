"""
Error taxonomy for the private waitlist.

Every failure the core can produce is a ``WaitlistError`` subclass, so callers
can catch one base type and present actionable feedback. ``retryable`` marks
failures caused by a race with other ledger users rather than by bad input.
"""


class WaitlistError(Exception):
    """Base exception for private waitlist errors."""

    retryable = False


class InvalidInputError(WaitlistError, ValueError):
    """Malformed secret, commitment, nullifier, or state encoding."""

    pass


class MerkleTreeShapeError(WaitlistError, ValueError):
    """Leaf count is not a power of two."""

    pass


class IndexOutOfBoundsError(WaitlistError, IndexError):
    """Leaf index outside the tree."""

    pass


class ProtocolStateError(WaitlistError):
    """Operation attempted in the wrong phase."""

    pass


class DuplicateCommitmentError(ProtocolStateError):
    """Commitment already claims a slot (the secret was already used)."""

    pass


class RootMismatchError(ProtocolStateError):
    """Published root does not match the committed list."""

    pass


class NotRedeemableError(WaitlistError):
    """Secret matches no committed slot."""

    pass


class AlreadyRedeemedError(WaitlistError):
    """Nullifier has already been recorded."""

    pass


class ExternalProverError(WaitlistError):
    """Failure reported by the external prover/verifier."""

    pass


class ExternalLedgerError(WaitlistError):
    """Failure reported by the external ledger."""

    pass


class LedgerConflictError(ExternalLedgerError):
    """Ledger rejected a transaction because its state moved on."""

    retryable = True
