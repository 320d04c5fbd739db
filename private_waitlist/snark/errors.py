"""Proof payload error types."""

from ..protocol.exceptions import InvalidInputError


class SchemaError(InvalidInputError):
    """Raised when a proof payload fails schema validation."""


class SizeLimitError(InvalidInputError):
    """Raised when a proof payload exceeds configured size limits."""
