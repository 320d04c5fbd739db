"""Field element parsing and display helpers."""

from __future__ import annotations

import re
from typing import Any

from .config import FIELD_ELEMENT_BYTES, FIELD_MODULUS
from .exceptions import InvalidInputError

NONEMPTY_ALPHANUMERIC_REGEX = re.compile(r"^[a-z0-9]+$", re.IGNORECASE)


def require_field_element(value: Any, label: str = "value") -> int:
    """
    Check that value is an integer in [0, FIELD_MODULUS).

    Raises:
        InvalidInputError: If value is not a field element
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"{label} must be an int, got {type(value).__name__}")
    if value < 0:
        raise InvalidInputError(f"{label} must be non-negative")
    if value >= FIELD_MODULUS:
        raise InvalidInputError(f"{label} must be smaller than the field modulus")
    return value


def parse_field_element(text: str, label: str = "value") -> int:
    """
    Parse user-supplied text into a field element.

    Accepts decimal strings and ``0x``-prefixed hex strings.

    Example:
        >>> parse_field_element("0x2a")
        42
    """
    if not isinstance(text, str):
        raise InvalidInputError(f"{label} must be a string")
    stripped = text.strip()
    if stripped[:2].lower() == "0x":
        digits, base = stripped[2:], 16
    else:
        digits, base = stripped, 10
    if not NONEMPTY_ALPHANUMERIC_REGEX.match(digits):
        raise InvalidInputError(f"{label} must be non-empty and alphanumeric")
    try:
        value = int(digits, base)
    except ValueError as exc:
        raise InvalidInputError(f"{label} is not a valid base-{base} integer") from exc
    return require_field_element(value, label)


def field_to_bytes(value: int) -> bytes:
    return require_field_element(value).to_bytes(FIELD_ELEMENT_BYTES, "big")


def to_hex(value: int) -> str:
    """Render a field element as a ``0x`` hex string."""
    return hex(value)


def short_hex(value: int, num_letters: int = 8) -> str:
    """First num_letters characters of the hex rendering (``0x`` included)."""
    return to_hex(value)[:num_letters]
