"""
Runtime settings for the waitlist tooling.

Resolution order for every field: explicit override, then environment
variable (``PRIVATE_WAITLIST_<FIELD>``), then YAML file, then default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Final, Mapping, Optional

import yaml

from .config import DEFAULT_PROVER, PROVER_NAMES
from .exceptions import InvalidInputError

_ENV_PREFIX: Final[str] = "PRIVATE_WAITLIST_"
_CONFIG_ENV_VAR: Final[str] = "PRIVATE_WAITLIST_CONFIG"


@dataclass(frozen=True)
class Settings:
    """
    Resolved runtime settings.

    Raises:
        InvalidInputError: If prover is not a known prover name
    """

    circuits_dir: str = "circuits"
    prover: str = DEFAULT_PROVER
    prover_timeout: float = 120.0
    snarkjs_bin: str = "snarkjs"
    state_file: str = "waitlist.cbor"
    default_capacity: int = 4

    def __post_init__(self) -> None:
        if self.prover not in PROVER_NAMES:
            raise InvalidInputError(
                f"Invalid prover type: {self.prover!r}. "
                f"Valid options: {', '.join(PROVER_NAMES)}"
            )


def _invalid(name: str, raw: Any, target: type) -> InvalidInputError:
    return InvalidInputError(
        f"Invalid setting {name!r}: {raw!r} is not a valid {target.__name__}"
    )


def _coerce(name: str, raw: Any, target: type) -> Any:
    if isinstance(raw, bool):
        raise _invalid(name, raw, target)
    if isinstance(raw, target):
        return raw
    # int(4.9) would silently truncate
    if target is int and isinstance(raw, float) and not raw.is_integer():
        raise _invalid(name, raw, target)
    try:
        return target(raw)
    except (TypeError, ValueError) as exc:
        raise _invalid(name, raw, target) from exc


def _read_yaml(path: Path) -> Mapping[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except yaml.YAMLError as exc:
        raise InvalidInputError(f"Invalid settings file {str(path)!r}: {exc}") from exc
    if not isinstance(data, dict):
        raise InvalidInputError(f"Settings file {str(path)!r} must hold a mapping")
    known = {f.name for f in fields(Settings)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise InvalidInputError(
            f"Unknown settings in {str(path)!r}: {', '.join(unknown)}"
        )
    return data


def load_settings(
    path: str | Path | None = None, **overrides: Optional[Any]
) -> Settings:
    """
    Resolve settings.

    Args:
        path: Optional YAML file; falls back to $PRIVATE_WAITLIST_CONFIG
        **overrides: Field values that win over everything else (None is ignored)

    Returns:
        Settings

    Raises:
        InvalidInputError: If a value cannot be coerced, the prover is unknown,
            or the file is malformed
    """
    known = {f.name for f in fields(Settings)}
    if set(overrides) - known:
        raise InvalidInputError(
            f"Unknown settings: {', '.join(sorted(set(overrides) - known))}"
        )

    if path is None:
        path = os.getenv(_CONFIG_ENV_VAR) or None
    file_values = _read_yaml(Path(path)) if path is not None else {}

    settings = Settings()
    resolved = {}
    for f in fields(Settings):
        target = type(getattr(settings, f.name))
        value = overrides.get(f.name)
        if value is None:
            value = os.getenv(_ENV_PREFIX + f.name.upper()) or None
        if value is None:
            value = file_values.get(f.name)
        if value is not None:
            resolved[f.name] = _coerce(f.name, value, target)
    return replace(settings, **resolved)
