"""
Prover factory.

The mock prover is for testing only and must not be used against a real
ledger. This factory does not validate cryptographic correctness.
"""

from __future__ import annotations

import importlib
from typing import Any, Final

from ..protocol.config import PROVER_NAMES
from ..protocol.exceptions import InvalidInputError
from ..protocol.settings import load_settings
from .interfaces import Prover

PROVER_REGISTRY: Final[dict[str, str]] = {
    "mock": "private_waitlist.snark.mock.MockProver",
    "snarkjs": "private_waitlist.snark.snarkjs.SnarkjsProver",
}


def _load_prover_class(prover_name: str) -> type[Prover]:
    import_path = PROVER_REGISTRY[prover_name]
    module_path, _, class_name = import_path.rpartition(".")
    if not module_path or not class_name:
        raise ValueError(
            f"Invalid prover import path for {prover_name!r}: {import_path!r}"
        )

    try:
        module = importlib.import_module(module_path)
    except ModuleNotFoundError as exc:
        raise ImportError(
            f"Unable to import prover module {module_path!r} for {prover_name!r}"
        ) from exc

    try:
        prover_cls = getattr(module, class_name)
    except AttributeError as exc:
        raise ImportError(
            f"Prover class {class_name!r} not found in module {module_path!r}"
        ) from exc

    if not isinstance(prover_cls, type) or not issubclass(prover_cls, Prover):
        raise TypeError(f"Prover reference {import_path!r} does not implement Prover")

    return prover_cls


def get_prover(name: str | None = None, **kwargs: Any) -> Prover:
    """
    Return a prover instance.

    Args:
        name: Prover name ("mock" or "snarkjs"); None resolves it from
            settings (PRIVATE_WAITLIST_PROVER, YAML file, default)
        **kwargs: Passed to the prover constructor.

    Returns:
        Prover: New prover instance.

    Raises:
        InvalidInputError: If the prover name is not registered.
        ImportError: If the prover class cannot be imported.
        TypeError: If the prover class does not implement Prover.
    """
    prover_name = name if name is not None else load_settings().prover
    if prover_name not in PROVER_REGISTRY or prover_name not in PROVER_NAMES:
        raise InvalidInputError(
            f"Prover {prover_name!r} is not registered. "
            f"Valid options: {', '.join(sorted(PROVER_REGISTRY))}"
        )
    prover_cls = _load_prover_class(prover_name)
    return prover_cls(**kwargs)
