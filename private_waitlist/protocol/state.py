"""
Waitlist state snapshots.

A ``WaitlistState`` is a read-only copy of what the ledger currently holds.
Transitions in ``machine`` never mutate a snapshot; they return a new one.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple

import cbor2

from .config import MAX_CAPACITY, MAX_STATE_BYTES, MIN_CAPACITY, STATE_VERSION
from .exceptions import InvalidInputError, MerkleTreeShapeError
from .merkle import is_power_of_two
from .parsing import require_field_element


class Phase(Enum):
    """
    Protocol phases.

    - COMMIT: accepting new commitments
    - LOCK: commitments frozen, root about to be published
    - REDEEM: root published, nullifiers accepted
    - EXHAUSTED: every slot redeemed (terminal)
    """

    COMMIT = "commit"
    LOCK = "lock"
    REDEEM = "redeem"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class WaitlistState:
    """
    Immutable snapshot of the ledger-owned waitlist.

    Attributes:
        capacity: Number of slots (N)
        commitments: Accepted commitments in slot order
        locked: Whether the commitment list is frozen
        merkle_root: Root published at lock (None until then)
        nullifiers: Recorded nullifiers in redemption order

    Raises:
        InvalidInputError: If the snapshot violates a lifecycle invariant
    """

    capacity: int
    commitments: Tuple[int, ...] = ()
    locked: bool = False
    merkle_root: Optional[int] = None
    nullifiers: Tuple[int, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "commitments", tuple(self.commitments))
        object.__setattr__(self, "nullifiers", tuple(self.nullifiers))

        if isinstance(self.capacity, bool) or not isinstance(self.capacity, int):
            raise InvalidInputError("capacity must be an int")
        if self.capacity < 1:
            raise InvalidInputError("capacity must be positive")
        if not isinstance(self.locked, bool):
            raise InvalidInputError("locked must be a bool")

        for i, c in enumerate(self.commitments):
            require_field_element(c, f"commitments[{i}]")
        for i, n in enumerate(self.nullifiers):
            require_field_element(n, f"nullifiers[{i}]")

        if len(self.commitments) > self.capacity:
            raise InvalidInputError("more commitments than capacity")
        if self.locked:
            if self.merkle_root is None:
                raise InvalidInputError("locked state must carry a merkle root")
            require_field_element(self.merkle_root, "merkle_root")
        else:
            if self.merkle_root is not None:
                raise InvalidInputError("merkle root is only set at lock")
            if self.nullifiers:
                raise InvalidInputError("nullifiers are only recorded after lock")
        if len(self.nullifiers) > len(self.commitments):
            raise InvalidInputError("more nullifiers than commitments")
        if len(set(self.nullifiers)) != len(self.nullifiers):
            raise InvalidInputError("nullifiers must be unique")

    @property
    def is_full(self) -> bool:
        return len(self.commitments) >= self.capacity

    @property
    def used_slots(self) -> int:
        return len(self.commitments)

    @property
    def redeemed_count(self) -> int:
        return len(self.nullifiers)

    def with_commitment(self, commitment: int) -> "WaitlistState":
        return replace(self, commitments=self.commitments + (commitment,))

    def with_lock(self, root: int) -> "WaitlistState":
        return replace(self, locked=True, merkle_root=root)

    def with_nullifier(self, nullifier: int) -> "WaitlistState":
        return replace(self, nullifiers=self.nullifiers + (nullifier,))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "v": STATE_VERSION,
            "capacity": self.capacity,
            "commitments": list(self.commitments),
            "locked": self.locked,
            "merkle_root": self.merkle_root,
            "nullifiers": list(self.nullifiers),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WaitlistState":
        if not isinstance(data, dict):
            raise InvalidInputError("state payload must be a dict")
        if data.get("v") != STATE_VERSION:
            raise InvalidInputError(f"unsupported state version: {data.get('v')!r}")
        try:
            return cls(
                capacity=data["capacity"],
                commitments=tuple(data.get("commitments") or ()),
                locked=data.get("locked", False),
                merkle_root=data.get("merkle_root"),
                nullifiers=tuple(data.get("nullifiers") or ()),
            )
        except (KeyError, TypeError) as exc:
            raise InvalidInputError(f"malformed state payload: {exc}") from exc


def new_waitlist(capacity: int) -> WaitlistState:
    """
    Create an empty waitlist in the COMMIT phase.

    Raises:
        InvalidInputError: If capacity is outside [MIN_CAPACITY, MAX_CAPACITY]
        MerkleTreeShapeError: If capacity is not a power of two
    """
    if isinstance(capacity, bool) or not isinstance(capacity, int):
        raise InvalidInputError("capacity must be an int")
    if not MIN_CAPACITY <= capacity <= MAX_CAPACITY:
        raise InvalidInputError(
            f"capacity must be between {MIN_CAPACITY} and {MAX_CAPACITY}"
        )
    if not is_power_of_two(capacity):
        raise MerkleTreeShapeError(f"capacity must be a power of two, got {capacity}")
    return WaitlistState(capacity=capacity)


def encode_state(state: WaitlistState) -> bytes:
    blob = cbor2.dumps(state.to_dict())
    if len(blob) > MAX_STATE_BYTES:
        raise InvalidInputError("state too large")
    return blob


def decode_state(blob: bytes) -> WaitlistState:
    if not isinstance(blob, (bytes, bytearray)):
        raise InvalidInputError("state blob must be bytes")
    if len(blob) > MAX_STATE_BYTES:
        raise InvalidInputError("state too large")
    try:
        payload = cbor2.loads(bytes(blob))
    except cbor2.CBORDecodeError as exc:
        raise InvalidInputError(f"state is not valid CBOR: {exc}") from exc
    return WaitlistState.from_dict(payload)
