"""
Private waitlist: claim a slot anonymously, redeem it later without linking
the two actions.

NOTE: the mock prover shipped here provides no zero-knowledge guarantee.
Use a real circuit prover before pointing this at a production ledger.
"""

from .client import LockReceipt, OperationResult, RedeemReceipt, WaitlistClient
from .protocol import (
    Phase,
    WaitlistError,
    WaitlistState,
    build_tree,
    commit,
    extract_auth_path,
    new_waitlist,
    nullify,
    verify_auth_path,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "WaitlistClient",
    "OperationResult",
    "LockReceipt",
    "RedeemReceipt",
    "Phase",
    "WaitlistError",
    "WaitlistState",
    "new_waitlist",
    "commit",
    "nullify",
    "build_tree",
    "extract_auth_path",
    "verify_auth_path",
]
