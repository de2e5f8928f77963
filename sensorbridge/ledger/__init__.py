"""Opaque sensor aggregation ledger with an asynchronous decryption bridge.

Providers append encrypted readings to numbered batches; the owner closes a
batch and requests decryption of its aggregate. The engine's callback is
accepted at most once, and only if the batch accumulators are unchanged
since the request and the decryption proof verifies.
"""

from .access import AccessGuard
from .batches import BatchLedger
from .bridge import DecryptionBridge
from .errors import (
    BatchAlreadyOpen,
    BatchNotOpen,
    CooldownActive,
    DecryptionFailed,
    InvalidBatch,
    InvalidBatchReference,
    LedgerError,
    MalformedCleartext,
    NotAuthorized,
    PausedState,
    ProofVerificationFailed,
    ReplayAttempt,
    StateMismatch,
)
from .models import (
    ActionClass,
    Batch,
    DecryptionContext,
    DecryptionResult,
    LedgerSnapshot,
    RequestState,
)
from .rate_limit import RateLimiter
from .service import SensorLedger

__all__ = [
    "AccessGuard",
    "ActionClass",
    "Batch",
    "BatchAlreadyOpen",
    "BatchLedger",
    "BatchNotOpen",
    "CooldownActive",
    "DecryptionBridge",
    "DecryptionContext",
    "DecryptionFailed",
    "DecryptionResult",
    "InvalidBatch",
    "InvalidBatchReference",
    "LedgerError",
    "LedgerSnapshot",
    "MalformedCleartext",
    "NotAuthorized",
    "PausedState",
    "ProofVerificationFailed",
    "RateLimiter",
    "ReplayAttempt",
    "RequestState",
    "SensorLedger",
    "StateMismatch",
]
