"""Pydantic models for batch records, decryption contexts and snapshots.

Batches are owned by the BatchLedger, decryption contexts by the
DecryptionBridge. Contexts refer to batches by id only.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Action classes - keys of the per-address cooldown table
# ---------------------------------------------------------------------------


class ActionClass(str, Enum):
    """Rate-limited action classes. All share one cooldown duration."""

    SUBMISSION = "submission"
    DECRYPT_REQUEST = "decrypt_request"


# ---------------------------------------------------------------------------
# Batch
# ---------------------------------------------------------------------------


class Batch(BaseModel):
    """One accounting period of sensor readings.

    ``sum_handle`` and ``max_handle`` are opaque engine handles; the ledger
    never reads their cleartext. They are excluded from serialization, views
    carry the exported identifiers instead.
    """

    id: int = Field(ge=1)
    open: bool = True
    count: int = Field(default=0, ge=0)
    sum_handle: Any = Field(default=None, exclude=True)
    max_handle: Any = Field(default=None, exclude=True)

    @property
    def handles(self) -> list[Any]:
        """Accumulator snapshot in canonical order: [sum, max]."""
        return [self.sum_handle, self.max_handle]


class BatchView(BaseModel):
    """Serializable view of a batch (handle identifiers as hex)."""

    id: int
    open: bool
    count: int
    sum_id: str
    max_id: str


# ---------------------------------------------------------------------------
# Decryption context
# ---------------------------------------------------------------------------


class RequestState(str, Enum):
    """Lifecycle of one decryption request.

    PENDING -> COMPLETED on a verified callback, PENDING -> REJECTED when
    the batch state no longer matches the request. Both are terminal.
    """

    PENDING = "pending"
    COMPLETED = "completed"
    REJECTED = "rejected"


class DecryptionResult(BaseModel):
    """Decoded cleartext aggregate of a batch."""

    total: int = Field(ge=0)
    max: int = Field(ge=0)


class DecryptionContext(BaseModel):
    """Bookkeeping for one in-flight decryption request."""

    request_id: int
    batch_id: int = Field(ge=1)
    integrity_hash: str = Field(min_length=64, max_length=64)
    state: RequestState = RequestState.PENDING
    result: DecryptionResult | None = None
    requested_at: datetime
    resolved_at: datetime | None = None

    @property
    def processed(self) -> bool:
        return self.state is not RequestState.PENDING


# ---------------------------------------------------------------------------
# Snapshot (read-only export of the whole ledger)
# ---------------------------------------------------------------------------


class LedgerSnapshot(BaseModel):
    """Point-in-time export of roles, policy, batches and contexts."""

    ledger_id: str
    owner: str
    providers: list[str] = Field(default_factory=list)
    paused: bool = False
    cooldown_seconds: float = 0
    current_batch_id: int = 0
    batches: list[BatchView] = Field(default_factory=list)
    contexts: list[DecryptionContext] = Field(default_factory=list)
    taken_at: datetime
    content_hash: str = ""


__all__ = [
    "ActionClass",
    "Batch",
    "BatchView",
    "DecryptionContext",
    "DecryptionResult",
    "LedgerSnapshot",
    "RequestState",
]
