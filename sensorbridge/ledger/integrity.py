"""Canonical hashing for integrity digests and snapshot content hashes.

The decryption bridge binds each request to the exact accumulator handles
it was issued against: ``integrity_hash = H(handle ids, ledger id)``. The
callback recomputes the same digest from live state and compares.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Sequence


def compute_hash(data: Any) -> str:
    """SHA256 hex digest of the canonical JSON encoding of ``data``.

    Keys are sorted and separators fixed so logically equal payloads hash
    identically regardless of dict insertion order.
    """
    raw = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(raw.encode()).hexdigest()


def compute_integrity_hash(identifiers: Sequence[bytes], ledger_id: str) -> str:
    """Digest over a snapshot of handle identifiers plus the ledger identity.

    Handle order is significant: ``[sum, max]`` and ``[max, sum]`` differ.
    """
    return compute_hash({
        "handles": [bytes(i).hex() for i in identifiers],
        "ledger": ledger_id,
    })


__all__ = ["compute_hash", "compute_integrity_hash"]
