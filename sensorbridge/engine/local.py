"""In-process reference engine.

Keeps plaintexts in memory behind random 32-byte handle identifiers so the
ledger can be exercised end to end without an FHE backend. Every operation
mints a fresh handle, like a real coprocessor. Decryption proofs are
signatures by the engine's keypair over hash(request_id, cleartexts).
"""

from __future__ import annotations

import secrets
import time
from dataclasses import dataclass, field
from typing import Any, Sequence

import bittensor as bt

from sensorbridge.ledger.codec import encode_cleartexts
from sensorbridge.ledger.integrity import compute_hash

from .interface import DecryptionCallback

UINT32_MAX = 2**32 - 1


@dataclass(frozen=True)
class LocalHandle:
    ident: bytes

    def __repr__(self) -> str:
        return f"LocalHandle({self.ident.hex()[:12]}...)"


@dataclass(frozen=True)
class LocalBoolHandle:
    ident: bytes


@dataclass
class _DecryptionJob:
    """A queued decryption waiting for delivery."""

    request_id: int
    handles: list[LocalHandle]
    callback: DecryptionCallback
    created_at: float = field(default_factory=time.time)
    delivered: bool = False


def proof_payload(request_id: int, cleartexts: bytes) -> bytes:
    """Canonical bytes a decryption proof signs."""
    return compute_hash({
        "request_id": request_id,
        "cleartexts": cleartexts.hex(),
    }).encode()


class LocalEngine:
    """Plaintext-backed OpaqueEngine for tests and the replay entrypoint.

    Args:
        signer: Keypair-like object with ``sign(bytes)`` and
            ``ss58_address`` (e.g. ``wallet.hotkey``).
    """

    def __init__(self, signer: Any):
        self.signer = signer
        self.signer_address: str = signer.ss58_address
        self._values: dict[bytes, int] = {}
        self._bools: dict[bytes, bool] = {}
        self._jobs: dict[int, _DecryptionJob] = {}
        self._next_request_id = 1

    # -- Handles --

    def _mint(self, value: int) -> LocalHandle:
        ident = secrets.token_bytes(32)
        self._values[ident] = value
        return LocalHandle(ident)

    def _value(self, handle: LocalHandle) -> int:
        try:
            return self._values[handle.ident]
        except (KeyError, AttributeError):
            raise ValueError(f"unknown handle: {handle!r}") from None

    def constant(self, value: int) -> LocalHandle:
        if not 0 <= value <= UINT32_MAX:
            raise ValueError(f"value out of uint32 range: {value}")
        return self._mint(int(value))

    def add(self, a: LocalHandle, b: LocalHandle) -> LocalHandle:
        # uint32 arithmetic wraps, as on the coprocessor
        return self._mint((self._value(a) + self._value(b)) & UINT32_MAX)

    def greater_or_equal(self, a: LocalHandle, b: LocalHandle) -> LocalBoolHandle:
        ident = secrets.token_bytes(32)
        self._bools[ident] = self._value(a) >= self._value(b)
        return LocalBoolHandle(ident)

    def select(self, cond: LocalBoolHandle, a: LocalHandle, b: LocalHandle) -> LocalHandle:
        try:
            flag = self._bools[cond.ident]
        except (KeyError, AttributeError):
            raise ValueError(f"unknown bool handle: {cond!r}") from None
        return self._mint(self._value(a) if flag else self._value(b))

    def export_identifier(self, handle: LocalHandle) -> bytes:
        self._value(handle)
        return handle.ident

    def reveal(self, handle: LocalHandle) -> int:
        """Plaintext behind a handle. Test/debug helper, not part of the protocol."""
        return self._value(handle)

    # -- Decryption --

    def begin_decryption(
        self, handles: Sequence[LocalHandle], callback: DecryptionCallback,
    ) -> int:
        snapshot = list(handles)
        for h in snapshot:
            self._value(h)

        request_id = self._next_request_id
        self._next_request_id += 1
        self._jobs[request_id] = _DecryptionJob(
            request_id=request_id, handles=snapshot, callback=callback,
        )
        bt.logging.debug({"local_engine": {"event": "decryption_queued", "request_id": request_id}})
        return request_id

    def ready(self) -> list[int]:
        """Request ids queued but not yet delivered, oldest first."""
        return [rid for rid, job in self._jobs.items() if not job.delivered]

    def fulfill(self, request_id: int) -> tuple[bytes, bytes]:
        """Decrypt the handles of a request and sign the result.

        Returns:
            (cleartexts, proof) as the callback would receive them.
        """
        job = self._jobs.get(request_id)
        if job is None:
            raise KeyError(f"unknown decryption request: {request_id}")
        cleartexts = encode_cleartexts([self._value(h) for h in job.handles])
        signature = self.signer.sign(proof_payload(request_id, cleartexts))
        if isinstance(signature, bytes):
            proof = signature
        else:
            proof = bytes.fromhex(str(signature).removeprefix("0x"))
        return cleartexts, proof

    def deliver(self, request_id: int) -> Any:
        """Fulfill a request and invoke its callback once.

        The job is marked delivered before the callback runs, so a raising
        callback is not redelivered automatically.
        """
        job = self._jobs.get(request_id)
        if job is None:
            raise KeyError(f"unknown decryption request: {request_id}")
        if job.delivered:
            raise ValueError(f"decryption request already delivered: {request_id}")
        cleartexts, proof = self.fulfill(request_id)
        job.delivered = True
        return job.callback(request_id, cleartexts, proof)

    def verify_proof(self, request_id: int, cleartexts: bytes, proof: bytes) -> bool:
        if not proof:
            return False
        try:
            keypair = bt.Keypair(ss58_address=self.signer_address)
            return bool(keypair.verify(proof_payload(request_id, cleartexts), proof))
        except Exception:
            return False


__all__ = ["LocalBoolHandle", "LocalEngine", "LocalHandle", "UINT32_MAX", "proof_payload"]
