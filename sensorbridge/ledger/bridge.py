"""Asynchronous decryption bridge.

request():  snapshot a closed batch's accumulator handles, bind them to an
            integrity hash, hand them to the engine, record a PENDING
            context.
complete(): engine callback. Any caller may invoke it, any number of times,
            in any order. Checks, in order:
              1. context exists and is PENDING      (ReplayAttempt)
              2. referenced batch is in range       (InvalidBatchReference)
              3. live accumulators still hash to the
                 value recorded at request time     (StateMismatch -> REJECTED)
              4. engine accepts the proof           (ProofVerificationFailed)
              5. cleartexts decode to two words     (MalformedCleartext)
            then emits the cleartext aggregate and marks COMPLETED.

Only a state mismatch moves a context to REJECTED. A failed proof or a
malformed payload raises but deliberately leaves the context PENDING:
anyone may call complete(), so letting a forged callback reject the request
would let it cancel the genuine one. A mismatch depends on ledger state
alone and no later callback can cure it, so it is terminal.

The completion event is emitted before the context is marked, so a failing
sink leaves it PENDING and the genuine callback can be retried.
"""

from __future__ import annotations

from datetime import datetime, timezone

import bittensor as bt

from .batches import BatchLedger
from .codec import decode_cleartexts
from .errors import (
    InvalidBatchReference,
    LedgerError,
    ProofVerificationFailed,
    ReplayAttempt,
    StateMismatch,
)
from .events import DecryptionCompleted, DecryptionRequested, EventSink, MemoryEventLog
from .integrity import compute_integrity_hash
from .models import DecryptionContext, DecryptionResult, RequestState


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DecryptionBridge:
    """Owns every DecryptionContext; references batches by id only."""

    def __init__(
        self,
        ledger: BatchLedger,
        ledger_id: str,
        events: EventSink | None = None,
    ):
        if not ledger_id:
            raise ValueError("ledger_id is required")
        self.ledger = ledger
        self.engine = ledger.engine
        self.ledger_id = ledger_id
        self.events = events if events is not None else MemoryEventLog()
        self._contexts: dict[int, DecryptionContext] = {}

    # -- Read-only --

    def get(self, request_id: int) -> DecryptionContext | None:
        return self._contexts.get(request_id)

    def contexts(self) -> list[DecryptionContext]:
        return [self._contexts[i] for i in sorted(self._contexts)]

    def pending(self) -> list[DecryptionContext]:
        return [c for c in self.contexts() if c.state is RequestState.PENDING]

    def integrity_hash(self, batch_id: int) -> str:
        """Digest of the batch's current accumulator handles."""
        batch = self.ledger.get(batch_id)
        if batch is None:
            raise InvalidBatchReference(f"unknown batch {batch_id}", batch_id=batch_id)
        return compute_integrity_hash(self.ledger.identifiers(batch), self.ledger_id)

    # -- Request --

    def request(self, batch_id: int) -> DecryptionContext:
        batch = self.ledger.require_closed(batch_id)

        handles = batch.handles
        digest = compute_integrity_hash(
            [self.engine.export_identifier(h) for h in handles], self.ledger_id,
        )
        request_id = self.engine.begin_decryption(handles, self.complete)
        if request_id in self._contexts:
            raise ValueError(f"engine reused request id {request_id}")

        ctx = DecryptionContext(
            request_id=request_id,
            batch_id=batch_id,
            integrity_hash=digest,
            requested_at=_utcnow(),
        )
        self.events.emit(DecryptionRequested(request_id=request_id, batch_id=batch_id))
        self._contexts[request_id] = ctx

        bt.logging.info({"decryption_bridge": {
            "event": "decryption_requested",
            "request_id": request_id,
            "batch_id": batch_id,
            "integrity_hash": digest[:16],
        }})
        return ctx

    # -- Callback --

    def complete(self, request_id: int, cleartexts: bytes, proof: bytes) -> DecryptionContext:
        try:
            return self._complete(request_id, cleartexts, proof)
        except LedgerError as e:
            entry = {"decryption_bridge": {
                "event": "callback_rejected",
                "request_id": request_id,
                "reason": e.code,
            }}
            if e.security_relevant:
                entry["decryption_bridge"]["security"] = True
                bt.logging.error(entry)
            else:
                bt.logging.warning(entry)
            raise

    def _complete(self, request_id: int, cleartexts: bytes, proof: bytes) -> DecryptionContext:
        ctx = self._contexts.get(request_id)
        if ctx is None:
            raise ReplayAttempt(f"unknown request {request_id}", request_id=request_id)
        if ctx.processed:
            raise ReplayAttempt(
                f"request {request_id} already {ctx.state.value}",
                request_id=request_id,
                state=ctx.state.value,
            )

        if not self.ledger.in_range(ctx.batch_id):
            raise InvalidBatchReference(
                f"request {request_id} references unknown batch {ctx.batch_id}",
                batch_id=ctx.batch_id,
            )

        current = self.integrity_hash(ctx.batch_id)
        if current != ctx.integrity_hash:
            ctx.state = RequestState.REJECTED
            ctx.resolved_at = _utcnow()
            raise StateMismatch(
                f"batch {ctx.batch_id} changed since request {request_id}",
                request_id=request_id,
                expected=ctx.integrity_hash,
                actual=current,
            )

        if not self.engine.verify_proof(request_id, cleartexts, proof):
            raise ProofVerificationFailed(
                f"proof rejected for request {request_id}", request_id=request_id,
            )

        total, maximum = decode_cleartexts(cleartexts, count=2)

        self.events.emit(DecryptionCompleted(
            request_id=request_id,
            batch_id=ctx.batch_id,
            total=total,
            max=maximum,
        ))

        ctx.state = RequestState.COMPLETED
        ctx.result = DecryptionResult(total=total, max=maximum)
        ctx.resolved_at = _utcnow()

        bt.logging.info({"decryption_bridge": {
            "event": "decryption_completed",
            "request_id": request_id,
            "batch_id": ctx.batch_id,
        }})
        return ctx


__all__ = ["DecryptionBridge"]
