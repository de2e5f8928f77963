"""SensorLedger: the process-scoped ledger object and its command surface.

Composes AccessGuard -> RateLimiter -> BatchLedger -> DecryptionBridge.
Every command takes the caller address first and either completes fully or
raises one LedgerError with no state change. While paused only ownership
transfer, unpause and the engine callback are accepted. The host is
expected to serialize calls; nothing here locks.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Callable

import bittensor as bt

from sensorbridge.engine.interface import Handle, OpaqueEngine

from .access import AccessGuard, short
from .batches import BatchLedger
from .bridge import DecryptionBridge
from .events import CooldownChanged, EventSink, MemoryEventLog
from .integrity import compute_hash
from .models import (
    ActionClass,
    Batch,
    BatchView,
    DecryptionContext,
    LedgerSnapshot,
)
from .rate_limit import RateLimiter


class SensorLedger:
    """Role-gated facade over the batch ledger and decryption bridge."""

    def __init__(
        self,
        engine: OpaqueEngine,
        owner: str,
        ledger_id: str,
        cooldown_seconds: float = 60,
        events: EventSink | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.events = events if events is not None else MemoryEventLog()
        self.engine = engine
        self.ledger_id = ledger_id
        self.clock = clock

        self.guard = AccessGuard(owner=owner, events=self.events)
        self.limiter = RateLimiter(cooldown_seconds=cooldown_seconds)
        self.batches = BatchLedger(engine=engine, events=self.events)
        self.bridge = DecryptionBridge(ledger=self.batches, ledger_id=ledger_id, events=self.events)

    @classmethod
    def from_settings(
        cls, settings: Any, engine: OpaqueEngine, events: EventSink | None = None,
    ) -> SensorLedger:
        return cls(
            engine=engine,
            owner=settings.owner,
            ledger_id=settings.ledger_id,
            cooldown_seconds=settings.cooldown_seconds,
            events=events,
        )

    def _now(self, now: float | None) -> float:
        return self.clock() if now is None else now

    # -- Read-only views --

    @property
    def owner(self) -> str:
        return self.guard.owner

    @property
    def paused(self) -> bool:
        return self.guard.paused

    @property
    def cooldown_seconds(self) -> float:
        return self.limiter.cooldown_seconds

    @property
    def current_batch_id(self) -> int:
        return self.batches.current_batch_id

    def is_provider(self, address: str) -> bool:
        return self.guard.is_provider(address)

    def is_available(self) -> bool:
        """True when commands that mutate batches are accepted."""
        return not self.guard.paused

    def get_batch(self, batch_id: int) -> Batch | None:
        return self.batches.get(batch_id)

    def get_context(self, request_id: int) -> DecryptionContext | None:
        return self.bridge.get(request_id)

    def snapshot(self) -> LedgerSnapshot:
        """Export roles, policy, batches and contexts with a content hash."""
        snap = LedgerSnapshot(
            ledger_id=self.ledger_id,
            owner=self.guard.owner,
            providers=self.guard.providers,
            paused=self.guard.paused,
            cooldown_seconds=self.limiter.cooldown_seconds,
            current_batch_id=self.batches.current_batch_id,
            batches=[BatchView(**self.batches.view(b)) for b in self.batches.batches()],
            contexts=[c.model_copy() for c in self.bridge.contexts()],
            taken_at=datetime.now(timezone.utc),
        )
        snap.content_hash = compute_hash(
            snap.model_dump(mode="json", exclude={"taken_at", "content_hash"})
        )
        return snap

    # -- Administration (owner) --

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        self.guard.transfer_ownership(caller, new_owner)

    def add_provider(self, caller: str, address: str) -> None:
        self.guard.add_provider(caller, address)

    def remove_provider(self, caller: str, address: str) -> None:
        self.guard.remove_provider(caller, address)

    def set_paused(self, caller: str, paused: bool) -> None:
        self.guard.set_paused(caller, paused)

    def set_cooldown_seconds(self, caller: str, seconds: float) -> None:
        self.guard.require_owner(caller)
        self.guard.require_not_paused()
        if seconds < 0:
            raise ValueError(f"cooldown must be >= 0, got {seconds}")
        previous = self.limiter.cooldown_seconds
        if float(seconds) == previous:
            return
        self.events.emit(CooldownChanged(previous_seconds=previous, cooldown_seconds=float(seconds)))
        self.limiter.set_cooldown(seconds)
        bt.logging.info({"sensor_ledger": {"event": "cooldown_changed", "from": previous, "to": self.limiter.cooldown_seconds}})

    # -- Batch lifecycle (owner) --

    def open_batch(self, caller: str) -> Batch:
        self.guard.require_owner(caller)
        self.guard.require_not_paused()
        return self.batches.open_batch()

    def close_batch(self, caller: str) -> Batch:
        self.guard.require_owner(caller)
        self.guard.require_not_paused()
        return self.batches.close_batch()

    # -- Data (provider) --

    def submit(
        self,
        caller: str,
        vibration: Handle,
        temperature: Handle,
        now: float | None = None,
    ) -> Batch:
        """Append one opaque reading pair to the open batch."""
        self.guard.require_provider(caller)
        self.guard.require_not_paused()
        t = self._now(now)
        self.limiter.check(caller, ActionClass.SUBMISSION, t)
        batch = self.batches.submit(caller, vibration, temperature)
        self.limiter.record(caller, ActionClass.SUBMISSION, t)
        return batch

    # -- Decryption --

    def request_decryption(
        self, caller: str, batch_id: int, now: float | None = None,
    ) -> DecryptionContext:
        """Start decrypting a closed batch's aggregate. Returns the PENDING context."""
        self.guard.require_owner(caller)
        self.guard.require_not_paused()
        t = self._now(now)
        self.limiter.check(caller, ActionClass.DECRYPT_REQUEST, t)
        ctx = self.bridge.request(batch_id)
        self.limiter.record(caller, ActionClass.DECRYPT_REQUEST, t)
        bt.logging.debug({"sensor_ledger": {"event": "decryption_requested", "by": short(caller), "request_id": ctx.request_id}})
        return ctx

    def complete(self, request_id: int, cleartexts: bytes, proof: bytes) -> DecryptionContext:
        """Engine callback entry point. Open to any caller."""
        return self.bridge.complete(request_id, cleartexts, proof)


__all__ = ["SensorLedger"]
