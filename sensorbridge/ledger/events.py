"""Audit events and pluggable event sinks.

Events are the observable surface of the ledger; no internal state depends
on them. Sinks: MemoryEventLog (default) and FilesystemEventLog, which
appends JSON lines to ``{data_dir}/events/events.jsonl``.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated, Literal, Protocol, Union, runtime_checkable

from pydantic import BaseModel, Field, TypeAdapter


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LedgerEvent(BaseModel):
    """Common event header."""

    name: str
    emitted_at: datetime = Field(default_factory=_utcnow)


# ---------------------------------------------------------------------------
# Role / pause / policy events
# ---------------------------------------------------------------------------


class OwnershipTransferred(LedgerEvent):
    name: Literal["ownership_transferred"] = "ownership_transferred"
    previous_owner: str
    new_owner: str


class ProviderAdded(LedgerEvent):
    name: Literal["provider_added"] = "provider_added"
    provider: str


class ProviderRemoved(LedgerEvent):
    name: Literal["provider_removed"] = "provider_removed"
    provider: str


class Paused(LedgerEvent):
    name: Literal["paused"] = "paused"
    by: str


class Unpaused(LedgerEvent):
    name: Literal["unpaused"] = "unpaused"
    by: str


class CooldownChanged(LedgerEvent):
    name: Literal["cooldown_changed"] = "cooldown_changed"
    previous_seconds: float
    cooldown_seconds: float


# ---------------------------------------------------------------------------
# Batch / decryption events
# ---------------------------------------------------------------------------


class BatchOpened(LedgerEvent):
    name: Literal["batch_opened"] = "batch_opened"
    batch_id: int


class BatchClosed(LedgerEvent):
    name: Literal["batch_closed"] = "batch_closed"
    batch_id: int


class DataSubmitted(LedgerEvent):
    name: Literal["data_submitted"] = "data_submitted"
    batch_id: int
    provider: str
    count: int


class DecryptionRequested(LedgerEvent):
    name: Literal["decryption_requested"] = "decryption_requested"
    request_id: int
    batch_id: int


class DecryptionCompleted(LedgerEvent):
    name: Literal["decryption_completed"] = "decryption_completed"
    request_id: int
    batch_id: int
    total: int
    max: int


AnyEvent = Annotated[
    Union[
        OwnershipTransferred,
        ProviderAdded,
        ProviderRemoved,
        Paused,
        Unpaused,
        CooldownChanged,
        BatchOpened,
        BatchClosed,
        DataSubmitted,
        DecryptionRequested,
        DecryptionCompleted,
    ],
    Field(discriminator="name"),
]

_EVENT_ADAPTER: TypeAdapter[AnyEvent] = TypeAdapter(AnyEvent)


def parse_event(data: dict) -> LedgerEvent:
    """Rebuild a typed event from its JSON form."""
    return _EVENT_ADAPTER.validate_python(data)


# ---------------------------------------------------------------------------
# Sinks
# ---------------------------------------------------------------------------


@runtime_checkable
class EventSink(Protocol):
    """Anything that accepts emitted events."""

    def emit(self, event: LedgerEvent) -> None:
        ...


class MemoryEventLog:
    """In-process event list, queryable by event name."""

    def __init__(self) -> None:
        self._events: list[LedgerEvent] = []

    def emit(self, event: LedgerEvent) -> None:
        self._events.append(event)

    @property
    def events(self) -> list[LedgerEvent]:
        return list(self._events)

    def named(self, name: str) -> list[LedgerEvent]:
        return [e for e in self._events if e.name == name]

    def last(self, name: str | None = None) -> LedgerEvent | None:
        candidates = self.named(name) if name else self._events
        return candidates[-1] if candidates else None

    def __len__(self) -> int:
        return len(self._events)


class FilesystemEventLog:
    """Append-only JSON-lines event journal."""

    def __init__(self, data_dir: str):
        self.base = Path(data_dir) / "events"
        self.path = self.base / "events.jsonl"
        self.base.mkdir(parents=True, exist_ok=True)

    def emit(self, event: LedgerEvent) -> None:
        line = json.dumps(event.model_dump(mode="json"), sort_keys=True)
        with open(self.path, "a") as f:
            f.write(line + "\n")

    def read(self) -> list[LedgerEvent]:
        """Load every journaled event, oldest first."""
        if not self.path.exists():
            return []
        events = []
        with open(self.path) as f:
            for line in f:
                line = line.strip()
                if line:
                    events.append(parse_event(json.loads(line)))
        return events


class FanoutSink:
    """Forward each event to several sinks in order."""

    def __init__(self, *sinks: EventSink):
        self.sinks = list(sinks)

    def emit(self, event: LedgerEvent) -> None:
        for sink in self.sinks:
            sink.emit(event)


__all__ = [
    "BatchClosed",
    "BatchOpened",
    "CooldownChanged",
    "DataSubmitted",
    "DecryptionCompleted",
    "DecryptionRequested",
    "EventSink",
    "FanoutSink",
    "FilesystemEventLog",
    "LedgerEvent",
    "MemoryEventLog",
    "OwnershipTransferred",
    "Paused",
    "ProviderAdded",
    "ProviderRemoved",
    "Unpaused",
    "parse_event",
]
