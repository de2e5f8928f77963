"""Numbered batches and opaque accumulation of submitted readings.

Batch ids start at 1 and only grow; at most one batch is open. While open,
each submission folds a vibration reading into the running sum and a
temperature reading into the running max. Closing freezes both
accumulators for good. Readings are never seen in cleartext here.
"""

from __future__ import annotations

from typing import Any

import bittensor as bt

from sensorbridge.engine.interface import Handle, OpaqueEngine

from .errors import BatchAlreadyOpen, BatchNotOpen, InvalidBatchReference
from .events import BatchClosed, BatchOpened, DataSubmitted, EventSink, MemoryEventLog
from .models import Batch


class BatchLedger:
    """Append-only history of batches and their accumulators."""

    def __init__(self, engine: OpaqueEngine, events: EventSink | None = None):
        self.engine = engine
        self.events = events if events is not None else MemoryEventLog()
        self._batches: dict[int, Batch] = {}
        self._current_id = 0

    # -- Read-only --

    @property
    def current_batch_id(self) -> int:
        """Highest allocated id (0 before the first batch)."""
        return self._current_id

    @property
    def current(self) -> Batch | None:
        return self._batches.get(self._current_id)

    def get(self, batch_id: int) -> Batch | None:
        return self._batches.get(batch_id)

    def batches(self) -> list[Batch]:
        return [self._batches[i] for i in sorted(self._batches)]

    def in_range(self, batch_id: int) -> bool:
        return 1 <= batch_id <= self._current_id

    def require_open(self) -> Batch:
        batch = self.current
        if batch is None or not batch.open:
            raise BatchNotOpen("no batch is open")
        return batch

    def require_closed(self, batch_id: int) -> Batch:
        """The batch must exist and be closed before its aggregate is final."""
        if not self.in_range(batch_id):
            raise InvalidBatchReference(
                f"batch {batch_id} out of range (1..{self._current_id})",
                batch_id=batch_id,
            )
        batch = self._batches[batch_id]
        if batch.open:
            raise InvalidBatchReference(f"batch {batch_id} is still open", batch_id=batch_id)
        return batch

    # -- Lifecycle --

    def open_batch(self) -> Batch:
        current = self.current
        if current is not None and current.open:
            raise BatchAlreadyOpen(f"batch {current.id} is already open", batch_id=current.id)

        zero_sum = self.engine.constant(0)
        zero_max = self.engine.constant(0)
        batch = Batch(id=self._current_id + 1, sum_handle=zero_sum, max_handle=zero_max)
        self.events.emit(BatchOpened(batch_id=batch.id))
        self._batches[batch.id] = batch
        self._current_id = batch.id

        bt.logging.info({"batch_ledger": {"event": "batch_opened", "batch_id": batch.id}})
        return batch

    def close_batch(self) -> Batch:
        batch = self.require_open()
        self.events.emit(BatchClosed(batch_id=batch.id))
        batch.open = False
        bt.logging.info({"batch_ledger": {"event": "batch_closed", "batch_id": batch.id, "count": batch.count}})
        return batch

    def submit(self, provider: str, vibration: Handle, temperature: Handle) -> Batch:
        """Fold one reading pair into the open batch.

        sum := sum + vibration
        max := temperature >= max ? temperature : max

        New handles are computed and the event emitted before the batch is
        touched, so an engine or sink failure leaves it unchanged.
        """
        batch = self.require_open()

        new_sum = self.engine.add(batch.sum_handle, vibration)
        is_new_max = self.engine.greater_or_equal(temperature, batch.max_handle)
        new_max = self.engine.select(is_new_max, temperature, batch.max_handle)

        self.events.emit(DataSubmitted(batch_id=batch.id, provider=provider, count=batch.count + 1))

        batch.sum_handle = new_sum
        batch.max_handle = new_max
        batch.count += 1

        bt.logging.debug({"batch_ledger": {"event": "data_submitted", "batch_id": batch.id, "count": batch.count}})
        return batch

    def identifiers(self, batch: Batch) -> list[bytes]:
        """Exported identifiers of the batch's accumulators, [sum, max]."""
        return [self.engine.export_identifier(h) for h in batch.handles]

    def view(self, batch: Batch) -> dict[str, Any]:
        sum_id, max_id = self.identifiers(batch)
        return {
            "id": batch.id,
            "open": batch.open,
            "count": batch.count,
            "sum_id": sum_id.hex(),
            "max_id": max_id.hex(),
        }


__all__ = ["BatchLedger"]
