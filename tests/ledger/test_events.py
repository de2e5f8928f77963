"""Tests for event models and sinks."""

import tempfile

import pytest

from sensorbridge.ledger.events import (
    BatchOpened,
    DecryptionCompleted,
    EventSink,
    FanoutSink,
    FilesystemEventLog,
    MemoryEventLog,
    ProviderAdded,
    parse_event,
)


@pytest.fixture
def tmp_dir():
    with tempfile.TemporaryDirectory() as d:
        yield d


class TestMemoryEventLog:

    def test_named_and_last(self):
        log = MemoryEventLog()
        log.emit(BatchOpened(batch_id=1))
        log.emit(ProviderAdded(provider="p"))
        log.emit(BatchOpened(batch_id=2))
        assert [e.batch_id for e in log.named("batch_opened")] == [1, 2]
        assert log.last().name == "batch_opened"
        assert log.last("provider_added").provider == "p"
        assert log.last("paused") is None
        assert len(log) == 3

    def test_sinks_satisfy_protocol(self, tmp_dir):
        assert isinstance(MemoryEventLog(), EventSink)
        assert isinstance(FilesystemEventLog(tmp_dir), EventSink)
        assert isinstance(FanoutSink(), EventSink)


class TestFilesystemEventLog:

    def test_journal_roundtrip(self, tmp_dir):
        journal = FilesystemEventLog(tmp_dir)
        journal.emit(BatchOpened(batch_id=1))
        journal.emit(DecryptionCompleted(request_id=3, batch_id=1, total=8, max=20))

        reloaded = FilesystemEventLog(tmp_dir).read()
        assert [type(e) for e in reloaded] == [BatchOpened, DecryptionCompleted]
        assert reloaded[1].total == 8
        assert reloaded[1].max == 20

    def test_empty_journal(self, tmp_dir):
        assert FilesystemEventLog(tmp_dir).read() == []

    def test_journal_location(self, tmp_dir):
        journal = FilesystemEventLog(tmp_dir)
        journal.emit(BatchOpened(batch_id=1))
        assert journal.path.exists()
        assert journal.path.name == "events.jsonl"


class TestFanout:

    def test_every_sink_receives(self, tmp_dir):
        memory = MemoryEventLog()
        journal = FilesystemEventLog(tmp_dir)
        FanoutSink(memory, journal).emit(BatchOpened(batch_id=4))
        assert memory.last().batch_id == 4
        assert journal.read()[0].batch_id == 4


class TestParseEvent:

    def test_discriminates_by_name(self):
        event = parse_event({"name": "provider_added", "provider": "x", "emitted_at": "2024-01-01T00:00:00Z"})
        assert isinstance(event, ProviderAdded)

    def test_unknown_name_rejected(self):
        with pytest.raises(ValueError):
            parse_event({"name": "nope"})
