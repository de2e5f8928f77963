"""Tests for the owner/provider role table and the pause switch."""

import pytest

from sensorbridge.ledger.access import AccessGuard
from sensorbridge.ledger.errors import NotAuthorized, PausedState
from sensorbridge.ledger.events import MemoryEventLog

OWNER = "owner_addr"


@pytest.fixture
def guard():
    return AccessGuard(owner=OWNER, events=MemoryEventLog())


class TestRoles:

    def test_owner_recognized(self, guard):
        assert guard.is_owner(OWNER)
        assert not guard.is_owner("someone_else")
        assert not guard.is_owner("")

    def test_empty_owner_rejected(self):
        with pytest.raises(ValueError):
            AccessGuard(owner="")

    def test_add_provider(self, guard):
        guard.add_provider(OWNER, "p1")
        assert guard.is_provider("p1")
        assert guard.providers == ["p1"]
        assert guard.events.last().name == "provider_added"

    def test_add_provider_idempotent(self, guard):
        guard.add_provider(OWNER, "p1")
        guard.add_provider(OWNER, "p1")
        assert len(guard.events.named("provider_added")) == 1

    def test_remove_provider(self, guard):
        guard.add_provider(OWNER, "p1")
        guard.remove_provider(OWNER, "p1")
        assert not guard.is_provider("p1")
        assert guard.providers == []
        assert guard.events.last().name == "provider_removed"

    def test_remove_unknown_provider_is_noop(self, guard):
        guard.remove_provider(OWNER, "never_added")
        assert len(guard.events) == 0

    def test_non_owner_cannot_manage_providers(self, guard):
        with pytest.raises(NotAuthorized):
            guard.add_provider("intruder", "p1")
        with pytest.raises(NotAuthorized):
            guard.remove_provider("intruder", "p1")
        assert not guard.is_provider("p1")

    def test_require_provider(self, guard):
        guard.add_provider(OWNER, "p1")
        guard.require_provider("p1")
        with pytest.raises(NotAuthorized):
            guard.require_provider(OWNER)


class TestOwnership:

    def test_transfer(self, guard):
        guard.transfer_ownership(OWNER, "new_owner")
        assert guard.owner == "new_owner"
        assert not guard.is_owner(OWNER)
        event = guard.events.last("ownership_transferred")
        assert event.previous_owner == OWNER
        assert event.new_owner == "new_owner"

    def test_old_owner_loses_rights(self, guard):
        guard.transfer_ownership(OWNER, "new_owner")
        with pytest.raises(NotAuthorized):
            guard.set_paused(OWNER, True)

    def test_transfer_requires_owner(self, guard):
        with pytest.raises(NotAuthorized):
            guard.transfer_ownership("intruder", "intruder")
        assert guard.owner == OWNER

    def test_transfer_to_empty_rejected(self, guard):
        with pytest.raises(ValueError):
            guard.transfer_ownership(OWNER, "")
        assert guard.owner == OWNER

    def test_transfer_allowed_while_paused(self, guard):
        guard.set_paused(OWNER, True)
        guard.transfer_ownership(OWNER, "new_owner")
        assert guard.owner == "new_owner"

    def test_provider_changes_blocked_while_paused(self, guard):
        guard.add_provider(OWNER, "p1")
        guard.set_paused(OWNER, True)
        with pytest.raises(PausedState):
            guard.add_provider(OWNER, "p2")
        with pytest.raises(PausedState):
            guard.remove_provider(OWNER, "p1")
        assert guard.providers == ["p1"]
        assert guard.events.named("provider_removed") == []


class TestPause:

    def test_pause_and_unpause(self, guard):
        guard.set_paused(OWNER, True)
        assert guard.paused
        with pytest.raises(PausedState):
            guard.require_not_paused()

        guard.set_paused(OWNER, False)
        assert not guard.paused
        guard.require_not_paused()

        names = [e.name for e in guard.events.events]
        assert names == ["paused", "unpaused"]

    def test_pause_requires_owner(self, guard):
        with pytest.raises(NotAuthorized):
            guard.set_paused("intruder", True)
        assert not guard.paused

    def test_repeated_pause_emits_once(self, guard):
        guard.set_paused(OWNER, True)
        guard.set_paused(OWNER, True)
        assert len(guard.events.named("paused")) == 1
