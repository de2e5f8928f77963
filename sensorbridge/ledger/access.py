"""Role table and pause switch.

One owner (transferable) manages providers, policy and batches; providers
submit readings. Fail-closed: any role check that cannot be satisfied
rejects with NotAuthorized. While paused only ownership transfer and the
pause switch itself are accepted.

Each mutation emits its audit event before committing, so a failing sink
leaves the role table unchanged.
"""

from __future__ import annotations

import bittensor as bt

from .errors import NotAuthorized, PausedState
from .events import (
    EventSink,
    MemoryEventLog,
    OwnershipTransferred,
    Paused,
    ProviderAdded,
    ProviderRemoved,
    Unpaused,
)


def short(address: str) -> str:
    """Address prefix for log lines."""
    return address[:16] if address else "none"


class AccessGuard:
    """Owner/provider roles plus a global pause flag."""

    def __init__(self, owner: str, events: EventSink | None = None):
        if not owner:
            raise ValueError("owner address is required")
        self._owner = owner
        self._providers: dict[str, bool] = {}
        self._paused = False
        self.events = events if events is not None else MemoryEventLog()

    # -- Read-only checks --

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def providers(self) -> list[str]:
        return sorted(a for a, enabled in self._providers.items() if enabled)

    def is_owner(self, address: str) -> bool:
        return bool(address) and address == self._owner

    def is_provider(self, address: str) -> bool:
        return self._providers.get(address, False)

    def require_owner(self, caller: str) -> None:
        if not self.is_owner(caller):
            bt.logging.warning({"access_guard": {"event": "rejected", "caller": short(caller), "reason": "not_owner"}})
            raise NotAuthorized("caller is not the owner", caller=caller)

    def require_provider(self, caller: str) -> None:
        if not self.is_provider(caller):
            bt.logging.warning({"access_guard": {"event": "rejected", "caller": short(caller), "reason": "not_provider"}})
            raise NotAuthorized("caller is not an authorized provider", caller=caller)

    def require_not_paused(self) -> None:
        if self._paused:
            raise PausedState("ledger is paused")

    # -- Mutations (owner only) --

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        self.require_owner(caller)
        if not new_owner:
            raise ValueError("new owner address is required")
        previous = self._owner
        self.events.emit(OwnershipTransferred(previous_owner=previous, new_owner=new_owner))
        self._owner = new_owner
        bt.logging.info({"access_guard": {"event": "ownership_transferred", "from": short(previous), "to": short(new_owner)}})

    def add_provider(self, caller: str, address: str) -> None:
        self.require_owner(caller)
        self.require_not_paused()
        if not address:
            raise ValueError("provider address is required")
        if self._providers.get(address):
            return
        self.events.emit(ProviderAdded(provider=address))
        self._providers[address] = True
        bt.logging.info({"access_guard": {"event": "provider_added", "provider": short(address)}})

    def remove_provider(self, caller: str, address: str) -> None:
        self.require_owner(caller)
        self.require_not_paused()
        if not self._providers.get(address):
            return
        self.events.emit(ProviderRemoved(provider=address))
        self._providers[address] = False
        bt.logging.info({"access_guard": {"event": "provider_removed", "provider": short(address)}})

    def set_paused(self, caller: str, paused: bool) -> None:
        self.require_owner(caller)
        if self._paused == paused:
            return
        self.events.emit(Paused(by=caller) if paused else Unpaused(by=caller))
        self._paused = paused
        bt.logging.info({"access_guard": {"event": "paused" if paused else "unpaused", "by": short(caller)}})


__all__ = ["AccessGuard", "short"]
