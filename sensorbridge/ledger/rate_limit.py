"""Per-address cooldown between actions of the same class.

One cooldown duration applies to every action class; timestamps are kept
per (address, action class), so a submission never delays a decrypt
request and vice versa.
"""

from __future__ import annotations

import bittensor as bt

from .access import short
from .errors import CooldownActive
from .models import ActionClass


class RateLimiter:
    """Cooldown gate: ``now >= last[address][action] + cooldown``."""

    def __init__(self, cooldown_seconds: float = 60):
        if cooldown_seconds < 0:
            raise ValueError(f"cooldown must be >= 0, got {cooldown_seconds}")
        self.cooldown_seconds = float(cooldown_seconds)
        # address -> action class -> last successful action time
        self._last: dict[str, dict[ActionClass, float]] = {}

    def set_cooldown(self, seconds: float) -> float:
        """Replace the cooldown. Returns the previous value."""
        if seconds < 0:
            raise ValueError(f"cooldown must be >= 0, got {seconds}")
        previous = self.cooldown_seconds
        self.cooldown_seconds = float(seconds)
        return previous

    def last_action(self, address: str, action: ActionClass) -> float | None:
        return self._last.get(address, {}).get(ActionClass(action))

    def check(self, address: str, action: ActionClass, now: float) -> None:
        """Raise CooldownActive if the address acted too recently. Records nothing."""
        last = self.last_action(address, action)
        if last is None:
            return
        retry_at = last + self.cooldown_seconds
        if now < retry_at:
            bt.logging.warning({"rate_limiter": {
                "event": "cooldown_active",
                "address": short(address),
                "action": ActionClass(action).value,
                "retry_in": round(retry_at - now, 3),
            }})
            raise CooldownActive(
                f"{ActionClass(action).value} cooldown active for {retry_at - now:.1f}s",
                retry_at=retry_at,
            )

    def record(self, address: str, action: ActionClass, now: float) -> None:
        self._last.setdefault(address, {})[ActionClass(action)] = now

    def check_and_record(self, address: str, action: ActionClass, now: float) -> None:
        self.check(address, action, now)
        self.record(address, action, now)


__all__ = ["RateLimiter"]
