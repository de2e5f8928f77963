"""Decryption gateway runtime.

Lightweight delivery loop: poll the engine for finished decryptions ->
invoke each registered callback -> log the outcome. Failures are isolated
per request; the bridge, not this loop, decides what is valid.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import bittensor as bt

from sensorbridge.ledger.errors import LedgerError


@runtime_checkable
class DeliverySource(Protocol):
    """Engine side of the gateway: finished requests and their delivery."""

    def ready(self) -> list[int]:
        ...

    def deliver(self, request_id: int) -> Any:
        ...


@dataclass
class DeliveryOutcome:
    """Result of delivering one decryption to its callback."""

    request_id: int
    status: str  # "completed", "rejected", "error"
    reason: str = ""


class GatewayRuntime:
    """Main decryption delivery loop."""

    def __init__(
        self,
        source: DeliverySource,
        config: dict[str, Any] | None = None,
    ):
        self.source = source
        self.config = config or {}

        self._poll_interval = float(self.config.get("poll_interval", 2.0))
        self._max_errors = int(self.config.get("max_consecutive_errors", 10))
        self._running = False
        self.delivered: list[DeliveryOutcome] = []

    async def run(self, until_idle: bool = False) -> None:
        """Main gateway loop. Runs until stopped.

        With ``until_idle`` the loop also returns once a pass leaves nothing
        ready, which lets one-shot tools drain outstanding decryptions.
        """
        self._running = True
        bt.logging.info({
            "gateway_runtime": {
                "status": "starting",
                "poll_interval": self._poll_interval,
            }
        })

        consecutive_errors = 0

        while self._running:
            try:
                await self.run_once()
                consecutive_errors = 0
                if until_idle and not self.source.ready():
                    break
            except asyncio.CancelledError:
                break
            except Exception as e:
                consecutive_errors += 1
                bt.logging.error({"gateway_cycle_error": str(e), "consecutive": consecutive_errors})
                if consecutive_errors >= self._max_errors:
                    bt.logging.error({"gateway_runtime": "too_many_errors, stopping"})
                    break
                await asyncio.sleep(min(30, 5 * consecutive_errors))
                continue

            try:
                await asyncio.sleep(self._poll_interval)
            except asyncio.CancelledError:
                break

        self._running = False
        bt.logging.info({"gateway_runtime": "stopped"})

    def stop(self) -> None:
        """Signal the runtime to stop."""
        self._running = False

    async def run_once(self) -> list[DeliveryOutcome]:
        """Deliver every decryption that is ready. Returns this pass's outcomes."""
        outcomes = [self._deliver(rid) for rid in self.source.ready()]
        self.delivered.extend(outcomes)
        return outcomes

    def _deliver(self, request_id: int) -> DeliveryOutcome:
        try:
            self.source.deliver(request_id)
        except LedgerError as e:
            entry = {"gateway_delivery": {"request_id": request_id, "status": "rejected", "reason": e.code}}
            if e.security_relevant:
                bt.logging.error(entry)
            else:
                bt.logging.warning(entry)
            return DeliveryOutcome(request_id=request_id, status="rejected", reason=e.code)
        except Exception as e:
            bt.logging.warning({"gateway_delivery": {"request_id": request_id, "status": "error", "error": str(e)}})
            return DeliveryOutcome(request_id=request_id, status="error", reason=str(e))

        bt.logging.info({"gateway_delivery": {"request_id": request_id, "status": "completed"}})
        return DeliveryOutcome(request_id=request_id, status="completed")


__all__ = ["DeliveryOutcome", "DeliverySource", "GatewayRuntime"]
