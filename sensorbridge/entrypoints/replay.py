"""Readings replay entrypoint.

Replays a JSON file of sensor readings through a SensorLedger backed by the
in-process LocalEngine: open a batch, submit every reading, close, request
decryption, deliver it through the gateway, print the completion event.

Readings file: [{"provider": "...", "vibration": 5, "temperature": 10,
"at": 1700000000.0}, ...]; "at" is optional.
"""

import asyncio
import json
import os
import sys

import bittensor as bt
from dotenv import load_dotenv


def load_readings(path: str) -> list[dict]:
    with open(path) as f:
        readings = json.load(f)
    if not isinstance(readings, list) or not readings:
        raise ValueError("readings file must hold a non-empty JSON list")
    for i, r in enumerate(readings):
        missing = {"provider", "vibration", "temperature"} - set(r)
        if missing:
            raise ValueError(f"reading {i} missing fields: {sorted(missing)}")
    return readings


def replay(
    ledger, engine, readings: list[dict], start: float, log, gateway_config: dict | None = None,
) -> dict:
    """Drive one full batch cycle. Returns the completion event as JSON.

    ``log`` is a MemoryEventLog that receives the ledger's events;
    ``gateway_config`` is passed to the GatewayRuntime that drains the
    decryption queue.
    """
    from sensorbridge.gateway.runtime import GatewayRuntime

    owner = ledger.owner
    for provider in sorted({r["provider"] for r in readings}):
        ledger.add_provider(owner, provider)

    batch = ledger.open_batch(owner)
    # Without explicit timestamps, space each provider's readings by one cooldown.
    seen: dict[str, int] = {}
    for r in readings:
        n = seen.get(r["provider"], 0)
        seen[r["provider"]] = n + 1
        at = float(r.get("at", start + n * ledger.cooldown_seconds))
        ledger.submit(
            r["provider"],
            engine.constant(int(r["vibration"])),
            engine.constant(int(r["temperature"])),
            now=at,
        )
    ledger.close_batch(owner)

    ctx = ledger.request_decryption(owner, batch.id)
    runtime = GatewayRuntime(source=engine, config=gateway_config)
    asyncio.run(runtime.run(until_idle=True))
    for outcome in runtime.delivered:
        if outcome.status != "completed":
            raise RuntimeError(f"request {outcome.request_id} {outcome.status}: {outcome.reason}")

    event = log.last("decryption_completed")
    if event is None or event.request_id != ctx.request_id:
        raise RuntimeError(f"no completion recorded for request {ctx.request_id}")
    return event.model_dump(mode="json")


def main() -> None:
    # Load .env if not in test mode
    if os.environ.get("SENSORBRIDGE_TEST_MODE") != "true":
        load_dotenv()

    from sensorbridge.base.config import config, settings_from_args

    parser = config()
    parser.description = "SensorBridge readings replay"
    parser.add_argument("readings", type=str, help="Path to a JSON readings file.")
    args = parser.parse_args()
    settings = settings_from_args(args)

    wallet_name = os.environ.get("SENSORBRIDGE_WALLET__NAME", getattr(args, "wallet.name", "default"))
    wallet_hotkey = os.environ.get("SENSORBRIDGE_WALLET__HOTKEY", getattr(args, "wallet.hotkey", "default"))
    wallet = bt.Wallet(name=wallet_name, hotkey=wallet_hotkey)

    try:
        readings = load_readings(args.readings)
    except (OSError, ValueError) as e:
        bt.logging.error({"replay": {"event": "bad_readings", "error": str(e)}})
        sys.exit(1)

    from sensorbridge.engine.local import LocalEngine
    from sensorbridge.ledger.events import FanoutSink, FilesystemEventLog, MemoryEventLog
    from sensorbridge.ledger.service import SensorLedger

    if not settings.owner:
        settings.owner = wallet.hotkey.ss58_address

    engine = LocalEngine(signer=wallet.hotkey)
    memory = MemoryEventLog()
    journal = FilesystemEventLog(settings.data_dir)
    ledger = SensorLedger.from_settings(settings, engine=engine, events=FanoutSink(memory, journal))
    bt.logging.info({"replay": {
        "event": "starting",
        "ledger_id": settings.ledger_id,
        "readings": len(readings),
        "journal": str(journal.path),
    }})

    try:
        result = replay(
            ledger, engine, readings,
            start=ledger.clock(),
            log=memory,
            gateway_config=settings.gateway_config(),
        )
    except Exception as e:
        bt.logging.error({"replay": {"event": "failed", "error": str(e)}})
        sys.exit(1)

    print(json.dumps(result, indent=2, sort_keys=True))


if __name__ == "__main__":
    main()
