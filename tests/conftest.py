"""Shared fixtures: a signing wallet, a LocalEngine and a ready ledger."""

import pytest

from sensorbridge.engine.local import LocalEngine
from sensorbridge.ledger.events import MemoryEventLog
from sensorbridge.ledger.service import SensorLedger

OWNER = "5OwnerAddress000000000000000000000000000000000"
PROVIDER = "5ProviderAddressA00000000000000000000000000000"
PROVIDER_B = "5ProviderAddressB00000000000000000000000000000"
STRANGER = "5StrangerAddress0000000000000000000000000000000"
LEDGER_ID = "sensorbridge-test"
T0 = 1_700_000_000.0


@pytest.fixture(scope="session")
def mock_wallet():
    """Create a wallet with a real keypair for proof signing."""
    import bittensor as bt
    wallet = bt.Wallet(name="test_sensorbridge", hotkey="test_sensorbridge_hk")
    wallet.create_if_non_existent(coldkey_use_password=False, hotkey_use_password=False)
    return wallet


@pytest.fixture
def engine(mock_wallet):
    return LocalEngine(signer=mock_wallet.hotkey)


@pytest.fixture
def events():
    return MemoryEventLog()


@pytest.fixture
def ledger(engine, events):
    """Ledger with one provider registered and a 60s cooldown."""
    ledger = SensorLedger(
        engine=engine,
        owner=OWNER,
        ledger_id=LEDGER_ID,
        cooldown_seconds=60,
        events=events,
        clock=lambda: T0,
    )
    ledger.add_provider(OWNER, PROVIDER)
    return ledger


def submit(ledger, engine, vibration, temperature, now, provider=PROVIDER):
    """Encrypt a reading pair with the engine and submit it."""
    return ledger.submit(
        provider,
        engine.constant(vibration),
        engine.constant(temperature),
        now=now,
    )
