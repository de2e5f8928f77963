# The MIT License (MIT)
# Copyright © 2023 Yuma Rao
# Copyright © 2023 Opentensor Foundation

# Permission is hereby granted, free of charge, to any person obtaining a copy of this software and associated
# documentation files (the “Software”), to deal in the Software without restriction, including without limitation
# the rights to use, copy, modify, merge, publish, distribute, sublicense, and/or sell copies of the Software,
# and to permit persons to whom the Software is furnished to do so, subject to the following conditions:

# The above copyright notice and this permission notice shall be included in all copies or substantial portions of
# the Software.

# THE SOFTWARE IS PROVIDED “AS IS”, WITHOUT WARRANTY OF ANY KIND, EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO
# THE WARRANTIES OF MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL
# THE AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN ACTION
# OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER
# DEALINGS IN THE SOFTWARE.

import argparse
import os
from typing import Mapping, Optional

import bittensor as bt
from pydantic import BaseModel, Field


class BridgeSettings(BaseModel):
    """Ledger and gateway settings."""

    ledger_id: str = Field(default="sensorbridge-local", min_length=1)
    owner: str = ""
    cooldown_seconds: float = Field(default=60, ge=0)
    data_dir: str = "sensorbridge/data"
    poll_interval: float = Field(default=2.0, gt=0)
    max_consecutive_errors: int = Field(default=10, ge=1)

    def gateway_config(self) -> dict:
        """Config mapping for GatewayRuntime."""
        return {
            "poll_interval": self.poll_interval,
            "max_consecutive_errors": self.max_consecutive_errors,
        }


# env var -> settings field. Environment has HIGHEST priority.
ENV_FIELDS = {
    "SENSORBRIDGE_LEDGER__ID": "ledger_id",
    "SENSORBRIDGE_LEDGER__OWNER": "owner",
    "SENSORBRIDGE_LEDGER__COOLDOWN_SECONDS": "cooldown_seconds",
    "SENSORBRIDGE_DATA_DIR": "data_dir",
    "SENSORBRIDGE_GATEWAY__POLL_INTERVAL": "poll_interval",
    "SENSORBRIDGE_GATEWAY__MAX_ERRORS": "max_consecutive_errors",
}

# CLI dest -> settings field
ARG_FIELDS = {
    "ledger.id": "ledger_id",
    "ledger.owner": "owner",
    "ledger.cooldown_seconds": "cooldown_seconds",
    "ledger.data_dir": "data_dir",
    "gateway.poll_interval": "poll_interval",
    "gateway.max_errors": "max_consecutive_errors",
}


def load_settings(
    env: Optional[Mapping[str, str]] = None,
    base: Optional[BridgeSettings] = None,
) -> BridgeSettings:
    """Apply SENSORBRIDGE_* environment overrides on top of ``base``."""
    env = os.environ if env is None else env
    values = (base or BridgeSettings()).model_dump()
    for var, field_name in ENV_FIELDS.items():
        raw = env.get(var)
        if raw:
            values[field_name] = raw
    return BridgeSettings(**values)


def add_args(parser: argparse.ArgumentParser) -> None:
    """
    Adds ledger and gateway arguments to the parser.
    """

    parser.add_argument(
        "--ledger.id",
        type=str,
        help="Ledger identity bound into every integrity hash.",
        default=None,
    )

    parser.add_argument(
        "--ledger.owner",
        type=str,
        help="Owner address. Defaults to the wallet hotkey ss58 address.",
        default=None,
    )

    parser.add_argument(
        "--ledger.cooldown_seconds",
        type=float,
        help="Minimum spacing between two actions of the same class by one address.",
        default=None,
    )

    parser.add_argument(
        "--ledger.data_dir",
        type=str,
        help="Directory for the event journal.",
        default=None,
    )

    parser.add_argument(
        "--gateway.poll_interval",
        type=float,
        help="Seconds between gateway delivery passes.",
        default=None,
    )

    parser.add_argument(
        "--gateway.max_errors",
        type=int,
        help="Consecutive gateway errors before the loop stops.",
        default=None,
    )


def settings_from_args(
    args: argparse.Namespace,
    env: Optional[Mapping[str, str]] = None,
) -> BridgeSettings:
    """CLI values over defaults, then environment over CLI."""
    values = BridgeSettings().model_dump()
    for dest, field_name in ARG_FIELDS.items():
        value = getattr(args, dest, None)
        if value is not None:
            values[field_name] = value
    settings = load_settings(env=env, base=BridgeSettings(**values))
    bt.logging.debug({"sensorbridge_config": settings.model_dump()})
    return settings


def config() -> argparse.ArgumentParser:
    """
    Returns a parser with wallet, logging and sensorbridge arguments registered.
    """
    parser = argparse.ArgumentParser()
    bt.Wallet.add_args(parser)
    bt.logging.add_args(parser)
    add_args(parser)
    return parser
