from __future__ import annotations

import os
from dataclasses import dataclass, replace
from dotenv import load_dotenv

from .errors import ConfigError
from .project_constants import (
    CALLBACK_GAS_LIMIT,
    DRAW_INTERVAL_S,
    ENTRY_FEE_RAW,
    GAS_LANE,
    NUM_WORDS,
    REQUEST_CONFIRMATIONS,
)


@dataclass(frozen=True)
class Settings:
    entry_fee: int = ENTRY_FEE_RAW
    interval_s: float = DRAW_INTERVAL_S
    gas_lane: str = GAS_LANE
    subscription_id: int = 0
    callback_gas_limit: int = CALLBACK_GAS_LIMIT
    request_confirmations: int = REQUEST_CONFIRMATIONS
    num_words: int = NUM_WORDS
    # None keeps a silent oracle's round in DRAWING forever.
    draw_timeout_s: float | None = None
    oracle_rpc_url: str | None = None
    payout_rpc_url: str | None = None

    def __post_init__(self) -> None:
        if self.entry_fee <= 0:
            raise ConfigError(f"Entry fee must be positive, got {self.entry_fee}")
        if self.interval_s < 0:
            raise ConfigError(f"Draw interval must not be negative, got {self.interval_s}")
        if self.num_words != 1:
            raise ConfigError(f"Exactly one random word is consumed, got num_words={self.num_words}")
        if self.draw_timeout_s is not None and self.draw_timeout_s <= 0:
            raise ConfigError(f"Draw timeout must be positive, got {self.draw_timeout_s}")

    @staticmethod
    def from_env(
        entry_fee_override: int | None = None,
        interval_override: float | None = None,
    ) -> "Settings":
        load_dotenv()

        timeout = _env("RAFFLE_DRAW_TIMEOUT_S", None, float)
        settings = Settings(
            entry_fee=_env("RAFFLE_ENTRY_FEE", ENTRY_FEE_RAW, int),
            interval_s=_env("RAFFLE_INTERVAL_S", DRAW_INTERVAL_S, float),
            gas_lane=_env("RAFFLE_GAS_LANE", GAS_LANE, str),
            subscription_id=_env("RAFFLE_SUBSCRIPTION_ID", 0, int),
            callback_gas_limit=_env("RAFFLE_CALLBACK_GAS_LIMIT", CALLBACK_GAS_LIMIT, int),
            request_confirmations=_env(
                "RAFFLE_REQUEST_CONFIRMATIONS", REQUEST_CONFIRMATIONS, int
            ),
            draw_timeout_s=timeout,
            oracle_rpc_url=_env("ORACLE_RPC_URL", None, str),
            payout_rpc_url=_env("PAYOUT_RPC_URL", None, str),
        )

        # If the user passes values on the command line, trust them.
        overrides = {}
        if entry_fee_override is not None:
            overrides["entry_fee"] = entry_fee_override
        if interval_override is not None:
            overrides["interval_s"] = interval_override
        if overrides:
            settings = replace(settings, **overrides)
        return settings


def _env(name, default, cast):
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigError(f"{name}={raw!r} is not a valid {cast.__name__}")
