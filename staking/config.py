"""
staking.config — runtime configuration for the staking ledger.

This module centralizes knobs for:
  • Token identity (name, symbol; decimals are fixed at 8)
  • Limits (minimum stake, yield-rate bounds, risk granularity,
    distribution interval, metadata length)
  • Where committed events are persisted

Configuration may be provided via environment variables. Defaults match the
deployed contract so a local run works out of the box.

Environment variables (all optional):
  STAKING_TOKEN_NAME              -> token name (default: "Staked Yield Token")
  STAKING_TOKEN_SYMBOL            -> token symbol (default: "syTOKEN")
  STAKING_MIN_STAKE               -> minimum deposit in base units (default: 1000000)
  STAKING_MIN_YIELD_RATE          -> lower rate bound in bps (default: 100)
  STAKING_MAX_YIELD_RATE          -> upper rate bound in bps (default: 2000)
  STAKING_RISK_GRANULARITY        -> risk point per this many units (default: 100000000)
  STAKING_DISTRIBUTION_INTERVAL   -> seconds between distributions (default: 86400)
  STAKING_EVENT_LOG               -> JSONL path for committed events (default: unset)

Programmatic usage:
    from staking.config import get_config
    cfg = get_config()
    if amount < cfg.limits.min_stake:
        ...
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from functools import lru_cache
from typing import Dict, Mapping, Optional, Union

TOKEN_DECIMALS = 8
MAX_TOKEN_URI_LEN = 256


# ------------------------------ dataclasses ---------------------------------


@dataclass(frozen=True)
class TokenInfo:
    name: str = "Staked Yield Token"
    symbol: str = "syTOKEN"
    decimals: int = TOKEN_DECIMALS


@dataclass(frozen=True)
class Limits:
    min_stake: int = 1_000_000
    min_yield_rate: int = 100  # 1%
    max_yield_rate: int = 2000  # 20%
    risk_granularity: int = 100_000_000
    distribution_interval: int = 86_400
    max_token_uri_len: int = MAX_TOKEN_URI_LEN


@dataclass(frozen=True)
class StakingConfig:
    token: TokenInfo
    limits: Limits
    event_log_path: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


# ------------------------------ loader --------------------------------------


def _validate_limits(l: Limits) -> Limits:
    if l.min_stake <= 0:
        raise ValueError("min_stake must be > 0")
    if l.min_yield_rate < 0:
        raise ValueError("min_yield_rate must be ≥ 0")
    if l.max_yield_rate < l.min_yield_rate:
        raise ValueError("max_yield_rate must be ≥ min_yield_rate")
    if l.risk_granularity <= 0:
        raise ValueError("risk_granularity must be > 0")
    if l.distribution_interval <= 0:
        raise ValueError("distribution_interval must be > 0")
    if l.max_token_uri_len <= 0:
        raise ValueError("max_token_uri_len must be > 0")
    return l


def _validate_token(t: TokenInfo) -> TokenInfo:
    if not t.name.strip():
        raise ValueError("token name must not be empty")
    if not t.symbol.strip():
        raise ValueError("token symbol must not be empty")
    return t


def load_config(
    env: Optional[Mapping[str, str]] = None,
    *,
    overrides: Optional[Mapping[str, Union[str, int]]] = None,
) -> StakingConfig:
    """
    Build a StakingConfig from environment and optional overrides.

    Args:
        env: mapping to read variables from (default: os.environ)
        overrides: explicit field overrides; keys support:
          'token_name', 'token_symbol', 'min_stake', 'min_yield_rate',
          'max_yield_rate', 'risk_granularity', 'distribution_interval',
          'event_log_path'
    """
    env = os.environ if env is None else env
    overrides = dict(overrides or {})

    token = TokenInfo(
        name=str(overrides.get("token_name", env.get("STAKING_TOKEN_NAME", TokenInfo.name))),
        symbol=str(overrides.get("token_symbol", env.get("STAKING_TOKEN_SYMBOL", TokenInfo.symbol))),
    )

    limits = Limits(
        min_stake=int(overrides.get("min_stake", env.get("STAKING_MIN_STAKE", Limits.min_stake))),
        min_yield_rate=int(
            overrides.get("min_yield_rate", env.get("STAKING_MIN_YIELD_RATE", Limits.min_yield_rate))
        ),
        max_yield_rate=int(
            overrides.get("max_yield_rate", env.get("STAKING_MAX_YIELD_RATE", Limits.max_yield_rate))
        ),
        risk_granularity=int(
            overrides.get("risk_granularity", env.get("STAKING_RISK_GRANULARITY", Limits.risk_granularity))
        ),
        distribution_interval=int(
            overrides.get(
                "distribution_interval",
                env.get("STAKING_DISTRIBUTION_INTERVAL", Limits.distribution_interval),
            )
        ),
    )

    event_log = overrides.get("event_log_path", env.get("STAKING_EVENT_LOG"))

    return StakingConfig(
        token=_validate_token(token),
        limits=_validate_limits(limits),
        event_log_path=str(event_log) if event_log else None,
    )


@lru_cache(maxsize=1)
def get_config() -> StakingConfig:
    """
    Cached global config. Suitable for application bootstraps and module-level consumers.
    """
    return load_config()


# ----------------------------- pretty-print ---------------------------------


def summary(cfg: Optional[StakingConfig] = None) -> str:
    """
    Return a human-friendly one-line summary of the most important knobs.
    """
    cfg = cfg or get_config()
    t = cfg.token
    l = cfg.limits
    return (
        "staking{"
        f"token={t.symbol}/{t.decimals}, "
        f"min_stake={l.min_stake}, rate=[{l.min_yield_rate},{l.max_yield_rate}]bps, "
        f"risk_unit={l.risk_granularity}, interval={l.distribution_interval}s, "
        f"events={cfg.event_log_path or 'memory'}"
        "}"
    )


__all__ = [
    "TOKEN_DECIMALS",
    "MAX_TOKEN_URI_LEN",
    "TokenInfo",
    "Limits",
    "StakingConfig",
    "load_config",
    "get_config",
    "summary",
]
