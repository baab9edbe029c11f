"""
staking.state.protocol — protocol-wide record and distribution history.

ProtocolState is owned by exactly one LedgerStore; there is no module-level
singleton. DistributionRecord rows are append-only and keyed by a monotonically
increasing sequence number so two distributions can never collide even when a
host replays the same timestamp.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Mapping, Optional

PROTOCOL_FIELDS = (
    "total_staked",
    "total_yield_generated",
    "active",
    "insurance_active",
    "base_yield_rate",
    "last_distribution_time",
    "insurance_reserve_balance",
    "token_uri",
    "distribution_count",
)


@dataclass(slots=True)
class ProtocolState:
    total_staked: int = 0
    total_yield_generated: int = 0
    active: bool = False
    insurance_active: bool = False
    base_yield_rate: int = 0
    last_distribution_time: int = 0
    insurance_reserve_balance: int = 0
    token_uri: Optional[str] = None
    distribution_count: int = 0

    def copy(self) -> "ProtocolState":
        return ProtocolState(**{f.name: getattr(self, f.name) for f in fields(self)})

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in PROTOCOL_FIELDS}

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "ProtocolState":
        uri = d.get("token_uri")
        return cls(
            total_staked=int(d.get("total_staked", 0)),
            total_yield_generated=int(d.get("total_yield_generated", 0)),
            active=bool(d.get("active", False)),
            insurance_active=bool(d.get("insurance_active", False)),
            base_yield_rate=int(d.get("base_yield_rate", 0)),
            last_distribution_time=int(d.get("last_distribution_time", 0)),
            insurance_reserve_balance=int(d.get("insurance_reserve_balance", 0)),
            token_uri=None if uri is None else str(uri),
            distribution_count=int(d.get("distribution_count", 0)),
        )


@dataclass(frozen=True)
class DistributionRecord:
    sequence: int
    distribution_timestamp: int
    total_amount_distributed: int
    effective_apy: int

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "DistributionRecord":
        return cls(
            sequence=int(d["sequence"]),
            distribution_timestamp=int(d["distribution_timestamp"]),
            total_amount_distributed=int(d["total_amount_distributed"]),
            effective_apy=int(d["effective_apy"]),
        )


__all__ = ["PROTOCOL_FIELDS", "ProtocolState", "DistributionRecord"]
