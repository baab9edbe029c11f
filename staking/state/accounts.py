"""
staking.state.accounts — per-participant ledger records.

A ParticipantAccount holds four uint fields and an optional checkpoint:

- balance:             staked principal plus compounded rewards
- accumulated_rewards: rewards computed but not yet folded into `balance`
- risk_score:          monotone counter, bumped on every deposit
- insurance_coverage:  amount covered while insurance is active (set, not summed)
- accrual_checkpoint:  timestamp the next accrual window starts from (None = unset)

Records are created lazily on first write and never deleted; a record whose
uint fields are all zero and whose checkpoint is unset is indistinguishable
from an absent participant.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional

from staking.math import UINT_MAX

ACCOUNT_FIELDS = (
    "balance",
    "accumulated_rewards",
    "risk_score",
    "insurance_coverage",
    "accrual_checkpoint",
)


def _ensure_uint(name: str, value: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")
    if value > UINT_MAX:
        raise OverflowError(f"{name} exceeds uint range")
    return value


@dataclass(slots=True)
class ParticipantAccount:
    balance: int = 0
    accumulated_rewards: int = 0
    risk_score: int = 0
    insurance_coverage: int = 0
    accrual_checkpoint: Optional[int] = None

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None and f.name == "accrual_checkpoint":
                continue
            setattr(self, f.name, _ensure_uint(f.name, value))

    def copy(self) -> "ParticipantAccount":
        return ParticipantAccount(
            balance=self.balance,
            accumulated_rewards=self.accumulated_rewards,
            risk_score=self.risk_score,
            insurance_coverage=self.insurance_coverage,
            accrual_checkpoint=self.accrual_checkpoint,
        )

    def is_empty(self) -> bool:
        if self.accrual_checkpoint is not None:
            return False
        return not any(getattr(self, name) for name in ACCOUNT_FIELDS[:-1])

    def to_dict(self) -> Dict[str, Optional[int]]:
        return {name: getattr(self, name) for name in ACCOUNT_FIELDS}

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "ParticipantAccount":
        checkpoint = d.get("accrual_checkpoint")
        return cls(
            **{name: int(d.get(name, 0)) for name in ACCOUNT_FIELDS[:-1]},
            accrual_checkpoint=None if checkpoint is None else int(checkpoint),
        )


__all__ = ["ACCOUNT_FIELDS", "ParticipantAccount"]
