"""
staking.engine.queries — read-only token accessors and analytics.

Nothing here writes to the ledger. `total_supply` is `total_staked`, which
equals the sum of all balances because harvested yield is added to both.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from staking.config import StakingConfig
from staking.state.ledger import LedgerStore

from .distribution import DistributionStateMachine
from .staking import StakingEngine


@dataclass(frozen=True)
class StakerInfo:
    balance: int
    accumulated_rewards: int
    risk_score: int
    insurance_coverage: int
    accrual_checkpoint: Optional[int]

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class ProtocolMetrics:
    total_value_locked: int
    total_yield_generated: int
    base_yield_rate: int
    active: bool
    insurance_active: bool
    insurance_reserve_balance: int
    last_distribution_time: int
    distribution_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ProtocolQueries:
    def __init__(
        self,
        ledger: LedgerStore,
        config: StakingConfig,
        staking: StakingEngine,
        distribution: DistributionStateMachine,
    ) -> None:
        self.ledger = ledger
        self.config = config
        self.staking = staking
        self.distribution = distribution

    # -- token accessors ----------------------------------------------------

    def name(self) -> str:
        return self.config.token.name

    def symbol(self) -> str:
        return self.config.token.symbol

    def decimals(self) -> int:
        return self.config.token.decimals

    def balance_of(self, principal: str) -> int:
        return self.ledger.get_balance(principal)

    def total_supply(self) -> int:
        return self.ledger.total_staked()

    def token_uri(self) -> Optional[str]:
        return self.ledger.token_uri()

    # -- analytics ----------------------------------------------------------

    def staker_info(self, principal: str) -> StakerInfo:
        acc = self.ledger.get_account(principal)
        return StakerInfo(
            balance=acc.balance,
            accumulated_rewards=acc.accumulated_rewards,
            risk_score=acc.risk_score,
            insurance_coverage=acc.insurance_coverage,
            accrual_checkpoint=acc.accrual_checkpoint,
        )

    def protocol_metrics(self) -> ProtocolMetrics:
        st = self.ledger.protocol_snapshot()
        return ProtocolMetrics(
            total_value_locked=st.total_staked,
            total_yield_generated=st.total_yield_generated,
            base_yield_rate=st.base_yield_rate,
            active=st.active,
            insurance_active=st.insurance_active,
            insurance_reserve_balance=st.insurance_reserve_balance,
            last_distribution_time=st.last_distribution_time,
            distribution_count=st.distribution_count,
        )

    def pending_yield(self, principal: str, now: int) -> int:
        return self.staking.pending_yield(principal, now)

    def can_distribute(self, now: int) -> bool:
        return self.distribution.can_distribute(now)


__all__ = ["StakerInfo", "ProtocolMetrics", "ProtocolQueries"]
