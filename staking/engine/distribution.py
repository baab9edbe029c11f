"""
staking.engine.distribution — the time-gated global distribution.

    IDLE      now - last_distribution_time <  interval
    ELIGIBLE  now - last_distribution_time >= interval

`distribute` is owner-only. From ELIGIBLE it books
``compute_yield(total_staked, elapsed, rate)`` into `total_yield_generated`,
moves `last_distribution_time` to now (back to IDLE) and appends a
DistributionRecord. Participant balances are not touched; they collect
lazily through harvest.
"""

from __future__ import annotations

from enum import Enum

from staking.config import Limits
from staking.errors import NoYieldAvailable
from staking.math import add
from staking.math.yield_curve import compute_yield
from staking.state.ledger import LedgerStore
from staking.types.context import CallContext

from .guards import require_active, require_owner


class DistributionPhase(str, Enum):
    IDLE = "idle"
    ELIGIBLE = "eligible"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value


class DistributionStateMachine:
    def __init__(self, ledger: LedgerStore, limits: Limits, owner: str) -> None:
        self.ledger = ledger
        self.limits = limits
        self.owner = owner

    def elapsed(self, now: int) -> int:
        last = self.ledger.last_distribution_time()
        return now - last if now > last else 0

    def phase(self, now: int) -> DistributionPhase:
        if self.elapsed(now) >= self.limits.distribution_interval:
            return DistributionPhase.ELIGIBLE
        return DistributionPhase.IDLE

    def can_distribute(self, now: int) -> bool:
        return self.ledger.is_active() and self.phase(now) is DistributionPhase.ELIGIBLE

    def seconds_until_eligible(self, now: int) -> int:
        return max(0, self.limits.distribution_interval - self.elapsed(now))

    def distribute(self, ctx: CallContext) -> int:
        """Run one distribution. Returns the amount booked."""
        require_owner(self.owner, ctx.caller)
        require_active(self.ledger)
        elapsed = self.elapsed(ctx.timestamp)
        if elapsed < self.limits.distribution_interval:
            raise NoYieldAvailable("distribution window has not elapsed", elapsed=elapsed)

        rate = self.ledger.base_yield_rate()
        amount = compute_yield(self.ledger.total_staked(), elapsed, rate)
        self.ledger.set_total_yield_generated(add(self.ledger.total_yield_generated(), amount))
        self.ledger.set_last_distribution_time(ctx.timestamp)
        rec = self.ledger.record_distribution(ctx.timestamp, amount, rate)

        ctx.emit(
            "distribute",
            sequence=rec.sequence,
            amount=amount,
            effective_apy=rate,
            timestamp=ctx.timestamp,
        )
        return amount


__all__ = ["DistributionPhase", "DistributionStateMachine"]
