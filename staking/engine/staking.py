"""
staking.engine.staking — deposit, withdraw, harvest.

Accrual model
-------------
Each participant accrues simple interest on their current balance from an
*accrual window start*:

    start = accrual_checkpoint            if the participant has one
          = last_distribution_time        otherwise (never set)

    pending = accumulated_rewards + compute_yield(balance, now - start, rate)

- settle   moves the yield accrued on the current balance into
           `accumulated_rewards` and restarts the window at `now`
           (a partial day is forfeited). Deposits and both transfer
           variants settle every participant whose balance they change.
- harvest  folds `pending` into the balance, zeroes `accumulated_rewards` and
           advances the window start by the whole days consumed, so an
           immediate second harvest finds nothing.
- withdraw checks the amount against the pre-harvest balance, folds pending
           yield (zero is fine here), then debits.

Harvested yield is added to `total_staked` as well as to the balance, so
``sum(balance) == total_staked`` holds after every committed call.
"""

from __future__ import annotations

from staking.config import Limits
from staking.errors import InsufficientBalance, InvalidAmount, NoYieldAvailable
from staking.math import add, sub
from staking.math.yield_curve import SECONDS_PER_DAY, compute_yield, elapsed_days
from staking.state.ledger import LedgerStore
from staking.types.context import CallContext

from .guards import require_active, require_amount


class StakingEngine:
    def __init__(self, ledger: LedgerStore, limits: Limits) -> None:
        self.ledger = ledger
        self.limits = limits

    # ------------------------------------------------------------------ #
    # Accrual helpers
    # ------------------------------------------------------------------ #

    def window_start(self, participant: str) -> int:
        checkpoint = self.ledger.get_checkpoint(participant)
        if checkpoint is None:
            return self.ledger.last_distribution_time()
        return checkpoint

    def _accrued(self, participant: str, now: int) -> tuple[int, int]:
        """(new_yield, whole_days) accrued on the current balance since the window start."""
        start = self.window_start(participant)
        elapsed = now - start if now > start else 0
        new_yield = compute_yield(self.ledger.get_balance(participant), elapsed, self.ledger.base_yield_rate())
        return new_yield, elapsed_days(elapsed)

    def settle(self, participant: str, now: int) -> int:
        """
        Book the yield accrued on the current balance into `accumulated_rewards`
        and restart the window at `now`. Must run before the balance changes.
        Returns the amount booked.
        """
        new_yield, _ = self._accrued(participant, now)
        if new_yield:
            self.ledger.set_rewards(participant, add(self.ledger.get_rewards(participant), new_yield))
        self.ledger.set_checkpoint(participant, now)
        return new_yield

    def pending_yield(self, participant: str, now: int) -> int:
        """Read-only estimate of what `harvest` would return at `now`."""
        new_yield, _ = self._accrued(participant, now)
        return add(self.ledger.get_rewards(participant), new_yield)

    def _fold(self, ctx: CallContext, participant: str) -> int:
        """
        Move pending yield into the balance. Returns the folded total (may be 0,
        in which case nothing is written).
        """
        new_yield, days = self._accrued(participant, ctx.timestamp)
        total = add(self.ledger.get_rewards(participant), new_yield)
        if total == 0:
            return 0

        balance = add(self.ledger.get_balance(participant), total)
        self.ledger.set_rewards(participant, 0)
        self.ledger.set_balance(participant, balance)
        self.ledger.set_total_staked(add(self.ledger.total_staked(), total))
        if days:
            self.ledger.set_checkpoint(
                participant, add(self.window_start(participant), days * SECONDS_PER_DAY)
            )
        ctx.emit(
            "harvest",
            staker=participant,
            amount=total,
            balance=balance,
            timestamp=ctx.timestamp,
        )
        return total

    # ------------------------------------------------------------------ #
    # Operations
    # ------------------------------------------------------------------ #

    def deposit(self, ctx: CallContext, amount: int) -> int:
        """Stake `amount` for the caller. Returns the new balance."""
        require_active(self.ledger)
        require_amount(amount)
        if amount < self.limits.min_stake:
            raise InvalidAmount("deposit below minimum stake", amount=amount, minimum=self.limits.min_stake)

        p = ctx.caller
        self.settle(p, ctx.timestamp)

        balance = add(self.ledger.get_balance(p), amount)
        self.ledger.set_balance(p, balance)
        self.ledger.set_total_staked(add(self.ledger.total_staked(), amount))
        self.ledger.set_risk(p, add(self.ledger.get_risk(p), amount // self.limits.risk_granularity))
        if self.ledger.insurance_active():
            self.ledger.set_coverage(p, amount)

        ctx.emit("stake", staker=p, amount=amount, balance=balance, timestamp=ctx.timestamp)
        return balance

    def withdraw(self, ctx: CallContext, amount: int) -> int:
        """Unstake `amount` for the caller. Returns the new balance."""
        require_active(self.ledger)
        require_amount(amount)

        p = ctx.caller
        have = self.ledger.get_balance(p)
        if have < amount:
            raise InsufficientBalance(holder=p, have=have, need=amount)

        self._fold(ctx, p)

        balance = sub(self.ledger.get_balance(p), amount)
        self.ledger.set_balance(p, balance)
        self.ledger.set_total_staked(sub(self.ledger.total_staked(), amount))
        if self.ledger.insurance_active():
            self.ledger.set_coverage(p, balance)

        ctx.emit("unstake", staker=p, amount=amount, balance=balance, timestamp=ctx.timestamp)
        return balance

    def harvest(self, ctx: CallContext) -> int:
        """Fold the caller's pending yield into their balance. Returns the amount."""
        require_active(self.ledger)
        total = self._fold(ctx, ctx.caller)
        if total == 0:
            raise NoYieldAvailable(elapsed=max(0, ctx.timestamp - self.window_start(ctx.caller)))
        return total


__all__ = ["StakingEngine"]
