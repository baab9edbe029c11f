# -*- coding: utf-8 -*-
"""
staking.math.yield_curve — simple-interest accrual in whole days.

    days  = elapsed_seconds // SECONDS_PER_DAY
    yield = (principal * rate_bps * days) // (DAYS_PER_YEAR * BPS_DEN)

Partial days contribute nothing and every division floors, so accrual never
rounds in the participant's favour. The product is evaluated exactly; only the
final quotient is range checked.

Example
-------
>>> compute_yield(1_000_000, 86_400, 750)
205
"""

from __future__ import annotations

from typing import Final

from staking.errors import ArithmeticOverflow

from . import BPS_DEN, UINT_MAX, require_uint

SECONDS_PER_DAY: Final[int] = 86_400
DAYS_PER_YEAR: Final[int] = 365
YEAR_BPS_DEN: Final[int] = DAYS_PER_YEAR * BPS_DEN


def elapsed_days(elapsed_seconds: int) -> int:
    """Whole days contained in ``elapsed_seconds``."""
    require_uint("elapsed_seconds", elapsed_seconds)
    return elapsed_seconds // SECONDS_PER_DAY


def compute_yield(principal: int, elapsed_seconds: int, rate_bps: int) -> int:
    """
    Yield owed on ``principal`` for ``elapsed_seconds`` at ``rate_bps``.

    Zero whenever less than one full day has elapsed. Monotonically
    non-decreasing in each argument.
    """
    require_uint("principal", principal)
    require_uint("rate_bps", rate_bps)
    days = elapsed_days(elapsed_seconds)
    if days == 0 or principal == 0 or rate_bps == 0:
        return 0
    owed = (principal * rate_bps * days) // YEAR_BPS_DEN
    if owed > UINT_MAX:
        raise ArithmeticOverflow("yield exceeds uint range", op="compute_yield")
    return owed


__all__ = [
    "SECONDS_PER_DAY",
    "DAYS_PER_YEAR",
    "YEAR_BPS_DEN",
    "elapsed_days",
    "compute_yield",
]
