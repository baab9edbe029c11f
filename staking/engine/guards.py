# -*- coding: utf-8 -*-
"""
staking.engine.guards
=====================

Precondition helpers shared by the engines. Each helper either returns
(possibly a normalized value) or raises the matching StakingError; none of
them writes to the ledger.

    require_owner(owner, caller)
    require_active(ledger)
    require_amount(amount)          -> int, strictly positive uint
    require_rate(rate, limits)      -> int, inside [min, max]
"""
from __future__ import annotations

from staking.config import Limits
from staking.errors import InvalidAmount, InvalidRate, NotActive, Unauthorized
from staking.math import is_uint
from staking.state.ledger import LedgerStore


def require_owner(owner: str, caller: str) -> None:
    if caller != owner:
        raise Unauthorized("owner only", caller=caller, required="owner")


def require_active(ledger: LedgerStore) -> None:
    if not ledger.is_active():
        raise NotActive()


def require_amount(amount: int) -> int:
    if not is_uint(amount) or amount == 0:
        raise InvalidAmount("amount must be a positive uint", amount=amount if isinstance(amount, int) else None)
    return amount


def require_rate(rate: int, limits: Limits) -> int:
    if not is_uint(rate) or not (limits.min_yield_rate <= rate <= limits.max_yield_rate):
        raise InvalidRate(
            rate=rate if isinstance(rate, int) else None,
            min_rate=limits.min_yield_rate,
            max_rate=limits.max_yield_rate,
        )
    return rate


__all__ = ["require_owner", "require_active", "require_amount", "require_rate"]
