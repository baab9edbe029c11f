# -*- coding: utf-8 -*-
"""
staking.math
============

Checked unsigned-integer arithmetic for the staking ledger.

Every quantity the ledger stores (balances, totals, timestamps, rates) lives in
the closed range ``[0, UINT_MAX]`` where ``UINT_MAX = 2**128 - 1``. Python ints
never wrap, so the helpers here compute exactly and then check the envelope:
a result outside it raises :class:`~staking.errors.ArithmeticOverflow` instead
of being clamped or truncated.

Conventions
-----------
- Integer-only; floats are rejected with ``TypeError``.
- ``bool`` is not accepted as an integer.
- Underflow (``y > x`` on subtract) is an overflow of the envelope.
"""

from __future__ import annotations

from typing import Final

from staking.errors import ArithmeticOverflow

UINT_MAX: Final[int] = (1 << 128) - 1

# basis points denominator
BPS_DEN: Final[int] = 10_000


def is_uint(x: object) -> bool:
    return isinstance(x, int) and not isinstance(x, bool) and 0 <= x <= UINT_MAX


def require_uint(name: str, x: int) -> int:
    """Return ``x`` if it is a uint, otherwise raise (TypeError / ArithmeticOverflow)."""
    if not isinstance(x, int) or isinstance(x, bool):
        raise TypeError(f"{name} must be int")
    if x < 0 or x > UINT_MAX:
        raise ArithmeticOverflow(f"{name} outside uint range", op="range", data={"value": str(x)})
    return x


def _checked(op: str, r: int) -> int:
    if r < 0 or r > UINT_MAX:
        raise ArithmeticOverflow(f"{op} result outside uint range", op=op)
    return r


def add(x: int, y: int) -> int:
    """Checked add."""
    require_uint("x", x)
    require_uint("y", y)
    return _checked("add", x + y)


def sub(x: int, y: int) -> int:
    """Checked sub: raises on underflow (y > x)."""
    require_uint("x", x)
    require_uint("y", y)
    return _checked("sub", x - y)


__all__ = [
    "UINT_MAX",
    "BPS_DEN",
    "is_uint",
    "require_uint",
    "add",
    "sub",
]
