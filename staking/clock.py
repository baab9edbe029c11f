"""
staking.clock — time providers for the ledger.

The ledger never reads the wall clock directly: every call gets its timestamp
from a Clock. Timestamps are Unix seconds and must not decrease between calls.

- SystemClock: wall clock, clamped so it never goes backwards.
- ManualClock: fully host-controlled; used by tests and replay tools.
"""

from __future__ import annotations

import threading
import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    def now(self) -> int:
        """Current ledger time in Unix seconds."""


class SystemClock:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._last = 0

    def now(self) -> int:
        with self._lock:
            t = max(int(time.time()), self._last)
            self._last = t
            return t


class ManualClock:
    def __init__(self, start: int = 0) -> None:
        if start < 0:
            raise ValueError("start must be non-negative")
        self._t = int(start)

    def now(self) -> int:
        return self._t

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("clock cannot move backwards")
        self._t += int(seconds)
        return self._t

    def set(self, t: int) -> int:
        if t < self._t:
            raise ValueError(f"clock cannot move backwards ({t} < {self._t})")
        self._t = int(t)
        return self._t


__all__ = ["Clock", "SystemClock", "ManualClock"]
