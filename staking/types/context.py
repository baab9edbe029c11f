"""
staking.types.context — per-call execution context.

The host authenticates the caller and reads the clock; the ledger only sees the
result of both, frozen for the duration of one call. Events emitted while the
call runs are buffered on the context and only published if the call commits.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List

from .events import StakingEvent


@dataclass(frozen=True)
class CallContext:
    """
    Attributes:
        caller:    verified principal invoking the call
        timestamp: Unix seconds (non-decreasing across calls)
        events:    buffer of events emitted by this call, in order
    """
    caller: str
    timestamp: int
    events: List[StakingEvent] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not isinstance(self.caller, str) or not self.caller:
            raise ValueError("caller must be a non-empty principal string")
        if not isinstance(self.timestamp, int) or self.timestamp < 0:
            raise ValueError("timestamp must be a non-negative int")

    def emit(self, name: str, **args: Any) -> StakingEvent:
        ev = StakingEvent(name=name, args=args)
        self.events.append(ev)
        return ev


__all__ = ["CallContext"]
