"""
staking.types.result — CallResult container for one ledger call.

`CallResult` is what `StakingProtocol.apply(...)` returns instead of raising.

Fields
------
* op      : str         — operation name (e.g. "deposit")
* status  : CallStatus  — SUCCESS / REVERT
* value   : Any         — operation return value on success (uint / bool / None)
* events  : tuple[StakingEvent, ...] — emitted events, empty on revert
* error   : Optional[dict] — StakingError.to_dict() on revert
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from .events import StakingEvent
from .status import CallStatus


@dataclass(frozen=True)
class CallResult:
    op: str
    status: CallStatus
    value: Any = None
    events: Tuple[StakingEvent, ...] = ()
    error: Optional[Dict[str, Any]] = None

    def __init__(
        self,
        *,
        op: str,
        status: CallStatus,
        value: Any = None,
        events: Iterable[StakingEvent] = (),
        error: Optional[Dict[str, Any]] = None,
    ):
        events_t = tuple(events)
        for i, ev in enumerate(events_t):
            if not isinstance(ev, StakingEvent):
                raise TypeError(f"events[{i}] is not a StakingEvent (got {type(ev).__name__})")
        if status is CallStatus.REVERT and events_t:
            raise ValueError("a reverted call cannot carry events")
        object.__setattr__(self, "op", op)
        object.__setattr__(self, "status", status)
        object.__setattr__(self, "value", value)
        object.__setattr__(self, "events", events_t)
        object.__setattr__(self, "error", error)

    @property
    def is_success(self) -> bool:
        return self.status.is_success

    @property
    def error_code(self) -> Optional[str]:
        return None if self.error is None else self.error.get("code")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "op": self.op,
            "status": str(self.status),
            "value": self.value,
            "events": [ev.to_dict() for ev in self.events],
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "CallResult":
        return cls(
            op=str(d["op"]),
            status=CallStatus.from_str(str(d.get("status", ""))),
            value=d.get("value"),
            events=[StakingEvent.from_dict(x) for x in d.get("events") or []],
            error=d.get("error"),
        )

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        tail = f"error={self.error_code}" if self.error else f"value={self.value!r}"
        return f"CallResult(op={self.op}, status={self.status.code}, {tail}, events={len(self.events)})"


__all__ = ["CallResult"]
