"""
staking.state.events — pluggable sinks for committed ledger events.

Events are buffered on the CallContext while a call runs and handed to a sink
only after the call commits, so a sink never sees events of a reverted call.
Three backends ship here:

- InMemoryEventSink: fast, test/dev friendly; keeps all records in RAM.
- JsonlEventSink: append-only JSONL file; durable and simple to operate.
- NullEventSink: no-op sink for hosts that do not keep an event log.

Ordering
--------
Records carry ``(sequence, log_index)``: `sequence` numbers committed calls
(strictly increasing), `log_index` numbers events inside a call in emission
order. Both are assigned by the protocol facade.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Protocol, runtime_checkable

from ..types.events import StakingEvent

log = logging.getLogger(__name__)

# Arg keys that name a participant; used by the principal filter.
_PRINCIPAL_KEYS = ("staker", "sender", "recipient", "caller", "owner")


# =============================================================================
# Public data model
# =============================================================================


@dataclass(frozen=True)
class EventRecord:
    """
    A committed event with its call context.

    Fields
    ------
    sequence : int
        Number of the committed call that emitted the event (1-based).
    log_index : int
        0-based index of the event inside that call.
    timestamp : int
        Ledger timestamp of the call.
    caller : str
        Principal that made the call.
    op : str
        Operation name, e.g. "deposit".
    event : StakingEvent
    """

    sequence: int
    log_index: int
    timestamp: int
    caller: str
    op: str
    event: StakingEvent

    @property
    def name(self) -> str:
        return self.event.name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seq": self.sequence,
            "log_index": self.log_index,
            "ts": self.timestamp,
            "caller": self.caller,
            "op": self.op,
            "event": self.event.to_dict(),
        }

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]) -> "EventRecord":
        return cls(
            sequence=int(obj["seq"]),
            log_index=int(obj["log_index"]),
            timestamp=int(obj["ts"]),
            caller=str(obj["caller"]),
            op=str(obj["op"]),
            event=StakingEvent.from_dict(obj["event"]),
        )


# =============================================================================
# Sink interface
# =============================================================================


@runtime_checkable
class EventSink(Protocol):
    def append(
        self,
        event: StakingEvent,
        *,
        sequence: int,
        log_index: int,
        timestamp: int,
        caller: str,
        op: str,
    ) -> EventRecord:
        """Append a single committed event. Returns the stored record."""

    def get_events(
        self,
        *,
        name: Optional[str] = None,
        principal: Optional[str] = None,
        from_sequence: Optional[int] = None,
        to_sequence: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Iterable[EventRecord]:
        """Iterate matching records in ascending (sequence, log_index) order."""

    def flush(self) -> None:
        """Force persistence, if applicable."""

    def close(self) -> None:
        """Release resources (files, buffers)."""


# =============================================================================
# Common filter logic
# =============================================================================


def _record_matches(
    rec: EventRecord,
    name: Optional[str],
    principal: Optional[str],
    from_sequence: Optional[int],
    to_sequence: Optional[int],
) -> bool:
    if from_sequence is not None and rec.sequence < from_sequence:
        return False
    if to_sequence is not None and rec.sequence > to_sequence:
        return False
    if name is not None and rec.name != name:
        return False
    if principal is not None:
        if rec.caller != principal and all(rec.event.get(k) != principal for k in _PRINCIPAL_KEYS):
            return False
    return True


def _make_record(
    event: StakingEvent, sequence: int, log_index: int, timestamp: int, caller: str, op: str
) -> EventRecord:
    return EventRecord(
        sequence=sequence,
        log_index=log_index,
        timestamp=timestamp,
        caller=caller,
        op=op,
        event=event,
    )


# =============================================================================
# In-memory sink
# =============================================================================


class InMemoryEventSink(EventSink):
    """
    A simple, thread-safe in-memory sink.

    Keeps everything in RAM; intended for tests and short-lived hosts.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._records: List[EventRecord] = []

    def append(
        self,
        event: StakingEvent,
        *,
        sequence: int,
        log_index: int,
        timestamp: int,
        caller: str,
        op: str,
    ) -> EventRecord:
        rec = _make_record(event, sequence, log_index, timestamp, caller, op)
        with self._lock:
            self._records.append(rec)
        return rec

    def get_events(
        self,
        *,
        name: Optional[str] = None,
        principal: Optional[str] = None,
        from_sequence: Optional[int] = None,
        to_sequence: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Iterable[EventRecord]:
        with self._lock:
            matches = [
                rec
                for rec in self._records
                if _record_matches(rec, name, principal, from_sequence, to_sequence)
            ]
        return matches if limit is None else matches[:limit]

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def names(self) -> List[str]:
        with self._lock:
            return [r.name for r in self._records]

    def flush(self) -> None:
        return

    def close(self) -> None:
        with self._lock:
            self._records.clear()


# =============================================================================
# JSONL sink (durable)
# =============================================================================


class JsonlEventSink(EventSink):
    """
    Append-only JSONL sink. Each line is one EventRecord:

        {"seq": 3, "log_index": 0, "ts": 1700000000, "caller": "SP…",
         "op": "deposit", "event": {"event": "stake", "staker": "SP…", "amount": 1000000}}

    `flush()` fsyncs the file descriptor. One instance should be shared per file.
    """

    def __init__(self, path: str) -> None:
        self._path = path
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        self._fh = open(path, "a+", encoding="utf-8", buffering=1)  # line-buffered
        self._lock = threading.RLock()

    @property
    def path(self) -> str:
        return self._path

    def append(
        self,
        event: StakingEvent,
        *,
        sequence: int,
        log_index: int,
        timestamp: int,
        caller: str,
        op: str,
    ) -> EventRecord:
        rec = _make_record(event, sequence, log_index, timestamp, caller, op)
        line = json.dumps(rec.to_dict(), separators=(",", ":"))
        with self._lock:
            self._fh.write(line + "\n")
        return rec

    def get_events(
        self,
        *,
        name: Optional[str] = None,
        principal: Optional[str] = None,
        from_sequence: Optional[int] = None,
        to_sequence: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Iterable[EventRecord]:
        out: List[EventRecord] = []
        with self._lock:
            self._fh.flush()
            self._fh.seek(0)
            for line in self._fh:
                if not line.strip():
                    continue
                try:
                    rec = EventRecord.from_dict(json.loads(line))
                except (ValueError, KeyError, TypeError) as e:
                    log.warning("Skipping malformed event line: %s (%r)", line[:120], e)
                    continue
                if _record_matches(rec, name, principal, from_sequence, to_sequence):
                    out.append(rec)
                    if limit is not None and len(out) >= limit:
                        break
        return out

    def flush(self) -> None:
        with self._lock:
            self._fh.flush()
            os.fsync(self._fh.fileno())

    def close(self) -> None:
        with self._lock:
            if not self._fh.closed:
                self._fh.flush()
                self._fh.close()


# =============================================================================
# Null sink
# =============================================================================


class NullEventSink(EventSink):
    """A sink that drops everything."""

    def append(
        self,
        event: StakingEvent,
        *,
        sequence: int,
        log_index: int,
        timestamp: int,
        caller: str,
        op: str,
    ) -> EventRecord:
        return _make_record(event, sequence, log_index, timestamp, caller, op)

    def get_events(self, **_: Any) -> Iterable[EventRecord]:
        return []

    def flush(self) -> None:
        return

    def close(self) -> None:
        return


def open_sink(path: Optional[str]) -> EventSink:
    """JSONL sink at `path`, or an in-memory sink when `path` is empty/None."""
    if path:
        return JsonlEventSink(path)
    return InMemoryEventSink()


__all__ = [
    "EventRecord",
    "EventSink",
    "InMemoryEventSink",
    "JsonlEventSink",
    "NullEventSink",
    "open_sink",
]
