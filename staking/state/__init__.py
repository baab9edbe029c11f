"""
staking.state — ledger state subsystem (records, journal, access tracking, events).

To keep import-time overhead low and avoid circulars, the common symbols are
lazily re-exported from their submodules on first access.

Submodules:
- accounts:       ParticipantAccount records
- protocol:       ProtocolState and DistributionRecord
- journal:        Journaling writes, checkpoints, revert/commit
- access_tracker: Touched-slot tracking and restricted scopes
- ledger:         LedgerStore, the keyed store the engines write through
- events:         Event sink backends
"""

from __future__ import annotations

from importlib import import_module as _imp
from typing import Any, Dict, Tuple

_exports: Dict[str, Tuple[str, str]] = {
    "ParticipantAccount": ("accounts", "ParticipantAccount"),
    "ProtocolState": ("protocol", "ProtocolState"),
    "DistributionRecord": ("protocol", "DistributionRecord"),
    "Journal": ("journal", "Journal"),
    "AccessTracker": ("access_tracker", "AccessTracker"),
    "LedgerStore": ("ledger", "LedgerStore"),
    "EventSink": ("events", "EventSink"),
    "EventRecord": ("events", "EventRecord"),
    "InMemoryEventSink": ("events", "InMemoryEventSink"),
    "JsonlEventSink": ("events", "JsonlEventSink"),
    "NullEventSink": ("events", "NullEventSink"),
}

__all__ = tuple(_exports.keys())


def __getattr__(name: str) -> Any:
    """
    Lazy attribute loader to avoid import-time dependency tangles.
    """
    if name in _exports:
        submod, symbol = _exports[name]
        mod = _imp(f"{__name__}.{submod}")
        return getattr(mod, symbol)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__() -> list[str]:  # pragma: no cover
    return sorted(list(globals().keys()) + list(__all__))
