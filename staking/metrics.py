"""
staking.metrics — Prometheus counters & histograms for the staking ledger.

Centralized registry: hosts call `get_registry()` / `generate_latest_text()` to
expose metrics over HTTP. `observe_call(...)` and `time_call(...)` cover the
common paths and are what the protocol facade uses.

Exposed metrics (names are prefixed with `staking_`):
  - calls_total{op,result}        : Counter — ledger calls by outcome
  - call_errors_total{code}       : Counter — reverted calls by error code
  - yield_distributed_total       : Counter — units announced by distributions
  - yield_harvested_total         : Counter — units folded into balances
  - call_seconds{op}              : Histogram — wall time per call

Labels:
  - result ∈ {success, revert}
  - op     ∈ {initialize, deposit, withdraw, harvest, distribute, transfer,
             secure_transfer, update_rate, toggle_insurance, set_token_uri, other}
"""

from __future__ import annotations

import os
import threading
import time
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from prometheus_client import (CONTENT_TYPE_LATEST, CollectorRegistry, Counter,
                               Histogram, generate_latest)

_PREFIX = "staking_"

KNOWN_OPS = frozenset(
    {
        "initialize",
        "deposit",
        "withdraw",
        "harvest",
        "distribute",
        "transfer",
        "secure_transfer",
        "update_rate",
        "toggle_insurance",
        "set_token_uri",
    }
)


def _buckets_from_env(name: str, default: Iterable[float]) -> Iterable[float]:
    raw = os.getenv(name)
    if not raw:
        return default
    out = []
    for tok in raw.split(","):
        tok = tok.strip()
        if not tok:
            continue
        try:
            out.append(float(tok))
        except ValueError:
            continue
    return out or default


_CALL_SECONDS_BUCKETS = tuple(_buckets_from_env(
    "STAKING_METRICS_CALL_SECONDS_BUCKETS",
    # 50µs .. 1s
    (0.00005, 0.0001, 0.00025, 0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 1.0),
))


# ------------------------------ registry & ctor ------------------------------

_lock = threading.Lock()
_registry: Optional[CollectorRegistry] = None

CALLS_TOTAL: Counter
CALL_ERRORS_TOTAL: Counter
YIELD_DISTRIBUTED_TOTAL: Counter
YIELD_HARVESTED_TOTAL: Counter
CALL_SECONDS: Histogram


def get_registry() -> CollectorRegistry:
    """Return the metrics registry, creating it (and the metrics) on first use."""
    global _registry
    with _lock:
        if _registry is None:
            _registry = CollectorRegistry()
            _build_metrics(_registry)
        return _registry


def _build_metrics(reg: CollectorRegistry) -> None:
    global CALLS_TOTAL, CALL_ERRORS_TOTAL, YIELD_DISTRIBUTED_TOTAL, YIELD_HARVESTED_TOTAL, CALL_SECONDS

    CALLS_TOTAL = Counter(
        _PREFIX + "calls_total",
        "Ledger calls executed (by op and result).",
        labelnames=("op", "result"),
        registry=reg,
    )
    CALL_ERRORS_TOTAL = Counter(
        _PREFIX + "call_errors_total",
        "Reverted ledger calls (by error code).",
        labelnames=("code",),
        registry=reg,
    )
    YIELD_DISTRIBUTED_TOTAL = Counter(
        _PREFIX + "yield_distributed_total",
        "Yield announced by global distributions (base units).",
        registry=reg,
    )
    YIELD_HARVESTED_TOTAL = Counter(
        _PREFIX + "yield_harvested_total",
        "Yield folded into participant balances (base units).",
        registry=reg,
    )
    CALL_SECONDS = Histogram(
        _PREFIX + "call_seconds",
        "Wall time to execute one ledger call.",
        labelnames=("op",),
        buckets=_CALL_SECONDS_BUCKETS,
        registry=reg,
    )


# ------------------------------ helpers -------------------------------------


def _norm_op(op: str) -> str:
    op = (op or "").strip().lower()
    return op if op in KNOWN_OPS else "other"


def observe_call(*, op: str, ok: bool, error_code: Optional[str] = None) -> None:
    """Record the outcome of one ledger call."""
    get_registry()
    CALLS_TOTAL.labels(op=_norm_op(op), result="success" if ok else "revert").inc()
    if not ok:
        CALL_ERRORS_TOTAL.labels(code=error_code or "UNKNOWN").inc()


def observe_yield(*, distributed: int = 0, harvested: int = 0) -> None:
    get_registry()
    if distributed > 0:
        YIELD_DISTRIBUTED_TOTAL.inc(distributed)
    if harvested > 0:
        YIELD_HARVESTED_TOTAL.inc(harvested)


@dataclass
class _TimerCtx:
    h: Histogram
    labels: Dict[str, str]
    t0: float

    def stop(self) -> float:
        dt = max(0.0, time.perf_counter() - self.t0)
        self.h.labels(**self.labels).observe(dt)
        return dt

    def __enter__(self) -> "_TimerCtx":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()


def time_call(op: str) -> _TimerCtx:
    """
    Context manager timing one ledger call.

    Example:
        with time_call("deposit"):
            protocol.deposit(caller, amount)
    """
    get_registry()
    return _TimerCtx(h=CALL_SECONDS, labels={"op": _norm_op(op)}, t0=time.perf_counter())


def generate_latest_text() -> bytes:
    """Prometheus exposition for the staking registry."""
    return generate_latest(get_registry())


def sample_value(name: str, labels: Optional[Dict[str, str]] = None) -> Optional[float]:
    """Current value of a sample in the staking registry (tests/diagnostics)."""
    return get_registry().get_sample_value(name, labels or {})


__all__ = [
    "CONTENT_TYPE_LATEST",
    "get_registry",
    "observe_call",
    "observe_yield",
    "time_call",
    "generate_latest_text",
    "sample_value",
]
