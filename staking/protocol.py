"""
staking.protocol — the ledger facade hosts talk to.

StakingProtocol owns one LedgerStore plus the engines that operate on it and
executes every mutating operation as a single all-or-nothing call:

    lock
      ctx = CallContext(caller, clock.now())
      ledger.begin()
      value = engine.op(ctx, ...)
      ok   → ledger.commit(); publish ctx.events to the sink
      fail → ledger.revert(); drop ctx.events; re-raise
    unlock

Calls are serialized by a re-entrant lock, so a protocol instance may be
shared between threads. Caller identity is passed explicitly with each call;
authenticating it is the host's job.

Two calling styles are offered:

    proto.deposit(alice, 1_000_000)                    # raises StakingError
    proto.apply(Call("deposit", alice, {"amount": 1_000_000}))  # CallResult
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from staking import metrics
from staking.clock import Clock, SystemClock
from staking.config import StakingConfig, get_config
from staking.engine.distribution import DistributionPhase, DistributionStateMachine
from staking.engine.governance import GovernanceSurface
from staking.engine.queries import ProtocolMetrics, ProtocolQueries, StakerInfo
from staking.engine.staking import StakingEngine
from staking.engine.transfers import TransferEngine
from staking.errors import StakingError, error_to_result_fields
from staking.state.access_tracker import AccessSet
from staking.state.events import EventSink, open_sink
from staking.state.ledger import LedgerStore
from staking.state.protocol import DistributionRecord
from staking.types.context import CallContext
from staking.types.events import StakingEvent
from staking.types.principal import C32PrincipalValidator, PrincipalValidator
from staking.types.result import CallResult
from staking.types.status import CallStatus

log = logging.getLogger(__name__)

# Operations reachable through `apply`.
MUTATING_OPS = (
    "initialize",
    "update_rate",
    "toggle_insurance",
    "set_token_uri",
    "deposit",
    "withdraw",
    "harvest",
    "distribute",
    "transfer",
    "secure_transfer",
)


@dataclass(frozen=True)
class Call:
    """One serialized ledger call: operation name, caller, keyword args."""
    op: str
    caller: str
    args: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Call":
        return cls(op=str(d["op"]), caller=str(d["caller"]), args=dict(d.get("args") or {}))


class StakingProtocol:
    def __init__(
        self,
        owner: str,
        *,
        config: Optional[StakingConfig] = None,
        clock: Optional[Clock] = None,
        validator: Optional[PrincipalValidator] = None,
        sink: Optional[EventSink] = None,
        ledger: Optional[LedgerStore] = None,
    ) -> None:
        if not isinstance(owner, str) or not owner:
            raise ValueError("owner must be a non-empty principal string")
        self.owner = owner
        self.config = config or get_config()
        self.clock = clock or SystemClock()
        self.validator = validator or C32PrincipalValidator()
        self.sink = sink if sink is not None else open_sink(self.config.event_log_path)
        self.ledger = ledger if ledger is not None else LedgerStore()

        limits = self.config.limits
        self.governance = GovernanceSurface(self.ledger, limits, owner)
        self.staking = StakingEngine(self.ledger, limits)
        self.distribution = DistributionStateMachine(self.ledger, limits, owner)
        self.transfers = TransferEngine(self.ledger, self.validator, self.staking)
        self.queries = ProtocolQueries(self.ledger, self.config, self.staking, self.distribution)

        self._lock = threading.RLock()
        self._seq = 0
        self._depth = 0
        self._last_access: Optional[AccessSet] = None

    @classmethod
    def from_state(cls, owner: str, state: Mapping[str, Any], **kwargs: Any) -> "StakingProtocol":
        """Rebuild a protocol over a ledger previously exported with `export_state`."""
        return cls(owner, ledger=LedgerStore.from_state(state), **kwargs)

    # ------------------------------------------------------------------ #
    # Call execution
    # ------------------------------------------------------------------ #

    def _run(self, op: str, caller: str, fn: Callable[..., Any], *args: Any) -> Tuple[Any, List[StakingEvent]]:
        with self._lock, metrics.time_call(op):
            if self._depth == 0:
                self.ledger.access.clear()
            ctx = CallContext(caller=caller, timestamp=self.clock.now())
            self._depth += 1
            self.ledger.begin()
            try:
                value = fn(ctx, *args)
            except Exception as exc:
                self.ledger.revert()
                if isinstance(exc, StakingError):
                    metrics.observe_call(op=op, ok=False, error_code=exc.code)
                    log.warning("%s reverted: caller=%s ts=%d %s", op, caller, ctx.timestamp, exc)
                else:
                    metrics.observe_call(op=op, ok=False, error_code=type(exc).__name__)
                    log.exception("%s failed: caller=%s ts=%d", op, caller, ctx.timestamp)
                raise
            else:
                self.ledger.commit()
            finally:
                self._depth -= 1
                if self._depth == 0:
                    self._last_access = self.ledger.touched()

            self._publish(op, ctx)
            metrics.observe_call(op=op, ok=True)
            log.debug("%s ok: caller=%s ts=%d value=%r events=%d", op, caller, ctx.timestamp, value, len(ctx.events))
            return value, list(ctx.events)

    def _publish(self, op: str, ctx: CallContext) -> None:
        self._seq += 1
        harvested = 0
        for i, ev in enumerate(ctx.events):
            self.sink.append(
                ev,
                sequence=self._seq,
                log_index=i,
                timestamp=ctx.timestamp,
                caller=ctx.caller,
                op=op,
            )
            if ev.name == "harvest":
                harvested += ev.get("amount", 0)
            elif ev.name == "distribute":
                metrics.observe_yield(distributed=ev.get("amount", 0))
        if harvested:
            metrics.observe_yield(harvested=harvested)

    def apply(self, call: Call) -> CallResult:
        """Execute `call`; StakingErrors become a REVERT result instead of raising."""
        if call.op not in MUTATING_OPS:
            raise ValueError(f"unknown operation: {call.op!r}")
        fn = getattr(self, "_op_" + call.op)
        try:
            value, events = fn(call.caller, **call.args)
        except StakingError as e:
            fields_ = error_to_result_fields(e)
            return CallResult(op=call.op, status=CallStatus.from_str(fields_["status"]), error=fields_["error"])
        return CallResult(op=call.op, status=CallStatus.SUCCESS, value=value, events=events)

    # ------------------------------------------------------------------ #
    # Operations (raise on failure)
    # ------------------------------------------------------------------ #

    def _op_initialize(self, caller: str, rate: int):
        return self._run("initialize", caller, self.governance.initialize, rate)

    def _op_update_rate(self, caller: str, rate: int):
        return self._run("update_rate", caller, self.governance.update_rate, rate)

    def _op_toggle_insurance(self, caller: str, enable: bool):
        return self._run("toggle_insurance", caller, self.governance.toggle_insurance, enable)

    def _op_set_token_uri(self, caller: str, uri: Optional[str]):
        return self._run("set_token_uri", caller, self.governance.set_token_uri, uri)

    def _op_deposit(self, caller: str, amount: int):
        return self._run("deposit", caller, self.staking.deposit, amount)

    def _op_withdraw(self, caller: str, amount: int):
        return self._run("withdraw", caller, self.staking.withdraw, amount)

    def _op_harvest(self, caller: str):
        return self._run("harvest", caller, self.staking.harvest)

    def _op_distribute(self, caller: str):
        return self._run("distribute", caller, self.distribution.distribute)

    def _op_transfer(self, caller: str, amount: int, sender: str, recipient: str, memo: Optional[bytes] = None):
        return self._run("transfer", caller, self.transfers.transfer, amount, sender, recipient, memo)

    def _op_secure_transfer(self, caller: str, amount: int, recipient: str):
        return self._run("secure_transfer", caller, self.transfers.secure_transfer, amount, recipient)

    def initialize(self, caller: str, rate: int) -> bool:
        with self._lock:
            value, _ = self._op_initialize(caller, rate)
            log.info("protocol initialized: rate=%dbps ts=%d", rate, self.ledger.last_distribution_time())
        return value

    def update_rate(self, caller: str, rate: int) -> bool:
        return self._op_update_rate(caller, rate)[0]

    def toggle_insurance(self, caller: str, enable: bool) -> bool:
        return self._op_toggle_insurance(caller, enable)[0]

    def set_token_uri(self, caller: str, uri: Optional[str]) -> bool:
        return self._op_set_token_uri(caller, uri)[0]

    def deposit(self, caller: str, amount: int) -> int:
        return self._op_deposit(caller, amount)[0]

    def withdraw(self, caller: str, amount: int) -> int:
        return self._op_withdraw(caller, amount)[0]

    def harvest(self, caller: str) -> int:
        return self._op_harvest(caller)[0]

    def distribute(self, caller: str) -> int:
        with self._lock:
            amount, _ = self._op_distribute(caller)
            log.info(
                "distribution #%d: amount=%d tvl=%d",
                self.ledger.distribution_count(),
                amount,
                self.ledger.total_staked(),
            )
        return amount

    def transfer(self, caller: str, amount: int, sender: str, recipient: str, memo: Optional[bytes] = None) -> bool:
        return self._op_transfer(caller, amount, sender, recipient, memo)[0]

    def secure_transfer(self, caller: str, amount: int, recipient: str) -> bool:
        return self._op_secure_transfer(caller, amount, recipient)[0]

    # ------------------------------------------------------------------ #
    # Read-only accessors
    # ------------------------------------------------------------------ #

    def name(self) -> str:
        return self.queries.name()

    def symbol(self) -> str:
        return self.queries.symbol()

    def decimals(self) -> int:
        return self.queries.decimals()

    def balance_of(self, principal: str) -> int:
        with self._lock:
            return self.queries.balance_of(principal)

    def total_supply(self) -> int:
        with self._lock:
            return self.queries.total_supply()

    def token_uri(self) -> Optional[str]:
        with self._lock:
            return self.queries.token_uri()

    def staker_info(self, principal: str) -> StakerInfo:
        with self._lock:
            return self.queries.staker_info(principal)

    def protocol_metrics(self) -> ProtocolMetrics:
        with self._lock:
            return self.queries.protocol_metrics()

    def pending_yield(self, principal: str, now: Optional[int] = None) -> int:
        with self._lock:
            return self.queries.pending_yield(principal, self.clock.now() if now is None else now)

    def can_distribute(self, now: Optional[int] = None) -> bool:
        with self._lock:
            return self.queries.can_distribute(self.clock.now() if now is None else now)

    def distribution_phase(self, now: Optional[int] = None) -> DistributionPhase:
        with self._lock:
            return self.distribution.phase(self.clock.now() if now is None else now)

    def distributions(self) -> List[DistributionRecord]:
        with self._lock:
            return self.ledger.distributions()

    def get_distribution(self, sequence: int) -> Optional[DistributionRecord]:
        with self._lock:
            return self.ledger.get_distribution(sequence)

    def allowance(self, owner: str, spender: str) -> int:
        with self._lock:
            return self.ledger.get_allowance(owner, spender)

    def last_access(self) -> Optional[AccessSet]:
        """Slots touched by the most recent call; empty after a reverted call."""
        return self._last_access

    def export_state(self) -> Dict[str, Any]:
        with self._lock:
            return self.ledger.export_state()


__all__ = ["MUTATING_OPS", "Call", "StakingProtocol"]
