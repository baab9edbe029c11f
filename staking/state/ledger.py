"""
staking.state.ledger — the keyed ledger store.

LedgerStore is the only owner of participant records, the protocol record, the
distribution history and the allowance table. It offers one getter and one
setter per field and validates nothing beyond the uint envelope: business
preconditions are the engines' job. Each setter touches exactly one field.

All writes flow through two layers:

  AccessTracker  → records the slot, refuses writes outside a restricted scope
  Journal        → stages the value in the top overlay so a call can revert

Call scoping
------------
    marker = ledger.begin()
    try:
        ...writes...
    except StakingError:
        ledger.revert()
        raise
    else:
        ledger.commit()

`commit()` at the outermost level applies staged writes to the base containers.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from staking.math import add, require_uint

from .access_tracker import AccessSet, AccessTracker, Slot
from .accounts import ParticipantAccount
from .journal import Journal
from .protocol import DistributionRecord, ProtocolState


class LedgerStore:
    def __init__(
        self,
        *,
        accounts: Optional[Dict[str, ParticipantAccount]] = None,
        protocol: Optional[ProtocolState] = None,
        distributions: Optional[List[DistributionRecord]] = None,
        allowances: Optional[Dict[Tuple[str, str], int]] = None,
    ) -> None:
        self._accounts: Dict[str, ParticipantAccount] = accounts if accounts is not None else {}
        self._protocol = protocol if protocol is not None else ProtocolState()
        self._distributions: List[DistributionRecord] = distributions if distributions is not None else []
        self._allowances: Dict[Tuple[str, str], int] = allowances if allowances is not None else {}
        self.journal = Journal(self._accounts, self._protocol, self._distributions, self._allowances)
        self.access = AccessTracker()
        self._tokens: List[int] = []

    # ------------------------------------------------------------------ #
    # Call scoping
    # ------------------------------------------------------------------ #

    def begin(self) -> int:
        self._tokens.append(self.access.checkpoint())
        return self.journal.begin()

    def commit(self) -> None:
        self.access.commit(self._tokens.pop())
        self.journal.commit()
        if self.journal.depth() == 1:
            self.journal.commit()

    def revert(self) -> None:
        self.access.rollback(self._tokens.pop())
        self.journal.revert()

    @property
    def in_call(self) -> bool:
        return bool(self._tokens)

    def restrict(self, slots: Iterable[Slot]):
        """
        Context manager: writes inside the block may only touch `slots`.
        A violating write raises AssetRestrictionViolated and is not applied.
        """
        return self.access.restrict(slots)

    def touched(self) -> AccessSet:
        return self.access.snapshot()

    # ------------------------------------------------------------------ #
    # Participant fields
    # ------------------------------------------------------------------ #

    def _get(self, field: str, principal: str) -> int:
        self.access.record_read(field, principal)
        acc = self.journal.get_account(principal)
        return 0 if acc is None else getattr(acc, field)

    def _set(self, field: str, principal: str, value: int) -> None:
        require_uint(field, value)
        self.access.record_write(field, principal)
        setattr(self.journal.account_for_write(principal), field, value)

    def get_balance(self, principal: str) -> int:
        return self._get("balance", principal)

    def set_balance(self, principal: str, value: int) -> None:
        self._set("balance", principal, value)

    def get_rewards(self, principal: str) -> int:
        return self._get("accumulated_rewards", principal)

    def set_rewards(self, principal: str, value: int) -> None:
        self._set("accumulated_rewards", principal, value)

    def get_risk(self, principal: str) -> int:
        return self._get("risk_score", principal)

    def set_risk(self, principal: str, value: int) -> None:
        self._set("risk_score", principal, value)

    def get_coverage(self, principal: str) -> int:
        return self._get("insurance_coverage", principal)

    def set_coverage(self, principal: str, value: int) -> None:
        self._set("insurance_coverage", principal, value)

    def get_checkpoint(self, principal: str) -> Optional[int]:
        """Start of the participant's accrual window; None when never set."""
        self.access.record_read("accrual_checkpoint", principal)
        acc = self.journal.get_account(principal)
        return None if acc is None else acc.accrual_checkpoint

    def set_checkpoint(self, principal: str, value: int) -> None:
        self._set("accrual_checkpoint", principal, value)

    def get_account(self, principal: str) -> ParticipantAccount:
        """Copy of the full record (zeroed when absent)."""
        acc = self.journal.get_account(principal)
        return acc.copy() if acc is not None else ParticipantAccount()

    def participants(self) -> List[str]:
        return self.journal.participants()

    def total_balances(self) -> int:
        return sum(acc.balance for _, acc in self.journal.iter_accounts())

    # ------------------------------------------------------------------ #
    # Protocol fields
    # ------------------------------------------------------------------ #

    def _pget(self, field: str) -> Any:
        self.access.record_read(field)
        return getattr(self.journal.protocol(), field)

    def _pset(self, field: str, value: Any) -> None:
        self.access.record_write(field)
        setattr(self.journal.protocol_for_write(), field, value)

    def _pset_uint(self, field: str, value: int) -> None:
        require_uint(field, value)
        self._pset(field, value)

    def total_staked(self) -> int:
        return self._pget("total_staked")

    def set_total_staked(self, value: int) -> None:
        self._pset_uint("total_staked", value)

    def total_yield_generated(self) -> int:
        return self._pget("total_yield_generated")

    def set_total_yield_generated(self, value: int) -> None:
        self._pset_uint("total_yield_generated", value)

    def is_active(self) -> bool:
        return self._pget("active")

    def set_active(self, value: bool) -> None:
        self._pset("active", bool(value))

    def insurance_active(self) -> bool:
        return self._pget("insurance_active")

    def set_insurance_active(self, value: bool) -> None:
        self._pset("insurance_active", bool(value))

    def base_yield_rate(self) -> int:
        return self._pget("base_yield_rate")

    def set_base_yield_rate(self, value: int) -> None:
        self._pset_uint("base_yield_rate", value)

    def last_distribution_time(self) -> int:
        return self._pget("last_distribution_time")

    def set_last_distribution_time(self, value: int) -> None:
        self._pset_uint("last_distribution_time", value)

    def insurance_reserve_balance(self) -> int:
        return self._pget("insurance_reserve_balance")

    def set_insurance_reserve_balance(self, value: int) -> None:
        self._pset_uint("insurance_reserve_balance", value)

    def token_uri(self) -> Optional[str]:
        return self._pget("token_uri")

    def set_token_uri(self, value: Optional[str]) -> None:
        self._pset("token_uri", value)

    def distribution_count(self) -> int:
        return self._pget("distribution_count")

    def protocol_snapshot(self) -> ProtocolState:
        return self.journal.protocol().copy()

    # ------------------------------------------------------------------ #
    # Distribution history
    # ------------------------------------------------------------------ #

    def record_distribution(self, timestamp: int, amount: int, effective_apy: int) -> DistributionRecord:
        """Append a history row under the next sequence number."""
        seq = add(self.distribution_count(), 1)
        rec = DistributionRecord(
            sequence=seq,
            distribution_timestamp=require_uint("timestamp", timestamp),
            total_amount_distributed=require_uint("amount", amount),
            effective_apy=require_uint("effective_apy", effective_apy),
        )
        self._pset("distribution_count", seq)
        self.access.record_write("distributions")
        self.journal.append_distribution(rec)
        return rec

    def get_distribution(self, sequence: int) -> Optional[DistributionRecord]:
        for rec in self.journal.distributions():
            if rec.sequence == sequence:
                return rec
        return None

    def distribution_at(self, timestamp: int) -> Optional[DistributionRecord]:
        """Latest record produced at `timestamp`, if any."""
        found = None
        for rec in self.journal.distributions():
            if rec.distribution_timestamp == timestamp:
                found = rec
        return found

    def distributions(self) -> List[DistributionRecord]:
        return self.journal.distributions()

    # ------------------------------------------------------------------ #
    # Allowances
    # ------------------------------------------------------------------ #

    def get_allowance(self, owner: str, spender: str) -> int:
        self.access.record_read("allowance", f"{owner}>{spender}")
        return self.journal.get_allowance(owner, spender)

    def set_allowance(self, owner: str, spender: str, amount: int) -> None:
        require_uint("allowance", amount)
        self.access.record_write("allowance", f"{owner}>{spender}")
        self.journal.set_allowance(owner, spender, amount)

    # ------------------------------------------------------------------ #
    # Export / import
    # ------------------------------------------------------------------ #

    def export_state(self) -> Dict[str, Any]:
        """
        JSON-friendly view of everything visible through the journal.
        Empty participant records are omitted.
        """
        accounts = {
            p: acc.to_dict() for p, acc in self.journal.iter_accounts() if not acc.is_empty()
        }
        allowances = [
            {"owner": o, "spender": s, "amount": a}
            for (o, s), a in sorted(self._visible_allowances().items())
            if a
        ]
        return {
            "protocol": self.journal.protocol().to_dict(),
            "accounts": accounts,
            "distributions": [r.to_dict() for r in self.journal.distributions()],
            "allowances": allowances,
        }

    def _visible_allowances(self) -> Dict[Tuple[str, str], int]:
        return {key: self.journal.get_allowance(*key) for key in self.journal.allowance_keys()}

    @classmethod
    def from_state(cls, state: Mapping[str, Any]) -> "LedgerStore":
        accounts = {
            str(p): ParticipantAccount.from_dict(d) for p, d in (state.get("accounts") or {}).items()
        }
        allowances = {
            (str(a["owner"]), str(a["spender"])): int(a["amount"]) for a in state.get("allowances") or []
        }
        return cls(
            accounts=accounts,
            protocol=ProtocolState.from_dict(state.get("protocol") or {}),
            distributions=[DistributionRecord.from_dict(d) for d in state.get("distributions") or []],
            allowances=allowances,
        )


__all__ = ["LedgerStore"]
