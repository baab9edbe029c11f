"""
staking.state.access_tracker — track touched ledger slots, enforce restrictions

Purpose
-------
Every read and write the LedgerStore performs is recorded here as a *slot*:
a ``(field, principal)`` pair. Protocol-wide fields use ``principal=None``.
The recorded sets are used for:

  • Reporting which slots a call touched (returned with call results).
  • Enforcing restricted scopes: inside ``restrict(allowed)`` any write to a
    slot outside ``allowed`` raises AssetRestrictionViolated *before* the
    write reaches the journal.

Model
-----
  reads  : set[Slot]
  writes : set[Slot]

A write implies a read of the same slot.

Checkpoint / rollback
---------------------
``checkpoint()`` returns a token. ``commit(token)`` keeps the recorded delta;
``rollback(token)`` removes every slot first recorded since that checkpoint.
Restriction scopes nest; a write must be permitted by every active scope.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Iterator, List, Optional, Set, Tuple

from staking.errors import AssetRestrictionViolated

Slot = Tuple[str, Optional[str]]


@dataclass(frozen=True)
class AccessSet:
    reads: FrozenSet[Slot]
    writes: FrozenSet[Slot]

    def to_dict(self) -> dict:
        return {
            "reads": [list(s) for s in _sorted(self.reads)],
            "writes": [list(s) for s in _sorted(self.writes)],
        }


def _sorted(slots: Iterable[Slot]) -> List[Slot]:
    return sorted(slots, key=lambda s: (s[0], s[1] or ""))


class AccessTracker:
    # ---- construction -----------------------------------------------------

    def __init__(self) -> None:
        self.reads: Set[Slot] = set()
        self.writes: Set[Slot] = set()

        # journal of ops for checkpoint/rollback
        self._oplog: List[Tuple[str, Slot]] = []
        self._checkpoints: List[int] = []
        self._scopes: List[FrozenSet[Slot]] = []

    # ---- checkpointing ----------------------------------------------------

    def checkpoint(self) -> int:
        token = len(self._oplog)
        self._checkpoints.append(token)
        return token

    def commit(self, token: int) -> None:
        """Drop the checkpoint marker; keep its effects."""
        self._expect_token(token)
        self._checkpoints.pop()

    def rollback(self, token: int) -> None:
        """Undo slots recorded since `token`."""
        self._expect_token(token)
        while len(self._oplog) > token:
            op, slot = self._oplog.pop()
            if op == "r":
                self.reads.discard(slot)
            else:
                self.writes.discard(slot)
        self._checkpoints.pop()

    def _expect_token(self, token: int) -> None:
        if not self._checkpoints or self._checkpoints[-1] != token:
            raise RuntimeError("access tracker checkpoint mismatch")

    def clear(self) -> None:
        """Forget all recorded slots (checkpoints must be balanced)."""
        if self._checkpoints:
            raise RuntimeError("cannot clear tracker with open checkpoints")
        self.reads.clear()
        self.writes.clear()
        self._oplog.clear()

    # ---- recording --------------------------------------------------------

    def record_read(self, field: str, principal: Optional[str] = None) -> None:
        slot = (field, principal)
        if slot not in self.reads:
            self.reads.add(slot)
            self._oplog.append(("r", slot))

    def record_write(self, field: str, principal: Optional[str] = None) -> None:
        """
        Record a write. Raises AssetRestrictionViolated when a restricted scope
        is active and does not include the slot; nothing is recorded then.
        """
        slot = (field, principal)
        for allowed in self._scopes:
            if slot not in allowed:
                raise AssetRestrictionViolated(
                    "write outside declared asset scope", slot=field, principal=principal
                )
        self.record_read(field, principal)
        if slot not in self.writes:
            self.writes.add(slot)
            self._oplog.append(("w", slot))

    # ---- restriction scopes ----------------------------------------------

    @contextmanager
    def restrict(self, allowed: Iterable[Slot]) -> Iterator[FrozenSet[Slot]]:
        scope = frozenset(allowed)
        self._scopes.append(scope)
        try:
            yield scope
        finally:
            self._scopes.pop()

    # ---- export -----------------------------------------------------------

    def snapshot(self) -> AccessSet:
        return AccessSet(reads=frozenset(self.reads), writes=frozenset(self.writes))


__all__ = ["Slot", "AccessSet", "AccessTracker"]
