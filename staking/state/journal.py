"""
staking.state.journal — journaling writes, checkpoints, revert/commit.

This module provides a deterministic, in-memory write journal layered over the
ledger's base containers: participant accounts, the protocol record, the
distribution history and the allowance table. It supports nested checkpoints
via a stack of overlays. Writes go to the top overlay; reads consult overlays
from top → base. `commit()` merges the top overlay into the next layer (or the
base containers if it's the last layer). `revert()` discards the top overlay.

Key properties
--------------
- Pure Python, no I/O.
- Copy-on-write for accounts and the protocol record (copies live in overlays).
- Distribution history is append-only; overlays stage appended rows.
- Nested checkpoints (begin/commit/revert) with O(changes) merge cost.

Intended usage
--------------
    j = Journal(accounts, protocol, distributions, allowances)
    j.begin()
    j.account_for_write("SP...").balance += 10
    j.protocol_for_write().total_staked += 10
    j.commit()

Notes
-----
- This journal does not enforce business rules; the engines validate
  preconditions before writing.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Dict, Iterator, List, MutableMapping, Optional, Set, Tuple

from .accounts import ParticipantAccount
from .protocol import DistributionRecord, ProtocolState

AllowanceKey = Tuple[str, str]


# =============================================================================
# Overlay model
# =============================================================================


@dataclass
class _Overlay:
    """
    A single journal layer.

    - `accounts`: copies of accounts modified/created in this layer.
    - `protocol`: copy of the protocol record if it was written in this layer.
    - `distributions`: rows appended in this layer, in order.
    - `allowances`: staged allowance values.
    """

    accounts: Dict[str, ParticipantAccount] = field(default_factory=dict)
    protocol: Optional[ProtocolState] = None
    distributions: List[DistributionRecord] = field(default_factory=list)
    allowances: Dict[AllowanceKey, int] = field(default_factory=dict)


# =============================================================================
# Journal
# =============================================================================


class Journal:
    """
    A copy-on-write write journal with nested checkpoints.

    API highlights
    --------------
    - begin() / commit() / revert()
    - get_account(), account_for_write()
    - protocol(), protocol_for_write()
    - distributions(), append_distribution()
    - get_allowance(), set_allowance()
    """

    def __init__(
        self,
        accounts: MutableMapping[str, ParticipantAccount],
        protocol: ProtocolState,
        distributions: List[DistributionRecord],
        allowances: MutableMapping[AllowanceKey, int],
    ) -> None:
        self._base_accounts = accounts
        self._base_protocol = protocol
        self._base_distributions = distributions
        self._base_allowances = allowances
        self._layers: List[_Overlay] = [_Overlay()]

    # --------------------------------------------------------------------- #
    # Checkpointing
    # --------------------------------------------------------------------- #

    def depth(self) -> int:
        """Number of overlays (>= 1)."""
        return len(self._layers)

    def begin(self) -> int:
        """Start a new checkpoint. Returns the new depth marker (int)."""
        self._layers.append(_Overlay())
        return len(self._layers)

    def commit(self) -> None:
        """
        Commit the top overlay into its parent, or into the base containers
        when only the root layer remains.
        """
        top = self._layers.pop()
        if self._layers:
            self._merge_layers(self._layers[-1], top)
        else:
            self._apply_to_base(top)
            self._layers.append(_Overlay())

    def revert(self) -> None:
        """Discard the top overlay (or clear it if it's the root)."""
        if len(self._layers) > 1:
            self._layers.pop()
        else:
            self._layers[0] = _Overlay()

    # --------------------------------------------------------------------- #
    # Accounts
    # --------------------------------------------------------------------- #

    def get_account(self, principal: str) -> Optional[ParticipantAccount]:
        """Readonly lookup; do not mutate the returned object."""
        for layer in reversed(self._layers):
            acc = layer.accounts.get(principal)
            if acc is not None:
                return acc
        return self._base_accounts.get(principal)

    def account_for_write(self, principal: str) -> ParticipantAccount:
        """
        Fetch an account for mutation in the top layer. A copy is promoted from
        lower layers/base; an absent participant gets a fresh zeroed record.
        """
        top = self._layers[-1]
        acc = top.accounts.get(principal)
        if acc is not None:
            return acc
        src = self.get_account(principal)
        acc = src.copy() if src is not None else ParticipantAccount()
        top.accounts[principal] = acc
        return acc

    def participants(self) -> List[str]:
        """Every principal with a record in any layer or the base, sorted."""
        seen: Set[str] = set(self._base_accounts.keys())
        for layer in self._layers:
            seen.update(layer.accounts.keys())
        return sorted(seen)

    def iter_accounts(self) -> Iterator[Tuple[str, ParticipantAccount]]:
        for p in self.participants():
            acc = self.get_account(p)
            if acc is not None:
                yield p, acc

    # --------------------------------------------------------------------- #
    # Protocol record
    # --------------------------------------------------------------------- #

    def protocol(self) -> ProtocolState:
        """Readonly view of the newest protocol record."""
        for layer in reversed(self._layers):
            if layer.protocol is not None:
                return layer.protocol
        return self._base_protocol

    def protocol_for_write(self) -> ProtocolState:
        top = self._layers[-1]
        if top.protocol is None:
            top.protocol = self.protocol().copy()
        return top.protocol

    # --------------------------------------------------------------------- #
    # Distribution history
    # --------------------------------------------------------------------- #

    def distributions(self) -> List[DistributionRecord]:
        out = list(self._base_distributions)
        for layer in self._layers:
            out.extend(layer.distributions)
        return out

    def append_distribution(self, rec: DistributionRecord) -> None:
        self._layers[-1].distributions.append(rec)

    # --------------------------------------------------------------------- #
    # Allowances
    # --------------------------------------------------------------------- #

    def get_allowance(self, owner: str, spender: str) -> int:
        key = (owner, spender)
        for layer in reversed(self._layers):
            if key in layer.allowances:
                return layer.allowances[key]
        return self._base_allowances.get(key, 0)

    def set_allowance(self, owner: str, spender: str, amount: int) -> None:
        self._layers[-1].allowances[(owner, spender)] = amount

    def allowance_keys(self) -> Set[AllowanceKey]:
        keys: Set[AllowanceKey] = set(self._base_allowances.keys())
        for layer in self._layers:
            keys.update(layer.allowances.keys())
        return keys

    # --------------------------------------------------------------------- #
    # Merge helpers
    # --------------------------------------------------------------------- #

    @staticmethod
    def _merge_layers(parent: _Overlay, child: _Overlay) -> None:
        parent.accounts.update(child.accounts)
        if child.protocol is not None:
            parent.protocol = child.protocol
        parent.distributions.extend(child.distributions)
        parent.allowances.update(child.allowances)

    def _apply_to_base(self, layer: _Overlay) -> None:
        for p, acc in layer.accounts.items():
            self._base_accounts[p] = acc
        if layer.protocol is not None:
            # Update in place so holders of the base record see the change.
            for f in fields(ProtocolState):
                setattr(self._base_protocol, f.name, getattr(layer.protocol, f.name))
        self._base_distributions.extend(layer.distributions)
        for key, amount in layer.allowances.items():
            if amount == 0:
                self._base_allowances.pop(key, None)
            else:
                self._base_allowances[key] = amount


__all__ = ["Journal", "AllowanceKey"]
