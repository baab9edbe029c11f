# -*- coding: utf-8 -*-
"""
staking.engine.governance
=========================

Owner-gated controls. The owner is fixed when the protocol is constructed; the
ledger has no ownership-transfer operation.

- ``initialize(ctx, rate)``        one-time activation; starts the first
                                   distribution window at ``ctx.timestamp``
- ``update_rate(ctx, rate)``       overwrite the base rate (bounds-checked)
- ``toggle_insurance(ctx, flag)``  set the insurance flag
- ``set_token_uri(ctx, uri)``      set (1..256 chars) or clear (None) metadata

Events
------
- "initialize"        {"rate", "timestamp"}
- "rate-update"       {"old", "new"}
- "insurance-toggle"  {"enabled"}
- "token-uri"         {"uri"}
"""
from __future__ import annotations

from typing import Optional

from staking.config import Limits
from staking.errors import AlreadyInitialized, InvalidMetadata
from staking.state.ledger import LedgerStore
from staking.types.context import CallContext

from .guards import require_owner, require_rate


class GovernanceSurface:
    def __init__(self, ledger: LedgerStore, limits: Limits, owner: str) -> None:
        self.ledger = ledger
        self.limits = limits
        self.owner = owner

    def initialize(self, ctx: CallContext, rate: int) -> bool:
        require_owner(self.owner, ctx.caller)
        if self.ledger.is_active():
            raise AlreadyInitialized()
        require_rate(rate, self.limits)

        self.ledger.set_active(True)
        self.ledger.set_base_yield_rate(rate)
        self.ledger.set_last_distribution_time(ctx.timestamp)
        ctx.emit("initialize", rate=rate, timestamp=ctx.timestamp)
        return True

    def update_rate(self, ctx: CallContext, rate: int) -> bool:
        require_owner(self.owner, ctx.caller)
        require_rate(rate, self.limits)

        old = self.ledger.base_yield_rate()
        self.ledger.set_base_yield_rate(rate)
        ctx.emit("rate-update", old=old, new=rate)
        return True

    def toggle_insurance(self, ctx: CallContext, enable: bool) -> bool:
        require_owner(self.owner, ctx.caller)
        self.ledger.set_insurance_active(bool(enable))
        ctx.emit("insurance-toggle", enabled=bool(enable))
        return True

    def set_token_uri(self, ctx: CallContext, uri: Optional[str]) -> bool:
        require_owner(self.owner, ctx.caller)
        if uri is not None:
            if not isinstance(uri, str) or not uri or len(uri) > self.limits.max_token_uri_len:
                raise InvalidMetadata(
                    f"token uri must be 1..{self.limits.max_token_uri_len} characters",
                    data={"length": len(uri) if isinstance(uri, str) else None},
                )
        self.ledger.set_token_uri(uri)
        ctx.emit("token-uri", uri=uri)
        return True


__all__ = ["GovernanceSurface"]
