"""
staking.engine.transfers — plain and restricted balance transfers.

Both operations move `amount` from one participant balance to another;
`total_staked` is unchanged. Before the move, sender and recipient are both
settled: yield accrued on the balance each held so far is booked into
`accumulated_rewards` and their accrual windows restart at the call timestamp.
A recipient therefore earns nothing on received funds for time before the
transfer.

transfer(ctx, amount, sender, recipient, memo=None)
    Caller must be `sender`. `memo` (≤ 34 bytes) is an opaque payload echoed
    in the transfer event.

secure_transfer(ctx, amount, recipient)
    Sender is always the caller. Settlement runs first; the move itself runs
    inside a restricted ledger scope declaring exactly
    ``{("balance", caller), ("balance", recipient)}``. Any other write inside
    the scope raises AssetRestrictionViolated before it is applied.

Checks run in this order: caller, amount, recipient, memo, balance.
"""

from __future__ import annotations

from typing import Optional

from staking.errors import InsufficientBalance, InvalidMetadata, InvalidRecipient, Unauthorized
from staking.math import add, sub
from staking.state.ledger import LedgerStore
from staking.types.context import CallContext
from staking.types.principal import PrincipalValidator

from .guards import require_amount
from .staking import StakingEngine

MAX_MEMO_LEN = 34


class TransferEngine:
    def __init__(self, ledger: LedgerStore, validator: PrincipalValidator, accrual: StakingEngine) -> None:
        self.ledger = ledger
        self.validator = validator
        self.accrual = accrual

    def _check_recipient(self, sender: str, recipient: str) -> None:
        if recipient == sender:
            raise InvalidRecipient("cannot transfer to self", recipient=recipient)
        if not self.validator.is_standard(recipient):
            raise InvalidRecipient("recipient is not a standard principal", recipient=recipient)

    def _settle(self, ctx: CallContext, sender: str, recipient: str) -> None:
        self.accrual.settle(sender, ctx.timestamp)
        self.accrual.settle(recipient, ctx.timestamp)

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        have = self.ledger.get_balance(sender)
        if have < amount:
            raise InsufficientBalance(holder=sender, have=have, need=amount)
        self.ledger.set_balance(sender, sub(have, amount))
        self.ledger.set_balance(recipient, add(self.ledger.get_balance(recipient), amount))

    def transfer(
        self,
        ctx: CallContext,
        amount: int,
        sender: str,
        recipient: str,
        memo: Optional[bytes] = None,
    ) -> bool:
        if ctx.caller != sender:
            raise Unauthorized("caller is not the sender", caller=ctx.caller, required=sender)
        require_amount(amount)
        self._check_recipient(sender, recipient)
        if memo is not None:
            if not isinstance(memo, (bytes, bytearray)) or len(memo) > MAX_MEMO_LEN:
                raise InvalidMetadata(f"memo must be bytes of at most {MAX_MEMO_LEN}")
            memo = bytes(memo)

        self._settle(ctx, sender, recipient)
        self._move(sender, recipient, amount)
        ctx.emit("transfer", sender=sender, recipient=recipient, amount=amount, memo=memo)
        return True

    def secure_transfer(self, ctx: CallContext, amount: int, recipient: str) -> bool:
        sender = ctx.caller
        require_amount(amount)
        self._check_recipient(sender, recipient)

        self._settle(ctx, sender, recipient)
        with self.ledger.restrict({("balance", sender), ("balance", recipient)}):
            self._move(sender, recipient, amount)

        ctx.emit("secure-transfer", sender=sender, recipient=recipient, amount=amount)
        return True


__all__ = ["MAX_MEMO_LEN", "TransferEngine"]
