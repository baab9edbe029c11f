"""
staking.errors — typed failures raised by the staking ledger.

Every operation on the ledger either commits all of its writes or raises one of
the exceptions below, in which case the call is rolled back in full. The
exceptions are converted into structured payloads (`to_dict`) by the protocol
facade so hosts can surface them without importing this module.

Hierarchy
---------
StakingError (base)
 ├─ Unauthorized             (u100) caller lacks the required role
 ├─ NotActive                (u101) protocol not initialized
 ├─ AlreadyInitialized       (u102) initialize called twice
 ├─ InvalidAmount            (u103) amount below minimum or zero
 ├─ InsufficientBalance      (u104) balance lower than requested
 ├─ NoYieldAvailable         (u105) nothing to harvest / window not elapsed
 ├─ InvalidRate              (u106) rate outside configured bounds
 ├─ InvalidRecipient         (u107) self-transfer or non-standard recipient
 ├─ InvalidMetadata          (u108) token URI malformed
 ├─ AssetRestrictionViolated (u109) write outside a declared restriction scope
 └─ ArithmeticOverflow       (u110) result leaves the uint envelope

The numeric codes are stable and match the contract error table; the string
`code` is what logs and metrics use.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class StakingError(Exception):
    """
    Base staking error.

    Attributes:
        message: Human-readable explanation.
        code:    Stable machine code string (e.g., 'UNAUTHORIZED').
        data:    Optional structured details (kept JSON-serializable).
    """
    message: str = "staking error"
    code: str = "STAKING_ERROR"
    data: Optional[Dict[str, Any]] = field(default=None)

    # Numeric error code of the on-ledger error table; 0 for the base class.
    number = 0

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.data:
            return f"{self.code}: {self.message} ({self.data})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-safe dict for results/logs."""
        out: Dict[str, Any] = {
            "code": self.code,
            "number": self.number,
            "message": self.message,
        }
        if self.data is not None:
            out["data"] = self.data
        return out


def _ctx(data: Optional[Dict[str, Any]], **extra: Any) -> Optional[Dict[str, Any]]:
    d: Dict[str, Any] = {}
    if data:
        d.update(data)
    for k, v in extra.items():
        if v is not None:
            d.setdefault(k, v)
    return d or None


class Unauthorized(StakingError):
    number = 100

    def __init__(
        self,
        message: str = "caller is not authorized",
        *,
        caller: Optional[str] = None,
        required: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="UNAUTHORIZED",
            data=_ctx(data, caller=caller, required=required),
        )


class NotActive(StakingError):
    number = 101

    def __init__(self, message: str = "protocol is not active", *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="NOT_ACTIVE", data=data)


class AlreadyInitialized(StakingError):
    number = 102

    def __init__(self, message: str = "protocol already initialized", *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="ALREADY_INITIALIZED", data=data)


class InvalidAmount(StakingError):
    number = 103

    def __init__(
        self,
        message: str = "invalid amount",
        *,
        amount: Optional[int] = None,
        minimum: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="INVALID_AMOUNT",
            data=_ctx(data, amount=amount, minimum=minimum),
        )


class InsufficientBalance(StakingError):
    """Requested amount exceeds the participant's balance."""

    number = 104

    def __init__(
        self,
        message: str = "insufficient balance",
        *,
        holder: Optional[str] = None,
        have: Optional[int] = None,
        need: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="INSUFFICIENT_BALANCE",
            data=_ctx(data, holder=holder, have=have, need=need),
        )


class NoYieldAvailable(StakingError):
    number = 105

    def __init__(
        self,
        message: str = "no yield available",
        *,
        elapsed: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code="NO_YIELD_AVAILABLE", data=_ctx(data, elapsed=elapsed))


class InvalidRate(StakingError):
    number = 106

    def __init__(
        self,
        message: str = "yield rate out of bounds",
        *,
        rate: Optional[int] = None,
        min_rate: Optional[int] = None,
        max_rate: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="INVALID_RATE",
            data=_ctx(data, rate=rate, min_rate=min_rate, max_rate=max_rate),
        )


class InvalidRecipient(StakingError):
    number = 107

    def __init__(
        self,
        message: str = "invalid recipient",
        *,
        recipient: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code="INVALID_RECIPIENT", data=_ctx(data, recipient=recipient))


class InvalidMetadata(StakingError):
    number = 108

    def __init__(self, message: str = "invalid token metadata", *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="INVALID_METADATA", data=data)


class AssetRestrictionViolated(StakingError):
    """
    A write touched a (field, principal) slot outside the set declared for the
    current restricted scope. Raised before the write is applied.
    """

    number = 109

    def __init__(
        self,
        message: str = "asset restriction violated",
        *,
        slot: Optional[str] = None,
        principal: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="ASSET_RESTRICTION_VIOLATED",
            data=_ctx(data, slot=slot, principal=principal),
        )


class ArithmeticOverflow(StakingError):
    number = 110

    def __init__(
        self,
        message: str = "arithmetic overflow",
        *,
        op: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code="ARITHMETIC_OVERFLOW", data=_ctx(data, op=op))


# -------- helper utilities ---------------------------------------------------


def error_to_result_fields(err: StakingError) -> Dict[str, Any]:
    """
    Map a StakingError to canonical call-result fields.

    Returns:
        {"status": "revert", "error": {code, number, message, data?}}
    """
    return {"status": "revert", "error": err.to_dict()}


__all__ = [
    "StakingError",
    "Unauthorized",
    "NotActive",
    "AlreadyInitialized",
    "InvalidAmount",
    "InsufficientBalance",
    "NoYieldAvailable",
    "InvalidRate",
    "InvalidRecipient",
    "InvalidMetadata",
    "AssetRestrictionViolated",
    "ArithmeticOverflow",
    "error_to_result_fields",
]
