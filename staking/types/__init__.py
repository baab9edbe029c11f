"""
staking.types — small shared types for the staking ledger.

Public surface (re-exported):
    CallStatus            : Enum — SUCCESS / REVERT
    StakingEvent          : Dataclass — (name, args)
    CallContext           : Dataclass — (caller, timestamp, buffered events)
    CallResult            : Dataclass — result of applying one call
    PrincipalValidator    : Protocol — standard/contract principal checks
"""

from __future__ import annotations

from .context import CallContext
from .events import StakingEvent
from .principal import (C32PrincipalValidator, PrincipalValidator,
                        is_contract_principal, is_standard_principal)
from .result import CallResult
from .status import CallStatus

__all__ = [
    "CallStatus",
    "StakingEvent",
    "CallContext",
    "CallResult",
    "PrincipalValidator",
    "C32PrincipalValidator",
    "is_standard_principal",
    "is_contract_principal",
]
