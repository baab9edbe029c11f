"""
staking.engine — the operations that mutate (or read) the ledger.

Engines validate preconditions and write through a LedgerStore; they never
commit or revert on their own. Call scoping lives in `staking.protocol`.
"""

from __future__ import annotations

from .distribution import DistributionPhase, DistributionStateMachine
from .governance import GovernanceSurface
from .queries import ProtocolMetrics, ProtocolQueries, StakerInfo
from .staking import StakingEngine
from .transfers import TransferEngine

__all__ = [
    "DistributionPhase",
    "DistributionStateMachine",
    "GovernanceSurface",
    "ProtocolMetrics",
    "ProtocolQueries",
    "StakerInfo",
    "StakingEngine",
    "TransferEngine",
]
