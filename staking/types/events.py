"""
staking.types.events — ledger event payloads.

A StakingEvent is the structured notification a successful operation emits,
e.g. ``stake`` / ``unstake`` / ``harvest`` / ``transfer`` / ``distribute``.
`args` must stay JSON-friendly: ints, strings, bools, None, or bytes (rendered
as 0x-hex by `to_dict`).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping


def _jsonable(v: Any) -> Any:
    if isinstance(v, (bytes, bytearray, memoryview)):
        return "0x" + bytes(v).hex()
    return v


@dataclass(frozen=True)
class StakingEvent:
    name: str
    args: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("event name must be a non-empty string")

    def get(self, key: str, default: Any = None) -> Any:
        return self.args.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        return {"event": self.name, **{k: _jsonable(v) for k, v in self.args.items()}}

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "StakingEvent":
        body = dict(d)
        name = body.pop("event")
        return cls(name=str(name), args=body)


__all__ = ["StakingEvent"]
