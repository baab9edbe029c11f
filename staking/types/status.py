"""
staking.types.status — canonical call status enum.

CallStatus models the *logical* outcome of executing one ledger call:
  - SUCCESS : all writes committed
  - REVERT  : a precondition or restriction failed; nothing was written

String forms:
  - str(CallStatus.SUCCESS) -> "success"   (logs/metrics)
  - CallStatus.SUCCESS.code  -> "SUCCESS"
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class CallStatus(str, Enum):
    SUCCESS = "success"
    REVERT = "revert"

    @property
    def code(self) -> str:
        return self.value.upper()

    @property
    def is_success(self) -> bool:
        return self is CallStatus.SUCCESS

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value

    @classmethod
    def from_str(cls, s: str, *, default: Optional["CallStatus"] = None) -> "CallStatus":
        """
        Parse a status from a string (case-insensitive).

        Accepted values:
          - success: "success", "ok", "s", "passed"
          - revert : "revert", "rv", "failed", "fail", "err", "error"
        """
        if not s:
            if default is not None:
                return default
            raise ValueError("empty status")

        norm = s.strip().lower()
        if norm in {"success", "ok", "s", "passed"}:
            return cls.SUCCESS
        if norm in {"revert", "rv", "failed", "fail", "err", "error"}:
            return cls.REVERT
        if default is not None:
            return default
        raise ValueError(f"unknown CallStatus: {s!r}")


__all__ = ["CallStatus"]
