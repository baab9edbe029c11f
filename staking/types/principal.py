"""
staking.types.principal — principal well-formedness checks.

Principals are strings in the c32 form used by Stacks-style ledgers:

  standard principal : ``S`` + version char + c32 body, e.g. ``SP2J6Z...``
  contract principal : ``<standard>.<contract-name>``

Only *standard* principals may receive transfers. The ledger asks a
`PrincipalValidator`; hosts with a different address scheme inject their own.
"""

from __future__ import annotations

import re
from typing import Protocol, runtime_checkable

C32_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"

_STANDARD_RE = re.compile(r"^S[PMTN][" + C32_ALPHABET + r"]{28,41}$")
_CONTRACT_NAME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9_-]{0,39}$")


def is_standard_principal(p: str) -> bool:
    return isinstance(p, str) and _STANDARD_RE.match(p) is not None


def is_contract_principal(p: str) -> bool:
    if not isinstance(p, str) or p.count(".") != 1:
        return False
    addr, name = p.split(".")
    return is_standard_principal(addr) and _CONTRACT_NAME_RE.match(name) is not None


def is_principal(p: str) -> bool:
    return is_standard_principal(p) or is_contract_principal(p)


@runtime_checkable
class PrincipalValidator(Protocol):
    def is_standard(self, principal: str) -> bool:
        """True iff `principal` is an externally-addressable (non-contract) principal."""

    def is_valid(self, principal: str) -> bool:
        """True iff `principal` is well-formed at all."""


class C32PrincipalValidator:
    """Default validator for c32 standard/contract principals."""

    def is_standard(self, principal: str) -> bool:
        return is_standard_principal(principal)

    def is_valid(self, principal: str) -> bool:
        return is_principal(principal)


__all__ = [
    "C32_ALPHABET",
    "is_standard_principal",
    "is_contract_principal",
    "is_principal",
    "PrincipalValidator",
    "C32PrincipalValidator",
]
