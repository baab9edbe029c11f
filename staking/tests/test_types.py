from __future__ import annotations

import pytest

from staking.clock import ManualClock, SystemClock
from staking.errors import InvalidRecipient, StakingError, error_to_result_fields
from staking.types import CallContext, CallResult, CallStatus, StakingEvent
from staking.types.principal import (C32PrincipalValidator, is_contract_principal,
                                     is_standard_principal)

ALICE = "SP" + "AA" * 19


# -----------------------------------------------------------------------------
# principals
# -----------------------------------------------------------------------------


@pytest.mark.parametrize(
    "p",
    [ALICE, "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM", "SM" + "2" * 30],
)
def test_standard_principals(p):
    v = C32PrincipalValidator()
    assert is_standard_principal(p)
    assert v.is_standard(p)
    assert v.is_valid(p)


@pytest.mark.parametrize(
    "p",
    ["", "alice", "SX" + "A" * 38, "SP" + "I" * 38, "SP" + "A" * 10, ALICE.lower()],
)
def test_malformed_principals(p):
    assert not is_standard_principal(p)
    assert not C32PrincipalValidator().is_valid(p)


def test_contract_principals_are_valid_but_not_standard():
    p = ALICE + ".yield-vault"
    v = C32PrincipalValidator()
    assert is_contract_principal(p)
    assert v.is_valid(p)
    assert not v.is_standard(p)
    assert not is_contract_principal(ALICE + ".9bad")
    assert not is_contract_principal(ALICE + ".a.b")


# -----------------------------------------------------------------------------
# status / result / errors
# -----------------------------------------------------------------------------


def test_call_status_parsing():
    assert CallStatus.from_str("OK") is CallStatus.SUCCESS
    assert CallStatus.from_str(" revert ") is CallStatus.REVERT
    assert CallStatus.from_str("error") is CallStatus.REVERT
    assert CallStatus.from_str("", default=CallStatus.SUCCESS) is CallStatus.SUCCESS
    assert CallStatus.SUCCESS.code == "SUCCESS"
    with pytest.raises(ValueError):
        CallStatus.from_str("maybe")


def test_call_result_round_trip():
    res = CallResult(
        op="transfer",
        status=CallStatus.SUCCESS,
        value=True,
        events=[StakingEvent("transfer", {"sender": ALICE, "amount": 3})],
    )
    d = res.to_dict()
    assert d["status"] == "success"
    assert CallResult.from_dict(d) == res


def test_reverted_result_cannot_carry_events():
    with pytest.raises(ValueError):
        CallResult(op="deposit", status=CallStatus.REVERT, events=[StakingEvent("stake")])
    with pytest.raises(TypeError):
        CallResult(op="deposit", status=CallStatus.SUCCESS, events=["stake"])  # type: ignore[list-item]


def test_error_payloads():
    err = InvalidRecipient("cannot transfer to self", recipient=ALICE)
    assert isinstance(err, StakingError)
    assert err.to_dict() == {
        "code": "INVALID_RECIPIENT",
        "number": 107,
        "message": "cannot transfer to self",
        "data": {"recipient": ALICE},
    }
    fields_ = error_to_result_fields(err)
    assert fields_["status"] == "revert"
    assert fields_["error"]["number"] == 107


def test_event_to_dict_renders_bytes():
    ev = StakingEvent("transfer", {"memo": b"\x01\xff"})
    assert ev.to_dict() == {"event": "transfer", "memo": "0x01ff"}
    with pytest.raises(ValueError):
        StakingEvent("")


def test_call_context_buffers_events():
    ctx = CallContext(caller=ALICE, timestamp=5)
    ctx.emit("stake", amount=1)
    ctx.emit("harvest", amount=2)
    assert [e.name for e in ctx.events] == ["stake", "harvest"]
    with pytest.raises(ValueError):
        CallContext(caller="", timestamp=1)
    with pytest.raises(ValueError):
        CallContext(caller=ALICE, timestamp=-1)


# -----------------------------------------------------------------------------
# clocks
# -----------------------------------------------------------------------------


def test_manual_clock_is_monotonic():
    c = ManualClock(100)
    assert c.advance(5) == 105
    assert c.set(200) == 200
    with pytest.raises(ValueError):
        c.set(199)
    with pytest.raises(ValueError):
        c.advance(-1)


def test_system_clock_never_goes_backwards():
    c = SystemClock()
    a = c.now()
    assert c.now() >= a > 0


def test_package_version_matches_packaging():
    import staking

    assert staking.__version__ == "0.1.0"
    assert staking.__all__ == ["__version__"]
