from __future__ import annotations

import threading

import pytest

from staking import protocol as protocol_mod
from staking.errors import ArithmeticOverflow, InsufficientBalance
from staking.protocol import Call
from staking.types.status import CallStatus

OWNER = "SP" + "77" * 19
ALICE = "SP" + "AA" * 19
BOB = "SP" + "BB" * 19

DAY = 86_400


def test_failed_call_leaves_state_untouched(live, sink):
    live.deposit(ALICE, 2_000_000)
    before = live.export_state()
    n = len(sink)

    with pytest.raises(InsufficientBalance):
        live.withdraw(ALICE, 3_000_000)

    assert live.export_state() == before
    assert len(sink) == n


def test_late_failure_rolls_back_earlier_writes(live, clock, sink, monkeypatch):
    live.toggle_insurance(OWNER, True)
    live.deposit(ALICE, 1_000_000)
    clock.advance(DAY)
    before = live.export_state()
    names = sink.names()

    def boom(principal, value):
        raise ArithmeticOverflow(op="coverage")

    # fold + debit succeed, the coverage write fails
    monkeypatch.setattr(live.ledger, "set_coverage", boom)
    with pytest.raises(ArithmeticOverflow):
        live.withdraw(ALICE, 500_000)

    assert live.export_state() == before
    assert live.balance_of(ALICE) == 1_000_000
    assert live.pending_yield(ALICE) == 205
    assert sink.names() == names
    assert live.last_access().writes == frozenset()


def test_unexpected_exception_also_rolls_back(live, monkeypatch):
    live.deposit(ALICE, 1_000_000)
    before = live.export_state()

    def broken(principal, value):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(live.ledger, "set_risk", broken)
    with pytest.raises(RuntimeError):
        live.deposit(ALICE, 1_000_000)
    assert live.export_state() == before
    assert live.ledger.in_call is False

    monkeypatch.undo()
    assert live.deposit(ALICE, 1_000_000) == 2_000_000


def test_apply_success_result(live):
    res = live.apply(Call("deposit", ALICE, {"amount": 1_000_000}))
    assert res.status is CallStatus.SUCCESS
    assert res.is_success
    assert res.value == 1_000_000
    assert [ev.name for ev in res.events] == ["stake"]
    assert res.error is None


def test_apply_revert_result(live):
    res = live.apply(Call("deposit", ALICE, {"amount": 5}))
    assert res.status is CallStatus.REVERT
    assert res.error_code == "INVALID_AMOUNT"
    assert res.error["number"] == 103
    assert res.events == ()
    assert live.balance_of(ALICE) == 0


def test_apply_from_serialized_call(live, clock):
    live.deposit(ALICE, 1_000_000)
    clock.advance(DAY)
    call = Call.from_dict({"op": "transfer", "caller": ALICE,
                           "args": {"amount": 10, "sender": ALICE, "recipient": BOB}})
    res = live.apply(call)
    assert res.is_success
    assert res.to_dict()["events"][0] == {
        "event": "transfer", "sender": ALICE, "recipient": BOB, "amount": 10, "memo": None,
    }


def test_apply_rejects_unknown_operation(live):
    with pytest.raises(ValueError):
        live.apply(Call("mint", OWNER, {}))


def test_event_sequences_only_count_committed_calls(live, sink):
    live.deposit(ALICE, 1_000_000)
    with pytest.raises(InsufficientBalance):
        live.withdraw(BOB, 1)
    live.deposit(BOB, 1_000_000)

    seqs = [r.sequence for r in sink.get_events()]
    assert seqs == sorted(seqs)
    assert len(set(seqs)) == len(seqs)
    assert seqs[-1] == seqs[-2] + 1


def test_summary_log_lines_are_written_under_the_call_lock(proto, clock, monkeypatch):
    seen = []

    def other_thread_can_lock() -> bool:
        out = []

        def attempt():
            got = proto._lock.acquire(blocking=False)
            if got:
                proto._lock.release()
            out.append(got)

        t = threading.Thread(target=attempt)
        t.start()
        t.join()
        return out[0]

    def recording_info(msg, *args, **kwargs):
        seen.append((msg % args, other_thread_can_lock()))

    monkeypatch.setattr(protocol_mod.log, "info", recording_info)

    proto.initialize(OWNER, 750)
    proto.deposit(ALICE, 1_000_000)
    clock.advance(DAY)
    proto.distribute(OWNER)

    assert [text for text, _ in seen] == [
        f"protocol initialized: rate=750bps ts={clock.now() - DAY}",
        "distribution #1: amount=205 tvl=1000000",
    ]
    assert [acquirable for _, acquirable in seen] == [False, False]
