from __future__ import annotations

import json

import pytest

from staking.errors import ArithmeticOverflow, AssetRestrictionViolated
from staking.math import UINT_MAX
from staking.state.accounts import ParticipantAccount
from staking.state.journal import Journal
from staking.state.ledger import LedgerStore
from staking.state.protocol import ProtocolState

ALICE = "SP" + "AA" * 19
BOB = "SP" + "BB" * 19
CAROL = "SP" + "CC" * 19


def test_getters_default_to_zero():
    ledger = LedgerStore()
    assert ledger.get_balance(ALICE) == 0
    assert ledger.get_rewards(ALICE) == 0
    assert ledger.get_risk(ALICE) == 0
    assert ledger.get_coverage(ALICE) == 0
    assert ledger.get_checkpoint(ALICE) is None
    assert ledger.total_staked() == 0
    assert ledger.is_active() is False
    assert ledger.token_uri() is None
    assert ledger.participants() == []


def test_setter_touches_only_its_field():
    ledger = LedgerStore()
    ledger.set_balance(ALICE, 10)
    ledger.set_risk(BOB, 3)
    assert ledger.get_balance(ALICE) == 10
    assert ledger.get_rewards(ALICE) == 0
    assert ledger.get_risk(ALICE) == 0
    assert ledger.get_balance(BOB) == 0
    assert ledger.get_risk(BOB) == 3
    assert ledger.participants() == sorted([ALICE, BOB])


def test_setters_reject_values_outside_uint():
    ledger = LedgerStore()
    with pytest.raises(ArithmeticOverflow):
        ledger.set_balance(ALICE, -1)
    with pytest.raises(ArithmeticOverflow):
        ledger.set_total_staked(UINT_MAX + 1)


def test_begin_commit_applies_to_base():
    accounts = {}
    ledger = LedgerStore(accounts=accounts)
    ledger.begin()
    ledger.set_balance(ALICE, 5)
    ledger.set_total_staked(5)
    assert ALICE not in accounts
    ledger.commit()
    assert accounts[ALICE].balance == 5
    assert ledger.total_staked() == 5


def test_begin_revert_discards_everything():
    ledger = LedgerStore()
    ledger.set_balance(ALICE, 7)
    before = ledger.export_state()

    ledger.begin()
    ledger.set_balance(ALICE, 1)
    ledger.set_balance(BOB, 99)
    ledger.set_active(True)
    ledger.record_distribution(123, 4, 750)
    ledger.set_allowance(ALICE, BOB, 50)
    ledger.revert()

    assert ledger.export_state() == before
    assert ledger.distributions() == []


def test_nested_inner_revert_keeps_outer_writes():
    ledger = LedgerStore()
    ledger.begin()
    ledger.set_balance(ALICE, 1)
    ledger.begin()
    ledger.set_balance(ALICE, 2)
    ledger.set_balance(BOB, 2)
    ledger.revert()
    ledger.commit()
    assert ledger.get_balance(ALICE) == 1
    assert ledger.get_balance(BOB) == 0


def test_distribution_records_are_sequenced():
    ledger = LedgerStore()
    r1 = ledger.record_distribution(1000, 10, 750)
    r2 = ledger.record_distribution(1000, 20, 750)
    assert (r1.sequence, r2.sequence) == (1, 2)
    assert ledger.distribution_count() == 2
    assert ledger.get_distribution(1).total_amount_distributed == 10
    # same timestamp does not overwrite; lookup returns the latest
    assert ledger.distribution_at(1000) == r2
    assert ledger.distribution_at(999) is None
    assert [r.sequence for r in ledger.distributions()] == [1, 2]


def test_allowances_are_stored_and_readable():
    ledger = LedgerStore()
    assert ledger.get_allowance(ALICE, BOB) == 0
    ledger.set_allowance(ALICE, BOB, 500)
    assert ledger.get_allowance(ALICE, BOB) == 500
    assert ledger.get_allowance(BOB, ALICE) == 0
    assert ledger.export_state()["allowances"] == [{"owner": ALICE, "spender": BOB, "amount": 500}]


def test_restricted_scope_blocks_undeclared_writes():
    ledger = LedgerStore()
    ledger.set_balance(ALICE, 10)
    with ledger.restrict({("balance", ALICE), ("balance", BOB)}):
        ledger.set_balance(ALICE, 4)
        ledger.set_balance(BOB, 6)
        with pytest.raises(AssetRestrictionViolated) as ei:
            ledger.set_balance(CAROL, 1)
        with pytest.raises(AssetRestrictionViolated):
            ledger.set_rewards(ALICE, 1)
        with pytest.raises(AssetRestrictionViolated):
            ledger.set_total_staked(1)
    assert ei.value.data == {"slot": "balance", "principal": CAROL}
    assert ledger.get_balance(CAROL) == 0
    assert ledger.get_rewards(ALICE) == 0
    # scope closed: writes allowed again
    ledger.set_balance(CAROL, 1)
    assert ledger.get_balance(CAROL) == 1


def test_access_tracker_reports_touched_slots():
    ledger = LedgerStore()
    ledger.begin()
    ledger.get_balance(ALICE)
    ledger.set_balance(BOB, 1)
    ledger.commit()
    touched = ledger.touched()
    assert ("balance", ALICE) in touched.reads
    assert ("balance", BOB) in touched.writes
    assert ("balance", ALICE) not in touched.writes


def test_access_tracker_rollback_forgets_slots():
    ledger = LedgerStore()
    ledger.begin()
    ledger.set_balance(BOB, 1)
    ledger.revert()
    assert ("balance", BOB) not in ledger.touched().writes


def test_export_import_round_trip_is_json_safe():
    ledger = LedgerStore()
    ledger.set_balance(ALICE, 10)
    ledger.set_total_staked(10)
    ledger.set_token_uri("ipfs://meta")
    ledger.record_distribution(5, 1, 750)
    state = json.loads(json.dumps(ledger.export_state()))

    again = LedgerStore.from_state(state)
    assert again.export_state() == state
    assert again.get_balance(ALICE) == 10
    assert again.token_uri() == "ipfs://meta"


def test_export_omits_empty_records():
    ledger = LedgerStore()
    ledger.set_balance(ALICE, 0)
    assert ledger.export_state()["accounts"] == {}


def test_journal_nested_commit_reaches_base():
    accounts = {}
    protocol = ProtocolState()
    j = Journal(accounts, protocol, [], {})
    assert j.depth() == 1
    assert j.begin() == 2
    assert j.begin() == 3
    j.account_for_write(ALICE).balance = 3
    j.protocol_for_write().total_staked = 3

    j.commit()
    j.commit()
    assert j.depth() == 1
    assert ALICE not in accounts
    assert protocol.total_staked == 0

    # committing the root layer applies it to the base containers
    j.commit()
    assert j.depth() == 1
    assert accounts[ALICE] == ParticipantAccount(balance=3)
    assert protocol.total_staked == 3


def test_checkpoint_zero_is_a_real_timestamp():
    ledger = LedgerStore()
    ledger.set_checkpoint(ALICE, 0)
    assert ledger.get_checkpoint(ALICE) == 0

    state = json.loads(json.dumps(ledger.export_state()))
    assert state["accounts"][ALICE]["accrual_checkpoint"] == 0
    again = LedgerStore.from_state(state)
    assert again.get_checkpoint(ALICE) == 0
    assert again.get_checkpoint(BOB) is None


def test_account_record_validates_fields():
    with pytest.raises(ValueError):
        ParticipantAccount(balance=-1)
    with pytest.raises(TypeError):
        ParticipantAccount(balance="1")  # type: ignore[arg-type]
    acc = ParticipantAccount(balance=2, risk_score=1)
    assert ParticipantAccount.from_dict(acc.to_dict()) == acc
    assert not acc.is_empty()
    assert ParticipantAccount().is_empty()
    assert ParticipantAccount().accrual_checkpoint is None
    assert not ParticipantAccount(accrual_checkpoint=0).is_empty()
    assert ParticipantAccount.from_dict({"balance": 1}).accrual_checkpoint is None
