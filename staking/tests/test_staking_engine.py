from __future__ import annotations

import pytest

from staking.errors import (InsufficientBalance, InvalidAmount, NoYieldAvailable,
                            NotActive)

OWNER = "SP" + "77" * 19
ALICE = "SP" + "AA" * 19
BOB = "SP" + "BB" * 19

T0 = 1_700_000_000
DAY = 86_400
MIN_STAKE = 1_000_000


def _sum_balances(p) -> int:
    return sum(p.balance_of(x) for x in p.ledger.participants())


# -----------------------------------------------------------------------------
# deposit
# -----------------------------------------------------------------------------


def test_deposit_requires_active_protocol(proto):
    with pytest.raises(NotActive):
        proto.deposit(ALICE, MIN_STAKE)
    assert proto.balance_of(ALICE) == 0


def test_deposit_minimum_boundary(live):
    with pytest.raises(InvalidAmount) as ei:
        live.deposit(ALICE, MIN_STAKE - 1)
    assert ei.value.data["minimum"] == MIN_STAKE
    assert live.balance_of(ALICE) == 0

    assert live.deposit(ALICE, MIN_STAKE) == MIN_STAKE
    assert live.balance_of(ALICE) == MIN_STAKE
    assert live.total_supply() == MIN_STAKE


def test_deposit_rejects_non_uint_amounts(live):
    with pytest.raises(InvalidAmount):
        live.deposit(ALICE, -5)
    with pytest.raises(InvalidAmount):
        live.deposit(ALICE, 0)


def test_deposit_risk_score_granularity(live):
    live.deposit(ALICE, 250_000_000)
    assert live.staker_info(ALICE).risk_score == 2
    live.deposit(ALICE, 99_999_999)
    assert live.staker_info(ALICE).risk_score == 2
    live.deposit(BOB, MIN_STAKE)
    assert live.staker_info(BOB).risk_score == 0


def test_deposit_coverage_overwrites_when_insured(live):
    live.deposit(ALICE, 5_000_000)
    assert live.staker_info(ALICE).insurance_coverage == 0

    live.toggle_insurance(OWNER, True)
    live.deposit(ALICE, 5_000_000)
    assert live.staker_info(ALICE).insurance_coverage == 5_000_000
    live.deposit(ALICE, 2_000_000)
    assert live.staker_info(ALICE).insurance_coverage == 2_000_000


def test_deposit_emits_stake_event(live, sink):
    live.deposit(ALICE, MIN_STAKE)
    rec = list(sink.get_events(name="stake"))[-1]
    assert rec.event.args == {"staker": ALICE, "amount": MIN_STAKE, "balance": MIN_STAKE, "timestamp": T0}
    assert rec.caller == ALICE
    assert rec.op == "deposit"


def test_top_up_settles_pending_yield(live, clock):
    live.deposit(ALICE, MIN_STAKE)
    clock.advance(DAY)
    live.deposit(ALICE, MIN_STAKE)

    info = live.staker_info(ALICE)
    assert info.accumulated_rewards == 205
    assert info.balance == 2 * MIN_STAKE
    assert info.accrual_checkpoint == T0 + DAY

    # Rewards settled on top-up are harvestable immediately.
    assert live.harvest(ALICE) == 205
    assert live.balance_of(ALICE) == 2 * MIN_STAKE + 205
    assert live.staker_info(ALICE).accumulated_rewards == 0


# -----------------------------------------------------------------------------
# harvest
# -----------------------------------------------------------------------------


def test_harvest_one_day_at_750(live, clock):
    live.deposit(ALICE, MIN_STAKE)
    clock.advance(DAY)

    assert live.pending_yield(ALICE) == 205
    assert live.harvest(ALICE) == 205
    info = live.staker_info(ALICE)
    assert info.balance == 1_000_205
    assert info.accumulated_rewards == 0
    assert live.total_supply() == 1_000_205


def test_second_harvest_without_progress_fails(live, clock):
    live.deposit(ALICE, MIN_STAKE)
    clock.advance(DAY)
    live.harvest(ALICE)
    before = live.export_state()

    with pytest.raises(NoYieldAvailable):
        live.harvest(ALICE)
    assert live.export_state() == before


def test_harvest_before_a_full_day_fails(live, clock):
    live.deposit(ALICE, MIN_STAKE)
    clock.advance(DAY - 1)
    with pytest.raises(NoYieldAvailable):
        live.harvest(ALICE)
    assert live.balance_of(ALICE) == MIN_STAKE


def test_harvest_keeps_partial_day(live, clock):
    live.deposit(ALICE, MIN_STAKE)
    clock.advance(DAY + 3_600)
    assert live.harvest(ALICE) == 205
    assert live.staker_info(ALICE).accrual_checkpoint == T0 + DAY

    # the hour carried over completes the second day
    clock.advance(DAY - 3_600)
    assert live.harvest(ALICE) == (1_000_205 * 750) // 3_650_000


def test_harvest_requires_active(proto):
    with pytest.raises(NotActive):
        proto.harvest(ALICE)


def test_harvest_survives_an_intervening_distribution(live, clock):
    live.deposit(ALICE, MIN_STAKE)
    clock.advance(DAY)
    assert live.distribute(OWNER) == 205
    assert live.harvest(ALICE) == 205


def test_checkpoint_at_timestamp_zero_keeps_its_window():
    from staking.clock import ManualClock
    from staking.config import load_config
    from staking.protocol import StakingProtocol
    from staking.state.events import InMemoryEventSink

    clock = ManualClock(0)
    p = StakingProtocol(OWNER, config=load_config(env={}), clock=clock, sink=InMemoryEventSink())
    p.initialize(OWNER, 750)
    p.deposit(ALICE, MIN_STAKE)
    assert p.staker_info(ALICE).accrual_checkpoint == 0

    clock.advance(DAY)
    p.distribute(OWNER)
    clock.advance(DAY)
    # the window still starts at 0, not at the distribution
    assert p.pending_yield(ALICE) == (MIN_STAKE * 750 * 2) // 3_650_000
    assert p.harvest(ALICE) == 410


# -----------------------------------------------------------------------------
# withdraw
# -----------------------------------------------------------------------------


def test_withdraw_same_block(live):
    live.deposit(ALICE, 3 * MIN_STAKE)
    assert live.withdraw(ALICE, MIN_STAKE) == 2 * MIN_STAKE
    assert live.total_supply() == 2 * MIN_STAKE


def test_withdraw_folds_pending_yield_first(live, clock, sink):
    live.deposit(ALICE, MIN_STAKE)
    clock.advance(DAY)

    assert live.withdraw(ALICE, MIN_STAKE) == 205
    assert live.balance_of(ALICE) == 205
    assert live.total_supply() == 205
    assert sink.names()[-2:] == ["harvest", "unstake"]


def test_withdraw_checks_pre_harvest_balance(live, clock):
    live.deposit(ALICE, MIN_STAKE)
    clock.advance(DAY)
    with pytest.raises(InsufficientBalance):
        live.withdraw(ALICE, MIN_STAKE + 100)
    # nothing folded
    assert live.balance_of(ALICE) == MIN_STAKE
    assert live.pending_yield(ALICE) == 205


def test_withdraw_rejects_zero_and_overdraw(live):
    live.deposit(ALICE, MIN_STAKE)
    with pytest.raises(InvalidAmount):
        live.withdraw(ALICE, 0)
    with pytest.raises(InsufficientBalance):
        live.withdraw(BOB, 1)


def test_withdraw_sets_coverage_to_remaining_balance(live):
    live.toggle_insurance(OWNER, True)
    live.deposit(ALICE, 5_000_000)
    live.deposit(ALICE, MIN_STAKE)
    live.withdraw(ALICE, 2_000_000)
    assert live.staker_info(ALICE).insurance_coverage == 4_000_000


def test_withdraw_requires_active(proto):
    with pytest.raises(NotActive):
        proto.withdraw(ALICE, 1)


def test_sum_of_balances_tracks_total_staked(live, clock):
    live.deposit(ALICE, 4 * MIN_STAKE)
    live.deposit(BOB, 2 * MIN_STAKE)
    clock.advance(3 * DAY)
    live.harvest(ALICE)
    live.withdraw(BOB, MIN_STAKE)
    assert _sum_balances(live) == live.total_supply()
