# -*- coding: utf-8 -*-
"""
staking.tests.conftest
======================

Pytest fixtures for the staking ledger.

- A ManualClock starting at a fixed timestamp; tests advance it explicitly.
- A config built from an empty environment so host env vars cannot leak in.
- `proto` (fresh, inactive) and `live` (initialized at 750 bps) protocols
  wired to an in-memory event sink, owned by ``"SP" + "77" * 19``.

Usage (inside a test file):
    OWNER = "SP" + "77" * 19
    ALICE = "SP" + "AA" * 19

    def test_flow(live, clock):
        live.deposit(ALICE, 1_000_000)
        clock.advance(86_400)
        assert live.harvest(ALICE) == 205
"""
from __future__ import annotations

import os

import pytest

from staking.clock import ManualClock
from staking.config import load_config
from staking.protocol import StakingProtocol
from staking.state.events import InMemoryEventSink

os.environ.setdefault("TZ", "UTC")

OWNER = "SP" + "77" * 19
T0 = 1_700_000_000
RATE = 750


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(T0)


@pytest.fixture
def cfg():
    return load_config(env={})


@pytest.fixture
def sink() -> InMemoryEventSink:
    return InMemoryEventSink()


@pytest.fixture
def proto(cfg, clock, sink) -> StakingProtocol:
    return StakingProtocol(OWNER, config=cfg, clock=clock, sink=sink)


@pytest.fixture
def live(proto) -> StakingProtocol:
    proto.initialize(OWNER, RATE)
    return proto
