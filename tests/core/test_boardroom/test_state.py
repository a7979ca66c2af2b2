"""Tests for stakeledger/core/boardroom/state.py: construction and serialization."""

import json

import pytest

from stakeledger.core.boardroom import (
    Action,
    ActionParams,
    BoardroomConfig,
    BoardroomState,
    initial_state,
    state_from_dict,
    state_to_dict,
    step_or_raise,
)
from stakeledger.core.fixed_point import Wad


def _busy_state() -> BoardroomState:
    s = initial_state("boardroom", BoardroomConfig(stake_fee_bps=100, withdraw_lockup=5, reward_lockup=7))
    for params in (
        ActionParams(
            action=Action.INITIALIZE,
            sender="op",
            reward_token="CASH",
            share_token="SHARE",
            treasury="treasury",
            fee_sink="dev",
        ),
        ActionParams(
            action=Action.ADD_REWARD_POOL,
            sender="op",
            now=1,
            reward_token="WETH",
            start_time=1,
            end_time=100,
            reward_per_second=Wad(10**15),
        ),
        ActionParams(action=Action.FUND_REWARD_POOL, sender="op", now=1, pool_id=0, amount=500),
        ActionParams(action=Action.STAKE, sender="alice", now=2, amount=10**18),
        ActionParams(action=Action.STAKE, sender="bob", now=3, amount=3 * 10**18),
        ActionParams(action=Action.ALLOCATE_SEIGNIORAGE, sender="treasury", now=4, amount=777),
    ):
        s = step_or_raise(s, params).state
    return s


class TestInitialState:
    def test_defaults(self):
        s = initial_state("boardroom")
        assert isinstance(s, BoardroomState)
        assert not s.initialized
        assert s.total_supply == 0
        assert len(s.history) == 1

    def test_empty_custody_rejected(self):
        with pytest.raises(ValueError):
            initial_state("")

    def test_frozen(self):
        s = initial_state("boardroom")
        with pytest.raises(AttributeError):
            s.total_supply = 1  # type: ignore

    def test_bad_config(self):
        with pytest.raises(ValueError):
            BoardroomConfig(stake_fee_bps=10_000)
        with pytest.raises(ValueError):
            BoardroomConfig(withdraw_lockup=-1)


class TestRoundTrip:
    def test_initial_state_round_trip(self):
        s = initial_state("boardroom")
        assert state_from_dict(state_to_dict(s)) == s

    def test_busy_state_round_trip(self):
        s = _busy_state()
        assert state_from_dict(state_to_dict(s)) == s

    def test_reserve_survives(self):
        s = state_from_dict(state_to_dict(_busy_state()))
        assert s.pools[0].reserve == 500

    def test_json_compatible(self):
        d = state_to_dict(_busy_state())
        assert state_from_dict(json.loads(json.dumps(d))) == _busy_state()

    def test_missing_field(self):
        d = state_to_dict(initial_state("boardroom"))
        del d["seats"]
        with pytest.raises(KeyError):
            state_from_dict(d)
