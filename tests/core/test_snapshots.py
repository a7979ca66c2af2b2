"""Tests for stakeledger/core/snapshots.py: the primary reward history."""

import pytest

from stakeledger.core.fixed_point import ZERO, Wad, parse_units
from stakeledger.core.snapshots import (
    Snapshot,
    append_reward,
    genesis_history,
    is_monotone,
    latest,
    latest_index,
    owed_since,
)
from stakeledger.errors import NothingStaked, ZeroAmount


STAKED = parse_units(4800)


class TestGenesis:
    def test_single_zero_sentinel(self):
        h = genesis_history(7)
        assert latest_index(h) == 0
        assert h[0] == Snapshot(time=7, reward_received=0, reward_per_share=ZERO)

    def test_negative_time_rejected(self):
        with pytest.raises(ValueError):
            Snapshot(time=-1, reward_received=0, reward_per_share=ZERO)


class TestAppendReward:
    def test_reference_injection(self):
        h = append_reward(genesis_history(), parse_units(10000), STAKED, now=1)
        assert latest_index(h) == 1
        assert latest(h).reward_per_share == Wad(2083333333333333333)
        assert latest(h).reward_received == parse_units(10000)
        assert latest(h).time == 1

    def test_cumulative(self):
        h = append_reward(genesis_history(), 100, 10, now=1)
        h = append_reward(h, 50, 10, now=2)
        assert latest(h).reward_per_share == Wad.ratio(100, 10) + Wad.ratio(50, 10)
        assert is_monotone(h)

    def test_zero_amount(self):
        with pytest.raises(ZeroAmount):
            append_reward(genesis_history(), 0, STAKED, now=1)

    def test_nothing_staked(self):
        with pytest.raises(NothingStaked):
            append_reward(genesis_history(), 1, 0, now=1)

    def test_input_not_mutated(self):
        h = genesis_history()
        append_reward(h, 1, 1, now=1)
        assert len(h) == 1


class TestOwedSince:
    def test_reference_earned(self):
        h = append_reward(genesis_history(), parse_units(10000), STAKED, now=1)
        assert owed_since(h, STAKED, 0) == 9999999999999999998400

    def test_current_index_owes_nothing(self):
        h = append_reward(genesis_history(), parse_units(10000), STAKED, now=1)
        assert owed_since(h, STAKED, latest_index(h)) == 0

    def test_reads_only_endpoints(self):
        h = genesis_history()
        for t in range(1, 6):
            h = append_reward(h, 1000, 1000, now=t)
        assert owed_since(h, 1000, 2) == 3000

    def test_out_of_range(self):
        with pytest.raises(IndexError):
            owed_since(genesis_history(), 1, 1)
