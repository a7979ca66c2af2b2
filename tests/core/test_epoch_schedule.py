"""Tests for stakeledger/core/epoch_schedule.py: block emission curve."""

import pytest

from stakeledger.core.epoch_schedule import (
    BLOCKS_PER_DAY,
    EpochScheduleConfig,
    build_schedule,
    default_schedule_config,
)
from stakeledger.core.fixed_point import parse_units
from stakeledger.errors import InvalidEpochConfig


@pytest.fixture
def schedule():
    return build_schedule(default_schedule_config(start_block=10))


class TestTable:
    def test_reference_constants(self, schedule):
        assert schedule.start_block == 10
        assert schedule.epoch_end_blocks(0) == 28810
        assert schedule.epoch_end_blocks(1) == BLOCKS_PER_DAY * 10 + 10
        assert schedule.epoch_total_rewards(0) == parse_units(1000)
        assert schedule.epoch_total_rewards(1) == parse_units(90000)

    def test_reward_per_block(self, schedule):
        assert schedule.epoch_reward_per_block(0) == parse_units("0.034722222222222222")
        assert schedule.epoch_reward_per_block(1) == parse_units("0.347222222222222222")
        assert schedule.epoch_reward_per_block(2) == 0

    def test_index_out_of_range(self, schedule):
        with pytest.raises(IndexError):
            schedule.epoch_reward_per_block(3)
        with pytest.raises(IndexError):
            schedule.epoch_end_blocks(2)

    def test_rate_at_block(self, schedule):
        assert schedule.reward_per_block_at(9) == 0
        assert schedule.reward_per_block_at(10) == schedule.epoch_reward_per_block(0)
        assert schedule.reward_per_block_at(28810) == schedule.epoch_reward_per_block(1)
        assert schedule.reward_per_block_at(288010) == 0


# ---------------------------------------------------------------------------
# generated_reward
# ---------------------------------------------------------------------------

class TestGeneratedReward:
    def test_single_block(self, schedule):
        assert schedule.generated_reward(10, 11) == parse_units("0.034722222222222222")

    def test_ten_blocks(self, schedule):
        assert schedule.generated_reward(20, 30) == parse_units("0.34722222222222222")

    def test_last_block_of_first_epoch(self, schedule):
        assert schedule.generated_reward(28809, 28810) == parse_units("0.034722222222222222")

    def test_crosses_epoch_boundary(self, schedule):
        expected = schedule.epoch_reward_per_block(0) + schedule.epoch_reward_per_block(1)
        assert schedule.generated_reward(28809, 28811) == expected

    def test_clamped_before_start_and_after_end(self, schedule):
        assert schedule.generated_reward(0, 11) == schedule.generated_reward(10, 11)
        assert schedule.generated_reward(288000, 10**9) == 10 * schedule.epoch_reward_per_block(1)
        assert schedule.generated_reward(288010, 10**9) == 0

    def test_empty_or_inverted(self, schedule):
        assert schedule.generated_reward(50, 50) == 0
        assert schedule.generated_reward(60, 50) == 0

    def test_whole_schedule_within_rounding(self, schedule):
        total = schedule.generated_reward(0, schedule.final_block)
        assert total <= parse_units(91000)
        assert parse_units(91000) - total < 28800 + 259200


class TestBuildSchedule:
    def test_mismatched_lengths(self):
        with pytest.raises(InvalidEpochConfig):
            build_schedule(EpochScheduleConfig(0, (10, 20), (1,)))

    def test_empty(self):
        with pytest.raises(InvalidEpochConfig):
            build_schedule(EpochScheduleConfig(0, (), ()))

    def test_zero_length_epoch(self):
        with pytest.raises(InvalidEpochConfig):
            build_schedule(EpochScheduleConfig(0, (10, 0), (1, 1)))

    def test_negative_start(self):
        with pytest.raises(InvalidEpochConfig):
            build_schedule(EpochScheduleConfig(-1, (10,), (1,)))

    def test_end_blocks_strictly_increasing(self):
        s = build_schedule(EpochScheduleConfig(5, (1, 2, 3), (0, 0, 0)))
        assert s.end_blocks == (6, 8, 11)
        assert s.rewards_per_block == (0, 0, 0, 0)
