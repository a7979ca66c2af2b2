"""
Block-scheduled emission curve.

The schedule is computed once from ``EpochScheduleConfig`` and never changes:
epoch ``i`` covers blocks ``[end(i-1), end(i))`` (with ``end(-1) = start_block``)
and emits ``total_reward(i) // length(i)`` per block. Before ``start_block`` and
from the last epoch's end block onward the rate is zero.

``generated_reward(a, b) + generated_reward(b, c) == generated_reward(a, c)``
holds for all ``a <= b <= c`` because the integral is computed segment by
segment with the per-block rate already rounded down.
"""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass

from ..errors import InvalidEpochConfig
from .fixed_point import parse_units

BLOCKS_PER_DAY: int = 28_800


@dataclass(frozen=True)
class EpochScheduleConfig:
    start_block: int
    epoch_lengths: tuple[int, ...]
    epoch_total_rewards: tuple[int, ...]


def default_schedule_config(start_block: int) -> EpochScheduleConfig:
    """One day of 1,000 tokens followed by nine days of 90,000 tokens."""
    return EpochScheduleConfig(
        start_block=start_block,
        epoch_lengths=(BLOCKS_PER_DAY, BLOCKS_PER_DAY * 9),
        epoch_total_rewards=(parse_units(1_000), parse_units(90_000)),
    )


@dataclass(frozen=True)
class EpochSchedule:
    start_block: int
    end_blocks: tuple[int, ...]
    total_rewards: tuple[int, ...]
    # One entry per epoch plus a trailing 0 for "after the final epoch".
    rewards_per_block: tuple[int, ...]

    @property
    def epoch_count(self) -> int:
        return len(self.end_blocks)

    @property
    def final_block(self) -> int:
        return self.end_blocks[-1]

    def epoch_total_rewards(self, epoch: int) -> int:
        return self.total_rewards[self._check_epoch(epoch, self.epoch_count)]

    def epoch_end_blocks(self, epoch: int) -> int:
        return self.end_blocks[self._check_epoch(epoch, self.epoch_count)]

    def epoch_reward_per_block(self, epoch: int) -> int:
        """Per-block rate of *epoch*; ``epoch == epoch_count`` is the zero tail."""
        return self.rewards_per_block[self._check_epoch(epoch, self.epoch_count + 1)]

    def epoch_at(self, block: int) -> int:
        """Epoch index containing *block* (``epoch_count`` once the schedule is over)."""
        return bisect_right(self.end_blocks, block)

    def reward_per_block_at(self, block: int) -> int:
        if block < self.start_block:
            return 0
        return self.rewards_per_block[self.epoch_at(block)]

    def generated_reward(self, from_block: int, to_block: int) -> int:
        """Total emission over blocks ``[from_block, to_block)``."""
        lo = max(from_block, self.start_block)
        hi = min(to_block, self.final_block)
        if hi <= lo:
            return 0
        total = 0
        seg_start = self.start_block
        for end, rate in zip(self.end_blocks, self.rewards_per_block):
            seg_lo = max(lo, seg_start)
            seg_hi = min(hi, end)
            if seg_hi > seg_lo:
                total += (seg_hi - seg_lo) * rate
            if end >= hi:
                break
            seg_start = end
        return total

    @staticmethod
    def _check_epoch(epoch: int, limit: int) -> int:
        if not 0 <= epoch < limit:
            raise IndexError(f"epoch index out of range: {epoch}")
        return epoch


def build_schedule(config: EpochScheduleConfig) -> EpochSchedule:
    """Validate *config* and precompute the epoch table.

    Raises:
        InvalidEpochConfig: negative start block, empty or mismatched tables,
            non-positive epoch lengths or negative totals.
    """
    lengths = tuple(config.epoch_lengths)
    totals = tuple(config.epoch_total_rewards)
    if config.start_block < 0:
        raise InvalidEpochConfig(f"start_block must be non-negative: {config.start_block}")
    if not lengths:
        raise InvalidEpochConfig("schedule needs at least one epoch")
    if len(lengths) != len(totals):
        raise InvalidEpochConfig(
            f"epoch_lengths ({len(lengths)}) and epoch_total_rewards ({len(totals)}) differ in length"
        )
    for i, (length, total) in enumerate(zip(lengths, totals)):
        if not isinstance(length, int) or isinstance(length, bool) or length <= 0:
            raise InvalidEpochConfig(f"epoch {i}: length must be a positive int, got {length!r}")
        if not isinstance(total, int) or isinstance(total, bool) or total < 0:
            raise InvalidEpochConfig(f"epoch {i}: total reward must be a non-negative int, got {total!r}")

    end_blocks: list[int] = []
    end = config.start_block
    for length in lengths:
        end += length
        end_blocks.append(end)

    return EpochSchedule(
        start_block=config.start_block,
        end_blocks=tuple(end_blocks),
        total_rewards=totals,
        rewards_per_block=tuple(total // length for total, length in zip(totals, lengths)) + (0,),
    )
