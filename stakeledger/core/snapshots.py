"""
Snapshot ledger for the primary (seigniorage) reward stream.

The history is an append-only persistent vector of ``Snapshot`` records; index 0 is a zero
genesis sentinel. ``reward_per_share`` is cumulative and non-decreasing, so an
account's entitlement over any holding period is

    balance * (latest.reward_per_share - history[last_index].reward_per_share)

which reads exactly two snapshots no matter how many injections happened while
the account was idle.
"""

from __future__ import annotations

from dataclasses import dataclass

from pyrsistent import PVector, pvector

from ..errors import NothingStaked, ZeroAmount
from .fixed_point import ZERO, Wad


@dataclass(frozen=True)
class Snapshot:
    time: int
    reward_received: int
    reward_per_share: Wad

    def __post_init__(self) -> None:
        if self.time < 0:
            raise ValueError(f"time must be non-negative: {self.time}")
        if self.reward_received < 0:
            raise ValueError(f"reward_received must be non-negative: {self.reward_received}")


Snapshots = PVector  # of Snapshot


def genesis_history(time: int = 0) -> Snapshots:
    return pvector([Snapshot(time=time, reward_received=0, reward_per_share=ZERO)])


def latest_index(history: Snapshots) -> int:
    return len(history) - 1


def latest(history: Snapshots) -> Snapshot:
    return history[-1]


def append_reward(history: Snapshots, amount: int, total_staked: int, now: int) -> Snapshots:
    """Return *history* with a snapshot for an injection of *amount*.

    Raises:
        ZeroAmount: ``amount == 0``.
        NothingStaked: ``total_staked == 0`` (the reward would be unattributable).
    """
    if amount <= 0:
        raise ZeroAmount("cannot allocate 0")
    if total_staked <= 0:
        raise NothingStaked("cannot allocate when total supply is 0")
    next_rps = latest(history).reward_per_share + Wad.ratio(amount, total_staked)
    return history.append(Snapshot(time=now, reward_received=amount, reward_per_share=next_rps))


def owed_since(history: Snapshots, balance: int, last_index: int) -> int:
    """Reward accrued by *balance* since snapshot *last_index*, rounded down."""
    if not 0 <= last_index < len(history):
        raise IndexError(f"snapshot index out of range: {last_index}")
    delta = latest(history).reward_per_share - history[last_index].reward_per_share
    return delta.mul_amount(balance)


def is_monotone(history: Snapshots) -> bool:
    return all(history[i - 1].reward_per_share <= history[i].reward_per_share for i in range(1, len(history)))
