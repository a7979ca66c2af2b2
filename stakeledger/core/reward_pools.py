"""
Auxiliary time-windowed reward pools (pull-model accrual).

Each pool streams ``reward_per_second`` of its reward token to boardroom stakers
between ``start_time`` and ``end_time``. Accrual is lazy: ``update_pool`` folds
the elapsed, window-clamped time into ``acc_reward_per_share`` only when some
call touches the pool.

Payouts come out of the pool's own ``reserve`` (tokens deposited through
``fund_reward_pool``), never out of the boardroom's other holdings. Reward
beyond the reserve stays owed until the pool is topped up.

All functions are pure and return new frozen values.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from .fixed_point import ZERO, Wad


@dataclass(frozen=True)
class RewardPoolInfo:
    reward_token: str
    start_time: int
    end_time: int
    reward_per_second: Wad
    acc_reward_per_share: Wad = ZERO
    last_update_time: int = 0
    reserve: int = 0

    def __post_init__(self) -> None:
        if self.start_time < 0:
            raise ValueError(f"start_time must be non-negative: {self.start_time}")
        if self.end_time <= self.start_time:
            raise ValueError(f"end_time must be after start_time: {self.start_time}..{self.end_time}")
        if self.last_update_time < 0:
            raise ValueError(f"last_update_time must be non-negative: {self.last_update_time}")
        if self.reserve < 0:
            raise ValueError(f"reserve must be non-negative: {self.reserve}")


@dataclass(frozen=True)
class UserPoolInfo:
    """Per-(pool, account) debt marker plus settled-but-unpaid reward."""

    reward_debt: int = 0
    unclaimed: int = 0

    def __post_init__(self) -> None:
        if self.reward_debt < 0 or self.unclaimed < 0:
            raise ValueError("reward_debt and unclaimed must be non-negative")


def new_pool(reward_token: str, start_time: int, end_time: int, reward_per_second: Wad, now: int) -> RewardPoolInfo:
    return RewardPoolInfo(
        reward_token=reward_token,
        start_time=start_time,
        end_time=end_time,
        reward_per_second=reward_per_second,
        last_update_time=now,
    )


def accrual_seconds(pool: RewardPoolInfo, now: int) -> int:
    """Length of ``[start_time, end_time] ∩ (last_update_time, now]``."""
    lo = max(pool.last_update_time, pool.start_time)
    hi = min(now, pool.end_time)
    return max(0, hi - lo)


def update_pool(pool: RewardPoolInfo, total_staked: int, now: int) -> RewardPoolInfo:
    if now <= pool.last_update_time:
        return pool
    if total_staked == 0:
        return replace(pool, last_update_time=now)
    elapsed = accrual_seconds(pool, now)
    acc = pool.acc_reward_per_share
    if elapsed > 0:
        acc = acc + Wad.ratio(elapsed * pool.reward_per_second.raw, total_staked)
    return replace(pool, acc_reward_per_share=acc, last_update_time=now)


def pending(pool: RewardPoolInfo, user: UserPoolInfo, balance: int, total_staked: int, now: int) -> int:
    """Read-only projection of what *user* could claim from *pool* at *now*."""
    simulated = update_pool(pool, total_staked, now)
    accrued = simulated.acc_reward_per_share.mul_amount(balance) - user.reward_debt
    return accrued + user.unclaimed


def settle_user(pool: RewardPoolInfo, user: UserPoolInfo, balance_before: int, balance_after: int) -> UserPoolInfo:
    """Move accrued reward into ``unclaimed`` and re-base the debt on *balance_after*.

    *pool* must already be updated to the current time.
    """
    accrued = pool.acc_reward_per_share.mul_amount(balance_before) - user.reward_debt
    return UserPoolInfo(
        reward_debt=pool.acc_reward_per_share.mul_amount(balance_after),
        unclaimed=user.unclaimed + accrued,
    )


def draw(pool: RewardPoolInfo, user: UserPoolInfo) -> tuple[RewardPoolInfo, UserPoolInfo, int]:
    """Pay as much of *user*'s unclaimed reward as the reserve covers.

    Returns the debited pool, the user with the shortfall still unclaimed, and
    the amount paid.
    """
    paid = min(user.unclaimed, pool.reserve)
    return (
        replace(pool, reserve=pool.reserve - paid),
        replace(user, unclaimed=user.unclaimed - paid),
        paid,
    )
