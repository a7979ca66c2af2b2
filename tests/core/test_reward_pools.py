"""Tests for stakeledger/core/reward_pools.py: per-second auxiliary pools."""

import pytest

from stakeledger.core.fixed_point import ZERO, Wad, parse_units
from stakeledger.core.reward_pools import (
    RewardPoolInfo,
    UserPoolInfo,
    accrual_seconds,
    draw,
    new_pool,
    pending,
    settle_user,
    update_pool,
)


STAKED = parse_units(4800)
RATE = Wad.from_units("0.01")


def _pool(start=100, end=1000, now=100) -> RewardPoolInfo:
    return new_pool("WETH", start, end, RATE, now)


class TestPoolInfo:
    def test_inverted_window_rejected(self):
        with pytest.raises(ValueError):
            RewardPoolInfo("WETH", 10, 10, RATE)

    def test_new_pool_checkpoint_is_now(self):
        assert _pool(now=50).last_update_time == 50

    def test_negative_user_fields_rejected(self):
        with pytest.raises(ValueError):
            UserPoolInfo(reward_debt=-1)

    def test_negative_reserve_rejected(self):
        with pytest.raises(ValueError):
            RewardPoolInfo("WETH", 10, 20, RATE, reserve=-1)


# ---------------------------------------------------------------------------
# accrual window
# ---------------------------------------------------------------------------

class TestAccrualSeconds:
    def test_inside_window(self):
        assert accrual_seconds(_pool(), 104) == 4

    def test_before_start(self):
        assert accrual_seconds(_pool(start=200, now=100), 150) == 0

    def test_clamped_at_end(self):
        assert accrual_seconds(_pool(end=110), 500) == 10

    def test_after_end(self):
        p = update_pool(_pool(end=110), STAKED, 500)
        assert accrual_seconds(p, 900) == 0


class TestUpdatePool:
    def test_reference_accrual(self):
        p = update_pool(_pool(), STAKED, 104)
        assert p.acc_reward_per_share == Wad(8333333333333)
        assert p.last_update_time == 104

    def test_same_time_is_noop(self):
        p = _pool()
        assert update_pool(p, STAKED, 100) is p

    def test_zero_stake_only_advances_time(self):
        p = update_pool(_pool(), 0, 150)
        assert p.acc_reward_per_share == ZERO
        assert p.last_update_time == 150

    def test_split_update_matches_single_when_exact(self):
        whole = update_pool(_pool(), parse_units(1), 110)
        split = update_pool(update_pool(_pool(), parse_units(1), 105), parse_units(1), 110)
        assert whole.acc_reward_per_share == split.acc_reward_per_share


class TestPendingAndSettle:
    def test_reference_pending(self):
        assert pending(_pool(), UserPoolInfo(), STAKED, STAKED, 104) == 39999999999998400

    def test_pending_does_not_mutate(self):
        p = _pool()
        pending(p, UserPoolInfo(), STAKED, STAKED, 104)
        assert p.last_update_time == 100

    def test_settle_moves_accrual_to_unclaimed(self):
        p = update_pool(_pool(), STAKED, 104)
        u = settle_user(p, UserPoolInfo(), STAKED, STAKED * 2)
        assert u.unclaimed == 39999999999998400
        assert u.reward_debt == p.acc_reward_per_share.mul_amount(STAKED * 2)
        assert pending(p, u, STAKED * 2, STAKED * 2, 104) == u.unclaimed

    def test_new_staker_gets_nothing_retroactive(self):
        p = update_pool(_pool(), STAKED, 104)
        u = settle_user(p, UserPoolInfo(), 0, STAKED)
        assert pending(p, u, STAKED, STAKED, 104) == 0


class TestDraw:
    def test_reserve_covers_all(self):
        pool, user, paid = draw(RewardPoolInfo("WETH", 10, 20, RATE, reserve=100), UserPoolInfo(unclaimed=40))
        assert (paid, pool.reserve, user.unclaimed) == (40, 60, 0)

    def test_shortfall_stays_owed(self):
        pool, user, paid = draw(RewardPoolInfo("WETH", 10, 20, RATE, reserve=30), UserPoolInfo(unclaimed=40))
        assert (paid, pool.reserve, user.unclaimed) == (30, 0, 10)

    def test_empty_reserve_pays_nothing(self):
        pool, user, paid = draw(_pool(), UserPoolInfo(reward_debt=7, unclaimed=40))
        assert paid == 0
        assert user == UserPoolInfo(reward_debt=7, unclaimed=40)
