"""Read-only projections of ``BoardroomState``. None of these mutate state."""

from __future__ import annotations

from ...errors import UnknownPool
from ..fixed_point import Wad
from ..reward_pools import RewardPoolInfo, UserPoolInfo, pending
from ..snapshots import Snapshot, latest, latest_index, owed_since
from . import guards
from .types import BoardroomState, Seat


def seat_of(state: BoardroomState, account: str) -> Seat:
    return state.seats.get(account, Seat())


def balance_of(state: BoardroomState, account: str) -> int:
    return seat_of(state, account).balance


def earned(state: BoardroomState, account: str) -> int:
    """Settled plus pending primary-stream reward of *account*."""
    seat = seat_of(state, account)
    return seat.reward_earned + owed_since(state.history, seat.balance, seat.last_snapshot_index)


def last_snapshot_index_of(state: BoardroomState, account: str) -> int:
    return seat_of(state, account).last_snapshot_index


def latest_snapshot_index(state: BoardroomState) -> int:
    return latest_index(state.history)


def latest_snapshot(state: BoardroomState) -> Snapshot:
    return latest(state.history)


def reward_per_share(state: BoardroomState) -> Wad:
    return latest(state.history).reward_per_share


def pool_info(state: BoardroomState, pool_id: int) -> RewardPoolInfo:
    if not 0 <= pool_id < len(state.pools):
        raise UnknownPool(f"no reward pool {pool_id}")
    return state.pools[pool_id]


def pending_reward(state: BoardroomState, pool_id: int, account: str, now: int) -> int:
    pool = pool_info(state, pool_id)
    user = state.pool_users.get((pool_id, account), UserPoolInfo())
    return pending(pool, user, balance_of(state, account), state.total_supply, now)


def can_withdraw(state: BoardroomState, account: str, now: int) -> bool:
    return guards.can_withdraw(state, seat_of(state, account), now)


def can_claim_reward(state: BoardroomState, account: str, now: int) -> bool:
    return guards.can_claim_reward(state, seat_of(state, account), now)
