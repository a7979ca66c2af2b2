"""Invariant checkers for the boardroom kernel.

Two registries:

- ``INVARIANT_REGISTRY`` audits a whole state (every seat, every snapshot).
  ``check_all()`` returns the violated IDs; it is for tests and offline audits.
- ``STEP_INVARIANT_REGISTRY`` checks one transition: only the snapshots it
  appended and the seat it touched. The engine runs ``check_step()`` on every
  post-state, so the per-call cost does not grow with the ledger.

Every action touches at most the sender's seat and appends at most one
snapshot; the step checks rely on that.
"""

from __future__ import annotations

from typing import Callable

from ..fixed_point import BPS_DENOM, ZERO
from ..snapshots import is_monotone
from .types import ActionParams, BoardroomState, Seat


def inv_genesis_zero(s: BoardroomState) -> bool:
    return len(s.history) >= 1 and s.history[0].reward_per_share == ZERO


def inv_reward_per_share_monotone(s: BoardroomState) -> bool:
    return is_monotone(s.history)


def inv_snapshot_times_ordered(s: BoardroomState) -> bool:
    return all(s.history[i - 1].time <= s.history[i].time for i in range(1, len(s.history)))


def inv_seat_index_in_range(s: BoardroomState) -> bool:
    return all(seat.last_snapshot_index < len(s.history) for seat in s.seats.values())


def inv_total_supply_matches_seats(s: BoardroomState) -> bool:
    return s.total_supply == sum(seat.balance for seat in s.seats.values())


def inv_pool_users_reference_pools(s: BoardroomState) -> bool:
    return all(0 <= pid < len(s.pools) for pid, _account in s.pool_users)


def inv_stake_fee_bounded(s: BoardroomState) -> bool:
    return 0 <= s.config.stake_fee_bps < BPS_DENOM


def inv_operator_when_initialized(s: BoardroomState) -> bool:
    if not s.initialized:
        return s.operator == "" and s.total_supply == 0
    return s.operator != ""


# ---------------------------------------------------------------------------
# Registry + check_all
# ---------------------------------------------------------------------------

INVARIANT_REGISTRY: dict[str, Callable[[BoardroomState], bool]] = {
    "inv_genesis_zero": inv_genesis_zero,
    "inv_reward_per_share_monotone": inv_reward_per_share_monotone,
    "inv_snapshot_times_ordered": inv_snapshot_times_ordered,
    "inv_seat_index_in_range": inv_seat_index_in_range,
    "inv_total_supply_matches_seats": inv_total_supply_matches_seats,
    "inv_pool_users_reference_pools": inv_pool_users_reference_pools,
    "inv_stake_fee_bounded": inv_stake_fee_bounded,
    "inv_operator_when_initialized": inv_operator_when_initialized,
}


def check_all(state: BoardroomState) -> list[str]:
    """Return list of violated invariant IDs (empty = all pass)."""
    return [
        inv_id
        for inv_id, check_fn in INVARIANT_REGISTRY.items()
        if not check_fn(state)
    ]


# ---------------------------------------------------------------------------
# Per-transition checks
# ---------------------------------------------------------------------------

def _appended(pre: BoardroomState, post: BoardroomState) -> bool:
    return len(post.history) == len(pre.history) + 1


def step_history_append_only(pre: BoardroomState, post: BoardroomState, params: ActionParams) -> bool:
    if not pre.initialized:
        return len(post.history) == 1
    n = len(pre.history)
    if len(post.history) not in (n, n + 1):
        return False
    return post.history[n - 1] == pre.history[n - 1]


def step_reward_per_share_monotone(pre: BoardroomState, post: BoardroomState, params: ActionParams) -> bool:
    if not _appended(pre, post):
        return True
    return post.history[-2].reward_per_share <= post.history[-1].reward_per_share


def step_snapshot_times_ordered(pre: BoardroomState, post: BoardroomState, params: ActionParams) -> bool:
    if not _appended(pre, post):
        return True
    return post.history[-2].time <= post.history[-1].time


def step_seat_index_in_range(pre: BoardroomState, post: BoardroomState, params: ActionParams) -> bool:
    return post.seats.get(params.sender, Seat()).last_snapshot_index < len(post.history)


def step_total_supply_matches_seats(pre: BoardroomState, post: BoardroomState, params: ActionParams) -> bool:
    before = pre.seats.get(params.sender, Seat()).balance
    after = post.seats.get(params.sender, Seat()).balance
    return post.total_supply - pre.total_supply == after - before


def step_pools_append_only(pre: BoardroomState, post: BoardroomState, params: ActionParams) -> bool:
    return len(post.pools) >= len(pre.pools)


def step_stake_fee_bounded(pre: BoardroomState, post: BoardroomState, params: ActionParams) -> bool:
    return inv_stake_fee_bounded(post)


def step_operator_when_initialized(pre: BoardroomState, post: BoardroomState, params: ActionParams) -> bool:
    return inv_operator_when_initialized(post)


STEP_INVARIANT_REGISTRY: dict[str, Callable[[BoardroomState, BoardroomState, ActionParams], bool]] = {
    "inv_history_append_only": step_history_append_only,
    "inv_reward_per_share_monotone": step_reward_per_share_monotone,
    "inv_snapshot_times_ordered": step_snapshot_times_ordered,
    "inv_seat_index_in_range": step_seat_index_in_range,
    "inv_total_supply_matches_seats": step_total_supply_matches_seats,
    "inv_pools_append_only": step_pools_append_only,
    "inv_stake_fee_bounded": step_stake_fee_bounded,
    "inv_operator_when_initialized": step_operator_when_initialized,
}


def check_step(pre: BoardroomState, post: BoardroomState, params: ActionParams) -> list[str]:
    """Return the invariant IDs a single transition violates."""
    return [
        inv_id
        for inv_id, check_fn in STEP_INVARIANT_REGISTRY.items()
        if not check_fn(pre, post, params)
    ]
