"""Guard clauses for the boardroom kernel.

One function per action, evaluated against the PRE-state. A guard returns
``None`` when the action may proceed and raises the matching ``LedgerError``
otherwise. Checks that depend on settled amounts (claim lock-ups) run inside
the update, after settlement.
"""

from __future__ import annotations

from dataclasses import replace

from ...errors import (
    AlreadyInitialized,
    InsufficientBalance,
    InvalidPoolConfig,
    NotInitialized,
    StillLocked,
    Unauthorized,
    UnknownPool,
    ZeroAmount,
)
from ..fixed_point import BPS_DENOM
from .types import ActionParams, BoardroomState, Seat


def require_initialized(state: BoardroomState) -> None:
    if not state.initialized:
        raise NotInitialized("boardroom is not initialized")


def require_operator(state: BoardroomState, sender: str) -> None:
    require_initialized(state)
    if sender != state.operator:
        raise Unauthorized(f"caller {sender} is not the operator")


def unlocks_at(entered_at: int, lockup: int) -> int:
    return entered_at + lockup


def can_withdraw(state: BoardroomState, seat: Seat, now: int) -> bool:
    return now >= unlocks_at(seat.entered_at, state.config.withdraw_lockup)


def can_claim_reward(state: BoardroomState, seat: Seat, now: int) -> bool:
    return now >= unlocks_at(seat.entered_at, state.config.reward_lockup)


def require_can_claim(state: BoardroomState, seat: Seat, now: int) -> None:
    if not can_claim_reward(state, seat, now):
        raise StillLocked(
            f"reward locked until {unlocks_at(seat.entered_at, state.config.reward_lockup)}"
        )


# -- Per-action guards -------------------------------------------------------

def guard_initialize(state: BoardroomState, params: ActionParams) -> None:
    if state.initialized:
        raise AlreadyInitialized("boardroom already initialized")
    if not params.reward_token or not params.share_token:
        raise InvalidPoolConfig("reward_token and share_token are required")
    if state.config.stake_fee_bps > 0 and not params.fee_sink:
        raise InvalidPoolConfig("a stake fee needs a fee sink")


def guard_stake(state: BoardroomState, params: ActionParams) -> None:
    require_initialized(state)
    if params.amount <= 0:
        raise ZeroAmount("cannot stake 0")


def guard_withdraw(state: BoardroomState, params: ActionParams) -> None:
    require_initialized(state)
    if params.amount <= 0:
        raise ZeroAmount("cannot withdraw 0")
    seat = state.seats.get(params.sender, Seat())
    if params.amount > seat.balance:
        raise InsufficientBalance(
            f"withdraw request {params.amount} exceeds staked balance {seat.balance}"
        )
    if not can_withdraw(state, seat, params.now):
        raise StillLocked(
            f"withdrawal locked until {unlocks_at(seat.entered_at, state.config.withdraw_lockup)}"
        )


def guard_exit(state: BoardroomState, params: ActionParams) -> None:
    require_initialized(state)
    seat = state.seats.get(params.sender, Seat())
    guard_withdraw(state, replace(params, amount=seat.balance))


def guard_claim(state: BoardroomState, params: ActionParams) -> None:
    require_initialized(state)


def guard_allocate_seigniorage(state: BoardroomState, params: ActionParams) -> None:
    require_initialized(state)
    if params.sender not in (state.operator, state.treasury):
        raise Unauthorized(f"caller {params.sender} may not allocate seigniorage")
    if params.amount <= 0:
        raise ZeroAmount("cannot allocate 0")


def guard_add_reward_pool(state: BoardroomState, params: ActionParams) -> None:
    require_operator(state, params.sender)
    if not params.reward_token:
        raise InvalidPoolConfig("reward pool needs a reward token")
    if params.reward_token in (state.share_token, state.reward_token):
        raise InvalidPoolConfig(
            f"reward pool cannot pay {params.reward_token}: it backs stakes or dividends"
        )
    if params.start_time < 0:
        raise InvalidPoolConfig(f"start_time must be non-negative: {params.start_time}")
    if params.end_time <= params.start_time:
        raise InvalidPoolConfig(
            f"end_time {params.end_time} must be after start_time {params.start_time}"
        )


def guard_fund_reward_pool(state: BoardroomState, params: ActionParams) -> None:
    require_initialized(state)
    if not 0 <= params.pool_id < len(state.pools):
        raise UnknownPool(f"no reward pool {params.pool_id}")
    if params.amount <= 0:
        raise ZeroAmount("cannot fund a reward pool with 0")


def guard_set_lock_up(state: BoardroomState, params: ActionParams) -> None:
    require_operator(state, params.sender)
    if params.withdraw_lockup < 0 or params.reward_lockup < 0:
        raise InvalidPoolConfig("lock-up durations must be non-negative")


def guard_set_stake_fee(state: BoardroomState, params: ActionParams) -> None:
    require_operator(state, params.sender)
    if not 0 <= params.fee_bps < BPS_DENOM:
        raise InvalidPoolConfig(f"stake fee must be in [0, {BPS_DENOM}) bps: {params.fee_bps}")
    if params.fee_bps > 0 and not state.fee_sink:
        raise InvalidPoolConfig("a stake fee needs a fee sink")
