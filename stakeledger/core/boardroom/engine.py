"""Dispatch-table engine for the boardroom kernel.

``step(state, params)`` is the single entry point. It:

1. Dispatches to the action's guard, then its update.
2. Checks the per-transition invariants (touched seat, appended snapshot).
3. Returns a ``StepResult`` (accepted with transfers/events, or rejected with
   the error's reason code).

``step_or_raise`` is the exception-raising variant used by the ledger shell.
"""

from __future__ import annotations

from typing import Callable

from ...errors import InvariantViolation, LedgerError
from ..effects import Transition
from .guards import (
    guard_add_reward_pool,
    guard_allocate_seigniorage,
    guard_claim,
    guard_exit,
    guard_fund_reward_pool,
    guard_initialize,
    guard_set_lock_up,
    guard_set_stake_fee,
    guard_stake,
    guard_withdraw,
)
from .invariants import check_step
from .types import Action, ActionParams, BoardroomState, StepResult
from .updates import (
    apply_add_reward_pool,
    apply_allocate_seigniorage,
    apply_claim_pool_rewards,
    apply_claim_reward,
    apply_exit,
    apply_fund_reward_pool,
    apply_initialize,
    apply_set_lock_up,
    apply_set_stake_fee,
    apply_stake,
    apply_withdraw,
)

GuardFn = Callable[[BoardroomState, ActionParams], None]
UpdateFn = Callable[[BoardroomState, ActionParams], Transition]

_DISPATCH: dict[Action, tuple[GuardFn, UpdateFn]] = {
    Action.INITIALIZE: (guard_initialize, apply_initialize),
    Action.STAKE: (guard_stake, apply_stake),
    Action.WITHDRAW: (guard_withdraw, apply_withdraw),
    Action.EXIT: (guard_exit, apply_exit),
    Action.CLAIM_REWARD: (guard_claim, apply_claim_reward),
    Action.CLAIM_POOL_REWARDS: (guard_claim, apply_claim_pool_rewards),
    Action.ALLOCATE_SEIGNIORAGE: (guard_allocate_seigniorage, apply_allocate_seigniorage),
    Action.ADD_REWARD_POOL: (guard_add_reward_pool, apply_add_reward_pool),
    Action.FUND_REWARD_POOL: (guard_fund_reward_pool, apply_fund_reward_pool),
    Action.SET_LOCK_UP: (guard_set_lock_up, apply_set_lock_up),
    Action.SET_STAKE_FEE: (guard_set_stake_fee, apply_set_stake_fee),
}


def step(state: BoardroomState, params: ActionParams) -> StepResult:
    """Execute one action against the given state.

    Returns ``StepResult`` with ``accepted=True`` on success,
    or ``accepted=False`` with a ``rejection`` reason code.
    """
    entry = _DISPATCH.get(params.action)
    if entry is None:
        return StepResult(accepted=False, rejection=f"unknown_action:{params.action}")

    guard_fn, update_fn = entry
    try:
        guard_fn(state, params)
        transition = update_fn(state, params)
    except LedgerError as exc:
        return StepResult(accepted=False, rejection=exc.code, error=exc)

    violations = check_step(state, transition.state, params)
    if violations:
        return StepResult(
            accepted=False,
            rejection=f"invariant:{','.join(violations)}",
            error=InvariantViolation(violations),
        )

    return StepResult(
        accepted=True,
        state=transition.state,
        transfers=transition.transfers,
        events=transition.events,
    )


def step_or_raise(state: BoardroomState, params: ActionParams) -> StepResult:
    """Like ``step()`` but raises the rejection's ``LedgerError``."""
    result = step(state, params)
    if result.accepted:
        return result
    if result.error is not None:
        raise result.error
    raise LedgerError(result.rejection)
