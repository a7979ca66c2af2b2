"""
Epoch-scheduled multi-pool reward emission (functional core).

A fixed per-block emission curve (``EpochSchedule``) is split across pools by
``alloc_point / total_alloc_point``. Each pool keeps a lazy accrual checkpoint
(``acc_reward_per_share`` scaled by ``ACC_PRECISION``, ``last_reward_block``)
that is advanced only when a call touches the pool.

Pending reward is paid out immediately on every deposit/withdraw (no claimable
balance is kept). Payouts are ``SAFE_PAY`` transfers: when the pool is pre-funded
rather than minting, a payout is capped at the reward balance in custody.

All functions are pure; ``step``/``step_or_raise`` mirror the boardroom kernel.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum, unique
from typing import Callable

from pyrsistent import PMap, pmap

from ..errors import (
    DuplicatePool,
    InsufficientBalance,
    InvalidAmount,
    InvalidPoolConfig,
    InvariantViolation,
    LedgerError,
    Unauthorized,
    UnknownPool,
)
from .effects import Event, EventKind, Transfer, TransferKind, Transition
from .epoch_schedule import EpochSchedule
from .fixed_point import BPS_DENOM, bps_of, mul_div_down

ACC_PRECISION: int = 10**18


@dataclass(frozen=True)
class EpochPoolConfig:
    # True: accrued reward is minted into custody on every pool update.
    # False: custody is pre-funded and payouts are capped at its balance.
    mint_rewards: bool = False


@dataclass(frozen=True)
class EpochPoolInfo:
    stake_token: str
    alloc_point: int
    last_reward_block: int
    acc_reward_per_share: int = 0
    total_staked: int = 0
    is_lp_token: bool = False
    deposit_fee_bps: int = 0

    def __post_init__(self) -> None:
        if self.alloc_point < 0:
            raise ValueError(f"alloc_point must be non-negative: {self.alloc_point}")
        if self.acc_reward_per_share < 0 or self.total_staked < 0:
            raise ValueError("acc_reward_per_share and total_staked must be non-negative")
        if not 0 <= self.deposit_fee_bps <= BPS_DENOM:
            raise ValueError(f"deposit_fee_bps must be in [0, {BPS_DENOM}]: {self.deposit_fee_bps}")


@dataclass(frozen=True)
class EpochUserInfo:
    amount: int = 0
    reward_debt: int = 0


@dataclass(frozen=True)
class EpochPoolState:
    custody: str
    operator: str
    reward_token: str
    schedule: EpochSchedule
    fee_sink: str = ""
    config: EpochPoolConfig = EpochPoolConfig()
    total_alloc_point: int = 0
    pools: tuple[EpochPoolInfo, ...] = ()
    users: PMap = field(default_factory=pmap)  # (pid, account) -> EpochUserInfo

    def __post_init__(self) -> None:
        if not isinstance(self.users, PMap):
            object.__setattr__(self, "users", pmap(self.users))


@unique
class PoolAction(Enum):
    ADD = "add"
    SET = "set"
    MASS_UPDATE = "mass_update_pools"
    UPDATE_POOL = "update_pool"
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    EMERGENCY_WITHDRAW = "emergency_withdraw"


@dataclass(frozen=True)
class PoolActionParams:
    """Parameters for an epoch-pool action. Unused fields keep their defaults."""

    action: PoolAction
    sender: str
    block: int = 0
    pid: int = 0                          # set / update_pool / deposit / withdraw / emergency_withdraw
    amount: int = 0                       # deposit / withdraw
    alloc_point: int = 0                  # add / set
    stake_token: str = ""                 # add
    with_update: bool = False             # add
    last_reward_block: int | None = None  # add
    is_lp_token: bool = False             # add
    deposit_fee_bps: int = 0              # add


@dataclass(frozen=True)
class PoolStepResult:
    accepted: bool
    state: EpochPoolState | None = None
    transfers: tuple[Transfer, ...] = ()
    events: tuple[Event, ...] = ()
    rejection: str | None = None
    error: Exception | None = None


def initial_pool_state(
    custody: str,
    operator: str,
    reward_token: str,
    schedule: EpochSchedule,
    fee_sink: str = "",
    config: EpochPoolConfig = EpochPoolConfig(),
) -> EpochPoolState:
    if not custody or not operator or not reward_token:
        raise ValueError("custody, operator and reward_token must be non-empty")
    return EpochPoolState(
        custody=custody,
        operator=operator,
        reward_token=reward_token,
        schedule=schedule,
        fee_sink=fee_sink,
        config=config,
    )


# -- Accrual -----------------------------------------------------------------

def pool_at(state: EpochPoolState, pid: int) -> EpochPoolInfo:
    if not 0 <= pid < len(state.pools):
        raise UnknownPool(f"no pool {pid}")
    return state.pools[pid]


def accrue(state: EpochPoolState, pool: EpochPoolInfo, block: int) -> tuple[EpochPoolInfo, int]:
    """Advance *pool* to *block*. Returns the updated pool and the reward it accrued."""
    if block <= pool.last_reward_block:
        return pool, 0
    if pool.total_staked == 0 or state.total_alloc_point == 0:
        return replace(pool, last_reward_block=block), 0
    generated = state.schedule.generated_reward(pool.last_reward_block, block)
    reward = mul_div_down(generated, pool.alloc_point, state.total_alloc_point)
    acc = pool.acc_reward_per_share + mul_div_down(reward, ACC_PRECISION, pool.total_staked)
    return replace(pool, acc_reward_per_share=acc, last_reward_block=block), reward


def accumulated(user: EpochUserInfo, pool: EpochPoolInfo) -> int:
    return mul_div_down(user.amount, pool.acc_reward_per_share, ACC_PRECISION)


def pending_reward(state: EpochPoolState, pid: int, account: str, block: int) -> int:
    """Read-only projection of *account*'s unpaid reward in pool *pid* at *block*."""
    pool, _reward = accrue(state, pool_at(state, pid), block)
    user = state.users.get((pid, account), EpochUserInfo())
    return accumulated(user, pool) - user.reward_debt


def update_pool(state: EpochPoolState, pid: int, block: int) -> tuple[EpochPoolState, tuple[Transfer, ...]]:
    pool, reward = accrue(state, pool_at(state, pid), block)
    pools = list(state.pools)
    pools[pid] = pool
    transfers: tuple[Transfer, ...] = ()
    if reward > 0 and state.config.mint_rewards:
        transfers = (Transfer(TransferKind.MINT, state.reward_token, state.custody, state.custody, reward),)
    return replace(state, pools=tuple(pools)), transfers


def mass_update_pools(state: EpochPoolState, block: int) -> tuple[EpochPoolState, tuple[Transfer, ...]]:
    transfers: list[Transfer] = []
    for pid in range(len(state.pools)):
        state, minted = update_pool(state, pid, block)
        transfers.extend(minted)
    return state, tuple(transfers)


def _payout(state: EpochPoolState, pid: int, account: str, amount: int) -> tuple[Transfer, ...]:
    if amount <= 0:
        return ()
    return (
        Transfer(
            TransferKind.SAFE_PAY,
            state.reward_token,
            state.custody,
            account,
            amount,
            reports=EventKind.REWARD_PAID,
            pool_id=pid,
        ),
    )


def _put(state: EpochPoolState, pid: int, pool: EpochPoolInfo, account: str, user: EpochUserInfo) -> EpochPoolState:
    pools = list(state.pools)
    pools[pid] = pool
    return replace(state, pools=tuple(pools), users=state.users.set((pid, account), user))


# -- Guards ------------------------------------------------------------------

def _require_operator(state: EpochPoolState, sender: str) -> None:
    if sender != state.operator:
        raise Unauthorized(f"caller {sender} is not the operator")


def guard_add(state: EpochPoolState, params: PoolActionParams) -> None:
    _require_operator(state, params.sender)
    if not params.stake_token:
        raise InvalidPoolConfig("pool needs a stake token")
    if any(pool.stake_token == params.stake_token for pool in state.pools):
        raise DuplicatePool(f"a pool for {params.stake_token} already exists")
    if params.alloc_point < 0:
        raise InvalidPoolConfig(f"alloc_point must be non-negative: {params.alloc_point}")
    if not 0 <= params.deposit_fee_bps <= BPS_DENOM:
        raise InvalidPoolConfig(f"invalid deposit fee basis points: {params.deposit_fee_bps}")
    if params.deposit_fee_bps > 0 and not state.fee_sink:
        raise InvalidPoolConfig("a deposit fee needs a fee sink")


def guard_set(state: EpochPoolState, params: PoolActionParams) -> None:
    _require_operator(state, params.sender)
    pool_at(state, params.pid)
    if params.alloc_point < 0:
        raise InvalidPoolConfig(f"alloc_point must be non-negative: {params.alloc_point}")


def guard_any(state: EpochPoolState, params: PoolActionParams) -> None:
    return None


def guard_pool(state: EpochPoolState, params: PoolActionParams) -> None:
    pool_at(state, params.pid)
    if params.amount < 0:
        raise InvalidAmount(f"amount must be non-negative: {params.amount}")


def guard_withdraw(state: EpochPoolState, params: PoolActionParams) -> None:
    guard_pool(state, params)
    user = state.users.get((params.pid, params.sender), EpochUserInfo())
    if params.amount > user.amount:
        raise InsufficientBalance(f"withdraw: not good ({params.amount} > {user.amount})")


# -- Updates -----------------------------------------------------------------

def _initial_reward_block(state: EpochPoolState, block: int, requested: int | None) -> int:
    start = state.schedule.start_block
    if block < start:
        if requested is None or requested < start:
            return start
        return requested
    if requested is None or requested < block:
        return block
    return requested


def apply_add(state: EpochPoolState, params: PoolActionParams) -> Transition:
    transfers: tuple[Transfer, ...] = ()
    if params.with_update:
        state, transfers = mass_update_pools(state, params.block)
    pool = EpochPoolInfo(
        stake_token=params.stake_token,
        alloc_point=params.alloc_point,
        last_reward_block=_initial_reward_block(state, params.block, params.last_reward_block),
        is_lp_token=params.is_lp_token,
        deposit_fee_bps=params.deposit_fee_bps,
    )
    pid = len(state.pools)
    new_state = replace(
        state,
        pools=state.pools + (pool,),
        total_alloc_point=state.total_alloc_point + params.alloc_point,
    )
    return Transition(
        new_state,
        transfers=transfers,
        events=(Event(EventKind.POOL_ADDED, params.sender, params.alloc_point, pid),),
    )


def apply_set(state: EpochPoolState, params: PoolActionParams) -> Transition:
    state, transfers = mass_update_pools(state, params.block)
    pool = state.pools[params.pid]
    pools = list(state.pools)
    pools[params.pid] = replace(pool, alloc_point=params.alloc_point)
    new_state = replace(
        state,
        pools=tuple(pools),
        total_alloc_point=state.total_alloc_point - pool.alloc_point + params.alloc_point,
    )
    return Transition(
        new_state,
        transfers=transfers,
        events=(Event(EventKind.POOL_ALLOC_SET, params.sender, params.alloc_point, params.pid),),
    )


def apply_mass_update(state: EpochPoolState, params: PoolActionParams) -> Transition:
    state, transfers = mass_update_pools(state, params.block)
    return Transition(state, transfers=transfers)


def apply_update_pool(state: EpochPoolState, params: PoolActionParams) -> Transition:
    state, transfers = update_pool(state, params.pid, params.block)
    return Transition(state, transfers=transfers)


def apply_deposit(state: EpochPoolState, params: PoolActionParams) -> Transition:
    pid, account = params.pid, params.sender
    state, minted = update_pool(state, pid, params.block)
    pool = state.pools[pid]
    user = state.users.get((pid, account), EpochUserInfo())

    transfers = list(minted)
    if user.amount > 0:
        transfers.extend(_payout(state, pid, account, accumulated(user, pool) - user.reward_debt))

    credited = 0
    if params.amount > 0:
        fee = bps_of(params.amount, pool.deposit_fee_bps)
        credited = params.amount - fee
        transfers.append(Transfer(TransferKind.PULL, pool.stake_token, account, state.custody, params.amount))
        if fee > 0:
            transfers.append(Transfer(TransferKind.PAY, pool.stake_token, state.custody, state.fee_sink, fee))
        pool = replace(pool, total_staked=pool.total_staked + credited)
        user = replace(user, amount=user.amount + credited)

    user = replace(user, reward_debt=accumulated(user, pool))
    return Transition(
        _put(state, pid, pool, account, user),
        transfers=tuple(transfers),
        events=(Event(EventKind.DEPOSIT, account, credited, pid),),
    )


def apply_withdraw(state: EpochPoolState, params: PoolActionParams) -> Transition:
    pid, account = params.pid, params.sender
    state, minted = update_pool(state, pid, params.block)
    pool = state.pools[pid]
    user = state.users.get((pid, account), EpochUserInfo())

    transfers = list(minted)
    transfers.extend(_payout(state, pid, account, accumulated(user, pool) - user.reward_debt))
    if params.amount > 0:
        user = replace(user, amount=user.amount - params.amount)
        pool = replace(pool, total_staked=pool.total_staked - params.amount)
        transfers.append(Transfer(TransferKind.PAY, pool.stake_token, state.custody, account, params.amount))

    user = replace(user, reward_debt=accumulated(user, pool))
    return Transition(
        _put(state, pid, pool, account, user),
        transfers=tuple(transfers),
        events=(Event(EventKind.WITHDRAWN, account, params.amount, pid),),
    )


def apply_emergency_withdraw(state: EpochPoolState, params: PoolActionParams) -> Transition:
    """Return the caller's whole stake and forfeit unpaid reward."""
    pid, account = params.pid, params.sender
    pool = state.pools[pid]
    user = state.users.get((pid, account), EpochUserInfo())
    amount = user.amount
    pool = replace(pool, total_staked=pool.total_staked - amount)
    transfers: tuple[Transfer, ...] = ()
    if amount > 0:
        transfers = (Transfer(TransferKind.PAY, pool.stake_token, state.custody, account, amount),)
    return Transition(
        _put(state, pid, pool, account, EpochUserInfo()),
        transfers=transfers,
        events=(Event(EventKind.EMERGENCY_WITHDRAW, account, amount, pid),),
    )


# -- Invariants --------------------------------------------------------------

def inv_total_alloc_matches(s: EpochPoolState) -> bool:
    return s.total_alloc_point == sum(pool.alloc_point for pool in s.pools)


def inv_total_staked_matches_users(s: EpochPoolState) -> bool:
    totals = [0] * len(s.pools)
    for (pid, _account), user in s.users.items():
        if not 0 <= pid < len(s.pools):
            return False
        totals[pid] += user.amount
    return all(total == pool.total_staked for total, pool in zip(totals, s.pools))


def inv_stake_tokens_unique(s: EpochPoolState) -> bool:
    tokens = [pool.stake_token for pool in s.pools]
    return len(tokens) == len(set(tokens))


def inv_debt_covered(s: EpochPoolState) -> bool:
    return all(
        user.reward_debt <= accumulated(user, s.pools[pid])
        for (pid, _account), user in s.users.items()
        if 0 <= pid < len(s.pools)
    )


INVARIANT_REGISTRY: dict[str, Callable[[EpochPoolState], bool]] = {
    "inv_total_alloc_matches": inv_total_alloc_matches,
    "inv_total_staked_matches_users": inv_total_staked_matches_users,
    "inv_stake_tokens_unique": inv_stake_tokens_unique,
    "inv_debt_covered": inv_debt_covered,
}


def check_all(state: EpochPoolState) -> list[str]:
    return [inv_id for inv_id, check_fn in INVARIANT_REGISTRY.items() if not check_fn(state)]


_USER_ACTIONS = frozenset({PoolAction.DEPOSIT, PoolAction.WITHDRAW, PoolAction.EMERGENCY_WITHDRAW})


def _user_delta(pre: EpochPoolState, post: EpochPoolState, params: PoolActionParams) -> int:
    key = (params.pid, params.sender)
    return post.users.get(key, EpochUserInfo()).amount - pre.users.get(key, EpochUserInfo()).amount


def step_total_staked_matches_users(pre: EpochPoolState, post: EpochPoolState, params: PoolActionParams) -> bool:
    if len(post.pools) < len(pre.pools):
        return False
    for pid, pool in enumerate(post.pools):
        before = pre.pools[pid].total_staked if pid < len(pre.pools) else 0
        expected = 0
        if params.action in _USER_ACTIONS and pid == params.pid:
            expected = _user_delta(pre, post, params)
        if pool.total_staked - before != expected:
            return False
    return True


def step_debt_covered(pre: EpochPoolState, post: EpochPoolState, params: PoolActionParams) -> bool:
    if params.action not in _USER_ACTIONS:
        return True
    user = post.users.get((params.pid, params.sender), EpochUserInfo())
    return user.reward_debt <= accumulated(user, post.pools[params.pid])


def step_total_alloc_matches(pre: EpochPoolState, post: EpochPoolState, params: PoolActionParams) -> bool:
    return inv_total_alloc_matches(post)


def step_stake_tokens_unique(pre: EpochPoolState, post: EpochPoolState, params: PoolActionParams) -> bool:
    return inv_stake_tokens_unique(post)


# Pool-table checks are O(pools); user checks look only at the touched (pid, sender).
STEP_INVARIANT_REGISTRY: dict[str, Callable[[EpochPoolState, EpochPoolState, PoolActionParams], bool]] = {
    "inv_total_alloc_matches": step_total_alloc_matches,
    "inv_total_staked_matches_users": step_total_staked_matches_users,
    "inv_stake_tokens_unique": step_stake_tokens_unique,
    "inv_debt_covered": step_debt_covered,
}


def check_step(pre: EpochPoolState, post: EpochPoolState, params: PoolActionParams) -> list[str]:
    return [
        inv_id
        for inv_id, check_fn in STEP_INVARIANT_REGISTRY.items()
        if not check_fn(pre, post, params)
    ]


# -- Engine ------------------------------------------------------------------

_DISPATCH: dict[PoolAction, tuple[Callable[[EpochPoolState, PoolActionParams], None], Callable[[EpochPoolState, PoolActionParams], Transition]]] = {
    PoolAction.ADD: (guard_add, apply_add),
    PoolAction.SET: (guard_set, apply_set),
    PoolAction.MASS_UPDATE: (guard_any, apply_mass_update),
    PoolAction.UPDATE_POOL: (guard_pool, apply_update_pool),
    PoolAction.DEPOSIT: (guard_pool, apply_deposit),
    PoolAction.WITHDRAW: (guard_withdraw, apply_withdraw),
    PoolAction.EMERGENCY_WITHDRAW: (guard_pool, apply_emergency_withdraw),
}


def step(state: EpochPoolState, params: PoolActionParams) -> PoolStepResult:
    entry = _DISPATCH.get(params.action)
    if entry is None:
        return PoolStepResult(accepted=False, rejection=f"unknown_action:{params.action}")

    guard_fn, update_fn = entry
    try:
        guard_fn(state, params)
        transition = update_fn(state, params)
    except LedgerError as exc:
        return PoolStepResult(accepted=False, rejection=exc.code, error=exc)

    violations = check_step(state, transition.state, params)
    if violations:
        return PoolStepResult(
            accepted=False,
            rejection=f"invariant:{','.join(violations)}",
            error=InvariantViolation(violations),
        )
    return PoolStepResult(
        accepted=True,
        state=transition.state,
        transfers=transition.transfers,
        events=transition.events,
    )


def step_or_raise(state: EpochPoolState, params: PoolActionParams) -> PoolStepResult:
    result = step(state, params)
    if result.accepted:
        return result
    if result.error is not None:
        raise result.error
    raise LedgerError(result.rejection)
