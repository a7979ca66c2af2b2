"""State transition functions for the boardroom kernel.

One pure function per action. Each returns a ``Transition`` (post-state,
ordered transfers, events) and never touches the asset ledger.

Every balance-changing transition goes through ``settle_account`` first: the
account's primary-stream and auxiliary-pool accruals are settled against its
OLD balance before the new balance is written, so no stake can capture reward
accrued before it existed or lose reward it already earned.
"""

from __future__ import annotations

from dataclasses import replace

from ...errors import ZeroAmount
from ..effects import Event, EventKind, Transfer, TransferKind, Transition
from ..fixed_point import bps_of
from ..reward_pools import UserPoolInfo, draw, new_pool, settle_user, update_pool
from ..snapshots import append_reward, genesis_history, latest_index, owed_since
from .guards import require_can_claim
from .types import ActionParams, BoardroomConfig, BoardroomState, Seat


def checkpoint_pools(state: BoardroomState, now: int) -> BoardroomState:
    """Advance every auxiliary pool to *now* at the current total supply."""
    pools = tuple(update_pool(pool, state.total_supply, now) for pool in state.pools)
    return replace(state, pools=pools)


def settle_account(state: BoardroomState, account: str, now: int, new_balance: int) -> BoardroomState:
    """Settle *account* on every reward stream, then set its balance to *new_balance*.

    Steps (order is load-bearing):
    1. checkpoint all auxiliary pools at the pre-mutation total supply;
    2. fold primary-stream reward owed on the old balance into ``reward_earned``;
    3. fold each pool's accrued reward into ``unclaimed`` and re-base its debt;
    4. write the new balance and total supply.
    """
    state = checkpoint_pools(state, now)

    seat = state.seats.get(account, Seat())
    old_balance = seat.balance
    owed = owed_since(state.history, old_balance, seat.last_snapshot_index)
    seats = state.seats.set(
        account,
        replace(
            seat,
            balance=new_balance,
            reward_earned=seat.reward_earned + owed,
            last_snapshot_index=latest_index(state.history),
        ),
    )

    pool_users = state.pool_users
    for pid, pool in enumerate(state.pools):
        key = (pid, account)
        pool_users = pool_users.set(
            key, settle_user(pool, pool_users.get(key, UserPoolInfo()), old_balance, new_balance)
        )

    return replace(
        state,
        seats=seats,
        pool_users=pool_users,
        total_supply=state.total_supply - old_balance + new_balance,
    )


def _pay(state: BoardroomState, asset: str, to: str, amount: int, reports: EventKind, pool_id: int | None = None) -> Transfer:
    return Transfer(
        kind=TransferKind.PAY,
        asset=asset,
        source=state.custody,
        destination=to,
        amount=amount,
        reports=reports,
        pool_id=pool_id,
    )


# -- Actions -----------------------------------------------------------------

def apply_initialize(state: BoardroomState, params: ActionParams) -> Transition:
    new_state = replace(
        state,
        initialized=True,
        operator=params.sender,
        reward_token=params.reward_token,
        share_token=params.share_token,
        treasury=params.treasury,
        fee_sink=params.fee_sink,
        history=genesis_history(params.now),
    )
    return Transition(new_state, events=(Event(EventKind.INITIALIZED, params.sender),))


def apply_stake(state: BoardroomState, params: ActionParams) -> Transition:
    fee = bps_of(params.amount, state.config.stake_fee_bps)
    net = params.amount - fee
    if net == 0:
        raise ZeroAmount("stake amount is fully consumed by the stake fee")

    seat = state.seats.get(params.sender, Seat())
    new_state = settle_account(state, params.sender, params.now, seat.balance + net)
    seats = new_state.seats.set(params.sender, replace(new_state.seats[params.sender], entered_at=params.now))
    new_state = replace(new_state, seats=seats)

    transfers = [
        Transfer(TransferKind.PULL, state.share_token, params.sender, state.custody, net),
    ]
    if fee > 0:
        transfers.append(Transfer(TransferKind.PULL, state.share_token, params.sender, state.fee_sink, fee))
    return Transition(
        new_state,
        transfers=tuple(transfers),
        events=(Event(EventKind.STAKED, params.sender, net),),
    )


def apply_withdraw(state: BoardroomState, params: ActionParams) -> Transition:
    seat = state.seats.get(params.sender, Seat())
    new_state = settle_account(state, params.sender, params.now, seat.balance - params.amount)
    transfer = Transfer(TransferKind.PAY, state.share_token, state.custody, params.sender, params.amount)
    return Transition(
        new_state,
        transfers=(transfer,),
        events=(Event(EventKind.WITHDRAWN, params.sender, params.amount),),
    )


def apply_exit(state: BoardroomState, params: ActionParams) -> Transition:
    seat = state.seats.get(params.sender, Seat())
    return apply_withdraw(state, replace(params, amount=seat.balance))


def _claim(state: BoardroomState, params: ActionParams, *, include_primary: bool) -> Transition:
    seat = state.seats.get(params.sender, Seat())
    state = settle_account(state, params.sender, params.now, seat.balance)
    seat = state.seats[params.sender]

    transfers: list[Transfer] = []
    pools = list(state.pools)
    pool_users = state.pool_users

    if include_primary and seat.reward_earned > 0:
        transfers.append(_pay(state, state.reward_token, params.sender, seat.reward_earned, EventKind.REWARD_PAID))
        seat = replace(seat, reward_earned=0)

    for pid, pool in enumerate(pools):
        key = (pid, params.sender)
        pools[pid], user, paid = draw(pool, pool_users[key])
        if paid > 0:
            transfers.append(_pay(state, pool.reward_token, params.sender, paid, EventKind.POOL_REWARD_PAID, pid))
            pool_users = pool_users.set(key, user)

    if not transfers:
        # Nothing payable: no transfer, no event, but the settlement above is kept.
        return Transition(state)

    require_can_claim(state, seat, params.now)
    seats = state.seats.set(params.sender, replace(seat, entered_at=params.now))
    return Transition(
        replace(state, seats=seats, pools=tuple(pools), pool_users=pool_users),
        transfers=tuple(transfers),
    )


def apply_claim_reward(state: BoardroomState, params: ActionParams) -> Transition:
    return _claim(state, params, include_primary=True)


def apply_claim_pool_rewards(state: BoardroomState, params: ActionParams) -> Transition:
    return _claim(state, params, include_primary=False)


def apply_allocate_seigniorage(state: BoardroomState, params: ActionParams) -> Transition:
    history = append_reward(state.history, params.amount, state.total_supply, params.now)
    transfer = Transfer(TransferKind.PULL, state.reward_token, params.sender, state.custody, params.amount)
    return Transition(
        replace(state, history=history),
        transfers=(transfer,),
        events=(Event(EventKind.REWARD_ADDED, params.sender, params.amount),),
    )


def apply_add_reward_pool(state: BoardroomState, params: ActionParams) -> Transition:
    pool = new_pool(
        params.reward_token,
        params.start_time,
        params.end_time,
        params.reward_per_second,
        params.now,
    )
    pid = len(state.pools)
    return Transition(
        replace(state, pools=state.pools + (pool,)),
        events=(Event(EventKind.REWARD_POOL_ADDED, params.sender, pool_id=pid),),
    )


def apply_fund_reward_pool(state: BoardroomState, params: ActionParams) -> Transition:
    pool = state.pools[params.pool_id]
    pools = list(state.pools)
    pools[params.pool_id] = replace(pool, reserve=pool.reserve + params.amount)
    transfer = Transfer(TransferKind.PULL, pool.reward_token, params.sender, state.custody, params.amount)
    return Transition(
        replace(state, pools=tuple(pools)),
        transfers=(transfer,),
        events=(Event(EventKind.REWARD_POOL_FUNDED, params.sender, params.amount, params.pool_id),),
    )


def apply_set_lock_up(state: BoardroomState, params: ActionParams) -> Transition:
    config = replace(state.config, withdraw_lockup=params.withdraw_lockup, reward_lockup=params.reward_lockup)
    return Transition(replace(state, config=config), events=(Event(EventKind.LOCK_UP_SET, params.sender),))


def apply_set_stake_fee(state: BoardroomState, params: ActionParams) -> Transition:
    config: BoardroomConfig = replace(state.config, stake_fee_bps=params.fee_bps)
    return Transition(
        replace(state, config=config),
        events=(Event(EventKind.STAKE_FEE_SET, params.sender, params.fee_bps),),
    )
