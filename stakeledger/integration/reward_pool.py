"""
Epoch reward pool execution adapter.

Stateful wrapper around ``stakeledger.core.epoch_pool``: a fixed per-block
emission schedule split across stake pools by allocation weight. Callers pass a
``Call`` carrying the current block number.
"""

from __future__ import annotations

from typing import List

from ..core import epoch_pool
from ..core.effects import Event
from ..core.epoch_pool import (
    EpochPoolConfig,
    EpochPoolInfo,
    EpochPoolState,
    EpochUserInfo,
    PoolAction,
    PoolActionParams,
)
from ..core.epoch_schedule import EpochSchedule, EpochScheduleConfig, build_schedule
from ..state.balances import Address, AssetLedger
from .execution import Call, LedgerEngine


class EpochRewardPool(LedgerEngine[EpochPoolState]):
    """MasterChef-style multi-pool emission on an epoch schedule."""

    event_prefix = "reward_pool"

    def __init__(
        self,
        ledger: AssetLedger,
        address: Address,
        operator: Address,
        reward_token: str,
        schedule_config: EpochScheduleConfig,
        fee_sink: Address = "",
        config: EpochPoolConfig = EpochPoolConfig(),
    ) -> None:
        state = epoch_pool.initial_pool_state(
            custody=address,
            operator=operator,
            reward_token=reward_token,
            schedule=build_schedule(schedule_config),
            fee_sink=fee_sink,
            config=config,
        )
        super().__init__(ledger, address, state)

    def _call(self, action: PoolAction, call: Call, **fields) -> List[Event]:
        params = PoolActionParams(action=action, sender=call.sender, block=call.block, **fields)
        return self._execute(epoch_pool.step_or_raise, params)

    # -- Admin -----------------------------------------------------------------

    def add(
        self,
        call: Call,
        alloc_point: int,
        stake_token: str,
        with_update: bool = False,
        last_reward_block: int | None = None,
        is_lp_token: bool = False,
        deposit_fee_bps: int = 0,
    ) -> List[Event]:
        """Register a new stake pool (operator only; one pool per stake token)."""
        return self._call(
            PoolAction.ADD,
            call,
            alloc_point=alloc_point,
            stake_token=stake_token,
            with_update=with_update,
            last_reward_block=last_reward_block,
            is_lp_token=is_lp_token,
            deposit_fee_bps=deposit_fee_bps,
        )

    def set(self, call: Call, pid: int, alloc_point: int) -> List[Event]:
        """Change a pool's allocation weight after settling every pool."""
        return self._call(PoolAction.SET, call, pid=pid, alloc_point=alloc_point)

    def mass_update_pools(self, call: Call) -> List[Event]:
        return self._call(PoolAction.MASS_UPDATE, call)

    def update_pool(self, call: Call, pid: int) -> List[Event]:
        return self._call(PoolAction.UPDATE_POOL, call, pid=pid)

    # -- Staking ---------------------------------------------------------------

    def deposit(self, call: Call, pid: int, amount: int) -> List[Event]:
        return self._call(PoolAction.DEPOSIT, call, pid=pid, amount=amount)

    def withdraw(self, call: Call, pid: int, amount: int) -> List[Event]:
        return self._call(PoolAction.WITHDRAW, call, pid=pid, amount=amount)

    def emergency_withdraw(self, call: Call, pid: int) -> List[Event]:
        return self._call(PoolAction.EMERGENCY_WITHDRAW, call, pid=pid)

    # -- Views -----------------------------------------------------------------

    @property
    def schedule(self) -> EpochSchedule:
        return self._state.schedule

    @property
    def total_alloc_point(self) -> int:
        return self._state.total_alloc_point

    def pool_length(self) -> int:
        return len(self._state.pools)

    def pool_info(self, pid: int) -> EpochPoolInfo:
        return epoch_pool.pool_at(self._state, pid)

    def user_info(self, pid: int, account: Address) -> EpochUserInfo:
        epoch_pool.pool_at(self._state, pid)
        return self._state.users.get((pid, account), EpochUserInfo())

    def pending_reward(self, pid: int, account: Address, block: int) -> int:
        return epoch_pool.pending_reward(self._state, pid, account, block)

    def generated_reward(self, from_block: int, to_block: int) -> int:
        return self.schedule.generated_reward(from_block, to_block)

    def epoch_total_rewards(self, epoch: int) -> int:
        return self.schedule.epoch_total_rewards(epoch)

    def epoch_end_blocks(self, epoch: int) -> int:
        return self.schedule.epoch_end_blocks(epoch)

    def epoch_reward_per_block(self, epoch: int) -> int:
        return self.schedule.epoch_reward_per_block(epoch)
