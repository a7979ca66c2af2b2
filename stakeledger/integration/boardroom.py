"""
Boardroom execution adapter.

Wraps the pure boardroom kernel (``stakeledger.core.boardroom``) in a stateful
object bound to an ``AssetLedger``. Every mutating method builds an
``ActionParams``, runs ``step_or_raise`` and commits through
``LedgerEngine._execute``; views read the committed state.
"""

from __future__ import annotations

from typing import List

from ..core.boardroom import Action, ActionParams, BoardroomConfig, BoardroomState, initial_state, step_or_raise
from ..core.boardroom import views
from ..core.effects import Event
from ..core.fixed_point import Wad
from ..core.reward_pools import RewardPoolInfo
from ..core.snapshots import Snapshot
from ..state.balances import Address, AssetLedger
from .execution import Call, LedgerEngine


class Boardroom(LedgerEngine[BoardroomState]):
    """Snapshot dividend ledger with auxiliary per-second reward pools."""

    event_prefix = "boardroom"

    def __init__(self, ledger: AssetLedger, address: Address, config: BoardroomConfig = BoardroomConfig()) -> None:
        super().__init__(ledger, address, initial_state(address, config))

    def _call(self, action: Action, call: Call, **fields) -> List[Event]:
        params = ActionParams(action=action, sender=call.sender, now=call.timestamp, **fields)
        return self._execute(step_or_raise, params)

    # -- Lifecycle / admin -----------------------------------------------------

    def initialize(
        self,
        call: Call,
        reward_token: str,
        share_token: str,
        treasury: Address = "",
        fee_sink: Address = "",
    ) -> List[Event]:
        """One-shot setup; the caller becomes the operator."""
        return self._call(
            Action.INITIALIZE,
            call,
            reward_token=reward_token,
            share_token=share_token,
            treasury=treasury,
            fee_sink=fee_sink,
        )

    def add_reward_pool(
        self,
        call: Call,
        reward_token: str,
        start_time: int,
        end_time: int,
        reward_per_second: Wad,
    ) -> List[Event]:
        return self._call(
            Action.ADD_REWARD_POOL,
            call,
            reward_token=reward_token,
            start_time=start_time,
            end_time=end_time,
            reward_per_second=reward_per_second,
        )

    def fund_reward_pool(self, call: Call, pool_id: int, amount: int) -> List[Event]:
        """Pull *amount* of the pool's reward token from the caller into its reserve."""
        return self._call(Action.FUND_REWARD_POOL, call, pool_id=pool_id, amount=amount)

    def set_lock_up(self, call: Call, withdraw_lockup: int, reward_lockup: int) -> List[Event]:
        return self._call(Action.SET_LOCK_UP, call, withdraw_lockup=withdraw_lockup, reward_lockup=reward_lockup)

    def set_stake_fee(self, call: Call, fee_bps: int) -> List[Event]:
        return self._call(Action.SET_STAKE_FEE, call, fee_bps=fee_bps)

    # -- Staking ---------------------------------------------------------------

    def stake(self, call: Call, amount: int) -> List[Event]:
        return self._call(Action.STAKE, call, amount=amount)

    def withdraw(self, call: Call, amount: int) -> List[Event]:
        return self._call(Action.WITHDRAW, call, amount=amount)

    def exit(self, call: Call) -> List[Event]:
        return self._call(Action.EXIT, call)

    def claim_reward(self, call: Call) -> List[Event]:
        return self._call(Action.CLAIM_REWARD, call)

    def claim_pool_rewards(self, call: Call) -> List[Event]:
        return self._call(Action.CLAIM_POOL_REWARDS, call)

    def allocate_seigniorage(self, call: Call, amount: int) -> List[Event]:
        return self._call(Action.ALLOCATE_SEIGNIORAGE, call, amount=amount)

    # -- Views -----------------------------------------------------------------

    @property
    def operator(self) -> Address:
        return self._state.operator

    def total_supply(self) -> int:
        return self._state.total_supply

    def balance_of(self, account: Address) -> int:
        return views.balance_of(self._state, account)

    def earned(self, account: Address) -> int:
        return views.earned(self._state, account)

    def last_snapshot_index_of(self, account: Address) -> int:
        return views.last_snapshot_index_of(self._state, account)

    def latest_snapshot_index(self) -> int:
        return views.latest_snapshot_index(self._state)

    def latest_snapshot(self) -> Snapshot:
        return views.latest_snapshot(self._state)

    def reward_per_share(self) -> Wad:
        return views.reward_per_share(self._state)

    def pool_length(self) -> int:
        return len(self._state.pools)

    def pool_info(self, pool_id: int) -> RewardPoolInfo:
        return views.pool_info(self._state, pool_id)

    def pending_reward(self, pool_id: int, account: Address, now: int) -> int:
        return views.pending_reward(self._state, pool_id, account, now)

    def can_withdraw(self, account: Address, now: int) -> bool:
        return views.can_withdraw(self._state, account, now)

    def can_claim_reward(self, account: Address, now: int) -> bool:
        return views.can_claim_reward(self._state, account, now)
