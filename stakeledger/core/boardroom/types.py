"""Data types for the boardroom dividend kernel.

All types are frozen dataclasses. Seats, pool users and the snapshot history
are pyrsistent containers: a transition returns new versions that share every
entry it did not touch.

Units/conventions:
- amounts are integer token base units,
- ``Wad`` values are 18-decimal fixed point (reward per share, reward per second),
- ``*_bps`` are basis points (1/10_000),
- times are integer seconds, lock-ups are durations in seconds.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique

from pyrsistent import PMap, PVector, pmap, pvector

from ..effects import Event, Transfer
from ..fixed_point import BPS_DENOM, ZERO, Wad
from ..reward_pools import RewardPoolInfo
from ..snapshots import Snapshots, genesis_history


@unique
class Action(Enum):
    INITIALIZE = "initialize"
    STAKE = "stake"
    WITHDRAW = "withdraw"
    EXIT = "exit"
    CLAIM_REWARD = "claim_reward"
    CLAIM_POOL_REWARDS = "claim_pool_rewards"
    ALLOCATE_SEIGNIORAGE = "allocate_seigniorage"
    ADD_REWARD_POOL = "add_reward_pool"
    FUND_REWARD_POOL = "fund_reward_pool"
    SET_LOCK_UP = "set_lock_up"
    SET_STAKE_FEE = "set_stake_fee"


@dataclass(frozen=True)
class BoardroomConfig:
    stake_fee_bps: int = 0
    withdraw_lockup: int = 0
    reward_lockup: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.stake_fee_bps < BPS_DENOM:
            raise ValueError(f"stake_fee_bps must be in [0, {BPS_DENOM}): {self.stake_fee_bps}")
        if self.withdraw_lockup < 0 or self.reward_lockup < 0:
            raise ValueError("lock-up durations must be non-negative")


@dataclass(frozen=True)
class Seat:
    """Per-account staking record. Zero-balance seats persist until claimed."""

    balance: int = 0
    last_snapshot_index: int = 0
    reward_earned: int = 0
    entered_at: int = 0

    def __post_init__(self) -> None:
        if self.balance < 0 or self.reward_earned < 0:
            raise ValueError("balance and reward_earned must be non-negative")
        if self.last_snapshot_index < 0:
            raise ValueError("last_snapshot_index must be non-negative")


@dataclass(frozen=True)
class BoardroomState:
    """Complete boardroom ledger: seats, snapshot history and auxiliary pools."""

    custody: str
    config: BoardroomConfig = BoardroomConfig()

    initialized: bool = False
    operator: str = ""
    reward_token: str = ""
    share_token: str = ""
    treasury: str = ""
    fee_sink: str = ""

    total_supply: int = 0
    seats: PMap = field(default_factory=pmap)  # account -> Seat
    history: Snapshots = field(default_factory=genesis_history)

    pools: tuple[RewardPoolInfo, ...] = ()
    pool_users: PMap = field(default_factory=pmap)  # (pool_id, account) -> UserPoolInfo

    def __post_init__(self) -> None:
        if not isinstance(self.seats, PMap):
            object.__setattr__(self, "seats", pmap(self.seats))
        if not isinstance(self.history, PVector):
            object.__setattr__(self, "history", pvector(self.history))
        if not isinstance(self.pool_users, PMap):
            object.__setattr__(self, "pool_users", pmap(self.pool_users))


@dataclass(frozen=True)
class ActionParams:
    """Parameters for an action. Unused fields keep their defaults."""

    action: Action
    sender: str
    now: int = 0
    amount: int = 0                  # stake / withdraw / allocate_seigniorage / fund_reward_pool
    reward_token: str = ""           # initialize / add_reward_pool
    share_token: str = ""            # initialize
    treasury: str = ""               # initialize
    fee_sink: str = ""               # initialize
    start_time: int = 0              # add_reward_pool
    end_time: int = 0                # add_reward_pool
    reward_per_second: Wad = ZERO    # add_reward_pool
    withdraw_lockup: int = 0         # set_lock_up
    reward_lockup: int = 0           # set_lock_up
    fee_bps: int = 0                 # set_stake_fee
    pool_id: int = 0                 # fund_reward_pool


@dataclass(frozen=True)
class StepResult:
    """Result of a single kernel step."""

    accepted: bool
    state: BoardroomState | None = None
    transfers: tuple[Transfer, ...] = ()
    events: tuple[Event, ...] = ()
    rejection: str | None = None
    error: Exception | None = None
