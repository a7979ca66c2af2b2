"""Effects shared by the boardroom and epoch-pool kernels.

A kernel transition never touches the asset ledger. It returns a ``Transition``:
the post-state plus an ordered list of ``Transfer`` intents and the ``Event``
records it emits. The imperative shell executes the transfers inside
``AssetLedger.atomic()`` and commits the post-state only if every transfer
succeeded.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Any


@unique
class EventKind(Enum):
    INITIALIZED = "Initialized"
    STAKED = "Staked"
    WITHDRAWN = "Withdrawn"
    REWARD_ADDED = "RewardAdded"
    REWARD_PAID = "RewardPaid"
    POOL_REWARD_PAID = "PoolRewardPaid"
    REWARD_POOL_ADDED = "RewardPoolAdded"
    REWARD_POOL_FUNDED = "RewardPoolFunded"
    LOCK_UP_SET = "LockUpSet"
    STAKE_FEE_SET = "StakeFeeSet"
    POOL_ADDED = "PoolAdded"
    POOL_ALLOC_SET = "PoolAllocSet"
    DEPOSIT = "Deposit"
    EMERGENCY_WITHDRAW = "EmergencyWithdraw"


@dataclass(frozen=True)
class Event:
    kind: EventKind
    account: str
    amount: int = 0
    pool_id: int | None = None


@unique
class TransferKind(Enum):
    PULL = "pull"            # transfer_from(source -> destination) on the engine's allowance
    PAY = "pay"              # transfer(source -> destination); failures propagate
    SAFE_PAY = "safe_pay"    # like PAY, capped at the source's current balance
    MINT = "mint"            # mint to destination


@dataclass(frozen=True)
class Transfer:
    kind: TransferKind
    asset: str
    source: str
    destination: str
    amount: int
    # When set, the shell emits this event for the destination with the amount
    # actually moved (SAFE_PAY may move less than requested).
    reports: EventKind | None = None
    pool_id: int | None = None

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError(f"transfer amount must be non-negative: {self.amount}")


@dataclass(frozen=True)
class Transition:
    state: Any
    transfers: tuple[Transfer, ...] = ()
    events: tuple[Event, ...] = ()
