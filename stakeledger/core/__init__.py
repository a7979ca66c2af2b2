"""
Core reward-accounting algorithms (pure, integer-only)
"""

from .fixed_point import WAD, BPS_DENOM, Wad, ZERO, mul_div_down, bps_of, parse_units, format_units
from .snapshots import Snapshot, append_reward, owed_since, genesis_history
from .reward_pools import RewardPoolInfo, UserPoolInfo
from .epoch_schedule import EpochSchedule, EpochScheduleConfig, build_schedule, default_schedule_config
from .effects import Event, EventKind, Transfer, TransferKind, Transition
from .epoch_pool import EpochPoolConfig, EpochPoolInfo, EpochPoolState, EpochUserInfo
from .epoch_pool import step as epoch_pool_step
from .boardroom import BoardroomConfig, BoardroomState
from .boardroom import step as boardroom_step

__all__ = [
    "WAD",
    "BPS_DENOM",
    "Wad",
    "ZERO",
    "mul_div_down",
    "bps_of",
    "parse_units",
    "format_units",
    "Snapshot",
    "append_reward",
    "owed_since",
    "genesis_history",
    "RewardPoolInfo",
    "UserPoolInfo",
    "EpochSchedule",
    "EpochScheduleConfig",
    "build_schedule",
    "default_schedule_config",
    "Event",
    "EventKind",
    "Transfer",
    "TransferKind",
    "Transition",
    "EpochPoolConfig",
    "EpochPoolInfo",
    "EpochPoolState",
    "EpochUserInfo",
    "epoch_pool_step",
    "BoardroomConfig",
    "BoardroomState",
    "boardroom_step",
]
