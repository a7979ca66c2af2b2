"""
Imperative shells: stateful engines bound to an AssetLedger, YAML config
loading and scenario replay.
"""

from .boardroom import Boardroom
from .config import StakeLedgerConfig, load_config
from .execution import Call, LedgerEngine, execute_transfers
from .reward_pool import EpochRewardPool

__all__ = [
    "Boardroom",
    "Call",
    "EpochRewardPool",
    "LedgerEngine",
    "StakeLedgerConfig",
    "execute_transfers",
    "load_config",
]
