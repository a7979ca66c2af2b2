"""
YAML configuration for the reward engines.

Document layout (every section optional)::

    boardroom:
      stake_fee_bps: 400
      withdraw_lockup: 0        # seconds
      reward_lockup: 0          # seconds
    epoch_schedule:
      start_block: 10
      epoch_lengths: [28800, 259200]
      epoch_total_rewards: ["1000", "90000"]   # decimal token amounts
    epoch_pool:
      mint_rewards: false

Token amounts are decimal strings (or ints) parsed with ``parse_units``.
A schedule section that names only ``start_block`` gets the default
two-epoch curve.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from ..core.boardroom import BoardroomConfig
from ..core.epoch_pool import EpochPoolConfig
from ..core.epoch_schedule import BLOCKS_PER_DAY, EpochScheduleConfig
from ..core.fixed_point import DECIMALS, parse_units


logger = logging.getLogger(__name__)

DEFAULT_EPOCH_SCHEDULE: Mapping[str, Any] = {
    "epoch_lengths": [BLOCKS_PER_DAY, BLOCKS_PER_DAY * 9],
    "epoch_total_rewards": ["1000", "90000"],
}


class ConfigError(ValueError):
    """Raised for a malformed configuration document."""


@dataclass(frozen=True)
class StakeLedgerConfig:
    boardroom: BoardroomConfig = BoardroomConfig()
    epoch_schedule: Optional[EpochScheduleConfig] = None
    epoch_pool: EpochPoolConfig = EpochPoolConfig()


def _require_mapping(obj: Any, *, name: str) -> Mapping[str, Any]:
    if not isinstance(obj, dict):
        raise ConfigError(f"{name} must be an object")
    return obj


def _require_int(obj: Any, *, name: str) -> int:
    if not isinstance(obj, int) or isinstance(obj, bool) or obj < 0:
        raise ConfigError(f"{name} must be a non-negative int")
    return obj


def _require_amount(obj: Any, *, name: str, decimals: int) -> int:
    try:
        return parse_units(obj, decimals)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name}: {exc}") from exc


def _require_list(obj: Any, *, name: str) -> list[Any]:
    if not isinstance(obj, list) or not obj:
        raise ConfigError(f"{name} must be a non-empty list")
    return obj


def boardroom_config_from_mapping(obj: Any) -> BoardroomConfig:
    data = _require_mapping(obj, name="boardroom")
    fields = {
        key: _require_int(data.get(key, 0), name=f"boardroom.{key}")
        for key in ("stake_fee_bps", "withdraw_lockup", "reward_lockup")
    }
    try:
        return BoardroomConfig(**fields)
    except ValueError as exc:
        raise ConfigError(f"boardroom: {exc}") from exc


def schedule_config_from_mapping(obj: Any, *, decimals: int = DECIMALS) -> EpochScheduleConfig:
    data = _require_mapping(obj, name="epoch_schedule")
    start_block = _require_int(data.get("start_block"), name="epoch_schedule.start_block")
    lengths = _require_list(
        data.get("epoch_lengths", DEFAULT_EPOCH_SCHEDULE["epoch_lengths"]),
        name="epoch_schedule.epoch_lengths",
    )
    totals = _require_list(
        data.get("epoch_total_rewards", DEFAULT_EPOCH_SCHEDULE["epoch_total_rewards"]),
        name="epoch_schedule.epoch_total_rewards",
    )
    return EpochScheduleConfig(
        start_block=start_block,
        epoch_lengths=tuple(
            _require_int(v, name=f"epoch_schedule.epoch_lengths[{i}]") for i, v in enumerate(lengths)
        ),
        epoch_total_rewards=tuple(
            _require_amount(v, name=f"epoch_schedule.epoch_total_rewards[{i}]", decimals=decimals)
            for i, v in enumerate(totals)
        ),
    )


def epoch_pool_config_from_mapping(obj: Any) -> EpochPoolConfig:
    data = _require_mapping(obj, name="epoch_pool")
    mint_rewards = data.get("mint_rewards", False)
    if not isinstance(mint_rewards, bool):
        raise ConfigError("epoch_pool.mint_rewards must be a bool")
    return EpochPoolConfig(mint_rewards=mint_rewards)


def config_from_mapping(obj: Any) -> StakeLedgerConfig:
    root = _require_mapping(obj if obj is not None else {}, name="config")
    unknown = set(root) - {"boardroom", "epoch_schedule", "epoch_pool"}
    if unknown:
        raise ConfigError(f"unknown config sections: {', '.join(sorted(unknown))}")
    return StakeLedgerConfig(
        boardroom=boardroom_config_from_mapping(root.get("boardroom", {})),
        epoch_schedule=(
            schedule_config_from_mapping(root["epoch_schedule"]) if "epoch_schedule" in root else None
        ),
        epoch_pool=epoch_pool_config_from_mapping(root.get("epoch_pool", {})),
    )


def load_config(path: Path) -> StakeLedgerConfig:
    """Load and validate a YAML config file."""
    config = config_from_mapping(yaml.safe_load(Path(path).read_text(encoding="utf-8")))
    logger.info("config loaded", extra={"event": "config.loaded", "path": str(path)})
    return config
