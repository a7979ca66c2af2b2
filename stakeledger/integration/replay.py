"""
YAML scenario replay.

A scenario wires fresh engines to a fresh ``AssetLedger`` and runs an ordered
list of steps against them::

    config:                       # optional, see stakeledger.integration.config
      boardroom: {stake_fee_bps: 400}
    engines:
      boardroom: {address: boardroom}
      reward_pool: {address: pool, operator: op, reward_token: MDO}
    steps:
      - mint: {asset: SHARE, to: alice, amount: "5000"}
      - approve: {asset: SHARE, owner: alice, spender: boardroom, amount: max}
      - call: boardroom.initialize
        sender: op
        args: {reward_token: CASH, share_token: SHARE, fee_sink: sink}
      - call: boardroom.stake
        sender: alice
        time: 1
        args: {amount: "5000"}
      - expect: boardroom.balance_of
        args: {account: alice}
        equals: "4800"
      - call: boardroom.withdraw
        sender: alice
        args: {amount: "1"}
        error: still_locked

String amounts are decimal token amounts (``parse_units``); ints are base
units. ``amount: max`` is the unlimited allowance.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping

import yaml

from ..core.effects import Event
from ..core.fixed_point import Wad, parse_units
from ..errors import LedgerError
from ..state.balances import MAX_ALLOWANCE, AssetLedger
from .boardroom import Boardroom
from .config import ConfigError, StakeLedgerConfig, config_from_mapping
from .execution import Call
from .reward_pool import EpochRewardPool


logger = logging.getLogger(__name__)

BOARDROOM_CALLS = frozenset(
    {
        "initialize",
        "stake",
        "withdraw",
        "exit",
        "claim_reward",
        "claim_pool_rewards",
        "allocate_seigniorage",
        "add_reward_pool",
        "fund_reward_pool",
        "set_lock_up",
        "set_stake_fee",
    }
)
BOARDROOM_VIEWS = frozenset(
    {
        "total_supply",
        "balance_of",
        "earned",
        "last_snapshot_index_of",
        "latest_snapshot_index",
        "reward_per_share",
        "pool_length",
        "pending_reward",
        "can_withdraw",
        "can_claim_reward",
    }
)
POOL_CALLS = frozenset({"add", "set", "mass_update_pools", "update_pool", "deposit", "withdraw", "emergency_withdraw"})
POOL_VIEWS = frozenset(
    {
        "pool_length",
        "pending_reward",
        "generated_reward",
        "epoch_total_rewards",
        "epoch_end_blocks",
        "epoch_reward_per_block",
    }
)
LEDGER_VIEWS = frozenset({"balance_of", "total_supply", "allowance"})

_AMOUNT_ARGS = frozenset({"amount"})
_WAD_ARGS = frozenset({"reward_per_second"})


class ReplayError(Exception):
    """Raised when a scenario is malformed or an expectation fails."""

    def __init__(self, step: int, message: str) -> None:
        self.step = step
        super().__init__(f"step {step}: {message}")


@dataclass
class ReplayReport:
    events: List[Event] = field(default_factory=list)
    calls: int = 0
    checks: int = 0
    rejections: int = 0


def _amount(value: Any) -> int:
    if isinstance(value, str):
        return parse_units(value)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    raise ValueError(f"amount must be a decimal string or int, got {value!r}")


def _convert_args(args: Mapping[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in args.items():
        if key in _AMOUNT_ARGS:
            out[key] = _amount(value)
        elif key in _WAD_ARGS:
            out[key] = Wad(_amount(value))
        else:
            out[key] = value
    return out


def _normalize(value: Any) -> Any:
    return value.raw if isinstance(value, Wad) else value


class ScenarioRunner:
    """Holds the ledger and engines for one scenario run."""

    def __init__(self, config: StakeLedgerConfig, engines: Mapping[str, Any]) -> None:
        self.config = config
        self.ledger = AssetLedger()
        self.boardroom: Boardroom | None = None
        self.reward_pool: EpochRewardPool | None = None

        if "boardroom" in engines:
            engine_doc = engines["boardroom"] or {}
            self.boardroom = Boardroom(self.ledger, engine_doc.get("address", "boardroom"), config.boardroom)
        if "reward_pool" in engines:
            engine_doc = engines["reward_pool"] or {}
            if config.epoch_schedule is None:
                raise ConfigError("reward_pool engine needs an epoch_schedule config section")
            self.reward_pool = EpochRewardPool(
                self.ledger,
                engine_doc.get("address", "reward_pool"),
                operator=engine_doc["operator"],
                reward_token=engine_doc["reward_token"],
                schedule_config=config.epoch_schedule,
                fee_sink=engine_doc.get("fee_sink", ""),
                config=config.epoch_pool,
            )

    def _engine(self, name: str) -> tuple[Any, frozenset, frozenset]:
        if name == "boardroom" and self.boardroom is not None:
            return self.boardroom, BOARDROOM_CALLS, BOARDROOM_VIEWS
        if name == "reward_pool" and self.reward_pool is not None:
            return self.reward_pool, POOL_CALLS, POOL_VIEWS
        if name == "ledger":
            return self.ledger, frozenset(), LEDGER_VIEWS
        raise KeyError(name)

    def run_call(self, target: str, sender: str, time: int, block: int, args: Mapping[str, Any]) -> List[Event]:
        engine_name, _, method = target.partition(".")
        engine, calls, _views = self._engine(engine_name)
        if method not in calls:
            raise KeyError(target)
        return getattr(engine, method)(Call(sender, timestamp=time, block=block), **_convert_args(args))

    def query(self, target: str, args: Mapping[str, Any]) -> Any:
        engine_name, _, method = target.partition(".")
        engine, _calls, views = self._engine(engine_name)
        if method not in views:
            raise KeyError(target)
        return _normalize(getattr(engine, method)(**_convert_args(args)))


def run_scenario(doc: Mapping[str, Any]) -> ReplayReport:
    if not isinstance(doc, dict):
        raise ReplayError(0, "scenario must be an object")
    config = config_from_mapping(doc.get("config"))
    runner = ScenarioRunner(config, doc.get("engines") or {})
    report = ReplayReport()

    for i, step in enumerate(doc.get("steps") or [], start=1):
        if not isinstance(step, dict):
            raise ReplayError(i, "step must be an object")
        try:
            if "mint" in step:
                m = step["mint"]
                runner.ledger.mint(m["asset"], m["to"], _amount(m["amount"]))
            elif "approve" in step:
                a = step["approve"]
                amount = MAX_ALLOWANCE if a["amount"] == "max" else _amount(a["amount"])
                runner.ledger.approve(a["asset"], a["owner"], a["spender"], amount)
            elif "call" in step:
                _run_call_step(runner, report, i, step)
            elif "expect" in step:
                _run_expect_step(runner, report, i, step)
            else:
                raise ReplayError(i, f"unknown step keys: {sorted(step)}")
        except KeyError as exc:
            raise ReplayError(i, f"missing or unknown key: {exc}") from exc
        except (TypeError, ValueError) as exc:
            raise ReplayError(i, str(exc)) from exc

    logger.info(
        "scenario replayed",
        extra={
            "event": "replay.done",
            "calls": report.calls,
            "checks": report.checks,
            "rejections": report.rejections,
        },
    )
    return report


def _run_call_step(runner: ScenarioRunner, report: ReplayReport, i: int, step: Mapping[str, Any]) -> None:
    expected_error = step.get("error")
    report.calls += 1
    try:
        events = runner.run_call(
            step["call"],
            step["sender"],
            int(step.get("time", 0)),
            int(step.get("block", 0)),
            step.get("args") or {},
        )
    except LedgerError as exc:
        if expected_error != exc.code:
            raise ReplayError(i, f"{step['call']} rejected with {exc.code}: {exc.reason}") from exc
        report.rejections += 1
        return
    if expected_error is not None:
        raise ReplayError(i, f"{step['call']} succeeded, expected {expected_error}")
    report.events.extend(events)


def _run_expect_step(runner: ScenarioRunner, report: ReplayReport, i: int, step: Mapping[str, Any]) -> None:
    actual = runner.query(step["expect"], step.get("args") or {})
    expected = step["equals"]
    if isinstance(expected, str):
        expected = parse_units(expected)
    if actual != expected:
        raise ReplayError(i, f"{step['expect']}: expected {expected}, got {actual}")
    report.checks += 1


def load_scenario(path: Path) -> Mapping[str, Any]:
    return yaml.safe_load(Path(path).read_text(encoding="utf-8"))


def replay_file(path: Path) -> ReplayReport:
    return run_scenario(load_scenario(path))
