#!/usr/bin/env python3
"""
Replay a YAML staking scenario against fresh engines.

Runs every step of the scenario (mints, approvals, engine calls, expectations)
and prints the emitted events. Exits 0 when every expectation holds, 1 when a
step fails, 2 when the file cannot be read or parsed.

Example:
  python3 tools/replay_scenario.py scenarios/boardroom_reference.yaml --verbose
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import yaml

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from stakeledger.integration.config import ConfigError
from stakeledger.integration.replay import ReplayError, replay_file


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Replay a YAML staking scenario and print its events.")
    p.add_argument("scenario", type=Path, help="Path to the scenario YAML file")
    p.add_argument("--quiet", action="store_true", help="Only print the summary line")
    p.add_argument("--verbose", action="store_true", help="Log engine transitions to stderr")
    args = p.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        report = replay_file(args.scenario)
    except (OSError, yaml.YAMLError, ConfigError) as exc:
        print(f"replay_scenario error: {exc}", file=sys.stderr)
        return 2
    except ReplayError as exc:
        print(f"replay_scenario FAIL: {exc}", file=sys.stderr)
        return 1

    if not args.quiet:
        for ev in report.events:
            pool = "" if ev.pool_id is None else f" pool={ev.pool_id}"
            print(f"{ev.kind.value} account={ev.account} amount={ev.amount}{pool}")
    print(f"ok: {report.calls} calls, {report.checks} checks, {report.rejections} expected rejections")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
