"""State construction and serialization for the boardroom kernel.

``state_to_dict`` produces a JSON-compatible mapping (ints, strings, bools,
lists, dicts). Round-trip property (tested):
``state_from_dict(state_to_dict(s)) == s``.
"""

from __future__ import annotations

from typing import Any, Mapping

from pyrsistent import pmap, pvector

from ..fixed_point import Wad
from ..reward_pools import RewardPoolInfo, UserPoolInfo
from ..snapshots import Snapshot
from .types import BoardroomConfig, BoardroomState, Seat


def initial_state(custody: str, config: BoardroomConfig = BoardroomConfig()) -> BoardroomState:
    """Return an uninitialized boardroom held at *custody*."""
    if not custody:
        raise ValueError("custody address must be non-empty")
    return BoardroomState(custody=custody, config=config)


def state_to_dict(state: BoardroomState) -> dict[str, Any]:
    return {
        "custody": state.custody,
        "config": {
            "stake_fee_bps": state.config.stake_fee_bps,
            "withdraw_lockup": state.config.withdraw_lockup,
            "reward_lockup": state.config.reward_lockup,
        },
        "initialized": state.initialized,
        "operator": state.operator,
        "reward_token": state.reward_token,
        "share_token": state.share_token,
        "treasury": state.treasury,
        "fee_sink": state.fee_sink,
        "total_supply": state.total_supply,
        "seats": {
            account: {
                "balance": seat.balance,
                "last_snapshot_index": seat.last_snapshot_index,
                "reward_earned": seat.reward_earned,
                "entered_at": seat.entered_at,
            }
            for account, seat in sorted(state.seats.items())
        },
        "history": [
            {
                "time": snap.time,
                "reward_received": snap.reward_received,
                "reward_per_share": snap.reward_per_share.raw,
            }
            for snap in state.history
        ],
        "pools": [
            {
                "reward_token": pool.reward_token,
                "start_time": pool.start_time,
                "end_time": pool.end_time,
                "reward_per_second": pool.reward_per_second.raw,
                "acc_reward_per_share": pool.acc_reward_per_share.raw,
                "last_update_time": pool.last_update_time,
                "reserve": pool.reserve,
            }
            for pool in state.pools
        ],
        "pool_users": [
            {
                "pool_id": pid,
                "account": account,
                "reward_debt": user.reward_debt,
                "unclaimed": user.unclaimed,
            }
            for (pid, account), user in sorted(state.pool_users.items())
        ],
    }


def state_from_dict(d: Mapping[str, Any]) -> BoardroomState:
    """Deserialize a ``state_to_dict`` mapping. Raises KeyError on missing fields."""
    cfg = d["config"]
    return BoardroomState(
        custody=d["custody"],
        config=BoardroomConfig(
            stake_fee_bps=int(cfg["stake_fee_bps"]),
            withdraw_lockup=int(cfg["withdraw_lockup"]),
            reward_lockup=int(cfg["reward_lockup"]),
        ),
        initialized=bool(d["initialized"]),
        operator=d["operator"],
        reward_token=d["reward_token"],
        share_token=d["share_token"],
        treasury=d["treasury"],
        fee_sink=d["fee_sink"],
        total_supply=int(d["total_supply"]),
        seats=pmap({
            account: Seat(
                balance=int(seat["balance"]),
                last_snapshot_index=int(seat["last_snapshot_index"]),
                reward_earned=int(seat["reward_earned"]),
                entered_at=int(seat["entered_at"]),
            )
            for account, seat in d["seats"].items()
        }),
        history=pvector([
            Snapshot(
                time=int(snap["time"]),
                reward_received=int(snap["reward_received"]),
                reward_per_share=Wad(int(snap["reward_per_share"])),
            )
            for snap in d["history"]
        ]),
        pools=tuple(
            RewardPoolInfo(
                reward_token=pool["reward_token"],
                start_time=int(pool["start_time"]),
                end_time=int(pool["end_time"]),
                reward_per_second=Wad(int(pool["reward_per_second"])),
                acc_reward_per_share=Wad(int(pool["acc_reward_per_share"])),
                last_update_time=int(pool["last_update_time"]),
                reserve=int(pool["reserve"]),
            )
            for pool in d["pools"]
        ),
        pool_users=pmap({
            (int(row["pool_id"]), row["account"]): UserPoolInfo(
                reward_debt=int(row["reward_debt"]),
                unclaimed=int(row["unclaimed"]),
            )
            for row in d["pool_users"]
        }),
    )
