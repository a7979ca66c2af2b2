"""
Shared imperative shell for the reward engines.

A kernel step yields a post-state plus ``Transfer`` intents. ``LedgerEngine``
runs the step, executes the transfers inside ``AssetLedger.atomic()`` and
commits the post-state and events only when every transfer succeeded, so a
failing call leaves both the engine and the asset ledger unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, List, TypeVar

from ..core.effects import Event, Transfer, TransferKind
from ..errors import LedgerError
from ..state.balances import Address, AssetLedger


logger = logging.getLogger(__name__)

S = TypeVar("S")


@dataclass(frozen=True)
class Call:
    """Caller context for one engine call (the host's msg.sender / clock)."""

    sender: Address
    timestamp: int = 0
    block: int = 0


def execute_transfers(ledger: AssetLedger, spender: Address, transfers: Iterable[Transfer]) -> List[Event]:
    """Execute *transfers* in order; return the payout events they report.

    Must run inside ``ledger.atomic()``: a failure part-way leaves earlier
    transfers applied.
    """
    reported: List[Event] = []
    for t in transfers:
        moved = t.amount
        if t.kind is TransferKind.PULL:
            ledger.transfer_from(t.asset, spender, t.source, t.destination, t.amount)
        elif t.kind is TransferKind.PAY:
            ledger.transfer(t.asset, t.source, t.destination, t.amount)
        elif t.kind is TransferKind.SAFE_PAY:
            moved = min(t.amount, ledger.balance_of(t.source, t.asset))
            if moved > 0:
                ledger.transfer(t.asset, t.source, t.destination, moved)
        elif t.kind is TransferKind.MINT:
            ledger.mint(t.asset, t.destination, t.amount)
        else:  # pragma: no cover
            raise ValueError(f"unknown transfer kind: {t.kind}")
        if t.reports is not None and moved > 0:
            reported.append(Event(t.reports, t.destination, moved, t.pool_id))
    return reported


class LedgerEngine(Generic[S]):
    """Base class: holds engine state and the event log, commits atomically."""

    event_prefix = "engine"

    def __init__(self, ledger: AssetLedger, address: Address, state: S) -> None:
        self.ledger = ledger
        self.address = address
        self._state = state
        self._events: List[Event] = []

    @property
    def state(self) -> S:
        return self._state

    @property
    def events(self) -> List[Event]:
        return list(self._events)

    def drain_events(self) -> List[Event]:
        events, self._events = self._events, []
        return events

    def _execute(self, step_or_raise: Callable[[S, Any], Any], params: Any) -> List[Event]:
        """Run one kernel step and settle it against the ledger.

        Returns the events emitted by the call. Raises the kernel's or the
        ledger's ``LedgerError``; on any failure nothing is committed.
        """
        action = getattr(params.action, "value", params.action)
        try:
            result = step_or_raise(self._state, params)
            with self.ledger.atomic():
                reported = execute_transfers(self.ledger, self.address, result.transfers)
        except LedgerError as exc:
            logger.debug(
                "call rejected",
                extra={
                    "event": f"{self.event_prefix}.rejected",
                    "action": action,
                    "sender": params.sender,
                    "code": exc.code,
                    "reason": exc.reason,
                },
            )
            raise

        self._state = result.state
        emitted = list(result.events) + reported
        self._events.extend(emitted)
        for ev in emitted:
            logger.info(
                ev.kind.value,
                extra={
                    "event": f"{self.event_prefix}.{ev.kind.value}",
                    "account": ev.account,
                    "amount": ev.amount,
                    "pool_id": ev.pool_id,
                },
            )
        return emitted
