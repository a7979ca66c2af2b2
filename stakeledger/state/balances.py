"""
Multi-asset balance tracking and the fungible-asset ledger the engines settle against.

Implements BalanceTable[Address, AssetId] -> Amount, plus ERC20-style allowances,
minting and burning. ``AssetLedger.atomic()`` gives each engine call the host's
all-or-nothing guarantee: every balance, allowance and supply entry the enclosed
block wrote is restored when it raises. Only touched entries are journaled, so
the cost of a call does not depend on how many holders the ledger has.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Tuple

from ..errors import InsufficientAllowance, InsufficientBalance


logger = logging.getLogger(__name__)

# Type aliases
Address = str  # opaque account / contract identifier
AssetId = str  # token identifier
Amount = int  # Non-negative integer (arbitrary precision)

# Allowance value treated as unlimited (never decremented by transfer_from).
MAX_ALLOWANCE = 2**256 - 1

# (store, key, previous value); None means the key was absent.
JournalEntry = Tuple[str, tuple, Optional[Amount]]


class BalanceTable:
    """
    Balance table mapping (address, asset) -> amount.

    Zero balances are dropped to keep the table sparse; ``get`` returns 0 for
    unknown keys.
    """

    def __init__(self, balances: Dict[Tuple[Address, AssetId], Amount] | None = None):
        self._balances: Dict[Tuple[Address, AssetId], Amount] = dict(balances or {})

    def get(self, address: Address, asset: AssetId) -> Amount:
        """Get balance for (address, asset). Returns 0 if not found."""
        return self._balances.get((address, asset), 0)

    def set(self, address: Address, asset: AssetId, amount: Amount) -> None:
        """
        Set balance for (address, asset).

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            self._balances.pop((address, asset), None)
        else:
            self._balances[(address, asset)] = amount

    def add(self, address: Address, asset: AssetId, delta: Amount) -> None:
        """
        Add delta to balance (delta may be negative).

        Raises:
            InsufficientBalance: If resulting balance would be negative
        """
        current = self.get(address, asset)
        new_balance = current + delta
        if new_balance < 0:
            raise InsufficientBalance(
                f"{asset}: balance of {address} is {current}, needs {-delta}"
            )
        self.set(address, asset, new_balance)

    def subtract(self, address: Address, asset: AssetId, delta: Amount) -> None:
        if delta < 0:
            raise ValueError(f"Delta must be non-negative: {delta}")
        self.add(address, asset, -delta)

    def get_balances_for_asset(self, asset: AssetId) -> Dict[Address, Amount]:
        """Get all non-zero balances for a specific asset."""
        return {addr: amount for (addr, a), amount in self._balances.items() if a == asset}

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"


class AssetLedger:
    """
    In-memory fungible-asset ledger (the token contracts the engines talk to).

    Failures raise ``InsufficientBalance`` / ``InsufficientAllowance``; callers
    propagate them so the enclosing ``atomic()`` block rolls everything back.
    """

    def __init__(self) -> None:
        self._balances = BalanceTable()
        self._allowances: Dict[Tuple[Address, Address, AssetId], Amount] = {}
        self._supply: Dict[AssetId, Amount] = {}
        self._journal: List[JournalEntry] | None = None

    # -- Queries -------------------------------------------------------------

    def balance_of(self, holder: Address, asset: AssetId) -> Amount:
        return self._balances.get(holder, asset)

    def total_supply(self, asset: AssetId) -> Amount:
        return self._supply.get(asset, 0)

    def allowance(self, owner: Address, spender: Address, asset: AssetId) -> Amount:
        return self._allowances.get((owner, spender, asset), 0)

    def holders(self, asset: AssetId) -> Dict[Address, Amount]:
        return self._balances.get_balances_for_asset(asset)

    # -- Mutations -----------------------------------------------------------

    def mint(self, asset: AssetId, to: Address, amount: Amount) -> None:
        _require_amount(amount)
        self._remember_balance(to, asset)
        self._remember_supply(asset)
        self._balances.add(to, asset, amount)
        self._supply[asset] = self.total_supply(asset) + amount
        logger.debug("mint", extra={"event": "asset.mint", "asset": asset, "to": to, "amount": amount})

    def burn(self, asset: AssetId, holder: Address, amount: Amount) -> None:
        _require_amount(amount)
        self._remember_balance(holder, asset)
        self._remember_supply(asset)
        self._balances.subtract(holder, asset, amount)
        self._supply[asset] = self.total_supply(asset) - amount

    def transfer(self, asset: AssetId, sender: Address, recipient: Address, amount: Amount) -> None:
        _require_amount(amount)
        self._remember_balance(sender, asset)
        self._remember_balance(recipient, asset)
        self._balances.subtract(sender, asset, amount)
        self._balances.add(recipient, asset, amount)
        logger.debug(
            "transfer",
            extra={"event": "asset.transfer", "asset": asset, "from": sender, "to": recipient, "amount": amount},
        )

    def approve(self, asset: AssetId, owner: Address, spender: Address, amount: Amount) -> None:
        _require_amount(amount)
        self._remember_allowance(owner, spender, asset)
        self._allowances[(owner, spender, asset)] = amount

    def transfer_from(
        self,
        asset: AssetId,
        spender: Address,
        owner: Address,
        recipient: Address,
        amount: Amount,
    ) -> None:
        """Move *amount* of *owner*'s tokens to *recipient* using *spender*'s allowance."""
        _require_amount(amount)
        current = self.allowance(owner, spender, asset)
        if current < amount:
            raise InsufficientAllowance(
                f"{asset}: allowance of {spender} over {owner} is {current}, needs {amount}"
            )
        self.transfer(asset, owner, recipient, amount)
        if current != MAX_ALLOWANCE:
            self._remember_allowance(owner, spender, asset)
            self._allowances[(owner, spender, asset)] = current - amount

    # -- Atomicity -----------------------------------------------------------

    def _remember_balance(self, holder: Address, asset: AssetId) -> None:
        if self._journal is not None:
            self._journal.append(("balance", (holder, asset), self._balances.get(holder, asset)))

    def _remember_allowance(self, owner: Address, spender: Address, asset: AssetId) -> None:
        if self._journal is not None:
            key = (owner, spender, asset)
            self._journal.append(("allowance", key, self._allowances.get(key)))

    def _remember_supply(self, asset: AssetId) -> None:
        if self._journal is not None:
            self._journal.append(("supply", (asset,), self._supply.get(asset)))

    def _undo(self, entries: List[JournalEntry]) -> None:
        for store, key, previous in reversed(entries):
            if store == "balance":
                self._balances.set(key[0], key[1], previous or 0)
            elif store == "allowance":
                if previous is None:
                    self._allowances.pop(key, None)
                else:
                    self._allowances[key] = previous
            elif previous is None:
                self._supply.pop(key[0], None)
            else:
                self._supply[key[0]] = previous

    @contextmanager
    def atomic(self) -> Iterator["AssetLedger"]:
        """Run a block all-or-nothing: any exception undoes every write it made.

        Blocks nest; a block that succeeds inside another hands its journal to
        the outer one.
        """
        outer = self._journal
        journal: List[JournalEntry] = []
        self._journal = journal
        try:
            yield self
        except BaseException:
            self._journal = outer
            self._undo(journal)
            raise
        self._journal = outer
        if outer is not None:
            outer.extend(journal)

    def __repr__(self) -> str:
        return f"AssetLedger({self._balances!r}, {len(self._supply)} assets)"


def _require_amount(amount: Amount) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise TypeError(f"amount must be an int, got {type(amount).__name__}")
    if amount < 0:
        raise ValueError(f"amount must be non-negative: {amount}")
