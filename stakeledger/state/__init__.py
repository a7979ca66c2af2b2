"""
Asset balances and the fungible-asset ledger
"""

from .balances import AssetLedger, BalanceTable, MAX_ALLOWANCE

__all__ = ["AssetLedger", "BalanceTable", "MAX_ALLOWANCE"]
