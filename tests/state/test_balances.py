"""Tests for stakeledger/state/balances.py: BalanceTable and AssetLedger."""

import pytest

from stakeledger.errors import InsufficientAllowance, InsufficientBalance
from stakeledger.state.balances import MAX_ALLOWANCE, AssetLedger, BalanceTable


class TestBalanceTable:
    def test_missing_is_zero(self):
        assert BalanceTable().get("alice", "DAI") == 0

    def test_add_and_subtract(self):
        t = BalanceTable()
        t.add("alice", "DAI", 10)
        t.subtract("alice", "DAI", 4)
        assert t.get("alice", "DAI") == 6

    def test_underflow(self):
        t = BalanceTable({("alice", "DAI"): 1})
        with pytest.raises(InsufficientBalance):
            t.subtract("alice", "DAI", 2)
        assert t.get("alice", "DAI") == 1

    def test_zero_entries_dropped(self):
        t = BalanceTable({("alice", "DAI"): 1})
        t.subtract("alice", "DAI", 1)
        assert t.get_balances_for_asset("DAI") == {}

    def test_negative_set_rejected(self):
        with pytest.raises(ValueError):
            BalanceTable().set("alice", "DAI", -1)



# ---------------------------------------------------------------------------
# AssetLedger
# ---------------------------------------------------------------------------

class TestAssetLedger:
    def test_mint_tracks_supply(self):
        ledger = AssetLedger()
        ledger.mint("DAI", "alice", 100)
        ledger.mint("DAI", "bob", 50)
        assert ledger.total_supply("DAI") == 150
        assert ledger.holders("DAI") == {"alice": 100, "bob": 50}

    def test_burn(self):
        ledger = AssetLedger()
        ledger.mint("DAI", "alice", 100)
        ledger.burn("DAI", "alice", 30)
        assert ledger.balance_of("alice", "DAI") == 70
        assert ledger.total_supply("DAI") == 70

    def test_transfer(self):
        ledger = AssetLedger()
        ledger.mint("DAI", "alice", 100)
        ledger.transfer("DAI", "alice", "bob", 40)
        assert (ledger.balance_of("alice", "DAI"), ledger.balance_of("bob", "DAI")) == (60, 40)

    def test_transfer_insufficient(self):
        ledger = AssetLedger()
        with pytest.raises(InsufficientBalance):
            ledger.transfer("DAI", "alice", "bob", 1)

    def test_transfer_from_spends_allowance(self):
        ledger = AssetLedger()
        ledger.mint("DAI", "alice", 100)
        ledger.approve("DAI", "alice", "pool", 60)
        ledger.transfer_from("DAI", "pool", "alice", "pool", 50)
        assert ledger.allowance("alice", "pool", "DAI") == 10
        with pytest.raises(InsufficientAllowance):
            ledger.transfer_from("DAI", "pool", "alice", "pool", 11)

    def test_max_allowance_not_decremented(self):
        ledger = AssetLedger()
        ledger.mint("DAI", "alice", 100)
        ledger.approve("DAI", "alice", "pool", MAX_ALLOWANCE)
        ledger.transfer_from("DAI", "pool", "alice", "pool", 100)
        assert ledger.allowance("alice", "pool", "DAI") == MAX_ALLOWANCE

    @pytest.mark.parametrize("bad", [-1, 1.5, True])
    def test_bad_amounts(self, bad):
        with pytest.raises((TypeError, ValueError)):
            AssetLedger().mint("DAI", "alice", bad)


class TestAtomic:
    def test_commits_on_success(self):
        ledger = AssetLedger()
        with ledger.atomic():
            ledger.mint("DAI", "alice", 5)
        assert ledger.balance_of("alice", "DAI") == 5

    def test_rolls_back_everything(self):
        ledger = AssetLedger()
        ledger.mint("DAI", "alice", 100)
        ledger.approve("DAI", "alice", "pool", 100)
        with pytest.raises(InsufficientBalance):
            with ledger.atomic():
                ledger.transfer_from("DAI", "pool", "alice", "pool", 60)
                ledger.mint("MDO", "bob", 7)
                ledger.transfer("DAI", "alice", "bob", 50)
        assert ledger.balance_of("alice", "DAI") == 100
        assert ledger.balance_of("pool", "DAI") == 0
        assert ledger.allowance("alice", "pool", "DAI") == 100
        assert ledger.total_supply("MDO") == 0

    def test_rollback_restores_absent_entries(self):
        ledger = AssetLedger()
        with pytest.raises(InsufficientBalance):
            with ledger.atomic():
                ledger.mint("DAI", "alice", 5)
                ledger.approve("DAI", "alice", "pool", 5)
                ledger.burn("DAI", "alice", 6)
        assert ledger.holders("DAI") == {}
        assert ledger.allowance("alice", "pool", "DAI") == 0
        assert ledger.total_supply("DAI") == 0

    def test_nested_failure_undoes_inner_only(self):
        ledger = AssetLedger()
        ledger.mint("DAI", "alice", 100)
        with ledger.atomic():
            ledger.transfer("DAI", "alice", "bob", 10)
            with pytest.raises(InsufficientBalance):
                with ledger.atomic():
                    ledger.transfer("DAI", "alice", "carol", 20)
                    ledger.transfer("DAI", "carol", "dave", 21)
        assert ledger.holders("DAI") == {"alice": 90, "bob": 10}

    def test_outer_failure_undoes_committed_inner(self):
        ledger = AssetLedger()
        ledger.mint("DAI", "alice", 100)
        with pytest.raises(InsufficientBalance):
            with ledger.atomic():
                with ledger.atomic():
                    ledger.transfer("DAI", "alice", "bob", 10)
                ledger.transfer("DAI", "bob", "carol", 11)
        assert ledger.holders("DAI") == {"alice": 100}

    def test_rollback_touches_only_written_entries(self, monkeypatch):
        ledger = AssetLedger()
        for i in range(500):
            ledger.mint("DAI", f"holder{i}", 1)
        writes = []
        original_set = BalanceTable.set

        def counting_set(table, address, asset, amount):
            writes.append((address, asset))
            original_set(table, address, asset, amount)

        monkeypatch.setattr(BalanceTable, "set", counting_set)
        with pytest.raises(InsufficientBalance):
            with ledger.atomic():
                ledger.transfer("DAI", "holder0", "holder1", 1)
                ledger.transfer("DAI", "holder0", "holder1", 1)
        assert ledger.balance_of("holder0", "DAI") == 1
        assert ledger.balance_of("holder1", "DAI") == 1
        assert len(writes) <= 6
