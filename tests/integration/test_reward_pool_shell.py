"""End-to-end tests for the EpochRewardPool shell.

Mirrors a three-pool deployment: DAI (8000), BUSD (2000) and USDT (1000, six
decimals) on the default schedule starting at block 10, with the reward token
pre-funded into the pool.
"""

import pytest

from stakeledger.core.effects import EventKind
from stakeledger.core.epoch_pool import EpochPoolConfig
from stakeledger.core.epoch_schedule import default_schedule_config
from stakeledger.core.fixed_point import parse_units
from stakeledger.errors import InsufficientBalance, Unauthorized
from stakeledger.integration import Call, EpochRewardPool
from stakeledger.state.balances import MAX_ALLOWANCE, AssetLedger


OP = "operator"
USERS = ("bob", "carol", "david")


def _deploy(mint_rewards: bool = False):
    ledger = AssetLedger()
    pool = EpochRewardPool(
        ledger,
        "pool",
        operator=OP,
        reward_token="MDO",
        schedule_config=default_schedule_config(start_block=10),
        config=EpochPoolConfig(mint_rewards=mint_rewards),
    )
    pool.add(Call(OP, block=8), 8000, "DAI")
    pool.add(Call(OP, block=9), 2000, "BUSD")
    pool.add(Call(OP, block=10), 1000, "USDT")
    if not mint_rewards:
        ledger.mint("MDO", "pool", parse_units(91000))
    for user in USERS:
        ledger.mint("DAI", user, parse_units(1000))
        ledger.mint("BUSD", user, parse_units(1000))
        ledger.mint("USDT", user, parse_units(1000, 6))
        for token in ("DAI", "BUSD", "USDT"):
            ledger.approve(token, user, "pool", MAX_ALLOWANCE)
    return ledger, pool


@pytest.fixture
def deployed():
    ledger, pool = _deploy()
    pool.deposit(Call("bob", block=42), 0, parse_units(10))
    pool.deposit(Call("carol", block=43), 0, parse_units(20))
    pool.deposit(Call("carol", block=44), 2, parse_units(10, 6))
    pool.deposit(Call("david", block=45), 0, parse_units(10))
    pool.deposit(Call("david", block=46), 1, parse_units(10))
    return ledger, pool


# ---------------------------------------------------------------------------
# Schedule queries
# ---------------------------------------------------------------------------

class TestConstructor:
    def test_schedule_views(self):
        _ledger, pool = _deploy()
        assert pool.schedule.start_block == 10
        assert pool.epoch_end_blocks(1) == 28800 * 10 + 10
        assert pool.epoch_total_rewards(0) == parse_units(1000)
        assert pool.epoch_total_rewards(1) == parse_units(90000)
        assert pool.epoch_reward_per_block(0) == parse_units("0.034722222222222222")
        assert pool.epoch_reward_per_block(1) == parse_units("0.347222222222222222")
        assert pool.epoch_reward_per_block(2) == 0
        assert pool.generated_reward(10, 11) == parse_units("0.034722222222222222")
        assert pool.generated_reward(20, 30) == parse_units("0.34722222222222222")
        assert pool.generated_reward(28809, 28810) == parse_units("0.034722222222222222")

    def test_pools_registered(self):
        _ledger, pool = _deploy()
        assert pool.pool_length() == 3
        assert pool.total_alloc_point == 11000
        assert pool.pool_info(2).stake_token == "USDT"

    def test_add_operator_only(self):
        _ledger, pool = _deploy()
        with pytest.raises(Unauthorized):
            pool.add(Call("bob"), 1, "ESD")


# ---------------------------------------------------------------------------
# deposit / withdraw
# ---------------------------------------------------------------------------

class TestDepositWithdraw:
    def test_deposits_move_stake(self, deployed):
        ledger, pool = deployed
        assert ledger.balance_of("bob", "DAI") == parse_units(990)
        assert ledger.balance_of("pool", "DAI") == parse_units(40)
        assert ledger.balance_of("carol", "USDT") == parse_units(990, 6)
        assert ledger.balance_of("pool", "BUSD") == parse_units(10)
        assert pool.user_info(0, "carol").amount == parse_units(20)

    def test_pending(self, deployed):
        _ledger, pool = deployed
        assert pool.pending_reward(0, "bob", 47) == parse_units("0.0547138047138047")
        assert pool.pending_reward(2, "bob", 47) == 0
        assert pool.pending_reward(0, "carol", 47) == parse_units("0.0589225589225589")
        assert pool.pending_reward(2, "carol", 47) == parse_units("0.009469696969696969")
        assert pool.pending_reward(0, "david", 47) == parse_units("0.01262626262626262")
        assert pool.pending_reward(2, "david", 47) == 0
        assert pool.pending_reward(1, "david", 47) == parse_units("0.00631313131313131")

    def test_carol_withdraw(self, deployed):
        ledger, pool = deployed
        with pytest.raises(InsufficientBalance):
            pool.withdraw(Call("carol", block=49), 0, parse_units("20.01"))

        dai_before = ledger.balance_of("carol", "DAI")
        mdo_pool_before = ledger.balance_of("pool", "MDO")
        events = pool.withdraw(Call("carol", block=50), 0, parse_units(20))
        paid = parse_units("0.09680134680134678")
        assert ledger.balance_of("carol", "MDO") == paid
        assert ledger.balance_of("pool", "MDO") == mdo_pool_before - paid
        assert ledger.balance_of("carol", "DAI") - dai_before == parse_units(20)
        assert (EventKind.REWARD_PAID, "carol", paid, 0) in [(e.kind, e.account, e.amount, e.pool_id) for e in events]

    def test_harvest_with_zero_deposit(self, deployed):
        ledger, pool = deployed
        pool.deposit(Call("bob", block=47), 0, 0)
        assert ledger.balance_of("bob", "MDO") == parse_units("0.0547138047138047")
        assert pool.pending_reward(0, "bob", 47) == 0

    def test_emergency_withdraw(self, deployed):
        ledger, pool = deployed
        events = pool.emergency_withdraw(Call("david", block=60), 0)
        assert ledger.balance_of("david", "DAI") == parse_units(1000)
        assert ledger.balance_of("david", "MDO") == 0
        assert events[0].kind is EventKind.EMERGENCY_WITHDRAW
        assert pool.user_info(0, "david").amount == 0


class TestRewardFunding:
    def test_minting_pool(self):
        ledger, pool = _deploy(mint_rewards=True)
        pool.deposit(Call("bob", block=42), 0, parse_units(10))
        pool.withdraw(Call("bob", block=43), 0, 0)
        reward = 34722222222222222 * 8000 // 11000
        assert ledger.total_supply("MDO") == reward
        assert ledger.balance_of("bob", "MDO") + ledger.balance_of("pool", "MDO") == reward

    def test_safe_transfer_caps_at_balance(self):
        ledger, pool = _deploy(mint_rewards=False)
        ledger.burn("MDO", "pool", parse_units(91000) - 5)
        pool.deposit(Call("bob", block=42), 0, parse_units(10))
        events = pool.withdraw(Call("bob", block=100), 0, parse_units(10))
        assert ledger.balance_of("bob", "MDO") == 5
        assert [e.amount for e in events if e.kind is EventKind.REWARD_PAID] == [5]
        assert ledger.balance_of("bob", "DAI") == parse_units(1000)
