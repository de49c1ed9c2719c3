"""
Unit tests for entering positions, rebalancing, trust and reward reinvestment.
"""

import unittest
import sys
import os

# Add the core directory to the path
sys.path.append(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "core"))
from cellar_config import RAY, SECONDS_PER_DAY, WAD
from cellar_errors import (
    ContractShutdown,
    CooldownNotElapsed,
    InsufficientLiquidity,
    InvalidSwapPath,
    SameAsset,
    SlippageExceeded,
    Unauthorized,
    UntrustedAsset,
)
from economic_model import CellarEconomicModel, STEWARD

E18 = 10**18
HAIRCUT_5_PERCENT = 5 * WAD // 100


class TestEnterPosition(unittest.TestCase):
    def setUp(self):
        self.model = CellarEconomicModel()
        self.cellar = self.model.cellar
        self.u = self.model.units

    def test_enter_position(self):
        self.model.fund("alice", 1000)
        self.cellar.deposit("alice", self.u(1000))

        amount = self.cellar.enter_position(STEWARD)

        self.assertEqual(amount, self.u(1000))
        self.assertEqual(self.cellar.active_assets(), self.u(1000))
        self.assertEqual(self.cellar.inactive_assets(), 0)
        self.assertEqual(self.cellar.last_sweep_timestamp, self.model.clock.now())
        self.assertEqual(self.cellar.get_user_balances("alice"), (1000 * E18, 0, self.u(1000), 0))
        self.assertEqual(self.cellar.fees()[1:3], (1000 * E18, RAY))
        self.assertEqual(self.cellar.events[-1].name, "EnterPosition")

    def test_enter_position_with_empty_buffer(self):
        """Nothing idle to sweep fails without moving the sweep time"""
        with self.assertRaises(InsufficientLiquidity):
            self.cellar.enter_position(STEWARD)
        self.assertIsNone(self.cellar.last_sweep_timestamp)

        self.model.fund("alice", 1000)
        self.cellar.deposit("alice", self.u(1000))
        self.cellar.enter_position(STEWARD)
        swept_at = self.cellar.last_sweep_timestamp

        self.model.update_time(10)
        with self.assertRaises(InsufficientLiquidity) as ctx:
            self.cellar.enter_position(STEWARD)

        self.assertEqual(ctx.exception.details["buffer"], 0)
        self.assertEqual(self.cellar.last_sweep_timestamp, swept_at)
        self.assertEqual(self.cellar.fees()[1:3], (1000 * E18, RAY))

    def test_enter_position_accrues_on_existing_position(self):
        self.model.fund("alice", 2000)
        self.cellar.deposit("alice", self.u(1000))
        self.cellar.enter_position(STEWARD)
        self.model.set_yield_index(1.25)

        self.model.update_time(1)
        self.cellar.deposit("alice", self.u(1000))
        self.cellar.enter_position(STEWARD)

        self.assertEqual(self.cellar.fees()[0], 250 * E18)
        self.assertEqual(self.cellar.balance_of(self.cellar.address), 10 * E18)
        self.assertEqual(self.cellar.fees()[1], self.cellar.active_assets_normalized())

    def test_enter_position_requires_steward(self):
        with self.assertRaises(Unauthorized):
            self.cellar.enter_position("alice")


class TestRebalance(unittest.TestCase):
    def setUp(self):
        self.model = CellarEconomicModel()
        self.cellar = self.model.cellar
        self.model.fund("alice", 1000)
        self.cellar.deposit("alice", self.model.units(1000))
        self.cellar.enter_position(STEWARD)

    def test_rebalance_to_dai(self):
        self.cellar.set_trust(STEWARD, "DAI", True)

        amount_out = self.cellar.rebalance(STEWARD, ["USDC", "DAI"])

        self.assertEqual(amount_out, 1000 * E18)
        self.assertEqual(self.cellar.asset.symbol, "DAI")
        self.assertEqual(self.cellar.active_assets(), 1000 * E18)
        self.assertEqual(self.cellar.inactive_assets(), 0)
        self.assertEqual(self.model.lending_pool.balance_of("USDC", self.cellar.address), 0)
        self.assertEqual(self.cellar.deposit_cap, 50_000 * E18)
        self.assertEqual(self.cellar.liquidity_cap, 5_000_000 * E18)

        event = self.cellar.events[-1]
        self.assertEqual(event.name, "Rebalance")
        self.assertEqual(event.args, {"old_asset": "USDC", "new_asset": "DAI", "assets": 1000 * E18})

        # Shares now redeem for DAI
        self.cellar.withdraw("alice", 400 * E18)
        self.assertEqual(self.model.dai.balance_of("alice"), 400 * E18)
        self.assertTrue(self.cellar.check_invariants())

    def test_rebalance_with_haircut(self):
        model = CellarEconomicModel(swap_haircut=HAIRCUT_5_PERCENT)
        cellar = model.cellar
        model.fund("alice", 1500)
        cellar.deposit("alice", model.units(1500))
        cellar.enter_position(STEWARD)
        cellar.set_trust(STEWARD, "DAI", True)

        cellar.rebalance(STEWARD, ["USDC", "DAI"])

        self.assertEqual(cellar.events[-1].args["assets"], 1425 * E18)
        self.assertEqual(cellar.total_assets(), 1425 * E18)

    def test_rebalance_accrues_old_position(self):
        self.model.set_yield_index(1.25)
        self.cellar.set_trust(STEWARD, "DAI", True)

        self.cellar.rebalance(STEWARD, ["USDC", "DAI"])

        self.assertEqual(self.cellar.balance_of(self.cellar.address), 10 * E18)
        self.assertEqual(self.cellar.fees(), (250 * E18, 1250 * E18, RAY, 0, 10 * E18))

    def test_rebalance_to_same_asset(self):
        with self.assertRaises(SameAsset):
            self.cellar.rebalance(STEWARD, ["DAI", "USDC"])

    def test_rebalance_to_untrusted_asset(self):
        with self.assertRaises(UntrustedAsset):
            self.cellar.rebalance(STEWARD, ["USDC", "DAI"])

    def test_rebalance_invalid_path(self):
        self.cellar.set_trust(STEWARD, "DAI", True)

        with self.assertRaises(InvalidSwapPath):
            self.cellar.rebalance(STEWARD, ["DAI"])
        with self.assertRaises(InvalidSwapPath):
            self.cellar.rebalance(STEWARD, ["AAVE", "DAI"])

    def test_rebalance_slippage_rolls_back(self):
        self.cellar.set_trust(STEWARD, "DAI", True)

        with self.assertRaises(SlippageExceeded):
            self.cellar.rebalance(STEWARD, ["USDC", "DAI"], min_assets_out=1001 * E18)

        self.assertEqual(self.cellar.asset.symbol, "USDC")
        self.assertEqual(self.cellar.active_assets(), self.model.units(1000))
        self.assertEqual(self.cellar.deposit_cap, self.model.units(50_000))
        self.assertEqual(self.model.dai.total_supply, 0)

    def test_rebalance_requires_steward(self):
        self.cellar.set_trust(STEWARD, "DAI", True)
        with self.assertRaises(Unauthorized):
            self.cellar.rebalance("alice", ["USDC", "DAI"])

    def test_rebalance_after_shutdown(self):
        self.cellar.set_trust(STEWARD, "DAI", True)
        self.cellar.shutdown(STEWARD)
        with self.assertRaises(ContractShutdown):
            self.cellar.rebalance(STEWARD, ["USDC", "DAI"])


class TestTrust(unittest.TestCase):
    def setUp(self):
        self.model = CellarEconomicModel()
        self.cellar = self.model.cellar
        self.model.fund("alice", 1000)
        self.cellar.deposit("alice", self.model.units(1000))
        self.cellar.enter_position(STEWARD)

    def test_distrust_current_asset_exits_position(self):
        self.cellar.set_trust(STEWARD, "USDC", False)

        self.assertNotIn("USDC", self.cellar.trusted_assets)
        self.assertEqual(self.cellar.active_assets(), 0)
        self.assertEqual(self.cellar.inactive_assets(), self.model.units(1000))
        self.assertEqual(self.cellar.events[-1].args, {"asset": "USDC", "trusted": False})

        with self.assertRaises(UntrustedAsset):
            self.cellar.enter_position(STEWARD)

        # Withdrawals are served from the buffer
        self.cellar.withdraw("alice", self.model.units(1000))
        self.assertEqual(self.model.usdc.balance_of("alice"), self.model.units(1000))

    def test_distrust_other_asset(self):
        self.cellar.set_trust(STEWARD, "DAI", True)
        self.cellar.set_trust(STEWARD, "DAI", False)

        self.assertEqual(self.cellar.trusted_assets, {"USDC"})
        self.assertEqual(self.cellar.active_assets(), self.model.units(1000))

    def test_set_trust_requires_steward(self):
        with self.assertRaises(Unauthorized):
            self.cellar.set_trust("alice", "DAI", True)


class TestReinvest(unittest.TestCase):
    def setUp(self):
        """100 stkAAVE of rewards pending, swaps lose 5%"""
        self.model = CellarEconomicModel(swap_haircut=HAIRCUT_5_PERCENT)
        self.cellar = self.model.cellar
        self.model.staking.accrue_rewards(100 * E18)

    def test_claim_and_unstake(self):
        claimed = self.cellar.claim_and_unstake(STEWARD)

        self.assertEqual(claimed, 100 * E18)
        self.assertEqual(self.model.stk_aave.balance_of(self.cellar.address), 100 * E18)
        self.assertEqual(self.model.staking.cooldown_start, self.model.clock.now())
        self.assertEqual(self.cellar.events[-1].name, "ClaimAndUnstake")

    def test_reinvest_into_empty_cellar(self):
        self.cellar.claim_and_unstake(STEWARD)
        self.model.update_time(self.model.config.cooldown_seconds)

        assets = self.cellar.reinvest(STEWARD, ["AAVE", "USDC"])

        self.assertEqual(assets, self.model.units(95))
        self.assertEqual(self.cellar.active_assets(), self.model.units(95))
        self.assertEqual(self.model.stk_aave.balance_of(self.cellar.address), 0)
        self.assertEqual(self.model.aave.balance_of(self.cellar.address), 0)

        # 5% of 95 at the bootstrap rate
        self.assertEqual(self.cellar.balance_of(self.cellar.address), 475 * 10**16)
        self.assertEqual(self.cellar.fees()[4], 475 * 10**16)
        self.assertEqual(self.cellar.fees()[1], 95 * E18)
        self.assertTrue(self.cellar.check_invariants())

    def test_reinvest_with_depositors(self):
        self.model.fund("alice", 1000)
        self.cellar.deposit("alice", self.model.units(1000))
        self.cellar.enter_position(STEWARD)
        self.cellar.claim_and_unstake(STEWARD)
        self.model.update_time(self.model.config.cooldown_seconds)

        self.cellar.reinvest(STEWARD, ["AAVE", "USDC"])

        # 4.75 of fees at 1095 assets per 1000 shares
        self.assertEqual(self.cellar.fees()[4], 4337899543378995433)
        self.assertEqual(self.cellar.active_assets(), self.model.units(1095))

    def test_reinvest_before_cooldown(self):
        self.cellar.claim_and_unstake(STEWARD)
        self.model.update_time(SECONDS_PER_DAY)

        with self.assertRaises(CooldownNotElapsed):
            self.cellar.reinvest(STEWARD, ["AAVE", "USDC"])

        self.assertEqual(self.model.stk_aave.balance_of(self.cellar.address), 100 * E18)

    def test_reinvest_after_unstake_window(self):
        self.cellar.claim_and_unstake(STEWARD)
        config = self.model.config
        self.model.update_time(config.cooldown_seconds + config.unstake_window_seconds + 1)

        with self.assertRaises(CooldownNotElapsed):
            self.cellar.reinvest(STEWARD, ["AAVE", "USDC"])

    def test_reinvest_path_must_end_in_current_asset(self):
        self.cellar.claim_and_unstake(STEWARD)
        self.model.update_time(self.model.config.cooldown_seconds)

        with self.assertRaises(InvalidSwapPath):
            self.cellar.reinvest(STEWARD, ["AAVE", "DAI"])
        with self.assertRaises(InvalidSwapPath):
            self.cellar.reinvest(STEWARD, ["stkAAVE", "USDC"])

    def test_reinvest_multi_hop(self):
        self.cellar.claim_and_unstake(STEWARD)
        self.model.update_time(self.model.config.cooldown_seconds)

        assets = self.cellar.reinvest(STEWARD, ["AAVE", "DAI", "USDC"])

        self.assertEqual(assets, 90_250_000)

    def test_reinvest_requires_steward(self):
        with self.assertRaises(Unauthorized):
            self.cellar.claim_and_unstake("alice")
        with self.assertRaises(Unauthorized):
            self.cellar.reinvest("alice", ["AAVE", "USDC"])


if __name__ == '__main__':
    unittest.main()
