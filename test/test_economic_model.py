"""
Unit tests for the cellar economic model and its yield simulation.
"""

import unittest
import sys
import os
import tempfile

import matplotlib
matplotlib.use("Agg")

# Add the core directory to the path
sys.path.append(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "core"))
from economic_model import CellarEconomicModel, STEWARD


class TestCellarEconomicModel(unittest.TestCase):
    def setUp(self):
        """Initialize a fresh model for each test"""
        self.model = CellarEconomicModel()

    def test_wiring(self):
        cellar = self.model.cellar

        self.assertEqual(cellar.asset.symbol, "USDC")
        self.assertIs(cellar.position.lending_pool, self.model.lending_pool)
        self.assertIs(cellar.exchange, self.model.swap_router)
        self.assertEqual(self.model.steward, STEWARD)
        self.assertIn(cellar.share_token.symbol, self.model.tokens)

    def test_fund_and_units(self):
        minted = self.model.fund("alice", "2.5")

        self.assertEqual(minted, 2_500_000)
        self.assertEqual(self.model.usdc.balance_of("alice"), 2_500_000)
        self.assertEqual(self.model.units(1, "DAI"), 10**18)

    def test_grow_position(self):
        self.model.fund("alice", 1000)
        self.model.cellar.deposit("alice", self.model.units(1000))
        self.model.cellar.enter_position(STEWARD)

        self.model.grow_position(1.1)

        state = self.model.get_system_state()
        self.assertAlmostEqual(state['total_assets'], 1100.0)
        self.assertAlmostEqual(state['share_price'], 1.1)
        self.assertAlmostEqual(state['yield_index'], 1.1)
        self.assertEqual(state['inactive_assets'], 0)

    def test_simulate_yield_scenario(self):
        """Test running a seeded simulation without plotting"""
        results = self.model.simulate_yield_scenario(30, users=4, seed=7, plot_results=False)

        self.assertEqual(len(self.model.share_price_history), 30)
        self.assertEqual(len(self.model.total_assets_history), 30)
        self.assertGreater(results['final_total_supply'], 0)
        self.assertGreater(results['final_share_price'], 0)
        self.assertGreaterEqual(results['fees_sent'], 0)
        self.assertTrue(self.model.cellar.check_invariants())

        # Same seed, same outcome
        again = CellarEconomicModel().simulate_yield_scenario(30, users=4, seed=7, plot_results=False)
        self.assertEqual(results, again)

    def test_simulation_plot_saved(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "cellar.png")

            self.model.simulate_yield_scenario(5, users=2, seed=1, save_path=path)

            self.assertTrue(os.path.exists(path))


if __name__ == '__main__':
    unittest.main()
