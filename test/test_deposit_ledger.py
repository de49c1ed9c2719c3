"""
Unit tests for the deposit ledger.
"""

import unittest
import sys
import os

# Add the core directory to the path
sys.path.append(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "core"))
from deposit_ledger import DepositLedger, UserDeposit

E18 = 10**18
LAST_SWEEP = 20


def rate_1_25(shares):
    """Share valuation at 1.25 assets per share"""
    return shares * 5 // 4


class TestUserDeposit(unittest.TestCase):
    def test_is_active(self):
        self.assertTrue(UserDeposit(0, 1, 10).is_active(20))
        self.assertTrue(UserDeposit(0, 1, 20).is_active(20))
        self.assertFalse(UserDeposit(0, 1, 21).is_active(20))
        self.assertFalse(UserDeposit(0, 1, 0).is_active(None))


class TestDepositLedgerWithdraw(unittest.TestCase):
    def setUp(self):
        """Initialize a fresh ledger for each test"""
        self.ledger = DepositLedger()

    def test_withdraw_whole_active_record(self):
        """Active records are valued at the exchange rate"""
        self.ledger.record_deposit("alice", 100 * E18, 100 * E18, 10)

        result = self.ledger.withdraw("alice", 2000 * E18, LAST_SWEEP, rate_1_25)

        self.assertEqual(result.assets, 125 * E18)
        self.assertEqual(result.shares, 100 * E18)
        self.assertEqual(result.active_shares, 100 * E18)
        self.assertEqual(self.ledger.deposits_of("alice")[0], UserDeposit(0, 0, 0))
        self.assertEqual(self.ledger.current_deposit_index("alice"), 1)

    def test_withdraw_part_of_active_record(self):
        """A touched active record loses its stored assets and timestamp but keeps its remaining shares"""
        self.ledger.record_deposit("alice", 100 * E18, 100 * E18, 10)

        result = self.ledger.withdraw("alice", 50 * E18, LAST_SWEEP, rate_1_25)

        self.assertEqual(result.assets, 50 * E18)
        self.assertEqual(result.shares, 40 * E18)
        record = self.ledger.deposits_of("alice")[0]
        self.assertEqual(record, UserDeposit(0, 60 * E18, 0))
        self.assertTrue(record.is_active(LAST_SWEEP))
        self.assertEqual(self.ledger.current_deposit_index("alice"), 0)

    def test_withdraw_part_of_inactive_record(self):
        """Inactive records pay out exactly their stored assets"""
        self.ledger.record_deposit("alice", 100 * E18, 80 * E18, 30)

        result = self.ledger.withdraw("alice", 50 * E18, LAST_SWEEP, rate_1_25)

        self.assertEqual(result.assets, 50 * E18)
        self.assertEqual(result.shares, 40 * E18)
        self.assertEqual(result.inactive_assets, 50 * E18)
        self.assertEqual(self.ledger.deposits_of("alice")[0], UserDeposit(50 * E18, 40 * E18, 30))

    def test_withdraw_oldest_first_across_records(self):
        """Consumption runs oldest first regardless of active/inactive"""
        self.ledger.record_deposit("alice", 100 * E18, 100 * E18, 10)
        self.ledger.record_deposit("alice", 100 * E18, 80 * E18, 30)

        result = self.ledger.withdraw("alice", 150 * E18, LAST_SWEEP, rate_1_25)

        self.assertEqual(result.assets, 150 * E18)
        self.assertEqual(result.active_shares, 100 * E18)
        self.assertEqual(result.inactive_shares, 20 * E18)
        self.assertEqual(result.inactive_assets, 25 * E18)
        self.assertEqual(self.ledger.deposits_of("alice")[1], UserDeposit(75 * E18, 60 * E18, 30))

        # Record 0 is drained but the cursor only moves at the tail of the pass
        self.assertEqual(self.ledger.current_deposit_index("alice"), 1)

    def test_withdraw_rounds_shares_up(self):
        """Shares removed from a record are rounded up"""
        self.ledger.record_deposit("alice", 3, 3, 10)

        result = self.ledger.withdraw("alice", 1, LAST_SWEEP, lambda shares: shares * 2)

        # 3 shares worth 6, taking 1 burns ceil(3 * 1 / 6) = 1 share
        self.assertEqual(result.shares, 1)
        self.assertEqual(self.ledger.deposits_of("alice")[0].shares, 2)

    def test_dust_record_gives_up_shares(self):
        """An active record worth nothing is burned when reached"""
        self.ledger.record_deposit("alice", 1, 1, 10)
        self.ledger.record_deposit("alice", 100, 100, 10)

        result = self.ledger.withdraw("alice", 10, LAST_SWEEP, lambda shares: shares // 2)

        self.assertEqual(result.assets, 10)
        self.assertEqual(result.shares, 21)
        self.assertEqual(self.ledger.deposits_of("alice")[0].shares, 0)

    def test_withdrawable_assets_and_balances(self):
        self.ledger.record_deposit("alice", 100 * E18, 100 * E18, 10)
        self.ledger.record_deposit("alice", 50 * E18, 40 * E18, 30)

        self.assertEqual(self.ledger.withdrawable_assets("alice", LAST_SWEEP, rate_1_25), 175 * E18)
        self.assertEqual(self.ledger.balances("alice", LAST_SWEEP), (100 * E18, 40 * E18, 50 * E18))

        # Before any sweep everything is inactive
        self.assertEqual(self.ledger.balances("alice", None), (0, 140 * E18, 150 * E18))

    def test_unknown_account(self):
        self.assertEqual(self.ledger.deposits_of("nobody"), [])
        self.assertEqual(self.ledger.current_deposit_index("nobody"), 0)
        self.assertEqual(self.ledger.withdraw("nobody", 10, LAST_SWEEP, rate_1_25).shares, 0)


class TestDepositLedgerTransfer(unittest.TestCase):
    def setUp(self):
        """Initialize a fresh ledger for each test"""
        self.ledger = DepositLedger()

    def test_transfer_part_of_active_record(self):
        """Active slices arrive without stored assets and with a cleared timestamp"""
        self.ledger.record_deposit("alice", 100 * E18, 100 * E18, 10)

        result = self.ledger.transfer("alice", "bob", 40 * E18, LAST_SWEEP)

        self.assertEqual(result.shares, 40 * E18)
        self.assertEqual(self.ledger.deposits_of("alice"), [UserDeposit(0, 60 * E18, 0)])
        self.assertEqual(self.ledger.deposits_of("bob"), [UserDeposit(0, 40 * E18, 0)])
        self.assertEqual(self.ledger.current_deposit_index("alice"), 0)

    def test_transfer_part_of_inactive_record(self):
        """Inactive slices carry pro-rata assets and the original timestamp"""
        self.ledger.record_deposit("alice", 100 * E18, 80 * E18, 30)

        self.ledger.transfer("alice", "bob", 20 * E18, LAST_SWEEP)

        self.assertEqual(self.ledger.deposits_of("alice"), [UserDeposit(75 * E18, 60 * E18, 30)])
        self.assertEqual(self.ledger.deposits_of("bob"), [UserDeposit(25 * E18, 20 * E18, 30)])

    def test_transfer_whole_record_moves_cursor(self):
        self.ledger.record_deposit("alice", 100 * E18, 100 * E18, 10)

        self.ledger.transfer("alice", "bob", 100 * E18, LAST_SWEEP)

        self.assertEqual(self.ledger.current_deposit_index("alice"), 1)
        self.assertEqual(self.ledger.total_shares("alice"), 0)
        self.assertEqual(self.ledger.total_shares("bob"), 100 * E18)

    def test_transfer_only_active_skips_inactive(self):
        """Inactive records are skipped and the cursor stays put"""
        self.ledger.record_deposit("alice", 100 * E18, 100 * E18, 30)
        self.ledger.deposits_of("alice").append(UserDeposit(0, 50 * E18, 0))

        result = self.ledger.transfer("alice", "bob", 80 * E18, LAST_SWEEP, only_active=True)

        self.assertEqual(result.shares, 50 * E18)
        self.assertEqual(self.ledger.deposits_of("alice")[0], UserDeposit(100 * E18, 100 * E18, 30))
        self.assertEqual(self.ledger.deposits_of("alice")[1].shares, 0)
        self.assertEqual(self.ledger.current_deposit_index("alice"), 0)

    def test_transfer_conserves_shares(self):
        self.ledger.record_deposit("alice", 100 * E18, 100 * E18, 10)
        self.ledger.record_deposit("alice", 70 * E18, 60 * E18, 30)

        self.ledger.transfer("alice", "bob", 130 * E18, LAST_SWEEP)

        self.assertEqual(self.ledger.total_shares("alice") + self.ledger.total_shares("bob"), 160 * E18)
        self.assertEqual(self.ledger.total_shares("bob"), 130 * E18)
        self.assertEqual(self.ledger.current_deposit_index("alice"), 1)

    def test_reset(self):
        self.ledger.record_deposit("cellar", 1, 1, 10)
        self.ledger.reset("cellar")
        self.assertEqual(self.ledger.deposits_of("cellar"), [])


if __name__ == '__main__':
    unittest.main()
