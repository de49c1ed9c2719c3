"""
Simple simulation for the cellar model.

This script walks through a minimal lifecycle: deposits, a sweep into the
lending position, a yield event, fee accrual and full exits.
"""

import sys
import os
import numpy as np

# Add the core directory to the path
sys.path.append(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "core"))
from cellar_config import SECONDS_PER_DAY
from economic_model import CellarEconomicModel, STEWARD


def print_state(model):
    state = model.get_system_state()
    print(f"  Total assets: {state['total_assets']:.2f} {state['asset']}")
    print(f"    active: {state['active_assets']:.2f}, inactive: {state['inactive_assets']:.2f}")
    print(f"  Total supply: {state['total_supply']:.4f} shares")
    print(f"  Share price: {state['share_price']:.6f}")
    print(f"  Fee shares held by cellar: {state['fee_shares']:.6f}")


def run_basic_simulation():
    # Initialize the model
    model = CellarEconomicModel()
    cellar = model.cellar
    rng = np.random.default_rng()

    print("Depositing...")
    users = [f"user{i}" for i in range(5)]
    for user in users:
        amount = int(rng.uniform(1_000, 10_000))
        model.fund(user, amount)
        shares = cellar.deposit(user, model.units(amount))
        print(f"{user}: {amount} USDC for {shares / 1e18:.4f} shares")

    print("\nEntering position...")
    moved = cellar.enter_position(STEWARD)
    print(f"Moved {moved / 1e6:.2f} USDC into the lending pool")

    # A late deposit stays in the holding buffer until the next sweep
    model.update_time(1)
    model.fund("late_user", 2_000)
    cellar.deposit("late_user", model.units(2_000))

    print("\nInitial cellar state:")
    print_state(model)

    # Simulate a month of yield
    print("\nSimulating 30 days and 2% of yield...")
    model.update_time(30 * SECONDS_PER_DAY)
    model.grow_position(1.02)

    accrual = cellar.accrue_fees()
    print(f"Platform fee shares: {accrual.platform_fees / 1e18:.6f}")
    print(f"Performance fee shares: {accrual.performance_fees / 1e18:.6f}")

    print("\nBalances per user:")
    for user in users + ["late_user"]:
        active_shares, inactive_shares, active_assets, inactive_assets = cellar.get_user_balances(user)
        print(f"  {user}: active {active_shares / 1e18:.4f} shares ({active_assets / 1e6:.2f} USDC), "
              f"inactive {inactive_shares / 1e18:.4f} shares ({inactive_assets / 1e6:.2f} USDC)")

    print("\nSending fees to the bridge...")
    sent = cellar.transfer_fees(STEWARD)
    print(f"Sent {sent / 1e6:.6f} USDC")

    print("\nEveryone exits...")
    for user in users + ["late_user"]:
        assets = cellar.redeem(user, cellar.balance_of(user))
        print(f"  {user}: {assets / 1e6:.2f} USDC")

    # Final state
    print("\nFinal cellar state:")
    print_state(model)
    cellar.check_invariants()


if __name__ == "__main__":
    run_basic_simulation()
