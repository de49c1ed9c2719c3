"""
Simulation Example for the cellar model.

This script shows the steward's side of the cellar: rebalancing between USDC and
DAI, compounding liquidity-mining rewards, pausing and finally shutting down.
"""

import sys
import os

# Add the core directory to the path
sys.path.append(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "core"))
from cellar_config import RAY, SECONDS_PER_DAY, WAD
from cellar_errors import ContractPaused, SlippageExceeded
from economic_model import CellarEconomicModel, STEWARD


def run_steward_scenario():
    # 0.3% lost per swap hop, 4% a year paid by the lending pool
    model = CellarEconomicModel(swap_haircut=3 * WAD // 1000, liquidity_rate=4 * RAY // 100)
    cellar = model.cellar

    print("Depositing 20000 USDC from two users...")
    for user, amount in (("alice", 12_000), ("bob", 8_000)):
        model.fund(user, amount)
        cellar.deposit(user, model.units(amount))
    cellar.enter_position(STEWARD)

    model.update_time(60 * SECONDS_PER_DAY)
    cellar.accrue_fees()
    print(f"After 60 days: {model.get_system_state()['total_assets']:.2f} USDC")

    # Rebalance into DAI
    print("\nRebalancing into DAI...")
    cellar.set_trust(STEWARD, "DAI", True)
    quote = model.swap_router.quote(["USDC", "DAI"], cellar.total_assets())
    try:
        cellar.rebalance(STEWARD, ["USDC", "DAI"], min_assets_out=quote + 1)
    except SlippageExceeded as e:
        print(f"Rejected: {e.message}")
    received = cellar.rebalance(STEWARD, ["USDC", "DAI"], min_assets_out=quote)
    print(f"Now holding {received / 1e18:.2f} DAI")

    # Compound rewards
    print("\nClaiming and reinvesting 50 AAVE of rewards...")
    model.swap_router.set_rate("AAVE", "DAI", 90 * WAD)
    model.staking.accrue_rewards(50 * 10**18)
    cellar.claim_and_unstake(STEWARD)
    model.update_time(model.config.cooldown_seconds)
    reinvested = cellar.reinvest(STEWARD, ["AAVE", "DAI"])
    print(f"Reinvested {reinvested / 1e18:.2f} DAI")

    # Pause
    print("\nPausing the cellar...")
    cellar.set_pause(STEWARD, True)
    model.fund("carol", 100, "DAI")
    try:
        cellar.deposit("carol", model.units(100))
    except ContractPaused:
        print("Deposit refused while paused")
    cellar.set_pause(STEWARD, False)

    # Shutdown
    print("\nShutting down...")
    cellar.shutdown(STEWARD)
    sent = cellar.transfer_fees(STEWARD)
    print(f"Fees sent to the bridge: {sent / 1e18:.4f} DAI")

    for user in ("alice", "bob"):
        assets = cellar.redeem(user, cellar.balance_of(user))
        print(f"  {user} exits with {assets / 1e18:.2f} DAI")

    print("\nEvents:")
    for event in cellar.events:
        print(f"  {event.timestamp} {event.name} {event.args}")


if __name__ == "__main__":
    run_steward_scenario()
