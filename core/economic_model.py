"""
Economic Model for the cellar.

This main module wires the cellar to simulated collaborators (tokens, an Aave-style
lending pool, a swap router, a staked reward module and a fee bridge) to create a
complete model of the pooled fund. It can be used to simulate yield scenarios and
inspect how shares, fees and deposit records evolve.
"""

import numpy as np
import matplotlib.pyplot as plt

from asset_token import AssetToken, TokenRegistry
from cellar import Cellar
from cellar_config import RAY, SECONDS_PER_DAY, CellarConfig, SimulationClock
from cellar_logging import get_logger
from fee_recipient import FeeBridge
from fixed_point import to_units
from lending_pool import AavePosition, LendingPool
from pool_lifecycle import SingleStewardPolicy
from reward_staking import StakedRewardModule
from swap_router import SwapRouter

logger = get_logger("cellar.model")

STEWARD = "gravity"
CELLAR = "cellar"


class CellarEconomicModel:
    """
    Complete economic model of a cellar managing USDC (or DAI), able to rebalance between them.
    Combines all components and provides simulation capabilities.
    """

    def __init__(self, config=None, swap_haircut=0, liquidity_rate=0, asset="USDC"):
        self.config = config or CellarConfig()

        # Clock shared by every component
        self.clock = SimulationClock(self.config.start_time)

        # Create tokens
        self.usdc = AssetToken("USDC", 6)
        self.dai = AssetToken("DAI", 18)
        self.aave = AssetToken("AAVE", 18)
        self.stk_aave = AssetToken("stkAAVE", 18)
        self.tokens = TokenRegistry(self.usdc, self.dai, self.aave, self.stk_aave)

        # Create lending market
        self.lending_pool = LendingPool(self.tokens, self.clock)
        self.lending_pool.init_reserve("USDC", liquidity_rate)
        self.lending_pool.init_reserve("DAI", liquidity_rate)

        # Create venues
        self.position = AavePosition(self.lending_pool, CELLAR)
        self.swap_router = SwapRouter(self.tokens, haircut=swap_haircut)
        self.staking = StakedRewardModule(
            self.tokens,
            self.clock,
            CELLAR,
            cooldown_seconds=self.config.cooldown_seconds,
            unstake_window_seconds=self.config.unstake_window_seconds,
        )
        self.fee_bridge = FeeBridge(self.tokens)

        # Create cellar
        self.cellar = Cellar(
            self.tokens.get(asset),
            self.tokens,
            self.position,
            self.swap_router,
            self.staking,
            self.fee_bridge,
            SingleStewardPolicy(STEWARD),
            self.clock,
            config=self.config,
            address=CELLAR,
        )

        # History tracking for simulations
        self.total_assets_history = []
        self.active_assets_history = []
        self.share_price_history = []
        self.fee_shares_history = []
        self.yield_index_history = []

    @property
    def steward(self):
        return STEWARD

    def fund(self, account, amount, symbol=None):
        """
        Mints whole units of a token to an account.

        Args:
            account: Address to fund
            amount: Human readable amount, e.g. 1000 or "0.5"
            symbol: Token symbol (defaults to the cellar's current asset)

        Returns:
            Amount minted in base units
        """
        token = self.tokens.get(symbol) if symbol else self.cellar.asset
        units = to_units(amount, token.decimals)
        token.mint(account, units)
        return units

    def units(self, amount, symbol=None):
        token = self.tokens.get(symbol) if symbol else self.cellar.asset
        return to_units(amount, token.decimals)

    def set_yield_index(self, index, symbol=None):
        """Sets the lending pool index of an asset, e.g. set_yield_index(1.25)."""
        self.lending_pool.set_liquidity_index(symbol or self.cellar.asset.symbol, to_units(index, 27))

    def grow_position(self, ratio, symbol=None):
        """Multiplies the current yield index by ratio (simulated gain or loss)."""
        symbol = symbol or self.cellar.asset.symbol
        index = self.lending_pool.get_reserve_normalized_income(symbol)
        self.lending_pool.set_liquidity_index(symbol, int(index * ratio))

    def update_time(self, seconds):
        """
        Advances the simulation by the specified number of seconds.

        Args:
            seconds: Number of seconds to advance
        """
        self.cellar.update_time(seconds)

    def get_system_state(self):
        """
        Returns the current state of the cellar.

        Returns:
            Dictionary with system state in whole units
        """
        cellar = self.cellar
        decimals = cellar.asset.decimals
        supply = cellar.total_supply()

        share_price = cellar.total_assets_normalized() / supply if supply > 0 else 1.0

        return {
            'asset': cellar.asset.symbol,
            'total_assets': cellar.total_assets() / 10 ** decimals,
            'active_assets': cellar.active_assets() / 10 ** decimals,
            'inactive_assets': cellar.inactive_assets() / 10 ** decimals,
            'total_supply': supply / 1e18,
            'share_price': share_price,
            'fee_shares': cellar.balance_of(cellar.address) / 1e18,
            'yield_index': cellar.position.current_yield_index(cellar.asset.symbol) / RAY,
        }

    def _update_history(self):
        """Updates history tracking for simulations."""
        state = self.get_system_state()

        self.total_assets_history.append(state['total_assets'])
        self.active_assets_history.append(state['active_assets'])
        self.share_price_history.append(state['share_price'])
        self.fee_shares_history.append(state['fee_shares'])
        self.yield_index_history.append(state['yield_index'])

    def simulate_yield_scenario(self, days, users=5, daily_yield=0.0002, yield_volatility=0.0005,
                                activity=0.3, seed=None, plot_results=True, save_path=None):
        """
        Runs a simulation with random daily yield and random user activity.

        Each day the position index moves by a normally distributed return, every user
        deposits or withdraws with probability `activity`, the steward sweeps any idle
        funds into the position and fees are accrued. Fees are swept out weekly.

        Args:
            days: Number of days to simulate
            users: Number of depositors
            daily_yield: Mean daily return of the position
            yield_volatility: Standard deviation of the daily return
            activity: Probability that a user acts on a given day
            seed: Seed for numpy's random generator
            plot_results: Whether to plot the results
            save_path: Save the figure here instead of showing it

        Returns:
            Dictionary with simulation results
        """
        rng = np.random.default_rng(seed)
        cellar = self.cellar
        accounts = [f"user{i}" for i in range(users)]

        for account in accounts:
            self.fund(account, int(rng.uniform(1_000, 20_000)))

        # Reset history
        self.total_assets_history = []
        self.active_assets_history = []
        self.share_price_history = []
        self.fee_shares_history = []
        self.yield_index_history = []

        returns = rng.normal(daily_yield, yield_volatility, days)
        time_points = np.arange(1, days + 1)
        fees_sent = 0

        for day in range(days):
            for account in accounts:
                if rng.random() >= activity:
                    continue

                if rng.random() < 0.6 or cellar.balance_of(account) == 0:
                    amount = self.units(int(rng.uniform(100, 5_000)))
                    if cellar.max_deposit(account) >= amount and cellar.asset.balance_of(account) > 0:
                        cellar.deposit(account, amount)
                else:
                    available = cellar.max_withdraw(account)
                    if available > 0:
                        cellar.withdraw(account, max(int(available * rng.uniform(0.1, 1.0)), 1))

            if cellar.inactive_assets() > 0:
                cellar.enter_position(STEWARD)

            self.update_time(SECONDS_PER_DAY)
            self.grow_position(1 + returns[day])
            cellar.accrue_fees()

            if (day + 1) % 7 == 0:
                fees_sent += cellar.transfer_fees(STEWARD)

            cellar.check_invariants()
            self._update_history()

        # Plot results if requested
        if plot_results:
            fig, axs = plt.subplots(4, 1, figsize=(12, 16), sharex=True)

            # Plot total assets
            axs[0].plot(time_points, self.total_assets_history, label='Total')
            axs[0].plot(time_points, self.active_assets_history, label='Active')
            axs[0].set_title('Cellar Assets')
            axs[0].set_ylabel(cellar.asset.symbol)
            axs[0].legend()

            # Plot share price
            axs[1].plot(time_points, self.share_price_history)
            axs[1].set_title('Share Price')
            axs[1].set_ylabel(f'{cellar.asset.symbol} per share')

            # Plot fee shares
            axs[2].plot(time_points, self.fee_shares_history)
            axs[2].set_title('Fee Shares Held by Cellar')
            axs[2].set_ylabel('Shares')

            # Plot yield index
            axs[3].plot(time_points, self.yield_index_history)
            axs[3].set_title('Position Yield Index')
            axs[3].set_ylabel('Index')
            axs[3].set_xlabel('Days')

            plt.tight_layout()
            if save_path:
                plt.savefig(save_path)
                plt.close(fig)
            else:
                plt.show()

        final_state = self.get_system_state()
        logger.info(f"Simulated {days} days, final share price {final_state['share_price']:.6f}")

        return {
            'final_total_assets': final_state['total_assets'],
            'final_share_price': final_state['share_price'],
            'final_total_supply': final_state['total_supply'],
            'yield_earned': cellar.fees()[0] / 1e18,
            'fees_sent': fees_sent / 10 ** cellar.asset.decimals,
            'mean_daily_return': float(np.mean(returns)) if days > 0 else 0.0,
        }
