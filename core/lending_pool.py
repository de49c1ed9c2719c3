"""
Lending Pool Model for the cellar.

This module simulates an Aave-style lending market. Deposits are stored as scaled
balances that grow with a per-reserve liquidity index (RAY scaled); the index is
driven either by a constant annual liquidity rate or set directly by a simulation.
Interest is assumed to be paid by borrowers outside the model, so whenever the index
rises the matching amount of underlying is minted into the pool's reserve.

AavePosition adapts the pool to the YieldPositionAdapter contract for one holder.
"""

from dataclasses import dataclass, field
from typing import Dict

from cellar_config import MAX_UINT256, RAY, SECONDS_PER_YEAR
from cellar_errors import InsufficientBalance, InsufficientLiquidity
from cellar_logging import get_logger
from fixed_point import mul_div_down, mul_div_up
from interfaces import YieldPositionAdapter

logger = get_logger("cellar.lending_pool")


@dataclass
class Reserve:
    """
    State of a single asset listed on the lending pool.
    """
    asset: str
    a_token: str                      # Symbol of the receipt token
    liquidity_index: int = RAY        # Cumulative income index
    liquidity_rate: int = 0           # Annual rate applied by accrue (RAY scaled)
    last_update_time: int = 0
    scaled_balances: Dict[str, int] = field(default_factory=dict)
    total_scaled: int = 0


class LendingPool:
    """
    Simulates the lending pool holding the underlying of every listed reserve.
    """

    def __init__(self, tokens, clock, address="aave_lending_pool"):
        self.tokens = tokens
        self.clock = clock
        self.address = address

        # asset symbol -> Reserve
        self.reserves = {}

    def init_reserve(self, asset, liquidity_rate=0):
        """Lists an asset; its receipt token symbol is the asset symbol prefixed with 'a'."""
        if asset in self.reserves:
            raise ValueError(f"Reserve {asset} already initialized")

        reserve = Reserve(
            asset=asset,
            a_token=f"a{asset}",
            liquidity_rate=liquidity_rate,
            last_update_time=self.clock.now(),
        )
        self.reserves[asset] = reserve

        return reserve

    def get_reserve(self, asset):
        if asset not in self.reserves:
            raise ValueError(f"Reserve {asset} is not listed")
        return self.reserves[asset]

    def calc_pending_index(self, reserve, current_time):
        """
        Calculates the liquidity index including interest accrued since the last update.
        Linear (non-compounding) between updates.
        """
        time_passed = current_time - reserve.last_update_time
        if time_passed <= 0 or reserve.liquidity_rate == 0:
            return reserve.liquidity_index

        growth = mul_div_down(reserve.liquidity_index, reserve.liquidity_rate * time_passed, RAY * SECONDS_PER_YEAR)
        return reserve.liquidity_index + growth

    def accrue(self, asset):
        """Brings the reserve index up to the current time."""
        reserve = self.get_reserve(asset)
        now = self.clock.now()
        new_index = self.calc_pending_index(reserve, now)
        reserve.last_update_time = now

        if new_index != reserve.liquidity_index:
            self._apply_index(reserve, new_index)

        return reserve.liquidity_index

    def set_liquidity_index(self, asset, new_index):
        """
        Sets the liquidity index directly (simulated yield or loss).

        Raising the index mints the extra underlying into the pool; lowering it
        burns underlying from the pool's reserve.
        """
        if new_index <= 0:
            raise ValueError("Liquidity index must be positive")

        self.accrue(asset)
        self._apply_index(self.get_reserve(asset), new_index)

    def _apply_index(self, reserve, new_index):
        underlying = self.tokens.get(reserve.asset)
        supply_before = mul_div_down(reserve.total_scaled, reserve.liquidity_index, RAY)

        reserve.liquidity_index = new_index
        supply_after = mul_div_down(reserve.total_scaled, new_index, RAY)

        if supply_after > supply_before:
            underlying.mint(self.address, supply_after - supply_before)
        elif supply_after < supply_before:
            loss = min(supply_before - supply_after, underlying.balance_of(self.address))
            underlying.burn(self.address, loss)

        logger.debug(f"{reserve.asset} liquidity index set to {new_index}")

    def get_reserve_normalized_income(self, asset):
        return self.accrue(asset)

    def balance_of(self, asset, holder):
        """Receipt token balance, i.e. the holder's claim on underlying."""
        reserve = self.get_reserve(asset)
        scaled = reserve.scaled_balances.get(holder, 0)
        return mul_div_down(scaled, self.calc_pending_index(reserve, self.clock.now()), RAY)

    def total_supplied(self, asset):
        reserve = self.get_reserve(asset)
        return mul_div_down(reserve.total_scaled, self.calc_pending_index(reserve, self.clock.now()), RAY)

    def deposit(self, asset, amount, on_behalf_of):
        """
        Supplies underlying from on_behalf_of into the reserve.

        Args:
            asset: Asset symbol
            amount: Amount of underlying to supply
            on_behalf_of: Address supplying and receiving the position
        """
        if amount <= 0:
            raise ValueError("Amount must be greater than zero")

        index = self.accrue(asset)
        reserve = self.get_reserve(asset)

        self.tokens.get(asset).transfer(on_behalf_of, self.address, amount)

        scaled = mul_div_down(amount, RAY, index)
        reserve.scaled_balances[on_behalf_of] = reserve.scaled_balances.get(on_behalf_of, 0) + scaled
        reserve.total_scaled += scaled

    def withdraw(self, asset, amount, holder, to=None):
        """
        Withdraws underlying from holder's position.

        Args:
            asset: Asset symbol
            amount: Amount to withdraw, MAX_UINT256 for the whole position
            holder: Address owning the position
            to: Recipient of the underlying (defaults to holder)

        Returns:
            Amount withdrawn
        """
        index = self.accrue(asset)
        reserve = self.get_reserve(asset)
        balance = self.balance_of(asset, holder)

        if amount == MAX_UINT256:
            amount = balance

        if amount > balance:
            raise InsufficientBalance(
                f"{holder} has {balance} {reserve.a_token}, cannot withdraw {amount}",
                details={"asset": asset, "balance": balance, "amount": amount},
            )

        underlying = self.tokens.get(asset)
        if underlying.balance_of(self.address) < amount:
            raise InsufficientLiquidity(
                f"Lending pool cannot pay out {amount} {asset}",
                details={"asset": asset, "available": underlying.balance_of(self.address), "amount": amount},
            )

        scaled_balance = reserve.scaled_balances.get(holder, 0)
        scaled = min(mul_div_up(amount, RAY, index), scaled_balance)
        if amount == balance:
            scaled = scaled_balance

        reserve.scaled_balances[holder] = scaled_balance - scaled
        reserve.total_scaled -= scaled

        underlying.transfer(self.address, to or holder, amount)

        return amount


class AavePosition(YieldPositionAdapter):
    """
    Yield position of a single holder (the cellar) in the lending pool.
    """

    def __init__(self, lending_pool, holder):
        self.lending_pool = lending_pool
        self.holder = holder

    def deposit_to_position(self, asset, amount):
        self.lending_pool.deposit(asset, amount, self.holder)

    def withdraw_from_position(self, asset, amount):
        return self.lending_pool.withdraw(asset, amount, self.holder)

    def current_balance(self, asset):
        return self.lending_pool.balance_of(asset, self.holder)

    def current_yield_index(self, asset):
        return self.lending_pool.calc_pending_index(self.lending_pool.get_reserve(asset), self.lending_pool.clock.now())

    def position_token(self, asset):
        return self.lending_pool.get_reserve(asset).a_token
