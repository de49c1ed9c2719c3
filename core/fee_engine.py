"""
Fee Accrual Engine for the cellar.

Two charges are levied, both paid by minting new shares to the cellar itself:

    platform fee     active_assets * elapsed * platform_fee / 1e18 / SECONDS_PER_YEAR
    performance fee  gain * performance_fee / 1e18, where gain is the growth of the
                     last active-assets snapshot by the ratio of yield indices

A falling index burns previously accrued performance fee shares (never below zero)
as insurance against the loss. The engine only keeps the counters; the cellar owns
the share token and mints or burns what the engine reports.
"""

from dataclasses import dataclass
from typing import Callable, Tuple

from cellar_config import SECONDS_PER_YEAR, WAD
from fixed_point import mul_div_up, mul_wad_down


@dataclass
class FeeState:
    """
    Fee bookkeeping. Asset amounts are normalized, yield indices RAY scaled.
    """
    yield_earned: int = 0                      # Cumulative gain observed on active assets
    last_active_assets: int = 0                # Active assets at the last baseline refresh
    last_normalized_income: int = 0            # Yield index at the last baseline refresh (0 = no baseline)
    accrued_platform_fees: int = 0             # Platform fee shares held by the cellar
    accrued_performance_fees: int = 0          # Performance fee shares held by the cellar
    last_platform_accrual_timestamp: int = 0

    def as_tuple(self) -> Tuple[int, int, int, int, int]:
        return (
            self.yield_earned,
            self.last_active_assets,
            self.last_normalized_income,
            self.accrued_platform_fees,
            self.accrued_performance_fees,
        )


@dataclass
class FeeAccrual:
    """Shares the cellar must mint or burn after an accrual."""
    platform_fees: int = 0
    performance_fees: int = 0
    burnt_performance_fees: int = 0
    gain: int = 0
    loss: int = 0


class FeeEngine:
    """
    Computes fee shares and keeps the FeeState counters.

    `to_shares` callbacks convert normalized assets to shares (rounded down) at the
    exchange rate the caller wants fees priced at.
    """

    def __init__(self, platform_fee: int, performance_fee: int, start_time: int):
        self.platform_fee = platform_fee
        self.performance_fee = performance_fee
        self.state = FeeState(last_platform_accrual_timestamp=start_time)

    def accrue_platform_fees(self, active_assets: int, now: int, to_shares: Callable[[int], int]) -> int:
        """
        Platform fee shares for the time elapsed since the last call.
        The accrual timestamp moves forward on every call, even when nothing is owed.
        """
        elapsed = max(now - self.state.last_platform_accrual_timestamp, 0)
        fee_in_assets = active_assets * elapsed * self.platform_fee // WAD // SECONDS_PER_YEAR

        shares = to_shares(fee_in_assets) if fee_in_assets > 0 else 0

        self.state.accrued_platform_fees += shares
        self.state.last_platform_accrual_timestamp = now

        return shares

    def accrue_performance_fees(self, active_assets: int, yield_index: int,
                                to_shares: Callable[[int], int], update_state: bool = True) -> FeeAccrual:
        """
        Performance fee (or insurance burn) since the last baseline.

        Args:
            active_assets: Current normalized active assets, used only to refresh the baseline
            yield_index: Current yield index of the position
            to_shares: Converts normalized assets to shares
            update_state: Refresh the baseline afterwards; rebalancing defers this until
                the new position is known

        Returns:
            FeeAccrual with performance_fees to mint or burnt_performance_fees to burn
        """
        accrual = FeeAccrual()
        state = self.state

        # First accrual only records the baseline
        if state.last_normalized_income != 0:
            updated_active_assets = mul_div_up(state.last_active_assets, yield_index, state.last_normalized_income)

            if updated_active_assets > state.last_active_assets:
                accrual.gain = updated_active_assets - state.last_active_assets
                state.yield_earned += accrual.gain

                fee_in_assets = mul_wad_down(accrual.gain, self.performance_fee)
                accrual.performance_fees = to_shares(fee_in_assets) if fee_in_assets > 0 else 0
                state.accrued_performance_fees += accrual.performance_fees

            elif updated_active_assets < state.last_active_assets:
                accrual.loss = state.last_active_assets - updated_active_assets

                insurance_in_assets = mul_wad_down(accrual.loss, self.performance_fee)
                insurance_shares = to_shares(insurance_in_assets) if insurance_in_assets > 0 else 0

                # An uncovered loss is not offset any further
                accrual.burnt_performance_fees = min(insurance_shares, state.accrued_performance_fees)
                state.accrued_performance_fees -= accrual.burnt_performance_fees

        if update_state:
            self.refresh_baseline(active_assets, yield_index)

        return accrual

    def refresh_baseline(self, active_assets: int, yield_index: int) -> None:
        self.state.last_active_assets = active_assets
        self.state.last_normalized_income = yield_index

    def record_position_withdrawal(self, amount: int, yield_index: int) -> None:
        """
        Shrinks the baseline by assets pulled out of the position between accruals,
        expressed at the baseline's index, so later gains are measured only on what
        is still in the position.
        """
        state = self.state
        if state.last_normalized_income == 0 or yield_index == 0:
            return
        at_baseline = mul_div_up(amount, state.last_normalized_income, yield_index)
        state.last_active_assets -= min(at_baseline, state.last_active_assets)

    def record_reinvestment_fee(self, shares: int) -> None:
        self.state.accrued_performance_fees += shares

    def reset_accrued(self) -> None:
        """Called once all fee shares have been swept out."""
        self.state.accrued_platform_fees = 0
        self.state.accrued_performance_fees = 0
