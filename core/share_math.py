"""
Share/asset conversion for the cellar.

Stateless functions of (total managed assets, total share supply), both on the
normalized 18 decimal scale. Callers pick the rounding direction so that the
cellar, never the caller, keeps any remainder:

    shares minted for a deposit      -> round down
    assets required for a mint       -> round up
    shares burned for a withdrawal   -> round up
    assets returned for a redemption -> round down
"""

from fixed_point import Rounding, mul_div


def assets_to_shares(assets: int, total_assets: int, total_supply: int, round_up: bool = False) -> int:
    """
    Convert an amount of assets into shares at the current exchange rate.

    With no shares outstanding the cellar bootstraps at one share per asset unit.
    If shares exist but the cellar holds no assets the exchange rate is undefined
    and no shares can be issued.
    """
    if total_supply == 0:
        return assets
    if total_assets == 0:
        return 0
    return mul_div(assets, total_supply, total_assets, Rounding.UP if round_up else Rounding.DOWN)


def shares_to_assets(shares: int, total_assets: int, total_supply: int, round_up: bool = False) -> int:
    """Convert an amount of shares into assets at the current exchange rate."""
    if total_supply == 0:
        return shares
    return mul_div(shares, total_assets, total_supply, Rounding.UP if round_up else Rounding.DOWN)
