"""
Position Rebalancer for the cellar.

Moves the cellar's assets in and out of its yield position and switches the
managed asset. Every move keeps fee accrual continuous: performance fees are
accrued on the old position before it is touched and the fee baseline is
refreshed only once the new position is in place.
"""

from cellar_config import MAX_UINT256
from cellar_errors import InsufficientLiquidity, InvalidSwapPath, SameAsset, SlippageExceeded, UntrustedAsset
from cellar_logging import get_logger
from fixed_point import change_decimals, normalize

logger = get_logger("cellar.rebalancer")


class PositionRebalancer:
    """
    Operates on the cellar's holding buffer, yield position and exchange venue.
    """

    def __init__(self, cellar):
        self.cellar = cellar

    def enter_position(self):
        """
        Sweeps every idle unit of the current asset into the yield position.
        All deposits made up to now become active.

        Returns:
            Amount moved into the position (native units)

        Raises:
            UntrustedAsset: If the current asset is no longer trusted
            InsufficientLiquidity: If the holding buffer is empty
        """
        cellar = self.cellar
        asset = cellar.asset.symbol

        if asset not in cellar.trusted_assets:
            raise UntrustedAsset(asset)

        amount = cellar.asset.balance_of(cellar.address)
        if amount == 0:
            raise InsufficientLiquidity(
                f"No idle {asset} to move into the position",
                details={"asset": asset, "buffer": amount},
            )

        cellar._accrue_performance_fees(update_state=False)

        cellar.position.deposit_to_position(asset, amount)

        cellar.last_sweep_timestamp = cellar.clock.now()
        cellar._refresh_fee_baseline()

        logger.info(f"Entered position with {amount} {asset}")

        return amount

    def exit_position(self):
        """
        Withdraws the whole yield position of the current asset into the holding buffer.

        Returns:
            Amount withdrawn (native units)
        """
        cellar = self.cellar
        asset = cellar.asset.symbol

        balance = cellar.position.current_balance(asset)
        if balance == 0:
            return 0

        withdrawn = cellar.position.withdraw_from_position(asset, balance)
        logger.info(f"Exited position, withdrew {withdrawn} {asset}")

        return withdrawn

    def rebalance(self, path, min_assets_out):
        """
        Moves the cellar into the last asset of `path`.

        1. Accrue performance fees on the current position without a baseline refresh
        2. Withdraw the whole position into the holding buffer
        3. Swap the holding buffer along `path`
        4. Switch the current asset and rescale the caps to its decimals
        5. Deposit the proceeds into the new position, mark the sweep time
           and refresh the fee baseline

        Args:
            path: Swap path of token symbols, path[0] the current asset
            min_assets_out: Minimum amount of the new asset to receive

        Returns:
            Amount of the new asset received (native units)

        Raises:
            SameAsset: If the target is already the current asset
            UntrustedAsset: If the target has not been trusted
            InvalidSwapPath: If the path does not start at the current asset
            SlippageExceeded: If the swap returns less than min_assets_out
        """
        cellar = self.cellar
        old_asset = cellar.asset
        new_symbol = path[-1] if path else None

        if new_symbol == old_asset.symbol:
            raise SameAsset(new_symbol)

        if new_symbol not in cellar.trusted_assets:
            raise UntrustedAsset(str(new_symbol))

        if len(path) < 2 or path[0] != old_asset.symbol:
            raise InvalidSwapPath(path)

        cellar._accrue_performance_fees(update_state=False)

        self.exit_position()

        amount_in = old_asset.balance_of(cellar.address)
        if amount_in > 0:
            old_asset.transfer(cellar.address, cellar.exchange.address, amount_in)
            amount_out = cellar.exchange.swap(path, amount_in, min_assets_out, cellar.address)
        else:
            if min_assets_out > 0:
                raise SlippageExceeded(0, min_assets_out)
            amount_out = 0

        new_asset = cellar.tokens.get(new_symbol)
        cellar.asset = new_asset
        self.rescale_caps(old_asset.decimals, new_asset.decimals)

        if amount_out > 0:
            cellar.position.deposit_to_position(new_symbol, amount_out)

        cellar.last_sweep_timestamp = cellar.clock.now()
        cellar._refresh_fee_baseline()

        cellar.emit("Rebalance", old_asset=old_asset.symbol, new_asset=new_symbol,
                    assets=normalize(amount_out, new_asset.decimals))
        logger.info(f"Rebalanced {amount_in} {old_asset.symbol} into {amount_out} {new_symbol}")

        return amount_out

    def rescale_caps(self, old_decimals, new_decimals):
        """Caps are kept in native units; removed caps stay removed."""
        cellar = self.cellar
        if cellar.deposit_cap != MAX_UINT256:
            cellar.deposit_cap = change_decimals(cellar.deposit_cap, old_decimals, new_decimals)
        if cellar.liquidity_cap != MAX_UINT256:
            cellar.liquidity_cap = change_decimals(cellar.liquidity_cap, old_decimals, new_decimals)
