"""
Reward Reinvestment for the cellar.

Liquidity-mining rewards arrive as a staked token. They are claimed and put into
cooldown first; once the cooldown has elapsed they are redeemed, swapped into the
current asset and compounded into the yield position, net of a performance fee
minted to the cellar as shares.
"""

from cellar_errors import InvalidSwapPath, SlippageExceeded
from cellar_logging import get_logger
from fixed_point import mul_wad_down, normalize
from share_math import assets_to_shares

logger = get_logger("cellar.reinvest")


class RewardReinvestor:

    def __init__(self, cellar):
        self.cellar = cellar

    def claim_and_unstake(self):
        """Claims staked rewards and starts their cooldown. Returns the amount claimed."""
        cellar = self.cellar

        claimed = cellar.staking.claim_rewards()
        cellar.staking.begin_cooldown()

        cellar.emit("ClaimAndUnstake", rewards=claimed)
        logger.info(f"Claimed {claimed} staked rewards, cooldown started")

        return claimed

    def reinvest(self, path, min_assets_out):
        """
        Redeems cooled-down rewards and compounds them into the position.

        Args:
            path: Swap path from the reward token to the current asset
            min_assets_out: Minimum amount of the current asset to receive

        Returns:
            Amount of the current asset reinvested (native units)
        """
        cellar = self.cellar
        reward_symbol = cellar.staking.reward_token
        asset = cellar.asset

        if len(path) < 2 or path[0] != reward_symbol or path[-1] != asset.symbol:
            raise InvalidSwapPath(path)

        cellar._accrue_performance_fees(update_state=False)

        rewards = cellar.staking.redeem_after_cooldown()

        if rewards > 0:
            cellar.tokens.get(reward_symbol).transfer(cellar.address, cellar.exchange.address, rewards)
            assets_out = cellar.exchange.swap(path, rewards, min_assets_out, cellar.address)
        else:
            if min_assets_out > 0:
                raise SlippageExceeded(0, min_assets_out)
            assets_out = 0

        if assets_out > 0:
            cellar.position.deposit_to_position(asset.symbol, assets_out)

        # Performance fee on the reinvested amount, priced after the deposit
        fee_in_assets = mul_wad_down(normalize(assets_out, asset.decimals), cellar.fee_engine.performance_fee)
        total_assets, total_supply = cellar._normalized_totals()
        fee_shares = assets_to_shares(fee_in_assets, total_assets, total_supply)

        if fee_shares > 0:
            cellar.share_token.mint(cellar.address, fee_shares)
            cellar.fee_engine.record_reinvestment_fee(fee_shares)

        cellar._refresh_fee_baseline()

        cellar.emit("Reinvest", asset=asset.symbol, rewards=rewards, assets=assets_out)
        logger.info(f"Reinvested {rewards} {reward_symbol} as {assets_out} {asset.symbol}, fee shares {fee_shares}")

        return assets_out
