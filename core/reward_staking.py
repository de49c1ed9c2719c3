"""
Reward Staking Model for the cellar.

Simulates a liquidity-mining incentives controller paying rewards as a staked token
(stkAAVE style). Staked rewards are redeemed into the plain reward token only inside
an unstake window that opens once a cooldown has elapsed.
"""

from cellar_config import DEFAULT_COOLDOWN_SECONDS, DEFAULT_UNSTAKE_WINDOW_SECONDS
from cellar_errors import CooldownNotElapsed
from interfaces import RewardStaking


class StakedRewardModule(RewardStaking):
    """
    Incentives controller and staking contract bound to one holder.
    """

    def __init__(self, tokens, clock, holder, reward_token="AAVE", staked_token="stkAAVE",
                 cooldown_seconds=DEFAULT_COOLDOWN_SECONDS,
                 unstake_window_seconds=DEFAULT_UNSTAKE_WINDOW_SECONDS):
        self.tokens = tokens
        self.clock = clock
        self.holder = holder
        self.reward_token = reward_token
        self.staked_token = staked_token
        self.cooldown_seconds = cooldown_seconds
        self.unstake_window_seconds = unstake_window_seconds

        # Rewards earned but not yet claimed
        self.unclaimed_rewards = 0

        # Time cooldown was started (0 if not started)
        self.cooldown_start = 0

    def accrue_rewards(self, amount):
        """Credits incentive rewards to the holder (driven by simulations)."""
        if amount < 0:
            raise ValueError("Amount must not be negative")
        self.unclaimed_rewards += amount

    def claim_rewards(self):
        """Claims all unclaimed rewards as staked tokens to the holder."""
        amount = self.unclaimed_rewards
        self.unclaimed_rewards = 0

        if amount > 0:
            self.tokens.get(self.staked_token).mint(self.holder, amount)

        return amount

    def begin_cooldown(self):
        self.cooldown_start = self.clock.now()

    def cooldown_end(self):
        return self.cooldown_start + self.cooldown_seconds

    def redeem_after_cooldown(self):
        """
        Redeems the holder's whole staked balance 1:1 into the reward token.

        Raises:
            CooldownNotElapsed: If no cooldown is running, it has not elapsed yet,
                or the unstake window has already closed
        """
        now = self.clock.now()

        if self.cooldown_start == 0 or now < self.cooldown_end():
            raise CooldownNotElapsed(
                details={"cooldown_start": self.cooldown_start, "cooldown_end": self.cooldown_end(), "now": now}
            )

        if now > self.cooldown_end() + self.unstake_window_seconds:
            raise CooldownNotElapsed(
                "Unstake window has closed, cooldown must be restarted",
                details={"window_end": self.cooldown_end() + self.unstake_window_seconds, "now": now},
            )

        staked = self.tokens.get(self.staked_token)
        amount = staked.balance_of(self.holder)

        if amount > 0:
            staked.burn(self.holder, amount)
            self.tokens.get(self.reward_token).mint(self.holder, amount)

        self.cooldown_start = 0

        return amount
