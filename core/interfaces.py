"""
Contracts of the external collaborators a cellar depends on.

The cellar only talks to these abstractions; lending_pool, swap_router,
reward_staking and fee_recipient provide simulated implementations.
Assets are identified by token symbol and amounts are in native units.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence


class YieldPositionAdapter(ABC):
    """Yield-bearing position held on behalf of a single cellar."""

    @abstractmethod
    def deposit_to_position(self, asset: str, amount: int) -> None:
        """Move `amount` of the holder's idle `asset` into the position."""
        pass

    @abstractmethod
    def withdraw_from_position(self, asset: str, amount: int) -> int:
        """
        Move assets out of the position back to the holder.

        Args:
            asset: Asset symbol
            amount: Amount to withdraw

        Returns:
            Amount actually withdrawn
        """
        pass

    @abstractmethod
    def current_balance(self, asset: str) -> int:
        pass

    @abstractmethod
    def current_yield_index(self, asset: str) -> int:
        """Cumulative income index of the position (RAY scaled)."""
        pass

    def position_token(self, asset: str) -> Optional[str]:
        """Symbol of the receipt token representing the position, if any."""
        return None


class ExchangeVenue(ABC):
    """Swap venue. Input tokens must be sent to `address` before calling swap."""

    address: str

    @abstractmethod
    def swap(self, path: Sequence[str], amount_in: int, min_amount_out: int, recipient: str) -> int:
        """
        Swap along a direct or multi-hop path.

        Raises:
            SlippageExceeded: If the output is below min_amount_out
        """
        pass


class RewardStaking(ABC):
    """Staked reward module with a cooldown before rewards can be redeemed."""

    reward_token: str

    @abstractmethod
    def claim_rewards(self) -> int:
        pass

    @abstractmethod
    def begin_cooldown(self) -> None:
        pass

    @abstractmethod
    def redeem_after_cooldown(self) -> int:
        """
        Redeem all staked rewards into the reward token.

        Raises:
            CooldownNotElapsed: If called outside the unstake window
        """
        pass


class FeeRecipient(ABC):
    """Destination of skimmed fees. Tokens must be sent to `address` first."""

    address: str

    @abstractmethod
    def receive(self, asset: str, amount: int, destination: str) -> None:
        pass
