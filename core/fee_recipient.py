"""
Fee Recipient Model for the cellar.

Simulates the bridge that forwards skimmed fees to a destination on another chain.
Tokens are sent to the bridge first; receive() records where they are going.
"""

from dataclasses import dataclass

from cellar_errors import InsufficientBalance
from interfaces import FeeRecipient


@dataclass
class FeeTransfer:
    asset: str
    amount: int
    destination: str


class FeeBridge(FeeRecipient):
    """
    Holds received fees and keeps a log of outgoing transfers.
    """

    def __init__(self, tokens, address="gravity_bridge"):
        self.tokens = tokens
        self.address = address
        self.transfers = []

        # asset -> amount already accounted for by a transfer
        self.forwarded = {}

    def receive(self, asset, amount, destination):
        unaccounted = self.tokens.get(asset).balance_of(self.address) - self.forwarded.get(asset, 0)
        if amount > unaccounted:
            raise InsufficientBalance(
                f"Bridge received {unaccounted} {asset}, cannot forward {amount}",
                details={"asset": asset, "available": unaccounted, "amount": amount},
            )

        self.forwarded[asset] = self.forwarded.get(asset, 0) + amount
        self.transfers.append(FeeTransfer(asset, amount, destination))

    def total_sent(self, asset, destination=None):
        return sum(
            transfer.amount for transfer in self.transfers
            if transfer.asset == asset and (destination is None or transfer.destination == destination)
        )
