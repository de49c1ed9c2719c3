"""
Swap Router Model for the cellar.

Simulates a constant-rate exchange. Every hop converts at a fixed WAD-scaled price
between normalized amounts and then loses an optional haircut (fees and slippage).
Input tokens sent to the router are burned and output tokens minted, so the router
never runs out of liquidity.
"""

from cellar_config import WAD
from cellar_errors import InvalidSwapPath, SlippageExceeded
from cellar_logging import get_logger
from fixed_point import denormalize, mul_div_down, normalize
from interfaces import ExchangeVenue

logger = get_logger("cellar.swap_router")


class SwapRouter(ExchangeVenue):
    """
    Constant-rate swap venue supporting direct and multi-hop paths.
    """

    def __init__(self, tokens, haircut=0, address="swap_router"):
        if not 0 <= haircut < WAD:
            raise ValueError("Haircut must be in [0, 1e18)")

        self.tokens = tokens
        self.address = address

        # Fraction of every hop's output lost (WAD scaled)
        self.haircut = haircut

        # (token_in, token_out) -> price of one token_in in token_out (WAD scaled)
        self.rates = {}

        self.swaps = []

    def set_rate(self, token_in, token_out, rate):
        """Sets the price of token_in in units of token_out; the reverse rate is implied."""
        if rate <= 0:
            raise ValueError("Rate must be positive")
        self.rates[(token_in, token_out)] = rate
        self.rates.pop((token_out, token_in), None)

    def get_rate(self, token_in, token_out):
        if (token_in, token_out) in self.rates:
            return self.rates[(token_in, token_out)]
        if (token_out, token_in) in self.rates:
            return mul_div_down(WAD, WAD, self.rates[(token_out, token_in)])
        # Unquoted pairs trade at par
        return WAD

    def quote(self, path, amount_in):
        """Output of swapping amount_in along path, without moving tokens."""
        if len(path) < 2:
            raise InvalidSwapPath(path)

        amount = amount_in
        for token_in, token_out in zip(path, path[1:]):
            decimals_in = self.tokens.get(token_in).decimals
            decimals_out = self.tokens.get(token_out).decimals

            normalized_out = mul_div_down(normalize(amount, decimals_in), self.get_rate(token_in, token_out), WAD)
            normalized_out -= mul_div_down(normalized_out, self.haircut, WAD)
            amount = denormalize(normalized_out, decimals_out)

        return amount

    def swap(self, path, amount_in, min_amount_out, recipient):
        """
        Swaps amount_in of path[0] previously sent to the router into path[-1].

        Returns:
            Amount of path[-1] sent to recipient
        """
        amount_out = self.quote(path, amount_in)

        if amount_out < min_amount_out:
            raise SlippageExceeded(amount_out, min_amount_out)

        self.tokens.get(path[0]).burn(self.address, amount_in)
        self.tokens.get(path[-1]).mint(recipient, amount_out)

        self.swaps.append((tuple(path), amount_in, amount_out))
        logger.info(f"Swapped {amount_in} {path[0]} for {amount_out} {path[-1]} via {len(path) - 1} hop(s)")

        return amount_out
