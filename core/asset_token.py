"""
Asset Token Model for the cellar.

This module simulates ERC20-style tokens: the assets the cellar manages (USDC, DAI, ...),
the lending market's receipt tokens, reward tokens, and the cellar's own share token.
It handles minting, burning, transfers and allowances of balances held by string addresses.
"""

from typing import Dict

from cellar_config import MAX_UINT256
from cellar_errors import InsufficientAllowance, InsufficientBalance


class AssetToken:
    """
    Simulates a fungible token with a fixed number of decimals.
    """

    def __init__(self, symbol, decimals=18, initial_supply=0, owner=None):
        self.symbol = symbol
        self.decimals = decimals

        # Total token supply
        self.total_supply = 0

        # Mapping of addresses to token balances
        self.balances = {}

        # owner -> spender -> amount
        self.allowances = {}

        if initial_supply and owner is not None:
            self.mint(owner, initial_supply)

    def __repr__(self):
        return f"AssetToken({self.symbol!r}, decimals={self.decimals})"

    def balance_of(self, account):
        """Returns the token balance of the given account."""
        return self.balances.get(account, 0)

    def unit(self, amount=1):
        """Whole-token amount expressed in base units, e.g. unit(100) for 100 USDC."""
        return amount * 10 ** self.decimals

    def transfer(self, sender, recipient, amount):
        """
        Transfers tokens from sender to recipient.

        Args:
            sender: Address sending the tokens
            recipient: Address receiving the tokens
            amount: Amount of tokens to transfer

        Returns:
            True if successful
        """
        if amount < 0:
            raise ValueError("Amount must not be negative")

        sender_balance = self.balances.get(sender, 0)

        if sender_balance < amount:
            raise InsufficientBalance(
                f"{sender} holds {sender_balance} {self.symbol}, cannot send {amount}",
                details={"token": self.symbol, "balance": sender_balance, "amount": amount},
            )

        # Update balances
        self.balances[sender] = sender_balance - amount
        self.balances[recipient] = self.balances.get(recipient, 0) + amount

        return True

    def approve(self, owner, spender, amount):
        if amount < 0:
            raise ValueError("Amount must not be negative")
        self.allowances.setdefault(owner, {})[spender] = amount
        return True

    def allowance(self, owner, spender):
        return self.allowances.get(owner, {}).get(spender, 0)

    def spend_allowance(self, owner, spender, amount):
        """
        Consumes `amount` of the allowance granted by owner to spender.
        An allowance of MAX_UINT256 is unlimited and never decreases.
        """
        allowed = self.allowance(owner, spender)

        if allowed == MAX_UINT256:
            return

        if allowed < amount:
            raise InsufficientAllowance(owner, spender, allowed, amount)

        self.allowances[owner][spender] = allowed - amount

    def mint(self, recipient, amount):
        """
        Mints new tokens to the recipient account.

        Args:
            recipient: Address receiving the minted tokens
            amount: Amount of tokens to mint

        Returns:
            True if successful
        """
        if amount < 0:
            raise ValueError("Amount must not be negative")

        # Update recipient balance
        self.balances[recipient] = self.balances.get(recipient, 0) + amount

        # Update total supply
        self.total_supply += amount

        return True

    def burn(self, from_account, amount):
        """
        Burns tokens from the given account.

        Args:
            from_account: Address to burn tokens from
            amount: Amount of tokens to burn

        Returns:
            True if successful
        """
        if amount < 0:
            raise ValueError("Amount must not be negative")

        from_balance = self.balances.get(from_account, 0)

        if from_balance < amount:
            raise InsufficientBalance(
                f"{from_account} holds {from_balance} {self.symbol}, cannot burn {amount}",
                details={"token": self.symbol, "balance": from_balance, "amount": amount},
            )

        # Update balance
        self.balances[from_account] = from_balance - amount

        # Update total supply
        self.total_supply -= amount

        return True

    def holders(self):
        """Addresses with a non-zero balance."""
        return [account for account, balance in self.balances.items() if balance > 0]


class TokenRegistry:
    """Lookup of tokens by symbol, shared by the cellar and the simulated venues."""

    def __init__(self, *tokens):
        self.tokens: Dict[str, AssetToken] = {}
        for token in tokens:
            self.register(token)

    def register(self, token: AssetToken) -> AssetToken:
        if token.symbol in self.tokens:
            raise ValueError(f"Token {token.symbol} already registered")
        self.tokens[token.symbol] = token
        return token

    def create(self, symbol: str, decimals: int = 18) -> AssetToken:
        return self.register(AssetToken(symbol, decimals))

    def get(self, symbol: str) -> AssetToken:
        if symbol not in self.tokens:
            raise KeyError(f"Unknown token {symbol}")
        return self.tokens[symbol]

    def __contains__(self, symbol):
        return symbol in self.tokens

    def __iter__(self):
        return iter(self.tokens.values())
