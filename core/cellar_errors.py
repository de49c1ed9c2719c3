"""
Custom exceptions for the cellar model.

Exception hierarchy:
    CellarError (base)
    ├── ConfigError
    ├── UserInputError (also a ValueError)
    │   ├── ZeroAssets
    │   ├── ZeroShares
    │   ├── InsufficientAllowance
    │   ├── InsufficientBalance
    │   ├── SameAsset
    │   ├── UntrustedAsset
    │   ├── InvalidSwapPath
    │   ├── ProtectedAsset
    │   └── Unauthorized
    ├── PolicyError (also a ValueError)
    │   ├── DepositRestricted
    │   ├── LiquidityRestricted
    │   ├── ContractPaused
    │   ├── ContractShutdown
    │   ├── AlreadyShutdown
    │   └── CooldownNotElapsed
    ├── AdapterError
    │   ├── InsufficientLiquidity
    │   └── SlippageExceeded
    └── InvariantViolation
"""

from typing import Any


class CellarError(Exception):
    """Base exception for all cellar errors."""

    default_message = "Cellar error occurred"

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message or self.default_message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [self.message, f"[{self.code}]"]
        if self.details:
            parts.append(f"Details: {self.details}")
        return " ".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"details={self.details!r})"
        )


class ConfigError(CellarError, ValueError):
    """Configuration is invalid."""

    default_message = "Invalid configuration"


# User input errors
class UserInputError(CellarError, ValueError):
    """Base class for errors caused by the caller's request."""

    default_message = "Invalid request"


class ZeroAssets(UserInputError):
    default_message = "Amount of assets must be greater than zero"


class ZeroShares(UserInputError):
    default_message = "Amount of shares must be greater than zero"


class InsufficientAllowance(UserInputError):
    """Spender is not approved for the amount of shares being moved."""

    default_message = "Insufficient allowance"

    def __init__(self, owner: str, spender: str, allowance: int, required: int):
        super().__init__(
            f"Insufficient allowance: {spender} may move {allowance} of {owner}'s shares, needs {required}",
            details={"owner": owner, "spender": spender, "allowance": allowance, "required": required},
        )
        self.allowance = allowance
        self.required = required


class InsufficientBalance(UserInputError):
    default_message = "Insufficient balance"


class SameAsset(UserInputError):
    """Rebalance target equals the asset currently held."""

    def __init__(self, asset: str):
        super().__init__(f"Cellar already holds {asset}", details={"asset": asset})
        self.asset = asset


class UntrustedAsset(UserInputError):
    """Position asset has not been trusted by the steward."""

    def __init__(self, asset: str):
        super().__init__(f"Position in {asset} is not trusted", details={"asset": asset})
        self.asset = asset


class InvalidSwapPath(UserInputError):
    def __init__(self, path):
        super().__init__(f"Invalid swap path {list(path)}", details={"path": list(path)})
        self.path = list(path)


class ProtectedAsset(UserInputError):
    def __init__(self, token: str):
        super().__init__(f"{token} is managed by the cellar and cannot be swept", details={"token": token})
        self.token = token


class Unauthorized(UserInputError):
    def __init__(self, caller: str):
        super().__init__(f"{caller} is not the steward", details={"caller": caller})
        self.caller = caller


# Policy errors
class PolicyError(CellarError, ValueError):
    """Base class for requests refused by the cellar's current policy."""

    default_message = "Request refused by cellar policy"


class DepositRestricted(PolicyError):
    """Deposit would take the receiver above the per-wallet cap."""

    def __init__(self, cap: int):
        super().__init__(f"DepositRestricted({cap})", details={"cap": cap})
        self.cap = cap


class LiquidityRestricted(PolicyError):
    """Deposit would take the cellar above its global liquidity cap."""

    def __init__(self, cap: int):
        super().__init__(f"LiquidityRestricted({cap})", details={"cap": cap})
        self.cap = cap


class ContractPaused(PolicyError):
    default_message = "Cellar is paused"


class ContractShutdown(PolicyError):
    default_message = "Cellar is shut down"


class AlreadyShutdown(PolicyError):
    default_message = "Cellar has already been shut down"


class CooldownNotElapsed(PolicyError):
    default_message = "Reward cooldown has not elapsed"


# Adapter / venue errors
class AdapterError(CellarError):
    """Base class for failures reported by external collaborators."""

    default_message = "External collaborator failed"


class InsufficientLiquidity(AdapterError):
    default_message = "Insufficient liquidity"


class SlippageExceeded(AdapterError):
    """Swap returned less than the caller's minimum."""

    def __init__(self, amount_out: int, min_amount_out: int):
        super().__init__(
            f"Swap returned {amount_out}, below minimum {min_amount_out}",
            details={"amount_out": amount_out, "min_amount_out": min_amount_out},
        )
        self.amount_out = amount_out
        self.min_amount_out = min_amount_out


class InvariantViolation(CellarError):
    """Internal accounting is inconsistent; indicates a bug."""

    default_message = "Cellar invariant violated"
