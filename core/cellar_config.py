"""
Configuration for the cellar model.

Protocol constants live at module level; tunable parameters are grouped in
CellarConfig, which can also be loaded from CELLAR_* environment variables.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from cellar_errors import ConfigError

# Constants from the protocol
DECIMAL_PRECISION = 10**18
WAD = DECIMAL_PRECISION
RAY = 10**27
NORMALIZED_DECIMALS = 18
SECONDS_PER_DAY = 24 * 60 * 60
SECONDS_PER_YEAR = 365 * SECONDS_PER_DAY
MAX_UINT256 = 2**256 - 1

# Fee parameters (WAD scaled)
DEFAULT_PLATFORM_FEE = WAD // 100       # 1% per year on active assets
DEFAULT_PERFORMANCE_FEE = 5 * WAD // 100  # 5% of gains

# Restrictions, in whole units of the current asset
DEFAULT_DEPOSIT_CAP = 50_000
DEFAULT_LIQUIDITY_CAP = 5_000_000

# Reward staking
DEFAULT_COOLDOWN_SECONDS = 10 * SECONDS_PER_DAY
DEFAULT_UNSTAKE_WINDOW_SECONDS = 2 * SECONDS_PER_DAY

DEFAULT_START_TIME = 1_650_000_000


@dataclass
class CellarConfig:
    """Tunable parameters of a cellar deployment."""

    platform_fee: int = DEFAULT_PLATFORM_FEE
    performance_fee: int = DEFAULT_PERFORMANCE_FEE
    deposit_cap: int = DEFAULT_DEPOSIT_CAP
    liquidity_cap: int = DEFAULT_LIQUIDITY_CAP
    cooldown_seconds: int = DEFAULT_COOLDOWN_SECONDS
    unstake_window_seconds: int = DEFAULT_UNSTAKE_WINDOW_SECONDS
    start_time: int = DEFAULT_START_TIME

    def __post_init__(self):
        errors = self.validate()
        if errors:
            raise ConfigError("Invalid cellar configuration", details={"errors": errors})

    @classmethod
    def from_env(cls) -> "CellarConfig":
        """Load configuration from environment variables (and a .env file if present)."""
        load_dotenv()

        return cls(
            platform_fee=int(os.getenv("CELLAR_PLATFORM_FEE", str(DEFAULT_PLATFORM_FEE))),
            performance_fee=int(os.getenv("CELLAR_PERFORMANCE_FEE", str(DEFAULT_PERFORMANCE_FEE))),
            deposit_cap=int(os.getenv("CELLAR_DEPOSIT_CAP", str(DEFAULT_DEPOSIT_CAP))),
            liquidity_cap=int(os.getenv("CELLAR_LIQUIDITY_CAP", str(DEFAULT_LIQUIDITY_CAP))),
            cooldown_seconds=int(os.getenv("CELLAR_COOLDOWN_SECONDS", str(DEFAULT_COOLDOWN_SECONDS))),
            unstake_window_seconds=int(
                os.getenv("CELLAR_UNSTAKE_WINDOW_SECONDS", str(DEFAULT_UNSTAKE_WINDOW_SECONDS))
            ),
            start_time=int(os.getenv("CELLAR_START_TIME", str(DEFAULT_START_TIME))),
        )

    def validate(self) -> list[str]:
        """
        Validate configuration.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not 0 <= self.platform_fee <= WAD:
            errors.append("platform_fee must be between 0 and 1e18")
        if not 0 <= self.performance_fee <= WAD:
            errors.append("performance_fee must be between 0 and 1e18")
        if self.deposit_cap < 0:
            errors.append("deposit_cap must be non-negative")
        if self.liquidity_cap < 0:
            errors.append("liquidity_cap must be non-negative")
        if self.cooldown_seconds < 0 or self.unstake_window_seconds < 0:
            errors.append("staking periods must be non-negative")
        if self.start_time < 0:
            errors.append("start_time must be non-negative")

        return errors


class SimulationClock:
    """Manually advanced clock shared by the cellar and its collaborators."""

    def __init__(self, start_time: int = DEFAULT_START_TIME):
        self.current_time = start_time

    def now(self) -> int:
        return self.current_time

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("Cannot move the clock backwards")
        self.current_time += seconds
        return self.current_time
