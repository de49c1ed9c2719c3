"""
Lifecycle and access control for the cellar.

NORMAL <-> PAUSED blocks only new deposits and mints. SHUTDOWN is terminal and
reachable from either state. Privileged operations go through an injected
AuthorizationPolicy so the cellar can be tested without a real access-control layer.
"""

from abc import ABC, abstractmethod
from enum import Enum

from cellar_errors import AlreadyShutdown, ContractPaused, ContractShutdown, Unauthorized


class PoolState(Enum):
    NORMAL = 0
    PAUSED = 1
    SHUTDOWN = 2


class AuthorizationPolicy(ABC):

    @abstractmethod
    def is_authorized(self, caller: str) -> bool:
        pass


class SingleStewardPolicy(AuthorizationPolicy):
    """Only one address, fixed at construction, may perform privileged operations."""

    def __init__(self, steward: str):
        self.steward = steward

    def is_authorized(self, caller: str) -> bool:
        return caller == self.steward


class LifecycleController:
    """
    Tracks the cellar's state and gates privileged callers.
    """

    def __init__(self, policy: AuthorizationPolicy):
        self.policy = policy
        self.state = PoolState.NORMAL

    @property
    def is_paused(self) -> bool:
        return self.state is PoolState.PAUSED

    @property
    def is_shutdown(self) -> bool:
        return self.state is PoolState.SHUTDOWN

    def require_authorized(self, caller: str) -> None:
        if not self.policy.is_authorized(caller):
            raise Unauthorized(caller)

    def require_not_shutdown(self) -> None:
        if self.is_shutdown:
            raise ContractShutdown()

    def require_deposits_allowed(self) -> None:
        """Raises if new deposits or mints are currently refused."""
        self.require_not_shutdown()
        if self.is_paused:
            raise ContractPaused()

    def set_pause(self, paused: bool) -> None:
        self.require_not_shutdown()
        self.state = PoolState.PAUSED if paused else PoolState.NORMAL

    def shutdown(self) -> None:
        if self.is_shutdown:
            raise AlreadyShutdown()
        self.state = PoolState.SHUTDOWN
