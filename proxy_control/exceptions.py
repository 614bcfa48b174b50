"""
Proxy control exception hierarchy.

All exceptions inherit from ProxyControlError for easy catching.
"""

from typing import Any


class ProxyControlError(Exception):
    """Base exception for all proxy_control errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class UnknownNetworkError(ProxyControlError):
    """Network name is not registered."""

    def __init__(self, message: str, *, network: str) -> None:
        super().__init__(message, network=network)
        self.network = network


class UnknownSessionError(ProxyControlError):
    """No logged-in session matches the given network (and user)."""

    def __init__(self, message: str, *, network: str, user_id: str | None = None) -> None:
        super().__init__(message, network=network, user_id=user_id)
        self.network = network
        self.user_id = user_id


class ProtectedNetworkError(ProxyControlError):
    """The network must never be logged out of by the user."""

    def __init__(self, message: str, *, network: str) -> None:
        super().__init__(message, network=network)
        self.network = network


class UnsupportedOperationError(ProxyControlError):
    """Unrecognized provider, operation or setting, or a missing parameter."""


class ProtocolError(ProxyControlError):
    """Peer sent a malformed or unacceptable protocol message."""


class OperationTimeoutError(ProxyControlError, TimeoutError):
    """Operation did not complete within its deadline."""

    def __init__(self, message: str, *, timeout: float | None = None) -> None:
        super().__init__(message, timeout=timeout)
        self.timeout = timeout


class ProviderError(ProxyControlError):
    """External provider module failed."""

    def __init__(
        self, message: str, *, errcode: str | None = None, provider: str | None = None
    ) -> None:
        super().__init__(message, errcode=errcode, provider=provider)
        self.errcode = errcode
        self.provider = provider


class ServerAlreadyExistsError(ProviderError):
    """A cloud server with the requested name already exists."""

    def __init__(
        self, message: str = "server already exists", *, provider: str | None = None
    ) -> None:
        super().__init__(message, errcode="VM_AE", provider=provider)


class ProvisioningError(ProxyControlError):
    """Provisioning job was driven through an invalid stage transition."""

    def __init__(self, message: str, *, stage: str) -> None:
        super().__init__(message, stage=stage)
        self.stage = stage
