"""
Cloud provider and installer module protocols.

Cloud modules are heavy-weight: each operation loads a fresh module
through a ModuleLoader and releases it when done.
"""

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from proxy_control.core.events import InstallerEvent, Subscription


@runtime_checkable
class ModuleLoader(Protocol):
    """Creates and destroys named module instances."""

    def available(self) -> list[str]:
        """Names of all loadable modules."""
        ...

    def create(self, name: str) -> Any:
        """
        Create a new instance of a module.

        Raises:
            Exception: If the module is unknown or fails to load.
        """
        ...

    def close(self, name: str, module: Any) -> None: ...


@runtime_checkable
class CloudProvider(Protocol):
    """
    A cloud VM provider.

    Errors raised by the provider may carry an ``errcode`` attribute;
    ``"VM_AE"`` means a server with that name already exists.
    """

    async def start(self, name: str, region: str) -> dict[str, Any]:
        """
        Create (or start) a server.

        Returns:
            Server details: ``{"network": {"ipv4", "ssh_port"}, "ssh": {"private"}}``.
        """
        ...

    async def stop(self, name: str) -> None: ...

    async def reboot(self, name: str) -> None: ...

    async def has_oauth(self) -> bool: ...


@runtime_checkable
class Installer(Protocol):
    """Installs the proxy software on a host over SSH."""

    def subscribe(self, listener: Callable[[InstallerEvent], None]) -> Subscription: ...

    async def install(self, host: str, port: int, user: str, key: str) -> dict[str, Any]:
        """
        Run the install script.

        Returns:
            Network data used to register the new server as a contact.
        """
        ...
