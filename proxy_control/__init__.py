"""
Proxy Control Core.

The control plane of a peer-to-peer proxy: social network sessions,
persisted settings, NAT and port-control probing, cloud server
provisioning and redacted diagnostics.

Example:
    ```python
    from proxy_control import NetworkRegistration, ProxyCore

    async with ProxyCore(
        storage=storage,
        notifier=ui,
        networks=[NetworkRegistration(name="Cloud", factory=CloudNetwork, is_cloud_admin=True)],
        module_loader=loader,
        port_control=port_control,
    ) as core:
        await core.login("Cloud")

        # Network capabilities
        print(await core.get_network_info())

        # Redacted logs for a bug report
        report = await core.get_logs_and_network_info()
    ```
"""

from proxy_control.client import ProxyCore
from proxy_control.config import ProxyControlConfig
from proxy_control.exceptions import (
    OperationTimeoutError,
    ProtectedNetworkError,
    ProtocolError,
    ProviderError,
    ProvisioningError,
    ProxyControlError,
    ServerAlreadyExistsError,
    UnknownNetworkError,
    UnknownSessionError,
    UnsupportedOperationError,
)
from proxy_control.models import (
    CloudOperation,
    CloudOperationArgs,
    ConsentAction,
    GlobalSettings,
    InitialState,
    InstancePath,
    LoginType,
    NetworkInfo,
    NetworkRegistration,
    OrgPolicy,
    PortControlSupport,
    SocialNetworkInfo,
    Update,
    UserPath,
)
from proxy_control.version import __version__

__all__ = [
    "__version__",
    # Main client
    "ProxyCore",
    "ProxyControlConfig",
    # Models
    "CloudOperation",
    "CloudOperationArgs",
    "ConsentAction",
    "GlobalSettings",
    "InitialState",
    "InstancePath",
    "LoginType",
    "NetworkInfo",
    "NetworkRegistration",
    "OrgPolicy",
    "PortControlSupport",
    "SocialNetworkInfo",
    "Update",
    "UserPath",
    # Exceptions
    "ProxyControlError",
    "UnknownNetworkError",
    "UnknownSessionError",
    "ProtectedNetworkError",
    "UnsupportedOperationError",
    "ProtocolError",
    "OperationTimeoutError",
    "ProviderError",
    "ServerAlreadyExistsError",
    "ProvisioningError",
]
