"""
Domain models for the proxy control core.

Requests and results are frozen dataclasses; live state (settings,
provisioning jobs) is mutable.
"""

from proxy_control.models.capability import NetworkInfo, PortControlSupport, ProtocolSupport
from proxy_control.models.cloud import (
    CloudOperation,
    CloudOperationArgs,
    CloudOperationResult,
    ProvisioningJob,
    ProvisioningStage,
    ServerInfo,
)
from proxy_control.models.session import (
    ConsentAction,
    InstancePath,
    LoginResult,
    LoginType,
    NetworkRegistration,
    NetworkSession,
    SocialNetworkInfo,
    UserPath,
)
from proxy_control.models.settings import (
    DEFAULT_STUN_SERVERS,
    STORAGE_VERSION,
    GlobalSettings,
    OrgPolicy,
)
from proxy_control.models.ui import InitialState, Update

__all__ = [
    # Session
    "LoginType",
    "LoginResult",
    "ConsentAction",
    "SocialNetworkInfo",
    "UserPath",
    "InstancePath",
    "NetworkRegistration",
    "NetworkSession",
    # Settings
    "GlobalSettings",
    "OrgPolicy",
    "STORAGE_VERSION",
    "DEFAULT_STUN_SERVERS",
    # Capability
    "PortControlSupport",
    "ProtocolSupport",
    "NetworkInfo",
    # Cloud
    "CloudOperation",
    "CloudOperationArgs",
    "CloudOperationResult",
    "ProvisioningJob",
    "ProvisioningStage",
    "ServerInfo",
    # UI
    "Update",
    "InitialState",
]
