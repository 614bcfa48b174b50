"""
Models pushed to and requested by the UI.
"""

from dataclasses import dataclass
from enum import StrEnum

from proxy_control.models.capability import PortControlSupport
from proxy_control.models.settings import GlobalSettings


class Update(StrEnum):
    """Kinds of update events pushed to the UI."""

    PORT_CONTROL_STATUS = "port_control_status"
    CLOUD_INSTALL_STATUS = "cloud_install_status"
    CLOUD_INSTALL_PROGRESS = "cloud_install_progress"
    REFRESH_GLOBAL_SETTINGS = "refresh_global_settings"
    CORE_UPDATE_AVAILABLE = "core_update_available"
    REMOVE_FRIEND = "remove_friend"


@dataclass(frozen=True, kw_only=True)
class InitialState:
    """Snapshot of core state sent to a freshly opened UI."""

    network_names: list[str]
    cloud_provider_names: list[str]
    global_settings: GlobalSettings
    online_networks: list[dict[str, str]]
    available_version: str | None
    port_control_support: PortControlSupport
