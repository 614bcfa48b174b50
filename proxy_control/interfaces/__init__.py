"""
Interfaces of the external collaborators the core orchestrates.
"""

from proxy_control.interfaces.cloud import CloudProvider, Installer, ModuleLoader
from proxy_control.interfaces.probes import NatProbe, PortControlProbe
from proxy_control.interfaces.social import LocalInstance, RemoteInstance, RemoteUser, SocialNetwork
from proxy_control.interfaces.storage import Storage
from proxy_control.interfaces.ui import LogSource, UiNotifier

__all__ = [
    "CloudProvider",
    "Installer",
    "ModuleLoader",
    "NatProbe",
    "PortControlProbe",
    "LocalInstance",
    "RemoteInstance",
    "RemoteUser",
    "SocialNetwork",
    "Storage",
    "LogSource",
    "UiNotifier",
]
