"""
Control-plane services.
"""

from proxy_control.services.capability_service import CapabilityProber
from proxy_control.services.cloud_service import CloudProvisioner, one_shot_module
from proxy_control.services.diagnostics_service import DiagnosticsExporter, redact
from proxy_control.services.reproxy_service import ReproxyValidator
from proxy_control.services.session_service import SessionManager
from proxy_control.services.settings_service import SettingsStore

__all__ = [
    "CapabilityProber",
    "CloudProvisioner",
    "DiagnosticsExporter",
    "ReproxyValidator",
    "SessionManager",
    "SettingsStore",
    "one_shot_module",
    "redact",
]
