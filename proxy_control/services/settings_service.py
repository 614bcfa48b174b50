"""
Global settings service.

Owns the live GlobalSettings object, persists it, and tells interested
components when the device description changes.
"""

import asyncio
import dataclasses
from collections.abc import Callable, Mapping
from typing import Any

import structlog

from proxy_control.core.events import EventChannel, Subscription
from proxy_control.exceptions import UnsupportedOperationError
from proxy_control.interfaces.storage import Storage
from proxy_control.interfaces.ui import UiNotifier
from proxy_control.logs import set_console_level
from proxy_control.models.settings import (
    DEFAULT_STUN_SERVERS,
    STORAGE_VERSION,
    GlobalSettings,
    OrgPolicy,
    merge_settings,
)
from proxy_control.models.ui import Update

logger = structlog.get_logger(__name__)

SETTINGS_KEY = "globalSettings"


class SettingsStore:
    """
    Holds, validates and persists the global settings.

    The ``settings`` object is never replaced; updates are merged into it.
    """

    def __init__(self, storage: Storage, notifier: UiNotifier) -> None:
        """
        Args:
            storage: Persistent key/value store.
            notifier: Receives REFRESH_GLOBAL_SETTINGS after policy updates.
        """
        self._storage = storage
        self._notifier = notifier
        self._settings = GlobalSettings()
        self._loaded = asyncio.Event()
        self._description_changed: EventChannel[str] = EventChannel()

    @property
    def settings(self) -> GlobalSettings:
        return self._settings

    @property
    def is_loaded(self) -> bool:
        return self._loaded.is_set()

    def on_description_changed(self, listener: Callable[[str], None]) -> Subscription:
        """Call ``listener`` with the new description whenever it changes."""
        return self._description_changed.subscribe(listener)

    async def load(self) -> GlobalSettings:
        """
        Load persisted settings over the defaults.

        Unreadable or invalid stored settings are logged and the defaults kept.
        """
        try:
            stored = await self._storage.get(SETTINGS_KEY)
            if stored:
                known = GlobalSettings.field_names()
                merge_settings(
                    self._settings, {k: v for k, v in stored.items() if k in known}
                )
        except Exception as e:
            logger.error("Could not load global settings", error_type=type(e).__name__, exc_info=e)
        self._settings.version = STORAGE_VERSION
        self._loaded.set()
        logger.debug("Global settings loaded")
        return self._settings

    async def wait_loaded(self) -> GlobalSettings:
        await self._loaded.wait()
        return self._settings

    async def update_global_settings(
        self, new_settings: GlobalSettings | Mapping[str, Any]
    ) -> GlobalSettings:
        """
        Merge new settings into the live settings and persist them.

        List fields are replaced in place; existing references to them see
        the new contents. An empty ``stun_servers`` list falls back to the
        default servers. Persistence failures are logged, not raised.

        Args:
            new_settings: Full settings record or a mapping of changed fields.

        Returns:
            The live settings object.
        """
        if isinstance(new_settings, GlobalSettings):
            changes = {
                f.name: getattr(new_settings, f.name) for f in dataclasses.fields(new_settings)
            }
        else:
            changes = dict(new_settings)

        unknown = changes.keys() - GlobalSettings.field_names()
        if unknown:
            logger.warning("Ignoring unknown settings", names=sorted(unknown))
            for name in unknown:
                del changes[name]

        changes["version"] = STORAGE_VERSION
        if "stun_servers" in changes and not changes["stun_servers"]:
            changes["stun_servers"] = list(DEFAULT_STUN_SERVERS)

        old_description = self._settings.description
        merge_settings(self._settings, changes)

        try:
            await self._storage.set(SETTINGS_KEY, self._settings.to_dict())
        except Exception as e:
            logger.error("Could not save global settings", error_type=type(e).__name__, exc_info=e)

        if self._settings.description != old_description:
            logger.info("Device description changed")
            self._description_changed.emit(self._settings.description)

        try:
            set_console_level(self._settings.console_filter)
        except ValueError:
            logger.warning("Invalid console filter", console_filter=self._settings.console_filter)

        return self._settings

    async def update_global_setting(self, name: str, value: Any) -> GlobalSettings:
        """
        Change a single setting.

        Raises:
            UnsupportedOperationError: If ``name`` is not a setting.
        """
        if name not in GlobalSettings.field_names():
            msg = f"Unknown setting: {name}"
            raise UnsupportedOperationError(msg, name=name)
        await self.wait_loaded()
        return await self.update_global_settings({name: value})

    async def update_org_policy(self, policy: OrgPolicy) -> GlobalSettings:
        """Apply organizational policy fields and push the refreshed settings to the UI."""
        # Wait for stored settings so the update does not overwrite them with defaults.
        await self.wait_loaded()
        settings = await self.update_global_settings(
            {
                "enforce_proxy_server_validity": policy.enforce_proxy_server_validity,
                "valid_proxy_servers": list(policy.valid_proxy_servers),
            }
        )
        self._notifier.update(Update.REFRESH_GLOBAL_SETTINGS, settings)
        return settings
