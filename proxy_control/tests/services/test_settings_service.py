import asyncio
from unittest.mock import Mock

import pytest

from proxy_control.exceptions import UnsupportedOperationError
from proxy_control.models.settings import DEFAULT_STUN_SERVERS, GlobalSettings, OrgPolicy
from proxy_control.models.ui import Update
from proxy_control.services.settings_service import SETTINGS_KEY, SettingsStore


@pytest.mark.asyncio
async def test_load_merges_stored_settings_over_defaults(storage, notifier) -> None:
    """Test loading stored settings on top of the defaults."""
    storage.data[SETTINGS_KEY] = {"description": "work laptop", "version": 0, "legacy": True}
    store = SettingsStore(storage, notifier)

    settings = await store.load()

    assert settings.description == "work laptop"
    assert settings.version == 1
    assert settings.stun_servers == list(DEFAULT_STUN_SERVERS)
    assert store.is_loaded


@pytest.mark.asyncio
async def test_load_keeps_defaults_when_storage_fails(storage, notifier) -> None:
    """Test that a storage failure leaves the defaults in place."""
    storage.fail_get = True
    store = SettingsStore(storage, notifier)

    settings = await store.load()

    assert settings == GlobalSettings()
    assert store.is_loaded


@pytest.mark.asyncio
async def test_wait_loaded_blocks_until_load(settings_store: SettingsStore) -> None:
    """Test waiting for settings to load."""
    waiter = asyncio.create_task(settings_store.wait_loaded())
    await asyncio.sleep(0)
    assert not waiter.done()

    await settings_store.load()

    assert await waiter is settings_store.settings


@pytest.mark.asyncio
async def test_update_replaces_lists_in_place(settings_store: SettingsStore, storage) -> None:
    """Test that list fields keep their identity on update."""
    stun_servers = settings_store.settings.stun_servers

    await settings_store.update_global_settings({"stun_servers": ["stun:custom.example"]})

    assert stun_servers == ["stun:custom.example"]
    assert settings_store.settings.stun_servers is stun_servers
    assert storage.data[SETTINGS_KEY]["stun_servers"] == ["stun:custom.example"]


@pytest.mark.asyncio
async def test_empty_stun_servers_fall_back_to_defaults(settings_store: SettingsStore) -> None:
    """Test the default STUN server fallback."""
    await settings_store.update_global_settings({"stun_servers": ["stun:custom.example"]})

    settings = await settings_store.update_global_settings({"stun_servers": []})

    assert settings.stun_servers == list(DEFAULT_STUN_SERVERS)


@pytest.mark.asyncio
async def test_partial_update_keeps_other_fields(settings_store: SettingsStore) -> None:
    """Test that a partial update only touches the given fields."""
    await settings_store.update_global_settings({"stun_servers": ["stun:custom.example"]})

    settings = await settings_store.update_global_settings({"language": "de"})

    assert settings.language == "de"
    assert settings.stun_servers == ["stun:custom.example"]


@pytest.mark.asyncio
async def test_full_record_update(settings_store: SettingsStore, storage) -> None:
    """Test updating from a full GlobalSettings record."""
    new_settings = GlobalSettings(version=0, description="desk", stats_reporting_enabled=True)

    settings = await settings_store.update_global_settings(new_settings)

    assert settings is not new_settings
    assert settings.description == "desk"
    assert settings.version == 1
    assert storage.data[SETTINGS_KEY]["stats_reporting_enabled"] is True


@pytest.mark.asyncio
async def test_update_ignores_unknown_fields(settings_store: SettingsStore) -> None:
    """Test that unknown fields are dropped."""
    settings = await settings_store.update_global_settings({"mode": "give", "language": "es"})

    assert settings.language == "es"
    assert not hasattr(settings, "mode")


@pytest.mark.asyncio
async def test_update_survives_storage_failure(settings_store: SettingsStore, storage) -> None:
    """Test that a failed save still updates memory."""
    storage.fail_set = True

    settings = await settings_store.update_global_settings({"description": "phone"})

    assert settings.description == "phone"
    assert SETTINGS_KEY not in storage.data


@pytest.mark.asyncio
async def test_description_change_notifies_listeners(settings_store: SettingsStore) -> None:
    """Test that listeners fire only on a real change."""
    listener = Mock()
    settings_store.on_description_changed(listener)

    await settings_store.update_global_settings({"description": "phone"})
    await settings_store.update_global_settings({"description": "phone", "language": "it"})

    listener.assert_called_once_with("phone")


@pytest.mark.asyncio
async def test_update_single_setting(settings_store: SettingsStore) -> None:
    """Test updating one setting by name."""
    await settings_store.load()

    settings = await settings_store.update_global_setting("stats_reporting_enabled", True)

    assert settings.stats_reporting_enabled is True


@pytest.mark.asyncio
async def test_update_single_setting_rejects_unknown_name(settings_store: SettingsStore) -> None:
    with pytest.raises(UnsupportedOperationError):
        await settings_store.update_global_setting("mode", "get")


@pytest.mark.asyncio
async def test_org_policy_update_refreshes_ui(settings_store: SettingsStore, notifier) -> None:
    """Test that an org policy update refreshes the UI."""
    await settings_store.load()
    policy = OrgPolicy(enforce_proxy_server_validity=True, valid_proxy_servers=["peer-a"])

    settings = await settings_store.update_org_policy(policy)

    assert settings.enforce_proxy_server_validity is True
    assert settings.valid_proxy_servers == ["peer-a"]
    notifier.update.assert_called_once_with(Update.REFRESH_GLOBAL_SETTINGS, settings)


@pytest.mark.asyncio
async def test_org_policy_update_waits_for_stored_settings(
    settings_store: SettingsStore, storage
) -> None:
    """Test that the policy is applied on top of stored settings."""
    storage.data[SETTINGS_KEY] = {"description": "stored"}
    policy = OrgPolicy(enforce_proxy_server_validity=True)

    update = asyncio.create_task(settings_store.update_org_policy(policy))
    await asyncio.sleep(0)
    await settings_store.load()
    settings = await update

    assert settings.description == "stored"
    assert storage.data[SETTINGS_KEY]["description"] == "stored"


@pytest.mark.asyncio
async def test_held_list_reference_sees_only_latest_values(settings_store: SettingsStore) -> None:
    """Test that a held list reference sees only the latest values."""
    valid_proxy_servers = settings_store.settings.valid_proxy_servers

    await settings_store.update_global_settings({"valid_proxy_servers": ["a"]})
    await settings_store.update_global_settings({"valid_proxy_servers": ["b"]})

    assert valid_proxy_servers == ["b"]
