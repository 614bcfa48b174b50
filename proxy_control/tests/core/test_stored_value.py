import asyncio

import pytest

from proxy_control.core.stored_value import StoredValue


@pytest.mark.asyncio
async def test_get_returns_copy_of_default(storage) -> None:
    """Test that mutating the returned default does not change it."""
    value = StoredValue[list[str]](storage, "connectedNetworks", [])

    names = await value.get()
    names.append("Social")

    assert await value.get() == []


@pytest.mark.asyncio
async def test_set_persists_under_key(storage) -> None:
    """Test that set() writes through to storage."""
    value = StoredValue[list[str]](storage, "connectedNetworks", [])

    await value.set(["Social"])

    assert storage.data["connectedNetworks"] == ["Social"]
    assert await value.get() == ["Social"]


@pytest.mark.asyncio
async def test_concurrent_updates_are_not_lost(storage) -> None:
    """Test that concurrent read-modify-write updates are serialized."""
    value = StoredValue[list[str]](storage, "connectedNetworks", [])

    await asyncio.gather(*(value.update(lambda names, n=n: [*names, f"net{n}"]) for n in range(10)))

    assert sorted(await value.get()) == sorted(f"net{n}" for n in range(10))
