import asyncio
import copy
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any
from unittest.mock import AsyncMock, Mock

import pytest

from proxy_control.config import ProxyControlConfig
from proxy_control.models.session import LoginType, NetworkRegistration
from proxy_control.services.session_service import SessionManager
from proxy_control.services.settings_service import SettingsStore

LOCAL_USER_ID = "local-user-8c21"
LOCAL_INSTANCE_ID = "instance-4f07a2"


class FakeStorage:
    """In-memory Storage that yields to the event loop on every call."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self.data: dict[str, Any] = dict(data or {})
        self.fail_get = False
        self.fail_set = False

    async def get(self, key: str) -> Any:
        await asyncio.sleep(0)
        if self.fail_get:
            raise OSError("storage unavailable")
        return copy.deepcopy(self.data.get(key))

    async def set(self, key: str, value: Any) -> None:
        await asyncio.sleep(0)
        if self.fail_set:
            raise OSError("disk full")
        self.data[key] = copy.deepcopy(value)


@dataclass(frozen=True)
class FakeLocalInstance:
    user_id: str
    instance_id: str


class FakeNetwork:
    """SocialNetwork provider with scripted login behaviour."""

    def __init__(
        self,
        name: str,
        *,
        login_error: Exception | None = None,
        login_delay: float = 0.0,
    ) -> None:
        self.name = name
        self.my_instance: FakeLocalInstance | None = None
        self.roster: dict[str, Any] = {}
        self.login_types: list[LoginType] = []
        self._login_error = login_error
        self._login_delay = login_delay

        self.logout = AsyncMock()
        self.resend_instance_handshakes = AsyncMock()
        self.accept_invitation = AsyncMock()
        self.invite_user = AsyncMock()
        self.get_invite_url = AsyncMock(return_value="https://invite.example/abc")
        self.send_email = Mock()

    async def login(self, login_type: LoginType, user_name: str | None = None) -> None:
        self.login_types.append(login_type)
        await asyncio.sleep(self._login_delay)
        if self._login_error is not None:
            raise self._login_error
        self.my_instance = FakeLocalInstance(LOCAL_USER_ID, LOCAL_INSTANCE_ID)

    def get_user(self, user_id: str) -> Any:
        return self.roster.get(user_id)

    async def remove_user_from_storage(self, user_id: str) -> None:
        self.roster.pop(user_id, None)


class NetworkFactory:
    """Creates FakeNetworks and remembers them per network name."""

    def __init__(self) -> None:
        self.created: dict[str, list[FakeNetwork]] = {}
        self.login_errors: dict[str, Exception] = {}
        self.login_delay = 0.0
        self.roster: dict[str, Any] = {}

    def __call__(self, name: str) -> FakeNetwork:
        network = FakeNetwork(
            name, login_error=self.login_errors.get(name), login_delay=self.login_delay
        )
        network.roster.update(self.roster)
        self.created.setdefault(name, []).append(network)
        return network

    def last(self, name: str) -> FakeNetwork:
        return self.created[name][-1]


@pytest.fixture
def config() -> ProxyControlConfig:
    return ProxyControlConfig()


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def notifier() -> Mock:
    return Mock()


@pytest.fixture
def network_factory() -> NetworkFactory:
    return NetworkFactory()


@pytest.fixture
def registrations(network_factory: NetworkFactory) -> list[NetworkRegistration]:
    return [
        NetworkRegistration(name="Social", factory=network_factory),
        NetworkRegistration(name="Cloud", factory=network_factory, is_cloud_admin=True),
    ]


@pytest.fixture
def settings_store(storage: FakeStorage, notifier: Mock) -> SettingsStore:
    return SettingsStore(storage, notifier)


@pytest.fixture
def make_sessions(
    registrations: list[NetworkRegistration],
    storage: FakeStorage,
    settings_store: SettingsStore,
    notifier: Mock,
) -> Iterator[Callable[[], SessionManager]]:
    managers: list[SessionManager] = []

    def _make() -> SessionManager:
        manager = SessionManager(registrations, storage, settings_store, notifier)
        managers.append(manager)
        return manager

    yield _make

    for manager in managers:
        manager.close()

