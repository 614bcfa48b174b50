"""
Session-related domain models.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import IntEnum, StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from proxy_control.interfaces.social import RemoteUser, SocialNetwork


class LoginType(IntEnum):
    """How a login was initiated."""

    INITIAL = 0
    RECONNECT = 1


class ConsentAction(StrEnum):
    """Local user actions that change consent with a contact."""

    REQUEST = "request"
    CANCEL_REQUEST = "cancel_request"
    ACCEPT_OFFER = "accept_offer"
    IGNORE_OFFER = "ignore_offer"
    UNIGNORE_OFFER = "unignore_offer"
    OFFER = "offer"
    CANCEL_OFFER = "cancel_offer"
    ACCEPT_REQUEST = "accept_request"
    IGNORE_REQUEST = "ignore_request"
    UNIGNORE_REQUEST = "unignore_request"


@dataclass(frozen=True, kw_only=True)
class LoginResult:
    """Identity of the local user after a successful login."""

    user_id: str
    instance_id: str


@dataclass(frozen=True, kw_only=True)
class SocialNetworkInfo:
    """Identifies a logged-in network, optionally by the local user id."""

    name: str
    user_id: str | None = None


@dataclass(frozen=True, kw_only=True)
class UserPath:
    """Identifies a contact on a logged-in network."""

    network: SocialNetworkInfo
    user_id: str


@dataclass(frozen=True, kw_only=True)
class InstancePath(UserPath):
    """Identifies one device (instance) of a contact."""

    instance_id: str


@dataclass(frozen=True, kw_only=True)
class NetworkRegistration:
    """
    A social network the core knows how to log into.

    Attributes:
        name: Network name used in requests and persisted state.
        factory: Creates a fresh provider for this network.
        is_cloud_admin: Whether this is the network of self-hosted cloud
            servers, which cannot be logged out of by the user.
    """

    name: str
    factory: Callable[[str], "SocialNetwork"]
    is_cloud_admin: bool = False


@dataclass(frozen=True, kw_only=True)
class NetworkSession:
    """
    A logged-in social network session.

    Attributes:
        name: Network name.
        user_id: Local user id on this network.
        instance_id: Local instance id on this network.
        network: Provider that owns the connection.
        is_cloud_admin: Copied from the network registration.
    """

    name: str
    user_id: str
    instance_id: str
    network: "SocialNetwork"
    is_cloud_admin: bool = False

    @property
    def roster(self) -> Mapping[str, "RemoteUser"]:
        """Known contacts, read through to the provider."""
        return self.network.roster

    def to_info(self) -> dict[str, Any]:
        return {"name": self.name, "userId": self.user_id}
