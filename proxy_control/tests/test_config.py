import pytest

from proxy_control.config import ProxyControlConfig


def test_default_config() -> None:
    """Test default configuration values."""
    config = ProxyControlConfig()

    assert config.reproxy_host == "127.0.0.1"
    assert config.cloud_deploy_progress == 20
    assert config.cloud_provider_module == "CLOUDPROVIDER-digitalocean"


def test_config_is_frozen() -> None:
    """Test that config cannot be changed after creation."""
    config = ProxyControlConfig()

    with pytest.raises(AttributeError):
        config.nat_probe_timeout = 1.0  # type: ignore[misc]


@pytest.mark.parametrize(
    "field",
    ["nat_probe_timeout", "nat_cache_ttl", "reproxy_timeout", "ping_interval", "http_timeout"],
)
def test_config_rejects_non_positive_durations(field: str) -> None:
    """Test duration validation."""
    with pytest.raises(ValueError, match=field):
        ProxyControlConfig(**{field: 0})


def test_config_rejects_deploy_progress_above_100() -> None:
    """Test progress validation."""
    with pytest.raises(ValueError, match="cloud_deploy_progress"):
        ProxyControlConfig(cloud_deploy_progress=120)
