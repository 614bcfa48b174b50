"""Tests for AsyncHttpClient."""

import json

import httpx
import pytest

from proxy_control.api.http_client import AsyncHttpClient
from proxy_control.config import ProxyControlConfig
from proxy_control.exceptions import OperationTimeoutError


class FlakyHandler:
    """Fails with a connect error ``failures`` times, then answers ``status_code``."""

    def __init__(self, failures: int = 0, status_code: int = httpx.codes.OK) -> None:
        self.failures = failures
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if len(self.requests) <= self.failures:
            raise httpx.ConnectError("offline", request=request)
        return httpx.Response(self.status_code)


@pytest.fixture
def config() -> ProxyControlConfig:
    """Create test config."""
    return ProxyControlConfig(ping_interval=0.01)


@pytest.mark.asyncio
async def test_ping_true_on_any_response(config: ProxyControlConfig) -> None:
    """Test that any HTTP response, even an error status, counts as online."""
    handler = FlakyHandler(status_code=httpx.codes.SERVICE_UNAVAILABLE)

    async with AsyncHttpClient(config, transport=httpx.MockTransport(handler)) as client:
        assert await client.ping("https://www.example.com/") is True

    assert handler.requests[0].headers["User-Agent"] == config.user_agent


@pytest.mark.asyncio
async def test_ping_false_on_connect_error(config: ProxyControlConfig) -> None:
    """Test that a connection failure counts as offline."""
    handler = FlakyHandler(failures=1)

    async with AsyncHttpClient(config, transport=httpx.MockTransport(handler)) as client:
        assert await client.ping("https://www.example.com/") is False


@pytest.mark.asyncio
async def test_ping_until_online_retries(config: ProxyControlConfig) -> None:
    """Test retrying until the first successful ping."""
    handler = FlakyHandler(failures=2)

    async with AsyncHttpClient(config, transport=httpx.MockTransport(handler)) as client:
        await client.ping_until_online("https://www.example.com/")

    assert len(handler.requests) == 3


@pytest.mark.asyncio
async def test_ping_until_online_times_out(config: ProxyControlConfig) -> None:
    """Test giving up once the timeout expires."""
    handler = FlakyHandler(failures=1000)

    async with AsyncHttpClient(config, transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(OperationTimeoutError, match="Still offline"):
            await client.ping_until_online("https://www.example.com/", timeout=0.05)


@pytest.mark.asyncio
async def test_post_report_goes_through_fronting_domain(config: ProxyControlConfig) -> None:
    """Test that reports go to the front domain with the real host header."""
    handler = FlakyHandler()

    async with AsyncHttpClient(config, transport=httpx.MockTransport(handler)) as client:
        await client.post_report("/reports", {"logs": "Version: \"0.1.0\""})

    request = handler.requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://a0.awsstatic.com/reports"
    assert request.headers["Host"] == config.report_host
    assert json.loads(request.content) == {"logs": "Version: \"0.1.0\""}


@pytest.mark.asyncio
async def test_post_report_raises_on_error_status(config: ProxyControlConfig) -> None:
    """Test that an error status is raised to the caller."""
    handler = FlakyHandler(status_code=httpx.codes.INTERNAL_SERVER_ERROR)

    async with AsyncHttpClient(config, transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(httpx.HTTPStatusError):
            await client.post_report("reports", {})


@pytest.mark.asyncio
async def test_close_is_idempotent(config: ProxyControlConfig) -> None:
    client = AsyncHttpClient(config, transport=httpx.MockTransport(FlakyHandler()))

    await client.close()
    async with client:
        pass
    await client.close()
