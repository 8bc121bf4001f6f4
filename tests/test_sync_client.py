"""
Tests for the collector HTTP client.

Requests are served by httpx.MockTransport, so no network is used.
"""

import json

import httpx
import pytest

from ccsync.core.sync.client import CollectorClient, CollectorError
from ccsync.core.sync.models import MessageRecord, SessionRecord


def _client(sync_config, handler) -> CollectorClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CollectorClient(sync_config, http_client=http_client)


class TestCollectorRequests:
    """Test request shape for the sync endpoints."""

    @pytest.mark.asyncio
    async def test_sync_session_posts_payload(self, sync_config):
        """Test URL rewrite, auth header and body for /sync/session."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"ok": True})

        client = _client(sync_config, handler)
        await client.sync_session(SessionRecord(session_id="s1", title="fix bug"))

        assert len(seen) == 1
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == "https://happy-fox-123.convex.site/sync/session"
        assert request.headers["Authorization"] == "Bearer osk_test_1234567890"
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {
            "externalId": "s1",
            "source": "claude-code",
            "title": "fix bug",
        }

    @pytest.mark.asyncio
    async def test_sync_message_endpoint(self, sync_config):
        """Test that messages go to /sync/message."""
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            return httpx.Response(200)

        client = _client(sync_config, handler)
        await client.sync_message(
            MessageRecord(session_id="s1", message_id="m1", role="user", content="hi")
        )
        assert paths == ["/sync/message"]

    @pytest.mark.asyncio
    async def test_sync_batch_body(self, sync_config):
        """Test the batch body shape."""
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/sync/batch"
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={})

        client = _client(sync_config, handler)
        await client.sync_batch(
            [SessionRecord(session_id="s1")],
            [MessageRecord(session_id="s1", message_id="m1", role="user", content="hi")],
        )

        assert bodies[0]["sessions"] == [{"externalId": "s1", "source": "claude-code"}]
        assert bodies[0]["messages"][0]["externalId"] == "m1"

    @pytest.mark.asyncio
    async def test_request_returns_json(self, sync_config):
        """Test that JSON responses are decoded and empty ones give None."""
        responses = iter([httpx.Response(200, json={"id": "x"}), httpx.Response(204)])

        def handler(request: httpx.Request) -> httpx.Response:
            return next(responses)

        client = _client(sync_config, handler)
        assert await client._request("/sync/session", {}) == {"id": "x"}
        assert await client._request("/sync/session", {}) is None


class TestCollectorErrors:
    """Test error mapping."""

    @pytest.mark.asyncio
    async def test_non_success_raises(self, sync_config):
        """Test that a 4xx/5xx response raises CollectorError with details."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, text="Invalid API key")

        client = _client(sync_config, handler)
        with pytest.raises(CollectorError) as exc_info:
            await client.sync_session(SessionRecord(session_id="s1"))

        assert exc_info.value.status_code == 401
        assert exc_info.value.body == "Invalid API key"
        assert "401" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_network_error_raises(self, sync_config):
        """Test that transport failures are wrapped."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = _client(sync_config, handler)
        with pytest.raises(CollectorError) as exc_info:
            await client.sync_message(
                MessageRecord(session_id="s1", message_id="m1", role="user")
            )

        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


class TestHealthCheck:
    """Test the liveness check."""

    @pytest.mark.asyncio
    async def test_healthy(self, sync_config):
        """Test a 200 from /health."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "GET"
            assert request.url.path == "/health"
            return httpx.Response(200, text="OK")

        assert await _client(sync_config, handler).health_check() is True

    @pytest.mark.asyncio
    async def test_unhealthy_status(self, sync_config):
        """Test a 503 from /health."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503)

        assert await _client(sync_config, handler).health_check() is False

    @pytest.mark.asyncio
    async def test_unreachable_never_raises(self, sync_config):
        """Test that a network failure is reported as unhealthy."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        assert await _client(sync_config, handler).health_check() is False


class TestClientLifecycle:
    """Test ownership of the underlying httpx client."""

    @pytest.mark.asyncio
    async def test_injected_client_left_open(self, sync_config):
        """Test that a passed-in client is not closed by the wrapper."""
        http_client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(200))
        )
        async with CollectorClient(sync_config, http_client=http_client):
            pass
        assert not http_client.is_closed
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_owned_client_closed(self, sync_config):
        """Test that a client created by the wrapper is closed with it."""
        client = CollectorClient(sync_config)
        async with client:
            pass
        assert client._client.is_closed
        assert client._client.timeout.connect == sync_config.timeout
