"""
HTTP client for the OpenSync collector.

The collector exposes Convex HTTP actions:

    POST /sync/session   partial session upsert
    POST /sync/message   partial message upsert
    POST /sync/batch     {"sessions": [...], "messages": [...]}
    GET  /health         liveness check

Requests are authenticated with the API key as a bearer token. There is no
retry here: a failed request raises CollectorError and the caller decides
what to do (the hook runner logs it and lets the next event try again).
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from types import TracebackType
from typing import Any

import httpx

from ccsync.core.config.models import SyncConfig
from ccsync.core.sync.models import MessageRecord, SessionRecord

logger = logging.getLogger(__name__)


class CollectorError(Exception):
    """Collector request failed (network error or non-success response)."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class CollectorClient:
    """
    Async client for the collector's sync endpoints.

    Example:
        >>> async with CollectorClient(config) as client:
        ...     await client.sync_session(SessionRecord(session_id="abc", title="Fix bug"))
    """

    def __init__(
        self,
        config: SyncConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize CollectorClient.

        Args:
            config: Credentials and timeout
            http_client: Client to use (tests pass one with a MockTransport).
                When omitted the client creates and owns its own.
        """
        self.config = config
        self.site_url = config.site_url
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=config.timeout)

    async def __aenter__(self) -> CollectorClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.api_key}",
        }

    async def _request(self, endpoint: str, data: dict[str, Any]) -> Any:
        """
        POST JSON to a collector endpoint.

        Args:
            endpoint: Path such as "/sync/session"
            data: JSON body

        Returns:
            Decoded JSON response (None for an empty or non-JSON body)

        Raises:
            CollectorError: On network failure or a non-2xx response
        """
        url = f"{self.site_url}{endpoint}"
        try:
            response = await self._client.post(url, json=data, headers=self._headers())
        except httpx.HTTPError as e:
            raise CollectorError(f"Sync request to {endpoint} failed: {e}") from e

        if not response.is_success:
            raise CollectorError(
                f"Sync failed: {response.status_code} - {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    async def sync_session(self, session: SessionRecord) -> None:
        """Upsert session fields."""
        try:
            await self._request("/sync/session", session.to_payload())
        except CollectorError as e:
            logger.error(f"Failed to sync session {session.session_id}: {e}")
            raise

    async def sync_message(self, message: MessageRecord) -> None:
        """Upsert a message."""
        try:
            await self._request("/sync/message", message.to_payload())
        except CollectorError as e:
            logger.error(f"Failed to sync message {message.message_id}: {e}")
            raise

    async def sync_batch(
        self,
        sessions: Sequence[SessionRecord],
        messages: Sequence[MessageRecord],
    ) -> None:
        """Upsert several sessions and messages in one request."""
        body = {
            "sessions": [s.to_payload() for s in sessions],
            "messages": [m.to_payload() for m in messages],
        }
        try:
            await self._request("/sync/batch", body)
        except CollectorError as e:
            logger.error(f"Failed to sync batch: {e}")
            raise

    async def health_check(self) -> bool:
        """
        Probe the collector's /health endpoint.

        Returns:
            True on a 2xx response, False on any error
        """
        try:
            response = await self._client.get(f"{self.site_url}/health")
        except httpx.HTTPError as e:
            logger.debug(f"Health check failed: {e}")
            return False
        return response.is_success
