"""Shared async REST plumbing for the GitHub and Jira clients."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from devhub.errors import ExternalServiceError

logger = logging.getLogger(__name__)


def is_transient(exc: BaseException) -> bool:
    """Network errors, throttling and 5xx responses are worth retrying."""
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, ExternalServiceError) and exc.status_code is not None:
        return exc.status_code == 429 or exc.status_code >= 500
    return False


class RestClient:
    """Lazily-created ``httpx.AsyncClient`` with retry on transient failures.

    Subclasses set ``service`` (used in errors and logs) and pass their base
    URL, headers and auth to ``__init__``.
    """

    service = "http"

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        max_retries: int = 3,
        headers: dict[str, str] | None = None,
        auth: httpx.Auth | tuple[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_wait = wait_exponential(multiplier=1, min=1, max=10)
        self._headers = headers or {}
        self._auth = auth
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                headers=self._headers,
                auth=self._auth,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> RestClient:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _send(
        self,
        method: str,
        endpoint: str,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        client = await self._get_client()
        try:
            response = await client.request(method, endpoint, json=json, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.error("%s %s %s failed: HTTP %d", self.service, method, endpoint, status)
            raise ExternalServiceError(
                self.service,
                f"HTTP {status}: {exc.response.text[:500]}",
                status_code=status,
                details={"endpoint": endpoint},
            ) from exc

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ExternalServiceError(
                self.service,
                f"Invalid JSON in response: {response.text[:200]}",
                status_code=response.status_code,
                details={"endpoint": endpoint},
            ) from exc

    async def _request(
        self,
        method: str,
        endpoint: str,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send one request, retrying transient failures with exponential backoff.

        Raises:
            ExternalServiceError: On a non-2xx response or a network error
                that persists past the retry budget.
        """
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_retries),
                wait=self.retry_wait,
                retry=retry_if_exception(is_transient),
                reraise=True,
            ):
                with attempt:
                    return await self._send(method, endpoint, json=json, params=params)
        except httpx.TransportError as exc:
            raise ExternalServiceError(
                self.service,
                f"Request failed: {exc}",
                details={"endpoint": endpoint},
            ) from exc
        raise AssertionError("unreachable")

    async def _get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        return await self._request("GET", endpoint, params=params)

    async def _post(self, endpoint: str, json: Any = None) -> Any:
        return await self._request("POST", endpoint, json=json)

    async def _put(self, endpoint: str, json: Any = None) -> Any:
        return await self._request("PUT", endpoint, json=json)
