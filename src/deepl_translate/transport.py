# SPDX-License-Identifier: Apache-2.0
"""HTTP transport used by the translator.

The retry engine only needs ``send(request) -> HttpResponse``; everything
about connections, TLS and proxies stays inside the transport.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Protocol, runtime_checkable

import aiohttp

from deepl_translate.errors import NetworkError, ResponseFormatError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "deepl-translate-python"


@dataclass(frozen=True)
class HttpRequest:
    """Single HTTP request relative to the transport's server URL."""

    method: str
    path: str
    params: tuple[tuple[str, str], ...] = ()
    headers: Mapping[str, str] = field(default_factory=dict)

    def with_headers(self, headers: Mapping[str, str]) -> HttpRequest:
        """Return a copy with ``headers`` merged over the existing ones."""
        return replace(self, headers={**self.headers, **headers})


@dataclass(frozen=True)
class HttpResponse:
    """Status, headers and raw body of an HTTP response."""

    status: int
    body: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict)

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    def json(self) -> Any:
        """Decode the body as JSON.

        Raises:
            ResponseFormatError: If the body is not valid JSON.
        """
        try:
            return json.loads(self.body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ResponseFormatError(
                f"Invalid JSON in response (status {self.status}): {e}"
            ) from e

    @property
    def retry_after(self) -> float | None:
        """Seconds to wait according to the Retry-After header, if any.

        Supports both delta-seconds and HTTP-date values. Unparseable
        values are ignored.
        """
        raw = self.header("Retry-After")
        if raw is None:
            return None
        raw = raw.strip()
        try:
            return max(0.0, float(raw))
        except ValueError:
            pass
        try:
            when = parsedate_to_datetime(raw)
        except (TypeError, ValueError):
            logger.debug("Ignoring malformed Retry-After header: %r", raw)
            return None
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())


@runtime_checkable
class Transport(Protocol):
    """Protocol for objects able to send an HttpRequest."""

    async def send(self, request: HttpRequest) -> HttpResponse:
        """Send a request.

        Raises:
            NetworkError: On connection failure or timeout.
        """
        ...


class AiohttpTransport:
    """Transport backed by an aiohttp ClientSession.

    POST parameters are form-encoded; parameters of other methods go to
    the query string. Repeated parameter names (several ``text`` entries)
    are preserved.
    """

    def __init__(
        self,
        server_url: str,
        timeout: float = 10.0,
    ) -> None:
        """Initialize AiohttpTransport.

        Args:
            server_url: Base URL, e.g. "https://api-free.deepl.com".
            timeout: Per-request timeout in seconds.
        """
        self._server_url = server_url.rstrip("/")
        self._timeout = timeout
        self._session: aiohttp.ClientSession | None = None

    @property
    def server_url(self) -> str:
        return self._server_url

    async def __aenter__(self) -> AiohttpTransport:
        """Enter async context manager."""
        await self._ensure_session()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Exit async context manager."""
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure aiohttp session exists.

        Returns:
            Active aiohttp session.
        """
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout)
            )
        return self._session

    async def send(self, request: HttpRequest) -> HttpResponse:
        """Send a request and read the full response body.

        Raises:
            NetworkError: On connection failure or timeout.
        """
        session = await self._ensure_session()
        url = f"{self._server_url}{request.path}"
        params = list(request.params)
        kwargs: dict[str, Any] = {"headers": dict(request.headers)}
        if request.method.upper() == "POST":
            kwargs["data"] = params
        else:
            kwargs["params"] = params

        logger.debug("%s %s", request.method, url)
        try:
            async with session.request(request.method, url, **kwargs) as response:
                body = await response.read()
                return HttpResponse(
                    status=response.status,
                    body=body,
                    headers=dict(response.headers),
                )
        except asyncio.TimeoutError as e:
            raise NetworkError(f"Request timed out after {self._timeout}s: {url}") from e
        except aiohttp.ClientError as e:
            raise NetworkError(f"Request failed: {e}") from e

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None


class AuthorizedTransport:
    """Adds the auth and user agent headers to every outgoing request."""

    def __init__(
        self,
        transport: Transport,
        auth_key: str,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._transport = transport
        self._headers = {
            "Authorization": f"DeepL-Auth-Key {auth_key}",
            "User-Agent": user_agent,
        }

    async def send(self, request: HttpRequest) -> HttpResponse:
        return await self._transport.send(request.with_headers(self._headers))

    async def close(self) -> None:
        close = getattr(self._transport, "close", None)
        if close is not None:
            await close()
