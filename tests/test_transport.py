# SPDX-License-Identifier: Apache-2.0
"""Tests for the HTTP transport layer."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from email.utils import format_datetime
from types import MappingProxyType
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from deepl_translate.errors import NetworkError, ResponseFormatError
from deepl_translate.transport import (
    AiohttpTransport,
    AuthorizedTransport,
    HttpRequest,
    HttpResponse,
    Transport,
)


def _mock_session(status: int = 200, body: bytes = b"{}", headers: dict | None = None) -> MagicMock:
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.read = AsyncMock(return_value=body)
    mock_response.headers = headers or {}

    mock_session = MagicMock()
    mock_session.request = MagicMock(return_value=AsyncMock())
    mock_session.request.return_value.__aenter__ = AsyncMock(return_value=mock_response)
    mock_session.request.return_value.__aexit__ = AsyncMock(return_value=None)
    mock_session.close = AsyncMock()
    return mock_session


class TestHttpRequest:
    """Tests for HttpRequest."""

    def test_with_headers_merges(self) -> None:
        request = HttpRequest("GET", "/v2/usage", headers={"A": "1"})
        merged = request.with_headers({"B": "2"})
        assert merged.headers == {"A": "1", "B": "2"}
        assert request.headers == {"A": "1"}


class TestHttpResponse:
    """Tests for HttpResponse."""

    def test_json(self) -> None:
        response = HttpResponse(200, b'{"ok": true}')
        assert response.json() == {"ok": True}

    def test_invalid_json(self) -> None:
        response = HttpResponse(502, b"<html>Bad gateway</html>")
        with pytest.raises(ResponseFormatError) as exc_info:
            response.json()
        assert "502" in str(exc_info.value)

    def test_header_is_case_insensitive(self) -> None:
        response = HttpResponse(200, headers={"Content-Type": "application/json"})
        assert response.header("content-type") == "application/json"
        assert response.header("X-Missing") is None

    def test_read_only_header_mappings(self) -> None:
        """Headers may be any read-only mapping, such as aiohttp's CIMultiDictProxy."""
        response = HttpResponse(429, headers=MappingProxyType({"Retry-After": "3"}))
        assert response.retry_after == 3.0

        request = HttpRequest("GET", "/v2/usage").with_headers(MappingProxyType({"User-Agent": "x"}))
        assert request.headers == {"User-Agent": "x"}

    def test_retry_after_seconds(self) -> None:
        response = HttpResponse(429, headers={"retry-after": "2"})
        assert response.retry_after == 2.0

    def test_retry_after_missing(self) -> None:
        assert HttpResponse(429).retry_after is None

    def test_retry_after_malformed(self) -> None:
        assert HttpResponse(429, headers={"Retry-After": "soon"}).retry_after is None

    def test_retry_after_http_date(self) -> None:
        when = datetime.now(timezone.utc) + timedelta(seconds=30)
        response = HttpResponse(429, headers={"Retry-After": format_datetime(when, usegmt=True)})
        assert response.retry_after is not None
        assert 25.0 <= response.retry_after <= 31.0

    def test_retry_after_past_date(self) -> None:
        when = datetime.now(timezone.utc) - timedelta(minutes=5)
        response = HttpResponse(429, headers={"Retry-After": format_datetime(when, usegmt=True)})
        assert response.retry_after == 0.0


class TestAiohttpTransport:
    """Unit tests for AiohttpTransport (mocked session)."""

    def test_implements_protocol(self) -> None:
        transport = AiohttpTransport("https://api-free.deepl.com")
        assert isinstance(transport, Transport)

    def test_strips_trailing_slash(self) -> None:
        transport = AiohttpTransport("https://api-free.deepl.com/")
        assert transport.server_url == "https://api-free.deepl.com"

    @pytest.mark.asyncio
    async def test_post_sends_form_data(self) -> None:
        """POST parameters are sent as form data, repeated names preserved."""
        transport = AiohttpTransport("https://example.test")
        mock_session = _mock_session(200, b'{"translations": []}', {"X-Trace": "1"})
        transport._session = mock_session

        request = HttpRequest(
            "POST",
            "/v2/translate",
            (("text", "a"), ("text", "b"), ("target_lang", "de")),
            {"Authorization": "DeepL-Auth-Key k"},
        )
        response = await transport.send(request)

        assert response.status == 200
        assert response.body == b'{"translations": []}'
        assert response.headers == {"X-Trace": "1"}
        args, kwargs = mock_session.request.call_args
        assert args == ("POST", "https://example.test/v2/translate")
        assert kwargs["data"] == [("text", "a"), ("text", "b"), ("target_lang", "de")]
        assert kwargs["headers"] == {"Authorization": "DeepL-Auth-Key k"}
        assert "params" not in kwargs

    @pytest.mark.asyncio
    async def test_get_sends_query_params(self) -> None:
        transport = AiohttpTransport("https://example.test")
        mock_session = _mock_session(200, b"[]")
        transport._session = mock_session

        await transport.send(HttpRequest("GET", "/v2/languages", (("type", "target"),)))

        _, kwargs = mock_session.request.call_args
        assert kwargs["params"] == [("type", "target")]
        assert "data" not in kwargs

    @pytest.mark.asyncio
    async def test_error_status_is_returned(self) -> None:
        """Non-2xx statuses are returned, classification happens upstream."""
        transport = AiohttpTransport("https://example.test")
        transport._session = _mock_session(429, b'{"message": "Too many requests"}')
        response = await transport.send(HttpRequest("POST", "/v2/translate"))
        assert response.status == 429

    @pytest.mark.asyncio
    async def test_client_error_becomes_network_error(self) -> None:
        transport = AiohttpTransport("https://example.test")
        mock_session = MagicMock()
        mock_session.request = MagicMock(side_effect=aiohttp.ClientConnectionError("refused"))
        transport._session = mock_session

        with pytest.raises(NetworkError) as exc_info:
            await transport.send(HttpRequest("POST", "/v2/translate"))
        assert "refused" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, aiohttp.ClientConnectionError)

    @pytest.mark.asyncio
    async def test_timeout_becomes_network_error(self) -> None:
        transport = AiohttpTransport("https://example.test", timeout=2.5)
        mock_session = MagicMock()
        mock_session.request = MagicMock(side_effect=asyncio.TimeoutError())
        transport._session = mock_session

        with pytest.raises(NetworkError, match="timed out"):
            await transport.send(HttpRequest("POST", "/v2/translate"))

    @pytest.mark.asyncio
    async def test_close(self) -> None:
        transport = AiohttpTransport("https://example.test")
        mock_session = _mock_session()
        transport._session = mock_session

        await transport.close()

        mock_session.close.assert_awaited_once()
        assert transport._session is None

    @pytest.mark.asyncio
    async def test_close_without_session(self) -> None:
        transport = AiohttpTransport("https://example.test")
        await transport.close()
        assert transport._session is None


class TestAuthorizedTransport:
    """Tests for AuthorizedTransport."""

    @pytest.mark.asyncio
    async def test_adds_headers(self) -> None:
        inner = MagicMock()
        inner.send = AsyncMock(return_value=HttpResponse(200))
        transport = AuthorizedTransport(inner, "secret:fx", user_agent="tests/1.0")

        await transport.send(HttpRequest("GET", "/v2/usage"))

        sent = inner.send.call_args.args[0]
        assert sent.headers["Authorization"] == "DeepL-Auth-Key secret:fx"
        assert sent.headers["User-Agent"] == "tests/1.0"

    @pytest.mark.asyncio
    async def test_close_delegates(self) -> None:
        inner = MagicMock()
        inner.close = AsyncMock()
        transport = AuthorizedTransport(inner, "secret")
        await transport.close()
        inner.close.assert_awaited_once()
