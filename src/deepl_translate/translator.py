# SPDX-License-Identifier: Apache-2.0
"""Translator facade: validation, request assembly and response parsing."""

from __future__ import annotations

import asyncio
import logging
import os
import random
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, ClassVar, overload

from deepl_translate.errors import (
    CancellationError,
    ConfigurationError,
    ResponseFormatError,
    ValidationError,
)
from deepl_translate.languages import (
    LanguageRole,
    canonicalize,
    normalize_detected_language,
    normalize_language_code,
)
from deepl_translate.options import TranslateOptions, map_options
from deepl_translate.retry import BackoffPolicy, RetryEngine, SleepFunc
from deepl_translate.transport import (
    DEFAULT_USER_AGENT,
    AiohttpTransport,
    AuthorizedTransport,
    HttpRequest,
    HttpResponse,
    Transport,
)
from deepl_translate.validation import validate_texts

logger = logging.getLogger(__name__)

DEFAULT_SERVER_URL = "https://api.deepl.com"
DEFAULT_SERVER_URL_FREE = "https://api-free.deepl.com"
DEFAULT_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True)
class TranslatorConfig:
    """Immutable translator configuration.

    Attributes:
        auth_key: Service authentication key.
        server_url: Base URL. If None, derived from the auth key.
        request_timeout: Timeout of a single HTTP attempt in seconds.
        backoff: Retry budget and backoff constants.
        user_agent: User-Agent header sent with every request.
    """

    auth_key: str
    server_url: str | None = None
    request_timeout: float = DEFAULT_TIMEOUT_SECONDS
    backoff: BackoffPolicy = field(default_factory=BackoffPolicy)
    user_agent: str = DEFAULT_USER_AGENT

    # Environment variable names read by from_env()
    ENV_AUTH_KEY: ClassVar[str] = "DEEPL_AUTH_KEY"
    ENV_SERVER_URL: ClassVar[str] = "DEEPL_SERVER_URL"
    ENV_MAX_RETRIES: ClassVar[str] = "DEEPL_MAX_RETRIES"
    ENV_TIMEOUT: ClassVar[str] = "DEEPL_TIMEOUT_SECONDS"
    ENV_MIN_BACKOFF: ClassVar[str] = "DEEPL_MIN_BACKOFF_SECONDS"

    def __post_init__(self) -> None:
        if not self.auth_key:
            raise ConfigurationError("auth_key is required")
        if self.request_timeout <= 0:
            raise ConfigurationError(
                f"request_timeout must be positive, got {self.request_timeout}"
            )

    @property
    def is_free_account(self) -> bool:
        """Free account keys carry the ":fx" suffix."""
        return self.auth_key.endswith(":fx")

    @property
    def effective_server_url(self) -> str:
        """Get effective server URL (resolves None from the auth key)."""
        if self.server_url:
            return self.server_url
        return DEFAULT_SERVER_URL_FREE if self.is_free_account else DEFAULT_SERVER_URL

    @classmethod
    def from_env(cls, auth_key: str | None = None) -> TranslatorConfig:
        """Build a configuration from DEEPL_* environment variables.

        Args:
            auth_key: Explicit auth key; DEEPL_AUTH_KEY is read only when
                this is not given.

        Raises:
            ConfigurationError: If the auth key is missing or a numeric
                variable is malformed.
        """
        auth_key = auth_key or os.environ.get(cls.ENV_AUTH_KEY, "")
        if not auth_key:
            raise ConfigurationError(
                f"{cls.ENV_AUTH_KEY} is not configured. Set it in the environment."
            )
        defaults = BackoffPolicy()
        min_delay = _get_float(cls.ENV_MIN_BACKOFF, defaults.min_delay)
        backoff = BackoffPolicy(
            max_retries=_get_int(cls.ENV_MAX_RETRIES, defaults.max_retries),
            min_delay=min_delay,
            base_delay=max(defaults.base_delay, min_delay),
        )
        return cls(
            auth_key=auth_key,
            server_url=os.environ.get(cls.ENV_SERVER_URL) or None,
            request_timeout=_get_float(cls.ENV_TIMEOUT, DEFAULT_TIMEOUT_SECONDS),
            backoff=backoff,
        )


def _get_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"Environment variable {name} must be an integer, got: {raw}"
        ) from exc


def _get_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"Environment variable {name} must be a float, got: {raw}"
        ) from exc


@dataclass(frozen=True)
class TextResult:
    """Translation of one input text."""

    text: str
    detected_source_lang: str


@dataclass(frozen=True)
class Usage:
    """Character usage in the current billing period."""

    character_count: int
    character_limit: int

    @property
    def limit_reached(self) -> bool:
        return self.character_limit > 0 and self.character_count >= self.character_limit


@dataclass(frozen=True)
class Language:
    """Language supported by the service."""

    code: str
    name: str
    supports_formality: bool | None = None


class Translator:
    """Client for the text translation service.

    One instance may be shared by many concurrent ``translate_text`` calls;
    its configuration never changes after construction.

    Usage:
        async with Translator("your-auth-key") as translator:
            result = await translator.translate_text("Hello", None, "de")
            print(result.text, result.detected_source_lang)
    """

    def __init__(
        self,
        auth_key: str | None = None,
        *,
        config: TranslatorConfig | None = None,
        transport: Transport | None = None,
        sleep: SleepFunc | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize Translator.

        Args:
            auth_key: Authentication key. Ignored when ``config`` is given.
            config: Full configuration.
            transport: HTTP transport (default: aiohttp against the
                configured server URL).
            sleep: Sleep function used between retries.
            rng: Random source for backoff jitter.

        Raises:
            ConfigurationError: If no auth key is provided.
        """
        if config is None:
            if not auth_key:
                raise ConfigurationError("auth_key is required")
            config = TranslatorConfig(auth_key=auth_key)
        self._config = config

        if transport is None:
            transport = AiohttpTransport(
                config.effective_server_url, timeout=config.request_timeout
            )
        self._transport = AuthorizedTransport(transport, config.auth_key, config.user_agent)
        self._engine = RetryEngine(config.backoff, sleep=sleep, rng=rng)

    @property
    def config(self) -> TranslatorConfig:
        return self._config

    async def __aenter__(self) -> Translator:
        """Enter async context manager."""
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Exit async context manager."""
        await self.close()

    @overload
    async def translate_text(
        self,
        texts: str,
        source_lang: str | None,
        target_lang: str,
        options: TranslateOptions | Mapping[str, Any] | None = ...,
        *,
        cancel_event: asyncio.Event | None = ...,
        timeout: float | None = ...,
    ) -> TextResult: ...

    @overload
    async def translate_text(
        self,
        texts: Sequence[str],
        source_lang: str | None,
        target_lang: str,
        options: TranslateOptions | Mapping[str, Any] | None = ...,
        *,
        cancel_event: asyncio.Event | None = ...,
        timeout: float | None = ...,
    ) -> list[TextResult]: ...

    async def translate_text(
        self,
        texts: str | Sequence[str],
        source_lang: str | None,
        target_lang: str,
        options: TranslateOptions | Mapping[str, Any] | None = None,
        *,
        cancel_event: asyncio.Event | None = None,
        timeout: float | None = None,
    ) -> TextResult | list[TextResult]:
        """Translate one text or a batch of texts.

        Input is validated in full before any request is sent: texts first,
        then language codes, then options.

        Args:
            texts: Single text, or ordered sequence of texts.
            source_lang: Source language code, or None to auto-detect.
            target_lang: Target language code.
            options: TranslateOptions or a mapping of option names to values.
            cancel_event: Setting this event aborts the call.
            timeout: Overall deadline in seconds, retries included.

        Returns:
            TextResult for a single text, or a list of TextResult in input
            order for a sequence.

        Raises:
            ValidationError: On invalid texts, language codes or options.
            FatalServerError: If the service rejects the request.
            RetryableServerError: If retries are exhausted.
            CancellationError: On cancel event or timeout.
        """
        validated = validate_texts(texts)
        source = (
            normalize_language_code(source_lang, LanguageRole.SOURCE)
            if source_lang is not None
            else None
        )
        target = normalize_language_code(target_lang, LanguageRole.TARGET)
        option_params = map_options(_coerce_options(options))

        params: list[tuple[str, str]] = [("text", t) for t in validated.texts]
        if source is not None:
            params.append(("source_lang", source))
        params.append(("target_lang", target))
        params.extend(option_params)

        logger.debug(
            "Translating %d text(s) from %s to %s",
            len(validated.texts),
            source or "auto",
            target,
        )
        request = HttpRequest("POST", "/v2/translate", tuple(params))
        response = await self._request(request, cancel_event, timeout)
        results = _parse_translations(response, len(validated.texts))
        return results[0] if validated.single else results

    async def get_usage(
        self,
        *,
        cancel_event: asyncio.Event | None = None,
        timeout: float | None = None,
    ) -> Usage:
        """Get character usage for the current billing period."""
        response = await self._request(HttpRequest("GET", "/v2/usage"), cancel_event, timeout)
        data = response.json()
        try:
            return Usage(
                character_count=int(data["character_count"]),
                character_limit=int(data["character_limit"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ResponseFormatError(f"Unexpected usage response: {data!r}") from e

    async def get_source_languages(self, **kwargs: Any) -> list[Language]:
        """List languages usable as source_lang."""
        return await self._get_languages(LanguageRole.SOURCE, **kwargs)

    async def get_target_languages(self, **kwargs: Any) -> list[Language]:
        """List languages usable as target_lang."""
        return await self._get_languages(LanguageRole.TARGET, **kwargs)

    async def _get_languages(
        self,
        role: LanguageRole,
        *,
        cancel_event: asyncio.Event | None = None,
        timeout: float | None = None,
    ) -> list[Language]:
        kind = "source" if role is LanguageRole.SOURCE else "target"
        request = HttpRequest("GET", "/v2/languages", (("type", kind),))
        response = await self._request(request, cancel_event, timeout)
        data = response.json()
        if not isinstance(data, list):
            raise ResponseFormatError(f"Unexpected languages response: {data!r}")
        languages: list[Language] = []
        for entry in data:
            try:
                code = canonicalize(str(entry["language"]), role)
                supports_formality = (
                    bool(entry.get("supports_formality", False))
                    if role is LanguageRole.TARGET
                    else None
                )
                languages.append(
                    Language(
                        code=code,
                        name=str(entry["name"]),
                        supports_formality=supports_formality,
                    )
                )
            except (KeyError, TypeError, AttributeError) as e:
                raise ResponseFormatError(f"Unexpected language entry: {entry!r}") from e
        return languages

    async def _request(
        self,
        request: HttpRequest,
        cancel_event: asyncio.Event | None,
        timeout: float | None,
    ) -> HttpResponse:
        call = self._engine.execute(lambda: request, self._transport.send, cancel_event)
        if timeout is None:
            return await call
        try:
            return await asyncio.wait_for(call, timeout)
        except asyncio.TimeoutError as e:
            raise CancellationError(f"Request timed out after {timeout}s") from e

    async def close(self) -> None:
        """Close the underlying transport."""
        await self._transport.close()


def _coerce_options(
    options: TranslateOptions | Mapping[str, Any] | None,
) -> TranslateOptions | None:
    if options is None or isinstance(options, TranslateOptions):
        return options
    if isinstance(options, Mapping):
        return TranslateOptions.from_mapping(options)
    raise ValidationError(
        f"options must be TranslateOptions or a mapping, got {type(options).__name__}"
    )


def _parse_translations(response: HttpResponse, expected: int) -> list[TextResult]:
    data = response.json()
    try:
        entries = data["translations"]
        results = [
            TextResult(
                text=str(entry["text"]),
                detected_source_lang=normalize_detected_language(
                    str(entry["detected_source_language"])
                ),
            )
            for entry in entries
        ]
    except (KeyError, TypeError) as e:
        raise ResponseFormatError(f"Unexpected translate response: {data!r}") from e

    if len(results) != expected:
        raise ResponseFormatError(
            f"Service returned {len(results)} translations for {expected} texts"
        )
    return results
