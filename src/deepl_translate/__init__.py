# SPDX-License-Identifier: Apache-2.0
"""Async client for the DeepL text translation API.

Usage:
    from deepl_translate import Translator

    async with Translator("your-auth-key") as translator:
        result = await translator.translate_text("Hello", None, "de")
        results = await translator.translate_text(["Bonjour", "Hello"], None, "de")

Input is validated before anything is sent. Rate-limited (429), server-side
(5xx) and network failures are retried with exponential backoff and jitter.
"""

from deepl_translate.errors import (
    AuthorizationError,
    CancellationError,
    ConfigurationError,
    DeprecatedLanguageCodeError,
    FatalServerError,
    InvalidLanguageCodeError,
    NetworkError,
    NotFoundError,
    QuotaExceededError,
    ResponseFormatError,
    RetryableServerError,
    ServerError,
    TooManyRequestsError,
    TranslatorError,
    ValidationError,
)
from deepl_translate.languages import LanguageRole, normalize_language_code
from deepl_translate.options import (
    Formality,
    SentenceSplitting,
    TagHandling,
    TranslateOptions,
    map_options,
)
from deepl_translate.retry import AttemptState, BackoffPolicy, RetryEngine, RetryState
from deepl_translate.transport import (
    AiohttpTransport,
    HttpRequest,
    HttpResponse,
    Transport,
)
from deepl_translate.translator import (
    Language,
    TextResult,
    Translator,
    TranslatorConfig,
    Usage,
)
from deepl_translate.validation import validate_texts

__all__ = [
    # Facade
    "Translator",
    "TranslatorConfig",
    "TextResult",
    "Usage",
    "Language",
    # Options and languages
    "TranslateOptions",
    "Formality",
    "SentenceSplitting",
    "TagHandling",
    "LanguageRole",
    "map_options",
    "normalize_language_code",
    "validate_texts",
    # Retry
    "AttemptState",
    "BackoffPolicy",
    "RetryEngine",
    "RetryState",
    # Transport
    "Transport",
    "AiohttpTransport",
    "HttpRequest",
    "HttpResponse",
    # Exceptions
    "TranslatorError",
    "ConfigurationError",
    "ValidationError",
    "InvalidLanguageCodeError",
    "DeprecatedLanguageCodeError",
    "NetworkError",
    "ServerError",
    "RetryableServerError",
    "TooManyRequestsError",
    "FatalServerError",
    "AuthorizationError",
    "NotFoundError",
    "QuotaExceededError",
    "ResponseFormatError",
    "CancellationError",
]
