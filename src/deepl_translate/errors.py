# SPDX-License-Identifier: Apache-2.0
"""Exception hierarchy for the translation client."""

from __future__ import annotations


class TranslatorError(Exception):
    """Base exception for translator module."""

    pass


class ConfigurationError(TranslatorError):
    """Configuration error (missing auth key, invalid settings, etc.).

    This error type is NOT retryable - fix the configuration first.
    """

    pass


class ValidationError(TranslatorError, ValueError):
    """Invalid input detected before any request was sent.

    This error type is NOT retryable.
    """

    pass


class InvalidLanguageCodeError(ValidationError):
    """Language code is not supported for the given parameter."""

    def __init__(self, message: str, parameter: str, code: str) -> None:
        super().__init__(message)
        self.parameter = parameter
        self.code = code


class DeprecatedLanguageCodeError(InvalidLanguageCodeError):
    """Generic target code that must be replaced by a regional variant."""

    def __init__(
        self,
        message: str,
        parameter: str,
        code: str,
        replacements: tuple[str, ...] = (),
    ) -> None:
        super().__init__(message, parameter, code)
        self.replacements = replacements


class NetworkError(TranslatorError):
    """Connection failure or timeout raised by a transport."""

    pass


class ServerError(TranslatorError):
    """Base class for errors reported by the translation service."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        server_message: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.server_message = server_message


class RetryableServerError(ServerError):
    """Rate limit, server-side or network failure that outlived its retries.

    This error type is potentially retryable by the caller later on.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        server_message: str | None = None,
        attempts: int = 0,
    ) -> None:
        super().__init__(message, status_code, server_message)
        self.attempts = attempts


class TooManyRequestsError(RetryableServerError):
    """HTTP 429 returned on every attempt."""

    pass


class FatalServerError(ServerError):
    """Request rejected by the service; never retried."""

    pass


class AuthorizationError(FatalServerError):
    """HTTP 403: the auth key was rejected."""

    pass


class NotFoundError(FatalServerError):
    """HTTP 404: the requested resource does not exist."""

    pass


class QuotaExceededError(FatalServerError):
    """HTTP 456: the character quota for this billing period is used up."""

    pass


class ResponseFormatError(TranslatorError):
    """Successful response whose body could not be interpreted."""

    pass


class CancellationError(TranslatorError):
    """Call aborted by the caller's cancel event or timeout."""

    pass
