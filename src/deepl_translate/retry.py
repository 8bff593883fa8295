# SPDX-License-Identifier: Apache-2.0
"""Retry and backoff for requests to the translation service.

Each call runs a small state machine::

    ATTEMPTING -> SUCCEEDED
               -> FAILED_FATAL                  (4xx other than 429)
               -> BACKING_OFF -> ATTEMPTING     (429, 5xx, network error)
               -> FAILED_EXHAUSTED              (retry budget used up)
               -> CANCELLED                     (cancel event set)

The delay before retry ``n`` (0-based) is
``min(max_delay, base_delay * multiplier**n)`` with a uniform jitter of
``+/- jitter`` applied, never less than ``min_delay``. A ``Retry-After``
header on a 429 response replaces the exponential value with
``max(retry_after, min_delay)``.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar

from deepl_translate.errors import (
    AuthorizationError,
    CancellationError,
    ConfigurationError,
    FatalServerError,
    NetworkError,
    NotFoundError,
    QuotaExceededError,
    ResponseFormatError,
    RetryableServerError,
    TooManyRequestsError,
)
from deepl_translate.transport import HttpRequest, HttpResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")

SendFunc = Callable[[HttpRequest], Awaitable[HttpResponse]]
SleepFunc = Callable[[float], Awaitable[Any]]

HTTP_TOO_MANY_REQUESTS = 429
HTTP_QUOTA_EXCEEDED = 456

_FATAL_ERRORS: dict[int, tuple[type[FatalServerError], str]] = {
    403: (AuthorizationError, "Authorization failure, check auth_key"),
    404: (NotFoundError, "Not found, check server_url"),
    HTTP_QUOTA_EXCEEDED: (QuotaExceededError, "Quota for this billing period has been exceeded"),
}


class Classification(str, Enum):
    """Outcome class of a single attempt."""

    SUCCESS = "success"
    RETRYABLE = "retryable"
    FATAL = "fatal"


class AttemptState(str, Enum):
    """States of the per-call retry state machine."""

    ATTEMPTING = "attempting"
    BACKING_OFF = "backing_off"
    SUCCEEDED = "succeeded"
    FAILED_FATAL = "failed_fatal"
    FAILED_EXHAUSTED = "failed_exhausted"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class BackoffPolicy:
    """Retry budget and backoff constants."""

    max_retries: int = 5
    base_delay: float = 1.0
    max_delay: float = 60.0
    multiplier: float = 2.0
    jitter: float = 0.2
    min_delay: float = 1.0

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ConfigurationError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.base_delay < 0 or self.min_delay < 0:
            raise ConfigurationError("base_delay and min_delay must be >= 0")
        if self.max_delay < self.min_delay:
            raise ConfigurationError(
                f"max_delay ({self.max_delay}) must be >= min_delay ({self.min_delay})"
            )
        if self.multiplier < 1:
            raise ConfigurationError(f"multiplier must be >= 1, got {self.multiplier}")
        if not 0 <= self.jitter < 1:
            raise ConfigurationError(f"jitter must be in [0, 1), got {self.jitter}")

    def compute_delay(
        self,
        retry: int,
        rng: random.Random,
        retry_after: float | None = None,
    ) -> float:
        """Delay in seconds before retry number ``retry`` (0-based)."""
        if retry_after is not None:
            return max(retry_after, self.min_delay)
        try:
            delay = min(self.max_delay, self.base_delay * self.multiplier**retry)
        except OverflowError:
            delay = self.max_delay
        if self.jitter:
            delay *= 1 + rng.uniform(-self.jitter, self.jitter)
        return max(self.min_delay, min(self.max_delay, delay))


@dataclass
class RetryState:
    """Mutable state of one call; never shared between calls."""

    state: AttemptState = AttemptState.ATTEMPTING
    retries: int = 0
    attempts: int = 0
    started_at: float = 0.0
    elapsed: float = 0.0
    last_error: Exception | None = None
    last_response: HttpResponse | None = None
    delays: list[float] = field(default_factory=list)


def classify(outcome: HttpResponse | NetworkError) -> Classification:
    """Classify a response or transport failure."""
    if isinstance(outcome, NetworkError):
        return Classification.RETRYABLE
    if 200 <= outcome.status < 300:
        return Classification.SUCCESS
    if outcome.status == HTTP_TOO_MANY_REQUESTS or outcome.status >= 500:
        return Classification.RETRYABLE
    return Classification.FATAL


def server_message(response: HttpResponse) -> str:
    """Extract the error message the service put in the response body."""
    try:
        data = response.json()
    except ResponseFormatError:
        return response.body.decode("utf-8", errors="replace").strip()[:500]
    if not isinstance(data, dict):
        return str(data)
    message = str(data.get("message", "")).strip()
    detail = str(data.get("detail", "")).strip()
    if message and detail:
        return f"{message}, {detail}"
    return message or detail


def fatal_error(response: HttpResponse) -> FatalServerError:
    """Build the typed exception for a non-retryable response."""
    message = server_message(response)
    error_cls, description = _FATAL_ERRORS.get(
        response.status, (FatalServerError, "Bad request")
    )
    text = f"{description} (status {response.status})"
    if message:
        text = f"{text}, message: {message}"
    return error_cls(text, status_code=response.status, server_message=message or None)


class RetryEngine:
    """Runs a request with classification, backoff and cancellation.

    The engine itself is stateless between calls, so one instance can be
    shared by any number of concurrent calls.
    """

    def __init__(
        self,
        policy: BackoffPolicy | None = None,
        sleep: SleepFunc | None = None,
        clock: Callable[[], float] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize RetryEngine.

        Args:
            policy: Retry budget and backoff constants.
            sleep: Awaitable sleep, replaceable by a virtual clock in tests.
            clock: Monotonic clock used for elapsed time.
            rng: Random source for jitter.
        """
        self._policy = policy or BackoffPolicy()
        self._sleep = sleep or asyncio.sleep
        self._clock = clock or time.monotonic
        self._rng = rng or random.Random()

    @property
    def policy(self) -> BackoffPolicy:
        return self._policy

    async def execute(
        self,
        build_request: Callable[[], HttpRequest],
        send: SendFunc,
        cancel_event: asyncio.Event | None = None,
        state: RetryState | None = None,
    ) -> HttpResponse:
        """Send a request until it succeeds, fails fatally or runs out of retries.

        Args:
            build_request: Builds the request for each attempt.
            send: Transport send function.
            cancel_event: When set, aborts the in-flight attempt or backoff.
            state: Optional state object to track progress; a fresh one is
                used when omitted.

        Returns:
            The successful (2xx) response.

        Raises:
            FatalServerError: On a 4xx response other than 429.
            RetryableServerError: When the retry budget is exhausted.
            CancellationError: When ``cancel_event`` is set.
        """
        if state is None:
            state = RetryState()
        state.started_at = self._clock()
        policy = self._policy

        while True:
            state.state = AttemptState.ATTEMPTING
            if cancel_event is not None and cancel_event.is_set():
                state.state = AttemptState.CANCELLED
                raise CancellationError("Request cancelled before it was sent")

            request = build_request()
            state.attempts += 1
            logger.debug(
                "Attempt %d: %s %s", state.attempts, request.method, request.path
            )

            response: HttpResponse | None = None
            try:
                response = await self._run_cancellable(send(request), cancel_event, state)
            except NetworkError as e:
                outcome: HttpResponse | NetworkError = e
                state.last_error = e
            else:
                outcome = response
                state.last_response = response
            state.elapsed = self._clock() - state.started_at

            if response is not None:
                classification = classify(response)
                if classification is Classification.SUCCESS:
                    state.state = AttemptState.SUCCEEDED
                    return response

                if classification is Classification.FATAL:
                    state.state = AttemptState.FAILED_FATAL
                    error = fatal_error(response)
                    state.last_error = error
                    raise error

                state.last_error = None

            if state.retries >= policy.max_retries:
                state.state = AttemptState.FAILED_EXHAUSTED
                raise self._exhausted_error(state)

            retry_after = None
            if response is not None and response.status == HTTP_TOO_MANY_REQUESTS:
                retry_after = response.retry_after
            delay = policy.compute_delay(state.retries, self._rng, retry_after)
            state.state = AttemptState.BACKING_OFF
            state.delays.append(delay)
            logger.warning(
                "Request failed (%s), retrying in %.2fs (retry %d/%d)",
                _describe(outcome),
                delay,
                state.retries + 1,
                policy.max_retries,
            )
            await self._run_cancellable(self._sleep(delay), cancel_event, state)
            state.retries += 1

    async def _run_cancellable(
        self,
        aw: Awaitable[T],
        cancel_event: asyncio.Event | None,
        state: RetryState,
    ) -> T:
        """Await ``aw`` unless ``cancel_event`` fires first."""
        if cancel_event is None:
            return await aw

        task = asyncio.ensure_future(aw)
        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()

        if task in done:
            return task.result()

        await asyncio.wait({task})
        state.state = AttemptState.CANCELLED
        state.elapsed = self._clock() - state.started_at
        logger.debug("Request cancelled after %d attempt(s)", state.attempts)
        raise CancellationError(
            f"Request cancelled after {state.attempts} attempt(s)"
        )

    def _exhausted_error(self, state: RetryState) -> RetryableServerError:
        response = state.last_response if state.last_error is None else None
        attempts = state.attempts
        if response is None:
            error = RetryableServerError(
                f"Request failed after {attempts} attempt(s): {state.last_error}",
                attempts=attempts,
            )
            error.__cause__ = state.last_error
            return error

        message = server_message(response) or None
        if response.status == HTTP_TOO_MANY_REQUESTS:
            error_cls: type[RetryableServerError] = TooManyRequestsError
            description = "Too many requests, service is throttling"
        else:
            error_cls = RetryableServerError
            description = f"Service unavailable (status {response.status})"
        text = f"{description} after {attempts} attempt(s)"
        if message:
            text = f"{text}, message: {message}"
        return error_cls(
            text,
            status_code=response.status,
            server_message=message,
            attempts=attempts,
        )


def _describe(outcome: HttpResponse | NetworkError) -> str:
    if isinstance(outcome, NetworkError):
        return f"network error: {outcome}"
    return f"status {outcome.status}"
