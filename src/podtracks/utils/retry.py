"""Retry and backoff utilities for directory and feed calls.

Transient network failures (timeouts, dropped connections, 5xx) are retried
a small bounded number of times with exponential backoff and jitter via
tenacity. Rate limiting is NOT retried here: the batch scheduler owns that
decision because it has to pause the whole run, not one call.
"""

import logging
from collections.abc import Callable
from functools import wraps

import requests
from pydantic import BaseModel, Field
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from podtracks.utils.errors import (
    AuthError,
    MalformedInputError,
    NotFoundError,
    PodtracksError,
    RateLimitedError,
    TransientNetworkError,
)

logger = logging.getLogger(__name__)


class RetryPolicy(BaseModel):
    """Bounded retry for transient network failures."""

    max_attempts: int = Field(default=3, ge=1, le=10)
    min_wait_seconds: float = Field(default=1.0, ge=0)
    max_wait_seconds: float = Field(default=10.0, ge=0)
    jitter: bool = True


class BackoffPolicy(BaseModel):
    """Capped exponential delay used when the directory rate-limits us.

    Example:
        >>> policy = BackoffPolicy(initial_seconds=5, multiplier=2, max_seconds=60)
        >>> [policy.delay_for(n) for n in (1, 2, 3, 4, 5)]
        [5.0, 10.0, 20.0, 40.0, 60.0]
    """

    initial_seconds: float = Field(default=5.0, ge=0)
    multiplier: float = Field(default=2.0, ge=1)
    max_seconds: float = Field(default=60.0, ge=0)

    def delay_for(self, attempt: int, retry_after: float | None = None) -> float:
        """Delay before retrying after the given consecutive hit (1-based).

        A server-supplied Retry-After wins when it is longer than the
        computed delay, but never beyond the ceiling.
        """
        attempt = max(attempt, 1)
        delay = self.initial_seconds * (self.multiplier ** (attempt - 1))
        if retry_after is not None:
            delay = max(delay, retry_after)
        return float(min(delay, self.max_seconds))


DEFAULT_RETRY_POLICY = RetryPolicy()

# Fast policy for tests (minimal delays)
TEST_RETRY_POLICY = RetryPolicy(
    max_attempts=3,
    min_wait_seconds=0.0,
    max_wait_seconds=0.0,
    jitter=False,
)


def log_retry_attempt(retry_state: RetryCallState) -> None:
    """Log retry attempts for debugging.

    Args:
        retry_state: Tenacity retry state
    """
    if retry_state.outcome and retry_state.outcome.failed:
        exception = retry_state.outcome.exception()
        logger.warning(
            "Attempt %d failed: %s: %s",
            retry_state.attempt_number,
            type(exception).__name__,
            exception,
        )


def with_network_retry(policy: RetryPolicy | None = None) -> Callable:
    """Decorator retrying TransientNetworkError with exponential backoff.

    Usage:
        @with_network_retry(RetryPolicy(max_attempts=5))
        def fetch():
            ...

    Args:
        policy: Retry policy (uses DEFAULT_RETRY_POLICY if None)

    Returns:
        Decorated function; the last TransientNetworkError is re-raised
        once attempts are exhausted.
    """
    policy = policy or DEFAULT_RETRY_POLICY

    def decorator(func: Callable) -> Callable:
        wait = wait_exponential(multiplier=policy.min_wait_seconds, max=policy.max_wait_seconds)
        if policy.jitter:
            wait += wait_random(0, policy.min_wait_seconds)
        retry_decorator = retry(
            stop=stop_after_attempt(policy.max_attempts),
            wait=wait,
            retry=retry_if_exception_type(TransientNetworkError),
            before_sleep=log_retry_attempt,
            reraise=True,
        )
        retrying = retry_decorator(func)

        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return retrying(*args, **kwargs)
            except TransientNetworkError as e:
                logger.warning(
                    "%s gave up after %d attempts: %s",
                    func.__name__,
                    policy.max_attempts,
                    e,
                )
                raise

        return wrapper

    return decorator


def parse_retry_after(value: str | None) -> float | None:
    """Parse a Retry-After header given in seconds."""
    if not value:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


def classify_http_status(
    status_code: int,
    message: str = "",
    retry_after: float | None = None,
) -> PodtracksError:
    """Map an HTTP status to the resolution failure taxonomy.

    Args:
        status_code: HTTP status code
        message: Context for the error message (usually the URL)
        retry_after: Parsed Retry-After header, if any

    Returns:
        Exception instance to raise

    Example:
        response = session.get(url)
        if response.status_code >= 400:
            raise classify_http_status(response.status_code, url)
    """
    if status_code == 429:
        return RateLimitedError(f"Rate limit exceeded: {message}", retry_after=retry_after)

    if status_code in (401, 403):
        return AuthError(f"Authentication failed (HTTP {status_code}): {message}")

    if status_code in (404, 410):
        return NotFoundError(f"Not found (HTTP {status_code}): {message}")

    if status_code == 408 or 500 <= status_code < 600:
        return TransientNetworkError(f"Server error (HTTP {status_code}): {message}")

    return MalformedInputError(f"Unexpected HTTP {status_code}: {message}")


def classify_request_exception(exception: requests.RequestException, url: str) -> PodtracksError:
    """Map a requests exception to the resolution failure taxonomy."""
    if isinstance(exception, requests.Timeout):
        return TransientNetworkError(f"Timed out fetching {url}: {exception}")
    if isinstance(exception, requests.ConnectionError):
        return TransientNetworkError(f"Connection failed for {url}: {exception}")
    if isinstance(exception, requests.exceptions.InvalidURL | requests.exceptions.MissingSchema):
        return MalformedInputError(f"Invalid URL {url}: {exception}")
    return TransientNetworkError(f"Request failed for {url}: {exception}")
