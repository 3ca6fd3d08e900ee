"""Retry with exponential backoff for LLM provider HTTP calls.

Only transient failures are retried: transport errors (connection refused,
timeouts), HTTP 429 and HTTP 5xx. Any other status is a request problem and
fails immediately.
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional

import requests

from ..constants import DEFAULT_MAX_RETRIES, DEFAULT_MAX_RETRY_DELAY, DEFAULT_RETRY_DELAY
from ..errors import ProviderError, ProviderUnavailableError
from ..utils.logging import logger


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay: float = DEFAULT_RETRY_DELAY
    max_delay: float = DEFAULT_MAX_RETRY_DELAY


def is_retryable_status(status: int) -> bool:
    return status == 429 or 500 <= status <= 599


def calculate_backoff(attempt: int, config: RetryConfig) -> float:
    """Delay before retry number ``attempt`` (1-indexed), capped at ``max_delay``."""
    return min(config.max_delay, config.base_delay * (2 ** (attempt - 1)))


def _body_snippet(response: requests.Response, limit: int = 300) -> str:
    return (response.text or "").strip()[:limit]


def request_with_retry(send: Callable[[], requests.Response],
                       config: Optional[RetryConfig] = None,
                       context: str = "LLM request",
                       classify: Callable[[int], bool] = is_retryable_status,
                       sleep: Callable[[float], None] = time.sleep) -> requests.Response:
    """Call ``send`` until it returns a non-error response or retries run out.

    Args:
        send: Performs one HTTP request
        config: Retry configuration (uses defaults if None)
        context: Description for log messages
        classify: Decides whether an HTTP status is worth retrying
        sleep: Delay function, replaceable in tests

    Returns:
        The first response with a status below 400

    Raises:
        ProviderUnavailableError: The last attempt failed at the transport level
        ProviderError: A non-retryable status, or a retryable one on the last attempt
    """
    config = config or RetryConfig()
    attempts = max(0, config.max_retries) + 1

    for attempt in range(1, attempts + 1):
        try:
            response = send()
        except requests.RequestException as e:
            if attempt >= attempts:
                raise ProviderUnavailableError(f"{context} failed: {e}") from e
            delay = calculate_backoff(attempt, config)
            logger.warning(f"{context} failed ({e}); retrying in {delay:.1f}s ({attempt}/{attempts - 1})")
            sleep(delay)
            continue

        status = response.status_code
        if status < 400:
            return response

        message = f"{context} returned HTTP {status}"
        snippet = _body_snippet(response)
        if snippet:
            message += f": {snippet}"
        if not classify(status) or attempt >= attempts:
            raise ProviderError(message, status=status)

        delay = calculate_backoff(attempt, config)
        logger.warning(f"{message}; retrying in {delay:.1f}s ({attempt}/{attempts - 1})")
        sleep(delay)

    raise ProviderUnavailableError(f"{context} failed")
