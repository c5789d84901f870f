"""Failure classification for generation backend attempts."""
import asyncio
from enum import Enum
from typing import Optional

import anthropic
import httpx
import openai

from application.exceptions import BackendTimeoutError


class FailureCategory(str, Enum):
    """Why a backend attempt failed."""

    TIMEOUT = "timeout"
    CONNECTION = "connection"
    RATE_LIMIT = "rate_limit"
    OTHER = "other"


# Categories that signal a transient backend problem
TRANSIENT_CATEGORIES = {
    FailureCategory.TIMEOUT,
    FailureCategory.CONNECTION,
    FailureCategory.RATE_LIMIT,
}

_TIMEOUT_TYPES = (
    BackendTimeoutError,
    asyncio.TimeoutError,
    openai.APITimeoutError,
    anthropic.APITimeoutError,
    httpx.TimeoutException,
)

# openai/anthropic timeout errors subclass their connection errors, so the
# timeout check must run first
_CONNECTION_TYPES = (
    openai.APIConnectionError,
    anthropic.APIConnectionError,
    httpx.ConnectError,
    httpx.NetworkError,
    ConnectionError,
)

_RATE_LIMIT_TYPES = (
    openai.RateLimitError,
    anthropic.RateLimitError,
)


def _status_code(exception: BaseException) -> Optional[int]:
    status = getattr(exception, "status_code", None)
    if status is None:
        response = getattr(exception, "response", None)
        status = getattr(response, "status_code", None)
    return status if isinstance(status, int) else None


def classify_failure(exception: BaseException) -> FailureCategory:
    """
    Categorize a failed backend attempt.

    Uses both exception type checking and string matching for robustness.
    This approach handles cases where:
    - Exception types are properly set by the SDK
    - Exception messages contain relevant error information

    The category only drives logging and the delay before the next backend;
    every category still falls through to the next backend in the chain.
    """
    if isinstance(exception, _TIMEOUT_TYPES):
        return FailureCategory.TIMEOUT

    if isinstance(exception, _RATE_LIMIT_TYPES) or _status_code(exception) == 429:
        return FailureCategory.RATE_LIMIT

    if isinstance(exception, _CONNECTION_TYPES):
        return FailureCategory.CONNECTION

    # Fall back to string matching for errors raised without a proper type
    error_str = str(exception).lower()

    if "timeout" in error_str or "timed out" in error_str or "exceeded" in error_str:
        return FailureCategory.TIMEOUT

    if ("rate" in error_str and "limit" in error_str) or "429" in error_str:
        return FailureCategory.RATE_LIMIT

    if "connection" in error_str or "econnrefused" in error_str or "etimedout" in error_str:
        return FailureCategory.CONNECTION

    return FailureCategory.OTHER


def is_transient(category: FailureCategory) -> bool:
    return category in TRANSIENT_CATEGORIES
