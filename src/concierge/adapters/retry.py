"""Transient model-error retry with exponential backoff and jitter.

Timeouts, dropped connections, rate limits and 5xx responses are retried;
anything else (bad request, auth failure, programming errors) is raised
immediately so the orchestrator can fall back without waiting.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_EXCEPTIONS: tuple[type[Exception], ...] = (TimeoutError, ConnectionError)

TRANSIENT_STATUS_CODES: frozenset[int] = frozenset({429, 500, 502, 503, 504})

# Provider SDK errors that do not subclass the builtins above
# (openai.APIConnectionError, anthropic.APITimeoutError, ...).
TRANSIENT_ERROR_NAMES: frozenset[str] = frozenset({
    "APIConnectionError",
    "APITimeoutError",
    "RateLimitError",
    "InternalServerError",
})


def is_transient(exc: BaseException) -> bool:
    """Return True if exc looks like a transient provider or network failure."""
    if isinstance(exc, TRANSIENT_EXCEPTIONS):
        return True
    if type(exc).__name__ in TRANSIENT_ERROR_NAMES:
        return True

    status = getattr(exc, "status_code", None) or getattr(exc, "status", None)
    return status is not None and status in TRANSIENT_STATUS_CODES


async def retry_with_backoff(
    coro_factory: Callable[[], Awaitable[T]],
    max_retries: int = 2,
    base_delay: float = 0.5,
    max_delay: float = 10.0,
) -> tuple[T, list[str]]:
    """Await ``coro_factory()`` and retry it on transient errors.

    Uses exponential backoff with full jitter.

    Args:
        coro_factory: Callable that creates a fresh awaitable each attempt.
        max_retries: Retry attempts after the first call.
        base_delay: Initial backoff delay in seconds.
        max_delay: Cap on a single backoff delay in seconds.

    Returns:
        Tuple of (result, names of the transient errors that were retried).

    Raises:
        Exception: The first non-transient error, or the last transient one
            once retries are exhausted.
    """
    retried: list[str] = []

    for attempt in range(max_retries + 1):
        try:
            return await coro_factory(), retried
        except Exception as exc:
            if not is_transient(exc) or attempt == max_retries:
                raise
            retried.append(type(exc).__name__)
            delay = random.uniform(0, min(base_delay * (2 ** attempt), max_delay))  # noqa: S311
            logger.debug(
                "Transient %s on attempt %d, retrying in %.2fs",
                type(exc).__name__, attempt + 1, delay,
            )
            await asyncio.sleep(delay)

    raise RuntimeError("Retry loop exited unexpectedly")  # pragma: no cover
