"""
Bounded retry with a fixed delay for collaborator calls.

Only ``TransportError`` with ``retryable=True`` is retried. Exhausting the
attempts, or hitting a non-retryable transport failure, escalates to
``GenerationError`` chained from the last transport error.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx
import structlog

from autobdd.errors import GenerationError, TransportError

logger = structlog.get_logger(__name__)

T = TypeVar("T")

RETRYABLE_STATUS_CODES = frozenset({408, 429})


def transport_error_from(exc: httpx.HTTPError, target: str) -> TransportError:
    """Translate an httpx failure into a TransportError."""
    if isinstance(exc, httpx.TimeoutException):
        return TransportError(f"Timed out talking to {target}: {exc}")
    if isinstance(exc, httpx.ConnectError):
        return TransportError(f"Connection refused by {target}: {exc}")
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        retryable = status >= 500 or status in RETRYABLE_STATUS_CODES
        return TransportError(f"{target} answered HTTP {status}", retryable=retryable)
    return TransportError(f"Transport failure talking to {target}: {exc}")


async def with_retries(
    operation: Callable[[], Awaitable[T]],
    *,
    description: str,
    max_retries: int,
    retry_delay_ms: int,
) -> T:
    """
    Run ``operation`` with up to ``max_retries`` retries.

    Args:
        operation: Zero-argument coroutine factory
        description: Human-readable name used in logs and errors
        max_retries: Retries after the first attempt
        retry_delay_ms: Fixed delay between attempts

    Returns:
        The operation's result

    Raises:
        GenerationError: When attempts are exhausted or the failure is not retryable
    """
    last_error: TransportError | None = None
    attempts = max_retries + 1

    for attempt in range(attempts):
        try:
            return await operation()
        except TransportError as e:
            last_error = e
            if not e.retryable:
                break
            if attempt < max_retries:
                logger.warning(
                    "Transport failure, retrying",
                    operation=description,
                    attempt=attempt + 1,
                    max_attempts=attempts,
                    delay_ms=retry_delay_ms,
                    error=str(e),
                )
                await asyncio.sleep(retry_delay_ms / 1000)

    logger.error("Giving up after transport failures", operation=description, error=str(last_error))
    raise GenerationError(f"{description} failed: {last_error}") from last_error
