"""Linear backoff and async retry helpers for upstream calls."""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from aggregator.config import RETRY_POLICY
from aggregator.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def compute_backoff_seconds(attempt: int, *, base: Optional[float] = None) -> float:
    """Delay to wait after failed attempt ``attempt`` (1-based): ``base * attempt``."""
    if attempt < 1:
        attempt = 1
    base = float(base if base is not None else RETRY_POLICY["base_delay_seconds"])
    return max(base * attempt, 0.0)


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    *,
    max_attempts: Optional[int] = None,
    base_delay: Optional[float] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    description: str = "upstream call",
) -> T:
    """Await ``fn()`` up to ``max_attempts`` times; re-raise the last error.

    No delay follows the final attempt. Cancellation is never retried.
    """
    attempts = int(max_attempts if max_attempts is not None else RETRY_POLICY["max_attempts"])
    if attempts < 1:
        attempts = 1
    attempt = 1
    while True:
        try:
            return await fn()
        except Exception as e:
            if attempt >= attempts:
                raise
            delay = compute_backoff_seconds(attempt, base=base_delay)
            logger.warning(
                "Retry scheduled",
                operation=description,
                attempt=attempt,
                backoff_seconds=round(delay, 2),
                error=str(e) or type(e).__name__,
            )
            await sleep(delay)
            attempt += 1


__all__ = ["compute_backoff_seconds", "retry_async"]
