import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from .config import MAX_RETRIES, RETRY_DELAY

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _backoff(seconds: float):
    await asyncio.sleep(seconds)


async def retry_operation(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = MAX_RETRIES,
    base_delay: float = RETRY_DELAY,
    description: str = "Operation",
) -> T:
    """
    Await ``operation`` until it succeeds, with linear backoff.

    After failed attempt N the executor waits ``N * base_delay`` seconds.
    There is no wait after the final attempt; its exception is re-raised
    as-is so callers see the original error and traceback.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    for attempt in range(1, max_attempts + 1):
        try:
            return await operation()
        except Exception as e:
            if attempt == max_attempts:
                logger.error(f"{description} failed after {max_attempts} attempts.")
                raise
            wait_time = attempt * base_delay
            logger.warning(f"{description} failed (Attempt {attempt}/{max_attempts}): {e}. Retrying in {wait_time}s...")
            await _backoff(wait_time)
