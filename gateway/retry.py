"""Fixed-delay retry for broker calls."""

import asyncio
from typing import Awaitable, Callable, TypeVar

from loguru import logger

T = TypeVar("T")


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    attempts: int = 3,
    delay_ms: int = 1000,
    description: str = "Request",
    give_up_on: tuple[type[BaseException], ...] = (),
) -> T:
    """Await ``operation()`` up to ``attempts`` times, sleeping ``delay_ms`` between tries.

    The last exception is re-raised unchanged once attempts run out. Callers
    must only wrap work that is safe to repeat; a trade the broker accepted
    but whose reply was lost will be sent again. Exceptions in ``give_up_on``
    are raised at once without another attempt.
    """
    if attempts < 1:
        raise ValueError(f"attempts must be >= 1, got {attempts}")

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except Exception as e:
            if attempt == attempts or isinstance(e, give_up_on):
                raise
            logger.warning(f"{description} failed, retrying... ({attempt}/{attempts}): {e}")
            await asyncio.sleep(delay_ms / 1000)
