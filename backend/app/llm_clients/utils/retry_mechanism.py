import asyncio
import logging
from functools import wraps
from typing import Callable, Iterator, Tuple, Type

from ..exceptions import LLMServiceError, RateLimitExceededError

logger = logging.getLogger(__name__)


def backoff_delays(attempts: int, delay: float, backoff_factor: float) -> Iterator[float]:
    """Sleep before each retry: ``delay``, ``delay * factor``, ..."""
    current = delay
    for _ in range(attempts - 1):
        yield current
        current *= backoff_factor


def retry(
    attempts: int = 3,
    delay: float = 1.0,
    backoff_factor: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (LLMServiceError, RateLimitExceededError),
):
    """
    Retry an async call with exponential backoff.

    Only ``exceptions`` are retried; the last failure is re-raised once all
    attempts are used up.
    """

    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            delays = backoff_delays(attempts, delay, backoff_factor)
            attempt = 1
            while True:
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    wait = next(delays, None)
                    if wait is None:
                        logger.error(
                            f"{func.__name__} failed after {attempt} attempts: {e}"
                        )
                        raise
                    logger.warning(
                        f"{func.__name__} attempt {attempt}/{attempts} failed: {e}; "
                        f"retrying in {wait:.2f}s"
                    )
                    await asyncio.sleep(wait)
                    attempt += 1

        return wrapper

    return decorator
