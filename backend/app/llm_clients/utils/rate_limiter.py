import asyncio
import time
from collections import defaultdict
from functools import wraps
import logging

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Token bucket limiting a decorated coroutine to ``rate`` calls per
    ``period`` seconds. Buckets are kept per provider: the key is the
    ``provider`` attribute of the client the method is bound to.
    """

    def __init__(self, rate: int, period: int = 60):
        self.rate = rate
        self.period = period
        self.interval = period / rate  # Time between tokens
        self._tokens = defaultdict(lambda: float(rate))
        self._last_refill = defaultdict(time.monotonic)
        self._lock = asyncio.Lock()

    def _refill(self, key: str):
        now = time.monotonic()
        elapsed = now - self._last_refill[key]
        if elapsed > 0:
            self._tokens[key] = min(
                self.rate, self._tokens[key] + elapsed / self.interval
            )
            self._last_refill[key] = now

    async def wait_for_token(self, key: str):
        while True:
            async with self._lock:
                self._refill(key)
                if self._tokens[key] >= 1:
                    self._tokens[key] -= 1
                    return
            await asyncio.sleep(self.interval / 2)

    def __call__(self, func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            key = getattr(args[0], "provider", "default") if args else "default"
            logger.debug(f"Waiting for {key} rate limit token")
            await self.wait_for_token(key)
            return await func(*args, **kwargs)

        return wrapper
