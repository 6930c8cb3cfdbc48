import asyncio
import time


class RateLimiter:
    """Token bucket limiting outbound API calls. A non-positive rate disables it."""

    def __init__(self, rate: float = 10.0, burst: int = 20):
        self.rate = rate
        self.burst = max(1, burst)
        self._tokens = float(self.burst)
        self._last_refill = time.monotonic()
        self._lock = asyncio.Lock()
        self.waits = 0

    @property
    def enabled(self) -> bool:
        return self.rate > 0

    async def acquire(self) -> None:
        if not self.enabled:
            return
        async with self._lock:
            now = time.monotonic()
            self._tokens = min(self.burst, self._tokens + (now - self._last_refill) * self.rate)
            self._last_refill = now

            if self._tokens >= 1.0:
                self._tokens -= 1.0
                return

            self.waits += 1
            await asyncio.sleep((1.0 - self._tokens) / self.rate)
            self._tokens = 0.0
            self._last_refill = time.monotonic()
