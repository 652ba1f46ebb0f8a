"""
Outbound pacing for the scholarly search providers.

Each provider owns one ``ProviderPacer``: a token bucket sized to the
provider's published request budget, plus a cool-down window opened when
the provider answers 429 with a ``Retry-After`` hint.
"""

import asyncio
import time
from typing import Callable, Optional

import structlog

logger = structlog.get_logger(__name__)


class ProviderPacer:
    """Async token bucket with a server-requested cool-down.

    ``calls_per_minute`` sets the refill rate; ``burst`` the bucket size
    (defaults to one minute of calls). ``clock`` is injectable for tests.
    """

    def __init__(
        self,
        calls_per_minute: int = 60,
        *,
        burst: Optional[int] = None,
        provider: str = "",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if calls_per_minute <= 0:
            raise ValueError("calls_per_minute must be > 0")
        self.provider = provider
        self._per_second = calls_per_minute / 60.0
        self._capacity = float(burst if burst is not None else calls_per_minute)
        self._tokens = self._capacity
        self._clock = clock
        self._last = clock()
        self._resume_at = 0.0
        self._lock = asyncio.Lock()

    def _top_up(self) -> float:
        now = self._clock()
        if now > self._last:
            self._tokens = min(self._capacity, self._tokens + (now - self._last) * self._per_second)
            self._last = now
        return now

    @property
    def available(self) -> float:
        self._top_up()
        return self._tokens

    @property
    def cooling_down(self) -> bool:
        return self._clock() < self._resume_at

    def defer(self, seconds: Optional[float]) -> None:
        """Hold every caller for *seconds* (a 429 ``Retry-After``)."""
        if not seconds or seconds <= 0:
            return
        self._resume_at = max(self._resume_at, self._clock() + seconds)
        logger.info("Provider asked us to back off", provider=self.provider, seconds=seconds)

    async def acquire(self) -> None:
        """Wait for the cool-down to pass and a token to be free, then take it."""
        while True:
            async with self._lock:
                now = self._top_up()
                if now < self._resume_at:
                    delay = self._resume_at - now
                elif self._tokens >= 1.0:
                    self._tokens -= 1.0
                    return
                else:
                    delay = (1.0 - self._tokens) / self._per_second
            await asyncio.sleep(max(0.001, delay))
