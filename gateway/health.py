"""Connection Health Cache — time-boxed reachability of the MT5 Web API."""

import time
from typing import Awaitable, Callable

from loguru import logger

from gateway.models.mt5 import ConnectionStatus


def now_ms() -> int:
    return int(time.time() * 1000)


class ConnectionMonitor:
    """Caches a positive ping result for ``ttl_ms``.

    A negative result is never served from cache: while disconnected every
    ``check()`` pings again. State updates are not locked; concurrent checks
    may overwrite each other's timestamp.
    """

    def __init__(
        self,
        ping: Callable[[], Awaitable[bool]],
        ttl_ms: int = 30000,
        clock: Callable[[], int] = now_ms,
    ):
        self._ping = ping
        self.ttl_ms = ttl_ms
        self._clock = clock
        self._connected = False
        self._last_check = 0

    async def check(self) -> bool:
        now = self._clock()
        if self._connected and (now - self._last_check) < self.ttl_ms:
            return True

        logger.info("Checking MT5 server connection...")
        try:
            connected = await self._ping()
        except Exception as e:
            self._connected = False
            self._last_check = self._clock()
            logger.error(f"MT5 connection check failed: {e}")
            return False

        self._connected = bool(connected)
        self._last_check = now
        logger.info(f"MT5 connection check result: connected={self._connected}")
        return self._connected

    def status(self) -> ConnectionStatus:
        return ConnectionStatus(connected=self._connected, last_check=self._last_check)
