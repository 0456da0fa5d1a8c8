"""
Periodic eviction of stale cooldown entries.

Runs on its own timer, independent of the scan loop, so the cooldown table
also shrinks while scanning is idle. It only ever removes expired entries
and never touches unique results.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional

from algorithms.dedup.cooldown import CooldownFilter

logger = logging.getLogger(__name__)


def wall_clock_ms() -> float:
    return time.time() * 1000.0


class MemoryReaper:
    def __init__(
        self,
        cooldown: CooldownFilter,
        period_ms: float = 30000,
        ttl_ms: float = 10000,
        clock: Callable[[], float] = wall_clock_ms,
    ):
        if period_ms <= 0:
            raise ValueError(f"period_ms must be positive, got {period_ms}")
        self._cooldown = cooldown
        self._period_ms = period_ms
        self._ttl_ms = ttl_ms
        self._clock = clock
        self._task: Optional[asyncio.Task] = None
        self.sweeps = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep(self, now: Optional[float] = None) -> int:
        """Remove cooldown entries older than the TTL. Returns count removed."""
        if now is None:
            now = self._clock()
        removed = self._cooldown.sweep(now, self._ttl_ms)
        self.sweeps += 1
        logger.debug(f"Memory cleanup: removed {removed}, remaining {len(self._cooldown)}")
        return removed

    async def run(self) -> None:
        while True:
            await asyncio.sleep(self._period_ms / 1000.0)
            self.sweep()

    def start(self) -> None:
        """Schedule the periodic sweep on the running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self.run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
