"""
Session duration timer.

Counts whole elapsed intervals (seconds by default) in an asyncio task
while the session is live. Elapsed time never decreases within one
session; only `reset()` returns it to zero.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional


__all__ = ["SessionTimer", "format_duration"]


logger = logging.getLogger(__name__)


def format_duration(seconds: int) -> str:
    """Format seconds as m:ss, e.g. 75 -> '1:15'."""
    mins, secs = divmod(max(0, int(seconds)), 60)
    return f"{mins}:{secs:02d}"


class SessionTimer:
    """
    Ticking elapsed-seconds counter.

    Attributes:
        interval: Seconds between ticks.
        on_tick: Optional callback receiving the new elapsed value.
    """

    def __init__(
        self,
        interval: float = 1.0,
        on_tick: Optional[Callable[[int], None]] = None,
    ) -> None:
        self.interval = interval
        self.on_tick = on_tick
        self._elapsed = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def elapsed(self) -> int:
        return self._elapsed

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start ticking. No-op if already running, so a second start never double-counts."""
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug("Timer started at %d", self._elapsed)

    def stop(self) -> None:
        """Stop ticking; elapsed keeps its value."""
        if self._task is not None:
            self._task.cancel()
            self._task = None
            logger.debug("Timer stopped at %d", self._elapsed)

    def reset(self) -> None:
        """Stop and zero the counter for a brand-new session."""
        self.stop()
        self._elapsed = 0

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self._elapsed += 1
            if self.on_tick is not None:
                try:
                    self.on_tick(self._elapsed)
                except Exception as e:  # noqa: BLE001 - a listener must not stop the clock
                    logger.warning("Timer tick listener failed: %s", e)
