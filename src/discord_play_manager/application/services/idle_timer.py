"""One-shot idle timer used to leave voice after the queue runs dry."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from discord_play_manager.domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)


class IdleTimer:
    """Arms a single delayed callback; re-arming replaces the pending one.

    The pending task is released before the callback runs, so the callback
    may disarm or re-arm the timer without cancelling itself.
    """

    def __init__(self, delay: float) -> None:
        self._delay = delay
        self._task: asyncio.Task[None] | None = None

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def armed(self) -> bool:
        return self._task is not None and not self._task.done()

    def arm(self, callback: Callable[[], Awaitable[None]]) -> None:
        self.disarm()
        self._task = asyncio.create_task(self._run(callback), name="idle-timer")
        logger.debug(LogTemplates.IDLE_TIMER_ARMED, self._delay)

    def disarm(self) -> bool:
        """Cancel the pending callback. Returns True if one was pending."""
        task = self._task
        self._task = None
        if task is None or task.done():
            return False
        task.cancel()
        logger.debug(LogTemplates.IDLE_TIMER_DISARMED)
        return True

    async def _run(self, callback: Callable[[], Awaitable[None]]) -> None:
        await asyncio.sleep(self._delay)
        self._task = None
        try:
            await callback()
        except Exception:
            logger.exception(LogTemplates.IDLE_TIMER_CALLBACK_ERROR)
