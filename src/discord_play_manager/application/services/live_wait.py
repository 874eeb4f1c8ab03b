"""Cancelable wait for scheduled live streams to go live."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from discord_play_manager.domain.shared.datetime_utils import seconds_until
from discord_play_manager.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ..interfaces.audio_source import AudioSource
    from .cancellation import CancellationToken

logger = logging.getLogger(__name__)

MIN_POLL_INTERVAL: float = 0.5


class LiveWaitCoordinator:
    """Polls a not-yet-live source until it becomes available.

    Between checks it sleeps on the cancellation token, never longer than the
    poll interval and never past the source's announced start time.
    """

    def __init__(self, poll_interval: float = 10.0) -> None:
        self._poll_interval = poll_interval

    async def wait(
        self,
        source: AudioSource,
        token: CancellationToken,
        is_superseded: Callable[[], bool] | None = None,
    ) -> bool:
        """Wait until *source* is live.

        Args:
            source: The scheduled live source.
            token: Cancels the wait; checked before each poll.
            is_superseded: Polled on every tick; a True result cancels *token*.

        Returns:
            True once the source is available, False if the wait was cancelled.
        """
        while not token.cancelled:
            if is_superseded is not None and is_superseded():
                logger.info(LogTemplates.LIVE_WAIT_SUPERSEDED, source.title)
                token.cancel("superseded")
                break

            try:
                if await source.is_available():
                    if token.cancelled:
                        break
                    logger.info(LogTemplates.LIVE_WAIT_READY, source.title)
                    return True
            except Exception as e:
                logger.warning(LogTemplates.LIVE_WAIT_CHECK_FAILED, source.title, e)

            delay = self._next_delay(source)
            logger.debug(LogTemplates.LIVE_WAIT_POLL, source.title, delay)
            if await token.sleep(delay):
                break

        return False

    def _next_delay(self, source: AudioSource) -> float:
        available_after = source.available_after
        if available_after is None:
            return self._poll_interval

        remaining = seconds_until(available_after)
        if remaining <= 0:
            return self._poll_interval
        return min(self._poll_interval, max(remaining, MIN_POLL_INTERVAL))
