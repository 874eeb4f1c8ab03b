"""Port interface for the low-level audio player.

Adapters implement the transport-specific ``play``/``pause``/``unpause``/``stop``
and report transitions through ``_set_status``; this base class provides the
status bookkeeping, the bounded status wait and listener fan-out.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from discord_play_manager.domain.playback.value_objects import EngineStatus
from discord_play_manager.domain.shared.exceptions import PlaybackTimeoutError
from discord_play_manager.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from .stream_resolver import ResolvedStream

logger = logging.getLogger(__name__)

StateListener = Callable[[EngineStatus, EngineStatus, float], None]
ErrorListener = Callable[[Exception], None]
FinishedCallback = Callable[[], Awaitable[None]]


class PlaybackEngine(ABC):
    """Single audio output with observable status transitions."""

    def __init__(self) -> None:
        self._status = EngineStatus.IDLE
        self._waiters: list[tuple[EngineStatus, asyncio.Future[None]]] = []
        self._state_listeners: list[StateListener] = []
        self._error_listeners: list[ErrorListener] = []

    @property
    def status(self) -> EngineStatus:
        return self._status

    @property
    @abstractmethod
    def playback_duration(self) -> float:
        """Seconds of audio played from the current stream."""
        ...

    @abstractmethod
    def play(self, stream: ResolvedStream, on_finished: FinishedCallback) -> None:
        """Start playing *stream*; *on_finished* runs once on natural end of stream."""
        ...

    @abstractmethod
    def pause(self) -> bool: ...

    @abstractmethod
    def unpause(self) -> bool: ...

    @abstractmethod
    def stop(self, force: bool = False) -> bool:
        """Stop the current stream.

        A graceful stop lets the transport drain and report ``IDLE`` on its own;
        a forced stop reports ``IDLE`` immediately.
        """
        ...

    # ── Listeners ──────────────────────────────────────────────────

    def add_state_listener(self, listener: StateListener) -> None:
        self._state_listeners.append(listener)

    def remove_state_listener(self, listener: StateListener) -> None:
        if listener in self._state_listeners:
            self._state_listeners.remove(listener)

    def add_error_listener(self, listener: ErrorListener) -> None:
        self._error_listeners.append(listener)

    def remove_error_listener(self, listener: ErrorListener) -> None:
        if listener in self._error_listeners:
            self._error_listeners.remove(listener)

    # ── Status tracking ────────────────────────────────────────────

    async def wait_for_status(self, status: EngineStatus, timeout: float) -> None:
        """Wait until the engine reports *status*.

        Raises:
            PlaybackTimeoutError: The status was not reached within *timeout* seconds.
        """
        if self._status == status:
            return

        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        entry = (status, future)
        self._waiters.append(entry)
        try:
            async with asyncio.timeout(timeout):
                await future
        except TimeoutError:
            raise PlaybackTimeoutError(status.value, timeout) from None
        finally:
            if entry in self._waiters:
                self._waiters.remove(entry)

    def _set_status(self, status: EngineStatus) -> None:
        old = self._status
        if old == status:
            return
        duration = self.playback_duration
        self._status = status
        logger.debug(LogTemplates.ENGINE_STATE_CHANGED, old.value, status.value)

        for wanted, future in list(self._waiters):
            if wanted == status and not future.done():
                future.set_result(None)

        for listener in list(self._state_listeners):
            try:
                listener(old, status, duration)
            except Exception:
                logger.exception(LogTemplates.ENGINE_LISTENER_ERROR)

    def _emit_error(self, error: Exception) -> None:
        logger.warning(LogTemplates.ENGINE_ERROR, error)
        for listener in list(self._error_listeners):
            try:
                listener(error)
            except Exception:
                logger.exception(LogTemplates.ENGINE_LISTENER_ERROR)
