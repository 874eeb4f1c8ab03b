"""
Discord Playback Engine

PlaybackEngine adapter over a discord.py ``VoiceClient``. discord.py reads
audio and runs ``after`` callbacks on its own player thread; every status
change is marshalled back onto the event loop before it is observed.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import discord

from discord_play_manager.application.interfaces.playback_engine import (
    FinishedCallback,
    PlaybackEngine,
)
from discord_play_manager.domain.playback.value_objects import EngineStatus
from discord_play_manager.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...application.interfaces.stream_resolver import ResolvedStream

logger = logging.getLogger(__name__)

FRAME_DURATION: float = discord.opus.Encoder.FRAME_LENGTH / 1000


class FrameCountingSource(discord.AudioSource):
    """Wraps an audio source and counts the 20 ms frames handed to discord.py.

    ``on_first_frame`` is called from the player thread when the first
    non-empty frame is read.
    """

    def __init__(self, inner: discord.AudioSource, on_first_frame: Callable[[], Any]) -> None:
        self._inner = inner
        self._on_first_frame = on_first_frame
        self.frames = 0

    def read(self) -> bytes:
        data = self._inner.read()
        if data:
            if self.frames == 0:
                self._on_first_frame()
            self.frames += 1
        return data

    def is_opus(self) -> bool:
        return self._inner.is_opus()

    def cleanup(self) -> None:
        self._inner.cleanup()


class DiscordPlaybackEngine(PlaybackEngine):
    """Plays resolved streams through one voice client.

    ``on_finished`` runs only when a stream reaches its natural end: a stream
    that was stopped or replaced never reports completion.
    """

    def __init__(
        self,
        voice_client: discord.VoiceClient,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        super().__init__()
        self._voice_client = voice_client
        self._loop = loop or asyncio.get_running_loop()
        self._current: FrameCountingSource | None = None
        self._generation = 0
        self._stop_requested = False
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def playback_duration(self) -> float:
        if self._current is None:
            return 0.0
        return self._current.frames * FRAME_DURATION

    def play(self, stream: ResolvedStream, on_finished: FinishedCallback) -> None:
        vc = self._voice_client
        if vc.is_playing() or vc.is_paused():
            self._generation += 1
            vc.stop()

        self._generation += 1
        generation = self._generation
        self._stop_requested = False

        tracked = FrameCountingSource(
            stream.stream,
            lambda: self._loop.call_soon_threadsafe(self._on_first_frame, generation),
        )
        self._current = tracked
        self._set_status(EngineStatus.BUFFERING)

        def after(error: Exception | None) -> None:
            self._loop.call_soon_threadsafe(self._on_after, generation, error, on_finished)

        vc.play(tracked, after=after)
        logger.debug(LogTemplates.ENGINE_PLAY, stream.container_type.value)

    def pause(self) -> bool:
        if not self._voice_client.is_playing():
            return False
        self._voice_client.pause()
        self._set_status(EngineStatus.PAUSED)
        return True

    def unpause(self) -> bool:
        if not self._voice_client.is_paused():
            return False
        self._voice_client.resume()
        frames = self._current.frames if self._current is not None else 0
        self._set_status(EngineStatus.PLAYING if frames else EngineStatus.BUFFERING)
        return True

    def stop(self, force: bool = False) -> bool:
        if self._current is None and self._status == EngineStatus.IDLE:
            return False

        self._stop_requested = True
        self._voice_client.stop()

        if force:
            self._generation += 1
            self._set_status(EngineStatus.IDLE)
            self._current = None
        return True

    # ── Player thread callbacks (run on the loop) ──────────────────

    def _on_first_frame(self, generation: int) -> None:
        if generation == self._generation and self._status == EngineStatus.BUFFERING:
            self._set_status(EngineStatus.PLAYING)

    def _on_after(
        self, generation: int, error: Exception | None, on_finished: FinishedCallback
    ) -> None:
        if generation != self._generation:
            logger.debug(LogTemplates.ENGINE_STALE_AFTER)
            return

        natural_end = not self._stop_requested
        self._set_status(EngineStatus.IDLE)
        self._current = None

        if error is not None:
            self._emit_error(error)
            return
        if natural_end:
            task = self._loop.create_task(self._run_finished(on_finished))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _run_finished(self, on_finished: FinishedCallback) -> None:
        try:
            await on_finished()
        except Exception:
            logger.exception(LogTemplates.ENGINE_FINISHED_CALLBACK_ERROR)
