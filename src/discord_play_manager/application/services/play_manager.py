"""Per-guild Play Manager

Drives one guild's playback lifecycle: turns the head of the queue into a
playing stream, reacts to the stream ending or failing, retries and skips
broken sources, waits for scheduled live streams and leaves voice after the
queue has stayed empty for a while.

Every public operation is safe to call in any state; preconditions that do not
hold make the call a logged no-op, and errors are routed through
``handle_error`` instead of propagating to the caller.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Callable, Coroutine, Sequence
from typing import TYPE_CHECKING, Any

from discord_play_manager.config.settings import PlaybackSettings
from discord_play_manager.domain.playback.entities import (
    NowPlayingInfo,
    PlaybackSession,
    RetryState,
)
from discord_play_manager.domain.playback.value_objects import (
    EngineStatus,
    NotificationKind,
    SessionState,
)
from discord_play_manager.domain.shared.events import (
    DisconnectAttempted,
    Disconnected,
    DomainEvent,
    EventBus,
    HandledError,
    PlayCalled,
    PlaybackDurationReported,
    PlaybackPaused,
    PlaybackResumed,
    PlaybackStopped,
    PlayCompleted,
    PlayFailed,
    PlayPreparing,
    PlayStarted,
    Rewind,
    VolumeChanged,
    get_event_bus,
)
from discord_play_manager.domain.shared.exceptions import (
    PlaybackError,
    PlaybackTimeoutError,
    StreamWorkaroundError,
)
from discord_play_manager.domain.shared.messages import (
    DiscordUIMessages,
    ErrorMessages,
    LogTemplates,
)

from ..interfaces.stream_resolver import StreamOptions
from .cancellation import CancellationToken
from .idle_timer import IdleTimer
from .live_wait import LiveWaitCoordinator

if TYPE_CHECKING:
    from ..interfaces.audio_source import AudioSource
    from ..interfaces.notification_port import NotificationPort
    from ..interfaces.playback_engine import PlaybackEngine
    from ..interfaces.queue_port import QueueItem, QueuePort
    from ..interfaces.stream_resolver import ResolvedStream, StreamResolver
    from ..interfaces.voice_connection import VoiceConnection

logger = logging.getLogger(__name__)

MIN_BITRATE_KBPS = 8


class PlayManager:
    """Playback lifecycle controller for a single guild.

    At most one ``PlaybackSession`` exists at a time. A session that is
    waiting for a live stream, preparing or playing blocks new ``play`` calls.
    """

    def __init__(
        self,
        *,
        guild_id: int,
        queue: QueuePort,
        stream_resolver: StreamResolver,
        notifier: NotificationPort | None = None,
        settings: PlaybackSettings | None = None,
        event_bus: EventBus | None = None,
        live_wait: LiveWaitCoordinator | None = None,
        idle_timer: IdleTimer | None = None,
        effect_args_provider: Callable[[], Sequence[str]] | None = None,
        max_bitrate_kbps: int = 512,
    ) -> None:
        self._guild_id = guild_id
        self._queue = queue
        self._resolver = stream_resolver
        self._notifier = notifier
        self._settings = settings or PlaybackSettings()
        self._event_bus = event_bus or get_event_bus()
        self._live_wait = live_wait or LiveWaitCoordinator(self._settings.live_poll_interval)
        self._idle_timer = idle_timer or IdleTimer(self._settings.idle_disconnect_seconds)
        self._effect_args_provider = effect_args_provider
        self._max_bitrate_kbps = max_bitrate_kbps

        self._connection: VoiceConnection | None = None
        self._engine: PlaybackEngine | None = None
        self._session: PlaybackSession | None = None
        self._live_token: CancellationToken | None = None
        self._retry = RetryState()
        self._volume = self._settings.default_volume
        self._cost = 0
        self._tasks: set[asyncio.Task[Any]] = set()

        logger.info(LogTemplates.PLAY_MANAGER_CREATED, guild_id)

    # ── Read-only state ───────────────────────────────────────────

    @property
    def guild_id(self) -> int:
        return self._guild_id

    @property
    def queue(self) -> QueuePort:
        return self._queue

    @property
    def session(self) -> PlaybackSession | None:
        return self._session

    @property
    def state(self) -> SessionState:
        return self._session.state if self._session is not None else SessionState.IDLE

    @property
    def current_source(self) -> AudioSource | None:
        return self._session.source if self._session is not None else None

    @property
    def is_connected(self) -> bool:
        return self._connection is not None and self._connection.is_connected()

    @property
    def is_waiting(self) -> bool:
        return self._live_token is not None

    @property
    def is_playing(self) -> bool:
        if not self.is_connected:
            return False
        if self.is_waiting:
            return True
        return self._engine is not None and self._engine.status.is_active

    @property
    def is_paused(self) -> bool:
        return (
            self.is_connected
            and self._engine is not None
            and self._engine.status == EngineStatus.PAUSED
        )

    @property
    def preparing(self) -> bool:
        return self.state == SessionState.PREPARING

    @property
    def current_time(self) -> float:
        """Position in the current source, in seconds."""
        engine = self._engine
        if engine is None or not self.is_playing:
            return 0.0
        if engine.status in (EngineStatus.IDLE, EngineStatus.BUFFERING):
            return 0.0
        seek = self._session.seek_seconds if self._session is not None else 0.0
        return seek + engine.playback_duration

    @property
    def cost(self) -> int:
        return self._cost

    @property
    def volume(self) -> int:
        return self._volume

    @property
    def finish_timeout(self) -> bool:
        """Whether the idle disconnect timer is counting down."""
        return self._idle_timer.armed

    @property
    def error_count(self) -> int:
        return self._retry.count

    # ── Connection ────────────────────────────────────────────────

    def attach_connection(self, connection: VoiceConnection) -> None:
        if connection is not self._connection:
            self._detach_engine()
        self._connection = connection
        logger.info(LogTemplates.CONNECTION_ATTACHED, self._guild_id, connection.channel_id)

    # ── Play ──────────────────────────────────────────────────────

    async def play(self, seek_seconds: float = 0, quiet: bool = False) -> PlayManager:
        """Start playing the head of the queue.

        Rejected as a no-op when not connected, when the queue is empty or
        while another session is waiting, preparing or playing.
        """
        self._idle_timer.disarm()
        await self._publish(PlayCalled(guild_id=self._guild_id, seek_seconds=seek_seconds))

        if self._is_bad_condition():
            logger.warning(
                LogTemplates.PLAY_REJECTED,
                self._guild_id,
                self.state.value,
                self.is_connected,
                self._queue.is_empty,
            )
            return self

        logger.info(LogTemplates.PLAY_CALLED, self._guild_id, seek_seconds, quiet)
        item = self._queue.get(0)
        session = PlaybackSession(source=item.source, seek_seconds=seek_seconds)
        self._session = session
        self._cost = 0

        try:
            await self._publish(PlayPreparing(guild_id=self._guild_id, seek_seconds=seek_seconds))

            if item.source.available_after is not None:
                if not await self._wait_for_live(session, item, quiet):
                    return self
            elif not quiet:
                await self._notify(NotificationKind.PREPARING, self._build_info(item))

            await self._start_session(session, item, quiet)
        except Exception as e:
            self._spawn(self.handle_error(e))

        return self

    def _is_bad_condition(self) -> bool:
        if not self.is_connected or self._queue.is_empty:
            return True
        if self.is_playing or self.is_waiting:
            return True
        return self.state.is_busy

    async def _wait_for_live(self, session: PlaybackSession, item: QueueItem, quiet: bool) -> bool:
        if not quiet:
            await self._notify(NotificationKind.WAITING_FOR_LIVE, self._build_info(item))

        session.transition(SessionState.WAITING_FOR_LIVE)
        token = CancellationToken()
        self._live_token = token
        logger.info(LogTemplates.PLAY_WAITING_FOR_LIVE, session.source.title, self._guild_id)

        went_live = await self._live_wait.wait(
            session.source,
            token,
            is_superseded=functools.partial(self._is_superseded, session),
        )

        if self._live_token is token:
            self._live_token = None

        # stop() may land while the availability check is in flight
        canceled = token.cancelled or self._session is not session or not session.is_waiting
        if not went_live or canceled:
            logger.info(LogTemplates.PLAY_WAIT_CANCELED, session.source.title, self._guild_id)
            if session.is_waiting:
                session.transition(SessionState.IDLE)
            if not quiet:
                await self._notify(NotificationKind.WAITING_CANCELED)
            return False

        session.transition(SessionState.PREPARING)
        return True

    def _is_superseded(self, session: PlaybackSession) -> bool:
        if self._session is not session:
            return True
        if self._queue.is_empty:
            return True
        return self._queue.get(0).source is not session.source

    async def _start_session(self, session: PlaybackSession, item: QueueItem, quiet: bool) -> None:
        source = session.source
        duration = source.duration_seconds
        if session.seek_seconds and duration and duration <= session.seek_seconds:
            logger.info(
                LogTemplates.PLAY_SEEK_CLAMPED, session.seek_seconds, source.title, duration
            )
            session.seek_seconds = 0.0

        options = StreamOptions(
            effect_args=tuple(self._effect_args()),
            seek_seconds=session.seek_seconds,
            volume_transform_enabled=self._volume != 100,
            bitrate=self._bitrate_kbps(),
        )
        stream = await self._resolver.resolve(source, options)

        if not self.is_connected:
            logger.warning(LogTemplates.PLAY_CONNECTION_LOST, source.title, self._guild_id)
            self._defer_release(stream)
            if session.is_preparing:
                session.transition(SessionState.IDLE)
            return
        if self._session is not session:
            logger.info(LogTemplates.PLAY_SUPERSEDED, source.title, self._guild_id)
            self._defer_release(stream)
            return

        session.stream = stream
        session.cost = stream.cost
        self._cost = stream.cost

        engine = self._prepare_engine()
        engine.play(stream, functools.partial(self.on_stream_finished, session))
        if stream.inline_volume:
            stream.set_volume(self._volume)

        try:
            await engine.wait_for_status(EngineStatus.PLAYING, self._settings.play_start_timeout)
        except PlaybackTimeoutError:
            if self._session is session and self.is_connected:
                raise
            logger.info(LogTemplates.PLAY_SUPERSEDED, source.title, self._guild_id)
            return
        if self._session is not session or not session.is_preparing:
            logger.info(LogTemplates.PLAY_SUPERSEDED, source.title, self._guild_id)
            return

        session.transition(SessionState.PLAYING)
        await self._publish(
            PlayStarted(guild_id=self._guild_id, source_url=source.url, source_title=source.title)
        )
        logger.info(
            LogTemplates.PLAY_STARTED,
            source.title,
            self._guild_id,
            stream.container_type.value,
            stream.cost,
        )

        if not quiet:
            await self._notify(NotificationKind.NOW_PLAYING, self._build_info(item))

        if self._queue.mix_playlist_enabled:
            try:
                await self._queue.prepare_next_mix_item()
            except Exception:
                logger.exception(LogTemplates.PLAY_MIX_PREPARE_FAILED, self._guild_id)

    def _effect_args(self) -> Sequence[str]:
        if self._effect_args_provider is None:
            return ()
        return self._effect_args_provider()

    def _bitrate_kbps(self) -> int | None:
        if self._connection is None:
            return None
        bitrate = self._connection.bitrate
        if not bitrate:
            return None
        return max(MIN_BITRATE_KBPS, min(bitrate // 1000, self._max_bitrate_kbps))

    def _prepare_engine(self) -> PlaybackEngine:
        if self._engine is None:
            if self._connection is None:
                raise PlaybackError(ErrorMessages.NO_ENGINE)
            engine = self._connection.create_engine()
            engine.add_state_listener(self._on_engine_state)
            engine.add_error_listener(self._on_engine_error)
            self._engine = engine
        return self._engine

    def _detach_engine(self) -> None:
        engine = self._engine
        self._engine = None
        if engine is not None:
            engine.remove_state_listener(self._on_engine_state)
            engine.remove_error_listener(self._on_engine_error)

    def _on_engine_state(self, old: EngineStatus, new: EngineStatus, duration: float) -> None:
        if old == EngineStatus.PLAYING and new == EngineStatus.IDLE:
            source = self.current_source
            error_count = self._retry.count_for(source.url) if source is not None else 0
            self._spawn(
                self._publish(
                    PlaybackDurationReported(
                        guild_id=self._guild_id,
                        duration_seconds=max(duration, 0.0),
                        error_count=error_count,
                    )
                )
            )

    def _on_engine_error(self, error: Exception) -> None:
        self._spawn(self.handle_error(error))

    # ── Stop / disconnect ─────────────────────────────────────────

    async def stop(self, force: bool = False, wait: bool = False) -> PlayManager:
        """Stop playback and cancel any pending live wait.

        With *wait*, blocks until the engine reports idle, force-stopping it
        if that takes longer than the configured stop timeout.
        """
        logger.info(LogTemplates.STOP_CALLED, self._guild_id, force, wait)
        self._cancel_live_wait()

        session = self._session
        if session is not None and session.is_playing:
            session.transition(SessionState.IDLE)
        self._cost = 0

        if not self.is_connected:
            return self

        engine = self._engine
        if engine is not None:
            engine.unpause()
            engine.stop(force)
            if wait:
                try:
                    await engine.wait_for_status(EngineStatus.IDLE, self._settings.stop_timeout)
                except PlaybackTimeoutError:
                    logger.warning(LogTemplates.STOP_FORCED, self._guild_id)
                    engine.stop(force=True)

        await self._publish(PlaybackStopped(guild_id=self._guild_id))
        return self

    def _cancel_live_wait(self) -> None:
        token = self._live_token
        self._live_token = None
        if token is not None:
            token.cancel("stop")
        session = self._session
        if session is not None and session.is_waiting:
            session.transition(SessionState.IDLE)

    async def disconnect(self) -> PlayManager:
        await self.stop()
        self._idle_timer.disarm()
        await self._publish(DisconnectAttempted(guild_id=self._guild_id))

        connection = self._connection
        if connection is not None:
            channel_id = connection.channel_id
            await connection.disconnect()
            logger.info(LogTemplates.DISCONNECTED, channel_id, self._guild_id)
            await self._publish(Disconnected(guild_id=self._guild_id, channel_id=channel_id))
        else:
            logger.warning(LogTemplates.DISCONNECT_NO_CONNECTION, self._guild_id)

        self._release_stream(self._session)
        self._session = None
        self._detach_engine()
        self._connection = None
        return self

    # ── Controls ──────────────────────────────────────────────────

    async def pause(self, requester_id: int | None = None) -> PlayManager:
        logger.info(LogTemplates.PAUSE_CALLED, self._guild_id, requester_id)
        await self._publish(PlaybackPaused(guild_id=self._guild_id, requester_id=requester_id))
        if self._engine is None:
            logger.debug(LogTemplates.NO_ENGINE, self._guild_id, "pause")
            return self
        self._engine.pause()
        if self._session is not None:
            self._session.paused_by = requester_id
        return self

    async def resume(self, requester_id: int | None = None) -> PlayManager:
        """Unpause, unless someone other than the pausing member asks."""
        logger.info(LogTemplates.RESUME_CALLED, self._guild_id, requester_id)
        await self._publish(PlaybackResumed(guild_id=self._guild_id, requester_id=requester_id))
        if self._engine is None:
            logger.debug(LogTemplates.NO_ENGINE, self._guild_id, "resume")
            return self

        paused_by = self._session.paused_by if self._session is not None else None
        if requester_id is not None and requester_id != paused_by:
            logger.info(LogTemplates.RESUME_REFUSED, requester_id, self._guild_id, paused_by)
            return self

        self._engine.unpause()
        if self._session is not None:
            self._session.paused_by = None
        return self

    async def rewind(self) -> PlayManager:
        logger.info(LogTemplates.REWIND_CALLED, self._guild_id)
        await self._publish(Rewind(guild_id=self._guild_id))
        await self.stop(wait=True)
        await self.play()
        return self

    async def set_volume(self, volume: int) -> bool:
        """Store *volume* (percent) and apply it to the playing stream if possible.

        Returns:
            True if the change was applied live, False if it only takes effect
            from the next stream.
        """
        self._volume = volume
        session = self._session
        stream = session.stream if session is not None else None
        applied = stream is not None and stream.set_volume(volume)
        await self._publish(VolumeChanged(guild_id=self._guild_id, volume=volume))
        logger.info(LogTemplates.VOLUME_CHANGED, volume, self._guild_id, applied)
        return applied

    # ── Stream end ────────────────────────────────────────────────

    async def on_stream_finished(self, session: PlaybackSession | None = None) -> None:
        """Handle the engine reaching the natural end of a stream."""
        if session is not None and session is not self._session:
            logger.debug(LogTemplates.STREAM_FINISHED_STALE, self._guild_id)
            return

        current = self._session
        if current is None or not current.is_playing:
            if current is not None and current.is_preparing:
                error = PlaybackError(ErrorMessages.STREAM_FINISHED_WHILE_PREPARING)
                await self.handle_error(error)
            else:
                logger.debug(LogTemplates.STREAM_FINISHED_IGNORED, self._guild_id, self.state.value)
            return

        current.transition(SessionState.COMPLETED)
        logger.info(LogTemplates.STREAM_FINISHED, self._guild_id)

        engine = self._engine
        if self.is_connected and engine is not None and engine.status == EngineStatus.PLAYING:
            try:
                await engine.wait_for_status(EngineStatus.IDLE, self._settings.finish_timeout)
            except PlaybackTimeoutError:
                logger.warning(LogTemplates.STREAM_FINISH_TIMEOUT, self._guild_id)
                await self.stop(force=True)

        await self._publish(PlayCompleted(guild_id=self._guild_id, source_url=current.source_url))
        self._retry.reset()
        self._cost = 0
        self._release_stream(current)

        if self._queue.loop_enabled:
            await self.play()
            return
        if self._queue.once_loop_enabled:
            self._queue.once_loop_enabled = False
            await self.play()
            return

        await self._queue.next()
        if self._queue.is_empty:
            await self.on_queue_empty()
        else:
            await self.play()

    async def on_queue_empty(self) -> None:
        logger.info(LogTemplates.QUEUE_EMPTY, self._guild_id)
        self._release_stream(self._session)
        await self._notify(NotificationKind.QUEUE_EMPTY)
        self._idle_timer.arm(self._on_idle_timeout)

    async def _on_idle_timeout(self) -> None:
        logger.info(LogTemplates.IDLE_TIMEOUT_EXPIRED, self._guild_id)
        if not self.is_playing:
            await self._notify(NotificationKind.QUEUE_EMPTY_EXITING)
        await self.disconnect()

    # ── Failure ───────────────────────────────────────────────────

    async def handle_error(self, error: Exception) -> None:
        """Log *error* and hand it to the retry logic."""
        logger.error(LogTemplates.HANDLED_ERROR, self._guild_id, error)
        await self._publish(
            HandledError(
                guild_id=self._guild_id,
                error_type=type(error).__name__,
                message=str(error),
            )
        )

        if isinstance(error, StreamWorkaroundError) or getattr(error, "type", None) == "workaround":
            await self.on_stream_failed(quiet=True)
            return

        source = self.current_source
        failures = self._retry.count_for(source.url) if source is not None else 0
        will_skip = failures + 1 >= self._settings.retry_limit
        await self._notify(NotificationKind.PLAYBACK_FAILED, self._build_info(will_skip=will_skip))
        await self.on_stream_failed()

    async def on_stream_failed(self, quiet: bool = False) -> None:
        """Count a failure, then retry the same source or skip past it."""
        session = self._session
        if session is None:
            logger.debug(LogTemplates.STREAM_FINISHED_IGNORED, self._guild_id, self.state.value)
            return

        if session.state.can_transition_to(SessionState.FAILED):
            session.transition(SessionState.FAILED)
        await self._publish(PlayFailed(guild_id=self._guild_id, source_url=session.source_url))
        self._cost = 0
        self._release_stream(session)

        if self._retry.record_failure(session.source_url, quiet=quiet):
            session.source.purge_cache()
        logger.warning(LogTemplates.STREAM_FAILED, self._guild_id, self._retry.count)

        await self.stop(force=True)

        if self._retry.count >= self._settings.retry_limit:
            logger.warning(LogTemplates.RETRY_LIMIT_REACHED, session.source.title, self._guild_id)
            if self._queue.loop_enabled:
                self._queue.loop_enabled = False
            if self._queue.length == 1 and self._queue.queue_loop_enabled:
                self._queue.queue_loop_enabled = False
            await self._queue.next()
            if self._queue.is_empty:
                await self.on_queue_empty()
                return

        await self.play(0, quiet)

    # ── Lifecycle ─────────────────────────────────────────────────

    async def wait_until_settled(self) -> None:
        """Wait for background error handling and event publishing to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel background work and leave voice."""
        self._idle_timer.disarm()
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        if self._connection is not None:
            await self.disconnect()
        logger.info(LogTemplates.PLAY_MANAGER_REMOVED, self._guild_id)

    # ── Helpers ───────────────────────────────────────────────────

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _publish(self, event: DomainEvent) -> None:
        await self._event_bus.publish(event)

    async def _notify(self, kind: NotificationKind, payload: NowPlayingInfo | None = None) -> None:
        if self._notifier is None:
            return
        try:
            await self._notifier.notify(kind, payload)
        except Exception:
            logger.exception(LogTemplates.NOTIFICATION_FAILED, kind.value, self._guild_id)

    def _release_stream(self, session: PlaybackSession | None) -> None:
        if session is None or session.stream is None:
            return
        stream = session.stream
        session.stream = None
        self._defer_release(stream)

    def _defer_release(self, stream: ResolvedStream) -> None:
        asyncio.get_running_loop().call_soon(self._finalize_stream, stream)

    def _finalize_stream(self, stream: ResolvedStream) -> None:
        stream.release()
        logger.debug(LogTemplates.STREAM_RELEASED, self._guild_id)

    def _build_info(
        self, item: QueueItem | None = None, *, will_skip: bool = False
    ) -> NowPlayingInfo | None:
        source = item.source if item is not None else self.current_source
        if source is None:
            return None

        queue = self._queue
        if item is None and not queue.is_empty and queue.get(0).source is source:
            item = queue.get(0)

        if queue.loop_enabled:
            next_title: str | None = source.title
        elif queue.length >= 2:
            next_title = queue.get(1).source.title
        elif queue.queue_loop_enabled:
            next_title = source.title
        else:
            next_title = None

        duration = max(source.duration_seconds, 0)
        return NowPlayingInfo(
            title=source.title or source.url or DiscordUIMessages.UNKNOWN,
            url=source.url,
            duration_seconds=duration,
            is_live=source.is_live_stream,
            thumbnail_url=source.thumbnail_url,
            requested_by_id=item.requested_by_id if item is not None else None,
            requested_by_name=item.requested_by_name if item is not None else None,
            next_title=next_title,
            remaining_count=max(queue.length - 1, 0),
            remaining_seconds=max(queue.length_seconds - duration, 0),
            loop_enabled=queue.loop_enabled,
            mix_playlist_enabled=queue.mix_playlist_enabled,
            will_skip=will_skip,
        )
