from __future__ import annotations

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from discord_play_manager.application.interfaces.audio_source import AudioSource, StreamInfo
from discord_play_manager.application.interfaces.notification_port import NotificationPort
from discord_play_manager.application.interfaces.playback_engine import (
    FinishedCallback,
    PlaybackEngine,
)
from discord_play_manager.application.interfaces.queue_port import QueueItem
from discord_play_manager.application.interfaces.stream_resolver import (
    ResolvedStream,
    StreamOptions,
    StreamResolver,
)
from discord_play_manager.application.interfaces.voice_connection import VoiceConnection
from discord_play_manager.application.services.play_manager import PlayManager
from discord_play_manager.config.settings import PlaybackSettings
from discord_play_manager.domain.playback.value_objects import ContainerType, EngineStatus
from discord_play_manager.domain.shared.events import DomainEvent, EventBus, reset_event_bus
from discord_play_manager.infrastructure.queue.in_memory_queue import InMemoryQueue

GUILD_ID = 111111111111111111
CHANNEL_ID = 222222222222222222


# ============================================================================
# Fakes
# ============================================================================


class FakeSource(AudioSource):
    """In-memory source; availability can be scripted for live waits."""

    def __init__(
        self,
        url: str = "https://youtube.com/watch?v=test",
        title: str = "Test Track",
        duration: int = 180,
        *,
        available_after: datetime | None = None,
        availability: list[bool] | None = None,
        container_type: ContainerType = ContainerType.WEBM_OPUS,
    ) -> None:
        self._url = url
        self._title = title
        self._duration = duration
        self.available_after_value = available_after
        self.availability = list(availability or [])
        self.container_type = container_type
        self.purge_calls = 0
        self.fetch_calls = 0

    @property
    def url(self) -> str:
        return self._url

    @property
    def title(self) -> str:
        return self._title

    @property
    def duration_seconds(self) -> int:
        return self._duration

    @property
    def available_after(self) -> datetime | None:
        return self.available_after_value

    async def fetch(self, for_seek: bool = False) -> StreamInfo:
        self.fetch_calls += 1
        return StreamInfo(stream_url=f"{self._url}/stream", container_type=self.container_type)

    async def is_available(self) -> bool:
        if self.availability:
            return self.availability.pop(0)
        return False

    def purge_cache(self) -> None:
        self.purge_calls += 1


class FakeEngine(PlaybackEngine):
    """Engine that reports PLAYING as soon as it is started (unless told otherwise)."""

    def __init__(self, *, auto_start: bool = True) -> None:
        super().__init__()
        self.auto_start = auto_start
        self.duration = 0.0
        self.stream: ResolvedStream | None = None
        self.on_finished: FinishedCallback | None = None
        self.play_calls = 0
        self.stop_calls: list[bool] = []

    @property
    def playback_duration(self) -> float:
        return self.duration

    def play(self, stream: ResolvedStream, on_finished: FinishedCallback) -> None:
        self.play_calls += 1
        self.stream = stream
        self.on_finished = on_finished
        self._set_status(EngineStatus.BUFFERING)
        if self.auto_start:
            self._set_status(EngineStatus.PLAYING)

    def pause(self) -> bool:
        if self._status != EngineStatus.PLAYING:
            return False
        self._set_status(EngineStatus.PAUSED)
        return True

    def unpause(self) -> bool:
        if self._status != EngineStatus.PAUSED:
            return False
        self._set_status(EngineStatus.PLAYING)
        return True

    def stop(self, force: bool = False) -> bool:
        self.stop_calls.append(force)
        self.on_finished = None
        self._set_status(EngineStatus.IDLE)
        return True

    async def finish(self) -> None:
        """Simulate the stream reaching its natural end."""
        callback = self.on_finished
        self.on_finished = None
        self._set_status(EngineStatus.IDLE)
        assert callback is not None
        await callback()

    def fail(self, error: Exception) -> None:
        self._emit_error(error)


class FakeConnection(VoiceConnection):
    def __init__(self, engine: FakeEngine, *, bitrate: int = 96000) -> None:
        self.engine = engine
        self.connected = True
        self._bitrate = bitrate
        self.disconnect_calls = 0

    def is_connected(self) -> bool:
        return self.connected

    @property
    def channel_id(self) -> int | None:
        return CHANNEL_ID

    @property
    def bitrate(self) -> int:
        return self._bitrate

    def create_engine(self) -> FakeEngine:
        return self.engine

    async def disconnect(self) -> None:
        self.disconnect_calls += 1
        self.connected = False


class FakeResolver(StreamResolver):
    """Resolver that returns mock streams, or raises queued errors per source URL."""

    def __init__(self) -> None:
        self.calls: list[tuple[AudioSource, StreamOptions]] = []
        self.errors: dict[str, list[Exception]] = {}
        self.always_fail: dict[str, Exception] = {}
        self.streams: list[ResolvedStream] = []

    async def resolve(self, source: AudioSource, options: StreamOptions) -> ResolvedStream:
        self.calls.append((source, options))
        if source.url in self.always_fail:
            raise self.always_fail[source.url]
        pending = self.errors.get(source.url)
        if pending:
            raise pending.pop(0)

        transformer = MagicMock() if options.volume_transform_enabled else None
        stream = ResolvedStream(
            stream=MagicMock(),
            container_type=ContainerType.RAW if transformer else ContainerType.OGG_OPUS,
            cost=3 if transformer else 1,
            volume_transformer=transformer,
        )
        self.streams.append(stream)
        return stream

    def urls(self) -> list[str]:
        return [source.url for source, _ in self.calls]


class EventCollector:
    """Subscribes to event types on a bus and records what is published."""

    def __init__(self, bus: EventBus) -> None:
        self._bus = bus
        self.events: list[DomainEvent] = []

    async def _handle(self, event: DomainEvent) -> None:
        self.events.append(event)

    def watch(self, *event_types: type[DomainEvent]) -> EventCollector:
        for event_type in event_types:
            self._bus.subscribe(event_type, self._handle)
        return self

    def of(self, event_type: type[DomainEvent]) -> list[DomainEvent]:
        return [e for e in self.events if isinstance(e, event_type)]


def make_item(source: AudioSource, requester_id: int | None = None) -> QueueItem:
    return QueueItem(source=source, requested_by_id=requester_id, requested_by_name="tester")


def notified_kinds(notifier: MagicMock) -> list[str]:
    return [c.args[0].value for c in notifier.notify.await_args_list]


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def _reset_global_event_bus():
    reset_event_bus()
    yield
    reset_event_bus()


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def collector(event_bus):
    return EventCollector(event_bus)


@pytest.fixture
def playback_settings():
    """Short timeouts so failure paths run quickly."""
    return PlaybackSettings(
        retry_limit=3,
        play_start_timeout=0.2,
        stop_timeout=0.2,
        finish_timeout=0.2,
        idle_disconnect_seconds=0.05,
        live_poll_interval=0.01,
    )


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def connection(engine):
    return FakeConnection(engine)


@pytest.fixture
def resolver():
    return FakeResolver()


@pytest.fixture
def notifier():
    mock = MagicMock(spec=NotificationPort)
    mock.notify = AsyncMock()
    return mock


@pytest.fixture
def queue():
    return InMemoryQueue()


@pytest.fixture
def manager(queue, resolver, notifier, playback_settings, event_bus, connection):
    play_manager = PlayManager(
        guild_id=GUILD_ID,
        queue=queue,
        stream_resolver=resolver,
        notifier=notifier,
        settings=playback_settings,
        event_bus=event_bus,
    )
    play_manager.attach_connection(connection)
    return play_manager
