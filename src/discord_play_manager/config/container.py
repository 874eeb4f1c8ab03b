"""Dependency Injection Container

Builds the shared adapters lazily from settings and keeps one play manager
per guild. Components are created on demand and cached for reuse.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from ..application.interfaces.notification_port import NotificationPort
    from ..application.interfaces.queue_port import QueuePort
    from ..application.interfaces.stream_resolver import StreamResolver
    from ..application.services.play_manager import PlayManager
    from ..domain.shared.events import EventBus
    from ..infrastructure.audio.ytdlp_source import YtDlpExtractor
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    Shared adapters are lazily initialized when first accessed; play managers
    are registered per guild and torn down through ``remove_play_manager``.
    """

    settings: Settings

    # Shared infrastructure
    _stream_resolver: StreamResolver | None = None
    _ytdlp_extractor: YtDlpExtractor | None = None
    _event_bus: EventBus | None = None

    # Per-guild controllers
    _play_managers: dict[int, PlayManager] = field(default_factory=dict)

    # === Shared infrastructure ===

    @property
    def event_bus(self) -> EventBus:
        """Get the event bus shared by every guild."""
        if self._event_bus is None:
            from ..domain.shared.events import get_event_bus

            self._event_bus = get_event_bus()
        return self._event_bus

    @property
    def stream_resolver(self) -> StreamResolver:
        """Get the FFmpeg stream resolver."""
        if self._stream_resolver is None:
            from ..infrastructure.audio.ffmpeg_resolver import FFmpegStreamResolver

            self._stream_resolver = FFmpegStreamResolver(self.settings.audio)
        return self._stream_resolver

    @property
    def ytdlp_extractor(self) -> YtDlpExtractor:
        """Get the yt-dlp extractor used to build audio sources."""
        if self._ytdlp_extractor is None:
            from ..infrastructure.audio.ytdlp_source import YtDlpExtractor

            self._ytdlp_extractor = YtDlpExtractor(self.settings.audio)
        return self._ytdlp_extractor

    # === Play managers ===

    def create_play_manager(
        self,
        guild_id: int,
        *,
        queue: QueuePort | None = None,
        notifier: NotificationPort | None = None,
        effect_args_provider: Callable[[], Sequence[str]] | None = None,
    ) -> PlayManager:
        """Create (or return the existing) play manager for *guild_id*."""
        existing = self._play_managers.get(guild_id)
        if existing is not None:
            return existing

        from ..application.services.play_manager import PlayManager
        from ..infrastructure.queue.in_memory_queue import InMemoryQueue

        manager = PlayManager(
            guild_id=guild_id,
            queue=queue or InMemoryQueue(),
            stream_resolver=self.stream_resolver,
            notifier=notifier,
            settings=self.settings.playback,
            event_bus=self.event_bus,
            effect_args_provider=effect_args_provider,
            max_bitrate_kbps=self.settings.audio.max_bitrate_kbps,
        )
        self._play_managers[guild_id] = manager
        return manager

    def get_play_manager(self, guild_id: int) -> PlayManager:
        manager = self._play_managers.get(guild_id)
        if manager is None:
            raise KeyError(ErrorMessages.NO_PLAY_MANAGER.format(guild_id=guild_id))
        return manager

    def has_play_manager(self, guild_id: int) -> bool:
        return guild_id in self._play_managers

    async def remove_play_manager(self, guild_id: int) -> bool:
        manager = self._play_managers.pop(guild_id, None)
        if manager is None:
            return False
        await manager.aclose()
        return True

    async def shutdown(self) -> None:
        """Close every play manager."""
        for guild_id in list(self._play_managers):
            await self.remove_play_manager(guild_id)
        logger.info(LogTemplates.CONTAINER_SHUTDOWN)


def create_container(settings: Settings | None = None) -> Container:
    """Create a container, loading settings from the environment if not given."""
    if settings is None:
        from .settings import get_settings

        settings = get_settings()

    return Container(settings=settings)


def bootstrap(settings: Settings | None = None) -> Container:
    """Configure logging from settings and build the container.

    Call once at startup, before any play manager is created. ``debug``
    forces DEBUG regardless of ``log_level``.
    """
    if settings is None:
        from .settings import get_settings

        settings = get_settings()

    from ..utils.logging import setup_logging

    log_level = "DEBUG" if settings.debug else settings.log_level
    setup_logging(log_level)
    logger.info(LogTemplates.CONTAINER_BOOTSTRAPPED, settings.environment, log_level)

    return create_container(settings)
