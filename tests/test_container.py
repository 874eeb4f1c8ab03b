"""
Unit Tests for Dependency Injection Container

Tests for:
- Container initialization with settings
- Lazy initialization and caching of shared adapters
- Per-guild play manager registration and lookup
- Lifecycle: removing managers and shutdown
"""

from unittest.mock import AsyncMock, patch

import pytest

from discord_play_manager.application.services import PlayManager
from discord_play_manager.config.container import Container, bootstrap, create_container
from discord_play_manager.config.settings import AudioSettings, PlaybackSettings, Settings
from discord_play_manager.domain.shared.events import get_event_bus
from discord_play_manager.infrastructure.audio import FFmpegStreamResolver, YtDlpExtractor
from discord_play_manager.infrastructure.queue import InMemoryQueue

from conftest import GUILD_ID


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        playback=PlaybackSettings(retry_limit=5, idle_disconnect_seconds=30),
        audio=AudioSettings(max_bitrate_kbps=128),
    )


@pytest.fixture
def container(settings):
    return Container(settings=settings)


# =============================================================================
# Container Initialization Tests
# =============================================================================


class TestContainerInitialization:
    def test_create_container_with_settings(self, settings):
        container = create_container(settings)

        assert isinstance(container, Container)
        assert container.settings is settings

    def test_create_container_loads_settings(self):
        with patch("discord_play_manager.config.settings.get_settings") as mock_get:
            container = create_container()

        assert container.settings is mock_get.return_value


# =============================================================================
# Shared Adapter Tests
# =============================================================================


class TestSharedAdapters:
    def test_event_bus_is_global(self, container):
        assert container.event_bus is get_event_bus()

    def test_stream_resolver_lazy_and_cached(self, container):
        assert container._stream_resolver is None

        resolver = container.stream_resolver

        assert isinstance(resolver, FFmpegStreamResolver)
        assert container.stream_resolver is resolver

    def test_ytdlp_extractor_lazy_and_cached(self, container):
        extractor = container.ytdlp_extractor

        assert isinstance(extractor, YtDlpExtractor)
        assert container.ytdlp_extractor is extractor


# =============================================================================
# Play Manager Tests
# =============================================================================


class TestPlayManagers:
    def test_create_play_manager(self, container):
        manager = container.create_play_manager(GUILD_ID)

        assert isinstance(manager, PlayManager)
        assert manager.guild_id == GUILD_ID
        assert isinstance(manager.queue, InMemoryQueue)
        assert manager._settings.retry_limit == 5
        assert manager._max_bitrate_kbps == 128
        assert container.has_play_manager(GUILD_ID)

    def test_create_returns_existing(self, container):
        first = container.create_play_manager(GUILD_ID)

        assert container.create_play_manager(GUILD_ID) is first

    def test_create_with_custom_queue(self, container):
        queue = InMemoryQueue(max_size=10)

        manager = container.create_play_manager(GUILD_ID, queue=queue)

        assert manager.queue is queue

    def test_get_play_manager(self, container):
        manager = container.create_play_manager(GUILD_ID)

        assert container.get_play_manager(GUILD_ID) is manager

    def test_get_missing_play_manager(self, container):
        with pytest.raises(KeyError, match="No play manager registered"):
            container.get_play_manager(GUILD_ID)

    @pytest.mark.asyncio
    async def test_remove_play_manager(self, container):
        manager = container.create_play_manager(GUILD_ID)

        with patch.object(manager, "aclose", new=AsyncMock()) as aclose:
            assert await container.remove_play_manager(GUILD_ID) is True

        aclose.assert_awaited_once()
        assert not container.has_play_manager(GUILD_ID)

    @pytest.mark.asyncio
    async def test_remove_missing_play_manager(self, container):
        assert await container.remove_play_manager(GUILD_ID) is False

    @pytest.mark.asyncio
    async def test_shutdown_closes_all(self, container):
        container.create_play_manager(GUILD_ID)
        container.create_play_manager(GUILD_ID + 1)

        await container.shutdown()

        assert not container.has_play_manager(GUILD_ID)
        assert not container.has_play_manager(GUILD_ID + 1)


# =============================================================================
# Bootstrap Tests
# =============================================================================


class TestBootstrap:
    def test_configures_logging_from_settings(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "warning")
        settings = Settings(_env_file=None)

        with patch("discord_play_manager.utils.logging.setup_logging") as mock_setup:
            container = bootstrap(settings)

        mock_setup.assert_called_once_with("WARNING")
        assert container.settings is settings

    def test_debug_forces_debug_level(self, monkeypatch):
        monkeypatch.setenv("DEBUG", "true")
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        settings = Settings(_env_file=None)

        with patch("discord_play_manager.utils.logging.setup_logging") as mock_setup:
            bootstrap(settings)

        mock_setup.assert_called_once_with("DEBUG")

    def test_loads_settings_when_missing(self):
        with (
            patch("discord_play_manager.config.settings.get_settings") as mock_get,
            patch("discord_play_manager.utils.logging.setup_logging"),
        ):
            mock_get.return_value.debug = False
            mock_get.return_value.log_level = "INFO"
            container = bootstrap()

        assert container.settings is mock_get.return_value
