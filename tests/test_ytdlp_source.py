"""
Unit Tests for YtDlpExtractor and YtDlpAudioSource

Tests for:
- Info parsing and garbage coercion
- Extraction caching, refresh and purge
- Format selection (Opus preferred, seekable formats for seeks)
- Scheduled live streams: available_after and is_available
"""

import time
from datetime import UTC, datetime
from unittest.mock import patch

import pytest

from discord_play_manager.config.settings import AudioSettings
from discord_play_manager.domain.playback.value_objects import ContainerType
from discord_play_manager.domain.shared.exceptions import StreamResolutionError
from discord_play_manager.infrastructure.audio.models import (
    CACHE_TTL,
    AudioFormatInfo,
    CacheEntry,
    YtDlpOpts,
    YtDlpTrackInfo,
)
from discord_play_manager.infrastructure.audio.ytdlp_source import (
    YtDlpAudioSource,
    YtDlpExtractor,
    _info_cache,
)

YDL_PATH = "discord_play_manager.infrastructure.audio.ytdlp_source.YoutubeDL"
URL = "https://youtube.com/watch?v=abc"


@pytest.fixture
def extractor():
    return YtDlpExtractor(AudioSettings())


@pytest.fixture(autouse=True)
def clear_cache():
    """Clear the global cache before each test."""
    _info_cache.clear()
    yield
    _info_cache.clear()


def _raw(**overrides):
    data = {
        "webpage_url": URL,
        "title": "Test Song",
        "duration": 180,
        "formats": [
            {"url": "https://cdn/a.m4a", "acodec": "mp4a.40.2", "vcodec": "none", "ext": "m4a",
             "abr": 128, "protocol": "https"},
            {"url": "https://cdn/a.webm", "acodec": "opus", "vcodec": "none", "ext": "webm",
             "abr": 160, "protocol": "https"},
            {"url": "https://cdn/v.mp4", "acodec": "mp4a.40.2", "vcodec": "avc1", "ext": "mp4",
             "abr": 192, "protocol": "https"},
        ],
    }
    data.update(overrides)
    return data


# =============================================================================
# Model Tests
# =============================================================================


class TestYtDlpTrackInfo:
    def test_coerces_garbage(self):
        info = YtDlpTrackInfo.model_validate(
            {"title": "  ", "duration": "abc", "url": "", "thumbnail": 5, "is_live": None}
        )

        assert info.title == "Unknown Title"
        assert info.duration is None
        assert info.url is None
        assert info.thumbnail is None
        assert info.is_live is False

    def test_upcoming_live(self):
        info = YtDlpTrackInfo(live_status="is_upcoming", release_timestamp=1_700_000_000)

        assert info.is_upcoming
        assert info.is_live_stream
        assert info.release_at == datetime.fromtimestamp(1_700_000_000, UTC)

    def test_plain_video(self):
        info = YtDlpTrackInfo(live_status="not_live")

        assert not info.is_upcoming
        assert not info.is_live_stream
        assert info.release_at is None

    def test_format_flags(self):
        fmt = AudioFormatInfo(url="u", acodec="opus", vcodec="none", protocol="m3u8_native")

        assert fmt.is_audio_only
        assert fmt.is_opus
        assert not fmt.is_seekable

    def test_opts_keep_upcoming_metadata(self):
        assert YtDlpOpts().ignore_no_formats_error is True


# =============================================================================
# Extraction Tests
# =============================================================================


class TestExtraction:
    def test_extract_success(self, extractor):
        with patch(YDL_PATH) as mock_ydl:
            mock_ydl.return_value.__enter__.return_value.extract_info.return_value = _raw()
            info = extractor._extract_info_sync(URL)

        assert info is not None
        assert info.title == "Test Song"
        assert len(info.formats) == 3
        assert URL in _info_cache

    def test_extract_failure_returns_none(self, extractor):
        with patch(YDL_PATH) as mock_ydl:
            mock_ydl.return_value.__enter__.return_value.extract_info.side_effect = Exception(
                "Video unavailable"
            )
            info = extractor._extract_info_sync(URL)

        assert info is None
        assert URL not in _info_cache

    def test_cache_hit(self, extractor):
        with patch(YDL_PATH) as mock_ydl:
            mock_ydl.return_value.__enter__.return_value.extract_info.return_value = _raw()
            first = extractor._extract_info_sync(URL)
            second = extractor._extract_info_sync(URL)

        assert first is second
        assert mock_ydl.return_value.__enter__.return_value.extract_info.call_count == 1

    def test_refresh_bypasses_cache(self, extractor):
        with patch(YDL_PATH) as mock_ydl:
            ydl = mock_ydl.return_value.__enter__.return_value
            ydl.extract_info.return_value = _raw()
            extractor._extract_info_sync(URL)
            ydl.extract_info.return_value = _raw(title="Fresh")
            info = extractor._extract_info_sync(URL, refresh=True)

        assert info.title == "Fresh"
        assert ydl.extract_info.call_count == 2

    def test_expired_entry_is_refetched(self, extractor):
        stale = YtDlpTrackInfo(title="Stale")
        _info_cache[URL] = CacheEntry(info=stale, cached_at=time.time() - CACHE_TTL - 1)

        with patch(YDL_PATH) as mock_ydl:
            mock_ydl.return_value.__enter__.return_value.extract_info.return_value = _raw()
            info = extractor._extract_info_sync(URL)

        assert info.title == "Test Song"

    def test_purge(self, extractor):
        _info_cache[URL] = CacheEntry(info=None, cached_at=time.time())

        extractor.purge(URL)

        assert URL not in _info_cache

    @pytest.mark.asyncio
    async def test_create_source(self, extractor):
        with patch(YDL_PATH) as mock_ydl:
            mock_ydl.return_value.__enter__.return_value.extract_info.return_value = _raw()
            source = await extractor.create_source(URL)

        assert isinstance(source, YtDlpAudioSource)
        assert source.url == URL
        assert source.title == "Test Song"
        assert source.duration_seconds == 180

    @pytest.mark.asyncio
    async def test_create_source_failure(self, extractor):
        with patch(YDL_PATH) as mock_ydl:
            mock_ydl.return_value.__enter__.return_value.extract_info.side_effect = Exception()
            assert await extractor.create_source(URL) is None


# =============================================================================
# YtDlpAudioSource Tests
# =============================================================================


class TestYtDlpAudioSource:
    @pytest.mark.asyncio
    async def test_fetch_prefers_opus(self, extractor):
        with patch(YDL_PATH) as mock_ydl:
            mock_ydl.return_value.__enter__.return_value.extract_info.return_value = _raw()
            source = await extractor.create_source(URL)
            info = await source.fetch()

        assert info.stream_url == "https://cdn/a.webm"
        assert info.container_type == ContainerType.WEBM_OPUS

    @pytest.mark.asyncio
    async def test_fetch_for_seek_prefers_seekable(self, extractor):
        raw = _raw(
            formats=[
                {"url": "https://cdn/live.opus", "acodec": "opus", "vcodec": "none",
                 "ext": "webm", "abr": 160, "protocol": "m3u8_native"},
                {"url": "https://cdn/a.m4a", "acodec": "mp4a.40.2", "vcodec": "none",
                 "ext": "m4a", "abr": 128, "protocol": "https"},
            ]
        )
        with patch(YDL_PATH) as mock_ydl:
            mock_ydl.return_value.__enter__.return_value.extract_info.return_value = raw
            source = await extractor.create_source(URL)
            info = await source.fetch(for_seek=True)

        assert info.stream_url == "https://cdn/a.m4a"
        assert info.container_type == ContainerType.ARBITRARY

    @pytest.mark.asyncio
    async def test_fetch_falls_back_to_top_level_url(self, extractor):
        raw = _raw(formats=[], url="https://cdn/direct.webm", acodec="opus")
        with patch(YDL_PATH) as mock_ydl:
            mock_ydl.return_value.__enter__.return_value.extract_info.return_value = raw
            source = await extractor.create_source(URL)
            info = await source.fetch()

        assert info.stream_url == "https://cdn/direct.webm"
        assert info.container_type == ContainerType.WEBM_OPUS

    @pytest.mark.asyncio
    async def test_fetch_without_stream_raises(self, extractor):
        with patch(YDL_PATH) as mock_ydl:
            mock_ydl.return_value.__enter__.return_value.extract_info.return_value = _raw(
                formats=[]
            )
            source = await extractor.create_source(URL)
            with pytest.raises(StreamResolutionError):
                await source.fetch()

    @pytest.mark.asyncio
    async def test_upcoming_live_reports_available_after(self, extractor):
        raw = _raw(formats=[], live_status="is_upcoming", release_timestamp=1_900_000_000)
        with patch(YDL_PATH) as mock_ydl:
            mock_ydl.return_value.__enter__.return_value.extract_info.return_value = raw
            source = await extractor.create_source(URL)

        assert source.is_live_stream
        assert source.duration_seconds == 0
        assert source.available_after == datetime.fromtimestamp(1_900_000_000, UTC)

    @pytest.mark.asyncio
    async def test_is_available_refreshes(self, extractor):
        upcoming = _raw(formats=[], live_status="is_upcoming")
        with patch(YDL_PATH) as mock_ydl:
            ydl = mock_ydl.return_value.__enter__.return_value
            ydl.extract_info.return_value = upcoming
            source = await extractor.create_source(URL)
            assert await source.is_available() is False

            ydl.extract_info.return_value = _raw(live_status="is_live")
            assert await source.is_available() is True

        assert source.available_after is None

    @pytest.mark.asyncio
    async def test_purge_cache(self, extractor):
        with patch(YDL_PATH) as mock_ydl:
            mock_ydl.return_value.__enter__.return_value.extract_info.return_value = _raw()
            source = await extractor.create_source(URL)

        source.purge_cache()

        assert URL not in _info_cache
