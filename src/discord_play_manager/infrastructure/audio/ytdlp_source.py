"""AudioSource implementation backed by yt-dlp extraction."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime
from typing import Any, cast

from yt_dlp import YoutubeDL

from discord_play_manager.application.interfaces.audio_source import AudioSource, StreamInfo
from discord_play_manager.config.settings import AudioSettings
from discord_play_manager.domain.playback.value_objects import ContainerType
from discord_play_manager.domain.shared.datetime_utils import utcnow
from discord_play_manager.domain.shared.exceptions import StreamResolutionError
from discord_play_manager.domain.shared.messages import ErrorMessages, LogTemplates

from .models import (
    CACHE_MAX_SIZE,
    CACHE_TTL,
    LOG_URL_TRUNCATE,
    AudioFormatInfo,
    CacheEntry,
    YtDlpOpts,
    YtDlpTrackInfo,
)

logger = logging.getLogger(__name__)

_info_cache: dict[str, CacheEntry] = {}


class YtDlpExtractor:
    """Runs yt-dlp off the event loop and caches results per URL."""

    def __init__(self, settings: AudioSettings | None = None) -> None:
        self._settings = settings or AudioSettings()
        self._opts = YtDlpOpts(format=self._settings.ytdlp_format or "bestaudio/best")

    async def extract(self, url: str, *, refresh: bool = False) -> YtDlpTrackInfo | None:
        return await asyncio.to_thread(self._extract_info_sync, url, refresh)

    async def create_source(self, url: str) -> YtDlpAudioSource | None:
        info = await self.extract(url)
        if info is None:
            return None
        return YtDlpAudioSource(url, info, self)

    def purge(self, url: str) -> None:
        if _info_cache.pop(url, None) is not None:
            logger.debug(LogTemplates.CACHE_PURGED, url[:LOG_URL_TRUNCATE])

    @staticmethod
    def _parse_info(data: dict[str, Any]) -> YtDlpTrackInfo:
        return YtDlpTrackInfo.model_validate(data)

    def _extract_info_sync(self, url: str, refresh: bool = False) -> YtDlpTrackInfo | None:
        now = time.time()
        cached = _info_cache.get(url)
        if cached is not None and not refresh:
            if now - cached.cached_at < CACHE_TTL:
                logger.debug(LogTemplates.CACHE_HIT_URL, url[:LOG_URL_TRUNCATE])
                return cached.info
            _info_cache.pop(url, None)

        try:
            with YoutubeDL(params=cast(Any, self._opts.model_dump())) as ydl:
                data = ydl.extract_info(url, download=False)
                result = self._parse_info(dict(data)) if isinstance(data, dict) else None
        except Exception:
            logger.exception(LogTemplates.YTDLP_FAILED_EXTRACT_INFO, url)
            return None

        _info_cache[url] = CacheEntry(info=result, cached_at=now)

        if len(_info_cache) > CACHE_MAX_SIZE:
            expired = [k for k, entry in _info_cache.items() if now - entry.cached_at >= CACHE_TTL]
            for k in expired:
                _info_cache.pop(k, None)
            if expired:
                logger.debug(LogTemplates.CACHE_EXPIRED_CLEANED, len(expired))

        return result


class YtDlpAudioSource(AudioSource):
    """A single yt-dlp extractable URL.

    Scheduled live streams report ``available_after`` until a fresh extraction
    shows them live.
    """

    def __init__(self, url: str, info: YtDlpTrackInfo, extractor: YtDlpExtractor) -> None:
        self._query_url = url
        self._info = info
        self._extractor = extractor

    @property
    def url(self) -> str:
        return self._info.webpage_url or self._query_url

    @property
    def title(self) -> str:
        return self._info.title

    @property
    def duration_seconds(self) -> int:
        if self._info.is_live_stream:
            return 0
        return self._info.duration or 0

    @property
    def is_live_stream(self) -> bool:
        return self._info.is_live_stream

    @property
    def available_after(self) -> datetime | None:
        if not self._info.is_upcoming:
            return None
        return self._info.release_at or utcnow()

    @property
    def thumbnail_url(self) -> str | None:
        return self._info.thumbnail

    async def fetch(self, for_seek: bool = False) -> StreamInfo:
        info = await self._extractor.extract(self._query_url)
        if info is None:
            raise StreamResolutionError(self.url)
        self._info = info

        selected = self._select_format(info.formats, for_seek=for_seek)
        if selected is not None and selected.url:
            return StreamInfo(
                stream_url=selected.url,
                container_type=self._container_type(selected),
                http_headers=selected.http_headers or info.http_headers,
                is_live=info.is_live_stream,
            )

        if info.url:
            return StreamInfo(
                stream_url=info.url,
                container_type=ContainerType.WEBM_OPUS
                if info.acodec == "opus"
                else ContainerType.ARBITRARY,
                http_headers=info.http_headers,
                is_live=info.is_live_stream,
            )

        logger.warning(LogTemplates.YTDLP_NO_STREAM_URL, info.title)
        raise StreamResolutionError(
            self.url, ErrorMessages.NO_STREAM_URL_FOR_SOURCE.format(title=info.title)
        )

    async def is_available(self) -> bool:
        info = await self._extractor.extract(self._query_url, refresh=True)
        if info is None:
            return False
        self._info = info
        return not info.is_upcoming

    def purge_cache(self) -> None:
        self._extractor.purge(self._query_url)

    @staticmethod
    def _select_format(
        formats: list[AudioFormatInfo], *, for_seek: bool = False
    ) -> AudioFormatInfo | None:
        candidates = [f for f in formats if f.url and f.is_audio_only]
        if for_seek:
            candidates = [f for f in candidates if f.is_seekable] or candidates
        if not candidates:
            return None

        opus = [f for f in candidates if f.is_opus]
        pool = opus or candidates
        return max(pool, key=lambda f: f.abr or 0)

    @staticmethod
    def _container_type(fmt: AudioFormatInfo) -> ContainerType:
        if not fmt.is_opus:
            return ContainerType.ARBITRARY
        if fmt.ext == "webm":
            return ContainerType.WEBM_OPUS
        if fmt.ext in ("ogg", "opus"):
            return ContainerType.OGG_OPUS
        return ContainerType.ARBITRARY
