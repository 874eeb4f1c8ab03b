"""
FFmpeg Stream Resolver

Turns a source's raw stream into a discord.py audio source, choosing the
cheapest FFmpeg pipeline that still honours seek, effects and inline volume.
"""

from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass
from typing import TYPE_CHECKING

import discord

from discord_play_manager.application.interfaces.stream_resolver import (
    ResolvedStream,
    StreamOptions,
    StreamResolver,
)
from discord_play_manager.config.settings import AudioSettings
from discord_play_manager.domain.playback.value_objects import ContainerType
from discord_play_manager.domain.shared.exceptions import StreamResolutionError
from discord_play_manager.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...application.interfaces.audio_source import AudioSource, StreamInfo

logger = logging.getLogger(__name__)

DEFAULT_OPUS_BITRATE_KBPS: int = 128

# Pipeline cost: how many transform stages the stream passes through.
COST_PASSTHROUGH: int = 1
COST_OPUS_ENCODE: int = 2
COST_PCM_VOLUME: int = 3


@dataclass
class FFmpegConfig:
    """Configuration for FFmpeg audio processing."""

    before_options: str = "-reconnect 1 -reconnect_streamed 1 -reconnect_delay_max 5"
    options: str = "-vn"
    executable: str = "ffmpeg"

    def get_before_options(self, info: StreamInfo, seek_seconds: float) -> str:
        """Get FFmpeg before_options string."""
        opts = [self.before_options] if self.before_options else []
        if info.http_headers:
            headers = "".join(f"{key}: {value}\r\n" for key, value in info.http_headers.items())
            opts.append(f"-headers {shlex.quote(headers)}")
        if seek_seconds > 0:
            opts.append(f"-ss {seek_seconds:g}")
        return " ".join(opts)

    def get_options(self, effect_args: tuple[str, ...]) -> str:
        """Get FFmpeg options string."""
        opts = [self.options] if self.options else []
        if effect_args:
            opts.append(shlex.join(effect_args))
        return " ".join(opts)


class FFmpegStreamResolver(StreamResolver):
    """Resolves sources through FFmpeg.

    - Opus input with nothing to transform is remuxed without re-encoding.
    - Effects or a seek re-encode to Opus at the channel bitrate.
    - A non-default volume decodes to PCM behind a ``PCMVolumeTransformer``
      so the volume can change while playing.
    """

    def __init__(
        self, settings: AudioSettings | None = None, config: FFmpegConfig | None = None
    ) -> None:
        self._settings = settings or AudioSettings()
        self._config = config or FFmpegConfig(
            before_options=self._settings.before_options,
            options=self._settings.options,
            executable=self._settings.ffmpeg_executable,
        )

    async def resolve(self, source: AudioSource, options: StreamOptions) -> ResolvedStream:
        seek = options.seek_seconds
        info = await source.fetch(for_seek=seek > 0)

        before_options = self._config.get_before_options(info, seek)
        ffmpeg_options = self._config.get_options(options.effect_args)

        try:
            resolved = self._create_stream(info, options, before_options, ffmpeg_options)
        except discord.ClientException as e:
            logger.error(LogTemplates.RESOLVER_FFMPEG_ERROR, source.title, e)
            raise StreamResolutionError(source.url, str(e)) from e

        logger.debug(
            LogTemplates.RESOLVER_RESOLVED,
            source.title,
            resolved.container_type.value,
            resolved.cost,
            seek,
        )
        return resolved

    def _create_stream(
        self,
        info: StreamInfo,
        options: StreamOptions,
        before_options: str,
        ffmpeg_options: str,
    ) -> ResolvedStream:
        if options.volume_transform_enabled:
            pcm = discord.FFmpegPCMAudio(
                info.stream_url,
                executable=self._config.executable,
                before_options=before_options,
                options=ffmpeg_options,
            )
            transformer = discord.PCMVolumeTransformer(pcm, volume=1.0)
            return ResolvedStream(
                stream=transformer,
                container_type=ContainerType.RAW,
                cost=COST_PCM_VOLUME,
                volume_transformer=transformer,
            )

        if self.can_passthrough(info, options):
            opus = discord.FFmpegOpusAudio(
                info.stream_url,
                codec="copy",
                executable=self._config.executable,
                before_options=before_options,
                options=ffmpeg_options,
            )
            return ResolvedStream(
                stream=opus, container_type=ContainerType.OGG_OPUS, cost=COST_PASSTHROUGH
            )

        opus = discord.FFmpegOpusAudio(
            info.stream_url,
            bitrate=options.bitrate or DEFAULT_OPUS_BITRATE_KBPS,
            executable=self._config.executable,
            before_options=before_options,
            options=ffmpeg_options,
        )
        return ResolvedStream(
            stream=opus, container_type=ContainerType.OGG_OPUS, cost=COST_OPUS_ENCODE
        )

    @staticmethod
    def can_passthrough(info: StreamInfo, options: StreamOptions) -> bool:
        return (
            info.container_type.is_opus
            and not options.effect_args
            and not options.volume_transform_enabled
            and options.seek_seconds <= 0
        )
