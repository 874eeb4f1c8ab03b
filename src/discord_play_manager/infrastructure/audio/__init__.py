"""Audio infrastructure - FFmpeg stream resolver, discord.py engine and yt-dlp sources."""

from discord_play_manager.infrastructure.audio.discord_engine import (
    DiscordPlaybackEngine,
    FrameCountingSource,
)
from discord_play_manager.infrastructure.audio.ffmpeg_resolver import (
    FFmpegConfig,
    FFmpegStreamResolver,
)
from discord_play_manager.infrastructure.audio.models import (
    AudioFormatInfo,
    CacheEntry,
    YtDlpOpts,
    YtDlpTrackInfo,
)
from discord_play_manager.infrastructure.audio.ytdlp_source import YtDlpAudioSource, YtDlpExtractor

__all__ = [
    "AudioFormatInfo",
    "CacheEntry",
    "DiscordPlaybackEngine",
    "FFmpegConfig",
    "FFmpegStreamResolver",
    "FrameCountingSource",
    "YtDlpAudioSource",
    "YtDlpExtractor",
    "YtDlpOpts",
    "YtDlpTrackInfo",
]
