"""
Application Interfaces (Ports)

Abstract interfaces that define contracts between the play manager and
infrastructure adapters. These are the "ports" in hexagonal architecture.
"""

from discord_play_manager.application.interfaces.audio_source import AudioSource, StreamInfo
from discord_play_manager.application.interfaces.notification_port import NotificationPort
from discord_play_manager.application.interfaces.playback_engine import PlaybackEngine
from discord_play_manager.application.interfaces.queue_port import QueueItem, QueuePort
from discord_play_manager.application.interfaces.stream_resolver import (
    ResolvedStream,
    StreamOptions,
    StreamResolver,
)
from discord_play_manager.application.interfaces.voice_connection import VoiceConnection

__all__ = [
    "AudioSource",
    "NotificationPort",
    "PlaybackEngine",
    "QueueItem",
    "QueuePort",
    "ResolvedStream",
    "StreamInfo",
    "StreamOptions",
    "StreamResolver",
    "VoiceConnection",
]
