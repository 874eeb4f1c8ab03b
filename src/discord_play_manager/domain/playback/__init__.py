"""Playback bounded context: session state machine, retry bookkeeping, view models."""

from discord_play_manager.domain.playback.entities import (
    NowPlayingInfo,
    PlaybackSession,
    RetryState,
)
from discord_play_manager.domain.playback.value_objects import (
    ContainerType,
    EngineStatus,
    NotificationKind,
    SessionState,
)

__all__ = [
    "ContainerType",
    "EngineStatus",
    "NotificationKind",
    "NowPlayingInfo",
    "PlaybackSession",
    "RetryState",
    "SessionState",
]
