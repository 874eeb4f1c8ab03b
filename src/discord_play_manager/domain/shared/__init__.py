"""
Shared Domain Kernel

Contains types, events and exceptions shared across the playback context.
"""

from discord_play_manager.domain.shared.exceptions import (
    DomainError,
    InvalidOperationError,
    PlaybackError,
    PlaybackTimeoutError,
    StreamResolutionError,
    StreamWorkaroundError,
)

__all__ = [
    "DomainError",
    "InvalidOperationError",
    "PlaybackError",
    "PlaybackTimeoutError",
    "StreamResolutionError",
    "StreamWorkaroundError",
]
