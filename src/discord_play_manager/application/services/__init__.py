"""Application services: the per-guild play manager and its timing helpers."""

from discord_play_manager.application.services.cancellation import CancellationToken
from discord_play_manager.application.services.idle_timer import IdleTimer
from discord_play_manager.application.services.live_wait import LiveWaitCoordinator
from discord_play_manager.application.services.play_manager import PlayManager

__all__ = [
    "CancellationToken",
    "IdleTimer",
    "LiveWaitCoordinator",
    "PlayManager",
]
