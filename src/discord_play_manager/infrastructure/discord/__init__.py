"""Discord adapters - voice connection and text channel notifier."""

from discord_play_manager.infrastructure.discord.notifier import DiscordNotifier
from discord_play_manager.infrastructure.discord.voice_connection import DiscordVoiceConnection

__all__ = [
    "DiscordNotifier",
    "DiscordVoiceConnection",
]
