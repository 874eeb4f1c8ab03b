"""Discord voice connection adapter implementing VoiceConnection."""

from __future__ import annotations

import asyncio
import logging

import discord

from discord_play_manager.application.interfaces.voice_connection import VoiceConnection
from discord_play_manager.domain.shared.messages import LogTemplates

from ..audio.discord_engine import DiscordPlaybackEngine

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT: float = 10.0


class DiscordVoiceConnection(VoiceConnection):
    def __init__(self, voice_client: discord.VoiceClient) -> None:
        self._voice_client = voice_client

    @classmethod
    async def connect(
        cls,
        channel: discord.VoiceChannel | discord.StageChannel,
        *,
        timeout: float = CONNECT_TIMEOUT,
    ) -> DiscordVoiceConnection | None:
        try:
            async with asyncio.timeout(timeout):
                voice_client = await channel.connect(self_deaf=True)
        except TimeoutError:
            logger.error(LogTemplates.VOICE_CONNECTION_TIMEOUT, channel.id)
            return None
        except discord.ClientException as e:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, e)
            return None
        except discord.Forbidden:
            logger.error(LogTemplates.VOICE_NO_PERMISSION, channel.id)
            return None

        logger.info(LogTemplates.VOICE_CONNECTED, channel.name, channel.guild.name)
        return cls(voice_client)

    @property
    def voice_client(self) -> discord.VoiceClient:
        return self._voice_client

    def is_connected(self) -> bool:
        return self._voice_client.is_connected()

    @property
    def channel_id(self) -> int | None:
        channel = self._voice_client.channel
        return channel.id if channel is not None else None

    @property
    def bitrate(self) -> int:
        return getattr(self._voice_client.channel, "bitrate", 0) or 0

    def create_engine(self) -> DiscordPlaybackEngine:
        return DiscordPlaybackEngine(self._voice_client)

    async def disconnect(self) -> None:
        try:
            await self._voice_client.disconnect(force=True)
        except (discord.ClientException, discord.HTTPException):
            logger.exception(LogTemplates.VOICE_DISCONNECT_FAILED, self._voice_client.guild.id)
