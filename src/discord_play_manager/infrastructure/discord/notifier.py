"""NotificationPort adapter posting status messages to a text channel."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord

from discord_play_manager.application.interfaces.notification_port import NotificationPort
from discord_play_manager.domain.playback.value_objects import NotificationKind
from discord_play_manager.domain.shared.messages import DiscordUIMessages, LogTemplates
from discord_play_manager.utils.reply import format_duration, truncate

if TYPE_CHECKING:
    from discord_play_manager.domain.playback.entities import NowPlayingInfo

logger = logging.getLogger(__name__)

# Kinds whose message is later replaced by the now-playing embed
_PROGRESS_KINDS = frozenset({NotificationKind.PREPARING, NotificationKind.WAITING_FOR_LIVE})


class DiscordNotifier(NotificationPort):
    """Posts play lifecycle notices to the guild's bound text channel.

    A "preparing" or "waiting for live" message is edited in place into the
    now-playing embed once playback starts.
    """

    def __init__(self, channel: discord.abc.Messageable) -> None:
        self._channel = channel
        self._progress_message: discord.Message | None = None

    @property
    def channel(self) -> discord.abc.Messageable:
        return self._channel

    async def notify(self, kind: NotificationKind, payload: NowPlayingInfo | None = None) -> None:
        if kind == NotificationKind.NOW_PLAYING and payload is not None:
            await self._show_now_playing(payload)
            return

        content = self.build_content(kind, payload)
        if content is None:
            return

        message = await self._send(kind, content=content)
        if kind in _PROGRESS_KINDS:
            self._progress_message = message
        else:
            self._progress_message = None

    @staticmethod
    def build_content(kind: NotificationKind, payload: NowPlayingInfo | None) -> str | None:
        title = payload.title if payload is not None else DiscordUIMessages.UNKNOWN

        match kind:
            case NotificationKind.WAITING_FOR_LIVE:
                return DiscordUIMessages.WAITING_FOR_LIVE.format(title=title)
            case NotificationKind.WAITING_CANCELED:
                return DiscordUIMessages.WAITING_CANCELED
            case NotificationKind.PREPARING:
                duration = (
                    DiscordUIMessages.LIVE_STREAM
                    if payload is not None and payload.is_live
                    else format_duration(payload.duration_seconds if payload else None)
                )
                return DiscordUIMessages.PREPARING.format(title=title, duration=duration)
            case NotificationKind.QUEUE_EMPTY:
                return DiscordUIMessages.QUEUE_EMPTY
            case NotificationKind.QUEUE_EMPTY_EXITING:
                return DiscordUIMessages.QUEUE_EMPTY_EXITING
            case NotificationKind.PLAYBACK_FAILED:
                suffix = (
                    DiscordUIMessages.FAILED_AND_SKIPPING
                    if payload is not None and payload.will_skip
                    else DiscordUIMessages.FAILED_AND_RETRYING
                )
                return DiscordUIMessages.PLAYBACK_FAILED.format(title=title) + suffix
        return None

    @staticmethod
    def build_now_playing_embed(info: NowPlayingInfo) -> discord.Embed:
        embed = discord.Embed(
            title=DiscordUIMessages.EMBED_NOW_PLAYING,
            description=f"[{truncate(info.title, 200)}]({info.url})",
            color=discord.Color.green(),
        )

        if info.thumbnail_url:
            embed.set_thumbnail(url=info.thumbnail_url)

        embed.add_field(
            name="⏱️ Duration",
            value=DiscordUIMessages.LIVE_STREAM
            if info.is_live
            else format_duration(info.duration_seconds),
            inline=True,
        )

        if info.requested_by_name:
            embed.add_field(
                name=DiscordUIMessages.FIELD_REQUESTED_BY,
                value=truncate(info.requested_by_name, 64),
                inline=True,
            )

        if info.loop_enabled:
            next_up = DiscordUIMessages.WILL_LOOP
        elif info.next_title:
            next_up = truncate(info.next_title, 60)
        else:
            next_up = DiscordUIMessages.UP_NEXT_NONE
        embed.add_field(name=DiscordUIMessages.FIELD_NEXT_UP, value=next_up, inline=False)

        in_queue = DiscordUIMessages.IN_QUEUE_COUNT.format(
            count=info.remaining_count,
            duration=format_duration(info.remaining_seconds),
        )
        if info.mix_playlist_enabled:
            in_queue += DiscordUIMessages.IN_MIX_PLAYLIST
        embed.add_field(name=DiscordUIMessages.FIELD_IN_QUEUE, value=in_queue, inline=True)

        return embed

    async def _show_now_playing(self, info: NowPlayingInfo) -> None:
        embed = self.build_now_playing_embed(info)
        message = self._progress_message
        self._progress_message = None

        if message is not None:
            try:
                await message.edit(content=None, embed=embed)
                return
            except discord.HTTPException:
                logger.warning(
                    LogTemplates.NOTIFIER_EDIT_FAILED,
                    NotificationKind.NOW_PLAYING.value,
                    self._channel_id,
                )

        await self._send(NotificationKind.NOW_PLAYING, embed=embed)

    async def _send(
        self,
        kind: NotificationKind,
        *,
        content: str | None = None,
        embed: discord.Embed | None = None,
    ) -> discord.Message | None:
        try:
            if embed is not None:
                return await self._channel.send(content=content, embed=embed)
            return await self._channel.send(content=content)
        except discord.HTTPException:
            logger.warning(LogTemplates.NOTIFIER_SEND_FAILED, kind.value, self._channel_id)
            return None

    @property
    def _channel_id(self) -> int | None:
        return getattr(self._channel, "id", None)
