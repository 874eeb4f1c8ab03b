"""Playback lifecycle events and the event bus they are published on."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from discord_play_manager.domain.shared.datetime_utils import utcnow
from discord_play_manager.domain.shared.messages import LogTemplates
from discord_play_manager.domain.shared.types import (
    DiscordSnowflake,
    NonEmptyStr,
    NonNegativeFloat,
    NonNegativeInt,
    UtcDatetimeField,
    VolumePercent,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="DomainEvent")
EventHandler = Callable[[T], Awaitable[None]]


class DomainEvent(BaseModel):
    """Base class for all domain events."""

    model_config = ConfigDict(frozen=True)

    event_id: NonEmptyStr = Field(default_factory=lambda: str(uuid4()))
    occurred_at: UtcDatetimeField = Field(default_factory=utcnow)
    guild_id: DiscordSnowflake


# === Play Lifecycle ===


class PlayCalled(DomainEvent):
    seek_seconds: NonNegativeFloat = 0.0


class PlayPreparing(DomainEvent):
    seek_seconds: NonNegativeFloat = 0.0


class PlayStarted(DomainEvent):
    source_url: str = ""
    source_title: str = ""


class PlayCompleted(DomainEvent):
    source_url: str = ""


class PlayFailed(DomainEvent):
    source_url: str = ""


class PlaybackDurationReported(DomainEvent):
    duration_seconds: NonNegativeFloat = 0.0
    error_count: NonNegativeInt = 0


class HandledError(DomainEvent):
    error_type: str = ""
    message: str = ""


# === Control ===


class PlaybackStopped(DomainEvent):
    pass


class PlaybackPaused(DomainEvent):
    requester_id: DiscordSnowflake | None = None


class PlaybackResumed(DomainEvent):
    requester_id: DiscordSnowflake | None = None


class Rewind(DomainEvent):
    pass


class VolumeChanged(DomainEvent):
    volume: VolumePercent = 100


# === Voice ===


class DisconnectAttempted(DomainEvent):
    pass


class Disconnected(DomainEvent):
    channel_id: DiscordSnowflake | None = None


# === Event Bus ===


class EventBus:
    """In-memory pub/sub event bus for domain events.

    Handlers are called concurrently. Exceptions in handlers are logged
    but do not prevent other handlers from running.
    """

    def __init__(self) -> None:
        self._handlers: dict[type[DomainEvent], list[EventHandler[Any]]] = defaultdict(list)

    def subscribe(self, event_type: type[T], handler: EventHandler[T]) -> None:
        self._handlers[event_type].append(handler)
        logger.debug(LogTemplates.EVENT_SUBSCRIBED, event_type.__name__)

    def unsubscribe(self, event_type: type[T], handler: EventHandler[T]) -> None:
        handlers = self._handlers[event_type]
        if handler in handlers:
            handlers.remove(handler)
            logger.debug(LogTemplates.EVENT_UNSUBSCRIBED, event_type.__name__)

    def handler_count(self, event_type: type[DomainEvent]) -> int:
        return len(self._handlers.get(event_type, []))

    async def publish(self, event: DomainEvent) -> None:
        event_type = type(event)
        handlers = list(self._handlers.get(event_type, []))

        if not handlers:
            logger.debug(LogTemplates.EVENT_NO_HANDLERS, event_type.__name__)
            return

        logger.debug(LogTemplates.EVENT_PUBLISHING, event_type.__name__, len(handlers))

        async def safe_call(handler: EventHandler[Any]) -> None:
            try:
                await handler(event)
            except Exception as e:
                logger.exception(LogTemplates.EVENT_HANDLER_ERROR, event_type.__name__, e)

        try:
            async with asyncio.TaskGroup() as tg:
                for handler in handlers:
                    tg.create_task(safe_call(handler))
        except* Exception:
            pass

    def clear(self) -> None:
        """Remove all handlers."""
        self._handlers.clear()
        logger.debug(LogTemplates.EVENT_HANDLERS_CLEARED)


_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Get or create the global event bus singleton."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


def reset_event_bus() -> None:
    """Reset the global event bus (for testing)."""
    global _event_bus
    if _event_bus is not None:
        _event_bus.clear()
    _event_bus = None
