"""Port interface for a guild's voice connection."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .playback_engine import PlaybackEngine


class VoiceConnection(ABC):
    """A live connection to one voice channel."""

    @abstractmethod
    def is_connected(self) -> bool: ...

    @property
    @abstractmethod
    def channel_id(self) -> int | None: ...

    @property
    @abstractmethod
    def bitrate(self) -> int:
        """Channel bitrate in bits per second."""
        ...

    @abstractmethod
    def create_engine(self) -> PlaybackEngine:
        """Create a playback engine subscribed to this connection."""
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Leave the channel and tear the connection down."""
        ...
