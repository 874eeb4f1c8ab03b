"""Port interface for playable source descriptors."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from discord_play_manager.domain.playback.value_objects import ContainerType
from discord_play_manager.domain.shared.types import NonEmptyStr


class StreamInfo(BaseModel):
    """Where and how to read the raw audio of a source."""

    model_config = ConfigDict(frozen=True)

    stream_url: NonEmptyStr
    container_type: ContainerType = ContainerType.ARBITRARY
    http_headers: dict[str, str] = Field(default_factory=dict)
    is_live: bool = False


class AudioSource(ABC):
    """A playable track: metadata plus the ability to fetch its raw stream."""

    @property
    @abstractmethod
    def url(self) -> str:
        """Stable identity of the source (typically its webpage URL)."""
        ...

    @property
    @abstractmethod
    def title(self) -> str: ...

    @property
    @abstractmethod
    def duration_seconds(self) -> int:
        """Known duration, or 0 when unknown or live."""
        ...

    @property
    def is_live_stream(self) -> bool:
        return False

    @property
    def available_after(self) -> datetime | None:
        """When set, the source is a scheduled live stream that has not started yet."""
        return None

    @property
    def thumbnail_url(self) -> str | None:
        return None

    @abstractmethod
    async def fetch(self, for_seek: bool = False) -> StreamInfo:
        """Fetch raw stream information.

        Args:
            for_seek: The caller will seek into the stream, so a seekable
                format should be preferred.
        """
        ...

    @abstractmethod
    async def is_available(self) -> bool:
        """Whether the source can be played right now (a scheduled live has started)."""
        ...

    @abstractmethod
    def purge_cache(self) -> None:
        """Drop cached resolution data so the next fetch starts from scratch."""
        ...
