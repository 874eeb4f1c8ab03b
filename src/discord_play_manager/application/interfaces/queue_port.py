"""Port interface for the per-guild play queue."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .audio_source import AudioSource


@dataclass(frozen=True)
class QueueItem:
    """A queued source with the member who requested it."""

    source: AudioSource
    requested_by_id: int | None = None
    requested_by_name: str | None = None


class QueuePort(ABC):
    """Ordered collection of playable items with loop flags.

    Index 0 is the head: the item that is, or is about to be, playing.
    """

    @abstractmethod
    def get(self, index: int) -> QueueItem: ...

    @property
    @abstractmethod
    def length(self) -> int: ...

    @property
    def is_empty(self) -> bool:
        return self.length == 0

    @property
    @abstractmethod
    def length_seconds(self) -> int:
        """Total known duration of every queued item."""
        ...

    @abstractmethod
    async def next(self) -> None:
        """Advance the head. With queue loop enabled the old head moves to the tail."""
        ...

    @property
    @abstractmethod
    def loop_enabled(self) -> bool: ...

    @loop_enabled.setter
    @abstractmethod
    def loop_enabled(self, value: bool) -> None: ...

    @property
    @abstractmethod
    def queue_loop_enabled(self) -> bool: ...

    @queue_loop_enabled.setter
    @abstractmethod
    def queue_loop_enabled(self, value: bool) -> None: ...

    @property
    @abstractmethod
    def once_loop_enabled(self) -> bool: ...

    @once_loop_enabled.setter
    @abstractmethod
    def once_loop_enabled(self, value: bool) -> None: ...

    @property
    def mix_playlist_enabled(self) -> bool:
        return False

    async def prepare_next_mix_item(self) -> None:
        """Queue the next item of an auto-generated mix playlist."""
        return None
