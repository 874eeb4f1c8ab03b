"""Port interface for the text surface bound to a guild's player."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ...domain.playback.entities import NowPlayingInfo
    from ...domain.playback.value_objects import NotificationKind


class NotificationPort(ABC):
    """Receives lifecycle notifications. Callers never depend on delivery."""

    @abstractmethod
    async def notify(self, kind: NotificationKind, payload: NowPlayingInfo | None = None) -> None:
        ...
