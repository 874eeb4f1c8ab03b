"""Port interface for turning a source into a playable stream."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

from discord_play_manager.domain.playback.value_objects import ContainerType
from discord_play_manager.domain.shared.messages import LogTemplates
from discord_play_manager.domain.shared.types import BitrateKbps, SeekSeconds

if TYPE_CHECKING:
    from .audio_source import AudioSource

logger = logging.getLogger(__name__)


class StreamOptions(BaseModel):
    """Options applied while producing the playable stream."""

    model_config = ConfigDict(frozen=True)

    effect_args: tuple[str, ...] = Field(default_factory=tuple)
    seek_seconds: SeekSeconds = 0.0
    volume_transform_enabled: bool = False
    bitrate: BitrateKbps | None = None


@dataclass(eq=False)
class ResolvedStream:
    """A playable stream owned by exactly one playback session.

    ``release`` is idempotent; the owning controller defers it to the next
    loop iteration so it never races an in-flight read.
    """

    stream: Any
    container_type: ContainerType
    cost: int = 0
    volume_transformer: Any | None = None
    _released: bool = field(default=False, init=False, repr=False)

    @property
    def released(self) -> bool:
        return self._released

    @property
    def inline_volume(self) -> bool:
        return self.volume_transformer is not None

    def set_volume(self, volume_percent: int) -> bool:
        """Apply a percent volume to the inline transformer, if there is one."""
        if self.volume_transformer is None or self._released:
            return False
        self.volume_transformer.volume = volume_percent / 100
        return True

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        cleanup = getattr(self.stream, "cleanup", None) or getattr(self.stream, "close", None)
        if cleanup is None:
            return
        try:
            cleanup()
        except Exception as e:
            logger.debug(LogTemplates.STREAM_RELEASE_ERROR, e)


class StreamResolver(ABC):
    """Interface for producing a playable stream from a source descriptor."""

    @abstractmethod
    async def resolve(self, source: AudioSource, options: StreamOptions) -> ResolvedStream:
        """Resolve *source* into a playable stream.

        Raises:
            StreamResolutionError: The source could not be made playable.
            StreamWorkaroundError: A transient fault that a fresh attempt fixes.
        """
        ...
