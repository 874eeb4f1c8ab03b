"""Core entities for the playback bounded context."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from discord_play_manager.domain.playback.value_objects import SessionState
from discord_play_manager.domain.shared.exceptions import InvalidOperationError
from discord_play_manager.domain.shared.types import (
    DiscordSnowflake,
    NonEmptyStr,
    NonNegativeFloat,
    NonNegativeInt,
)

if TYPE_CHECKING:
    from ...application.interfaces.audio_source import AudioSource
    from ...application.interfaces.stream_resolver import ResolvedStream


class RetryState(BaseModel):
    """Consecutive-failure bookkeeping for the source that failed last."""

    model_config = ConfigDict(validate_assignment=True)

    count: NonNegativeInt = 0
    source_url: str = ""

    def record_failure(self, source_url: str, *, quiet: bool = False) -> bool:
        """Count a failure and return True when this is a fresh source.

        A quiet failure, or a failure of a different source, restarts the count
        at one so the next attempt starts from a clean resolution.
        """
        if source_url == self.source_url and not quiet:
            self.count += 1
            return False
        self.count = 1
        self.source_url = source_url
        return True

    def count_for(self, source_url: str) -> int:
        return self.count if source_url and source_url == self.source_url else 0

    def reset(self) -> None:
        self.count = 0
        self.source_url = ""


@dataclass(eq=False)
class PlaybackSession:
    """The single in-flight attempt to play the head of the queue.

    Compared by identity: callbacks bound to a session that is no longer the
    controller's current one are stale.
    """

    source: AudioSource
    seek_seconds: float = 0.0
    state: SessionState = SessionState.PREPARING
    stream: ResolvedStream | None = None
    cost: int = 0
    paused_by: int | None = field(default=None)

    def transition(self, target: SessionState) -> None:
        if not self.state.can_transition_to(target):
            raise InvalidOperationError(
                operation=f"transition to {target.value}",
                current_state=self.state.value,
            )
        self.state = target

    @property
    def source_url(self) -> str:
        return self.source.url

    @property
    def is_preparing(self) -> bool:
        return self.state == SessionState.PREPARING

    @property
    def is_playing(self) -> bool:
        return self.state == SessionState.PLAYING

    @property
    def is_waiting(self) -> bool:
        return self.state == SessionState.WAITING_FOR_LIVE


class NowPlayingInfo(BaseModel):
    """View model handed to the notification surface."""

    model_config = ConfigDict(frozen=True)

    title: NonEmptyStr
    url: str
    duration_seconds: NonNegativeInt = 0
    is_live: bool = False
    thumbnail_url: str | None = None
    requested_by_id: DiscordSnowflake | None = None
    requested_by_name: str | None = None
    next_title: str | None = None
    remaining_count: NonNegativeInt = 0
    remaining_seconds: NonNegativeFloat = 0.0
    loop_enabled: bool = False
    mix_playlist_enabled: bool = False
    will_skip: bool = False
