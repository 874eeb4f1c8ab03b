"""Immutable value objects for the playback bounded context."""

from __future__ import annotations

from enum import Enum, StrEnum


class SessionState(Enum):
    """Lifecycle of a single playback session with enforced transitions.

    State transitions:
    - IDLE -> PREPARING (play accepted)
    - PREPARING -> WAITING_FOR_LIVE (source not live yet)
    - WAITING_FOR_LIVE -> PREPARING (source went live)
    - PREPARING -> PLAYING (engine confirmed playback)
    - PLAYING -> COMPLETED (natural end of stream)
    - PLAYING / WAITING_FOR_LIVE / PREPARING -> IDLE (stop or cancelled wait)
    - Any but FAILED -> FAILED (error routed to the failure handler)
    """

    IDLE = "idle"
    WAITING_FOR_LIVE = "waiting_for_live"
    PREPARING = "preparing"
    PLAYING = "playing"
    COMPLETED = "completed"
    FAILED = "failed"

    def can_transition_to(self, target: SessionState) -> bool:
        """Check if transition to target state is valid."""
        valid_transitions = {
            SessionState.IDLE: {SessionState.PREPARING, SessionState.FAILED},
            SessionState.PREPARING: {
                SessionState.WAITING_FOR_LIVE,
                SessionState.PLAYING,
                SessionState.IDLE,
                SessionState.FAILED,
            },
            SessionState.WAITING_FOR_LIVE: {
                SessionState.PREPARING,
                SessionState.IDLE,
                SessionState.FAILED,
            },
            SessionState.PLAYING: {
                SessionState.COMPLETED,
                SessionState.IDLE,
                SessionState.FAILED,
            },
            SessionState.COMPLETED: {SessionState.FAILED},
            SessionState.FAILED: set(),
        }
        return target in valid_transitions[self]

    @property
    def is_busy(self) -> bool:
        """A session in this state blocks a new play attempt."""
        return self in {
            SessionState.WAITING_FOR_LIVE,
            SessionState.PREPARING,
            SessionState.PLAYING,
        }

    @property
    def is_terminal(self) -> bool:
        return self in {SessionState.COMPLETED, SessionState.FAILED}


class EngineStatus(Enum):
    """Status reported by the low-level audio player."""

    IDLE = "idle"
    BUFFERING = "buffering"
    PLAYING = "playing"
    PAUSED = "paused"

    @property
    def is_active(self) -> bool:
        return self in {EngineStatus.PLAYING, EngineStatus.PAUSED}


class ContainerType(StrEnum):
    """Wire framing of a resolved stream, needed by the engine to decode it."""

    WEBM_OPUS = "webm/opus"
    OGG_OPUS = "ogg/opus"
    RAW = "raw"
    OPUS = "opus"
    ARBITRARY = "arbitrary"

    @property
    def is_opus(self) -> bool:
        return self in {ContainerType.WEBM_OPUS, ContainerType.OGG_OPUS, ContainerType.OPUS}


class NotificationKind(StrEnum):
    """Kinds of messages the controller sends to the bound text surface."""

    WAITING_FOR_LIVE = "waiting_for_live"
    WAITING_CANCELED = "waiting_canceled"
    PREPARING = "preparing"
    NOW_PLAYING = "now_playing"
    QUEUE_EMPTY = "queue_empty"
    QUEUE_EMPTY_EXITING = "queue_empty_exiting"
    PLAYBACK_FAILED = "playback_failed"
