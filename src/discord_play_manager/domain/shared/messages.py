"""Centralized message constants for error messages, log templates, and user feedback."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Source Validation Errors
    NO_STREAM_URL_FOR_SOURCE = "No stream URL found for {title}"

    # Time/Date Validation Errors
    TIMEZONE_REQUIRED_UTC_DATETIME = "UtcDateTime requires a timezone-aware datetime"

    # Settings Validation Errors
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"

    # Playback Errors
    STREAM_FINISHED_WHILE_PREPARING = "Something went wrong while playing stream"
    NO_ENGINE = "No playback engine is available"
    QUEUE_INDEX_OUT_OF_RANGE = "Queue index {index} is out of range (length {length})"

    # Container Errors
    NO_PLAY_MANAGER = "No play manager registered for guild {guild_id}"


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Play Manager Lifecycle
    PLAY_MANAGER_CREATED = "Play manager instantiated for guild %s"
    PLAY_MANAGER_REMOVED = "Play manager removed for guild %s"
    CONNECTION_ATTACHED = "Voice connection attached in guild %s (channel %s)"
    CONTAINER_BOOTSTRAPPED = "Container bootstrapped (environment=%s, log_level=%s)"
    CONTAINER_SHUTDOWN = "Container shut down, all play managers closed"

    # Play
    PLAY_CALLED = "Play called in guild %s (seek=%s, quiet=%s)"
    PLAY_REJECTED = (
        "Play called in guild %s but operated nothing "
        "(state=%s, connected=%s, queue_empty=%s)"
    )
    PLAY_WAITING_FOR_LIVE = "Waiting for live stream '%s' in guild %s"
    PLAY_WAIT_CANCELED = "Live wait for '%s' canceled in guild %s"
    PLAY_SEEK_CLAMPED = "Seek %ss is past the end of '%s' (%ss); starting from the beginning"
    PLAY_CONNECTION_LOST = "Voice connection disappeared while resolving '%s' in guild %s"
    PLAY_SUPERSEDED = "Session for '%s' was superseded in guild %s, abandoning it"
    PLAY_STARTED = "Play started successfully: '%s' in guild %s (container=%s, cost=%s)"
    PLAY_MIX_PREPARE_FAILED = "Failed to prepare the next mix item in guild %s"

    # Stop / Disconnect
    STOP_CALLED = "Stop called in guild %s (force=%s, wait=%s)"
    STOP_FORCED = "Player didn't stop in time in guild %s; force-stopping"
    DISCONNECTED = "Disconnected from voice channel %s in guild %s"
    DISCONNECT_NO_CONNECTION = "Disconnect called but no connection in guild %s"

    # Pause / Resume / Rewind / Volume
    PAUSE_CALLED = "Pause called in guild %s (requester=%s)"
    RESUME_CALLED = "Resume called in guild %s (requester=%s)"
    RESUME_REFUSED = "Resume by %s refused in guild %s; playback was paused by %s"
    REWIND_CALLED = "Rewind called in guild %s"
    VOLUME_CHANGED = "Volume changed to %s%% in guild %s (applied=%s)"
    NO_ENGINE = "No playback engine in guild %s; ignoring %s"

    # Stream Completion
    STREAM_FINISHED = "Stream finished in guild %s"
    STREAM_FINISHED_STALE = "Ignoring finished callback from a stale session in guild %s"
    STREAM_FINISHED_IGNORED = "Ignoring finished callback in guild %s (state=%s)"
    STREAM_FINISH_TIMEOUT = (
        "Stream has not ended in time in guild %s and will be force-stopped"
    )
    STREAM_RELEASED = "Released stream in guild %s"
    STREAM_RELEASE_ERROR = "Error releasing stream: %s"

    # Queue Empty / Idle Timeout
    QUEUE_EMPTY = "Queue empty in guild %s"
    IDLE_TIMEOUT_EXPIRED = "Idle timeout expired in guild %s, disconnecting"
    IDLE_TIMER_ARMED = "Idle timer armed for %ss"
    IDLE_TIMER_DISARMED = "Idle timer disarmed"
    IDLE_TIMER_CALLBACK_ERROR = "Error in idle timer callback"

    # Failure / Retry
    HANDLED_ERROR = "Handled playback error in guild %s: %r"
    STREAM_FAILED = "Play failed in guild %s (%s times)"
    RETRY_LIMIT_REACHED = "Retry limit reached for '%s' in guild %s, skipping it"
    NOTIFICATION_FAILED = "Failed to deliver %s notification in guild %s"

    # Live Wait
    LIVE_WAIT_POLL = "Live source '%s' not available yet, next check in %.1fs"
    LIVE_WAIT_READY = "Live source '%s' is available"
    LIVE_WAIT_CHECK_FAILED = "Availability check failed for '%s': %r"
    LIVE_WAIT_SUPERSEDED = "Live wait for '%s' superseded by a newer source"

    # Playback Engine
    ENGINE_STATE_CHANGED = "Engine state %s -> %s"
    ENGINE_PLAY = "Engine playing stream (container=%s)"
    ENGINE_ERROR = "Engine reported error: %r"
    ENGINE_LISTENER_ERROR = "Error in engine state listener"
    ENGINE_FINISHED_CALLBACK_ERROR = "Error in engine finished callback"
    ENGINE_STALE_AFTER = "Ignoring after-callback for a replaced stream"

    # Stream Resolution
    RESOLVER_RESOLVED = "Resolved '%s' (container=%s, cost=%s, seek=%s)"
    RESOLVER_FFMPEG_ERROR = "FFmpeg could not open stream for '%s': %s"

    # yt-dlp
    CACHE_HIT_URL = "Cache hit for URL: %s"
    CACHE_EXPIRED_CLEANED = "Cleaned %d expired cache entries"
    CACHE_PURGED = "Purged cached extraction for %s"
    YTDLP_NO_STREAM_URL = "No stream URL found for %s"
    YTDLP_FAILED_EXTRACT_INFO = "Failed to extract info from %s"

    # Voice
    VOICE_CONNECTED = "Connected to voice channel %s in guild %s"
    VOICE_CONNECTION_TIMEOUT = "Voice connection timeout for channel %s"
    VOICE_CLIENT_ERROR = "Voice client error: %s"
    VOICE_NO_PERMISSION = "No permission to join voice channel %s"
    VOICE_DISCONNECT_FAILED = "Failed to disconnect voice client in guild %s"

    # Notifier
    NOTIFIER_SEND_FAILED = "Failed to send %s message to channel %s"
    NOTIFIER_EDIT_FAILED = "Failed to edit %s message in channel %s"

    # Event Bus
    EVENT_SUBSCRIBED = "Subscribed handler to: %s"
    EVENT_UNSUBSCRIBED = "Unsubscribed handler from %s"
    EVENT_NO_HANDLERS = "No handlers for %s"
    EVENT_PUBLISHING = "Publishing %s to %d handlers"
    EVENT_HANDLER_ERROR = "Error in handler for %s: %s"
    EVENT_HANDLERS_CLEARED = "Cleared all event handlers"


class DiscordUIMessages:
    """User-facing strings posted to the bound text channel."""

    WAITING_FOR_LIVE = "⏱️ Waiting for the live stream **{title}** to start..."
    WAITING_CANCELED = "✅ Stopped waiting for the live stream."
    PREPARING = "⌛ Preparing **{title}** `({duration})`..."
    QUEUE_EMPTY = "\U0001f643 The queue is empty."
    QUEUE_EMPTY_EXITING = "\U0001f44b The queue stayed empty, so I left the voice channel."
    PLAYBACK_FAILED = "\U0001f62b Failed to play **{title}**."
    FAILED_AND_SKIPPING = " Skipping it."
    FAILED_AND_RETRYING = " Retrying..."

    EMBED_NOW_PLAYING = "\U0001f4bf Now Playing \U0001f3b5"
    FIELD_REQUESTED_BY = "Requested by"
    FIELD_NEXT_UP = "⏭️ Next Up"
    FIELD_IN_QUEUE = "In queue"
    LIVE_STREAM = "Live"
    UNKNOWN = "Unknown"
    UP_NEXT_NONE = "Nothing queued"
    WILL_LOOP = "Looping the current track"
    IN_QUEUE_COUNT = "{count} track(s) ({duration})"
    IN_MIX_PLAYLIST = " (mix)"
