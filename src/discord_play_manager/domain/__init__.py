"""
Domain Layer

Contains pure playback logic with no Discord or FFmpeg dependencies:
- shared/: Cross-cutting types, events, messages and exceptions
- playback/: Session state machine, retry bookkeeping and view models
"""

from discord_play_manager.domain.shared.exceptions import DomainError

__all__ = [
    "DomainError",
]
