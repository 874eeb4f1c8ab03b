"""Queue adapters."""

from discord_play_manager.infrastructure.queue.in_memory_queue import InMemoryQueue, MixProvider

__all__ = ["InMemoryQueue", "MixProvider"]
