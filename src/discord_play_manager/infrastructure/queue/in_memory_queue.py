"""In-memory QueuePort implementation for a single guild."""

from __future__ import annotations

import random
from collections.abc import Awaitable, Callable

from discord_play_manager.application.interfaces.queue_port import QueueItem, QueuePort
from discord_play_manager.domain.shared.messages import ErrorMessages

MixProvider = Callable[[QueueItem], Awaitable[QueueItem | None]]


class InMemoryQueue(QueuePort):
    """List-backed queue. Index 0 is the item being played.

    With queue loop enabled, ``next`` moves the old head to the tail instead
    of dropping it. ``shuffle`` never moves the head.
    """

    def __init__(
        self,
        items: list[QueueItem] | None = None,
        *,
        max_size: int | None = None,
        mix_provider: MixProvider | None = None,
    ) -> None:
        self._items: list[QueueItem] = list(items or [])
        self._max_size = max_size
        self._mix_provider = mix_provider
        self._loop = False
        self._queue_loop = False
        self._once_loop = False
        self._mix_playlist = False

    # ── Reads ──────────────────────────────────────────────────────

    def get(self, index: int) -> QueueItem:
        if not 0 <= index < len(self._items):
            raise IndexError(
                ErrorMessages.QUEUE_INDEX_OUT_OF_RANGE.format(index=index, length=len(self._items))
            )
        return self._items[index]

    @property
    def length(self) -> int:
        return len(self._items)

    @property
    def length_seconds(self) -> int:
        return sum(max(item.source.duration_seconds, 0) for item in self._items)

    @property
    def items(self) -> tuple[QueueItem, ...]:
        return tuple(self._items)

    @property
    def is_full(self) -> bool:
        return self._max_size is not None and len(self._items) >= self._max_size

    # ── Mutations ──────────────────────────────────────────────────

    def add(self, item: QueueItem) -> int:
        """Append *item* and return its index, or -1 if the queue is full."""
        if self.is_full:
            return -1
        self._items.append(item)
        return len(self._items) - 1

    def add_next(self, item: QueueItem) -> int:
        """Insert *item* right after the head, or -1 if the queue is full."""
        if self.is_full:
            return -1
        index = min(1, len(self._items))
        self._items.insert(index, item)
        return index

    def remove_at(self, index: int) -> QueueItem | None:
        if 0 <= index < len(self._items):
            return self._items.pop(index)
        return None

    def move(self, from_index: int, to_index: int) -> bool:
        if not (0 <= from_index < len(self._items) and 0 <= to_index < len(self._items)):
            return False
        item = self._items.pop(from_index)
        self._items.insert(to_index, item)
        return True

    def shuffle(self) -> None:
        if len(self._items) <= 2:
            return
        rest = self._items[1:]
        random.shuffle(rest)
        self._items[1:] = rest

    def clear(self, *, keep_head: bool = False) -> int:
        """Remove queued items and return how many were removed."""
        if keep_head and self._items:
            removed = len(self._items) - 1
            del self._items[1:]
            return removed
        removed = len(self._items)
        self._items.clear()
        return removed

    async def next(self) -> None:
        if not self._items:
            return
        head = self._items.pop(0)
        if self._queue_loop:
            self._items.append(head)

    # ── Loop flags ─────────────────────────────────────────────────

    @property
    def loop_enabled(self) -> bool:
        return self._loop

    @loop_enabled.setter
    def loop_enabled(self, value: bool) -> None:
        self._loop = value

    @property
    def queue_loop_enabled(self) -> bool:
        return self._queue_loop

    @queue_loop_enabled.setter
    def queue_loop_enabled(self, value: bool) -> None:
        self._queue_loop = value

    @property
    def once_loop_enabled(self) -> bool:
        return self._once_loop

    @once_loop_enabled.setter
    def once_loop_enabled(self, value: bool) -> None:
        self._once_loop = value

    # ── Mix playlist ───────────────────────────────────────────────

    @property
    def mix_playlist_enabled(self) -> bool:
        return self._mix_playlist and self._mix_provider is not None

    @mix_playlist_enabled.setter
    def mix_playlist_enabled(self, value: bool) -> None:
        self._mix_playlist = value

    async def prepare_next_mix_item(self) -> None:
        """Append the provider's follow-up to the last item when the queue runs short."""
        provider = self._mix_provider
        if provider is None or not self._mix_playlist or len(self._items) != 1:
            return
        follow_up = await provider(self._items[-1])
        if follow_up is not None:
            self.add(follow_up)
