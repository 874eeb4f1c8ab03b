"""Explicit cancellation handle passed into cancelable waits."""

from __future__ import annotations

import asyncio


class CancellationToken:
    """One-shot cancellation signal.

    Waiters sleep on the token rather than on a bare timer, so ``cancel``
    wakes them immediately.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str = "cancelled") -> None:
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    async def sleep(self, delay: float) -> bool:
        """Sleep up to *delay* seconds; return True if cancelled meanwhile."""
        if self.cancelled:
            return True
        try:
            async with asyncio.timeout(delay):
                await self._event.wait()
        except TimeoutError:
            pass
        return self.cancelled
