"""Cooperative cancellation token handed to each simulation task at spawn time."""

from __future__ import annotations

import asyncio


class CancellationToken:
    """One-way flag that tasks check at every suspension point.

    ``sleep`` returns early once the token is cancelled, so a stop request takes
    effect no later than the end of the current period.
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

    def cancel(self, reason: str) -> bool:
        """Cancel the token. Returns ``False`` if it was already cancelled."""
        if self._event.is_set():
            return False
        self._reason = reason
        self._event.set()
        return True

    async def sleep(self, seconds: float) -> bool:
        """Wait ``seconds`` or until cancelled. Returns ``True`` if cancelled."""
        if self._event.is_set():
            return True
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True
