"""Cancellation Token — shared, one-way cancellation context for a task run.

Invariants:
    - Two states: active → cancelled. Cancelled is terminal; cancel() is idempotent
    - One token per orchestrator; both calls of a run read the same token
    - sleep() returns early (True) as soon as the token is cancelled
    - Usable from any event loop: the token never holds a loop-bound primitive
      across loops (an orchestrator may be driven by successive asyncio.run calls)

Design Decisions:
    - State is a plain bool; the asyncio.Event is only a wake-up signal, created
      lazily inside the running loop and replaced when the loop changes
    - No observer registry: at most two readers per run, they await the event directly
"""

import asyncio

from agent_iteration.core.errors import CallCancelledError, ErrorContext


class CancellationToken:
    """Explicit cancellation context passed by reference into every call."""

    def __init__(self) -> None:
        self._cancelled = False
        self._event: asyncio.Event | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        if self._event is not None:
            self._event.set()

    def raise_if_cancelled(self, context: ErrorContext | None = None) -> None:
        if self._cancelled:
            raise CallCancelledError(context)

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        await self._current_event().wait()

    async def sleep(self, seconds: float) -> bool:
        """Sleep up to `seconds`. Returns True if cancelled while waiting."""
        if self._cancelled:
            return True
        try:
            await asyncio.wait_for(self._current_event().wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True

    def _current_event(self) -> asyncio.Event:
        loop = asyncio.get_running_loop()
        if self._event is None or self._loop is not loop:
            self._event = asyncio.Event()
            self._loop = loop
            if self._cancelled:
                self._event.set()
        return self._event

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "active"
        return f"CancellationToken({state})"
