"""Cooperative cancellation token for job suspend points.

WHY: A job spends nearly all of its life suspended — waiting on the
network or on the delay before the next poll. An external cancel request
(Ctrl-C, a UI "stop" button) must be able to stop further scheduling at
any of those points without tearing down the whole event loop.

HOW: CancellationToken wraps an asyncio.Event. ``sleep()`` waits on the
event with a timeout, so a cancel wakes the sleeper immediately.
``run()`` races an awaitable against the event and a per-call deadline.

RULES:
- Cancelling is idempotent and cannot be undone
- ``sleep()`` and ``run()`` raise JobCancelledError once cancelled
- ``run()`` raises asyncio.TimeoutError when the deadline fires first
- The token does not cancel anything server-side
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Optional, TypeVar

from sta_transcriber.api.errors import JobCancelledError

T = TypeVar("T")


class CancellationToken:
    """Cancellation signal shared by every suspend point of one job."""

    def __init__(self) -> None:
        self._event: Optional[asyncio.Event] = None
        self._cancelled = False

    def _get_event(self) -> asyncio.Event:
        # Created lazily so the token can be built outside a running loop.
        if self._event is None:
            self._event = asyncio.Event()
            if self._cancelled:
                self._event.set()
        return self._event

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        if self._event is not None:
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise JobCancelledError("Transcription cancelled")

    async def sleep(self, delay: float) -> None:
        """Wait ``delay`` seconds, waking early if the token is cancelled."""
        self.raise_if_cancelled()
        try:
            await asyncio.wait_for(self._get_event().wait(), timeout=delay)
        except asyncio.TimeoutError:
            return
        self.raise_if_cancelled()

    async def run(self, awaitable: Awaitable[T], timeout: Optional[float]) -> T:
        """Await ``awaitable`` under a deadline, abandoning it on cancel.

        The awaitable runs as its own task; the event wait runs beside it.
        Whichever finishes first decides the outcome; the loser is
        cancelled so no request outlives its deadline.
        """
        self.raise_if_cancelled()
        work = asyncio.ensure_future(awaitable)
        stop = asyncio.ensure_future(self._get_event().wait())
        try:
            done, _ = await asyncio.wait(
                {work, stop},
                timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            work.cancel()
            raise
        finally:
            stop.cancel()

        if work in done:
            return work.result()

        work.cancel()
        try:
            await work
        except (asyncio.CancelledError, Exception):
            pass

        self.raise_if_cancelled()
        raise asyncio.TimeoutError()
