"""Cancellable handles for the delayed stop that ends a timed run."""

from __future__ import annotations

import asyncio
import contextlib
import itertools
import logging
from typing import Awaitable, Callable, Optional

from .core import DispatchError

LOGGER = logging.getLogger(__name__)

StopCallback = Callable[[], Awaitable[None]]

_run_ids = itertools.count(1)


class RunHandle:
    """Owns the pending ``stop()`` for one run.

    The stop fires once, at ``deadline`` (event-loop time). Cancelling the
    handle guarantees the stop will not fire for this run.
    """

    def __init__(self, stop: StopCallback, deadline: float) -> None:
        self.run_id = next(_run_ids)
        self.deadline = deadline
        self.error: Optional[DispatchError] = None
        self.stopped = False
        self._stop = stop
        self._loop = asyncio.get_running_loop()
        self._task: asyncio.Task[None] = asyncio.create_task(self._stop_at_deadline())

    @classmethod
    def schedule(cls, stop: StopCallback, started_at: float, duration: float) -> "RunHandle":
        """Schedule ``stop`` for ``duration`` seconds after ``started_at``."""

        return cls(stop, started_at + duration)

    @property
    def pending(self) -> bool:
        return not self._task.done()

    @property
    def cancelled(self) -> bool:
        return self._task.cancelled()

    @property
    def remaining_seconds(self) -> float:
        return max(0.0, self.deadline - self._loop.time())

    def cancel(self) -> bool:
        """Drop the pending stop. Returns ``False`` if it already ran."""

        if self._task.done():
            return False
        LOGGER.debug("Cancelling pending stop for run %d", self.run_id)
        return self._task.cancel()

    async def wait(self) -> None:
        """Wait until the stop has fired or the handle was cancelled."""

        with contextlib.suppress(asyncio.CancelledError):
            await self._task

    async def stop_now(self) -> None:
        """Cancel the timer and issue the stop immediately."""

        if not self.cancel():
            return
        await self.wait()
        await self._run_stop()

    async def _stop_at_deadline(self) -> None:
        await asyncio.sleep(max(0.0, self.deadline - self._loop.time()))
        await self._run_stop()

    async def _run_stop(self) -> None:
        try:
            await self._stop()
        except DispatchError as exc:
            self.error = exc
            LOGGER.error("Failed to stop run %d: %s", self.run_id, exc)
            return
        self.stopped = True
        LOGGER.info("Run %d stopped", self.run_id)
