"""Serialized execution of ConfigMap updates.

Updates are fetch-merge-write cycles against the same ConfigMap with no
compare-and-swap. Two overlapping cycles would lose one writer's data, so
every update goes through a single worker that runs them one at a time in
submission order.

The queue is unbounded. A worker task is started lazily when work arrives
on an idle queue and exits once the queue is empty.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

Thunk = Callable[[], Awaitable[object]]


class SerialExecutor:
    """Single-worker FIFO executor for async thunks.

    ``schedule`` must be called from the event loop thread. It never blocks
    and never raises; failures of a thunk are logged and the worker moves on
    to the next one.
    """

    def __init__(self, name: str = "serial-executor") -> None:
        self._name = name
        self._queue: deque[Thunk] = deque()
        self._worker: asyncio.Task[None] | None = None
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def pending(self) -> int:
        """Number of thunks queued but not yet started."""
        return len(self._queue)

    @property
    def busy(self) -> bool:
        """Whether a worker is currently draining the queue."""
        return self._worker is not None

    def schedule(self, thunk: Thunk) -> None:
        """Queue a thunk to run after everything already submitted."""
        self._queue.append(thunk)
        if self._worker is None:
            self._idle.clear()
            self._worker = asyncio.get_running_loop().create_task(
                self._drain(), name=self._name
            )

    async def wait_idle(self, timeout: float | None = None) -> bool:
        """Wait until the queue is drained.

        Returns:
            True if the queue drained, False if the timeout elapsed first.
        """
        try:
            await asyncio.wait_for(self._idle.wait(), timeout=timeout)
        except TimeoutError:
            return False
        return True

    async def _drain(self) -> None:
        try:
            while self._queue:
                thunk = self._queue.popleft()
                try:
                    await thunk()
                except Exception:
                    logger.exception(
                        "Scheduled task failed",
                        extra={"executor": self._name, "pending": len(self._queue)},
                    )
        finally:
            self._worker = None
            self._idle.set()
