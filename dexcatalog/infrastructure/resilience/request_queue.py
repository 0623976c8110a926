"""Implementation of a rate-limited request queue.

Serializes outgoing catalog requests: tasks run one at a time in strict
submission order, with a fixed minimum pause between consecutive tasks.
The queue is unbounded and has no priorities or cancellation.
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Deque, Optional

from dexcatalog.domain.events.api_events import EventHandler, RequestQueued, dispatch_event

logger = logging.getLogger(__name__)

DEFAULT_MIN_INTERVAL_SECONDS = 0.1

Operation = Callable[[], Awaitable[Any]]

@dataclass
class QueueTask:
    """A pending operation and the future its submitter is awaiting."""
    operation: Operation
    future: "asyncio.Future[Any]"
    sequence: int = field(default=0)

class RequestQueue:
    """FIFO queue drained by a single worker loop."""

    def __init__(
        self,
        min_interval_s: float = DEFAULT_MIN_INTERVAL_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        event_handler: Optional[EventHandler] = None,
    ):
        """Initializes the request queue.

        Args:
            min_interval_s: Pause after each task before the next one starts.
            sleep: Awaitable sleep function, injectable for tests.
            event_handler: Optional receiver for RequestQueued events.
        """
        if min_interval_s < 0:
            raise ValueError("Minimum interval must be non-negative.")
        self.min_interval_s = min_interval_s
        self._sleep = sleep
        self._event_handler = event_handler
        self._pending: Deque[QueueTask] = deque()
        self._running = False
        self._worker: Optional["asyncio.Task[None]"] = None
        self._submitted = 0
        logger.info(f"RequestQueue initialized: min interval {min_interval_s}s between requests")

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def is_running(self) -> bool:
        return self._running

    async def enqueue(self, operation: Operation) -> Any:
        """Adds an operation to the tail of the queue and waits for its outcome.

        Returns:
            Whatever the operation returns.

        Raises:
            Exception: Whatever the operation raises; other tasks are unaffected.
        """
        loop = asyncio.get_running_loop()
        self._submitted += 1
        task = QueueTask(operation=operation, future=loop.create_future(), sequence=self._submitted)
        self._pending.append(task)
        dispatch_event(self._event_handler, RequestQueued(queue_depth=len(self._pending)))
        logger.debug(f"Queued request #{task.sequence} (depth={len(self._pending)})")
        self._ensure_worker()
        return await task.future

    def _ensure_worker(self) -> None:
        if self._running:
            return
        self._running = True
        self._worker = asyncio.get_running_loop().create_task(self._process())

    async def _process(self) -> None:
        """Worker loop: pop head, run it, settle its future, pause, repeat."""
        try:
            while self._pending:
                task = self._pending.popleft()
                logger.debug(f"Dispatching request #{task.sequence}")
                try:
                    result = await task.operation()
                except Exception as e:
                    if not task.future.done():
                        task.future.set_exception(e)
                    logger.debug(f"Request #{task.sequence} failed: {type(e).__name__}")
                else:
                    if not task.future.done():
                        task.future.set_result(result)
                await self._sleep(self.min_interval_s)
        finally:
            self._running = False
            self._worker = None
