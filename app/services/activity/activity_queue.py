import asyncio
from typing import Awaitable, Callable, Optional

from app.core.logger import logger
from app.schemas.activity.activity_log import ActivityLogEntry

Sink = Callable[[ActivityLogEntry], Awaitable[None]]


class ActivityLogQueue:
    """
    Hands activity entries to a background worker so that writing the audit
    trail never blocks or fails the request that produced it.

    Delivery is retried with exponential backoff; an entry that still fails
    after ``max_retries`` attempts is dropped and reported.
    """
    BACKOFF_FACTOR = 2

    def __init__(
        self,
        sink: Sink,
        maxsize: int = 1000,
        max_retries: int = 5,
        base_delay: float = 0.5,
        max_delay: float = 30.0,
    ):
        self._sink = sink
        self._maxsize = maxsize
        self._max_retries = max(1, max_retries)
        self._base_delay = base_delay
        self._max_delay = max_delay
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def __len__(self) -> int:
        return self._queue.qsize() if self._queue else 0

    def _ensure_queue(self) -> asyncio.Queue:
        if self._queue is None:
            self._queue = asyncio.Queue(maxsize=self._maxsize)
        return self._queue

    def enqueue(self, entry: ActivityLogEntry) -> bool:
        try:
            self._ensure_queue().put_nowait(entry)
        except asyncio.QueueFull:
            logger.warning(f"Activity log queue full, dropping {entry.action_type.value} for trip {entry.trip_id}")
            return False
        return True

    def retry_delay(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (1-based)."""
        delay = self._base_delay * (self.BACKOFF_FACTOR ** (attempt - 1))
        return min(delay, self._max_delay)

    async def start(self) -> None:
        if self.running:
            return
        self._ensure_queue()
        self._worker = asyncio.create_task(self._run())
        logger.info("Activity log worker started")

    async def stop(self, timeout: float = 5.0) -> None:
        if not self.running:
            return
        try:
            await asyncio.wait_for(self._queue.join(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Activity log worker stopped with {len(self)} entries pending")
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None
        logger.info("Activity log worker stopped")

    async def drain(self) -> None:
        """Wait until every queued entry has been delivered or dropped."""
        if self._queue is not None:
            await self._queue.join()

    async def _run(self) -> None:
        while True:
            entry = await self._queue.get()
            try:
                await self.deliver(entry)
            finally:
                self._queue.task_done()

    async def deliver(self, entry: ActivityLogEntry) -> bool:
        for attempt in range(1, self._max_retries + 1):
            try:
                await self._sink(entry)
                return True
            except Exception as e:
                if attempt == self._max_retries:
                    logger.error(
                        f"Dropping activity {entry.action_type.value} for trip {entry.trip_id} "
                        f"after {attempt} attempts: {e}"
                    )
                    return False
                delay = self.retry_delay(attempt)
                logger.warning(f"Activity log write failed (attempt {attempt}), retrying in {delay:.1f}s: {e}")
                await asyncio.sleep(delay)
        return False
