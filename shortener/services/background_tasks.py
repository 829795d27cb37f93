"""
Background Click Counting

Redirects must not wait for the click counter to be written. Instead the
redirect handler submits the short code to a ClickCounterWorker, which owns
an in-process queue and a single consumer task that applies each increment
in its own store transaction.

Increments are best effort: a failure is logged and dropped, never retried,
and clicks still queued when the process dies are lost.
"""

import asyncio
import logging
from typing import Optional

from shortener.db.store import KeyValueStore
from shortener.services.visit_count_service import VisitCountService

logger = logging.getLogger(__name__)


async def increment_visit_count_background(store: KeyValueStore, short_code: str) -> None:
    """
    Increment the click counter of a short code in its own transaction.

    Errors are logged and swallowed.

    Args:
        store: The key-value store
        short_code: The short code to increment count for
    """
    try:
        async with store.update() as tx:
            await VisitCountService(tx).increment_visit_count(short_code)
    except Exception as e:
        logger.error(
            f"Failed to increment visit count for {short_code}: {str(e)}",
            exc_info=True
        )


class ClickCounterWorker:
    """
    Queue-fed consumer applying click increments off the request path.

    Lifecycle: start() after the store is open, stop() before it closes.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store
        self._queue: Optional[asyncio.Queue] = None
        self._task: Optional[asyncio.Task] = None
        self._total_processed = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def pending(self) -> int:
        return self._queue.qsize() if self._queue is not None else 0

    async def start(self) -> None:
        if self.running:
            logger.warning("Click counter worker already running")
            return
        self._queue = asyncio.Queue()
        self._task = asyncio.create_task(self._run(), name="click-counter")
        logger.info("Click counter worker started")

    def submit(self, short_code: str) -> bool:
        """
        Queue one click for short_code without blocking.

        Returns:
            True if queued, False if the worker is not running
        """
        if not self.running:
            logger.warning(f"Click counter worker not running, dropping click for {short_code}")
            return False
        self._queue.put_nowait(short_code)
        return True

    async def drain(self) -> None:
        """Wait until every queued click has been applied."""
        if self._queue is not None and self.running:
            await self._queue.join()

    async def stop(self) -> None:
        """Apply the clicks still queued, then stop the consumer."""
        if self._task is None:
            return
        await self.drain()
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        logger.info(f"Click counter worker stopped: processed={self._total_processed}")
        self._task = None
        self._queue = None

    async def _run(self) -> None:
        while True:
            short_code = await self._queue.get()
            try:
                await increment_visit_count_background(self.store, short_code)
                self._total_processed += 1
            finally:
                self._queue.task_done()
