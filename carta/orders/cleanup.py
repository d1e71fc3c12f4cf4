"""
Delivered-Order Cleanup

A delivered order is deleted a fixed delay after it was marked delivered.

    - InlineCleanupScheduler: asyncio timer in this process (lost on restart)
    - CeleryCleanupScheduler: Celery task with a countdown, survives restarts
"""

import asyncio
import logging
from abc import ABC, abstractmethod

from carta.services.storage import BaseRemoteStore

logger = logging.getLogger(__name__)


class CleanupScheduler(ABC):
    @abstractmethod
    def schedule(self, order_id: str) -> None:
        """Arrange for the order to be deleted after the delay."""
        pass

    async def close(self) -> None:
        return None


class InlineCleanupScheduler(CleanupScheduler):
    """Deletes through the given store after `delay` seconds."""

    def __init__(self, store: BaseRemoteStore, delay: float = 30.0):
        self.store = store
        self.delay = delay
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(self, order_id: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"No running event loop, cleanup of order {order_id} skipped")
            return
        task = loop.create_task(self._purge_later(order_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.debug(f"Order {order_id} scheduled for deletion in {self.delay}s")

    async def _purge_later(self, order_id: str) -> None:
        await asyncio.sleep(self.delay)
        try:
            await self.store.delete_order(order_id)
            logger.info(f"Delivered order {order_id} deleted")
        except Exception as e:
            # not surfaced to staff, the order simply stays on the board
            logger.exception(f"Auto-deletion of order {order_id} failed: {e}")

    async def close(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


class CeleryCleanupScheduler(CleanupScheduler):
    """Queues carta.tasks.purge_delivered_order with a countdown."""

    def __init__(self, delay: float = 30.0):
        self.delay = delay

    def schedule(self, order_id: str) -> None:
        from carta.tasks import purge_delivered_order

        try:
            result = purge_delivered_order.apply_async(args=[order_id], countdown=self.delay)
            logger.info(f"Queued purge of order {order_id} (task {result.id})")
        except Exception as e:
            logger.exception(f"Could not queue purge of order {order_id}: {e}")
