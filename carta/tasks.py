"""
Celery Tasks
Delayed removal of delivered orders from the postgres backend.
"""

import asyncio
import logging
import time

from carta.celery_worker import celery_app, settings

logger = logging.getLogger(__name__)


async def _delete_order(order_id: str) -> None:
    from carta.services.storage.postgres import SqlRemoteStore

    store = SqlRemoteStore(
        database_url=settings.database_url,
        redis_url=settings.redis_url,
        channel_prefix=settings.realtime_channel_prefix,
    )
    try:
        await store.delete_order(order_id)
    finally:
        await store.close()


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(Exception,),
    retry_backoff=True
)
def purge_delivered_order(self, order_id: str) -> dict:
    """
    Delete one delivered order so the kitchen board stays clean.
    Scheduled with a countdown when the order is marked delivered.

    Args:
        order_id: Order id as assigned by the backend

    Returns:
        dict: Result of the purge
    """
    task_id = self.request.id
    logger.info(f"Task {task_id}: purging delivered order {order_id}")
    start_time = time.time()

    if not settings.database_url:
        logger.warning(f"Task {task_id}: no DATABASE_URL, nothing to purge")
        return {'success': False, 'order_id': order_id, 'message': 'DATABASE_URL not configured'}

    try:
        asyncio.run(_delete_order(order_id))
    except Exception as e:
        elapsed = round(time.time() - start_time, 3)
        logger.error(f"Task {task_id}: purge of {order_id} failed after {elapsed}s - {e}")
        # Celery will auto-retry based on configuration
        raise

    elapsed = round(time.time() - start_time, 3)
    logger.info(f"Task {task_id}: order {order_id} purged in {elapsed}s")
    return {
        'success': True,
        'order_id': order_id,
        'task_id': task_id,
        'processing_time_seconds': elapsed,
    }
