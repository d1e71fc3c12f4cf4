"""
Celery Worker Configuration

Redis-backed worker for delayed order cleanup. Only started when
ORDER_CLEANUP_BACKEND=celery; the worker shares the postgres backend
with the API process.

Run:
    celery -A carta.celery_worker worker -Q cleanup --loglevel=info
"""

from celery import Celery

from carta.core.config import get_settings

settings = get_settings()

CLEANUP_QUEUE = "cleanup"

celery_app = Celery(
    "carta_worker",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["carta.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # purges are tiny, one in flight per worker process is plenty
    worker_prefetch_multiplier=1,
    worker_concurrency=2,

    task_routes={"carta.tasks.purge_delivered_order": {"queue": CLEANUP_QUEUE}},
    task_time_limit=60,
    result_expires=600,

    # a countdown task must survive a worker restart
    task_acks_late=True,
    task_reject_on_worker_lost=True,

    broker_connection_retry_on_startup=True,
)


if __name__ == "__main__":
    celery_app.start()
