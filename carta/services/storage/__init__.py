"""
Remote Storage Factory

Selects the remote mirror from STORAGE_BACKEND:

    - local: None, the application runs on in-process state only
    - mock: MockRemoteStore
    - postgres: SqlRemoteStore (requires DATABASE_URL and REDIS_URL)

Usage:
    from carta.services.storage import create_remote_store

    remote = create_remote_store(settings)
    if remote is not None:
        rows = await remote.fetch_menu()
"""

import logging
from typing import Optional

from carta.core.config import Settings, StorageBackend, get_settings
from carta.services.storage.base import (
    MENU_TABLE,
    ORDERS_TABLE,
    BaseRemoteStore,
    ChangeEvent,
    ChangeOp,
    RemoteStoreError,
    Row,
    Subscription,
)
from carta.services.storage.mock import MockRemoteStore

logger = logging.getLogger(__name__)


def create_remote_store(settings: Optional[Settings] = None) -> Optional[BaseRemoteStore]:
    """
    Build the configured remote store, or None when running locally.

    Raises:
        ValueError: If postgres is selected without a DATABASE_URL
    """
    settings = settings or get_settings()

    if settings.storage_backend == StorageBackend.LOCAL:
        logger.info("Remote Store: disabled (local in-memory mode)")
        return None

    if settings.storage_backend == StorageBackend.MOCK:
        logger.info("Remote Store: Using MockRemoteStore")
        return MockRemoteStore(
            failure_rate=settings.mock_failure_rate,
            min_latency=settings.mock_min_latency,
            max_latency=settings.mock_max_latency,
        )

    if not settings.database_url:
        raise ValueError("STORAGE_BACKEND=postgres requires DATABASE_URL")

    # imported lazily so local/mock runs never touch the database drivers
    from carta.services.storage.postgres import SqlRemoteStore

    logger.info("Remote Store: Using SqlRemoteStore (postgres + redis)")
    return SqlRemoteStore(
        database_url=settings.database_url,
        redis_url=settings.redis_url,
        channel_prefix=settings.realtime_channel_prefix,
        echo=settings.database_echo,
    )


__all__ = [
    "create_remote_store",
    "BaseRemoteStore",
    "ChangeEvent",
    "ChangeOp",
    "MENU_TABLE",
    "ORDERS_TABLE",
    "MockRemoteStore",
    "RemoteStoreError",
    "Row",
    "Subscription",
]
