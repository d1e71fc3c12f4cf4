"""
PostgreSQL Remote Store Implementation

Mirrors menu and orders into PostgreSQL through SQLAlchemy async sessions
(psycopg driver). Postgres does not push row changes by itself here, so
every committed write is also published as a ChangeEvent on a Redis
pub/sub channel (`<prefix>:<table>`); subscribe() listens on that channel
with redis.asyncio. Every dashboard attached to the same database and
Redis therefore sees every other dashboard's writes, including its own
echoes.
"""

import asyncio
import inspect
import json
import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Sequence

import redis.asyncio as redis
from redis.exceptions import RedisError
from sqlalchemy import delete, select, text, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import func

from carta.database import create_engine, create_session_maker, init_db
from carta.models import MenuRow, OrderRow, OrderStatus
from carta.services.storage.base import (
    MENU_TABLE,
    ORDERS_TABLE,
    BaseRemoteStore,
    ChangeCallback,
    ChangeEvent,
    ChangeOp,
    RemoteStoreError,
    Row,
    Subscription,
)

logger = logging.getLogger(__name__)

MENU_COLUMNS = ("name", "category", "price", "description", "image", "available")


class _RedisSubscription(Subscription):
    """Background reader task over one pub/sub channel."""

    def __init__(self, pubsub, channel: str, callback: ChangeCallback):
        self._pubsub = pubsub
        self._channel = channel
        self._callback = callback
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        try:
            async for message in self._pubsub.listen():
                if message.get("type") != "message":
                    continue
                try:
                    event = ChangeEvent.from_dict(json.loads(message["data"]))
                    result = self._callback(event)
                    if inspect.isawaitable(result):
                        await result
                except Exception as e:
                    logger.exception(f"Failed to handle change on {self._channel}: {e}")
        except asyncio.CancelledError:
            logger.info(f"Redis subscriber for {self._channel} cancelled")
            raise
        except RedisError as e:
            logger.error(f"Redis subscriber for {self._channel} stopped: {e}")

    async def close(self) -> None:
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        try:
            await self._pubsub.unsubscribe(self._channel)
            await self._pubsub.aclose()
        except RedisError as e:
            logger.warning(f"Error closing subscription {self._channel}: {e}")


class SqlRemoteStore(BaseRemoteStore):
    """
    PostgreSQL + Redis implementation of the remote store.

    Args:
        database_url: SQLAlchemy async URL (postgresql+psycopg://...)
        redis_url: Redis URL for the change feed
        channel_prefix: Prefix of the per-table pub/sub channels
        echo: Log SQL statements
    """

    def __init__(
        self,
        database_url: str,
        redis_url: str,
        channel_prefix: str = "carta:changes",
        echo: bool = False,
    ):
        self.engine = create_engine(database_url, echo=echo)
        self.session_maker = create_session_maker(self.engine)
        self.redis = redis.from_url(redis_url, decode_responses=True)
        self.channel_prefix = channel_prefix
        logger.info(f"SqlRemoteStore initialized (channels={channel_prefix}:*)")

    @property
    def provider_name(self) -> str:
        return "postgres"

    def channel(self, table: str) -> str:
        return f"{self.channel_prefix}:{table}"

    async def init_schema(self) -> None:
        """Create the menu and orders tables if missing."""
        try:
            await init_db(self.engine)
        except SQLAlchemyError as e:
            raise RemoteStoreError(f"Schema creation failed: {e}") from e

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self.session_maker() as session:
                async with session.begin():
                    yield session
        except SQLAlchemyError as e:
            logger.error(f"Database error in {operation}: {e}")
            raise RemoteStoreError(f"{operation} failed: {e}") from e

    async def _publish(self, events: Sequence[ChangeEvent]) -> None:
        try:
            for event in events:
                await self.redis.publish(self.channel(event.table), json.dumps(event.to_dict(), default=str))
        except RedisError as e:
            logger.error(f"Failed to publish change events: {e}")
            raise RemoteStoreError(f"Change publish failed: {e}") from e

    # -------------------------------------------------------------------------
    # menu
    # -------------------------------------------------------------------------

    async def fetch_menu(self) -> list[Row]:
        async with self._session("fetch_menu") as session:
            result = await session.scalars(select(MenuRow).order_by(MenuRow.category, MenuRow.id))
            return [row.to_row() for row in result.all()]

    async def upsert_menu(self, rows: Sequence[Row]) -> None:
        if not rows:
            return
        values = [
            {"id": int(row["id"]), **{col: row[col] for col in MENU_COLUMNS if col in row}}
            for row in rows
        ]
        ids = [value["id"] for value in values]

        async with self._session("upsert_menu") as session:
            existing = set((await session.scalars(select(MenuRow.id).where(MenuRow.id.in_(ids)))).all())

            stmt = pg_insert(MenuRow).values(values)
            stmt = stmt.on_conflict_do_update(
                index_elements=[MenuRow.id],
                set_={**{col: stmt.excluded[col] for col in MENU_COLUMNS}, "updated_at": func.now()},
            )
            result = await session.scalars(
                stmt.returning(MenuRow),
                execution_options={"populate_existing": True},
            )
            stored = [row.to_row() for row in result.all()]

        events = [
            ChangeEvent(ChangeOp.UPDATE if row["id"] in existing else ChangeOp.INSERT, MENU_TABLE, row)
            for row in stored
        ]
        await self._publish(events)

    async def update_menu_item(self, item_id: int, changes: Row) -> None:
        values = {col: changes[col] for col in MENU_COLUMNS if col in changes}
        if not values:
            return

        async with self._session("update_menu_item") as session:
            stmt = (
                update(MenuRow)
                .where(MenuRow.id == item_id)
                .values(**values, updated_at=func.now())
                .returning(MenuRow)
            )
            result = await session.scalars(stmt, execution_options={"populate_existing": True})
            row = result.one_or_none()
            stored = row.to_row() if row is not None else None

        if stored is not None:
            await self._publish([ChangeEvent(ChangeOp.UPDATE, MENU_TABLE, stored)])

    async def delete_all_menu(self) -> None:
        async with self._session("delete_all_menu") as session:
            result = await session.scalars(delete(MenuRow).returning(MenuRow.id))
            removed = list(result.all())

        await self._publish([ChangeEvent(ChangeOp.DELETE, MENU_TABLE, {}, {"id": item_id}) for item_id in removed])

    # -------------------------------------------------------------------------
    # orders
    # -------------------------------------------------------------------------

    async def fetch_orders(self) -> list[Row]:
        async with self._session("fetch_orders") as session:
            result = await session.scalars(select(OrderRow).order_by(OrderRow.created_at.desc()))
            return [row.to_row() for row in result.all()]

    async def insert_order(self, row: Row) -> Row:
        async with self._session("insert_order") as session:
            order = OrderRow(
                id=uuid.uuid4().hex,
                table_number=str(row["table_number"]),
                items=row["items"],
                total=float(row["total"]),
                status=OrderStatus(row.get("status", OrderStatus.PENDING.value)),
            )
            session.add(order)
            await session.flush()
            await session.refresh(order)
            stored = order.to_row()

        await self._publish([ChangeEvent(ChangeOp.INSERT, ORDERS_TABLE, stored)])
        return stored

    async def update_order_status(self, order_id: str, status: str) -> None:
        async with self._session("update_order_status") as session:
            stmt = (
                update(OrderRow)
                .where(OrderRow.id == order_id)
                .values(status=OrderStatus(status))
                .returning(OrderRow)
            )
            result = await session.scalars(stmt, execution_options={"populate_existing": True})
            row = result.one_or_none()
            stored = row.to_row() if row is not None else None

        if stored is not None:
            await self._publish([ChangeEvent(ChangeOp.UPDATE, ORDERS_TABLE, stored)])

    async def delete_order(self, order_id: str) -> None:
        async with self._session("delete_order") as session:
            result = await session.scalars(delete(OrderRow).where(OrderRow.id == order_id).returning(OrderRow.id))
            removed = result.one_or_none()

        if removed is not None:
            await self._publish([ChangeEvent(ChangeOp.DELETE, ORDERS_TABLE, {}, {"id": removed})])

    # -------------------------------------------------------------------------
    # realtime / lifecycle
    # -------------------------------------------------------------------------

    async def subscribe(self, table: str, callback: ChangeCallback) -> Subscription:
        channel = self.channel(table)
        try:
            pubsub = self.redis.pubsub()
            await pubsub.subscribe(channel)
        except RedisError as e:
            raise RemoteStoreError(f"Subscribe to {channel} failed: {e}") from e
        logger.info(f"Subscribed to {channel}")
        return _RedisSubscription(pubsub, channel, callback)

    async def health_check(self) -> bool:
        try:
            async with self.session_maker() as session:
                await session.execute(text("SELECT 1"))
            await self.redis.ping()
            return True
        except (SQLAlchemyError, RedisError) as e:
            logger.error(f"Remote store health check failed: {e}")
            return False

    async def close(self) -> None:
        await self.redis.aclose()
        await self.engine.dispose()
