"""
Mock Remote Store Implementation

In-memory stand-in for the remote backend, used in development
(STORAGE_BACKEND=mock) and in tests. Behaves like the real backend:

    - server-managed timestamps and order ids
    - change events pushed to subscribers for every write, including
      echoes of the caller's own writes
    - optional simulated latency and random failures
"""

import asyncio
import copy
import inspect
import logging
import random
import uuid
from datetime import datetime, timezone
from typing import Optional, Sequence

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


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class _MockSubscription(Subscription):
    def __init__(self, store: "MockRemoteStore", table: str, callback: ChangeCallback):
        self._store = store
        self._table = table
        self._callback = callback

    async def close(self) -> None:
        callbacks = self._store._subscribers.get(self._table, [])
        if self._callback in callbacks:
            callbacks.remove(self._callback)


class MockRemoteStore(BaseRemoteStore):
    """
    Mock implementation of the remote store.

    Attributes:
        failure_rate: Probability that a call raises RemoteStoreError
        min_latency: Minimum simulated latency in seconds
        max_latency: Maximum simulated latency in seconds

    Example:
        >>> store = MockRemoteStore()
        >>> await store.upsert_menu([item.to_row() for item in default_menu()])
        >>> rows = await store.fetch_menu()
    """

    def __init__(
        self,
        failure_rate: float = 0.0,
        min_latency: float = 0.0,
        max_latency: float = 0.0,
    ):
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max_latency

        self._menu: dict[int, Row] = {}
        self._orders: dict[str, Row] = {}
        self._order_seq = 0
        self._subscribers: dict[str, list[ChangeCallback]] = {}
        self._deliveries: set[asyncio.Task] = set()
        self.calls: list[str] = []

        logger.info(
            f"MockRemoteStore initialized "
            f"(failure_rate={failure_rate:.0%}, latency={min_latency}-{max_latency}s)"
        )

    @property
    def provider_name(self) -> str:
        return "mock"

    # -------------------------------------------------------------------------
    # simulation helpers
    # -------------------------------------------------------------------------

    async def _simulate(self, operation: str) -> None:
        self.calls.append(operation)
        if self.max_latency > 0:
            await asyncio.sleep(random.uniform(self.min_latency, self.max_latency))
        else:
            await asyncio.sleep(0)
        if self.failure_rate and random.random() < self.failure_rate:
            logger.warning(f"Mock remote {operation} failed (simulated)")
            raise RemoteStoreError(f"Simulated failure in {operation}")

    def _emit(self, event: ChangeEvent) -> None:
        for callback in list(self._subscribers.get(event.table, [])):
            task = asyncio.get_running_loop().create_task(self._deliver(callback, event))
            self._deliveries.add(task)
            task.add_done_callback(self._deliveries.discard)

    @staticmethod
    async def _deliver(callback: ChangeCallback, event: ChangeEvent) -> None:
        try:
            result = callback(ChangeEvent(event.op, event.table, copy.deepcopy(event.row), copy.deepcopy(event.old)))
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.exception(f"Change subscriber failed on {event.table}: {e}")

    async def flush_events(self) -> None:
        """Wait until every pushed change event has been delivered."""
        while self._deliveries:
            await asyncio.gather(*list(self._deliveries), return_exceptions=True)

    # -------------------------------------------------------------------------
    # menu
    # -------------------------------------------------------------------------

    async def fetch_menu(self) -> list[Row]:
        await self._simulate("fetch_menu")
        # stable: insertion order within a category
        rows = sorted(self._menu.values(), key=lambda row: row["category"])
        return copy.deepcopy(rows)

    async def upsert_menu(self, rows: Sequence[Row]) -> None:
        await self._simulate("upsert_menu")
        for row in rows:
            item_id = int(row["id"])
            new_row = {**copy.deepcopy(row), "id": item_id, "updated_at": _now_iso()}
            old = self._menu.get(item_id)
            self._menu[item_id] = new_row
            op = ChangeOp.UPDATE if old is not None else ChangeOp.INSERT
            self._emit(ChangeEvent(op, MENU_TABLE, new_row, old))

    async def update_menu_item(self, item_id: int, changes: Row) -> None:
        await self._simulate("update_menu_item")
        old = self._menu.get(item_id)
        if old is None:
            return
        new_row = {**old, **copy.deepcopy(changes), "id": item_id, "updated_at": _now_iso()}
        self._menu[item_id] = new_row
        self._emit(ChangeEvent(ChangeOp.UPDATE, MENU_TABLE, new_row, old))

    async def delete_all_menu(self) -> None:
        await self._simulate("delete_all_menu")
        removed = list(self._menu.values())
        self._menu.clear()
        for old in removed:
            self._emit(ChangeEvent(ChangeOp.DELETE, MENU_TABLE, {}, {"id": old["id"]}))

    # -------------------------------------------------------------------------
    # orders
    # -------------------------------------------------------------------------

    async def fetch_orders(self) -> list[Row]:
        await self._simulate("fetch_orders")
        rows = sorted(self._orders.values(), key=lambda row: (row["created_at"], row["_seq"]), reverse=True)
        return [self._public(row) for row in rows]

    async def insert_order(self, row: Row) -> Row:
        await self._simulate("insert_order")
        self._order_seq += 1
        order_id = uuid.uuid4().hex
        stored = {**copy.deepcopy(row), "id": order_id, "created_at": _now_iso(), "_seq": self._order_seq}
        self._orders[order_id] = stored
        public = self._public(stored)
        self._emit(ChangeEvent(ChangeOp.INSERT, ORDERS_TABLE, public))
        return copy.deepcopy(public)

    async def update_order_status(self, order_id: str, status: str) -> None:
        await self._simulate("update_order_status")
        old = self._orders.get(order_id)
        if old is None:
            return
        stored = {**old, "status": status}
        self._orders[order_id] = stored
        self._emit(ChangeEvent(ChangeOp.UPDATE, ORDERS_TABLE, self._public(stored), self._public(old)))

    async def delete_order(self, order_id: str) -> None:
        await self._simulate("delete_order")
        if self._orders.pop(order_id, None) is not None:
            self._emit(ChangeEvent(ChangeOp.DELETE, ORDERS_TABLE, {}, {"id": order_id}))

    @staticmethod
    def _public(row: Row) -> Row:
        return {k: copy.deepcopy(v) for k, v in row.items() if not k.startswith("_")}

    # -------------------------------------------------------------------------
    # realtime / lifecycle
    # -------------------------------------------------------------------------

    async def subscribe(self, table: str, callback: ChangeCallback) -> Subscription:
        await self._simulate(f"subscribe:{table}")
        self._subscribers.setdefault(table, []).append(callback)
        logger.debug(f"Mock subscription added for table {table}")
        return _MockSubscription(self, table, callback)

    async def health_check(self) -> bool:
        """Mock always returns healthy."""
        return True

    def subscriber_count(self, table: Optional[str] = None) -> int:
        if table is None:
            return sum(len(v) for v in self._subscribers.values())
        return len(self._subscribers.get(table, []))
