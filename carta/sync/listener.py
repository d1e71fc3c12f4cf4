"""
Realtime Listener

Keeps a live local copy of one remote table. start() performs a single full
fetch, then attaches the change subscription; each pushed ChangeEvent is
merged by id:

    INSERT  append (menu) or prepend (orders, newest first)
    UPDATE  replace the entry with the same id, keeping its position
    DELETE  drop the entry with that id

Echoes of this process's own writes arrive like any other change; merging
by id makes them harmless. After stop(), fetch results and events that are
still in flight are ignored.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable, Generic, Optional, TypeVar

from pydantic import ValidationError

from carta.menu.items import MenuItem
from carta.schemas import Order
from carta.services.notifications import BaseNotifier
from carta.services.storage import (
    MENU_TABLE,
    ORDERS_TABLE,
    BaseRemoteStore,
    ChangeEvent,
    ChangeOp,
    Row,
    Subscription,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CollectionListener(ABC, Generic[T]):
    """
    Live cache of one remote table.

    Args:
        remote: Backend to fetch from and subscribe to
        table: Table name (MENU_TABLE / ORDERS_TABLE)
        parse: Converts a row into the cached value
        key: Extracts the id of a cached value
        newest_first: Prepend inserts instead of appending
        on_insert: Called with each newly inserted value (not on hydration)
    """

    def __init__(
        self,
        remote: BaseRemoteStore,
        table: str,
        parse: Callable[[Row], T],
        key: Callable[[T], object],
        newest_first: bool = False,
        on_insert: Optional[Callable[[T], None]] = None,
    ):
        self.remote = remote
        self.table = table
        self.parse = parse
        self.key = key
        self.newest_first = newest_first
        self.on_insert = on_insert

        self._items: list[T] = []
        self._subscription: Optional[Subscription] = None
        self._closed = False
        self.is_loading = False
        self.error: Optional[str] = None

    @property
    def items(self) -> list[T]:
        return list(self._items)

    @abstractmethod
    async def _fetch(self) -> list[Row]:
        """Full snapshot of the table."""
        pass

    async def start(self) -> None:
        """Fetch once, then subscribe. Failures are logged and kept in `error`."""
        self._closed = False
        self.is_loading = True
        try:
            rows = await self._fetch()
            if not self._closed:
                self._items = self._parse_all(rows)
                self.error = None
                logger.info(f"Listener {self.table}: loaded {len(self._items)} rows")
        except Exception as e:
            logger.exception(f"Listener {self.table}: initial fetch failed: {e}")
            self.error = str(e)
        finally:
            self.is_loading = False

        if self._closed:
            return

        try:
            subscription = await self.remote.subscribe(self.table, self.handle)
        except Exception as e:
            logger.exception(f"Listener {self.table}: subscribe failed: {e}")
            self.error = str(e)
            return

        if self._closed:
            await subscription.close()
        else:
            self._subscription = subscription

    async def stop(self) -> None:
        self._closed = True
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            await subscription.close()
            logger.info(f"Listener {self.table}: unsubscribed")

    def _parse_all(self, rows: list[Row]) -> list[T]:
        parsed = []
        for row in rows:
            value = self._parse(row)
            if value is not None:
                parsed.append(value)
        return parsed

    def _parse(self, row: Row) -> Optional[T]:
        try:
            return self.parse(row)
        except (KeyError, ValueError, TypeError, ValidationError) as e:
            logger.warning(f"Listener {self.table}: skipping malformed row {row!r}: {e}")
            return None

    def handle(self, event: ChangeEvent) -> None:
        """Merge one pushed change into the cache."""
        if self._closed or event.table != self.table:
            return

        if event.op == ChangeOp.DELETE:
            key = event.key
            self._items = [value for value in self._items if self.key(value) != key]
            return

        value = self._parse(event.row)
        if value is None:
            return
        key = self.key(value)

        if event.op == ChangeOp.UPDATE:
            self._items = [value if self.key(existing) == key else existing for existing in self._items]
            return

        # INSERT; an echo of a row we already hold is treated as a replace
        if any(self.key(existing) == key for existing in self._items):
            self._items = [value if self.key(existing) == key else existing for existing in self._items]
            return
        if self.newest_first:
            self._items = [value] + self._items
        else:
            self._items = self._items + [value]

        if self.on_insert is not None:
            try:
                self.on_insert(value)
            except Exception as e:
                logger.exception(f"Listener {self.table}: insert callback failed: {e}")


class MenuListener(CollectionListener[MenuItem]):
    """Live menu rows, ordered by category on load."""

    def __init__(self, remote: BaseRemoteStore):
        super().__init__(remote, MENU_TABLE, parse=MenuItem.from_row, key=lambda item: item.id)

    async def _fetch(self) -> list[Row]:
        return await self.remote.fetch_menu()


class OrdersListener(CollectionListener[Order]):
    """
    Live orders, newest first.

    Every order inserted after start() triggers the new-order alert
    (bell, toast and spoken announcement) through the notifier.
    """

    def __init__(self, remote: BaseRemoteStore, notifier: Optional[BaseNotifier] = None, currency: str = "S/"):
        self.notifier = notifier
        self.currency = currency
        super().__init__(
            remote,
            ORDERS_TABLE,
            parse=Order.model_validate,
            key=lambda order: order.id,
            newest_first=True,
            on_insert=self._announce if notifier is not None else None,
        )

    async def _fetch(self) -> list[Row]:
        return await self.remote.fetch_orders()

    def _announce(self, order: Order) -> None:
        self.notifier.order_received(order.table_number, order.total, self.currency)

    def get(self, order_id: str) -> Optional[Order]:
        for order in self._items:
            if order.id == order_id:
                return order
        return None
