"""
Sync Bridge

Mirrors local menu mutations into the remote store without ever blocking
or rolling back the local update: the store has already applied the intent
by the time the bridge hears about it, and a remote failure only produces
a logged error and a toast.

Routing per intent:

    ToggleAvailability / SetPriceByName
        resolve the first fuzzy match against the pre-mutation menu and
        update that single row by id
    SetPrice
        single-row update by id
    ResetToDefaults
        delete every remote row, then upsert the seed menu
    AddItem / DiscountByCategory / AdjustPriceByCategory
        mark the menu dirty; after a quiet period one upsert of the whole
        current menu covers the burst
    ReplaceAll
        nothing, this is how remote state enters

Bulk upserts never fire before hydrate() has finished, so a stale local
menu cannot overwrite the remote one on startup. Remote writes carry no
sequence numbers: when two writes race, the one the backend applies last
wins.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from carta.menu.defaults import default_menu
from carta.menu.intents import (
    BULK_INTENTS,
    MutationIntent,
    ReplaceAll,
    ResetToDefaults,
    SetPrice,
    SetPriceByName,
    ToggleAvailability,
)
from carta.menu.items import MenuItem
from carta.menu.matching import first_match
from carta.menu.reducer import Menu
from carta.menu.store import MenuStore
from carta.services.notifications import BaseNotifier
from carta.services.storage import BaseRemoteStore

logger = logging.getLogger(__name__)

SYNC_ERROR_MESSAGE = "Error al sincronizar con la nube"


class SyncBridge:
    """
    Store observer that mirrors menu mutations to a remote store.

    Args:
        store: The menu store to observe
        remote: Remote backend, or None to make every operation a no-op
        notifier: Where sync failures are surfaced
        idle_delay: Quiet period (seconds) before a coalesced bulk upsert
    """

    def __init__(
        self,
        store: MenuStore,
        remote: Optional[BaseRemoteStore],
        notifier: BaseNotifier,
        idle_delay: float = 0.25,
    ):
        self.store = store
        self.remote = remote
        self.notifier = notifier
        self.idle_delay = idle_delay

        self.ready = remote is None
        self.dirty = False
        self._tasks: set[asyncio.Task] = set()
        self._flush_handle: Optional[asyncio.TimerHandle] = None
        self._unsubscribe = store.subscribe(self.on_dispatch)

    @property
    def enabled(self) -> bool:
        return self.remote is not None

    # -------------------------------------------------------------------------
    # startup
    # -------------------------------------------------------------------------

    async def hydrate(self) -> None:
        """
        Load the remote menu into the store, seeding an empty backend.

        Always ends with the bridge marked ready, even if loading failed,
        so local edits can still be mirrored later.
        """
        if self.remote is None:
            self.ready = True
            return

        try:
            rows = await self.remote.fetch_menu()
            if not rows:
                logger.info("Remote menu empty, seeding with local menu")
                await self.remote.upsert_menu([item.to_row() for item in self.store.items])
            else:
                logger.info(f"Loaded {len(rows)} menu items from remote store")
                self.store.dispatch(ReplaceAll(tuple(MenuItem.from_row(row) for row in rows)))
        except Exception as e:
            logger.exception(f"Remote menu hydration failed: {e}")
            self.notifier.error(SYNC_ERROR_MESSAGE, str(e))
        finally:
            self.ready = True

        if self.dirty:
            self._schedule_flush()

    # -------------------------------------------------------------------------
    # dispatch observer
    # -------------------------------------------------------------------------

    def on_dispatch(self, intent: MutationIntent, previous: Menu, current: Menu) -> None:
        if self.remote is None:
            return

        if isinstance(intent, ToggleAvailability):
            target = first_match(previous, intent.name, key=lambda item: item.name)
            if target is not None:
                self._spawn(
                    f"toggle {target.id}",
                    lambda: self.remote.update_menu_item(target.id, {"available": not target.available}),
                )
        elif isinstance(intent, SetPriceByName):
            target = first_match(previous, intent.name, key=lambda item: item.name)
            if target is not None:
                price = self._price_after(current, target.id, intent.price)
                self._spawn(
                    f"price {target.id}",
                    lambda: self.remote.update_menu_item(target.id, {"price": price}),
                )
        elif isinstance(intent, SetPrice):
            price = self._price_after(current, intent.item_id, intent.price)
            self._spawn(
                f"price {intent.item_id}",
                lambda: self.remote.update_menu_item(intent.item_id, {"price": price}),
            )
        elif isinstance(intent, ResetToDefaults):
            self._spawn("reset", self._reset_remote)
        elif isinstance(intent, BULK_INTENTS):
            self.dirty = True
            self._schedule_flush()
        elif isinstance(intent, ReplaceAll):
            return

    @staticmethod
    def _price_after(current: Menu, item_id: int, requested: float) -> float:
        # the clamped price the reducer actually stored
        for item in current:
            if item.id == item_id:
                return item.price
        return max(0.0, float(requested))

    async def _reset_remote(self) -> None:
        await self.remote.delete_all_menu()
        await self.remote.upsert_menu([item.to_row() for item in default_menu()])

    # -------------------------------------------------------------------------
    # bulk sync
    # -------------------------------------------------------------------------

    def _schedule_flush(self) -> None:
        if not self.ready:
            return
        loop = self._loop()
        if loop is None:
            return
        if self._flush_handle is not None:
            self._flush_handle.cancel()
        self._flush_handle = loop.call_later(self.idle_delay, self._start_flush)

    def _start_flush(self) -> None:
        self._flush_handle = None
        if not self.dirty or not self.ready:
            return
        self.dirty = False
        snapshot = self.store.items
        self._spawn(
            "bulk upsert",
            lambda: self.remote.upsert_menu([item.to_row() for item in snapshot]),
        )

    # -------------------------------------------------------------------------
    # task bookkeeping
    # -------------------------------------------------------------------------

    @staticmethod
    def _loop() -> Optional[asyncio.AbstractEventLoop]:
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop, remote sync skipped")
            return None

    def _spawn(self, description: str, operation: Callable[[], Awaitable[None]]) -> None:
        loop = self._loop()
        if loop is None:
            return
        task = loop.create_task(self._guarded(description, operation))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _guarded(self, description: str, operation: Callable[[], Awaitable[None]]) -> None:
        try:
            await operation()
            logger.debug(f"Remote sync ok: {description}")
        except Exception as e:
            logger.exception(f"Remote sync failed ({description}): {e}")
            self.notifier.error(SYNC_ERROR_MESSAGE, str(e))

    @property
    def pending(self) -> int:
        return len(self._tasks) + (1 if self._flush_handle is not None else 0)

    async def drain(self) -> None:
        """Run any pending bulk upsert now and wait for in-flight writes."""
        if self._flush_handle is not None:
            self._flush_handle.cancel()
            self._start_flush()
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        self._unsubscribe()
        await self.drain()
