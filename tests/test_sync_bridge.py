"""
Tests for the sync bridge against the in-memory remote store.

Covers routing per intent, bulk coalescing, the hydration readiness gate
and the failure policy (notify, never roll back).
"""

import asyncio

import pytest

from carta.menu import (
    DEFAULT_MENU,
    AddItem,
    AdjustPriceByCategory,
    Category,
    DiscountByCategory,
    MenuItem,
    MenuStore,
    ResetToDefaults,
    SetPrice,
    SetPriceByName,
    ToggleAvailability,
)
from carta.services.notifications import NotificationLevel
from carta.services.storage import MockRemoteStore
from carta.sync import SYNC_ERROR_MESSAGE, SyncBridge


def rows_by_id(rows):
    return {row["id"]: row for row in rows}


def errors(notifier):
    return [n for n in notifier.recent() if n.level == NotificationLevel.ERROR]


class TestHydration:

    @pytest.mark.asyncio
    async def test_empty_remote_is_seeded_with_local_menu(self, store, remote, notifier):
        bridge = SyncBridge(store, remote, notifier, idle_delay=0.01)
        await bridge.hydrate()

        rows = await remote.fetch_menu()
        assert {row["id"] for row in rows} == {item.id for item in DEFAULT_MENU}
        assert bridge.ready

    @pytest.mark.asyncio
    async def test_remote_rows_replace_local_menu(self, store, remote, notifier):
        await remote.upsert_menu([
            MenuItem(id=50, name="Tequeños", category=Category.ENTRADAS, price=18).to_row(),
        ])
        bridge = SyncBridge(store, remote, notifier, idle_delay=0.01)
        await bridge.hydrate()

        assert [item.name for item in store.items] == ["Tequeños"]

    @pytest.mark.asyncio
    async def test_hydration_failure_still_marks_ready(self, store, notifier):
        remote = MockRemoteStore(failure_rate=1.0)
        bridge = SyncBridge(store, remote, notifier, idle_delay=0.01)
        await bridge.hydrate()

        assert bridge.ready
        assert store.items == DEFAULT_MENU
        assert errors(notifier)[0].title == SYNC_ERROR_MESSAGE

    @pytest.mark.asyncio
    async def test_bulk_edits_wait_for_hydration(self, store, remote, notifier):
        """A stale local menu must not overwrite the remote one on startup."""
        remote_item = MenuItem(id=50, name="Tequeños", category=Category.ENTRADAS, price=18)
        await remote.upsert_menu([remote_item.to_row()])
        remote.calls.clear()

        bridge = SyncBridge(store, remote, notifier, idle_delay=0.01)
        store.dispatch(DiscountByCategory(category="entradas", percent=50))
        await asyncio.sleep(0.05)
        assert "upsert_menu" not in remote.calls

        await bridge.hydrate()
        await bridge.drain()

        rows = await remote.fetch_menu()
        assert [row["id"] for row in rows] == [50]
        assert rows[0]["price"] == 18


class TestRouting:

    @pytest.mark.asyncio
    async def test_toggle_updates_single_row(self, store, remote, notifier):
        bridge = SyncBridge(store, remote, notifier, idle_delay=0.01)
        await bridge.hydrate()
        remote.calls.clear()

        store.dispatch(ToggleAvailability(name="lomo"))
        await bridge.drain()

        assert remote.calls == ["update_menu_item"]
        rows = rows_by_id(await remote.fetch_menu())
        assert rows[2]["available"] is False
        assert rows[3]["available"] is True

    @pytest.mark.asyncio
    async def test_price_by_name_sends_clamped_price(self, store, remote, notifier):
        bridge = SyncBridge(store, remote, notifier, idle_delay=0.01)
        await bridge.hydrate()

        store.dispatch(SetPriceByName(name="causa", price=-3))
        await bridge.drain()

        rows = rows_by_id(await remote.fetch_menu())
        assert rows[4]["price"] == 0.0

    @pytest.mark.asyncio
    async def test_set_price_by_id(self, store, remote, notifier):
        bridge = SyncBridge(store, remote, notifier, idle_delay=0.01)
        await bridge.hydrate()
        remote.calls.clear()

        store.dispatch(SetPrice(item_id=5, price=14))
        await bridge.drain()

        assert remote.calls == ["update_menu_item"]
        assert rows_by_id(await remote.fetch_menu())[5]["price"] == 14

    @pytest.mark.asyncio
    async def test_fuzzy_miss_sends_nothing(self, store, remote, notifier):
        bridge = SyncBridge(store, remote, notifier, idle_delay=0.01)
        await bridge.hydrate()
        remote.calls.clear()

        store.dispatch(ToggleAvailability(name="pizza"))
        await bridge.drain()

        assert remote.calls == []

    @pytest.mark.asyncio
    async def test_reset_deletes_then_reseeds(self, store, remote, notifier):
        bridge = SyncBridge(store, remote, notifier, idle_delay=0.01)
        await bridge.hydrate()
        await remote.upsert_menu([
            MenuItem(id=77, name="Extra", category=Category.POSTRES, price=9).to_row(),
        ])
        remote.calls.clear()

        store.dispatch(ResetToDefaults())
        await bridge.drain()

        assert remote.calls == ["delete_all_menu", "upsert_menu"]
        rows = await remote.fetch_menu()
        assert {row["id"] for row in rows} == {item.id for item in DEFAULT_MENU}

    @pytest.mark.asyncio
    async def test_bulk_burst_coalesces_into_one_upsert(self, store, remote, notifier):
        bridge = SyncBridge(store, remote, notifier, idle_delay=0.02)
        await bridge.hydrate()
        remote.calls.clear()

        store.dispatch(AddItem(name="Pollo a la Brasa", category=Category.FONDOS, price=25))
        store.dispatch(DiscountByCategory(category="fondos", percent=10))
        store.dispatch(AdjustPriceByCategory(category="bebidas", delta=2))
        await asyncio.sleep(0.1)
        await bridge.drain()

        assert remote.calls == ["upsert_menu"]
        rows = rows_by_id(await remote.fetch_menu())
        assert len(rows) == 7
        assert rows[2]["price"] == 40.5
        assert rows[5]["price"] == 14.0

    @pytest.mark.asyncio
    async def test_no_remote_means_no_op(self, store, notifier):
        bridge = SyncBridge(store, None, notifier)
        await bridge.hydrate()

        store.dispatch(AddItem(name="Pollo a la Brasa", category=Category.FONDOS, price=25))
        store.dispatch(ToggleAvailability(name="causa"))

        assert bridge.pending == 0
        assert errors(notifier) == []


class TestFailurePolicy:

    @pytest.mark.asyncio
    async def test_failure_is_notified_and_not_rolled_back(self, store, notifier):
        remote = MockRemoteStore()
        bridge = SyncBridge(store, remote, notifier, idle_delay=0.01)
        await bridge.hydrate()

        remote.failure_rate = 1.0
        store.dispatch(SetPrice(item_id=1, price=99))
        await bridge.drain()

        assert store.get(1).price == 99
        assert [n.title for n in errors(notifier)] == [SYNC_ERROR_MESSAGE]

    @pytest.mark.asyncio
    async def test_failure_does_not_block_later_syncs(self, store, notifier):
        remote = MockRemoteStore()
        bridge = SyncBridge(store, remote, notifier, idle_delay=0.01)
        await bridge.hydrate()

        remote.failure_rate = 1.0
        store.dispatch(SetPrice(item_id=1, price=99))
        await bridge.drain()

        remote.failure_rate = 0.0
        store.dispatch(SetPrice(item_id=2, price=50))
        await bridge.drain()

        rows = rows_by_id(await remote.fetch_menu())
        assert rows[1]["price"] == 38.0
        assert rows[2]["price"] == 50

    def test_dispatch_outside_event_loop(self, notifier):
        store = MenuStore()
        bridge = SyncBridge(store, MockRemoteStore(), notifier)
        bridge.ready = True

        store.dispatch(ToggleAvailability(name="causa"))

        assert store.get(4).available is False
        assert bridge.pending == 0
