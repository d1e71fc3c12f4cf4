"""
Tests for the realtime listeners merging remote change events.
"""

import asyncio

import pytest

from carta.menu import DEFAULT_MENU, Category, MenuItem
from carta.services.notifications import NotificationChannel
from carta.services.storage import MENU_TABLE, ORDERS_TABLE, ChangeEvent, ChangeOp, MockRemoteStore
from carta.sync import CollectionListener, MenuListener, OrdersListener


def order_row(table_number="5", total=25.0):
    return {
        "table_number": table_number,
        "items": [{"id": 1, "name": "Ceviche Clásico", "price": 12.5, "quantity": 2}],
        "total": total,
        "status": "pending",
    }


class TestMenuListener:

    @pytest.mark.asyncio
    async def test_fetches_before_subscribing(self, remote):
        await remote.upsert_menu([item.to_row() for item in DEFAULT_MENU])
        remote.calls.clear()

        listener = MenuListener(remote)
        await listener.start()

        assert remote.calls == ["fetch_menu", f"subscribe:{MENU_TABLE}"]
        assert len(listener.items) == len(DEFAULT_MENU)
        assert listener.is_loading is False
        assert listener.error is None

    @pytest.mark.asyncio
    async def test_hydration_is_ordered_by_category(self, remote):
        await remote.upsert_menu([item.to_row() for item in DEFAULT_MENU])
        listener = MenuListener(remote)
        await listener.start()

        categories = [item.category.value for item in listener.items]
        assert categories == sorted(categories)

    @pytest.mark.asyncio
    async def test_insert_update_delete(self, remote):
        listener = MenuListener(remote)
        await listener.start()

        await remote.upsert_menu([item.to_row() for item in DEFAULT_MENU[:2]])
        await remote.flush_events()
        assert [item.id for item in listener.items] == [1, 2]

        await remote.update_menu_item(1, {"price": 40.0})
        await remote.flush_events()
        assert [item.id for item in listener.items] == [1, 2]
        assert listener.items[0].price == 40.0

        await remote.delete_all_menu()
        await remote.flush_events()
        assert listener.items == []

    @pytest.mark.asyncio
    async def test_echo_of_known_row_is_idempotent(self, remote):
        listener = MenuListener(remote)
        await listener.start()

        row = DEFAULT_MENU[0].to_row()
        listener.handle(ChangeEvent(ChangeOp.INSERT, MENU_TABLE, row))
        listener.handle(ChangeEvent(ChangeOp.INSERT, MENU_TABLE, row))

        assert len(listener.items) == 1

    @pytest.mark.asyncio
    async def test_malformed_row_is_skipped(self, remote):
        listener = MenuListener(remote)
        await listener.start()

        listener.handle(ChangeEvent(ChangeOp.INSERT, MENU_TABLE, {"id": 1, "name": "Sin categoría"}))
        listener.handle(
            ChangeEvent(
                ChangeOp.INSERT,
                MENU_TABLE,
                MenuItem(id=8, name="Inca Kola", category=Category.BEBIDAS, price=6).to_row(),
            )
        )

        assert [item.id for item in listener.items] == [8]

    @pytest.mark.asyncio
    async def test_stop_unsubscribes_and_ignores_late_events(self, remote):
        listener = MenuListener(remote)
        await listener.start()
        assert remote.subscriber_count(MENU_TABLE) == 1

        await listener.stop()
        assert remote.subscriber_count(MENU_TABLE) == 0

        listener.handle(ChangeEvent(ChangeOp.INSERT, MENU_TABLE, DEFAULT_MENU[0].to_row()))
        assert listener.items == []

    @pytest.mark.asyncio
    async def test_stop_during_fetch_discards_result(self):
        remote = MockRemoteStore(min_latency=0.05, max_latency=0.05)
        await remote.upsert_menu([item.to_row() for item in DEFAULT_MENU])

        listener = MenuListener(remote)
        task = asyncio.create_task(listener.start())
        await asyncio.sleep(0.01)
        await listener.stop()
        await task

        assert listener.items == []
        assert remote.subscriber_count() == 0

    @pytest.mark.asyncio
    async def test_fetch_failure_sets_error(self):
        remote = MockRemoteStore(failure_rate=1.0)
        listener = MenuListener(remote)
        await listener.start()

        assert listener.error is not None
        assert listener.is_loading is False
        assert listener.items == []


class TestOrdersListener:

    @pytest.mark.asyncio
    async def test_new_orders_are_prepended_and_announced(self, remote, notifier):
        await remote.insert_order(order_row("1"))
        listener = OrdersListener(remote, notifier)
        await listener.start()
        # hydration does not announce
        assert notifier.recent() == []

        await remote.insert_order(order_row("5", total=25.0))
        await remote.flush_events()

        assert [order.table_number for order in listener.items] == ["5", "1"]
        titles = [n.title for n in notifier.recent()]
        assert "Pedido Recibido - Mesa 5" in titles
        voice = [n for n in notifier.recent() if n.channel == NotificationChannel.VOICE]
        assert voice[-1].title == "¡Nuevo pedido entrante de la mesa 5!"

    @pytest.mark.asyncio
    async def test_status_update_in_place(self, remote):
        first = await remote.insert_order(order_row("1"))
        await remote.insert_order(order_row("2"))
        listener = OrdersListener(remote)
        await listener.start()

        await remote.update_order_status(first["id"], "preparing")
        await remote.flush_events()

        assert [order.table_number for order in listener.items] == ["2", "1"]
        assert listener.get(first["id"]).status.value == "preparing"

    @pytest.mark.asyncio
    async def test_delete_removes_order(self, remote):
        created = await remote.insert_order(order_row("3"))
        listener = OrdersListener(remote)
        await listener.start()

        await remote.delete_order(created["id"])
        await remote.flush_events()

        assert listener.items == []

    @pytest.mark.asyncio
    async def test_events_for_other_tables_are_ignored(self, remote):
        listener = OrdersListener(remote)
        await listener.start()

        listener.handle(ChangeEvent(ChangeOp.INSERT, MENU_TABLE, DEFAULT_MENU[0].to_row()))
        assert listener.items == []
        assert listener.table == ORDERS_TABLE


class TestCollectionListener:

    def test_base_listener_cannot_be_instantiated(self, remote):
        with pytest.raises(TypeError):
            CollectionListener(remote, MENU_TABLE, MenuItem.from_row, key=lambda item: item.id)
