"""
Tests for the customer cart, order submission and delivered-order cleanup.
"""

import asyncio

import pytest

from carta.application import Application
from carta.menu import Category, MenuItem, default_menu
from carta.models import OrderStatus
from carta.orders import (
    Cart,
    CeleryCleanupScheduler,
    InlineCleanupScheduler,
    OrderService,
    OrderValidationError,
)
from carta.services.notifications import NotificationLevel
from carta.services.storage import MockRemoteStore, RemoteStoreError

from tests.conftest import make_settings

ITEM_A = MenuItem(id=1, name="Plato A", category=Category.FONDOS, price=10.00)
ITEM_B = MenuItem(id=2, name="Plato B", category=Category.BEBIDAS, price=5.00)
SOLD_OUT = MenuItem(id=3, name="Plato C", category=Category.POSTRES, price=7.00, available=False)
MENU = (ITEM_A, ITEM_B, SOLD_OUT)


class TestCart:

    def test_order_total_and_lines(self):
        cart = Cart()
        cart.add(ITEM_A)
        cart.add(ITEM_A)
        cart.add(ITEM_B)

        order = cart.build_order("7", MENU)

        assert order.total == 25.00
        assert len(order.items) == 2
        quantities = {line.id: line.quantity for line in order.items}
        assert quantities == {1: 2, 2: 1}
        assert order.status == OrderStatus.PENDING

    def test_lines_snapshot_price(self):
        order = Cart({1: 1}).build_order("7", MENU)
        assert order.items[0].name == "Plato A"
        assert order.items[0].price == 10.00

    def test_sold_out_items_cannot_be_added(self):
        cart = Cart()
        assert cart.add(SOLD_OUT) is False
        assert cart.is_empty()

    def test_remove_decrements_then_drops(self):
        cart = Cart({1: 2})
        cart.remove(1)
        assert cart.quantities == {1: 1}
        cart.remove(1)
        assert cart.quantities == {}
        cart.remove(1)  # removing an absent id is harmless

    def test_zero_quantities_are_dropped(self):
        assert Cart({1: 0, 2: 3}).quantities == {2: 3}

    def test_total_ignores_unknown_ids(self):
        assert Cart({1: 1, 99: 4}).total(MENU) == 10.00

    @pytest.mark.parametrize(
        "table, quantities, code",
        [
            (None, {1: 1}, "missing_table"),
            ("   ", {1: 1}, "missing_table"),
            ("4", {}, "empty_cart"),
            ("4", {99: 1}, "unknown_item"),
            ("4", {3: 1}, "unavailable_item"),
        ],
    )
    def test_validation_errors(self, table, quantities, code):
        with pytest.raises(OrderValidationError) as exc_info:
            Cart(quantities).build_order(table, MENU)
        assert exc_info.value.code == code


class TestOrderService:

    @pytest.mark.asyncio
    async def test_submit_inserts_order(self, remote, notifier):
        service = OrderService(remote, notifier)
        order = await service.submit("5", {1: 2, 4: 1}, default_menu())

        assert order.id
        assert order.created_at is not None
        assert order.total == 38.0 * 2 + 24.0
        assert [o.id for o in await service.list_orders()] == [order.id]
        assert notifier.recent(1)[0].title == "¡Pedido enviado con éxito!"

    @pytest.mark.asyncio
    async def test_invalid_order_never_reaches_the_store(self, remote, notifier):
        service = OrderService(remote, notifier)
        with pytest.raises(OrderValidationError):
            await service.submit(None, {1: 1}, default_menu())
        with pytest.raises(OrderValidationError):
            await service.submit("5", {}, default_menu())

        assert remote.calls == []

    @pytest.mark.asyncio
    async def test_store_failure_is_notified_and_raised(self, notifier):
        service = OrderService(MockRemoteStore(failure_rate=1.0), notifier)
        with pytest.raises(RemoteStoreError):
            await service.submit("5", {1: 1}, default_menu())

        last = notifier.recent(1)[0]
        assert last.level == NotificationLevel.ERROR
        assert last.title == "Error al enviar el pedido"

    @pytest.mark.asyncio
    async def test_delivered_orders_are_deleted_after_delay(self, remote, notifier):
        cleanup = InlineCleanupScheduler(remote, delay=0.02)
        service = OrderService(remote, notifier, cleanup)
        order = await service.submit("5", {1: 1}, default_menu())

        await service.update_status(order.id, OrderStatus.DELIVERED)
        assert [o.status for o in await service.list_orders()] == [OrderStatus.DELIVERED]
        assert cleanup.pending == 1

        await asyncio.sleep(0.1)
        assert await service.list_orders() == []

    @pytest.mark.asyncio
    async def test_other_statuses_are_kept(self, remote, notifier):
        cleanup = InlineCleanupScheduler(remote, delay=0.01)
        service = OrderService(remote, notifier, cleanup)
        order = await service.submit("5", {1: 1}, default_menu())

        await service.update_status(order.id, OrderStatus.PREPARING)
        await asyncio.sleep(0.05)

        assert cleanup.pending == 0
        assert len(await service.list_orders()) == 1

    @pytest.mark.asyncio
    async def test_cleanup_close_cancels_pending(self, remote, notifier):
        cleanup = InlineCleanupScheduler(remote, delay=10)
        service = OrderService(remote, notifier, cleanup)
        order = await service.submit("5", {1: 1}, default_menu())
        await service.update_status(order.id, OrderStatus.DELIVERED)

        await cleanup.close()

        assert cleanup.pending == 0
        assert len(await service.list_orders()) == 1


class TestCeleryCleanup:

    def test_schedule_queues_purge_with_countdown(self, monkeypatch):
        from carta import tasks

        queued = []

        class FakeResult:
            id = "task-1"

        def fake_apply_async(args, countdown):
            queued.append((args, countdown))
            return FakeResult()

        monkeypatch.setattr(tasks.purge_delivered_order, "apply_async", fake_apply_async)

        CeleryCleanupScheduler(delay=30).schedule("order-9")

        assert queued == [(["order-9"], 30)]

    def test_purge_without_database_is_a_no_op(self, monkeypatch):
        from carta import tasks

        monkeypatch.setattr(tasks, "settings", make_settings(database_url=None))
        result = tasks.purge_delivered_order.apply(args=["order-9"]).get()

        assert result["success"] is False
        assert result["order_id"] == "order-9"

    def test_celery_backend_needs_postgres(self):
        application = Application(make_settings(order_cleanup_backend="celery"))
        assert isinstance(application.cleanup, InlineCleanupScheduler)
