"""
Order Service

Submission, status changes and deletion of table orders against the
order store. Validation happens before any remote call; remote failures
are logged, toasted and re-raised for the HTTP layer to map.
"""

import logging
from typing import Mapping, Optional, Sequence

from carta.menu.items import MenuItem
from carta.models import OrderStatus
from carta.orders.cart import Cart
from carta.orders.cleanup import CleanupScheduler
from carta.schemas import Order
from carta.services.notifications import BaseNotifier
from carta.services.storage import BaseRemoteStore

logger = logging.getLogger(__name__)


class OrderService:
    """
    Args:
        store: Where orders are kept (remote backend or in-process mock)
        notifier: Toasts for staff and diners
        cleanup: Deletes delivered orders after a delay
    """

    def __init__(self, store: BaseRemoteStore, notifier: BaseNotifier, cleanup: Optional[CleanupScheduler] = None):
        self.store = store
        self.notifier = notifier
        self.cleanup = cleanup

    async def submit(self, table_number: Optional[str], quantities: Mapping[int, int], menu: Sequence[MenuItem]) -> Order:
        """
        Build an order from cart quantities and insert it.

        Raises:
            OrderValidationError: Rejected before any I/O
            RemoteStoreError: Insert failed
        """
        order = Cart(quantities).build_order(table_number, menu)

        try:
            stored = await self.store.insert_order(order.to_row())
        except Exception as e:
            logger.exception(f"Order for table {order.table_number} failed: {e}")
            self.notifier.error("Error al enviar el pedido", str(e))
            raise

        created = Order.model_validate(stored)
        logger.info(f"Order {created.id} received from table {created.table_number} ({created.total:.2f})")
        self.notifier.success("¡Pedido enviado con éxito!", "La cocina ya está preparando tu orden.")
        return created

    async def list_orders(self) -> list[Order]:
        rows = await self.store.fetch_orders()
        return [Order.model_validate(row) for row in rows]

    async def update_status(self, order_id: str, status: OrderStatus) -> None:
        """Change status; delivered orders are queued for deletion."""
        status = OrderStatus(status)
        try:
            await self.store.update_order_status(order_id, status.value)
        except Exception as e:
            logger.exception(f"Status update of order {order_id} failed: {e}")
            self.notifier.error("Error al actualizar el estado del pedido", str(e))
            raise

        self.notifier.success(f"Pedido actualizado a {status.value}")
        if status == OrderStatus.DELIVERED and self.cleanup is not None:
            self.cleanup.schedule(order_id)

    async def delete(self, order_id: str) -> None:
        try:
            await self.store.delete_order(order_id)
        except Exception as e:
            logger.exception(f"Deletion of order {order_id} failed: {e}")
            self.notifier.error("Error al eliminar el pedido", str(e))
            raise
        logger.info(f"Order {order_id} deleted")
