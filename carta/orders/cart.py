"""
Customer Cart

Item id -> quantity, kept by the customer view until the order is sent.
Orders are built from the cart against the current menu, snapshotting
each line's name and price.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional

from carta.menu.items import MenuItem
from carta.schemas import Order, OrderLine

logger = logging.getLogger(__name__)


class OrderValidationError(ValueError):
    """
    Order rejected before any remote call.

    Attributes:
        code: missing_table | empty_cart | unknown_item | unavailable_item
    """

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class Cart:
    """Quantities per menu item id; a quantity never stays at zero."""

    def __init__(self, quantities: Optional[Mapping[int, int]] = None):
        self._quantities: dict[int, int] = {}
        for item_id, quantity in (quantities or {}).items():
            if quantity > 0:
                self._quantities[int(item_id)] = int(quantity)

    @property
    def quantities(self) -> dict[int, int]:
        return dict(self._quantities)

    def is_empty(self) -> bool:
        return not self._quantities

    def add(self, item: MenuItem) -> bool:
        """Add one unit. Sold-out items are refused."""
        if not item.available:
            return False
        self._quantities[item.id] = self._quantities.get(item.id, 0) + 1
        return True

    def remove(self, item_id: int) -> None:
        """Remove one unit, dropping the line when it reaches zero."""
        quantity = self._quantities.get(item_id, 0)
        if quantity > 1:
            self._quantities[item_id] = quantity - 1
        else:
            self._quantities.pop(item_id, None)

    def clear(self) -> None:
        self._quantities.clear()

    def total(self, menu: Iterable[MenuItem]) -> float:
        """Sum of price x quantity; ids missing from the menu count as zero."""
        prices = {item.id: item.price for item in menu}
        return round(sum(prices.get(item_id, 0.0) * qty for item_id, qty in self._quantities.items()), 2)

    def lines(self, menu: Iterable[MenuItem]) -> list[OrderLine]:
        """
        Order lines with name and price snapshots.

        Raises:
            OrderValidationError: If an id is not on the menu or is sold out
        """
        by_id = {item.id: item for item in menu}
        lines = []
        for item_id, quantity in self._quantities.items():
            item = by_id.get(item_id)
            if item is None:
                raise OrderValidationError("unknown_item", f"El producto {item_id} no está en la carta")
            if not item.available:
                raise OrderValidationError("unavailable_item", f"{item.name} está agotado")
            lines.append(OrderLine(id=item.id, name=item.name, price=item.price, quantity=quantity))
        return lines

    def build_order(self, table_number: Optional[str], menu: Iterable[MenuItem]) -> Order:
        """
        Validate the cart and build a pending order.

        Raises:
            OrderValidationError: Missing table number, empty cart or bad items
        """
        table = (table_number or "").strip()
        if not table:
            raise OrderValidationError("missing_table", "Por favor, ingresa tu número de mesa")
        if self.is_empty():
            raise OrderValidationError("empty_cart", "El carrito está vacío")

        menu = list(menu)
        lines = self.lines(menu)
        total = round(sum(line.price * line.quantity for line in lines), 2)
        logger.debug(f"Built order for table {table}: {len(lines)} lines, total {total:.2f}")
        return Order(table_number=table, items=lines, total=total)
