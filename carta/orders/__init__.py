"""Customer cart, order submission and delivered-order cleanup."""

from carta.orders.cart import Cart, OrderValidationError
from carta.orders.cleanup import CeleryCleanupScheduler, CleanupScheduler, InlineCleanupScheduler
from carta.orders.service import OrderService

__all__ = [
    "Cart",
    "OrderValidationError",
    "CleanupScheduler",
    "InlineCleanupScheduler",
    "CeleryCleanupScheduler",
    "OrderService",
]
