"""Remote mirroring of the menu and live caches of remote tables."""

from carta.sync.bridge import SYNC_ERROR_MESSAGE, SyncBridge
from carta.sync.listener import CollectionListener, MenuListener, OrdersListener

__all__ = [
    "SYNC_ERROR_MESSAGE",
    "SyncBridge",
    "CollectionListener",
    "MenuListener",
    "OrdersListener",
]
