"""
Application Container

Builds every long-lived object once per process and wires them together:

    MenuStore  <- SpokenFeedback (effect stage)
               <- SyncBridge (remote mirror)
    CommandInterpreter -> MenuStore
    MenuListener / OrdersListener  <- remote change feed
    OrderService -> order store, cleanup scheduler

Without a remote backend the menu lives only in this process and orders
are kept in an in-process MockRemoteStore so the customer view still works.
"""

import logging
from typing import Optional

from carta.core.config import CleanupBackend, Settings, StorageBackend, get_settings
from carta.menu import CommandInterpreter, MenuItem, MenuStore
from carta.menu.effects import SpokenFeedback
from carta.orders import CeleryCleanupScheduler, CleanupScheduler, InlineCleanupScheduler, OrderService
from carta.services.notifications import BaseNotifier, create_notifier
from carta.services.storage import BaseRemoteStore, MockRemoteStore, create_remote_store
from carta.services.voice import VoiceWebhookHandler
from carta.sync import SYNC_ERROR_MESSAGE, MenuListener, OrdersListener, SyncBridge

logger = logging.getLogger(__name__)


class Application:
    """
    Args:
        settings: Configuration, defaults to get_settings()
        remote: Explicit remote store; overrides STORAGE_BACKEND when given
        notifier: Explicit notifier; defaults to create_notifier()
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        remote: Optional[BaseRemoteStore] = None,
        notifier: Optional[BaseNotifier] = None,
    ):
        self.settings = settings or get_settings()
        self.notifier = notifier or create_notifier(self.settings)
        self.remote = remote if remote is not None else create_remote_store(self.settings)

        self.store = MenuStore()
        self.feedback = SpokenFeedback(self.notifier)
        self.store.subscribe(self.feedback)
        self.bridge = SyncBridge(
            self.store,
            self.remote,
            self.notifier,
            idle_delay=self.settings.bulk_sync_idle_seconds,
        )
        self.interpreter = CommandInterpreter(self.store, self.notifier)
        self.voice = VoiceWebhookHandler(self.interpreter)

        self.order_store: BaseRemoteStore = self.remote if self.remote is not None else MockRemoteStore()
        self.menu_listener: Optional[MenuListener] = MenuListener(self.remote) if self.remote is not None else None
        self.orders_listener = OrdersListener(self.order_store, self.notifier, currency=self.settings.currency_symbol)
        self.cleanup = self._build_cleanup()
        self.orders = OrderService(self.order_store, self.notifier, self.cleanup)

    def _build_cleanup(self) -> CleanupScheduler:
        delay = self.settings.order_cleanup_delay_seconds
        if self.settings.order_cleanup_backend == CleanupBackend.CELERY:
            if self.settings.storage_backend == StorageBackend.POSTGRES:
                return CeleryCleanupScheduler(delay=delay)
            logger.warning("ORDER_CLEANUP_BACKEND=celery needs STORAGE_BACKEND=postgres, using inline cleanup")
        return InlineCleanupScheduler(self.order_store, delay=delay)

    @property
    def storage_name(self) -> str:
        return self.remote.provider_name if self.remote is not None else "local"

    def customer_menu(self) -> tuple[MenuItem, ...]:
        """Menu shown to diners: the live remote copy when it has rows, else local."""
        if self.menu_listener is not None:
            live = self.menu_listener.items
            if live:
                return tuple(live)
        return self.store.items

    async def start(self) -> None:
        init_schema = getattr(self.remote, "init_schema", None)
        if init_schema is not None:
            try:
                await init_schema()
            except Exception as e:
                # keep serving from local state, hydrate() reports its own failure
                logger.exception(f"Remote schema setup failed: {e}")
                self.notifier.error(SYNC_ERROR_MESSAGE, str(e))

        await self.bridge.hydrate()
        if self.menu_listener is not None:
            await self.menu_listener.start()
        await self.orders_listener.start()
        logger.info(f"Application started (storage={self.storage_name}, menu_items={len(self.store.items)})")

    async def stop(self) -> None:
        await self.orders_listener.stop()
        if self.menu_listener is not None:
            await self.menu_listener.stop()
        await self.bridge.close()
        await self.cleanup.close()
        await self.order_store.close()
        logger.info("Application stopped")
