"""
Tests for application startup against an unhealthy remote backend.
"""

import pytest

from carta.application import Application
from carta.menu import DEFAULT_MENU
from carta.services.notifications import NotificationLevel
from carta.services.storage import MockRemoteStore, RemoteStoreError
from carta.sync import SYNC_ERROR_MESSAGE

from tests.conftest import make_settings


class SchemaDownRemote(MockRemoteStore):
    """Remote whose schema setup fails, as when postgres refuses connections."""

    async def init_schema(self) -> None:
        raise RemoteStoreError("connection refused")


class TestApplicationStart:

    @pytest.mark.asyncio
    async def test_schema_failure_does_not_abort_startup(self, notifier):
        remote = SchemaDownRemote()
        application = Application(make_settings(storage_backend="mock"), remote=remote, notifier=notifier)

        await application.start()
        try:
            errors = [n for n in notifier.recent() if n.level == NotificationLevel.ERROR]
            assert errors[0].title == SYNC_ERROR_MESSAGE
            assert "connection refused" in errors[0].description

            # hydration and the listeners still ran
            assert application.bridge.ready is True
            assert "fetch_menu" in remote.calls
            assert application.menu_listener.error is None
            assert len(application.store.items) == len(DEFAULT_MENU)
        finally:
            await application.stop()

    @pytest.mark.asyncio
    async def test_unreachable_remote_keeps_local_menu(self, notifier):
        remote = SchemaDownRemote(failure_rate=1.0)
        application = Application(make_settings(storage_backend="mock"), remote=remote, notifier=notifier)

        await application.start()
        try:
            assert application.bridge.ready is True
            assert application.menu_listener.error is not None
            assert application.store.items == DEFAULT_MENU
        finally:
            await application.stop()
