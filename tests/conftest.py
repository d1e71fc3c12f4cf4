"""
Pytest configuration and fixtures for the Carta tests.
"""

import pytest
from fastapi.testclient import TestClient

from carta.core.config import Settings
from carta.main import create_app
from carta.menu import MenuStore
from carta.services.notifications import LogNotifier
from carta.services.storage import MockRemoteStore


def make_settings(**overrides) -> Settings:
    """Settings isolated from the developer's .env file."""
    values = {
        "storage_backend": "local",
        "bulk_sync_idle_seconds": 0.01,
        "order_cleanup_delay_seconds": 0.05,
        "public_base_url": "http://testserver",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def store():
    """Menu store seeded with the default menu."""
    return MenuStore()


@pytest.fixture
def notifier():
    return LogNotifier(history_size=100)


@pytest.fixture
def remote():
    """Empty in-memory remote backend without latency or failures."""
    return MockRemoteStore()


@pytest.fixture
def client(settings):
    """
    Test client for an app running in local mode.
    The lifespan runs inside the context manager.
    """
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def application(client):
    return client.app.state.application
