"""
Core module initialization.
Exports configuration and logging utilities.
"""

from carta.core.config import (
    get_settings,
    Settings,
    EnvironmentMode,
    StorageBackend,
    CleanupBackend,
)

__all__ = ["get_settings", "Settings", "EnvironmentMode", "StorageBackend", "CleanupBackend"]
