"""
Storage backends for users and authenticator entries.

The web app receives one Store instance (see create_store); nothing in the
code engine touches storage.
"""

from .base import Store
from .exceptions import (
    EntryNotFoundError,
    StorageError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from .json_store import JsonFileStore
from .memory_store import MemoryStore
from .sqlite_store import SqliteStore


def create_store(config) -> Store:
    """Build the backend named by config['STORAGE_BACKEND']."""
    backend = str(config.get("STORAGE_BACKEND", "memory")).lower()
    if backend == "memory":
        return MemoryStore()
    if backend == "json":
        return JsonFileStore(config.get("JSON_STORE_PATH", "authvault.json"))
    if backend == "sqlite":
        return SqliteStore(config.get("SQLITE_PATH", "database/authvault.db"))
    raise ValueError(f"Unknown storage backend: {backend}")


__all__ = [
    "EntryNotFoundError",
    "JsonFileStore",
    "MemoryStore",
    "SqliteStore",
    "StorageError",
    "Store",
    "UserAlreadyExistsError",
    "UserNotFoundError",
    "create_store",
]
