"""
Storage abstraction layer for the royalty splitter.

Pluggable backends for persisting splitter state:

- JSON file (default)
- Memory (for testing)

Usage:
    from royalty_splitter.storage import get_storage_backend

    storage = get_storage_backend()
    splitter.save(storage)
"""

import os

from .base import StorageBackend, StorageError, StorageReadError, StorageWriteError
from .json_file import JSONFileStorage
from .memory import MemoryStorage

__all__ = [
    "JSONFileStorage",
    "MemoryStorage",
    "StorageBackend",
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
    "get_storage_backend",
]


def get_storage_backend() -> StorageBackend:
    """
    Get the configured storage backend based on environment variables.

    Environment variables:
        STORAGE_BACKEND: Backend type ("json", "memory")
        SPLITTER_DATA_FILE: Path for JSON file storage (default: splitter_state.json)

    Returns:
        Configured StorageBackend instance
    """
    backend_type = os.getenv("STORAGE_BACKEND", "json").lower()

    if backend_type == "json":
        return JSONFileStorage(os.getenv("SPLITTER_DATA_FILE", "splitter_state.json"))

    if backend_type == "memory":
        return MemoryStorage()

    raise StorageError(f"Unknown storage backend: {backend_type}")
