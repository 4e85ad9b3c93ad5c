"""
Client-local storage: durable JSON file + per-session memory store
"""

from boardsync.cache.local_storage import JsonFileStorage, KeyValueStorage, MemoryStorage, StorageKeys

__all__ = ["JsonFileStorage", "KeyValueStorage", "MemoryStorage", "StorageKeys"]
