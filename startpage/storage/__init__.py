# Startpage Storage Package
"""
Low-level storage handles used by the stores.

Handles are opened and closed explicitly and passed to the stores at
construction, so tests can hand in temporary files or in-memory fakes.
"""

from .errors import StorageError
from .kv import JsonFileStore, KeyValueStore, MemoryStore
from .table import BookmarkTable

__all__ = [
    "StorageError",
    "BookmarkTable",
    "KeyValueStore",
    "JsonFileStore",
    "MemoryStore",
]
