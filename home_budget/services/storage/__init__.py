"""
Storage Services Package

Client-side persisted key/value state (selected budget year, income source
suggestions, credentials).
"""

from home_budget.services.storage.local import (
    KeyValueStore,
    LocalStore,
    LocalStoreError,
    MemoryStore,
)

__all__ = [
    "KeyValueStore",
    "LocalStore",
    "LocalStoreError",
    "MemoryStore",
]
