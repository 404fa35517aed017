"""Services package."""

from home_budget.services.api import (
    ApiClient,
    ApiError,
    NetworkError,
    NotFoundError,
    RequestTimeoutError,
    ServerError,
)
from home_budget.services.storage import (
    KeyValueStore,
    LocalStore,
    LocalStoreError,
    MemoryStore,
)

__all__ = [
    # API
    "ApiClient",
    "ApiError",
    "NetworkError",
    "NotFoundError",
    "RequestTimeoutError",
    "ServerError",
    # Storage
    "KeyValueStore",
    "LocalStore",
    "LocalStoreError",
    "MemoryStore",
]
