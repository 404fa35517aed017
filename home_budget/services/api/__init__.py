"""
API Services Package

Async HTTP access to the budget API.
"""

from home_budget.services.api.client import ApiClient, unwrap_data
from home_budget.services.api.errors import (
    ApiError,
    NetworkError,
    NotFoundError,
    RequestTimeoutError,
    ResponseFormatError,
    ServerError,
)

__all__ = [
    "ApiClient",
    "unwrap_data",
    "ApiError",
    "NetworkError",
    "NotFoundError",
    "RequestTimeoutError",
    "ResponseFormatError",
    "ServerError",
]
