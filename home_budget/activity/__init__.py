"""Activity logging package."""

from home_budget.activity.logger import (
    ActivityListener,
    ActivityLogger,
    configure_logging,
    configure_structlog,
)

__all__ = [
    "ActivityListener",
    "ActivityLogger",
    "configure_logging",
    "configure_structlog",
]
