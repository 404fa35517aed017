"""
Activity Models

Every mutation and every failure of the data layer produces an
ActivityEvent. Events are always written to the structured log; the ones
flagged `notify` are also offered to the UI as transient notifications
(the toast with a type and a message).
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from home_budget.models.results import Err


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ActivityEventType(str, Enum):
    """Kinds of activity the data layer reports."""
    # Loading
    PAGE_LOADED = "page_loaded"
    PAGE_LOAD_FAILED = "page_load_failed"
    SUMMARY_LOAD_FAILED = "summary_load_failed"

    # Mutations
    RECORD_CREATED = "record_created"
    RECORD_UPDATED = "record_updated"
    RECORD_DELETED = "record_deleted"
    INLINE_EDIT_SAVED = "inline_edit_saved"
    MUTATION_FAILED = "mutation_failed"
    VALIDATION_FAILED = "validation_failed"

    # Undo
    UNDO_AVAILABLE = "undo_available"
    UNDO_APPLIED = "undo_applied"
    UNDO_EXPIRED = "undo_expired"

    # System
    SYSTEM_ERROR = "system_error"


class ActivitySeverity(str, Enum):
    """Severity level for activity events."""
    DEBUG = "debug"
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class NotificationType(str, Enum):
    """What a toast looks like."""
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ActivityEvent(BaseModel):
    """A single activity event."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(default_factory=_utcnow)

    event_type: ActivityEventType
    severity: ActivitySeverity = ActivitySeverity.INFO

    # What resource and record this is about
    resource: Optional[str] = None
    record_id: Optional[str] = None

    message: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_kind: Optional[str] = None
    error_message: Optional[str] = None

    # Offered to the UI as a notification
    notify: bool = False

    @property
    def notification_type(self) -> NotificationType:
        if self.severity is ActivitySeverity.SUCCESS:
            return NotificationType.SUCCESS
        if self.severity is ActivitySeverity.ERROR:
            return NotificationType.ERROR
        if self.severity is ActivitySeverity.WARNING:
            return NotificationType.WARNING
        return NotificationType.INFO

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "resource": self.resource,
            "record_id": self.record_id,
            "message": self.message,
            "details": self.details,
            "error_kind": self.error_kind,
            "error_message": self.error_message,
        }


class Notification(BaseModel):
    """A toast the UI can show."""

    event_id: UUID
    type: NotificationType
    message: str
    timestamp: datetime
    # Seconds the UI should keep it visible; None = until dismissed
    duration: Optional[float] = None


class ActivityEventBuilder:
    """
    Helper class to build activity events with common patterns.

    Usage:
        event = ActivityEventBuilder.record_created("expense", expense.id, expense.name)
        event = ActivityEventBuilder.mutation_failed("income", "update", err, record_id)
    """

    @staticmethod
    def page_loaded(
        resource: str,
        page: int,
        count: int,
        has_more: bool,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.PAGE_LOADED,
            severity=ActivitySeverity.DEBUG,
            resource=resource,
            message=f"Loaded page {page} of {resource} ({count} records)",
            details={"page": page, "count": count, "has_more": has_more},
        )

    @staticmethod
    def page_load_failed(resource: str, page: int, err: Err) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.PAGE_LOAD_FAILED,
            severity=ActivitySeverity.ERROR,
            resource=resource,
            message=f"Failed to load {resource}",
            details={"page": page},
            error_kind=err.kind.value,
            error_message=err.message,
            notify=True,
        )

    @staticmethod
    def summary_load_failed(resource: str, err: Err) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SUMMARY_LOAD_FAILED,
            severity=ActivitySeverity.WARNING,
            resource=resource,
            message=f"Failed to load {resource} summary",
            error_kind=err.kind.value,
            error_message=err.message,
        )

    @staticmethod
    def record_created(resource: str, record_id: str, label: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.RECORD_CREATED,
            severity=ActivitySeverity.SUCCESS,
            resource=resource,
            record_id=record_id,
            message=f"Added {resource}: {label}",
            notify=True,
        )

    @staticmethod
    def record_updated(resource: str, record_id: str, label: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.RECORD_UPDATED,
            severity=ActivitySeverity.SUCCESS,
            resource=resource,
            record_id=record_id,
            message=f"Updated {resource}: {label}",
            notify=True,
        )

    @staticmethod
    def inline_edit_saved(
        resource: str,
        record_id: str,
        field: str,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.INLINE_EDIT_SAVED,
            severity=ActivitySeverity.INFO,
            resource=resource,
            record_id=record_id,
            message=f"Saved {field} of {resource}",
            details={"field": field},
        )

    @staticmethod
    def record_deleted(resource: str, record_id: str, label: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.RECORD_DELETED,
            severity=ActivitySeverity.INFO,
            resource=resource,
            record_id=record_id,
            message=f"Deleted {resource}: {label}",
        )

    @staticmethod
    def undo_available(
        resource: str,
        record_id: str,
        label: str,
        grace_seconds: float,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.UNDO_AVAILABLE,
            severity=ActivitySeverity.INFO,
            resource=resource,
            record_id=record_id,
            message=f"{label} deleted - undo?",
            details={"grace_seconds": grace_seconds},
            notify=True,
        )

    @staticmethod
    def undo_applied(resource: str, record_id: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.UNDO_APPLIED,
            severity=ActivitySeverity.SUCCESS,
            resource=resource,
            record_id=record_id,
            message=f"Reloaded {resource} after undo",
            notify=True,
        )

    @staticmethod
    def undo_expired(resource: str, record_id: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.UNDO_EXPIRED,
            severity=ActivitySeverity.WARNING,
            resource=resource,
            record_id=record_id,
            message="Undo is no longer available",
        )

    @staticmethod
    def mutation_failed(
        resource: str,
        action: str,
        err: Err,
        record_id: Optional[str] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.MUTATION_FAILED,
            severity=ActivitySeverity.ERROR,
            resource=resource,
            record_id=record_id,
            message=f"Failed to {action} {resource}",
            details={"action": action, "status": err.status},
            error_kind=err.kind.value,
            error_message=err.message,
            notify=True,
        )

    @staticmethod
    def validation_failed(
        resource: str,
        issues: list[dict],
        record_id: Optional[str] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.VALIDATION_FAILED,
            severity=ActivitySeverity.WARNING,
            resource=resource,
            record_id=record_id,
            message=f"Invalid {resource} input ({len(issues)} issues)",
            details={"issues": issues},
            notify=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SYSTEM_ERROR,
            severity=ActivitySeverity.ERROR,
            message=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            notify=True,
        )
