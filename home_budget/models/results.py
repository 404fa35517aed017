"""
Operation Outcomes

Every data operation returns a Result instead of raising or silently
logging: Ok(value) on success, Err(kind, message) on failure. Callers decide
whether to surface, retry or ignore.

Form validation has its own richer outcome (ValidationResult) because a
single form can have several issues at once.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, Optional, TypeVar, Union

from pydantic import BaseModel, Field


T = TypeVar("T")
U = TypeVar("U")


class ErrorKind(str, Enum):
    """Where a failure came from."""
    NETWORK = "network"        # Socket / connectivity failure
    TIMEOUT = "timeout"        # Client-side abort after the configured duration
    SERVER = "server"          # Non-2xx response
    NOT_FOUND = "not_found"    # 404 or a missing local record
    VALIDATION = "validation"  # Input rejected before reaching the API
    CONFLICT = "conflict"      # Precondition not met (no edit open, busy, ...)
    EXPIRED = "expired"        # Undo window already closed


class ResultError(Exception):
    """Raised when unwrapping an Err."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: Any) -> T:
        return self.value

    def map(self, f: Callable[[T], U]) -> "Ok[U]":
        return Ok(f(self.value))


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str
    status: Optional[int] = None

    @property
    def is_ok(self) -> bool:
        return False

    def unwrap(self):
        raise ResultError(self.kind, self.message)

    def unwrap_or(self, default: Any) -> Any:
        return default

    def map(self, f: Callable[[Any], Any]) -> "Err":
        return self


Result = Union[Ok[T], Err]


# =============================================================================
# FORM VALIDATION
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'not_positive')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Outcome of validating one form submission.

    request holds the typed create/update request when the form is valid.
    Warnings never block submission.
    """

    is_valid: bool = Field(
        ...,
        description="Overall validation result"
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )
    request: Optional[Any] = Field(
        default=None,
        description="Typed request built from the form"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [i.message for i in self.issues if i.severity == "warning"]

    def errors_for(self, field: str) -> list[ValidationIssue]:
        return [i for i in self.issues if i.field == field and i.severity == "error"]

    def as_err(self) -> Err:
        """First error as a Result failure."""
        messages = "; ".join(i.message for i in self.issues if i.severity == "error")
        return Err(ErrorKind.VALIDATION, messages or "Invalid input")
