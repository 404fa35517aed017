"""
Query Descriptors

Filters, sort descriptors and pages for the paginated list resources.

DESIGN DECISION: Each resource has a closed filter model and a sort-field
enum. Unknown filter or sort fields are rejected instead of being passed
through to the API as free strings.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from home_budget.models.records import DebtType


T = TypeVar("T")
FieldT = TypeVar("FieldT")


# =============================================================================
# SORTING
# =============================================================================

class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    def flipped(self) -> "SortDirection":
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


class ExpenseSortField(str, Enum):
    DATE = "date"
    NAME = "name"
    AMOUNT = "amount"
    CATEGORY = "category"
    FUND = "fund"


class IncomeSortField(str, Enum):
    DATE = "date"
    NAME = "name"
    AMOUNT = "amount"
    SOURCE = "source"
    MONTH = "month"
    YEAR = "year"


class TitheSortField(str, Enum):
    DATE = "date"
    DESCRIPTION = "description"
    AMOUNT = "amount"


class SortSpec(BaseModel, Generic[FieldT]):
    """An explicit {field, direction} sort descriptor."""

    model_config = ConfigDict(frozen=True)

    field: FieldT
    direction: SortDirection = SortDirection.DESC

    def toggled(self, field: FieldT) -> "SortSpec[FieldT]":
        """
        Sort change triggered by clicking a column.

        The same field flips ascending to descending; anything else
        (including a new field) sorts ascending.
        """
        if field == self.field and self.direction is SortDirection.ASC:
            direction = SortDirection.DESC
        else:
            direction = SortDirection.ASC
        return SortSpec(field=field, direction=direction)

    def to_params(self) -> dict[str, str]:
        field = self.field.value if isinstance(self.field, Enum) else str(self.field)
        return {"sortField": field, "sortDirection": self.direction.value}


# =============================================================================
# FILTERS
# =============================================================================

class ListFilters(BaseModel):
    """
    Base for per-resource filters.

    Blank strings coming from form inputs mean "no filter".
    """

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="forbid",
    )

    @field_validator("*", mode="before")
    @classmethod
    def blank_is_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def to_params(self) -> dict[str, str]:
        """Query-string parameters for the active filters only."""
        params = {}
        for key, value in self.model_dump(mode="json", by_alias=True).items():
            if value is None:
                continue
            if isinstance(value, bool):
                params[key] = "true" if value else "false"
            else:
                params[key] = str(value)
        return params

    @property
    def is_empty(self) -> bool:
        return all(v is None for v in self.model_dump().values())


class ExpenseFilterField(str, Enum):
    CATEGORY = "category"
    FUND = "fund"
    MIN_AMOUNT = "min_amount"
    MAX_AMOUNT = "max_amount"
    START_DATE = "start_date"
    END_DATE = "end_date"
    SEARCH = "search"


class ExpenseFilters(ListFilters):
    category: Optional[str] = None
    fund: Optional[str] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    search: Optional[str] = None


class IncomeFilterField(str, Enum):
    SOURCE = "source"
    MONTH = "month"
    YEAR = "year"
    MIN_AMOUNT = "min_amount"
    MAX_AMOUNT = "max_amount"
    START_DATE = "start_date"
    END_DATE = "end_date"
    SEARCH = "search"


class IncomeFilters(ListFilters):
    source: Optional[str] = None
    month: Optional[int] = Field(default=None, ge=1, le=12)
    year: Optional[int] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    search: Optional[str] = None


class TitheFilterField(str, Enum):
    START_DATE = "start_date"
    END_DATE = "end_date"
    MIN_AMOUNT = "min_amount"
    MAX_AMOUNT = "max_amount"
    SEARCH = "search"


class TitheFilters(ListFilters):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    search: Optional[str] = None


class DebtFilters(ListFilters):
    type: Optional[DebtType] = None
    is_paid: Optional[bool] = None
    search: Optional[str] = None


class TaskFilters(ListFilters):
    completed: Optional[bool] = None
    important: Optional[bool] = None
    search: Optional[str] = None


class AssetFilters(ListFilters):
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class NoteFilters(ListFilters):
    search: Optional[str] = None


# =============================================================================
# PAGES
# =============================================================================

class Page(BaseModel, Generic[T]):
    """
    One page of a list response.

    total and has_next are only set when the server reports them.
    """

    items: list[T] = Field(default_factory=list)
    page: int = Field(default=1, ge=1)
    limit: int = Field(..., ge=1)
    total: Optional[int] = Field(default=None, ge=0)
    has_next: Optional[bool] = None

    @property
    def has_more(self) -> bool:
        """
        Whether another page is worth requesting.

        Server hints win. Without them a full page is taken to mean "more",
        so a last page that is exactly `limit` long still reports True.
        """
        if self.has_next is not None:
            return self.has_next
        if self.total is not None:
            return self.page * self.limit < self.total
        return len(self.items) == self.limit

    @property
    def from_server_hint(self) -> bool:
        return self.has_next is not None or self.total is not None
