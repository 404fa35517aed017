"""
Abstract Gateway Interface

DESIGN DECISION: We define an abstract interface per resource.
This allows us to:
1. Talk to the REST API in production
2. Use an in-memory gateway for tests and offline demo mode
3. Keep list state decoupled from the transport

The interface is intentionally simple - get-all, get-by-id, create,
update, delete - plus the few extra endpoints each resource has.
Gateways raise ApiError subclasses; get_by_id returns None when the
record does not exist.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Generic, Optional, TypeVar

from home_budget.models import (
    AssetFilters,
    AssetSnapshot,
    AssetTrends,
    BudgetYear,
    Category,
    CreateAssetSnapshotRequest,
    CreateBudgetYearRequest,
    CreateCategoryRequest,
    CreateDebtRequest,
    CreateExpenseRequest,
    CreateFundRequest,
    CreateIncomeRequest,
    CreateNoteRequest,
    CreateTaskRequest,
    CreateTitheRequest,
    DashboardSummary,
    Debt,
    DebtFilters,
    DebtSummary,
    Expense,
    ExpenseFilters,
    ExpenseSummary,
    Fund,
    Income,
    IncomeFilters,
    IncomeSummary,
    ListFilters,
    Note,
    NoteFilters,
    Page,
    ResourceType,
    SortSpec,
    SystemSetting,
    Task,
    TaskFilters,
    TaskSummary,
    Tithe,
    TitheFilters,
    TitheSummary,
)


RecordT = TypeVar("RecordT")
CreateT = TypeVar("CreateT")
UpdateT = TypeVar("UpdateT")
FiltersT = TypeVar("FiltersT", bound=ListFilters)


class ResourceGateway(ABC, Generic[RecordT, CreateT, UpdateT, FiltersT]):
    """
    Abstract CRUD interface for one resource.

    Any implementation (HTTP, in-memory) must implement these methods.
    """

    resource: ResourceType

    @abstractmethod
    async def list(
        self,
        filters: Optional[FiltersT] = None,
        page: int = 1,
        limit: Optional[int] = None,
        sort: Optional[SortSpec] = None,
        budget_year_id: Optional[str] = None,
    ) -> Page[RecordT]:
        """
        Fetch one page of records.

        Args:
            filters: Closed filter model for the resource
            page: 1-based page number
            limit: Page size; None means "everything"
            sort: Sort descriptor
            budget_year_id: Budget year scope, for resources that have one

        Returns:
            The page, with total / has_next when the source reports them
        """
        pass

    @abstractmethod
    async def get_by_id(self, record_id: str) -> Optional[RecordT]:
        """
        Retrieve a record by its id.

        Returns:
            The record if found, None otherwise
        """
        pass

    @abstractmethod
    async def create(self, request: CreateT) -> RecordT:
        """
        Create a record.

        Returns:
            The canonical record as stored
        """
        pass

    @abstractmethod
    async def update(self, record_id: str, request: UpdateT) -> RecordT:
        """
        Replace every field of a record.

        Returns:
            The canonical record as stored

        Raises:
            NotFoundError: If the record doesn't exist
        """
        pass

    @abstractmethod
    async def delete(self, record_id: str) -> None:
        """
        Delete a record.

        Raises:
            NotFoundError: If the record doesn't exist
        """
        pass


# =============================================================================
# RESOURCE INTERFACES
# =============================================================================

class ExpenseGateway(ResourceGateway[Expense, CreateExpenseRequest, Any, ExpenseFilters]):
    resource = ResourceType.EXPENSE

    @abstractmethod
    async def summary(self, budget_year_id: Optional[str] = None) -> ExpenseSummary:
        pass


class IncomeGateway(ResourceGateway[Income, CreateIncomeRequest, Any, IncomeFilters]):
    resource = ResourceType.INCOME

    @abstractmethod
    async def summary(self, budget_year_id: Optional[str] = None) -> IncomeSummary:
        pass


class TitheGateway(ResourceGateway[Tithe, CreateTitheRequest, Any, TitheFilters]):
    resource = ResourceType.TITHE

    @abstractmethod
    async def summary(self) -> TitheSummary:
        pass


class FundGateway(ResourceGateway[Fund, CreateFundRequest, Any, ListFilters]):
    resource = ResourceType.FUND

    @abstractmethod
    async def list_for_year(self, budget_year_id: Optional[str] = None) -> list[Fund]:
        """All funds with their budget figures for one budget year."""
        pass

    @abstractmethod
    async def update_budget(
        self,
        fund_id: str,
        budget_year_id: str,
        amount: Decimal,
        amount_given: Optional[Decimal] = None,
        spent: Optional[Decimal] = None,
    ) -> Fund:
        pass

    @abstractmethod
    async def activate(self, fund_id: str) -> Fund:
        pass

    @abstractmethod
    async def deactivate(self, fund_id: str) -> Fund:
        pass


class DebtGateway(ResourceGateway[Debt, CreateDebtRequest, Any, DebtFilters]):
    resource = ResourceType.DEBT

    @abstractmethod
    async def summary(self) -> DebtSummary:
        pass

    @abstractmethod
    async def mark_paid(self, debt_id: str) -> Debt:
        pass

    @abstractmethod
    async def mark_unpaid(self, debt_id: str) -> Debt:
        pass


class TaskGateway(ResourceGateway[Task, CreateTaskRequest, Any, TaskFilters]):
    resource = ResourceType.TASK

    @abstractmethod
    async def summary(self) -> TaskSummary:
        pass

    @abstractmethod
    async def toggle(self, task_id: str) -> Task:
        """Flip the completed flag."""
        pass

    @abstractmethod
    async def delete_completed(self) -> None:
        pass


class AssetGateway(
    ResourceGateway[AssetSnapshot, CreateAssetSnapshotRequest, Any, AssetFilters]
):
    resource = ResourceType.ASSET_SNAPSHOT

    @abstractmethod
    async def latest(self) -> Optional[AssetSnapshot]:
        pass

    @abstractmethod
    async def trends(self) -> AssetTrends:
        pass


class BudgetYearGateway(
    ResourceGateway[BudgetYear, CreateBudgetYearRequest, Any, ListFilters]
):
    resource = ResourceType.BUDGET_YEAR

    @abstractmethod
    async def active(self) -> Optional[BudgetYear]:
        pass

    @abstractmethod
    async def activate(self, budget_year_id: str) -> BudgetYear:
        """Mark one year active; every other year becomes inactive."""
        pass


class CategoryGateway(ResourceGateway[Category, CreateCategoryRequest, Any, ListFilters]):
    resource = ResourceType.CATEGORY


class NoteGateway(ResourceGateway[Note, CreateNoteRequest, Any, NoteFilters]):
    resource = ResourceType.NOTE


class DashboardGateway(ABC):
    """Read-only dashboard endpoint."""

    @abstractmethod
    async def summary(self, budget_year_id: Optional[str] = None) -> DashboardSummary:
        pass


class SystemSettingsGateway(ABC):
    """Server-side key/value preferences."""

    @abstractmethod
    async def get_all(self) -> list[SystemSetting]:
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[SystemSetting]:
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, data_type: str = "string") -> SystemSetting:
        pass
