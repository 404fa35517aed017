"""
Data Models Package

This package contains all Pydantic models used by Home Budget Sync.
All data exchanged with the API must conform to these schemas.
"""

from home_budget.models.records import (
    AmountBreakdown,
    ApiModel,
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
    DebtSummary,
    DebtType,
    Expense,
    ExpenseSummary,
    Fund,
    FundsSummary,
    FundType,
    Income,
    IncomeSummary,
    Note,
    Record,
    ResourceType,
    SystemSetting,
    Task,
    TaskSummary,
    Tithe,
    TitheSummary,
    TrendPoint,
    UpdateAssetSnapshotRequest,
    UpdateBudgetYearRequest,
    UpdateCategoryRequest,
    UpdateDebtRequest,
    UpdateExpenseRequest,
    UpdateFundBudgetRequest,
    UpdateFundRequest,
    UpdateIncomeRequest,
    UpdateNoteRequest,
    UpdateTaskRequest,
    UpdateTitheRequest,
)
from home_budget.models.queries import (
    AssetFilters,
    DebtFilters,
    ExpenseFilterField,
    ExpenseFilters,
    ExpenseSortField,
    IncomeFilterField,
    IncomeFilters,
    IncomeSortField,
    ListFilters,
    NoteFilters,
    Page,
    SortDirection,
    SortSpec,
    TaskFilters,
    TitheFilterField,
    TitheFilters,
    TitheSortField,
)
from home_budget.models.results import (
    Err,
    ErrorKind,
    Ok,
    Result,
    ResultError,
    ValidationIssue,
    ValidationResult,
)
from home_budget.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
    Notification,
    NotificationType,
)

__all__ = [
    # Records
    "ApiModel",
    "AssetSnapshot",
    "BudgetYear",
    "Category",
    "Debt",
    "DebtType",
    "Expense",
    "Fund",
    "FundType",
    "Income",
    "Note",
    "Record",
    "ResourceType",
    "SystemSetting",
    "Task",
    "Tithe",
    # Requests
    "CreateAssetSnapshotRequest",
    "CreateBudgetYearRequest",
    "CreateCategoryRequest",
    "CreateDebtRequest",
    "CreateExpenseRequest",
    "CreateFundRequest",
    "CreateIncomeRequest",
    "CreateNoteRequest",
    "CreateTaskRequest",
    "CreateTitheRequest",
    "UpdateAssetSnapshotRequest",
    "UpdateBudgetYearRequest",
    "UpdateCategoryRequest",
    "UpdateDebtRequest",
    "UpdateExpenseRequest",
    "UpdateFundBudgetRequest",
    "UpdateFundRequest",
    "UpdateIncomeRequest",
    "UpdateNoteRequest",
    "UpdateTaskRequest",
    "UpdateTitheRequest",
    # Summaries
    "AmountBreakdown",
    "AssetTrends",
    "DashboardSummary",
    "DebtSummary",
    "ExpenseSummary",
    "FundsSummary",
    "IncomeSummary",
    "TaskSummary",
    "TitheSummary",
    "TrendPoint",
    # Queries
    "AssetFilters",
    "DebtFilters",
    "ExpenseFilterField",
    "ExpenseFilters",
    "ExpenseSortField",
    "IncomeFilterField",
    "IncomeFilters",
    "IncomeSortField",
    "ListFilters",
    "NoteFilters",
    "Page",
    "SortDirection",
    "SortSpec",
    "TaskFilters",
    "TitheFilterField",
    "TitheFilters",
    "TitheSortField",
    # Results
    "Err",
    "ErrorKind",
    "Ok",
    "Result",
    "ResultError",
    "ValidationIssue",
    "ValidationResult",
    # Activity
    "ActivityEvent",
    "ActivityEventBuilder",
    "ActivityEventType",
    "ActivitySeverity",
    "Notification",
    "NotificationType",
]
