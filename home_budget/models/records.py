"""
Budget Records

These models define the schemas of every resource the budget API serves.
They are designed to:
1. Accept the API's mixed key styles (snake_case rows, camelCase bodies)
2. Enforce the weak, input-time invariants (positive amounts, fund tiers)
3. Serialize back to the camelCase JSON the API expects

DESIGN DECISION: Records are flat. No referential integrity is checked
client-side - a category's fund reference is just a string.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    model_validator,
)
from pydantic.alias_generators import to_camel


# Money travels as a JSON number but is held as Decimal
Money = Annotated[
    Decimal,
    PlainSerializer(lambda v: float(v), return_type=float, when_used="json"),
]


# =============================================================================
# ENUMS
# =============================================================================

class FundType(str, Enum):
    """How a fund's budget is replenished."""
    MONTHLY = "monthly"
    ANNUAL = "annual"
    SAVINGS = "savings"


class DebtType(str, Enum):
    """Direction of a debt."""
    OWED_TO_ME = "owed_to_me"
    I_OWE = "i_owe"


class ResourceType(str, Enum):
    """Every resource the gateway knows about."""
    EXPENSE = "expense"
    INCOME = "income"
    TITHE = "tithe"
    FUND = "fund"
    DEBT = "debt"
    TASK = "task"
    ASSET_SNAPSHOT = "asset_snapshot"
    NOTE = "note"
    BUDGET_YEAR = "budget_year"
    CATEGORY = "category"
    SYSTEM_SETTING = "system_setting"


# =============================================================================
# BASE
# =============================================================================

class ApiModel(BaseModel):
    """
    Base for everything exchanged with the API.

    Fields are declared in snake_case; camelCase aliases are generated.
    Both spellings are accepted on input.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready body in the API's camelCase."""
        return self.model_dump(mode="json", by_alias=True)


class Record(ApiModel):
    """A persisted record. Every record has a server-assigned id."""

    id: str = Field(..., min_length=1)

    @model_validator(mode="before")
    @classmethod
    def stringify_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("id"), int):
            data = {**data, "id": str(data["id"])}
        return data


def _flatten_named(data: dict, key: str, nested_key: str, row_key: str) -> dict:
    """Pull a display name out of a joined object or a `<x>_name` column."""
    if data.get(key):
        return data
    nested = data.get(nested_key)
    if isinstance(nested, dict) and nested.get("name"):
        return {**data, key: nested["name"]}
    if data.get(row_key):
        return {**data, key: data[row_key]}
    return data


# =============================================================================
# CORE RECORDS
# =============================================================================

class Expense(Record):
    """A single expense, attached to a category and a fund."""

    name: str = Field(..., min_length=1, max_length=200)
    amount: Money = Field(..., ge=0)
    category: Optional[str] = None
    fund: Optional[str] = None
    category_id: Optional[str] = None
    fund_id: Optional[str] = None
    date: date
    note: Optional[str] = None
    budget_year_id: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def flatten_joins(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = _flatten_named(data, "category", "categories", "category_name")
        data = _flatten_named(data, "fund", "funds", "fund_name")
        return data


class Income(Record):
    """
    An income entry.

    month and year are derived from the date when the API omits them.
    """

    name: str = Field(..., min_length=1, max_length=200)
    amount: Money = Field(..., ge=0)
    month: Optional[int] = Field(default=None, ge=1, le=12)
    year: Optional[int] = Field(default=None, ge=1900, le=9999)
    date: date
    source: Optional[str] = None
    note: Optional[str] = None
    budget_year_id: Optional[str] = None

    @model_validator(mode="after")
    def derive_period(self) -> "Income":
        if self.month is None:
            self.month = self.date.month
        if self.year is None:
            self.year = self.date.year
        return self


class Tithe(Record):
    """Charitable giving, tracked against a share of income."""

    description: str = Field(..., min_length=1, max_length=200)
    amount: Money = Field(..., ge=0)
    date: date
    note: Optional[str] = None


class Fund(Record):
    """
    A named budget bucket.

    level is the display tier (1 = top of the dashboard).
    categories holds the names (or ids) of the categories feeding it.
    """

    name: str = Field(..., min_length=1, max_length=100)
    type: FundType
    level: int = Field(default=1, ge=1, le=3)
    amount: Money = Field(default=Decimal("0"), ge=0)
    amount_given: Optional[Money] = None
    spent: Optional[Money] = None
    include_in_budget: bool = True
    categories: list[str] = Field(default_factory=list)
    budget_year_id: Optional[str] = None
    is_active: bool = True

    @property
    def remaining(self) -> Decimal:
        """Budget left after spending."""
        return self.amount - (self.spent or Decimal("0"))


class Debt(Record):
    """Money owed in either direction."""

    description: str = Field(..., min_length=1, max_length=200)
    amount: Money = Field(..., ge=0)
    note: Optional[str] = None
    type: DebtType = DebtType.I_OWE
    is_paid: bool = False


class Task(Record):
    """A household to-do item."""

    title: str = Field(
        ...,
        min_length=1,
        max_length=500,
        validation_alias=AliasChoices("title", "description"),
    )
    important: bool = False
    completed: bool = False


class AssetSnapshot(Record):
    """
    Point-in-time picture of assets and liabilities.

    Both maps are keyed by free-form labels ("checking", "mortgage", ...).
    """

    assets: dict[str, Money] = Field(default_factory=dict)
    liabilities: dict[str, Money] = Field(default_factory=dict)
    note: Optional[str] = None
    date: date

    @property
    def total_assets(self) -> Decimal:
        return sum(self.assets.values(), Decimal("0"))

    @property
    def total_liabilities(self) -> Decimal:
        return sum(self.liabilities.values(), Decimal("0"))

    @property
    def net_worth(self) -> Decimal:
        return self.total_assets - self.total_liabilities


class Note(Record):
    """A free-text note shown on the dashboard."""

    title: str = Field(default="", max_length=200)
    content: str = Field(default="")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BudgetYear(Record):
    """
    A named date range scoping incomes and expenses.

    Names follow the "MM/YY - MM/YY" format.
    """

    name: str = Field(default="")
    start_date: date
    end_date: date
    is_active: bool = False

    @model_validator(mode="after")
    def validate_range(self) -> "BudgetYear":
        if self.end_date < self.start_date:
            raise ValueError("Budget year cannot end before it starts")
        return self

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


class Category(Record):
    """An expense category, routed to one fund."""

    name: str = Field(..., min_length=1, max_length=100)
    fund: Optional[str] = None
    fund_id: Optional[str] = None
    color_class: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("color_class", "colorClass", "color"),
    )

    @model_validator(mode="before")
    @classmethod
    def flatten_fund(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        return _flatten_named(data, "fund", "funds", "fund_name")


class SystemSetting(ApiModel):
    """A server-side key/value preference."""

    key: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("key", "setting_key", "settingKey"),
    )
    value: Any = Field(
        default=None,
        validation_alias=AliasChoices("value", "setting_value", "settingValue"),
    )
    data_type: str = Field(
        default="string",
        validation_alias=AliasChoices("data_type", "dataType"),
    )
    description: Optional[str] = None


# =============================================================================
# WRITE REQUESTS
# =============================================================================
# Update requests are full records: the API replaces every field on PUT.

class CreateExpenseRequest(ApiModel):
    name: str = Field(..., min_length=1, max_length=200)
    amount: Money = Field(..., gt=0)
    category_id: Optional[str] = None
    fund_id: Optional[str] = None
    category: Optional[str] = None
    fund: Optional[str] = None
    date: date
    note: Optional[str] = None
    budget_year_id: Optional[str] = None


class UpdateExpenseRequest(CreateExpenseRequest):
    pass


class CreateIncomeRequest(ApiModel):
    name: str = Field(..., min_length=1, max_length=200)
    amount: Money = Field(..., gt=0)
    date: date
    source: Optional[str] = None
    note: Optional[str] = None
    budget_year_id: Optional[str] = None
    # None: the server derives them from date
    month: Optional[int] = Field(default=None, ge=1, le=12)
    year: Optional[int] = Field(default=None, ge=1900, le=9999)


class UpdateIncomeRequest(CreateIncomeRequest):
    pass


class CreateTitheRequest(ApiModel):
    description: str = Field(..., min_length=1, max_length=200)
    amount: Money = Field(..., gt=0)
    date: date
    note: Optional[str] = None


class UpdateTitheRequest(CreateTitheRequest):
    pass


class CreateFundRequest(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: FundType
    level: int = Field(default=1, ge=1, le=3)
    include_in_budget: bool = True
    categories: list[str] = Field(default_factory=list)


class UpdateFundRequest(CreateFundRequest):
    pass


class UpdateFundBudgetRequest(ApiModel):
    """Per-year budget figures of one fund."""
    amount: Money = Field(..., ge=0)
    amount_given: Optional[Money] = Field(default=None, ge=0)
    spent: Optional[Money] = Field(default=None, ge=0)


class CreateDebtRequest(ApiModel):
    description: str = Field(..., min_length=1, max_length=200)
    amount: Money = Field(..., gt=0)
    note: Optional[str] = None
    type: DebtType
    is_paid: bool = False


class UpdateDebtRequest(CreateDebtRequest):
    pass


class CreateTaskRequest(ApiModel):
    title: str = Field(..., min_length=1, max_length=500)
    important: bool = False
    completed: bool = False


class UpdateTaskRequest(CreateTaskRequest):
    pass


class CreateAssetSnapshotRequest(ApiModel):
    assets: dict[str, Money] = Field(default_factory=dict)
    liabilities: dict[str, Money] = Field(default_factory=dict)
    note: Optional[str] = None
    date: date


class UpdateAssetSnapshotRequest(CreateAssetSnapshotRequest):
    pass


class CreateNoteRequest(ApiModel):
    title: str = Field(default="", max_length=200)
    content: str = Field(default="")


class UpdateNoteRequest(CreateNoteRequest):
    pass


class CreateBudgetYearRequest(ApiModel):
    name: Optional[str] = None
    start_date: date
    end_date: date


class UpdateBudgetYearRequest(CreateBudgetYearRequest):
    pass


class CreateCategoryRequest(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)
    fund_id: Optional[str] = None
    fund: Optional[str] = None
    color_class: Optional[str] = None


class UpdateCategoryRequest(CreateCategoryRequest):
    pass


# =============================================================================
# SUMMARIES
# =============================================================================

def _hoist_summary(data: Any) -> Any:
    """Lift a nested {"summary": {...}} block to the top level."""
    if isinstance(data, dict) and isinstance(data.get("summary"), dict):
        rest = {k: v for k, v in data.items() if k != "summary"}
        return {**data["summary"], **rest}
    return data


class SummaryModel(ApiModel):
    """Server summary; some endpoints nest the totals under "summary"."""

    @model_validator(mode="before")
    @classmethod
    def hoist_summary(cls, data: Any) -> Any:
        return _hoist_summary(data)


class AmountBreakdown(ApiModel):
    """One labelled amount inside a summary (by category, by month, ...)."""
    label: str = Field(
        ...,
        validation_alias=AliasChoices(
            "label", "category", "category_name", "fund", "source", "month", "date",
        ),
    )
    amount: Money = Field(
        default=Decimal("0"),
        validation_alias=AliasChoices("amount", "total"),
    )
    count: Optional[int] = None

    @model_validator(mode="before")
    @classmethod
    def stringify_label(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = {
                k: str(v) if k in {"month", "date"} and v is not None else v
                for k, v in data.items()
            }
            if data.get("total") is None and "total" in data:
                data["total"] = 0
        return data


class ExpenseSummary(SummaryModel):
    total_expenses: Money = Field(
        default=Decimal("0"),
        validation_alias=AliasChoices("total_expenses", "totalExpenses", "total_amount"),
    )
    monthly_average: Money = Decimal("0")
    current_month_expenses: Money = Decimal("0")
    year_to_date_expenses: Money = Decimal("0")
    expenses_by_category: list[AmountBreakdown] = Field(
        default_factory=list,
        validation_alias=AliasChoices(
            "expenses_by_category", "expensesByCategory", "byCategory",
        ),
    )
    expenses_by_fund: list[AmountBreakdown] = Field(default_factory=list)
    expenses_by_month: list[AmountBreakdown] = Field(default_factory=list)


class IncomeSummary(SummaryModel):
    total_income: Money = Field(
        default=Decimal("0"),
        validation_alias=AliasChoices("total_income", "totalIncome", "total_amount"),
    )
    monthly_average: Money = Decimal("0")
    current_month_income: Money = Decimal("0")
    year_to_date_income: Money = Decimal("0")
    income_by_source: list[AmountBreakdown] = Field(default_factory=list)
    income_by_month: list[AmountBreakdown] = Field(
        default_factory=list,
        validation_alias=AliasChoices("income_by_month", "incomeByMonth", "monthly"),
    )


class TitheSummary(SummaryModel):
    total_given: Money = Field(
        default=Decimal("0"),
        validation_alias=AliasChoices("total_given", "totalGiven", "totalTitheGiven"),
    )
    total_required: Money = Field(
        default=Decimal("0"),
        validation_alias=AliasChoices("total_required", "totalRequired", "requiredTithe"),
    )
    total_remaining: Money = Field(
        default=Decimal("0"),
        validation_alias=AliasChoices(
            "total_remaining", "totalRemaining", "remainingTithe",
        ),
    )
    tithe_percentage: float = 10.0
    total_income: Money = Decimal("0")
    recent_tithes: list[Tithe] = Field(default_factory=list)


class DebtSummary(ApiModel):
    total_debts_i_owe: Money = Decimal("0")
    total_debts_owed_to_me: Money = Decimal("0")
    net_debt_position: Money = Decimal("0")
    paid_debts: int = 0
    unpaid_debts: int = 0
    recent_debts: list[Debt] = Field(default_factory=list)


class TaskSummary(ApiModel):
    total_tasks: int = 0
    completed_tasks: int = 0
    pending_tasks: int = 0
    important_tasks: int = 0
    completion_rate: float = 0.0
    recent_tasks: list[Task] = Field(default_factory=list)


class TrendPoint(ApiModel):
    date: date
    value: Money = Decimal("0")


class AssetTrends(ApiModel):
    net_worth_trend: list[TrendPoint] = Field(default_factory=list)
    assets_trend: list[TrendPoint] = Field(default_factory=list)
    liabilities_trend: list[TrendPoint] = Field(default_factory=list)
    monthly_change: Money = Decimal("0")
    yearly_change: Money = Decimal("0")


class FundsSummary(ApiModel):
    """Totals across funds. Only funds included in the budget count."""
    total_budget: Money = Decimal("0")
    total_given: Money = Decimal("0")
    total_spent: Money = Decimal("0")
    total_remaining: Money = Decimal("0")
    budget_by_type: dict[FundType, Money] = Field(default_factory=dict)
    fund_count: int = 0


class DashboardSummary(ApiModel):
    """Everything the dashboard shows for one budget year."""
    total_income: Money = Decimal("0")
    total_expenses: Money = Decimal("0")
    total_budget: Money = Decimal("0")
    balance: Money = Decimal("0")
    total_debts: Money = Decimal("0")
    funds: list[Fund] = Field(default_factory=list)
    recent_expenses: list[Expense] = Field(default_factory=list)
    pending_tasks: list[Task] = Field(default_factory=list)
    tithe_required: Money = Decimal("0")
    tithe_given: Money = Decimal("0")
    tithe_remaining: Money = Decimal("0")
