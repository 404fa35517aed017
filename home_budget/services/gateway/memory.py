"""
In-Memory Gateway Implementation

DESIGN DECISION: The in-memory gateways apply the same filters, sort and
pagination as the server, so list state behaves identically against them.
They back the test suite and offline sessions.

By default a page carries no total / has-next hint, like the API's
list endpoints when no pagination block is sent. Pass report_totals=True to get
server-style hints.
"""

from collections import OrderedDict
from decimal import Decimal
from typing import Any, Iterable, Optional, Type
from uuid import uuid4

import structlog
from pydantic import BaseModel

from home_budget.config import get_settings
from home_budget.models import (
    AssetSnapshot,
    AssetTrends,
    BudgetYear,
    Category,
    DashboardSummary,
    Debt,
    DebtSummary,
    Expense,
    ExpenseSummary,
    Fund,
    Income,
    IncomeSummary,
    ListFilters,
    Note,
    Page,
    SortDirection,
    SortSpec,
    SystemSetting,
    Task,
    TaskSummary,
    Tithe,
    TitheSummary,
)
from home_budget.reports.budget_years import format_budget_year_name
from home_budget.reports.summaries import (
    asset_trends,
    build_dashboard,
    latest_snapshot,
    summarize_debts,
    summarize_expenses,
    summarize_incomes,
    summarize_tasks,
    summarize_tithe,
)
from home_budget.services.api import NotFoundError
from home_budget.services.gateway.interface import (
    AssetGateway,
    BudgetYearGateway,
    CategoryGateway,
    DashboardGateway,
    DebtGateway,
    ExpenseGateway,
    FundGateway,
    IncomeGateway,
    NoteGateway,
    SystemSettingsGateway,
    TaskGateway,
    TitheGateway,
)


def _sort_key(value: Any) -> tuple:
    if isinstance(value, str):
        value = value.casefold()
    return (value is None, value if value is not None else 0)


class MemoryResourceMixin:
    """
    Shared CRUD over an ordered dict of records.

    Subclasses set model and, optionally, year_scoped and search_fields.
    """

    model: Type[BaseModel]
    year_scoped: bool = False
    search_fields: tuple[str, ...] = ("name", "description", "title", "note", "content")

    def __init__(
        self,
        records: Optional[Iterable[BaseModel]] = None,
        report_totals: bool = False,
    ):
        self._records: "OrderedDict[str, BaseModel]" = OrderedDict()
        self._report_totals = report_totals
        self._logger = structlog.get_logger(__name__)
        for record in records or []:
            self._records[record.id] = record

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def all(self) -> list:
        """Every stored record, in insertion order."""
        return [r.model_copy(deep=True) for r in self._records.values()]

    def _not_found(self, record_id: str) -> NotFoundError:
        return NotFoundError(
            f"{self.model.__name__} {record_id} not found",
            status=404,
            code="NOT_FOUND",
        )

    def _require(self, record_id: str) -> BaseModel:
        record = self._records.get(record_id)
        if record is None:
            raise self._not_found(record_id)
        return record

    def _build(self, data: dict[str, Any]) -> BaseModel:
        """Turn request fields into a stored record. Hook for derived fields."""
        return self.model.model_validate(data)

    def _store(self, record: BaseModel) -> BaseModel:
        self._records[record.id] = record
        return record.model_copy(deep=True)

    def _matches(self, record: BaseModel, filters: Optional[ListFilters]) -> bool:
        if filters is None:
            return True
        for name, value in filters.model_dump().items():
            if value is None:
                continue
            if name == "search":
                needle = value.casefold()
                haystack = [
                    str(getattr(record, f, None) or "").casefold()
                    for f in self.search_fields
                ]
                if not any(needle in text for text in haystack):
                    return False
            elif name == "min_amount":
                if record.amount < value:
                    return False
            elif name == "max_amount":
                if record.amount > value:
                    return False
            elif name == "start_date":
                if record.date < value:
                    return False
            elif name == "end_date":
                if record.date > value:
                    return False
            elif isinstance(value, str):
                # Name filters match the display name or the id
                candidates = {
                    str(getattr(record, name, None) or "").casefold(),
                    str(getattr(record, f"{name}_id", None) or "").casefold(),
                }
                if value.casefold() not in candidates:
                    return False
            elif getattr(record, name, None) != value:
                return False
        return True

    def _ordered(self, records: list, sort: Optional[SortSpec]) -> list:
        if sort is None:
            # Newest first, like the API's default ORDER BY date DESC
            records = list(reversed(records))
            if "date" in self.model.model_fields:
                records.sort(key=lambda r: r.date, reverse=True)
            return records
        field = sort.field.value if hasattr(sort.field, "value") else str(sort.field)
        return sorted(
            records,
            key=lambda r: _sort_key(getattr(r, field, None)),
            reverse=sort.direction is SortDirection.DESC,
        )

    def _scoped(self, budget_year_id: Optional[str]) -> list:
        records = list(self._records.values())
        if self.year_scoped and budget_year_id:
            records = [r for r in records if r.budget_year_id == budget_year_id]
        return records

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    async def list(
        self,
        filters: Optional[ListFilters] = None,
        page: int = 1,
        limit: Optional[int] = None,
        sort: Optional[SortSpec] = None,
        budget_year_id: Optional[str] = None,
    ) -> Page:
        matched = [r for r in self._scoped(budget_year_id) if self._matches(r, filters)]
        matched = self._ordered(matched, sort)

        if limit is None:
            items, total, has_next = matched, len(matched), False
        else:
            start = (page - 1) * limit
            items = matched[start:start + limit]
            total = len(matched) if self._report_totals else None
            has_next = (start + limit < len(matched)) if self._report_totals else None

        return Page[self.model](
            items=[r.model_copy(deep=True) for r in items],
            page=page,
            limit=limit or max(len(items), 1),
            total=total,
            has_next=has_next,
        )

    async def get_by_id(self, record_id: str):
        record = self._records.get(record_id)
        return record.model_copy(deep=True) if record else None

    async def create(self, request: BaseModel):
        data = request.model_dump()
        data["id"] = str(uuid4())
        record = self._build(data)
        self._logger.debug("memory_record_created", model=self.model.__name__, id=record.id)
        return self._store(record)

    async def update(self, record_id: str, request: BaseModel):
        existing = self._require(record_id)
        data = {**existing.model_dump(), **request.model_dump(), "id": record_id}
        return self._store(self._build(data))

    async def delete(self, record_id: str) -> None:
        self._require(record_id)
        del self._records[record_id]


# =============================================================================
# RESOURCES
# =============================================================================

class MemoryCategoryGateway(MemoryResourceMixin, CategoryGateway):
    model = Category
    search_fields = ("name",)

    def find(self, category_id: Optional[str]) -> Optional[Category]:
        if not category_id:
            return None
        return self._records.get(category_id)

    def find_by_name(self, name: Optional[str]) -> Optional[Category]:
        if not name:
            return None
        for category in self._records.values():
            if category.name.casefold() == name.casefold():
                return category
        return None


class MemoryExpenseGateway(MemoryResourceMixin, ExpenseGateway):
    model = Expense
    year_scoped = True
    search_fields = ("name", "note", "category", "fund")

    def __init__(
        self,
        records: Optional[Iterable[Expense]] = None,
        report_totals: bool = False,
        categories: Optional[MemoryCategoryGateway] = None,
    ):
        super().__init__(records, report_totals)
        self._categories = categories

    def _build(self, data: dict[str, Any]) -> Expense:
        # The API joins category and fund names onto the row
        if self._categories is not None:
            category = self._categories.find(data.get("category_id"))
            if category is None:
                category = self._categories.find_by_name(data.get("category"))
            if category is not None:
                data["category"] = category.name
                data["category_id"] = category.id
                data["fund"] = data.get("fund") or category.fund
                data["fund_id"] = data.get("fund_id") or category.fund_id
        return Expense.model_validate(data)

    async def summary(self, budget_year_id: Optional[str] = None) -> ExpenseSummary:
        return summarize_expenses(self._scoped(budget_year_id))


class MemoryIncomeGateway(MemoryResourceMixin, IncomeGateway):
    model = Income
    year_scoped = True
    search_fields = ("name", "note", "source")

    async def update(self, record_id: str, request: BaseModel) -> Income:
        existing = self._require(record_id)
        # month / year follow the new date unless sent explicitly
        data = {
            **existing.model_dump(exclude={"month", "year"}),
            **request.model_dump(),
            "id": record_id,
        }
        return self._store(self._build(data))

    async def summary(self, budget_year_id: Optional[str] = None) -> IncomeSummary:
        return summarize_incomes(self._scoped(budget_year_id))


class MemoryTitheGateway(MemoryResourceMixin, TitheGateway):
    model = Tithe
    search_fields = ("description", "note")

    def __init__(
        self,
        records: Optional[Iterable[Tithe]] = None,
        report_totals: bool = False,
        incomes: Optional[MemoryIncomeGateway] = None,
        tithe_percentage: Optional[float] = None,
    ):
        super().__init__(records, report_totals)
        self._incomes = incomes
        if tithe_percentage is None:
            tithe_percentage = get_settings().app.default_tithe_percentage
        self._tithe_percentage = tithe_percentage

    async def summary(self) -> TitheSummary:
        incomes = self._incomes.all() if self._incomes is not None else []
        total_income = sum((i.amount for i in incomes), Decimal("0"))
        return summarize_tithe(self.all(), total_income, self._tithe_percentage)


class MemoryFundGateway(MemoryResourceMixin, FundGateway):
    model = Fund
    search_fields = ("name",)

    def __init__(
        self,
        records: Optional[Iterable[Fund]] = None,
        report_totals: bool = False,
    ):
        super().__init__(records, report_totals)
        # (fund_id, budget_year_id) -> per-year budget figures
        self._budgets: dict[tuple[str, str], dict[str, Any]] = {}

    def _with_budget(self, fund: Fund, budget_year_id: Optional[str]) -> Fund:
        figures = self._budgets.get((fund.id, budget_year_id)) if budget_year_id else None
        if not figures:
            return fund.model_copy(deep=True)
        return fund.model_copy(update={**figures, "budget_year_id": budget_year_id})

    async def list_for_year(self, budget_year_id: Optional[str] = None) -> list[Fund]:
        funds = [
            f for f in self._records.values()
            if f.is_active
            and (not budget_year_id or f.budget_year_id in (None, budget_year_id))
        ]
        funds.sort(key=lambda f: (f.level, f.name.casefold()))
        return [self._with_budget(f, budget_year_id) for f in funds]

    async def update_budget(
        self,
        fund_id: str,
        budget_year_id: str,
        amount: Decimal,
        amount_given: Optional[Decimal] = None,
        spent: Optional[Decimal] = None,
    ) -> Fund:
        fund = self._require(fund_id)
        self._budgets[(fund_id, budget_year_id)] = {
            "amount": amount,
            "amount_given": amount_given,
            "spent": spent,
        }
        return self._with_budget(fund, budget_year_id)

    async def _set_active(self, fund_id: str, is_active: bool) -> Fund:
        fund = self._require(fund_id)
        return self._store(fund.model_copy(update={"is_active": is_active}))

    async def activate(self, fund_id: str) -> Fund:
        return await self._set_active(fund_id, True)

    async def deactivate(self, fund_id: str) -> Fund:
        return await self._set_active(fund_id, False)


class MemoryDebtGateway(MemoryResourceMixin, DebtGateway):
    model = Debt
    search_fields = ("description", "note")

    async def summary(self) -> DebtSummary:
        return summarize_debts(list(reversed(self.all())))

    async def _set_paid(self, debt_id: str, is_paid: bool) -> Debt:
        debt = self._require(debt_id)
        return self._store(debt.model_copy(update={"is_paid": is_paid}))

    async def mark_paid(self, debt_id: str) -> Debt:
        return await self._set_paid(debt_id, True)

    async def mark_unpaid(self, debt_id: str) -> Debt:
        return await self._set_paid(debt_id, False)


class MemoryTaskGateway(MemoryResourceMixin, TaskGateway):
    model = Task
    search_fields = ("title",)

    async def summary(self) -> TaskSummary:
        return summarize_tasks(list(reversed(self.all())))

    async def toggle(self, task_id: str) -> Task:
        task = self._require(task_id)
        return self._store(task.model_copy(update={"completed": not task.completed}))

    async def delete_completed(self) -> None:
        for task_id in [t.id for t in self._records.values() if t.completed]:
            del self._records[task_id]


class MemoryAssetGateway(MemoryResourceMixin, AssetGateway):
    model = AssetSnapshot
    search_fields = ("note",)

    async def latest(self) -> Optional[AssetSnapshot]:
        return latest_snapshot(self.all())

    async def trends(self) -> AssetTrends:
        return asset_trends(self.all())


class MemoryBudgetYearGateway(MemoryResourceMixin, BudgetYearGateway):
    model = BudgetYear
    search_fields = ("name",)

    def _build(self, data: dict[str, Any]) -> BudgetYear:
        if not data.get("name"):
            data["name"] = format_budget_year_name(data["start_date"], data["end_date"])
        return BudgetYear.model_validate(data)

    def _ordered(self, records: list, sort: Optional[SortSpec]) -> list:
        if sort is None:
            return sorted(records, key=lambda y: y.start_date, reverse=True)
        return super()._ordered(records, sort)

    async def active(self) -> Optional[BudgetYear]:
        for budget_year in self._records.values():
            if budget_year.is_active:
                return budget_year.model_copy(deep=True)
        return None

    async def activate(self, budget_year_id: str) -> BudgetYear:
        self._require(budget_year_id)
        for year_id, budget_year in list(self._records.items()):
            self._records[year_id] = budget_year.model_copy(
                update={"is_active": year_id == budget_year_id}
            )
        return self._records[budget_year_id].model_copy(deep=True)


class MemoryNoteGateway(MemoryResourceMixin, NoteGateway):
    model = Note
    search_fields = ("title", "content")

    def _ordered(self, records: list, sort: Optional[SortSpec]) -> list:
        if sort is None:
            return list(reversed(records))
        return super()._ordered(records, sort)


class MemoryDashboardGateway(DashboardGateway):
    """Computes the dashboard from the sibling in-memory gateways."""

    def __init__(
        self,
        incomes: MemoryIncomeGateway,
        expenses: MemoryExpenseGateway,
        funds: MemoryFundGateway,
        debts: MemoryDebtGateway,
        tasks: MemoryTaskGateway,
        tithes: MemoryTitheGateway,
        tithe_percentage: Optional[float] = None,
    ):
        self._incomes = incomes
        self._expenses = expenses
        self._funds = funds
        self._debts = debts
        self._tasks = tasks
        self._tithes = tithes
        if tithe_percentage is None:
            tithe_percentage = get_settings().app.default_tithe_percentage
        self._tithe_percentage = tithe_percentage

    async def summary(self, budget_year_id: Optional[str] = None) -> DashboardSummary:
        incomes = (await self._incomes.list(budget_year_id=budget_year_id)).items
        expenses = (await self._expenses.list(budget_year_id=budget_year_id)).items
        return build_dashboard(
            incomes=incomes,
            expenses=expenses,
            funds=await self._funds.list_for_year(budget_year_id),
            debts=self._debts.all(),
            tasks=self._tasks.all(),
            tithes=self._tithes.all(),
            tithe_percentage=self._tithe_percentage,
            all_incomes=self._incomes.all(),
        )


class MemorySystemSettingsGateway(SystemSettingsGateway):
    def __init__(self, settings: Optional[Iterable[SystemSetting]] = None):
        self._settings: dict[str, SystemSetting] = {s.key: s for s in settings or []}

    async def get_all(self) -> list[SystemSetting]:
        return [s.model_copy(deep=True) for s in self._settings.values()]

    async def get(self, key: str) -> Optional[SystemSetting]:
        setting = self._settings.get(key)
        return setting.model_copy(deep=True) if setting else None

    async def set(self, key: str, value: Any, data_type: str = "string") -> SystemSetting:
        existing = self._settings.get(key)
        description = existing.description if existing else None
        setting = SystemSetting(
            key=key,
            value=value,
            data_type=data_type,
            description=description,
        )
        self._settings[key] = setting
        return setting.model_copy(deep=True)
