"""
HTTP Gateway Implementation

Per-resource gateways over the budget REST API.

The API is not uniform about list envelopes. A list endpoint may answer
with any of:
- a bare JSON array
- {"data": [...]} with optional "total" / "hasMore" / "page"
- {"data": {"<resource>": [...], "pagination": {...}}}
- {"<resource>": [...], "pagination": {...}}
parse_page accepts all of them and keeps whatever pagination hints it finds.
"""

from decimal import Decimal
from typing import Any, Optional, Type, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

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
    SortSpec,
    SystemSetting,
    Task,
    TaskSummary,
    Tithe,
    TitheSummary,
    UpdateFundBudgetRequest,
)
from home_budget.services.api import (
    ApiClient,
    NotFoundError,
    ResponseFormatError,
    unwrap_data,
)
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


ModelT = TypeVar("ModelT", bound=BaseModel)

PAGINATION_KEYS = ("pagination", "meta")
HAS_NEXT_KEYS = ("hasMore", "has_more", "hasNext", "has_next")


def parse_model(model: Type[ModelT], data: Any) -> ModelT:
    """Validate one API object, mapping failures to ResponseFormatError."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ResponseFormatError(
            f"Unexpected {model.__name__} payload: {e.error_count()} errors",
            code="INVALID_PAYLOAD",
            body=data,
        )


def parse_list(model: Type[ModelT], data: Any, list_key: Optional[str] = None) -> list[ModelT]:
    data = unwrap_data(data)
    if isinstance(data, dict):
        data = data.get(list_key) if list_key else data.get("items")
    if data is None:
        return []
    if not isinstance(data, list):
        raise ResponseFormatError(
            f"Expected a list of {model.__name__}",
            code="INVALID_PAYLOAD",
            body=data,
        )
    return [parse_model(model, row) for row in data]


def _read_hints(container: dict, hints: dict[str, Any]) -> None:
    for source in [container] + [
        container[k] for k in PAGINATION_KEYS if isinstance(container.get(k), dict)
    ]:
        if source.get("total") is not None and "total" not in hints:
            hints["total"] = int(source["total"])
        for key in HAS_NEXT_KEYS:
            if source.get(key) is not None and "has_next" not in hints:
                hints["has_next"] = bool(source[key])
        if source.get("page") is not None and "page" not in hints:
            hints["page"] = int(source["page"])


def parse_page(
    model: Type[ModelT],
    body: Any,
    page: int,
    limit: Optional[int],
    list_key: str,
) -> Page[ModelT]:
    """
    Build a Page from any of the list envelopes the API produces.

    When no limit was requested the page holds everything and there is
    nothing more to fetch unless the server says otherwise.
    """
    hints: dict[str, Any] = {}
    rows: Any = body

    for _ in range(2):
        if not isinstance(rows, dict):
            break
        _read_hints(rows, hints)
        if list_key in rows:
            rows = rows[list_key]
        elif "data" in rows:
            rows = rows["data"]
        elif "items" in rows:
            rows = rows["items"]
        else:
            break

    if rows is None:
        rows = []
    if not isinstance(rows, list):
        raise ResponseFormatError(
            f"Expected a list of {model.__name__}",
            code="INVALID_PAYLOAD",
            body=body,
        )

    items = [parse_model(model, row) for row in rows]
    if limit is None:
        hints.setdefault("has_next", False)
    return Page[model](
        items=items,
        page=hints.get("page", page),
        limit=limit or max(len(items), 1),
        total=hints.get("total"),
        has_next=hints.get("has_next"),
    )


# =============================================================================
# BASE
# =============================================================================

class HttpResourceMixin:
    """
    Shared CRUD over one REST collection.

    Subclasses set path, model, list_key and item_key. Write endpoints
    answer either with the bare record or with {"message": ..., item_key: {...}}.
    """

    path: str
    model: Type[BaseModel]
    list_key: str
    item_key: str
    # Budget-year scoped collections send budgetYearId with list calls
    year_scoped: bool = False

    def __init__(self, client: ApiClient):
        self._client = client
        self._logger = structlog.get_logger(__name__)

    def _list_params(
        self,
        filters: Optional[ListFilters],
        page: int,
        limit: Optional[int],
        sort: Optional[SortSpec],
        budget_year_id: Optional[str],
    ) -> dict[str, str]:
        params: dict[str, str] = {}
        if filters is not None:
            params.update(filters.to_params())
        if limit is not None:
            params["page"] = str(page)
            params["limit"] = str(limit)
        if sort is not None:
            params.update(sort.to_params())
        if budget_year_id and self.year_scoped:
            params["budgetYearId"] = budget_year_id
        return params

    async def list(
        self,
        filters: Optional[ListFilters] = None,
        page: int = 1,
        limit: Optional[int] = None,
        sort: Optional[SortSpec] = None,
        budget_year_id: Optional[str] = None,
    ) -> Page:
        params = self._list_params(filters, page, limit, sort, budget_year_id)
        body = await self._client.get_raw(self.path, params=params)
        result = parse_page(self.model, body, page, limit, self.list_key)
        self._logger.debug(
            "gateway_page_fetched",
            resource=self.list_key,
            page=result.page,
            count=len(result.items),
            total=result.total,
            has_next=result.has_next,
        )
        return result

    async def get_by_id(self, record_id: str):
        try:
            data = await self._client.get(f"{self.path}/{record_id}")
        except NotFoundError:
            return None
        if data is None:
            return None
        return self._parse_record(data)

    async def create(self, request: BaseModel):
        data = await self._client.post(self.path, request.to_payload())
        return self._parse_record(data)

    async def update(self, record_id: str, request: BaseModel):
        data = await self._client.put(f"{self.path}/{record_id}", request.to_payload())
        return self._parse_record(data)

    async def delete(self, record_id: str) -> None:
        await self._client.delete(f"{self.path}/{record_id}")

    def _parse_record(self, data: Any):
        if isinstance(data, dict) and isinstance(data.get(self.item_key), dict):
            data = data[self.item_key]
        return parse_model(self.model, data)

    async def _get_model(self, path: str, model: Type[ModelT], params=None) -> ModelT:
        data = await self._client.get(path, params=params)
        return parse_model(model, data or {})


def _year_params(budget_year_id: Optional[str]) -> Optional[dict[str, str]]:
    return {"budgetYearId": budget_year_id} if budget_year_id else None


# =============================================================================
# RESOURCES
# =============================================================================

class HttpExpenseGateway(HttpResourceMixin, ExpenseGateway):
    path = "/expenses"
    model = Expense
    list_key = "expenses"
    item_key = "expense"
    year_scoped = True

    async def summary(self, budget_year_id: Optional[str] = None) -> ExpenseSummary:
        return await self._get_model(
            f"{self.path}/stats/summary", ExpenseSummary, _year_params(budget_year_id)
        )


class HttpIncomeGateway(HttpResourceMixin, IncomeGateway):
    path = "/incomes"
    model = Income
    list_key = "incomes"
    item_key = "income"
    year_scoped = True

    async def summary(self, budget_year_id: Optional[str] = None) -> IncomeSummary:
        return await self._get_model(
            f"{self.path}/stats/summary", IncomeSummary, _year_params(budget_year_id)
        )


class HttpTitheGateway(HttpResourceMixin, TitheGateway):
    path = "/tithe"
    model = Tithe
    list_key = "tithe"
    item_key = "tithe"

    async def summary(self) -> TitheSummary:
        return await self._get_model(f"{self.path}/summary", TitheSummary)


class HttpFundGateway(HttpResourceMixin, FundGateway):
    path = "/funds"
    model = Fund
    list_key = "funds"
    item_key = "fund"
    year_scoped = True

    async def list_for_year(self, budget_year_id: Optional[str] = None) -> list[Fund]:
        data = await self._client.get(self.path, params=_year_params(budget_year_id))
        return parse_list(Fund, data, self.list_key)

    async def update_budget(
        self,
        fund_id: str,
        budget_year_id: str,
        amount: Decimal,
        amount_given: Optional[Decimal] = None,
        spent: Optional[Decimal] = None,
    ) -> Fund:
        request = UpdateFundBudgetRequest(
            amount=amount,
            amount_given=amount_given,
            spent=spent,
        )
        data = await self._client.put(
            f"{self.path}/{fund_id}/budget/{budget_year_id}",
            request.to_payload(),
        )
        return self._parse_record(data)

    async def activate(self, fund_id: str) -> Fund:
        return self._parse_record(await self._client.put(f"{self.path}/{fund_id}/activate"))

    async def deactivate(self, fund_id: str) -> Fund:
        return self._parse_record(await self._client.put(f"{self.path}/{fund_id}/deactivate"))


class HttpDebtGateway(HttpResourceMixin, DebtGateway):
    path = "/debts"
    model = Debt
    list_key = "debts"
    item_key = "debt"

    async def summary(self) -> DebtSummary:
        return await self._get_model(f"{self.path}/summary", DebtSummary)

    async def mark_paid(self, debt_id: str) -> Debt:
        return self._parse_record(await self._client.put(f"{self.path}/{debt_id}/pay"))

    async def mark_unpaid(self, debt_id: str) -> Debt:
        return self._parse_record(await self._client.put(f"{self.path}/{debt_id}/unpay"))


class HttpTaskGateway(HttpResourceMixin, TaskGateway):
    path = "/tasks"
    model = Task
    list_key = "tasks"
    item_key = "task"

    async def summary(self) -> TaskSummary:
        return await self._get_model(f"{self.path}/summary", TaskSummary)

    async def toggle(self, task_id: str) -> Task:
        return self._parse_record(await self._client.put(f"{self.path}/{task_id}/toggle"))

    async def delete_completed(self) -> None:
        await self._client.delete(f"{self.path}/completed/all")


class HttpAssetGateway(HttpResourceMixin, AssetGateway):
    path = "/assets"
    model = AssetSnapshot
    list_key = "assets"
    item_key = "asset"

    async def latest(self) -> Optional[AssetSnapshot]:
        try:
            data = await self._client.get(f"{self.path}/latest")
        except NotFoundError:
            return None
        return self._parse_record(data) if data else None

    async def trends(self) -> AssetTrends:
        return await self._get_model(f"{self.path}/trends/summary", AssetTrends)


class HttpBudgetYearGateway(HttpResourceMixin, BudgetYearGateway):
    path = "/budget-years"
    model = BudgetYear
    list_key = "budgetYears"
    item_key = "budgetYear"

    async def active(self) -> Optional[BudgetYear]:
        try:
            data = await self._client.get(f"{self.path}/active")
        except NotFoundError:
            return None
        return self._parse_record(data) if data else None

    async def activate(self, budget_year_id: str) -> BudgetYear:
        data = await self._client.put(f"{self.path}/{budget_year_id}/activate")
        return self._parse_record(data)


class HttpCategoryGateway(HttpResourceMixin, CategoryGateway):
    path = "/categories"
    model = Category
    list_key = "categories"
    item_key = "category"


class HttpNoteGateway(HttpResourceMixin, NoteGateway):
    path = "/notes"
    model = Note
    list_key = "notes"
    item_key = "note"


class HttpDashboardGateway(DashboardGateway):
    def __init__(self, client: ApiClient):
        self._client = client

    async def summary(self, budget_year_id: Optional[str] = None) -> DashboardSummary:
        data = await self._client.get(
            "/dashboard/summary",
            params=_year_params(budget_year_id),
        )
        return parse_model(DashboardSummary, data or {})


class HttpSystemSettingsGateway(SystemSettingsGateway):
    path = "/system-settings"

    def __init__(self, client: ApiClient):
        self._client = client

    async def get_all(self) -> list[SystemSetting]:
        data = await self._client.get(self.path)
        return parse_list(SystemSetting, data, "settings")

    async def get(self, key: str) -> Optional[SystemSetting]:
        try:
            data = await self._client.get(f"{self.path}/key/{key}")
        except NotFoundError:
            return None
        return parse_model(SystemSetting, data) if data else None

    async def set(self, key: str, value: Any, data_type: str = "string") -> SystemSetting:
        data = await self._client.put(
            f"{self.path}/key/{key}",
            {"setting_value": value, "data_type": data_type},
        )
        return parse_model(SystemSetting, data)
