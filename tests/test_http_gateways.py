"""Tests for the HTTP gateways and list envelope parsing."""

import json
from datetime import date
from decimal import Decimal

import httpx
import pytest

from home_budget.config import ApiSettings
from home_budget.models import (
    CreateExpenseRequest,
    Expense,
    ExpenseFilters,
    ExpenseSortField,
    SortDirection,
    SortSpec,
)
from home_budget.services.api import ApiClient
from home_budget.services.api.errors import ResponseFormatError
from home_budget.services.gateway import http_gateways, parse_page


BASE_URL = "http://api.test/api"

EXPENSE_ROW = {
    "id": "e1",
    "name": "Milk",
    "amount": "12.50",
    "date": "2024-03-01",
    "categories": {"name": "groceries"},
    "funds": {"name": "household"},
    "category_id": "c1",
    "budgetYearId": "by-1",
}


class FakeApi:
    """Records requests and answers from a route table."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        key = (request.method, request.url.path.removeprefix("/api"))
        status, body = self.routes[key]
        return httpx.Response(status, json=body)

    @property
    def last(self):
        return self.requests[-1]


def gateways_for(api):
    client = ApiClient(
        settings=ApiSettings(base_url=BASE_URL),
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(api)),
    )
    return http_gateways(client)


class TestParsePage:
    """Tests for the list envelopes the API produces."""

    def test_bare_list_uses_heuristic(self):
        """A plain list has no hints; a full page means more."""
        page = parse_page(Expense, [EXPENSE_ROW], page=1, limit=1, list_key="expenses")
        assert len(page.items) == 1
        assert page.from_server_hint is False
        assert page.has_more is True

    def test_keyed_list_with_pagination_block(self):
        """Hints are read from a nested pagination block."""
        body = {
            "data": {
                "expenses": [EXPENSE_ROW],
                "pagination": {"total": 16, "page": 2},
            }
        }
        page = parse_page(Expense, body, page=2, limit=15, list_key="expenses")
        assert page.total == 16
        assert page.page == 2
        assert page.has_more is False

    def test_has_more_flag(self):
        """An explicit hasMore wins over page length."""
        body = {"items": [EXPENSE_ROW], "hasMore": False}
        page = parse_page(Expense, body, page=1, limit=1, list_key="expenses")
        assert page.has_more is False

    def test_unlimited_list_has_no_more(self):
        """Without a limit everything came back."""
        page = parse_page(Expense, {"expenses": [EXPENSE_ROW]}, page=1, limit=None, list_key="expenses")
        assert page.has_more is False

    def test_non_list_rejected(self):
        """A scalar where rows belong is a format error."""
        with pytest.raises(ResponseFormatError):
            parse_page(Expense, {"expenses": 3}, page=1, limit=15, list_key="expenses")

    def test_bad_row_rejected(self):
        """A row missing required fields is a format error."""
        with pytest.raises(ResponseFormatError):
            parse_page(Expense, [{"id": "x"}], page=1, limit=15, list_key="expenses")


class TestExpenseGateway:
    """Tests for the expense endpoints."""

    async def test_list_sends_query(self):
        """Filters, paging, sort and budget year go in the query string."""
        api = FakeApi({("GET", "/expenses"): (200, {"data": [EXPENSE_ROW], "total": 1})})
        gw = gateways_for(api).expenses

        page = await gw.list(
            filters=ExpenseFilters(category="groceries", min_amount=Decimal("50")),
            page=1,
            limit=15,
            sort=SortSpec(field=ExpenseSortField.AMOUNT, direction=SortDirection.ASC),
            budget_year_id="by-1",
        )

        params = dict(api.last.url.params)
        assert params == {
            "category": "groceries",
            "minAmount": "50",
            "page": "1",
            "limit": "15",
            "sortField": "amount",
            "sortDirection": "asc",
            "budgetYearId": "by-1",
        }
        assert page.items[0].category == "groceries"
        assert page.items[0].fund == "household"
        assert page.items[0].budget_year_id == "by-1"
        assert page.has_more is False

    async def test_create_unwraps_message_envelope(self):
        """{"message", "expense"} write answers yield the record."""
        api = FakeApi({
            ("POST", "/expenses"): (201, {"message": "created", "expense": EXPENSE_ROW}),
        })
        gw = gateways_for(api).expenses

        created = await gw.create(CreateExpenseRequest(
            name="Milk",
            amount=Decimal("12.50"),
            category_id="c1",
            date=date(2024, 3, 1),
        ))

        body = json.loads(api.last.content)
        assert body["name"] == "Milk"
        assert body["amount"] == 12.5
        assert body["categoryId"] == "c1"
        assert body["date"] == "2024-03-01"
        assert created.id == "e1"
        assert created.amount == Decimal("12.50")

    async def test_get_by_id_not_found(self):
        """404 means None, not an exception."""
        api = FakeApi({("GET", "/expenses/nope"): (404, {"error": "not found"})})
        assert await gateways_for(api).expenses.get_by_id("nope") is None

    async def test_summary_with_nested_block(self):
        """Summary totals nested under "summary" are read."""
        api = FakeApi({
            ("GET", "/expenses/stats/summary"): (200, {
                "summary": {"total_amount": 300, "byCategory": [{"category_name": "rent", "total": 300}]},
            }),
        })
        summary = await gateways_for(api).expenses.summary("by-1")

        assert api.last.url.params["budgetYearId"] == "by-1"
        assert summary.total_expenses == Decimal("300")
        assert summary.expenses_by_category[0].label == "rent"


class TestOtherGateways:
    """Tests for resource-specific endpoints."""

    async def test_tithe_list_key(self):
        """Tithe rows arrive under "tithe"."""
        row = {"id": "t1", "description": "Gift", "amount": 10, "date": "2024-01-01"}
        api = FakeApi({("GET", "/tithe"): (200, {"tithe": [row]})})
        page = await gateways_for(api).tithes.list(page=1, limit=15)
        assert page.items[0].description == "Gift"
        assert "budgetYearId" not in api.last.url.params

    async def test_task_toggle(self):
        """Toggle is a PUT on the task."""
        api = FakeApi({
            ("PUT", "/tasks/k1/toggle"): (200, {"id": "k1", "description": "Call", "completed": True}),
        })
        task = await gateways_for(api).tasks.toggle("k1")
        assert task.title == "Call"
        assert task.completed is True

    async def test_fund_budget_update(self):
        """Per-year budgets go to /funds/{id}/budget/{year}."""
        api = FakeApi({
            ("PUT", "/funds/f1/budget/by-1"): (200, {
                "fund": {"id": "f1", "name": "Food", "type": "monthly", "amount": 500},
            }),
        })
        fund = await gateways_for(api).funds.update_budget("f1", "by-1", Decimal("500"), spent=Decimal("20"))

        assert json.loads(api.last.content) == {"amount": 500.0, "amountGiven": None, "spent": 20.0}
        assert fund.amount == Decimal("500")

    async def test_active_budget_year_missing(self):
        """No active year is None."""
        api = FakeApi({("GET", "/budget-years/active"): (404, {"error": "none"})})
        assert await gateways_for(api).budget_years.active() is None

    async def test_system_setting_set(self):
        """Settings are written with setting_value and data_type."""
        api = FakeApi({
            ("PUT", "/system-settings/key/tithe_percentage"): (200, {
                "setting_key": "tithe_percentage", "setting_value": "12", "data_type": "number",
            }),
        })
        setting = await gateways_for(api).system_settings.set("tithe_percentage", "12", "number")

        assert json.loads(api.last.content) == {"setting_value": "12", "data_type": "number"}
        assert setting.key == "tithe_percentage"
        assert setting.value == "12"

    async def test_dashboard_summary(self):
        """The dashboard endpoint is scoped by budget year."""
        api = FakeApi({
            ("GET", "/dashboard/summary"): (200, {"data": {"totalIncome": 1000, "totalExpenses": 400}}),
        })
        summary = await gateways_for(api).dashboard.summary("by-1")
        assert api.last.url.params["budgetYearId"] == "by-1"
        assert summary.total_income == Decimal("1000")
