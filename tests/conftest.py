"""
Shared fixtures for Home Budget Sync tests.

No real API calls: HTTP tests go through httpx.MockTransport and list
state tests use the in-memory gateways, optionally wrapped in a
GatedGateway that counts calls, holds them open and injects failures.
"""

from datetime import date

import pytest

from home_budget.config import get_settings
from home_budget.models import BudgetYear, Category
from home_budget.services.gateway import memory_gateways

from helpers import BUDGET_YEAR_ID, FakeClock, make_expense, make_income, make_tithe


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Keep tests away from the real .env and home directory."""
    monkeypatch.setenv("BUDGET_STORAGE_PATH", str(tmp_path / "store.json"))
    monkeypatch.delenv("BUDGET_API_USE_DEV_PROXY", raising=False)
    monkeypatch.delenv("PAGE_SIZE", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def categories():
    return [
        Category(id="cat-groceries", name="groceries", fund="household", fund_id="fund-household"),
        Category(id="cat-rent", name="rent", fund="housing", fund_id="fund-housing"),
    ]


@pytest.fixture
def budget_year():
    return BudgetYear(
        id=BUDGET_YEAR_ID,
        name="01/24 - 12/24",
        start_date=date(2024, 1, 1),
        end_date=date(2024, 12, 31),
        is_active=True,
    )


@pytest.fixture
def gateways(categories, budget_year):
    """In-memory gateways with 20 groceries at 60, 10 groceries at 20, 5 rent at 900."""
    expenses = (
        [make_expense(i) for i in range(20)]
        + [make_expense(i, amount="20") for i in range(20, 30)]
        + [make_expense(i, category="rent", amount="900") for i in range(30, 35)]
    )
    return memory_gateways(
        expenses=expenses,
        incomes=[make_income(i) for i in range(5)],
        tithes=[make_tithe(i) for i in range(4)],
        categories=categories,
        budget_years=[budget_year],
    )
