"""Tests for the in-memory gateways."""

from datetime import date
from decimal import Decimal

import pytest

from home_budget.models import (
    CreateBudgetYearRequest,
    CreateTaskRequest,
    Debt,
    DebtFilters,
    DebtType,
    ExpenseFilters,
    ExpenseSortField,
    Fund,
    FundType,
    SortDirection,
    SortSpec,
    SystemSetting,
    Task,
    UpdateIncomeRequest,
)
from home_budget.services.api import NotFoundError
from home_budget.services.gateway import memory_gateways

from helpers import BUDGET_YEAR_ID


class TestListing:
    """Tests for filtering, sorting and paging."""

    async def test_filters_by_category_id_or_name(self, gateways):
        """Category filters match the name or the id."""
        by_name = await gateways.expenses.list(ExpenseFilters(category="Rent"))
        by_id = await gateways.expenses.list(ExpenseFilters(category="cat-rent"))
        assert len(by_name.items) == len(by_id.items) == 5

    async def test_search_and_range(self, gateways):
        """Search and amount range combine."""
        page = await gateways.expenses.list(
            ExpenseFilters(search="expense 1", max_amount=Decimal("60"))
        )
        assert {e.id for e in page.items} == {f"exp-{i}" for i in [1] + list(range(10, 20))}

    async def test_date_range(self, gateways):
        """Start and end dates are inclusive."""
        page = await gateways.expenses.list(
            ExpenseFilters(start_date=date(2024, 1, 1), end_date=date(2024, 1, 3))
        )
        assert len(page.items) == 3

    async def test_sort_and_page(self, gateways):
        """Pages are slices of the sorted result."""
        sort = SortSpec(field=ExpenseSortField.NAME, direction=SortDirection.ASC)
        first = await gateways.expenses.list(page=1, limit=10, sort=sort)
        second = await gateways.expenses.list(page=2, limit=10, sort=sort)

        names = [e.name for e in first.items + second.items]
        assert names == sorted(names, key=str.casefold)
        assert first.total is None

    async def test_budget_year_scope(self, gateways):
        """Year-scoped lists only return that year's rows."""
        assert len((await gateways.expenses.list(budget_year_id=BUDGET_YEAR_ID)).items) == 35
        assert (await gateways.expenses.list(budget_year_id="other")).items == []

    async def test_report_totals(self):
        """With report_totals the page carries total and has_next."""
        gws = memory_gateways(
            tasks=[Task(id=str(i), title=f"t{i}") for i in range(3)],
            report_totals=True,
        )
        page = await gws.tasks.list(page=1, limit=2)
        assert page.total == 3
        assert page.has_next is True


class TestCrud:
    """Tests for create, update and delete."""

    async def test_update_missing_raises(self, gateways):
        """Updating an unknown id is a 404."""
        with pytest.raises(NotFoundError):
            await gateways.tasks.update("nope", CreateTaskRequest(title="x"))

    async def test_income_update_rederives_period(self, gateways):
        """Moving an income's date moves its month and year."""
        updated = await gateways.incomes.update("inc-0", UpdateIncomeRequest(
            name="Moved",
            amount=Decimal("10"),
            date=date(2024, 7, 9),
        ))
        assert (updated.month, updated.year) == (7, 2024)

    async def test_stored_records_are_copies(self, gateways):
        """Mutating a returned record does not touch the store."""
        record = await gateways.expenses.get_by_id("exp-1")
        record.name = "hacked"
        assert (await gateways.expenses.get_by_id("exp-1")).name == "Expense 1"

    async def test_budget_year_gets_name(self):
        """A budget year without name is named MM/YY - MM/YY."""
        gws = memory_gateways()
        year = await gws.budget_years.create(CreateBudgetYearRequest(
            start_date=date(2024, 9, 1),
            end_date=date(2025, 8, 31),
        ))
        assert year.name == "09/24 - 08/25"

    async def test_activate_budget_year(self, gateways):
        """Activating one year deactivates the others."""
        other = await gateways.budget_years.create(CreateBudgetYearRequest(
            start_date=date(2025, 1, 1),
            end_date=date(2025, 12, 31),
        ))
        await gateways.budget_years.activate(other.id)
        active = await gateways.budget_years.active()
        assert active.id == other.id


class TestResourceExtras:
    """Tests for resource-specific operations."""

    async def test_debts(self):
        """Paid debts drop out of the totals."""
        gws = memory_gateways(debts=[
            Debt(id="d1", description="Loan", amount=Decimal("100"), type=DebtType.I_OWE),
            Debt(id="d2", description="Lent", amount=Decimal("30"), type=DebtType.OWED_TO_ME),
        ])
        await gws.debts.mark_paid("d1")

        summary = await gws.debts.summary()
        assert summary.total_debts_i_owe == Decimal("0")
        assert summary.net_debt_position == Decimal("30")
        unpaid = await gws.debts.list(DebtFilters(is_paid=False))
        assert [d.id for d in unpaid.items] == ["d2"]

    async def test_tasks(self):
        """Toggle flips completion; delete_completed clears done tasks."""
        gws = memory_gateways(tasks=[Task(id="a", title="A"), Task(id="b", title="B")])
        await gws.tasks.toggle("a")
        await gws.tasks.delete_completed()
        assert [t.id for t in (await gws.tasks.list()).items] == ["b"]

    async def test_fund_budgets_per_year(self):
        """Per-year budgets override the fund amount for that year only."""
        gws = memory_gateways(funds=[
            Fund(id="f1", name="Food", type=FundType.MONTHLY, amount=Decimal("400")),
        ])
        await gws.funds.update_budget("f1", "y1", Decimal("650"), spent=Decimal("100"))

        assert (await gws.funds.list_for_year("y1"))[0].amount == Decimal("650")
        assert (await gws.funds.list_for_year("y2"))[0].amount == Decimal("400")

    async def test_inactive_funds_hidden(self):
        """Deactivated funds are left out of the year's funds."""
        gws = memory_gateways(funds=[
            Fund(id="f1", name="Food", type=FundType.MONTHLY),
        ])
        await gws.funds.deactivate("f1")
        assert await gws.funds.list_for_year() == []

    async def test_system_settings(self):
        """Settings are read and written by key."""
        gws = memory_gateways(system_settings=[
            SystemSetting(key="currency", value="ILS", description="Display currency"),
        ])
        updated = await gws.system_settings.set("currency", "USD")
        assert updated.value == "USD"
        assert updated.description == "Display currency"
        assert await gws.system_settings.get("missing") is None
        assert len(await gws.system_settings.get_all()) == 1
