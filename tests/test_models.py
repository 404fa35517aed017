"""
Tests for Home Budget Sync

Test strategy:
1. Unit tests for individual components (models, validators, summaries)
2. State and gateway flows over in-memory gateways
3. No real API calls in tests (httpx.MockTransport)
"""

import pytest
from datetime import date
from decimal import Decimal

from home_budget.models import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
    AssetSnapshot,
    BudgetYear,
    Category,
    CreateExpenseRequest,
    Err,
    ErrorKind,
    Expense,
    ExpenseFilters,
    ExpenseSortField,
    Income,
    IncomeFilters,
    NotificationType,
    Ok,
    Page,
    ResultError,
    SortDirection,
    SortSpec,
    Task,
    TitheSummary,
    ValidationIssue,
    ValidationResult,
)


class TestRecordModels:
    """Tests for record Pydantic models."""

    def test_expense_from_api_row(self):
        """Test that joined names and camelCase keys are accepted."""
        expense = Expense.model_validate({
            "id": 7,
            "name": "  Bread  ",
            "amount": "4.20",
            "date": "2024-02-02",
            "category_name": "groceries",
            "funds": {"name": "household"},
            "budgetYearId": "by-1",
            "unknown": "ignored",
        })
        assert expense.id == "7"
        assert expense.name == "Bread"
        assert expense.category == "groceries"
        assert expense.fund == "household"
        assert expense.budget_year_id == "by-1"

    def test_expense_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            Expense(id="1", name="x", amount=Decimal("-1"), date=date(2024, 1, 1))

    def test_income_derives_month_and_year(self):
        """Test that month/year default to the date's."""
        income = Income(id="1", name="Pay", amount=Decimal("10"), date=date(2024, 3, 31))
        assert (income.month, income.year) == (3, 2024)

    def test_income_month_bounds(self):
        """Test that month must be 1-12."""
        with pytest.raises(ValueError):
            Income(id="1", name="Pay", amount=Decimal("10"), date=date(2024, 3, 1), month=13)

    def test_task_title_from_description(self):
        """Test that the API's description column maps to title."""
        assert Task.model_validate({"id": "1", "description": "Call"}).title == "Call"

    def test_asset_snapshot_net_worth(self):
        """Test derived asset totals."""
        snapshot = AssetSnapshot(
            id="1",
            date=date(2024, 1, 1),
            assets={"checking": Decimal("1000"), "savings": Decimal("500")},
            liabilities={"card": Decimal("200")},
        )
        assert snapshot.total_assets == Decimal("1500")
        assert snapshot.net_worth == Decimal("1300")

    def test_budget_year_range(self):
        """Test that a budget year cannot end before it starts."""
        with pytest.raises(ValueError):
            BudgetYear(id="1", start_date=date(2024, 5, 1), end_date=date(2024, 1, 1))

    def test_category_color_alias(self):
        """Test that color maps to color_class."""
        category = Category.model_validate({"id": "1", "name": "Food", "color": "bg-red"})
        assert category.color_class == "bg-red"

    def test_request_payload_is_camel_case(self):
        """Test that requests serialize to the API's JSON."""
        payload = CreateExpenseRequest(
            name="Bread",
            amount=Decimal("4.20"),
            category_id="c1",
            date=date(2024, 2, 2),
        ).to_payload()
        assert payload["categoryId"] == "c1"
        assert payload["amount"] == 4.2
        assert payload["budgetYearId"] is None

    def test_summary_aliases(self):
        """Test that the tithe summary reads the API's field names."""
        summary = TitheSummary.model_validate({
            "totalTitheGiven": 120,
            "requiredTithe": 200,
            "remainingTithe": 80,
        })
        assert summary.total_remaining == Decimal("80")


class TestQueryModels:
    """Tests for filters, sort and pages."""

    def test_blank_filters_are_none(self):
        """Test that blank form values mean no filter."""
        filters = ExpenseFilters(category="  ", search="")
        assert filters.is_empty
        assert filters.to_params() == {}

    def test_filters_reject_unknown_fields(self):
        """Test that filters are a closed set."""
        with pytest.raises(ValueError):
            ExpenseFilters(colour="red")

    def test_income_filter_month_bounds(self):
        """Test that an impossible month is refused."""
        with pytest.raises(ValueError):
            IncomeFilters(month=0)

    def test_sort_toggle(self):
        """Test asc -> desc on the same field, asc on a new one."""
        sort = SortSpec(field=ExpenseSortField.DATE, direction=SortDirection.DESC)
        assert sort.toggled(ExpenseSortField.DATE).direction is SortDirection.ASC
        asc = SortSpec(field=ExpenseSortField.DATE, direction=SortDirection.ASC)
        assert asc.toggled(ExpenseSortField.DATE).direction is SortDirection.DESC
        assert asc.toggled(ExpenseSortField.AMOUNT) == SortSpec(
            field=ExpenseSortField.AMOUNT, direction=SortDirection.ASC,
        )

    def test_page_has_more_prefers_hints(self):
        """Test the has_more order: has_next, total, then page length."""
        assert Page(items=[1, 2], limit=2).has_more is True
        assert Page(items=[1], limit=2).has_more is False
        assert Page(items=[1, 2], limit=2, total=2).has_more is False
        assert Page(items=[1], limit=2, has_next=True).has_more is True


class TestResults:
    """Tests for Ok / Err and ValidationResult."""

    def test_ok_and_err(self):
        """Test unwrap behaviour."""
        assert Ok(3).unwrap() == 3
        assert Ok(3).map(lambda v: v + 1) == Ok(4)
        err = Err(ErrorKind.NETWORK, "offline", 0)
        assert err.unwrap_or(5) == 5
        with pytest.raises(ResultError):
            err.unwrap()

    def test_validation_result_has_errors(self):
        """Test error detection in validation results."""
        result = ValidationResult(
            is_valid=False,
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="missing",
                    message="Amount is required",
                    severity="error",
                ),
                ValidationIssue(
                    field="date",
                    issue_type="future_date",
                    message="Date is in the future",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors
        assert result.error_count == 1
        assert result.warnings == ["Date is in the future"]
        assert result.as_err() == Err(ErrorKind.VALIDATION, "Amount is required")


class TestActivityModels:
    """Tests for activity events."""

    def test_activity_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = ActivityEventBuilder.record_created("expense", "e1", "Bread")
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "record_created"
        assert log_dict["record_id"] == "e1"
        assert "event_id" in log_dict

    def test_notification_type_from_severity(self):
        """Test severity to toast mapping."""
        event = ActivityEvent(
            event_type=ActivityEventType.SYSTEM_ERROR,
            severity=ActivitySeverity.ERROR,
            message="boom",
        )
        assert event.notification_type is NotificationType.ERROR

    def test_mutation_failed_carries_error(self):
        """Test that failures record kind and status."""
        event = ActivityEventBuilder.mutation_failed(
            "income", "update", Err(ErrorKind.TIMEOUT, "slow", 408), "i1",
        )
        assert event.error_kind == "timeout"
        assert event.details["status"] == 408
        assert event.notify
