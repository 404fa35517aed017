"""Expense list state."""

from enum import Enum
from typing import Any, Mapping, Optional

from home_budget.models import (
    Category,
    Expense,
    ExpenseFilters,
    ExpenseSortField,
    ExpenseSummary,
    Ok,
    ResourceType,
    Result,
    UpdateExpenseRequest,
    ValidationResult,
)
from home_budget.services.api import ApiError
from home_budget.services.gateway import CategoryGateway, ExpenseGateway
from home_budget.state.base import ListState
from home_budget.state.grouping import by_attribute


class ExpenseEditableField(str, Enum):
    NAME = "name"
    AMOUNT = "amount"
    NOTE = "note"


class ExpenseListState(ListState[Expense, ExpenseFilters, ExpenseSortField]):
    """
    Expenses of the selected budget year.

    Keeps the category list so full-record updates can carry the
    category and fund ids the API needs.
    """

    resource = ResourceType.EXPENSE
    record_model = Expense
    filters_model = ExpenseFilters
    sort_fields = ExpenseSortField
    editable_fields = ExpenseEditableField
    default_sort_field = ExpenseSortField.DATE
    group_keys = {
        "category": by_attribute("category"),
        "fund": by_attribute("fund"),
    }

    def __init__(
        self,
        gateway: ExpenseGateway,
        categories: Optional[CategoryGateway] = None,
        **kwargs: Any,
    ):
        super().__init__(gateway, **kwargs)
        self._category_gateway = categories
        self._categories: list[Category] = []
        self._summary: Optional[ExpenseSummary] = None

    @property
    def categories(self) -> list[Category]:
        return list(self._categories)

    @property
    def summary(self) -> Optional[ExpenseSummary]:
        return self._summary

    async def load_categories(self) -> Result[list[Category]]:
        if self._category_gateway is None:
            return Ok([])
        try:
            page = await self._category_gateway.list()
        except ApiError as e:
            return self._side_load_failed(e, ResourceType.CATEGORY)
        self._categories = list(page.items)
        return Ok(self.categories)

    async def refresh_summary(self) -> Result[ExpenseSummary]:
        try:
            self._summary = await self._gateway.summary(self._budget_year_id)
        except ApiError as e:
            return self._side_load_failed(e)
        self._notify()
        return Ok(self._summary)

    def _category_named(self, name: Optional[str]) -> Optional[Category]:
        if not name:
            return None
        for category in self._categories:
            if category.name.casefold() == name.casefold():
                return category
        return None

    def _find_category(self, record: Expense) -> Optional[Category]:
        for category in self._categories:
            if record.category_id and category.id == record.category_id:
                return category
        return self._category_named(record.category)

    def resolve_ids(self, record: Expense) -> Expense:
        """Fill category_id and fund_id from the loaded categories."""
        category = self._find_category(record)
        if category is None:
            return record
        return record.model_copy(update={
            "category_id": record.category_id or category.id,
            "fund_id": record.fund_id or category.fund_id,
        })

    def _update_request(self, record: Expense) -> UpdateExpenseRequest:
        record = self.resolve_ids(record)
        return UpdateExpenseRequest(
            name=record.name,
            amount=record.amount,
            category_id=record.category_id,
            fund_id=record.fund_id,
            category=record.category,
            fund=record.fund,
            date=record.date,
            note=record.note,
            budget_year_id=record.budget_year_id or self._budget_year_id,
        )

    def _validate_form(self, form: Mapping[str, Any]) -> ValidationResult:
        result = self._validator.validate_expense(form)
        if result.is_valid and result.request.category_id is None:
            category = self._category_named(result.request.category)
            if category is not None:
                result.request = result.request.model_copy(update={
                    "category_id": category.id,
                    "fund_id": result.request.fund_id or category.fund_id,
                })
        return result

