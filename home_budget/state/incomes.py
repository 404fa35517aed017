"""Income list state."""

from enum import Enum
from typing import Any, Mapping, Optional

from home_budget.models import (
    Income,
    IncomeFilters,
    IncomeSortField,
    IncomeSummary,
    Ok,
    ResourceType,
    Result,
    UpdateIncomeRequest,
    ValidationResult,
)
from home_budget.services.api import ApiError
from home_budget.services.gateway import IncomeGateway
from home_budget.state.base import ListState
from home_budget.state.grouping import by_attribute, by_month, by_year


class IncomeEditableField(str, Enum):
    NAME = "name"
    AMOUNT = "amount"
    SOURCE = "source"
    NOTE = "note"


class IncomeListState(ListState[Income, IncomeFilters, IncomeSortField]):
    """
    Incomes of the selected budget year, with their summary.

    Every source seen in a loaded page or a saved record is remembered in
    the local store as a suggestion for the source field.
    """

    resource = ResourceType.INCOME
    record_model = Income
    filters_model = IncomeFilters
    sort_fields = IncomeSortField
    editable_fields = IncomeEditableField
    default_sort_field = IncomeSortField.DATE
    group_keys = {
        "source": by_attribute("source"),
        "month": by_month,
        "year": by_year,
    }

    def __init__(self, gateway: IncomeGateway, **kwargs: Any):
        super().__init__(gateway, **kwargs)
        self._summary: Optional[IncomeSummary] = None
        self._sources: list[str] = []

    @property
    def summary(self) -> Optional[IncomeSummary]:
        return self._summary

    @property
    def source_suggestions(self) -> list[str]:
        if self._store is not None:
            return self._store.get_income_sources()
        return list(self._sources)

    def _remember_sources(self, *sources: Optional[str]) -> None:
        if self._store is not None:
            self._store.add_income_sources(*sources)
            return
        for source in sources:
            if source and source.casefold() not in {s.casefold() for s in self._sources}:
                self._sources.insert(0, source)

    def _after_load(self, records: list[Income]) -> None:
        self._remember_sources(*(r.source for r in records))

    def _after_create(self, record: Income) -> None:
        self._remember_sources(record.source)

    async def reset_and_load(self) -> Result[int]:
        result = await super().reset_and_load()
        if result.is_ok:
            await self.refresh_summary()
        return result

    async def refresh_summary(self) -> Result[IncomeSummary]:
        try:
            self._summary = await self._gateway.summary(self._budget_year_id)
        except ApiError as e:
            return self._side_load_failed(e)
        self._notify()
        return Ok(self._summary)

    def _update_request(self, record: Income) -> UpdateIncomeRequest:
        return UpdateIncomeRequest(
            name=record.name,
            amount=record.amount,
            date=record.date,
            source=record.source,
            note=record.note,
            budget_year_id=record.budget_year_id or self._budget_year_id,
            month=record.month,
            year=record.year,
        )

    def _validate_form(self, form: Mapping[str, Any]) -> ValidationResult:
        return self._validator.validate_income(form)
