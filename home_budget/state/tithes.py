"""Tithe list state."""

from enum import Enum
from typing import Any, Mapping, Optional

from home_budget.models import (
    Ok,
    ResourceType,
    Result,
    Tithe,
    TitheFilters,
    TitheSortField,
    TitheSummary,
    UpdateTitheRequest,
    ValidationResult,
)
from home_budget.services.api import ApiError
from home_budget.services.gateway import TitheGateway
from home_budget.state.base import ListState
from home_budget.state.grouping import by_month, by_year


class TitheEditableField(str, Enum):
    DESCRIPTION = "description"
    AMOUNT = "amount"
    NOTE = "note"


class TitheListState(ListState[Tithe, TitheFilters, TitheSortField]):
    """Tithe payments, with given / required / remaining totals."""

    resource = ResourceType.TITHE
    record_model = Tithe
    filters_model = TitheFilters
    sort_fields = TitheSortField
    editable_fields = TitheEditableField
    default_sort_field = TitheSortField.DATE
    group_keys = {
        "month": by_month,
        "year": by_year,
    }

    def __init__(self, gateway: TitheGateway, **kwargs: Any):
        super().__init__(gateway, **kwargs)
        self._summary: Optional[TitheSummary] = None

    @property
    def summary(self) -> Optional[TitheSummary]:
        return self._summary

    async def reset_and_load(self) -> Result[int]:
        result = await super().reset_and_load()
        if result.is_ok:
            await self.refresh_summary()
        return result

    async def refresh_summary(self) -> Result[TitheSummary]:
        try:
            self._summary = await self._gateway.summary()
        except ApiError as e:
            return self._side_load_failed(e)
        self._notify()
        return Ok(self._summary)

    def _update_request(self, record: Tithe) -> UpdateTitheRequest:
        return UpdateTitheRequest(
            description=record.description,
            amount=record.amount,
            date=record.date,
            note=record.note,
        )

    def _validate_form(self, form: Mapping[str, Any]) -> ValidationResult:
        return self._validator.validate_tithe(form)
