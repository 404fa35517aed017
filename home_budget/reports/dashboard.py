"""
Dashboard Service

Assembles the dashboard for one budget year. The server's summary
endpoint is used when it answers; otherwise the figures are computed
locally from the resource gateways.
"""

from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Optional

import structlog

from home_budget.activity import ActivityLogger
from home_budget.config import get_settings
from home_budget.models import (
    ActivityEventBuilder,
    DashboardSummary,
    Ok,
    Result,
)
from home_budget.reports.summaries import build_dashboard
from home_budget.services.api import ApiError

if TYPE_CHECKING:
    from home_budget.services.gateway import Gateways


logger = structlog.get_logger(__name__)

TITHE_PERCENTAGE_KEY = "tithe_percentage"


class DashboardService:
    """Dashboard figures with a local fallback."""

    def __init__(
        self,
        gateways: "Gateways",
        activity: Optional[ActivityLogger] = None,
        tithe_percentage: Optional[float] = None,
    ):
        self._gateways = gateways
        self._activity = activity or ActivityLogger()
        self._tithe_percentage = tithe_percentage

    async def tithe_percentage(self) -> float:
        """
        Percentage of income owed as tithe.

        An explicit value wins, then the tithe_percentage system setting,
        then the configured default.
        """
        if self._tithe_percentage is not None:
            return self._tithe_percentage
        default = get_settings().app.default_tithe_percentage
        try:
            setting = await self._gateways.system_settings.get(TITHE_PERCENTAGE_KEY)
        except ApiError as e:
            logger.info("tithe_percentage_setting_unavailable", error=str(e))
            return default
        if setting is None or setting.value in (None, ""):
            return default
        try:
            return float(Decimal(str(setting.value)))
        except InvalidOperation:
            logger.warning("tithe_percentage_setting_invalid", value=setting.value)
            return default

    async def summary(self, budget_year_id: Optional[str] = None) -> Result[DashboardSummary]:
        try:
            summary = await self._gateways.dashboard.summary(budget_year_id)
            return Ok(summary)
        except ApiError as e:
            err = e.to_err()
            logger.warning(
                "dashboard_summary_failed",
                budget_year_id=budget_year_id,
                error_kind=err.kind.value,
                error=err.message,
            )
            self._activity.log(ActivityEventBuilder.summary_load_failed("dashboard", err))

        return await self.compute_locally(budget_year_id)

    async def compute_locally(self, budget_year_id: Optional[str] = None) -> Result[DashboardSummary]:
        """Build the dashboard from full lists of every resource."""
        gw = self._gateways
        try:
            incomes = (await gw.incomes.list(budget_year_id=budget_year_id)).items
            expenses = (await gw.expenses.list(budget_year_id=budget_year_id)).items
            funds = await gw.funds.list_for_year(budget_year_id)
            debts = (await gw.debts.list()).items
            tasks = (await gw.tasks.list()).items
            tithes = (await gw.tithes.list()).items
            all_incomes = (await gw.incomes.list()).items if budget_year_id else incomes
        except ApiError as e:
            err = e.to_err()
            logger.error(
                "dashboard_local_build_failed",
                budget_year_id=budget_year_id,
                error_kind=err.kind.value,
                error=err.message,
            )
            self._activity.system_error(
                "dashboard_unavailable",
                err.message,
                budget_year_id=budget_year_id,
            )
            return err

        summary = build_dashboard(
            incomes=incomes,
            expenses=expenses,
            funds=funds,
            debts=debts,
            tasks=tasks,
            tithes=tithes,
            tithe_percentage=await self.tithe_percentage(),
            all_incomes=all_incomes,
        )
        logger.debug(
            "dashboard_built_locally",
            budget_year_id=budget_year_id,
            incomes=len(incomes),
            expenses=len(expenses),
        )
        return Ok(summary)
