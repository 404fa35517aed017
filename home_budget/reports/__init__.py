"""Reports package: budget year helpers, local summaries, dashboard."""

from home_budget.reports.budget_years import (
    active_budget_year,
    budget_year_for_date,
    budget_year_months,
    filter_by_budget_year,
    format_budget_year_name,
    latest_budget_year,
)
from home_budget.reports.summaries import (
    asset_trends,
    breakdown,
    build_dashboard,
    latest_snapshot,
    summarize_debts,
    summarize_expenses,
    summarize_funds,
    summarize_incomes,
    summarize_tasks,
    summarize_tithe,
)
from home_budget.reports.dashboard import DashboardService

__all__ = [
    # Budget years
    "active_budget_year",
    "budget_year_for_date",
    "budget_year_months",
    "filter_by_budget_year",
    "format_budget_year_name",
    "latest_budget_year",
    # Summaries
    "asset_trends",
    "breakdown",
    "build_dashboard",
    "latest_snapshot",
    "summarize_debts",
    "summarize_expenses",
    "summarize_funds",
    "summarize_incomes",
    "summarize_tasks",
    "summarize_tithe",
    # Dashboard
    "DashboardService",
]
