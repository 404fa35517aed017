"""
Budget Year Helpers

Pure functions over lists of BudgetYear records.
"""

from datetime import date
from typing import Iterable, Optional, Sequence, TypeVar

from home_budget.models import BudgetYear


DatedT = TypeVar("DatedT")


def budget_year_for_date(day: date, budget_years: Iterable[BudgetYear]) -> Optional[BudgetYear]:
    """The first budget year whose range contains day."""
    for budget_year in budget_years:
        if budget_year.contains(day):
            return budget_year
    return None


def active_budget_year(budget_years: Sequence[BudgetYear]) -> Optional[BudgetYear]:
    """The year flagged active, else the first one, else None."""
    for budget_year in budget_years:
        if budget_year.is_active:
            return budget_year
    return budget_years[0] if budget_years else None


def latest_budget_year(budget_years: Sequence[BudgetYear]) -> Optional[BudgetYear]:
    """The year that ends last. Ties keep the earlier entry."""
    latest = None
    for budget_year in budget_years:
        if latest is None or budget_year.end_date > latest.end_date:
            latest = budget_year
    return latest


def format_budget_year_name(start_date: date, end_date: date) -> str:
    """
    Display name of a budget year.

    >>> format_budget_year_name(date(2024, 9, 1), date(2025, 8, 31))
    '09/24 - 08/25'
    """
    return (
        f"{start_date.month:02d}/{start_date.year % 100:02d} - "
        f"{end_date.month:02d}/{end_date.year % 100:02d}"
    )


def budget_year_months(budget_year: BudgetYear) -> int:
    """Calendar months touched by the year, both ends included."""
    start, end = budget_year.start_date, budget_year.end_date
    return (end.year - start.year) * 12 + (end.month - start.month) + 1


def filter_by_budget_year(records: Iterable[DatedT], budget_year: BudgetYear) -> list[DatedT]:
    """Records whose date falls inside the budget year."""
    return [r for r in records if budget_year.contains(r.date)]
