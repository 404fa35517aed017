"""
Local Summaries

Deterministic aggregations over loaded records. They back the in-memory
gateway and serve as the dashboard fallback when the server summary
endpoint is unavailable.

All money arithmetic is Decimal. Nothing here estimates: an empty input
gives zero totals.
"""

from collections import OrderedDict
from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, Optional, Sequence, TypeVar

from home_budget.models import (
    AmountBreakdown,
    AssetSnapshot,
    AssetTrends,
    DashboardSummary,
    Debt,
    DebtSummary,
    DebtType,
    Expense,
    ExpenseSummary,
    Fund,
    FundsSummary,
    Income,
    IncomeSummary,
    Task,
    TaskSummary,
    Tithe,
    TitheSummary,
    TrendPoint,
)


ZERO = Decimal("0")
RECENT_COUNT = 5

RecordT = TypeVar("RecordT")


def _total(records: Iterable) -> Decimal:
    return sum((r.amount for r in records), ZERO)


def breakdown(
    records: Iterable[RecordT],
    key: Callable[[RecordT], Optional[str]],
    empty_label: str = "",
) -> list[AmountBreakdown]:
    """Sum amounts per label, largest first."""
    sums: "OrderedDict[str, Decimal]" = OrderedDict()
    counts: dict[str, int] = {}
    for record in records:
        label = key(record) or empty_label
        sums[label] = sums.get(label, ZERO) + record.amount
        counts[label] = counts.get(label, 0) + 1
    rows = [
        AmountBreakdown(label=label, amount=amount, count=counts[label])
        for label, amount in sums.items()
    ]
    return sorted(rows, key=lambda r: r.amount, reverse=True)


def _month_label(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def _monthly_average(records: Sequence) -> Decimal:
    months = {_month_label(r.date) for r in records}
    if not months:
        return ZERO
    return (_total(records) / len(months)).quantize(Decimal("0.01"))


def summarize_expenses(expenses: Sequence[Expense], today: Optional[date] = None) -> ExpenseSummary:
    today = today or date.today()
    current_month = [
        e for e in expenses if e.date.year == today.year and e.date.month == today.month
    ]
    year_to_date = [e for e in expenses if e.date.year == today.year and e.date <= today]
    by_month = breakdown(expenses, lambda e: _month_label(e.date))
    return ExpenseSummary(
        total_expenses=_total(expenses),
        monthly_average=_monthly_average(expenses),
        current_month_expenses=_total(current_month),
        year_to_date_expenses=_total(year_to_date),
        expenses_by_category=breakdown(expenses, lambda e: e.category),
        expenses_by_fund=breakdown(expenses, lambda e: e.fund),
        expenses_by_month=sorted(by_month, key=lambda r: r.label),
    )


def summarize_incomes(incomes: Sequence[Income], today: Optional[date] = None) -> IncomeSummary:
    today = today or date.today()
    current_month = [
        i for i in incomes if i.date.year == today.year and i.date.month == today.month
    ]
    year_to_date = [i for i in incomes if i.date.year == today.year and i.date <= today]
    by_month = breakdown(incomes, lambda i: _month_label(i.date))
    return IncomeSummary(
        total_income=_total(incomes),
        monthly_average=_monthly_average(incomes),
        current_month_income=_total(current_month),
        year_to_date_income=_total(year_to_date),
        income_by_source=breakdown(incomes, lambda i: i.source),
        income_by_month=sorted(by_month, key=lambda r: r.label),
    )


def summarize_tithe(
    tithes: Sequence[Tithe],
    total_income: Decimal,
    tithe_percentage: float = 10.0,
) -> TitheSummary:
    """
    Tithe position against income.

    required = income * percentage / 100; remaining never goes below zero.
    """
    given = _total(tithes)
    required = (total_income * Decimal(str(tithe_percentage)) / Decimal("100")).quantize(
        Decimal("0.01")
    )
    recent = sorted(tithes, key=lambda t: t.date, reverse=True)[:RECENT_COUNT]
    return TitheSummary(
        total_given=given,
        total_required=required,
        total_remaining=max(ZERO, required - given),
        tithe_percentage=tithe_percentage,
        total_income=total_income,
        recent_tithes=recent,
    )


def summarize_funds(funds: Sequence[Fund]) -> FundsSummary:
    """Totals over funds included in the budget."""
    included = [f for f in funds if f.include_in_budget]
    by_type: dict = {}
    for fund in included:
        by_type[fund.type] = by_type.get(fund.type, ZERO) + fund.amount
    total_budget = sum((f.amount for f in included), ZERO)
    total_spent = sum((f.spent or ZERO for f in included), ZERO)
    return FundsSummary(
        total_budget=total_budget,
        total_given=sum((f.amount_given or ZERO for f in included), ZERO),
        total_spent=total_spent,
        total_remaining=total_budget - total_spent,
        budget_by_type=by_type,
        fund_count=len(included),
    )


def summarize_debts(debts: Sequence[Debt]) -> DebtSummary:
    """
    Open debts in each direction.

    net_debt_position is what others owe me minus what I owe; paid debts
    are counted but not summed.
    """
    unpaid = [d for d in debts if not d.is_paid]
    i_owe = _total(d for d in unpaid if d.type is DebtType.I_OWE)
    owed_to_me = _total(d for d in unpaid if d.type is DebtType.OWED_TO_ME)
    return DebtSummary(
        total_debts_i_owe=i_owe,
        total_debts_owed_to_me=owed_to_me,
        net_debt_position=owed_to_me - i_owe,
        paid_debts=len(debts) - len(unpaid),
        unpaid_debts=len(unpaid),
        recent_debts=list(debts[:RECENT_COUNT]),
    )


def summarize_tasks(tasks: Sequence[Task]) -> TaskSummary:
    completed = sum(1 for t in tasks if t.completed)
    rate = round(completed / len(tasks) * 100, 1) if tasks else 0.0
    return TaskSummary(
        total_tasks=len(tasks),
        completed_tasks=completed,
        pending_tasks=len(tasks) - completed,
        important_tasks=sum(1 for t in tasks if t.important and not t.completed),
        completion_rate=rate,
        recent_tasks=list(tasks[:RECENT_COUNT]),
    )


def asset_trends(snapshots: Sequence[AssetSnapshot]) -> AssetTrends:
    """
    Net worth history, oldest first.

    monthly_change compares the latest snapshot with the closest one at
    least a month older; yearly_change the same with a year.
    """
    ordered = sorted(snapshots, key=lambda s: s.date)
    if not ordered:
        return AssetTrends()

    latest = ordered[-1]

    def change_since(days: int) -> Decimal:
        older = [s for s in ordered if (latest.date - s.date).days >= days]
        if not older:
            return ZERO
        return latest.net_worth - older[-1].net_worth

    return AssetTrends(
        net_worth_trend=[TrendPoint(date=s.date, value=s.net_worth) for s in ordered],
        assets_trend=[TrendPoint(date=s.date, value=s.total_assets) for s in ordered],
        liabilities_trend=[
            TrendPoint(date=s.date, value=s.total_liabilities) for s in ordered
        ],
        monthly_change=change_since(28),
        yearly_change=change_since(365),
    )


def latest_snapshot(snapshots: Sequence[AssetSnapshot]) -> Optional[AssetSnapshot]:
    if not snapshots:
        return None
    return max(snapshots, key=lambda s: s.date)


def build_dashboard(
    incomes: Sequence[Income],
    expenses: Sequence[Expense],
    funds: Sequence[Fund],
    debts: Sequence[Debt],
    tasks: Sequence[Task],
    tithes: Sequence[Tithe],
    tithe_percentage: float = 10.0,
    all_incomes: Optional[Sequence[Income]] = None,
) -> DashboardSummary:
    """
    Dashboard figures for one budget year.

    incomes / expenses / funds are already scoped to the year. Tithe is
    owed on every income ever recorded, so all_incomes (when given) is
    used for the tithe requirement instead of the year's incomes.
    """
    total_income = _total(incomes)
    total_expenses = _total(expenses)
    funds_summary = summarize_funds(funds)
    tithe = summarize_tithe(
        tithes,
        _total(all_incomes if all_incomes is not None else incomes),
        tithe_percentage,
    )
    recent_expenses = sorted(expenses, key=lambda e: e.date, reverse=True)[:RECENT_COUNT]
    return DashboardSummary(
        total_income=total_income,
        total_expenses=total_expenses,
        total_budget=funds_summary.total_budget,
        balance=total_income - total_expenses,
        total_debts=summarize_debts(debts).total_debts_i_owe,
        funds=sorted(funds, key=lambda f: f.level),
        recent_expenses=recent_expenses,
        pending_tasks=[t for t in tasks if not t.completed],
        tithe_required=tithe.total_required,
        tithe_given=tithe.total_given,
        tithe_remaining=tithe.total_remaining,
    )
