"""
Gateway Bundles

One object holding a gateway per resource, built either over HTTP or in
memory. List states and the dashboard service take what they need from it.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from home_budget.models import (
    AssetSnapshot,
    BudgetYear,
    Category,
    Debt,
    Expense,
    Fund,
    Income,
    Note,
    SystemSetting,
    Task,
    Tithe,
)
from home_budget.services.api import ApiClient
from home_budget.services.gateway.http import (
    HttpAssetGateway,
    HttpBudgetYearGateway,
    HttpCategoryGateway,
    HttpDashboardGateway,
    HttpDebtGateway,
    HttpExpenseGateway,
    HttpFundGateway,
    HttpIncomeGateway,
    HttpNoteGateway,
    HttpSystemSettingsGateway,
    HttpTaskGateway,
    HttpTitheGateway,
)
from home_budget.services.gateway.interface import (
    AssetGateway,
    BudgetYearGateway,
    CategoryGateway,
    DashboardGateway,
    DebtGateway,
    ExpenseGateway,
    FundGateway,
    IncomeGateway,
    NoteGateway,
    SystemSettingsGateway,
    TaskGateway,
    TitheGateway,
)
from home_budget.services.gateway.memory import (
    MemoryAssetGateway,
    MemoryBudgetYearGateway,
    MemoryCategoryGateway,
    MemoryDashboardGateway,
    MemoryDebtGateway,
    MemoryExpenseGateway,
    MemoryFundGateway,
    MemoryIncomeGateway,
    MemoryNoteGateway,
    MemorySystemSettingsGateway,
    MemoryTaskGateway,
    MemoryTitheGateway,
)


@dataclass
class Gateways:
    expenses: ExpenseGateway
    incomes: IncomeGateway
    tithes: TitheGateway
    funds: FundGateway
    debts: DebtGateway
    tasks: TaskGateway
    assets: AssetGateway
    budget_years: BudgetYearGateway
    categories: CategoryGateway
    notes: NoteGateway
    dashboard: DashboardGateway
    system_settings: SystemSettingsGateway


def http_gateways(client: ApiClient) -> Gateways:
    return Gateways(
        expenses=HttpExpenseGateway(client),
        incomes=HttpIncomeGateway(client),
        tithes=HttpTitheGateway(client),
        funds=HttpFundGateway(client),
        debts=HttpDebtGateway(client),
        tasks=HttpTaskGateway(client),
        assets=HttpAssetGateway(client),
        budget_years=HttpBudgetYearGateway(client),
        categories=HttpCategoryGateway(client),
        notes=HttpNoteGateway(client),
        dashboard=HttpDashboardGateway(client),
        system_settings=HttpSystemSettingsGateway(client),
    )


def memory_gateways(
    expenses: Iterable[Expense] = (),
    incomes: Iterable[Income] = (),
    tithes: Iterable[Tithe] = (),
    funds: Iterable[Fund] = (),
    debts: Iterable[Debt] = (),
    tasks: Iterable[Task] = (),
    assets: Iterable[AssetSnapshot] = (),
    budget_years: Iterable[BudgetYear] = (),
    categories: Iterable[Category] = (),
    notes: Iterable[Note] = (),
    system_settings: Iterable[SystemSetting] = (),
    report_totals: bool = False,
    tithe_percentage: Optional[float] = None,
) -> Gateways:
    """
    Fixture-seeded in-memory gateways, wired together the way the API
    joins them (expense rows get category and fund names, the tithe
    summary reads incomes, the dashboard reads everything).
    """
    category_gw = MemoryCategoryGateway(categories, report_totals)
    income_gw = MemoryIncomeGateway(incomes, report_totals)
    expense_gw = MemoryExpenseGateway(expenses, report_totals, categories=category_gw)
    tithe_gw = MemoryTitheGateway(
        tithes,
        report_totals,
        incomes=income_gw,
        tithe_percentage=tithe_percentage,
    )
    fund_gw = MemoryFundGateway(funds, report_totals)
    debt_gw = MemoryDebtGateway(debts, report_totals)
    task_gw = MemoryTaskGateway(tasks, report_totals)
    return Gateways(
        expenses=expense_gw,
        incomes=income_gw,
        tithes=tithe_gw,
        funds=fund_gw,
        debts=debt_gw,
        tasks=task_gw,
        assets=MemoryAssetGateway(assets, report_totals),
        budget_years=MemoryBudgetYearGateway(budget_years, report_totals),
        categories=category_gw,
        notes=MemoryNoteGateway(notes, report_totals),
        dashboard=MemoryDashboardGateway(
            incomes=income_gw,
            expenses=expense_gw,
            funds=fund_gw,
            debts=debt_gw,
            tasks=task_gw,
            tithes=tithe_gw,
            tithe_percentage=tithe_percentage,
        ),
        system_settings=MemorySystemSettingsGateway(system_settings),
    )
