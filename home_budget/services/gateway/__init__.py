"""
Gateway Package

Typed access to every budget resource, over HTTP or in memory.
"""

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
    ResourceGateway,
    SystemSettingsGateway,
    TaskGateway,
    TitheGateway,
)
from home_budget.services.gateway.http import parse_page
from home_budget.services.gateway.factory import (
    Gateways,
    http_gateways,
    memory_gateways,
)

__all__ = [
    # Interfaces
    "AssetGateway",
    "BudgetYearGateway",
    "CategoryGateway",
    "DashboardGateway",
    "DebtGateway",
    "ExpenseGateway",
    "FundGateway",
    "IncomeGateway",
    "NoteGateway",
    "ResourceGateway",
    "SystemSettingsGateway",
    "TaskGateway",
    "TitheGateway",
    # Implementations
    "Gateways",
    "http_gateways",
    "memory_gateways",
    "parse_page",
]
