"""List state package."""

from home_budget.state.base import (
    InlineEdit,
    ListState,
    LoadStatus,
    PendingKind,
    RecordGroup,
    UndoWindow,
)
from home_budget.state.expenses import ExpenseEditableField, ExpenseListState
from home_budget.state.incomes import IncomeEditableField, IncomeListState
from home_budget.state.tithes import TitheEditableField, TitheListState
from home_budget.state.sentinel import ScrollSentinel

__all__ = [
    # Base
    "InlineEdit",
    "ListState",
    "LoadStatus",
    "PendingKind",
    "RecordGroup",
    "UndoWindow",
    # Resources
    "ExpenseEditableField",
    "ExpenseListState",
    "IncomeEditableField",
    "IncomeListState",
    "TitheEditableField",
    "TitheListState",
    # Sentinel
    "ScrollSentinel",
]
