"""Test doubles and record factories."""

import asyncio
import inspect
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Optional

from home_budget.models import Expense, Income, Tithe


BUDGET_YEAR_ID = "by-2024"


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class GatedGateway:
    """
    Wraps a gateway: counts calls, can hold calls of one method until released and
    can make the next call of a method raise.
    """

    def __init__(self, inner: Any):
        self._inner = inner
        self.calls: list[tuple[str, tuple, dict]] = []
        self._gate: Optional[asyncio.Event] = None
        self._held = "list"
        self._failures: dict[str, list[Exception]] = {}

    def count(self, method: str) -> int:
        return sum(1 for name, _, _ in self.calls if name == method)

    def hold(self, method: str = "list") -> None:
        self._held = method
        self._gate = asyncio.Event()

    def release(self) -> None:
        if self._gate is not None:
            self._gate.set()
            self._gate = None

    def fail_next(self, method: str, error: Exception) -> None:
        self._failures.setdefault(method, []).append(error)

    def __getattr__(self, name: str) -> Any:
        target = getattr(self._inner, name)
        if not inspect.iscoroutinefunction(target):
            return target

        async def wrapper(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            if name == self._held and self._gate is not None:
                await self._gate.wait()
            pending = self._failures.get(name)
            if pending:
                raise pending.pop(0)
            return await target(*args, **kwargs)

        return wrapper


def make_expense(i: int, category: str = "groceries", amount: str = "60", **overrides) -> Expense:
    data = {
        "id": f"exp-{i}",
        "name": f"Expense {i}",
        "amount": Decimal(amount),
        "category": category,
        "category_id": f"cat-{category}",
        "fund": "household",
        "fund_id": "fund-household",
        "date": date(2024, 1, 1) + timedelta(days=i),
        "budget_year_id": BUDGET_YEAR_ID,
    }
    data.update(overrides)
    return Expense(**data)


def make_income(i: int, source: str = "salary", amount: str = "1000", **overrides) -> Income:
    data = {
        "id": f"inc-{i}",
        "name": f"Income {i}",
        "amount": Decimal(amount),
        "source": source,
        "date": date(2024, 1, 1) + timedelta(days=i * 10),
        "budget_year_id": BUDGET_YEAR_ID,
    }
    data.update(overrides)
    return Income(**data)


def make_tithe(i: int, amount: str = "50", **overrides) -> Tithe:
    data = {
        "id": f"tithe-{i}",
        "description": f"Donation {i}",
        "amount": Decimal(amount),
        "date": date(2024, 2, 1) + timedelta(days=i * 7),
    }
    data.update(overrides)
    return Tithe(**data)
