"""Validation package."""

from home_budget.validation.forms import FormValidator

__all__ = ["FormValidator"]
