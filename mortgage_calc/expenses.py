"""Totals for the running costs of a let property."""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable

from .data_models import Expense


def total_expenses(expenses: Iterable[Expense]) -> Decimal:
    return sum((e.amount for e in expenses), Decimal("0"))


def expenses_by_category(expenses: Iterable[Expense]) -> Dict[str, Decimal]:
    """Sum expenses per category, in the order categories first appear."""
    totals: Dict[str, Decimal] = {}
    for expense in expenses:
        totals[expense.category] = totals.get(expense.category, Decimal("0")) + expense.amount
    return totals
