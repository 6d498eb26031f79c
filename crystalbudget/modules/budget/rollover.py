"""Month-to-month carry-over and debt.

Recomputed from the prior period's transactions on every call; nothing is
stored, so edits to past months are always reflected. Only the immediately
preceding period is considered, never a chain of months.
"""
import logging
from typing import Iterable, Optional

from crystalbudget.core.events import Diagnostics
from crystalbudget.core.money import DEFAULT_CURRENCY
from crystalbudget.core.numeric import ZERO
from .allocations import SourceLookup, allocated_by_currency, resolve_allocations, sum_by_currency
from .models import Category, Expense, Income, IncomeSource, RolloverResult

logger = logging.getLogger(__name__)


def compute_rollovers(categories: Iterable[Category],
                      prior_incomes: Iterable[Income],
                      prior_expenses: Iterable[Expense],
                      income_sources: Iterable[IncomeSource],
                      user_currency: str = DEFAULT_CURRENCY,
                      diagnostics: Optional[Diagnostics] = None) -> RolloverResult:
    """Split each category's prior-period balance into debt or carry-over.

    ``balance = allocated - spent`` per currency: a negative balance becomes
    debt (stored as a positive amount), a positive one carry-over, zero is
    omitted.
    """
    prior_expenses = list(prior_expenses)
    lookup = SourceLookup(prior_incomes, income_sources, user_currency, diagnostics)
    result = RolloverResult()

    for category in categories:
        allocated = allocated_by_currency(resolve_allocations(category, user_currency), lookup)
        category_expenses = [exp for exp in prior_expenses if exp.category_id == category.id]
        spent = sum_by_currency(category_expenses, user_currency, 'expense', diagnostics)

        for currency in list(allocated) + [c for c in spent if c not in allocated]:
            balance = allocated.get(currency, ZERO) - spent.get(currency, ZERO)
            if balance < 0:
                result.debt_map.setdefault(category.id, {})[currency] = -balance
            elif balance > 0:
                result.carry_over_map.setdefault(category.id, {})[currency] = balance

    logger.debug(
        f"Rollovers: {len(result.debt_map)} categories in debt, "
        f"{len(result.carry_over_map)} with carry-over"
    )
    return result
