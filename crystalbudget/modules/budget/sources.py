"""Income source summaries.

Expenses carry no source, so a category's spend is attributed back to the
sources funding it, in proportion to each source's share of the category's
budget in that currency.
"""
import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from crystalbudget.core.events import Diagnostics
from crystalbudget.core.money import DEFAULT_CURRENCY
from crystalbudget.core.numeric import ZERO, safe_number
from .allocations import (
    SourceLookup, allocation_amount, resolve_allocations, source_income_total, sum_by_currency,
)
from .models import Category, CurrencySourceSummary, Expense, Income, IncomeSource, SourceSummary

logger = logging.getLogger(__name__)


def _add(totals: Dict[str, Decimal], currency: str, amount: Decimal) -> None:
    totals[currency] = totals.get(currency, ZERO) + amount


def compute_source_summary(source: IncomeSource,
                           incomes: Iterable[Income],
                           expenses: Iterable[Expense],
                           categories: Iterable[Category],
                           user_currency: str = DEFAULT_CURRENCY,
                           income_sources: Optional[Iterable[IncomeSource]] = None,
                           diagnostics: Optional[Diagnostics] = None,
                           lookup: Optional[SourceLookup] = None) -> SourceSummary:
    """Received, allocated, spent, remaining and debt of one income source."""
    incomes = list(incomes)
    expenses = list(expenses)
    if lookup is None:
        known_sources = list(income_sources) if income_sources is not None else [source]
        if source.id not in {s.id for s in known_sources}:
            known_sources.append(source)
        lookup = SourceLookup(incomes, known_sources, user_currency, diagnostics)

    total_income = source_income_total(incomes, source.id, user_currency, diagnostics)

    if not total_income:
        expected = safe_number(source.amount)
        if expected > 0:
            total_income[user_currency] = expected

    allocated: Dict[str, Decimal] = {}
    total_spent: Dict[str, Decimal] = {}

    for category in categories:
        allocations = resolve_allocations(category, user_currency)
        own = [a for a in allocations if a.income_source_id == source.id]
        if not own:
            continue

        own_by_currency: Dict[str, Decimal] = {}
        for alloc in own:
            _add(own_by_currency, alloc.currency, allocation_amount(alloc, lookup))
        for currency, amount in own_by_currency.items():
            _add(allocated, currency, amount)

        category_budget: Dict[str, Decimal] = {}
        for alloc in allocations:
            _add(category_budget, alloc.currency, allocation_amount(alloc, lookup))

        category_expenses = [exp for exp in expenses if exp.category_id == category.id]
        for currency, spent in sum_by_currency(category_expenses, user_currency, 'expense', diagnostics).items():
            budget_total = category_budget.get(currency, ZERO)
            share = own_by_currency.get(currency, ZERO)
            if budget_total > 0 and share > 0:
                _add(total_spent, currency, spent * share / budget_total)

    currencies = list(total_income)
    for currency in list(allocated) + list(total_spent):
        if currency not in currencies:
            currencies.append(currency)

    summaries: Dict[str, CurrencySourceSummary] = {}
    for currency in currencies:
        income = total_income.get(currency, ZERO)
        source_allocated = allocated.get(currency, ZERO)
        summaries[currency] = CurrencySourceSummary(
            total_income=income,
            allocated=source_allocated,
            total_spent=total_spent.get(currency, ZERO),
            remaining=max(ZERO, income - source_allocated),
            debt=max(ZERO, source_allocated - income),
        )

    if user_currency in summaries:
        primary_currency = user_currency
    elif summaries:
        primary_currency = next(iter(summaries))
    else:
        primary_currency = user_currency
    primary = summaries.get(primary_currency, CurrencySourceSummary())

    logger.debug(f"Source {source.id}: currencies={currencies} primary={primary_currency}")

    return SourceSummary(
        source_id=source.id,
        currency=primary_currency,
        total_income=primary.total_income,
        allocated=primary.allocated,
        total_spent=primary.total_spent,
        remaining=primary.remaining,
        debt=primary.debt,
        summaries_by_currency=summaries if len(summaries) > 1 else None,
    )


def compute_source_summaries(income_sources: Iterable[IncomeSource],
                             incomes: Iterable[Income],
                             expenses: Iterable[Expense],
                             categories: Iterable[Category],
                             user_currency: str = DEFAULT_CURRENCY,
                             diagnostics: Optional[Diagnostics] = None) -> List[SourceSummary]:
    """Summaries for every source, sharing one source lookup."""
    income_sources = list(income_sources)
    incomes = list(incomes)
    expenses = list(expenses)
    categories = list(categories)
    lookup = SourceLookup(incomes, income_sources, user_currency, diagnostics)
    return [
        compute_source_summary(
            source, incomes, expenses, categories,
            user_currency=user_currency,
            diagnostics=diagnostics,
            lookup=lookup,
        )
        for source in income_sources
    ]
