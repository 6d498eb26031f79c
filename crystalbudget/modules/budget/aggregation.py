"""Category budget aggregation."""
import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from crystalbudget.core.events import Diagnostics, OrphanedReference, record
from crystalbudget.core.money import DEFAULT_CURRENCY
from crystalbudget.core.numeric import ZERO, safe_number, signed_number, validate_amount
from .allocations import (
    SourceLookup, allocation_amount, group_by_currency, resolve_allocations, sum_by_currency,
)
from .models import Category, CategoryBudget, CurrencyBalance, CurrencyBudget, Expense, Income, IncomeSource

logger = logging.getLogger(__name__)

CurrencyMap = Dict[str, Dict[str, Decimal]]


def _map_value(amounts: Optional[CurrencyMap], category_id, currency: str) -> Decimal:
    return safe_number(((amounts or {}).get(category_id) or {}).get(currency, ZERO))


def compute_category_budget(category: Category,
                            incomes: Iterable[Income],
                            expenses: Iterable[Expense],
                            income_sources: Iterable[IncomeSource],
                            debt_map: Optional[CurrencyMap] = None,
                            carry_over_map: Optional[CurrencyMap] = None,
                            user_currency: str = DEFAULT_CURRENCY,
                            diagnostics: Optional[Diagnostics] = None,
                            lookup: Optional[SourceLookup] = None) -> CategoryBudget:
    """Compute the per-currency budget of one category for a period.

    Args:
        category: category with its allocation rules.
        incomes: incomes received during the period (all sources).
        expenses: expenses of the period; only this category's are used.
        income_sources: known income sources, for expected-amount fallback.
        debt_map: prior-period shortfall, ``category_id -> currency -> amount``.
        carry_over_map: prior-period surplus, same shape as ``debt_map``.
        user_currency: currency for transactions and allocations without one.
        lookup: prebuilt ``SourceLookup`` when aggregating many categories.

    Returns:
        ``CategoryBudget`` where, per currency, ``allocated`` already includes
        carry-over and ``remaining = allocated - spent - debt``.
    """
    if lookup is None:
        lookup = SourceLookup(incomes, income_sources, user_currency, diagnostics)

    category_expenses = [exp for exp in expenses if exp.category_id == category.id]
    spent_by_currency = sum_by_currency(category_expenses, user_currency, 'expense', diagnostics)

    allocations = resolve_allocations(category, user_currency)
    allocations_by_currency = group_by_currency(allocations)
    if not allocations_by_currency:
        allocations_by_currency[user_currency] = []

    budgets: Dict[str, CurrencyBudget] = {}
    for currency, currency_allocations in allocations_by_currency.items():
        base_allocation = ZERO
        orphaned = False
        for alloc in currency_allocations:
            if lookup.is_orphaned(alloc):
                orphaned = True
                record(diagnostics, OrphanedReference(category.id, alloc.income_source_id, currency))
            base_allocation += allocation_amount(alloc, lookup, diagnostics)

        carry_over = _map_value(carry_over_map, category.id, currency)
        debt = _map_value(debt_map, category.id, currency)
        allocated = base_allocation + carry_over
        spent = spent_by_currency.get(currency, ZERO)

        budgets[currency] = CurrencyBudget(
            base_allocation=base_allocation,
            allocated=allocated,
            spent=spent,
            remaining=allocated - spent - debt,
            debt=debt,
            carry_over=carry_over,
            orphaned=orphaned,
        )

    # Spend in a currency nobody funds stays visible as negative remaining
    for currency, spent in spent_by_currency.items():
        if currency not in budgets:
            budgets[currency] = CurrencyBudget(spent=spent, remaining=-spent)

    total_allocated = sum((b.allocated for b in budgets.values()), ZERO)
    total_spent = sum((b.spent for b in budgets.values()), ZERO)
    total_debt = sum((b.debt for b in budgets.values()), ZERO)
    total_carry_over = sum((b.carry_over for b in budgets.values()), ZERO)

    return CategoryBudget(
        category_id=category.id,
        allocated=total_allocated,
        spent=total_spent,
        remaining=total_allocated - total_spent - total_debt,
        debt=total_debt,
        carry_over=total_carry_over,
        budgets_by_currency=budgets or None,
    )


def compute_category_budgets(categories: Iterable[Category],
                             incomes: Iterable[Income],
                             expenses: Iterable[Expense],
                             income_sources: Iterable[IncomeSource],
                             debt_map: Optional[CurrencyMap] = None,
                             carry_over_map: Optional[CurrencyMap] = None,
                             user_currency: str = DEFAULT_CURRENCY,
                             diagnostics: Optional[Diagnostics] = None) -> List[CategoryBudget]:
    """Compute budgets for several categories sharing one source lookup."""
    incomes = list(incomes)
    expenses = list(expenses)
    lookup = SourceLookup(incomes, income_sources, user_currency, diagnostics)
    return [
        compute_category_budget(
            category, incomes, expenses, income_sources,
            debt_map=debt_map,
            carry_over_map=carry_over_map,
            user_currency=user_currency,
            diagnostics=diagnostics,
            lookup=lookup,
        )
        for category in categories
    ]


def calculate_balances_by_currency(incomes: Iterable[Income],
                                   expenses: Iterable[Expense],
                                   user_currency: str = DEFAULT_CURRENCY,
                                   carry_over_balance=ZERO) -> Dict[str, CurrencyBalance]:
    """Income, expense and balance per currency.

    ``carry_over_balance`` is added to the user's currency only.
    """
    income_by_currency: Dict[str, Decimal] = {}
    expense_by_currency: Dict[str, Decimal] = {}

    for income in incomes:
        if not validate_amount(income.amount):
            logger.warning(f"Balance: invalid income amount, id={income.id}")
            continue
        currency = income.currency or user_currency
        income_by_currency[currency] = income_by_currency.get(currency, ZERO) + safe_number(income.amount)

    for expense in expenses:
        if not validate_amount(expense.amount):
            logger.warning(f"Balance: invalid expense amount, id={expense.id}")
            continue
        currency = expense.currency or user_currency
        expense_by_currency[currency] = expense_by_currency.get(currency, ZERO) + safe_number(expense.amount)

    carry_over_balance = signed_number(carry_over_balance)

    currencies = list(income_by_currency) + [c for c in expense_by_currency if c not in income_by_currency]
    if carry_over_balance != 0 and user_currency not in currencies:
        currencies.append(user_currency)

    result: Dict[str, CurrencyBalance] = {}
    for currency in currencies:
        income = income_by_currency.get(currency, ZERO)
        expense = expense_by_currency.get(currency, ZERO)
        balance = income - expense
        total_balance = balance + carry_over_balance if currency == user_currency else balance
        result[currency] = CurrencyBalance(income=income, expense=expense, balance=balance, total_balance=total_balance)
    return result
