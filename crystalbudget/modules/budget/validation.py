"""Budget consistency checks run before allocation edits are saved.

Purely advisory: problems come back as messages, the caller decides whether
to block the save.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, Mapping, Optional

from crystalbudget.core.config import EngineSettings
from crystalbudget.core.events import Diagnostics
from crystalbudget.core.money import DEFAULT_CURRENCY, format_rounded
from crystalbudget.core.numeric import ZERO, HUNDRED, safe_number, signed_number, validate_amount
from .allocations import SourceLookup, allocation_amount, guarded_amount, resolve_allocations
from .models import Category, Income, IncomeSource, ValidationDetails, ValidationResult
from .rounding import Share, distribute_with_rounding

logger = logging.getLogger(__name__)


@dataclass
class NewAllocationCheck:
    can_allocate: bool
    reason: Optional[str] = None


def validate_budget_consistency(categories: Iterable[Category],
                                income_sources: Iterable[IncomeSource],
                                incomes: Iterable[Income],
                                user_currency: str = DEFAULT_CURRENCY,
                                settings: Optional[EngineSettings] = None,
                                diagnostics: Optional[Diagnostics] = None) -> ValidationResult:
    """Check that allocations in the user's currency fit the available income."""
    settings = settings or EngineSettings()
    incomes = list(incomes)
    income_sources = list(income_sources)

    total_income = sum(
        (guarded_amount('income', inc, diagnostics) for inc in incomes if (inc.currency or user_currency) == user_currency),
        ZERO,
    )
    expected_income = sum((safe_number(source.amount) for source in income_sources), ZERO)
    available_income = total_income if total_income > 0 else expected_income

    # Invalid incomes were already recorded above
    lookup = SourceLookup(incomes, income_sources, user_currency)
    errors = []
    warnings = []
    over_allocated_categories = []
    total_allocated = ZERO
    share_percent = settings.category_share_warning * HUNDRED

    for category in categories:
        category_allocated = sum(
            (allocation_amount(alloc, lookup, diagnostics)
             for alloc in resolve_allocations(category, user_currency)
             if alloc.currency == user_currency),
            ZERO,
        )
        total_allocated += category_allocated

        if category_allocated > available_income * settings.category_share_warning:
            warnings.append(
                f'Категория "{category.name}" выделяет более {share_percent:.0f}% дохода '
                f'({format_rounded(category_allocated, user_currency)} из '
                f'{format_rounded(available_income, user_currency)})'
            )
            over_allocated_categories.append(category.name)

    difference = total_allocated - available_income
    overallocation_percent = difference / available_income * HUNDRED if available_income > 0 else ZERO

    if difference > 0:
        errors.append(
            f"Перерасход бюджета: выделено {format_rounded(total_allocated, user_currency)}, "
            f"доходов {format_rounded(available_income, user_currency)}, "
            f"превышение {format_rounded(difference, user_currency)} ({overallocation_percent:.1f}%)"
        )

    if -available_income * settings.saturation_buffer < difference <= 0:
        warnings.append(
            f"Бюджет почти полностью распределен. "
            f"Остаток: {format_rounded(abs(difference), user_currency)} ({abs(overallocation_percent):.1f}%)"
        )

    logger.debug(
        f"Budget validation: total_income={total_income} expected_income={expected_income} "
        f"available={available_income} allocated={total_allocated} difference={difference} "
        f"valid={not errors}"
    )

    return ValidationResult(
        is_valid=not errors,
        errors=errors,
        warnings=warnings,
        details=ValidationDetails(
            total_allocated=total_allocated,
            total_income=available_income,
            difference=difference,
            over_allocated_categories=over_allocated_categories,
        ),
    )


def validate_new_allocation(new_allocation_amount, current_total_allocated, total_income,
                            currency: str = DEFAULT_CURRENCY) -> NewAllocationCheck:
    """Check whether one more allocation still fits the income."""
    if not validate_amount(new_allocation_amount):
        return NewAllocationCheck(can_allocate=False, reason='Некорректная сумма')

    current_total_allocated = signed_number(current_total_allocated)
    total_income = signed_number(total_income)
    new_total = current_total_allocated + safe_number(new_allocation_amount)

    if new_total > total_income:
        excess = new_total - total_income
        return NewAllocationCheck(
            can_allocate=False,
            reason=(
                f"Превышение бюджета на {format_rounded(excess, currency)}. "
                f"Доступно: {format_rounded(total_income - current_total_allocated, currency)}"
            )
        )

    return NewAllocationCheck(can_allocate=True)


def suggest_budget_allocation(categories: Iterable[Category], total_income,
                              historical_spending: Optional[Mapping[str, object]] = None) -> Dict[str, Decimal]:
    """Suggest per-category amounts that add up to the income.

    Weighted by historical spending when there is any, evenly otherwise.
    """
    categories = list(categories)
    if not categories:
        return {}

    history = {key: safe_number(value) for key, value in (historical_spending or {}).items()}
    total_historical = sum(history.values(), ZERO)

    if total_historical == 0:
        weight = HUNDRED / len(categories)
        shares = [Share(cat.id, weight, cat.name) for cat in categories]
    else:
        shares = [
            Share(cat.id, history.get(cat.id, ZERO) / total_historical * HUNDRED, cat.name)
            for cat in categories
        ]

    return {share.id: share.amount for share in distribute_with_rounding(shares, total_income)}
