"""Allocation resolution shared by every aggregator.

Categories come in two shapes: the ``allocations`` list and the deprecated
single-source fields. ``resolve_allocations`` folds both into canonical
``Allocation`` objects with an explicit currency, so the aggregators never look
at the legacy fields themselves.
"""
import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from crystalbudget.core.events import Diagnostics, InvalidAmount, record
from crystalbudget.core.numeric import ZERO, HUNDRED, safe_number, validate_amount, validate_percentage
from .models import (
    ALLOCATION_AMOUNT, ALLOCATION_PERCENT, Allocation, Category, IncomeSource,
)

logger = logging.getLogger(__name__)


def guarded_amount(kind: str, transaction, diagnostics: Optional[Diagnostics] = None) -> Decimal:
    """Transaction amount through NumericGuard, recording rejected values."""
    if not validate_amount(transaction.amount):
        logger.debug(f"Ignoring invalid {kind} amount {transaction.amount!r} (id={transaction.id})")
        record(diagnostics, InvalidAmount(kind, transaction.id, transaction.amount))
        return ZERO
    return safe_number(transaction.amount)


def sum_by_currency(transactions: Iterable, user_currency: str, kind: str,
                    diagnostics: Optional[Diagnostics] = None) -> Dict[str, Decimal]:
    """Sum transaction amounts per currency, defaulting to user currency."""
    totals: Dict[str, Decimal] = {}
    for transaction in transactions:
        currency = transaction.currency or user_currency
        totals[currency] = totals.get(currency, ZERO) + guarded_amount(kind, transaction, diagnostics)
    return totals


def resolve_allocations(category: Category, user_currency: str) -> List[Allocation]:
    """Canonical allocation list for a category, legacy fields included."""
    if category.allocations:
        return [
            Allocation(
                income_source_id=alloc.income_source_id,
                allocation_type=alloc.allocation_type,
                allocation_value=safe_number(alloc.allocation_value),
                currency=alloc.currency or user_currency,
                id=alloc.id,
            )
            for alloc in category.allocations
        ]

    legacy_amount = safe_number(category.allocation_amount)
    if legacy_amount > 0:
        return [Allocation(category.linked_source_id, ALLOCATION_AMOUNT, legacy_amount, user_currency)]

    legacy_percent = safe_number(category.allocation_percent)
    if category.linked_source_id and legacy_percent > 0:
        return [Allocation(category.linked_source_id, ALLOCATION_PERCENT, legacy_percent, user_currency)]

    return []


def source_income_total(incomes: Iterable, source_id, user_currency: str,
                        diagnostics: Optional[Diagnostics] = None) -> Dict[str, Decimal]:
    """Income received from one source, per currency."""
    return sum_by_currency(
        (income for income in incomes if income.source_id == source_id),
        user_currency, 'income', diagnostics,
    )


def group_by_currency(allocations: Iterable[Allocation]) -> Dict[str, List[Allocation]]:
    grouped: Dict[str, List[Allocation]] = {}
    for alloc in allocations:
        grouped.setdefault(alloc.currency, []).append(alloc)
    return grouped


class SourceLookup:
    """Income sources and received income, indexed once per computation."""

    def __init__(self, incomes: Iterable, income_sources: Iterable[IncomeSource],
                 user_currency: str, diagnostics: Optional[Diagnostics] = None):
        self.user_currency = user_currency
        self.sources: Dict[str, IncomeSource] = {s.id: s for s in income_sources or []}
        self._received: Dict[tuple, Decimal] = {}
        for income in incomes or []:
            key = (income.source_id, income.currency or user_currency)
            self._received[key] = self._received.get(key, ZERO) + guarded_amount('income', income, diagnostics)

    def has_source(self, source_id) -> bool:
        return source_id in self.sources

    def is_orphaned(self, allocation: Allocation) -> bool:
        """Allocation names a source that is not among the known ones."""
        return allocation.income_source_id is not None and not self.has_source(allocation.income_source_id)

    def expected_amount(self, source_id) -> Decimal:
        source = self.sources.get(source_id)
        return safe_number(source.amount) if source else ZERO

    def received(self, source_id, currency: str) -> Decimal:
        return self._received.get((source_id, currency), ZERO)

    def percent_base(self, source_id, currency: str) -> Decimal:
        """Income received from source in currency, else its expected amount."""
        actual = self.received(source_id, currency)
        return actual if actual > 0 else self.expected_amount(source_id)


def allocation_amount(allocation: Allocation, lookup: SourceLookup,
                      diagnostics: Optional[Diagnostics] = None) -> Decimal:
    """Amount an allocation contributes in its own currency.

    A percent above 100 is treated like any other invalid value: it
    contributes 0 and is recorded.
    """
    value = safe_number(allocation.allocation_value)
    if allocation.allocation_type == ALLOCATION_AMOUNT:
        return value
    if allocation.allocation_type == ALLOCATION_PERCENT:
        if not validate_percentage(value):
            logger.warning(
                f"Percent allocation {value} above 100 ignored "
                f"(source={allocation.income_source_id}, id={allocation.id})"
            )
            record(diagnostics, InvalidAmount('allocation', allocation.id, allocation.allocation_value))
            return ZERO
        base = lookup.percent_base(allocation.income_source_id, allocation.currency)
        return safe_number(base * value / HUNDRED)
    logger.debug(f"Unknown allocation type {allocation.allocation_type!r}, counted as 0")
    return ZERO


def allocated_by_currency(allocations: Iterable[Allocation], lookup: SourceLookup) -> Dict[str, Decimal]:
    """Base allocation per currency for a list of canonical allocations."""
    totals: Dict[str, Decimal] = {}
    for alloc in allocations:
        totals[alloc.currency] = totals.get(alloc.currency, ZERO) + allocation_amount(alloc, lookup)
    return totals
