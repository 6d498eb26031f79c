"""Budget module models.

Inputs come from the data-access layer already scoped to a user/family and a
period; outputs are derived per call and never persisted.
"""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from crystalbudget.core.numeric import ZERO, safe_percentage

ALLOCATION_AMOUNT = 'amount'
ALLOCATION_PERCENT = 'percent'
ALLOCATION_TYPES = (ALLOCATION_AMOUNT, ALLOCATION_PERCENT)


@dataclass
class IncomeSource:
    """Income source; ``amount`` is the expected income used as a fallback."""
    id: str
    name: str = ''
    amount: Optional[Decimal] = None
    frequency: Optional[str] = None
    color: Optional[str] = None


@dataclass
class Income:
    id: str
    source_id: Optional[str]
    amount: Decimal
    currency: Optional[str] = None
    date: Optional[date] = None
    description: Optional[str] = None


@dataclass
class Expense:
    """Expense; ``category_id=None`` marks a manual balance correction."""
    id: str
    category_id: Optional[str]
    amount: Decimal
    currency: Optional[str] = None
    date: Optional[date] = None
    description: Optional[str] = None


@dataclass
class Allocation:
    """Rule funding a category from an income source."""
    income_source_id: Optional[str]
    allocation_type: str
    allocation_value: Decimal
    currency: Optional[str] = None
    id: Optional[str] = None

    @property
    def is_percent(self) -> bool:
        return self.allocation_type == ALLOCATION_PERCENT


@dataclass
class Category:
    id: str
    name: str = ''
    icon: str = ''
    allocations: List[Allocation] = field(default_factory=list)
    # Deprecated single-source schema
    linked_source_id: Optional[str] = None
    allocation_amount: Optional[Decimal] = None
    allocation_percent: Optional[Decimal] = None


@dataclass
class CurrencyBudget:
    """Budget figures of one category in one currency."""
    base_allocation: Decimal = ZERO
    allocated: Decimal = ZERO
    spent: Decimal = ZERO
    remaining: Decimal = ZERO
    debt: Decimal = ZERO
    carry_over: Decimal = ZERO
    orphaned: bool = False

    @property
    def is_over_budget(self) -> bool:
        """Current-period overspend: spent beyond allocated, debt not included."""
        return self.spent > self.allocated

    @property
    def overage(self) -> Decimal:
        return max(ZERO, self.spent - self.allocated)

    @property
    def usage_percentage(self) -> Decimal:
        return safe_percentage(self.spent, self.allocated)


@dataclass
class CategoryBudget:
    """Per-currency budget of a category plus the legacy summed view.

    The summed view adds amounts regardless of currency and exists only for
    consumers that still expect a single number.
    """
    category_id: str
    allocated: Decimal = ZERO
    spent: Decimal = ZERO
    remaining: Decimal = ZERO
    debt: Decimal = ZERO
    carry_over: Decimal = ZERO
    budgets_by_currency: Optional[Dict[str, CurrencyBudget]] = None

    @property
    def orphaned(self) -> bool:
        return any(b.orphaned for b in (self.budgets_by_currency or {}).values())

    @property
    def is_over_budget(self) -> bool:
        return self.spent > self.allocated

    @property
    def overage(self) -> Decimal:
        return max(ZERO, self.spent - self.allocated)


@dataclass
class CurrencySourceSummary:
    total_income: Decimal = ZERO
    allocated: Decimal = ZERO
    total_spent: Decimal = ZERO
    remaining: Decimal = ZERO
    debt: Decimal = ZERO


@dataclass
class SourceSummary:
    source_id: str
    currency: str
    total_income: Decimal = ZERO
    allocated: Decimal = ZERO
    total_spent: Decimal = ZERO
    remaining: Decimal = ZERO
    debt: Decimal = ZERO
    summaries_by_currency: Optional[Dict[str, CurrencySourceSummary]] = None


@dataclass
class RolloverResult:
    """Prior-period outcome: ``category_id -> currency -> amount``."""
    debt_map: Dict[str, Dict[str, Decimal]] = field(default_factory=dict)
    carry_over_map: Dict[str, Dict[str, Decimal]] = field(default_factory=dict)


@dataclass
class ValidationDetails:
    total_allocated: Decimal = ZERO
    total_income: Decimal = ZERO
    difference: Decimal = ZERO
    over_allocated_categories: List[str] = field(default_factory=list)


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    details: ValidationDetails = field(default_factory=ValidationDetails)


@dataclass
class CurrencyBalance:
    income: Decimal = ZERO
    expense: Decimal = ZERO
    balance: Decimal = ZERO
    total_balance: Decimal = ZERO
