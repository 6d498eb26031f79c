"""Budget service layer.

Wires the aggregation functions together for one calendar month. Data comes
from a ``BudgetRepository``; the service never writes anything back.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Protocol, Sequence

from crystalbudget.core.config import EngineSettings
from crystalbudget.core.events import Diagnostics
from crystalbudget.core.numeric import ZERO
from crystalbudget.core.time import YearMonth
from .aggregation import calculate_balances_by_currency, compute_category_budgets
from .models import (
    Category, CategoryBudget, CurrencyBalance, Expense, Income, IncomeSource,
    RolloverResult, SourceSummary, ValidationResult,
)
from .rollover import compute_rollovers
from .sources import compute_source_summaries
from .validation import validate_budget_consistency

logger = logging.getLogger(__name__)


class BudgetRepository(Protocol):
    """Data-access collaborator scoped to one user or family."""

    def get_user_currency(self) -> str:  # pragma: no cover - interface
        ...

    def get_income_sources(self) -> Sequence[IncomeSource]:  # pragma: no cover - interface
        ...

    def get_categories(self) -> Sequence[Category]:  # pragma: no cover - interface
        ...

    def get_incomes(self, start: date, end: date) -> Sequence[Income]:  # pragma: no cover - interface
        """Incomes dated within [start, end]."""
        ...

    def get_expenses(self, start: date, end: date) -> Sequence[Expense]:  # pragma: no cover - interface
        """Expenses dated within [start, end]."""
        ...

    def get_incomes_before(self, day: date) -> Sequence[Income]:  # pragma: no cover - interface
        """Incomes dated strictly before day."""
        ...

    def get_expenses_before(self, day: date) -> Sequence[Expense]:  # pragma: no cover - interface
        """Expenses dated strictly before day."""
        ...


class InMemoryBudgetRepository:
    """Repository over already-loaded lists, e.g. a parsed JSON payload."""

    def __init__(self, income_sources=None, categories=None, incomes=None, expenses=None,
                 user_currency: str = 'RUB'):
        self.income_sources = list(income_sources or [])
        self.categories = list(categories or [])
        self.incomes = list(incomes or [])
        self.expenses = list(expenses or [])
        self.user_currency = user_currency

    def get_user_currency(self) -> str:
        return self.user_currency

    def get_income_sources(self) -> List[IncomeSource]:
        return self.income_sources

    def get_categories(self) -> List[Category]:
        return self.categories

    @staticmethod
    def _between(transactions, start: date, end: date) -> list:
        # Undated rows cannot be placed in a period and are left out
        return [t for t in transactions if t.date is not None and start <= t.date <= end]

    def get_incomes(self, start: date, end: date) -> List[Income]:
        return self._between(self.incomes, start, end)

    def get_expenses(self, start: date, end: date) -> List[Expense]:
        return self._between(self.expenses, start, end)

    def get_incomes_before(self, day: date) -> List[Income]:
        return [t for t in self.incomes if t.date is not None and t.date < day]

    def get_expenses_before(self, day: date) -> List[Expense]:
        return [t for t in self.expenses if t.date is not None and t.date < day]


@dataclass
class MonthSnapshot:
    year_month: YearMonth
    user_currency: str
    categories: List[CategoryBudget] = field(default_factory=list)
    sources: List[SourceSummary] = field(default_factory=list)
    rollovers: RolloverResult = field(default_factory=RolloverResult)
    balances: Dict[str, CurrencyBalance] = field(default_factory=dict)
    carry_over_balance: Decimal = ZERO
    validation: Optional[ValidationResult] = None
    diagnostics: Optional[Diagnostics] = None


class BudgetService:
    """Budget business logic service."""

    def __init__(self, repository: BudgetRepository, settings: Optional[EngineSettings] = None):
        self.repository = repository
        self.settings = settings or EngineSettings()

    def calculate_rollovers(self, year_month: YearMonth,
                            diagnostics: Optional[Diagnostics] = None) -> RolloverResult:
        """Debt and carry-over entering year_month from the month before."""
        prior = year_month.prev_month()
        start, end = prior.date_range()
        return compute_rollovers(
            self.repository.get_categories(),
            self.repository.get_incomes(start, end),
            self.repository.get_expenses(start, end),
            self.repository.get_income_sources(),
            user_currency=self._user_currency(),
            diagnostics=diagnostics,
        )

    def calculate_carry_over_balance(self, year_month: YearMonth) -> Decimal:
        """Everything earned minus everything spent before year_month, in the user's currency."""
        start, _ = year_month.date_range()
        user_currency = self._user_currency()
        balances = calculate_balances_by_currency(
            self.repository.get_incomes_before(start),
            self.repository.get_expenses_before(start),
            user_currency,
        )
        prior = balances.get(user_currency)
        return prior.balance if prior else ZERO

    def calculate_month_snapshot(self, year_month: YearMonth,
                                 diagnostics: Optional[Diagnostics] = None) -> MonthSnapshot:
        """Calculate complete budget snapshot for month."""
        user_currency = self._user_currency()
        categories = self.repository.get_categories()
        income_sources = self.repository.get_income_sources()
        start, end = year_month.date_range()
        incomes = self.repository.get_incomes(start, end)
        expenses = self.repository.get_expenses(start, end)

        rollovers = self.calculate_rollovers(year_month, diagnostics)

        category_budgets = compute_category_budgets(
            categories, incomes, expenses, income_sources,
            debt_map=rollovers.debt_map,
            carry_over_map=rollovers.carry_over_map,
            user_currency=user_currency,
            diagnostics=diagnostics,
        )
        source_summaries = compute_source_summaries(
            income_sources, incomes, expenses, categories,
            user_currency=user_currency,
            diagnostics=diagnostics,
        )
        validation = validate_budget_consistency(
            categories, income_sources, incomes,
            user_currency=user_currency,
            settings=self.settings,
            diagnostics=diagnostics,
        )
        carry_over_balance = self.calculate_carry_over_balance(year_month)

        logger.info(
            f"Calculated snapshot for {year_month}: {len(category_budgets)} categories, "
            f"{len(source_summaries)} sources, valid={validation.is_valid}"
        )

        return MonthSnapshot(
            year_month=year_month,
            user_currency=user_currency,
            categories=category_budgets,
            sources=source_summaries,
            rollovers=rollovers,
            balances=calculate_balances_by_currency(incomes, expenses, user_currency, carry_over_balance),
            carry_over_balance=carry_over_balance,
            validation=validation,
            diagnostics=diagnostics,
        )

    def _user_currency(self) -> str:
        return self.repository.get_user_currency() or self.settings.default_currency
