"""
Tests for income source summaries.
"""

from decimal import Decimal

from crystalbudget.modules.budget import compute_source_summaries, compute_source_summary
from crystalbudget.modules.budget.allocations import source_income_total
from crystalbudget.modules.budget.models import Allocation, Category, Expense, Income, IncomeSource

SALARY = IncomeSource('salary', 'Зарплата', Decimal('100000'))
FREELANCE = IncomeSource('freelance', 'Фриланс', Decimal('20000'))

CATEGORIES = [
    Category('food', 'Продукты', allocations=[Allocation('salary', 'amount', Decimal('30000'))]),
    Category('rent', 'Аренда', allocations=[
        Allocation('salary', 'percent', Decimal('40')),
        Allocation('freelance', 'amount', Decimal('5000')),
    ]),
]
INCOMES = [Income('i1', 'salary', Decimal('100000'))]
EXPENSES = [
    Expense('e1', 'food', Decimal('12000')),
    Expense('e2', 'rent', Decimal('45000')),
]


class TestSourceSummary:
    """Spend is attributed to sources in proportion to their share."""

    def test_proportional_attribution(self):
        summary = compute_source_summary(SALARY, INCOMES, EXPENSES, CATEGORIES, income_sources=[SALARY, FREELANCE])

        assert summary.currency == 'RUB'
        assert summary.total_income == 100000
        assert summary.allocated == 70000
        assert summary.total_spent == 52000
        assert summary.remaining == 30000
        assert summary.debt == 0
        assert summary.summaries_by_currency is None

    def test_expected_amount_used_without_income(self):
        summary = compute_source_summary(FREELANCE, INCOMES, EXPENSES, CATEGORIES, income_sources=[SALARY, FREELANCE])

        assert summary.total_income == 20000
        assert summary.allocated == 5000
        assert summary.total_spent == 5000
        assert summary.remaining == 15000

    def test_over_allocated_source_has_debt(self):
        source = IncomeSource('gift', 'Подарок')
        categories = [Category('fun', allocations=[Allocation('gift', 'amount', Decimal('500'))])]
        summary = compute_source_summary(source, [], [], categories)

        assert summary.total_income == 0
        assert summary.allocated == 500
        assert summary.remaining == 0
        assert summary.debt == 500

    def test_multi_currency_buckets(self):
        incomes = [
            Income('i1', 'salary', Decimal('1000'), 'RUB'),
            Income('i2', 'salary', Decimal('100'), 'USD'),
        ]
        categories = [Category('trip', allocations=[Allocation('salary', 'amount', Decimal('150'), 'USD')])]
        expenses = [Expense('e1', 'trip', Decimal('60'), 'USD')]
        summary = compute_source_summary(SALARY, incomes, expenses, categories)

        assert summary.currency == 'RUB'
        assert summary.total_income == 1000
        usd = summary.summaries_by_currency['USD']
        assert usd.total_income == 100
        assert usd.allocated == 150
        assert usd.total_spent == 60
        assert usd.debt == 50
        assert usd.remaining == 0

    def test_first_currency_when_no_user_currency_bucket(self):
        incomes = [Income('i1', 'salary', Decimal('300'), 'EUR')]
        summary = compute_source_summary(SALARY, incomes, [], [], user_currency='RUB')
        assert summary.currency == 'EUR'
        assert summary.total_income == 300

    def test_all_sources(self):
        summaries = compute_source_summaries([SALARY, FREELANCE], INCOMES, EXPENSES, CATEGORIES)
        assert [s.source_id for s in summaries] == ['salary', 'freelance']
        assert summaries[0].total_spent + summaries[1].total_spent == 57000


class TestSourceIncomeTotal:

    def test_totals_per_currency_for_one_source(self):
        incomes = INCOMES + [
            Income('i2', 'salary', Decimal('300'), 'USD'),
            Income('i3', 'freelance', Decimal('7000')),
            Income('i4', 'salary', 'oops'),
        ]
        totals = source_income_total(incomes, 'salary', 'RUB')
        assert totals == {'RUB': Decimal('100000'), 'USD': Decimal('300')}

    def test_unknown_source_has_no_income(self):
        assert source_income_total(INCOMES, 'gone', 'RUB') == {}
