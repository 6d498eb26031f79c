"""
Tests for category budget aggregation.
"""

from decimal import Decimal

from crystalbudget.core.events import Diagnostics
from crystalbudget.modules.budget import (
    calculate_balances_by_currency, compute_category_budget, compute_category_budgets,
)
from crystalbudget.modules.budget.allocations import resolve_allocations
from crystalbudget.modules.budget.models import Allocation, Category, Expense, Income, IncomeSource
from crystalbudget.modules.budget.schemas import CategoryBudgetSchema

SALARY = IncomeSource('salary', 'Зарплата', Decimal('4000'))


def amount_category(value, currency=None, source_id='salary', category_id='food'):
    return Category(category_id, 'Продукты', allocations=[
        Allocation(source_id, 'amount', Decimal(value), currency),
    ])


def expense(amount, currency=None, category_id='food', expense_id='e1'):
    return Expense(expense_id, category_id, amount, currency)


class TestCategoryBudget:
    """Per-currency budget figures."""

    def test_carry_over_is_part_of_allocated(self):
        budget = compute_category_budget(
            amount_category(1000), [], [expense(Decimal('1100'))], [SALARY],
            carry_over_map={'food': {'RUB': Decimal('200')}},
        )
        rub = budget.budgets_by_currency['RUB']

        assert rub.base_allocation == 1000
        assert rub.carry_over == 200
        assert rub.allocated == 1200
        assert rub.remaining == 100
        assert rub.is_over_budget is False

    def test_percent_allocation_overspent(self):
        category = Category('food', allocations=[Allocation('salary', 'percent', Decimal('50'))])
        incomes = [Income('i1', 'salary', Decimal('4000'))]
        budget = compute_category_budget(category, incomes, [expense(Decimal('2500'))], [SALARY])
        rub = budget.budgets_by_currency['RUB']

        assert rub.allocated == 2000
        assert rub.spent == 2500
        assert rub.remaining == -500
        assert rub.is_over_budget is True
        assert rub.overage == 500
        assert budget.is_over_budget is True

    def test_debt_reduces_remaining(self):
        budget = compute_category_budget(
            amount_category(1000), [], [expense(Decimal('200'))], [SALARY],
            debt_map={'food': {'RUB': Decimal('300')}},
        )
        rub = budget.budgets_by_currency['RUB']

        assert rub.allocated == 1000
        assert rub.debt == 300
        assert rub.remaining == 500
        assert rub.is_over_budget is False

    def test_percent_falls_back_to_expected_income(self):
        category = Category('food', allocations=[Allocation('salary', 'percent', Decimal('25'))])
        budget = compute_category_budget(category, [], [], [SALARY])
        assert budget.budgets_by_currency['RUB'].allocated == 1000

    def test_currencies_are_never_mixed(self):
        category = Category('travel', allocations=[
            Allocation('salary', 'amount', Decimal('1000'), 'RUB'),
            Allocation('salary', 'amount', Decimal('100'), 'USD'),
        ])
        expenses = [
            expense(Decimal('500'), 'RUB', 'travel', 'e1'),
            expense(Decimal('150'), 'USD', 'travel', 'e2'),
        ]
        budget = compute_category_budget(category, [], expenses, [SALARY])

        assert budget.budgets_by_currency['RUB'].remaining == 500
        assert budget.budgets_by_currency['USD'].remaining == -50
        assert budget.budgets_by_currency['USD'].is_over_budget is True
        assert budget.budgets_by_currency['RUB'].is_over_budget is False

    def test_spend_in_unfunded_currency_stays_visible(self):
        budget = compute_category_budget(
            amount_category(1000), [], [expense(Decimal('30'), 'EUR')], [SALARY],
        )
        eur = budget.budgets_by_currency['EUR']

        assert eur.allocated == 0
        assert eur.spent == 30
        assert eur.remaining == -30
        assert budget.budgets_by_currency['RUB'].remaining == 1000

    def test_other_categories_expenses_ignored(self):
        budget = compute_category_budget(
            amount_category(1000), [], [expense(Decimal('400'), category_id='rent')], [SALARY],
        )
        assert budget.spent == 0
        assert set(budget.budgets_by_currency) == {'RUB'}

    def test_category_without_allocations_gets_zero_bucket(self):
        budget = compute_category_budget(Category('misc'), [], [], [SALARY], user_currency='USD')
        assert set(budget.budgets_by_currency) == {'USD'}
        assert budget.budgets_by_currency['USD'].allocated == 0

    def test_invalid_amounts_count_as_zero(self):
        diagnostics = Diagnostics()
        expenses = [expense(float('nan'), expense_id='e1'), expense('abc', expense_id='e2'), expense(-50, expense_id='e3')]
        budget = compute_category_budget(amount_category(1000), [], expenses, [SALARY], diagnostics=diagnostics)

        assert budget.spent == 0
        assert budget.remaining == 1000
        assert len(diagnostics.of_type('amount.invalid')) == 3

    def test_orphaned_source_is_flagged(self):
        diagnostics = Diagnostics()
        category = Category('food', allocations=[Allocation('deleted', 'percent', Decimal('10'))])
        budget = compute_category_budget(category, [], [], [SALARY], diagnostics=diagnostics)

        assert budget.orphaned is True
        assert budget.budgets_by_currency['RUB'].orphaned is True
        assert budget.budgets_by_currency['RUB'].allocated == 0
        event = diagnostics.of_type('reference.orphaned')[0]
        assert event.source_id == 'deleted'
        assert event.category_id == 'food'

    def test_percent_above_hundred_contributes_nothing(self):
        diagnostics = Diagnostics()
        category = Category('food', allocations=[
            Allocation('salary', 'percent', Decimal('150'), id='a1'),
            Allocation('salary', 'amount', Decimal('300'), id='a2'),
        ])
        budget = compute_category_budget(category, [], [], [SALARY], diagnostics=diagnostics)

        assert budget.allocated == 300
        event = diagnostics.of_type('amount.invalid')[0]
        assert event.kind == 'allocation'
        assert event.transaction_id == 'a1'

    def test_huge_allocation_serializes(self):
        budget = compute_category_budget(amount_category('1e30'), [], [expense(Decimal('5'))], [SALARY])
        data = CategoryBudgetSchema.serialize(budget)

        assert data['allocated'] == 1e30
        assert data['budgets_by_currency']['RUB']['is_over_budget'] is False
        assert data['budgets_by_currency']['RUB']['formatted_remaining'].startswith('1 000 000 000')

    def test_known_source_not_flagged(self):
        budget = compute_category_budget(amount_category(500), [], [], [SALARY])
        assert budget.orphaned is False

    def test_several_categories(self):
        categories = [amount_category(1000), amount_category(300, category_id='rent')]
        budgets = compute_category_budgets(categories, [], [expense(Decimal('100'), category_id='rent')], [SALARY])
        assert [b.category_id for b in budgets] == ['food', 'rent']
        assert budgets[1].remaining == 200


class TestLegacyAllocations:
    """Single-source fields are folded into canonical allocations."""

    def test_legacy_amount(self):
        category = Category('food', linked_source_id='salary', allocation_amount=Decimal('700'))
        allocations = resolve_allocations(category, 'EUR')
        assert allocations == [Allocation('salary', 'amount', Decimal('700'), 'EUR')]

    def test_legacy_percent(self):
        category = Category('food', linked_source_id='salary', allocation_percent=Decimal('10'))
        budget = compute_category_budget(category, [Income('i1', 'salary', Decimal('5000'))], [], [SALARY])
        assert budget.budgets_by_currency['RUB'].allocated == 500

    def test_new_schema_wins_over_legacy(self):
        category = Category(
            'food', allocations=[Allocation('salary', 'amount', Decimal('100'))],
            linked_source_id='salary', allocation_amount=Decimal('999'),
        )
        budget = compute_category_budget(category, [], [], [SALARY])
        assert budget.allocated == 100

    def test_percent_without_source_is_ignored(self):
        category = Category('food', allocation_percent=Decimal('10'))
        assert resolve_allocations(category, 'RUB') == []


class TestBalances:

    def test_balances_per_currency(self):
        incomes = [Income('i1', 'salary', Decimal('5000')), Income('i2', 'salary', Decimal('200'), 'USD')]
        expenses = [expense(Decimal('1200')), expense(Decimal('50'), 'USD', expense_id='e2'), expense(Decimal('10'), 'EUR', expense_id='e3')]
        balances = calculate_balances_by_currency(incomes, expenses, 'RUB', carry_over_balance=Decimal('300'))

        assert list(balances) == ['RUB', 'USD', 'EUR']
        assert balances['RUB'].balance == 3800
        assert balances['RUB'].total_balance == 4100
        assert balances['USD'].total_balance == 150
        assert balances['EUR'].balance == -10

    def test_invalid_amounts_skipped(self):
        balances = calculate_balances_by_currency([Income('i1', None, 'oops')], [expense(Decimal('10'))], 'RUB')
        assert balances['RUB'].income == 0
        assert balances['RUB'].balance == -10

    def test_carry_over_alone_creates_user_currency_bucket(self):
        balances = calculate_balances_by_currency([], [expense(Decimal('20'), 'USD')], 'RUB', carry_over_balance=Decimal('500'))

        assert list(balances) == ['USD', 'RUB']
        assert balances['RUB'].balance == 0
        assert balances['RUB'].total_balance == 500
        assert balances['USD'].total_balance == -20
