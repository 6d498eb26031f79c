"""
Shared pytest fixtures for CrystalBudget engine tests.
"""

import pytest

from crystalbudget import create_app


@pytest.fixture
def app():
    """Create application for testing."""
    application = create_app('testing')
    yield application


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def cli_runner(app):
    """Click runner bound to the application."""
    return app.test_cli_runner()


@pytest.fixture
def salary_payload():
    """Two sources, two categories and one month of transactions."""
    return {
        'user_currency': 'RUB',
        'year_month': '2025-03',
        'income_sources': [
            {'id': 'salary', 'name': 'Зарплата', 'amount': 100000},
            {'id': 'freelance', 'name': 'Фриланс', 'amount': 20000},
        ],
        'categories': [
            {
                'id': 'food',
                'name': 'Продукты',
                'allocations': [
                    {'income_source_id': 'salary', 'allocation_type': 'amount', 'allocation_value': 30000},
                ],
            },
            {
                'id': 'rent',
                'name': 'Аренда',
                'allocations': [
                    {'income_source_id': 'salary', 'allocation_type': 'percent', 'allocation_value': 40},
                    {'income_source_id': 'freelance', 'allocation_type': 'amount', 'allocation_value': 5000},
                ],
            },
        ],
        'incomes': [
            {'id': 'i1', 'source_id': 'salary', 'amount': 100000, 'date': '2025-03-05'},
            {'id': 'i0', 'source_id': 'salary', 'amount': 100000, 'date': '2025-02-05'},
        ],
        'expenses': [
            {'id': 'e1', 'category_id': 'food', 'amount': 12000, 'date': '2025-03-10'},
            {'id': 'e2', 'category_id': 'rent', 'amount': 45000, 'date': '2025-03-01'},
            {'id': 'e0', 'category_id': 'food', 'amount': 35000, 'date': '2025-02-15'},
        ],
    }
