"""Budget aggregation engine."""
from .aggregation import calculate_balances_by_currency, compute_category_budget, compute_category_budgets
from .rollover import compute_rollovers
from .rounding import distribute_with_rounding, normalize_percentages, validate_percentage_sum
from .sources import compute_source_summaries, compute_source_summary
from .validation import suggest_budget_allocation, validate_budget_consistency, validate_new_allocation

__all__ = [
    'calculate_balances_by_currency',
    'compute_category_budget',
    'compute_category_budgets',
    'compute_rollovers',
    'compute_source_summaries',
    'compute_source_summary',
    'distribute_with_rounding',
    'normalize_percentages',
    'suggest_budget_allocation',
    'validate_budget_consistency',
    'validate_new_allocation',
    'validate_percentage_sum',
]
