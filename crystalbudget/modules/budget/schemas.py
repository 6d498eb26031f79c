"""Budget module schemas: payload validation and result serialization."""
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from crystalbudget.core.money import Money, currency_symbol, get_valid_currency
from crystalbudget.core.numeric import validate_amount, validate_percentage
from crystalbudget.core.time import parse_date, parse_year_month
from .models import (
    ALLOCATION_PERCENT, ALLOCATION_TYPES, Allocation, Category, CategoryBudget, CurrencyBalance, CurrencyBudget,
    CurrencySourceSummary, Expense, Income, IncomeSource, RolloverResult, SourceSummary,
    ValidationResult,
)
from .rounding import DistributedShare, PercentageCheck, PercentageEntry, Share


def _pick(data: dict, *keys, default=None):
    """First present key; payloads use both snake_case and camelCase."""
    for key in keys:
        if key in data:
            return data[key]
    return default


def _amount(value):
    """Decimal for numeric input; anything else is left for NumericGuard to zero."""
    if value is None or value == '':
        return None
    if isinstance(value, (bool, dict, list)):
        return value
    try:
        return Decimal(str(value).replace(',', '.'))
    except (InvalidOperation, ValueError):
        return value


def _currency(value) -> Optional[str]:
    if value is None:
        return None
    code = str(value).strip().upper()
    return code or None


def _identifier(data: dict, *keys, required: bool = True) -> Optional[str]:
    value = _pick(data, *keys)
    if value is None or value == '':
        if required:
            raise ValueError(f'Field {keys[0]} is required')
        return None
    return str(value)


def _require_dict(data, what: str) -> dict:
    if not isinstance(data, dict):
        raise ValueError(f'{what} must be an object')
    return data


def _require_list(data, what: str) -> list:
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValueError(f'{what} must be a list')
    return data


def _percent(value):
    """Percent value; numbers above 100 are rejected, garbage is left for NumericGuard."""
    value = _amount(value)
    if validate_amount(value) and not validate_percentage(value):
        raise ValueError('Percent allocation must be between 0 and 100')
    return value


def _transaction_date(data: dict):
    try:
        return parse_date(data.get('date'))
    except ValueError:
        raise ValueError('Invalid date format (use YYYY-MM-DD)')


class IncomeSourceData:
    """Income source validation schema."""

    @staticmethod
    def validate(data: dict) -> IncomeSource:
        data = _require_dict(data, 'Income source')
        return IncomeSource(
            id=_identifier(data, 'id'),
            name=str(data.get('name') or ''),
            amount=_amount(data.get('amount')),
            frequency=data.get('frequency'),
            color=data.get('color'),
        )


class AllocationData:
    """Allocation rule validation schema."""

    @staticmethod
    def validate(data: dict) -> Allocation:
        data = _require_dict(data, 'Allocation')
        allocation_type = _pick(data, 'allocation_type', 'allocationType')
        if allocation_type not in ALLOCATION_TYPES:
            raise ValueError('Invalid allocation type')
        value = _pick(data, 'allocation_value', 'allocationValue')
        return Allocation(
            income_source_id=_identifier(data, 'income_source_id', 'incomeSourceId', required=False),
            allocation_type=allocation_type,
            allocation_value=_percent(value) if allocation_type == ALLOCATION_PERCENT else _amount(value),
            currency=_currency(data.get('currency')),
            id=_identifier(data, 'id', required=False),
        )


class CategoryData:
    """Category validation schema, legacy single-source fields included."""

    @staticmethod
    def validate(data: dict) -> Category:
        data = _require_dict(data, 'Category')
        allocations = _require_list(data.get('allocations'), 'Category allocations')
        return Category(
            id=_identifier(data, 'id'),
            name=str(data.get('name') or ''),
            icon=str(data.get('icon') or ''),
            allocations=[AllocationData.validate(a) for a in allocations],
            linked_source_id=_identifier(data, 'linked_source_id', 'linkedSourceId', required=False),
            allocation_amount=_amount(_pick(data, 'allocation_amount', 'allocationAmount')),
            allocation_percent=_percent(_pick(data, 'allocation_percent', 'allocationPercent')),
        )


class IncomeData:
    """Income transaction validation schema."""

    @staticmethod
    def validate(data: dict) -> Income:
        data = _require_dict(data, 'Income')
        return Income(
            id=_identifier(data, 'id'),
            source_id=_identifier(data, 'source_id', 'sourceId', required=False),
            amount=_amount(data.get('amount')),
            currency=_currency(data.get('currency')),
            date=_transaction_date(data),
            description=data.get('description'),
        )


class ExpenseData:
    """Expense transaction validation schema."""

    @staticmethod
    def validate(data: dict) -> Expense:
        data = _require_dict(data, 'Expense')
        return Expense(
            id=_identifier(data, 'id'),
            category_id=_identifier(data, 'category_id', 'categoryId', required=False),
            amount=_amount(data.get('amount')),
            currency=_currency(data.get('currency')),
            date=_transaction_date(data),
            description=data.get('description'),
        )


class CurrencyMapData:
    """``category_id -> currency -> amount`` map validation."""

    @staticmethod
    def validate(data) -> Dict[str, Dict[str, Decimal]]:
        if data is None:
            return {}
        data = _require_dict(data, 'Currency map')
        result = {}
        for category_id, amounts in data.items():
            amounts = _require_dict(amounts, 'Currency map entry')
            result[str(category_id)] = {_currency(cur): _amount(value) for cur, value in amounts.items()}
        return result


class BudgetPayload:
    """Full engine input as sent by the API or read by the CLI."""

    @staticmethod
    def validate(data: dict, default_currency: str = 'RUB') -> dict:
        data = _require_dict(data, 'Payload')
        year_month = _pick(data, 'year_month', 'ym')
        return {
            'user_currency': get_valid_currency(_currency(_pick(data, 'user_currency', 'userCurrency')), default_currency),
            'year_month': parse_year_month(year_month) if year_month else None,
            'income_sources': [IncomeSourceData.validate(s) for s in
                               _require_list(_pick(data, 'income_sources', 'incomeSources'), 'income_sources')],
            'categories': [CategoryData.validate(c) for c in _require_list(data.get('categories'), 'categories')],
            'incomes': [IncomeData.validate(i) for i in _require_list(data.get('incomes'), 'incomes')],
            'expenses': [ExpenseData.validate(e) for e in _require_list(data.get('expenses'), 'expenses')],
            'debt_map': CurrencyMapData.validate(_pick(data, 'debt_map', 'debts')),
            'carry_over_map': CurrencyMapData.validate(_pick(data, 'carry_over_map', 'carry_overs')),
        }


def _money(amount: Decimal, currency: str) -> Dict:
    return {
        'amount': float(amount),
        'currency': currency,
        'formatted': Money(amount, currency).format()
    }


def _currency_map(amounts: Dict[str, Dict[str, Decimal]]) -> Dict:
    return {
        category_id: {currency: float(value) for currency, value in per_currency.items()}
        for category_id, per_currency in amounts.items()
    }


class CurrencyBudgetSchema:

    @staticmethod
    def serialize(budget: CurrencyBudget, currency: str) -> Dict:
        return {
            'currency': currency,
            'symbol': currency_symbol(currency),
            'base_allocation': float(budget.base_allocation),
            'allocated': float(budget.allocated),
            'spent': float(budget.spent),
            'remaining': float(budget.remaining),
            'debt': float(budget.debt),
            'carry_over': float(budget.carry_over),
            'orphaned': budget.orphaned,
            'is_over_budget': budget.is_over_budget,
            'overage': float(budget.overage),
            'usage_percentage': float(budget.usage_percentage),
            'formatted_remaining': Money(budget.remaining, currency).format()
        }


class CategoryBudgetSchema:
    """Category budget serialization schema."""

    @staticmethod
    def serialize(budget: CategoryBudget) -> Dict:
        by_currency = None
        if budget.budgets_by_currency:
            by_currency = {
                currency: CurrencyBudgetSchema.serialize(item, currency)
                for currency, item in budget.budgets_by_currency.items()
            }
        return {
            'category_id': budget.category_id,
            'allocated': float(budget.allocated),
            'spent': float(budget.spent),
            'remaining': float(budget.remaining),
            'debt': float(budget.debt),
            'carry_over': float(budget.carry_over),
            'is_over_budget': budget.is_over_budget,
            'overage': float(budget.overage),
            'orphaned': budget.orphaned,
            'budgets_by_currency': by_currency
        }

    @staticmethod
    def serialize_list(budgets: List[CategoryBudget]) -> List[Dict]:
        return [CategoryBudgetSchema.serialize(budget) for budget in budgets]


class SourceSummarySchema:
    """Source summary serialization schema."""

    @staticmethod
    def _currency_summary(summary: CurrencySourceSummary) -> Dict:
        return {
            'total_income': float(summary.total_income),
            'allocated': float(summary.allocated),
            'total_spent': float(summary.total_spent),
            'remaining': float(summary.remaining),
            'debt': float(summary.debt)
        }

    @staticmethod
    def serialize(summary: SourceSummary) -> Dict:
        by_currency = None
        if summary.summaries_by_currency:
            by_currency = {
                currency: SourceSummarySchema._currency_summary(item)
                for currency, item in summary.summaries_by_currency.items()
            }
        return {
            'source_id': summary.source_id,
            'currency': summary.currency,
            'total_income': float(summary.total_income),
            'allocated': float(summary.allocated),
            'total_spent': float(summary.total_spent),
            'remaining': float(summary.remaining),
            'debt': float(summary.debt),
            'summaries_by_currency': by_currency
        }

    @staticmethod
    def serialize_list(summaries: List[SourceSummary]) -> List[Dict]:
        return [SourceSummarySchema.serialize(summary) for summary in summaries]


class RolloverSchema:

    @staticmethod
    def serialize(result: RolloverResult) -> Dict:
        return {
            'debt_map': _currency_map(result.debt_map),
            'carry_over_map': _currency_map(result.carry_over_map)
        }


class ValidationResultSchema:

    @staticmethod
    def serialize(result: ValidationResult) -> Dict:
        return {
            'is_valid': result.is_valid,
            'errors': result.errors,
            'warnings': result.warnings,
            'details': {
                'total_allocated': float(result.details.total_allocated),
                'total_income': float(result.details.total_income),
                'difference': float(result.details.difference),
                'over_allocated_categories': result.details.over_allocated_categories
            }
        }


class BalanceSchema:

    @staticmethod
    def serialize(balances: Dict[str, CurrencyBalance]) -> Dict:
        return {
            currency: {
                'income': _money(balance.income, currency),
                'expense': _money(balance.expense, currency),
                'balance': _money(balance.balance, currency),
                'total_balance': _money(balance.total_balance, currency)
            }
            for currency, balance in balances.items()
        }


class MonthSnapshotSchema:
    """Month snapshot serialization schema."""

    @staticmethod
    def serialize(snapshot) -> Dict:
        data = {
            'year_month': str(snapshot.year_month),
            'title': snapshot.year_month.format_ru(),
            'user_currency': snapshot.user_currency,
            'categories': CategoryBudgetSchema.serialize_list(snapshot.categories),
            'sources': SourceSummarySchema.serialize_list(snapshot.sources),
            'rollovers': RolloverSchema.serialize(snapshot.rollovers),
            'balances': BalanceSchema.serialize(snapshot.balances),
            'carry_over_balance': _money(snapshot.carry_over_balance, snapshot.user_currency),
            'validation': ValidationResultSchema.serialize(snapshot.validation) if snapshot.validation else None
        }
        if snapshot.diagnostics is not None:
            data['diagnostics'] = snapshot.diagnostics.to_list()
        return data


class ShareData:
    """Weighted share for rounding requests."""

    @staticmethod
    def validate(data: dict) -> Share:
        data = _require_dict(data, 'Share')
        return Share(
            id=_identifier(data, 'id'),
            weight_percent=_amount(_pick(data, 'weight_percent', 'weightPercent', 'percentage')),
            name=data.get('name'),
        )

    @staticmethod
    def validate_list(data) -> List[Share]:
        return [ShareData.validate(item) for item in _require_list(data, 'shares')]


class PercentageEntryData:

    @staticmethod
    def validate_list(data) -> List[PercentageEntry]:
        entries = []
        for item in _require_list(data, 'entries'):
            item = _require_dict(item, 'Percentage entry')
            entries.append(PercentageEntry(_identifier(item, 'id'), _amount(item.get('value'))))
        return entries


class RoundingSchema:

    @staticmethod
    def serialize_shares(shares: List[DistributedShare]) -> List[Dict]:
        return [{'id': s.id, 'name': s.name, 'amount': float(s.amount)} for s in shares]

    @staticmethod
    def serialize_check(check: PercentageCheck) -> Dict:
        return {'is_valid': check.is_valid, 'total': float(check.total), 'message': check.message}

    @staticmethod
    def serialize_entries(entries: List[PercentageEntry]) -> List[Dict]:
        return [{'id': e.id, 'value': float(e.value)} for e in entries]
