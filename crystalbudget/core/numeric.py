"""Numeric guards for budget calculations.

Every amount that enters a sum passes through ``safe_number``: NaN, infinity,
negative and unparseable values collapse to zero instead of poisoning totals.
"""
from decimal import Decimal, InvalidOperation

ZERO = Decimal('0')
HUNDRED = Decimal('100')


def _to_decimal(value):
    """Convert value to Decimal, or None if it cannot be represented."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    try:
        if isinstance(value, str):
            # Russian locale input uses a comma as decimal separator
            value = value.strip().replace(' ', '').replace(',', '.')
            if not value:
                return None
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None


def validate_amount(amount) -> bool:
    """Check that amount is a finite, non-negative number."""
    number = _to_decimal(amount)
    if number is None or not number.is_finite():
        return False
    return number >= 0


def safe_number(value) -> Decimal:
    """Coerce value to a Decimal, returning 0 if invalid."""
    number = _to_decimal(value)
    if number is None or not number.is_finite() or number < 0:
        return ZERO
    return number


def validate_percentage(percentage) -> bool:
    """Check that percentage is a valid amount no greater than 100."""
    return validate_amount(percentage) and _to_decimal(percentage) <= HUNDRED


def safe_divide(numerator, denominator) -> Decimal:
    """Divide two numbers, returning 0 on zero or invalid denominator."""
    if not validate_amount(denominator):
        return ZERO
    denominator = _to_decimal(denominator)
    if denominator == 0:
        return ZERO
    numerator = _to_decimal(numerator)
    if numerator is None or not numerator.is_finite():
        return ZERO
    return safe_number(numerator / denominator)


def safe_percentage(part, whole) -> Decimal:
    """Percentage of part in whole, 0 when whole is empty."""
    part = _to_decimal(part)
    if part is None:
        return ZERO
    return safe_divide(part * HUNDRED, whole)


def signed_number(value) -> Decimal:
    """Like ``safe_number`` but keeps negative values (balances, debts)."""
    number = _to_decimal(value)
    if number is None or not number.is_finite():
        return ZERO
    return number
