"""
Tests for money formatting and year-month periods.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from crystalbudget.core.money import (
    Money, currency_symbol, format_amount, format_rounded, get_valid_currency, validate_currency,
)
from crystalbudget.core.time import YearMonth, parse_date, parse_year_month


class TestMoney:
    """Money display formatting."""

    def test_rub_uses_space_separator(self):
        assert Money(Decimal('1234567.891'), 'RUB').format() == '1 234 567.89 ₽'

    def test_usd_symbol_prefix(self):
        assert Money(1500, 'USD').format() == '$1,500.00'

    def test_unknown_currency_renders_code(self):
        assert currency_symbol('XYZ') == 'XYZ'
        assert Money(10, 'XYZ').format() == '10.00 XYZ'

    def test_format_amount_matches_money(self):
        assert format_amount(Decimal('15000'), 'RUB') == '15 000.00 ₽'
        assert format_amount(Decimal('99.999'), 'EUR') == '100.00 €'

    def test_huge_amounts_format_without_error(self):
        assert Money(Decimal('1e30'), 'RUB').format() == '1 000 000 000 000 000 000 000 000 000 000.00 ₽'
        assert format_rounded(Decimal('1e30'), 'RUB') == '1 000 000 000 000 000 000 000 000 000 000 ₽'

    def test_format_rounded(self):
        assert format_rounded(Decimal('1499.5'), 'RUB') == '1 500 ₽'
        assert format_rounded(50, 'GEL') == '50 ₾'


class TestCurrencyValidation:

    def test_known_currencies(self):
        assert validate_currency('RUB') is True
        assert validate_currency('GEL') is True
        assert validate_currency('XYZ') is False
        assert validate_currency('') is False

    def test_get_valid_currency_falls_back(self):
        assert get_valid_currency('USD') == 'USD'
        assert get_valid_currency('XYZ') == 'RUB'
        assert get_valid_currency(None, default='EUR') == 'EUR'


class TestYearMonth:
    """Budget period arithmetic."""

    def test_prev_month_wraps_year(self):
        assert YearMonth(2025, 1).prev_month() == YearMonth(2024, 12)

    def test_date_range_covers_whole_month(self):
        assert YearMonth(2024, 2).date_range() == (date(2024, 2, 1), date(2024, 2, 29))

    def test_contains_matches_year_and_month(self):
        march = YearMonth(2025, 3)
        assert march.contains(date(2025, 3, 1)) is True
        assert march.contains(date(2025, 3, 31)) is True
        assert march.contains(date(2024, 3, 15)) is False
        assert march.contains(date(2025, 4, 1)) is False
        assert march.contains(None) is False

    def test_format_ru(self):
        assert YearMonth(2025, 3).format_ru() == 'Март 2025'

    def test_parse_year_month_formats(self):
        assert parse_year_month('2025-03') == YearMonth(2025, 3)
        assert parse_year_month('2025-03-17') == YearMonth(2025, 3)
        assert str(parse_year_month('2025-3')) == '2025-03'

    def test_parse_year_month_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_year_month('2025-13')
        with pytest.raises(ValueError):
            parse_year_month('March')


class TestParseDate:

    def test_accepts_dates_and_iso_strings(self):
        assert parse_date('2025-03-05') == date(2025, 3, 5)
        assert parse_date('2025-03-05T10:00:00Z') == date(2025, 3, 5)
        assert parse_date(datetime(2025, 3, 5, 12, 0)) == date(2025, 3, 5)
        assert parse_date(None) is None

    def test_invalid_date_raises(self):
        with pytest.raises(ValueError):
            parse_date('05.03.2025')
