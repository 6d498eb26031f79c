"""Budget periods and transaction dates.

A budget period is a calendar month. Rollover looks exactly one period back,
so the only arithmetic needed is the previous month and the month's bounds.
"""
from datetime import datetime, date
from typing import NamedTuple, Optional, Tuple
import calendar

MONTHS_RU = (
    'Январь', 'Февраль', 'Март', 'Апрель', 'Май', 'Июнь',
    'Июль', 'Август', 'Сентябрь', 'Октябрь', 'Ноябрь', 'Декабрь',
)


class YearMonth(NamedTuple):
    """Calendar month used as a budget period."""
    year: int
    month: int

    def __str__(self) -> str:
        return f"{self.year}-{self.month:02d}"

    @classmethod
    def current(cls) -> 'YearMonth':
        return cls.from_date(date.today())

    @classmethod
    def from_date(cls, d: date) -> 'YearMonth':
        return cls(d.year, d.month)

    @classmethod
    def from_string(cls, s: str) -> 'YearMonth':
        """Parse 'YYYY-MM' (a single-digit month is accepted)."""
        year, sep, month = s.strip().partition('-')
        if not sep or not year.isdigit() or not month.isdigit():
            raise ValueError(f"Invalid year-month format: {s}")
        period = cls(int(year), int(month))
        if not 1 <= period.month <= 12:
            raise ValueError(f"Month must be 1-12, got {period.month}")
        return period

    def date_range(self) -> Tuple[date, date]:
        """First and last day of the period, both inclusive."""
        days_in_month = calendar.monthrange(self.year, self.month)[1]
        return date(self.year, self.month, 1), date(self.year, self.month, days_in_month)

    def contains(self, d: Optional[date]) -> bool:
        """Check whether a transaction date falls inside the period."""
        return d is not None and (d.year, d.month) == self

    def prev_month(self) -> 'YearMonth':
        if self.month > 1:
            return YearMonth(self.year, self.month - 1)
        return YearMonth(self.year - 1, 12)

    def format_ru(self) -> str:
        """Period title as shown on the dashboard, e.g. 'Март 2025'."""
        return f"{MONTHS_RU[self.month - 1]} {self.year}"


def parse_year_month(value: str) -> YearMonth:
    """Parse 'YYYY-MM' or a full 'YYYY-MM-DD' date; empty means current month."""
    if not value:
        return YearMonth.current()

    try:
        return YearMonth.from_string(value)
    except ValueError:
        pass

    try:
        return YearMonth.from_date(datetime.strptime(value, '%Y-%m-%d').date())
    except ValueError:
        raise ValueError(f"Cannot parse year-month: {value}")


def parse_date(value) -> Optional[date]:
    """Parse a transaction date from date, datetime or ISO string."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return datetime.fromisoformat(text.replace('Z', '+00:00')).date()
    except ValueError:
        pass
    try:
        return datetime.strptime(text[:10], '%Y-%m-%d').date()
    except ValueError as e:
        raise ValueError(f"Invalid date format: {value}") from e
