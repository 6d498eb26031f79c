"""Money handling utilities."""
from decimal import Decimal, ROUND_HALF_UP, localcontext

DEFAULT_CURRENCY = 'RUB'

# Display symbols only; unknown codes still aggregate, they just render as the code
CURRENCY_SYMBOLS = {
    'RUB': '₽',
    'USD': '$',
    'EUR': '€',
    'GBP': '£',
    'JPY': '¥',
    'CNY': '¥',
    'KRW': '₩',
    'GEL': '₾',
    'AMD': '֏',
}


def currency_symbol(currency: str) -> str:
    """Get display symbol for currency, or the code itself if unknown."""
    return CURRENCY_SYMBOLS.get(currency, currency or '')


def validate_currency(currency: str) -> bool:
    """Check whether currency is one of the known display currencies."""
    return currency in CURRENCY_SYMBOLS


def get_valid_currency(currency: str = None, default: str = DEFAULT_CURRENCY) -> str:
    """Return currency if known, otherwise default."""
    return currency if currency and validate_currency(currency) else default


def _round_half_up(amount: Decimal, exponent: Decimal) -> Decimal:
    """Quantize without tripping the context precision on very large amounts."""
    if not amount.is_finite():
        return amount
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, amount.adjusted() - exponent.as_tuple().exponent + 2)
        return amount.quantize(exponent, rounding=ROUND_HALF_UP)


class Money:
    """Immutable money value with currency."""

    def __init__(self, amount, currency=DEFAULT_CURRENCY):
        """Initialize Money with automatic Decimal conversion."""
        if not isinstance(amount, Decimal):
            amount = Decimal(str(amount))
        self._amount = amount
        self._currency = currency

    @property
    def amount(self) -> Decimal:
        return self._amount

    @property
    def currency(self) -> str:
        return self._currency

    def __str__(self) -> str:
        return self.format()

    def __repr__(self) -> str:
        return f'<Money {self.amount} {self.currency}>'

    def format(self, show_currency: bool = True) -> str:
        """Format money for display."""
        rounded = _round_half_up(self.amount, Decimal('0.01'))

        if self.currency in ('USD', 'GBP'):
            formatted = f"{rounded:,.2f}"
            return f"{currency_symbol(self.currency)}{formatted}" if show_currency else formatted

        formatted = f"{rounded:,.2f}".replace(',', ' ')
        if not show_currency:
            return formatted
        return f"{formatted} {currency_symbol(self.currency)}".rstrip()


def format_amount(amount, currency: str = DEFAULT_CURRENCY) -> str:
    """Format a bare amount in currency for CLI and log output."""
    return Money(amount, currency).format()


def format_rounded(amount, currency: str = DEFAULT_CURRENCY) -> str:
    """Format amount rounded to whole units, e.g. '1 500 ₽'."""
    rounded = _round_half_up(Decimal(str(amount)), Decimal('1'))
    formatted = f"{rounded:,}".replace(',', ' ')
    return f"{formatted} {currency_symbol(currency)}".rstrip()
