"""Currency and date formatting for display strings.

Thin, locale-aware wrappers over Babel. Amounts arriving here are
guaranteed numeric by upstream sources, so anything that cannot be
rendered raises :class:`InvalidAmountError` instead of degrading to a
placeholder.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation

from babel import Locale
from babel.dates import format_date as babel_format_date
from babel.dates import format_time as babel_format_time
from babel.dates import get_datetime_format
from babel.numbers import format_currency as babel_format_currency

from itemscreen.domain.types import DateStyle
from itemscreen.services.errors import InvalidAmountError

DEFAULT_LOCALE = "en_US"


def _to_decimal(amount: Decimal | int | float) -> Decimal:
    if isinstance(amount, bool) or not isinstance(amount, (Decimal, int, float)):
        msg = f"Amount must be numeric, got {type(amount).__name__}"
        raise InvalidAmountError(msg)
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except InvalidOperation as exc:
        raise InvalidAmountError(f"Unrepresentable amount: {amount!r}") from exc
    if not value.is_finite():
        msg = f"Unrepresentable amount: {amount!r}"
        raise InvalidAmountError(msg)
    return value


def format_currency(
    amount: Decimal | int | float,
    currency_code: str,
    *,
    locale: str = DEFAULT_LOCALE,
) -> str:
    """Render *amount* in currency style for *currency_code*.

    Examples:
        >>> format_currency(Decimal("12.5"), "USD")
        '$12.50'
        >>> format_currency(3, "EUR")
        '€3.00'
    """
    return babel_format_currency(_to_decimal(amount), currency_code, locale=locale)


def format_date(value: datetime, style: DateStyle | str, *, locale: str = DEFAULT_LOCALE) -> str:
    """Render *value* as date plus short time.

    ``DateStyle.LONG`` gives a verbose date ("October 17, 2026"),
    ``DateStyle.SHORT`` a terse one ("10/17/26"). Both are joined to the
    short time with the locale's own date-time pattern.
    """
    date_style = DateStyle(style)
    pattern = get_datetime_format(date_style.value, locale=locale)
    date_part = babel_format_date(value, format=date_style.value, locale=locale)
    time_part = babel_format_time(value, format="short", locale=locale)
    return str(pattern).replace("'", "").replace("{0}", time_part).replace("{1}", date_part)


class Formatter:
    """Formatting functions bound to one locale."""

    def __init__(self, locale: str = DEFAULT_LOCALE) -> None:
        # Fail at construction for unknown locales rather than on first row.
        Locale.parse(locale)
        self.locale = locale

    def currency(self, amount: Decimal | int | float, currency_code: str) -> str:
        return format_currency(amount, currency_code, locale=self.locale)

    def date(self, value: datetime, style: DateStyle | str) -> str:
        return format_date(value, style, locale=self.locale)
