"""
Locale-aware date and number formatting (CLDR data via Babel).

Unsupported locales format with the default locale, as message lookups do.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Union

from babel.dates import format_date
from babel.numbers import format_currency, format_decimal, format_percent

from valorhub.core.errors import ValidationError
from valorhub.features.i18n.locales import resolve_locale

Number = Union[int, float, Decimal]

NUMBER_STYLES = ("decimal", "percent", "currency")


def format_localized_date(value: Union[date, datetime], locale: Optional[str], format: str = "medium") -> str:
    """
    Format a date for display, e.g. "Oct 19, 2026" (en) or "19 oct 2026" (es).

    format is a CLDR width ("short", "medium", "long", "full") or a pattern
    such as "d MMMM y".
    """
    return format_date(value, format=format, locale=resolve_locale(locale))


def format_localized_number(
    value: Number,
    locale: Optional[str],
    *,
    style: str = "decimal",
    currency: Optional[str] = None,
) -> str:
    """
    Format a number with the locale's grouping and decimal separators.

    Raises:
        ValidationError: unknown style, or currency style without a currency code
    """
    resolved = resolve_locale(locale)
    if style == "decimal":
        return format_decimal(value, locale=resolved)
    if style == "percent":
        return format_percent(value, locale=resolved)
    if style == "currency":
        if not currency:
            raise ValidationError("currency is required for currency formatting")
        return format_currency(value, currency, locale=resolved)
    raise ValidationError(f"style must be one of: {', '.join(NUMBER_STYLES)}")
