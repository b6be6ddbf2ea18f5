"""Display formatting for LoanQuote figures."""
import math
import re

from babel import Locale
from babel.numbers import format_currency as babel_format_currency

from loanquote.config import QUARTER_GLYPHS, MONTHS_HEURISTIC_THRESHOLD
from loanquote.data_structures import LoanConfig

_FRACTION_PATTERN = re.compile(r"0\.0+")


def _currency_pattern(locale_id: str, integral: bool) -> str:
    """Locale's standard currency pattern with 0 or up to 2 fraction digits."""
    pattern = Locale.parse(locale_id).currency_formats["standard"].pattern
    return _FRACTION_PATTERN.sub("0" if integral else "0.##", pattern)


def format_currency(value: float, config: LoanConfig) -> str:
    """Format a money value for the configured currency and locale.

    Integral values are shown without decimals, others with up to two.
    Non-breaking spaces are replaced with plain spaces.
    """
    locale_id = config.currency.locale.replace("-", "_")
    integral = float(value).is_integer()
    formatted = babel_format_currency(
        value,
        config.currency.code,
        format=_currency_pattern(locale_id, integral),
        locale=locale_id,
        currency_digits=False,
    )
    return formatted.replace("\u00a0", " ").replace("\u202f", " ")


def format_years(value: float, unit: str = None) -> str:
    """Format a loan term as years, e.g. "2½ years".

    Args:
        value: Term length.
        unit: "years" or "months". When omitted, values above 5 are read
            as months and anything else as years.

    Raises:
        ValueError: If unit is not recognised.
    """
    if unit is None:
        years = value / 12 if value > MONTHS_HEURISTIC_THRESHOLD else value
    elif unit == "months":
        years = value / 12
    elif unit == "years":
        years = value
    else:
        raise ValueError(f"Unknown term unit: {unit}")

    whole_years = math.floor(years)
    remainder = math.floor((years - whole_years) * 4 + 0.5) / 4

    if remainder == 0:
        return f"{whole_years} {'year' if whole_years == 1 else 'years'}"
    if remainder in QUARTER_GLYPHS:
        return f"{whole_years}{QUARTER_GLYPHS[remainder]} years"
    return f"{years} years"


def format_rate(rate: float) -> str:
    return f"{rate:g}%"


def format_quote_summary(amount: float, term_years: float, rate: float, config: LoanConfig) -> str:
    """One-line description of a quote, e.g. "£7,500 over 2½ years at 8.5%"."""
    return (
        f"{format_currency(amount, config)} over "
        f"{format_years(term_years, unit='years')} at {format_rate(rate)}"
    )
