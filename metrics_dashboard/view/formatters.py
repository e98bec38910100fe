"""
Display formatters shared by both dashboards.

Pure functions mapping raw metric values onto human-readable strings.
Every formatter answers :data:`NOT_AVAILABLE` for a missing metric
(``None``, NaN, infinities, non-numeric input) instead of raising or
printing zero.

Magnitude suffixes are chosen by checking the *largest* threshold first;
checking K before B would label a billion as "1000000.00K".
"""

from __future__ import annotations

import math
import numbers
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import pandas as pd

NOT_AVAILABLE = "N/A"

_CURRENCY_STEPS: tuple[tuple[float, str], ...] = (
    (1.0e12, "T"),
    (1.0e9, "B"),
    (1.0e6, "M"),
    (1.0e3, "K"),
)
_VOLUME_STEPS: tuple[tuple[float, str], ...] = (
    (1.0e9, "B"),
    (1.0e6, "M"),
    (1.0e3, "K"),
)

# Short month names as the sales backend's audience reads them (id-ID).
_MONTHS_ID = (
    "Jan", "Feb", "Mar", "Apr", "Mei", "Jun",
    "Jul", "Agu", "Sep", "Okt", "Nov", "Des",
)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def as_number(value: Any) -> float | None:
    """Return *value* as a finite float, or ``None`` when it is not a metric."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return None
    if pd.isna(value) or math.isinf(value):
        return None
    return float(value)


def _round_half_up(value: float) -> int:
    return int(math.floor(abs(value) + 0.5)) * (-1 if value < 0 else 1)


def _group(value: int, separator: str) -> str:
    return f"{value:,}".replace(",", separator)


def _to_fixed(value: float, digits: int) -> str:
    """Fixed-point string rounding ties away from zero, like ``Number.toFixed``."""
    quantum = Decimal(1).scaleb(-digits)
    return format(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP), "f")


# ---------------------------------------------------------------------------
# Number formatters
# ---------------------------------------------------------------------------

def format_currency(value: Any, symbol: str = "Rp", separator: str = ".") -> str:
    """Whole-unit currency string, e.g. ``Rp 1.234.567``."""
    number = as_number(value)
    if number is None:
        return NOT_AVAILABLE
    rounded = _round_half_up(number)
    sign = "-" if rounded < 0 else ""
    return f"{sign}{symbol} {_group(abs(rounded), separator)}"


def format_number(value: Any, separator: str = ".") -> str:
    """Locale-grouped whole number for counts (customers, leads)."""
    number = as_number(value)
    if number is None:
        return NOT_AVAILABLE
    return _group(_round_half_up(number), separator)


def format_value(value: Any, is_currency: bool = False) -> str:
    """Two-decimal value; currency values get ``$`` and a T/B/M/K suffix.

    >>> format_value(1_500_000_000, True)
    '$1.50B'
    >>> format_value(12.5)
    '12.50'
    """
    number = as_number(value)
    if number is None:
        return NOT_AVAILABLE
    if is_currency:
        for threshold, suffix in _CURRENCY_STEPS:
            if abs(number) >= threshold:
                return f"${_to_fixed(number / threshold, 2)}{suffix}"
        return f"${_to_fixed(number, 2)}"
    return _to_fixed(number, 2)


def format_percentage(value: Any) -> str:
    """Fraction on a 0-1 scale as a percentage, e.g. ``0.1234 -> 12.34%``."""
    number = as_number(value)
    if number is None:
        return NOT_AVAILABLE
    return f"{_to_fixed(number * 100, 2)}%"


def format_volume(value: Any) -> str:
    """Share volume with a B/M/K suffix, or comma-grouped below 1,000."""
    number = as_number(value)
    if number is None:
        return NOT_AVAILABLE
    for threshold, suffix in _VOLUME_STEPS:
        if number >= threshold:
            return f"{_to_fixed(number / threshold, 1)}{suffix}"
    if number.is_integer():
        return f"{int(number):,}"
    return f"{number:,.3f}".rstrip("0").rstrip(".")


def format_price(value: Any) -> str:
    number = as_number(value)
    if number is None:
        return NOT_AVAILABLE
    return f"${_to_fixed(number, 2)}"


def format_ratio(value: Any) -> str:
    """One-decimal ratio, used for the P/E quick stat."""
    number = as_number(value)
    if number is None:
        return NOT_AVAILABLE
    return _to_fixed(number, 1)


# ---------------------------------------------------------------------------
# Dates and text
# ---------------------------------------------------------------------------

def parse_timestamp(value: Any) -> pd.Timestamp | None:
    """Parse an API timestamp; ``None`` when it cannot be read as a date."""
    if value is None:
        return None
    ts = pd.to_datetime(value, errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    return ts


def timestamp_sort_key(ts: pd.Timestamp) -> pd.Timestamp:
    """Comparable UTC instant for timestamps with or without an offset."""
    return ts.tz_convert("UTC") if ts.tzinfo is not None else ts.tz_localize("UTC")


def format_date_label(value: Any) -> str:
    """``M/D/YYYY`` label for a price bar, in the timestamp's own offset."""
    ts = parse_timestamp(value)
    if ts is None:
        return NOT_AVAILABLE
    return f"{ts.month}/{ts.day}/{ts.year}"


def format_month_label(value: str) -> str:
    """``YYYY-MM`` as a short month and two-digit year, e.g. ``Agu 23``.

    Malformed input is returned unchanged so the axis still shows something.
    """
    try:
        year, month = (int(part) for part in value.split("-")[:2])
    except (ValueError, AttributeError):
        return value
    if not 1 <= month <= 12:
        return value
    return f"{_MONTHS_ID[month - 1]} {year % 100:02d}"


def truncate_summary(text: str | None, limit: int = 200) -> str:
    if not text:
        return "No summary available"
    return text[:limit] + "..."
