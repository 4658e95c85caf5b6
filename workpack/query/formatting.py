"""Formatting of summed values for the wire."""

from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional

from workpack.core.config import CURRENCY_UNIT
from workpack.query.schemas import SumFormat


def format_duration(hours: Optional[float]) -> Optional[str]:
    """Hours as an ISO 8601 duration: 4 -> 'PT4H', 1.5 -> 'PT1H30M', 0 -> 'PT0S'."""
    if hours is None:
        return None
    seconds = int(round(float(hours) * 3600))
    sign = "-" if seconds < 0 else ""
    h, rest = divmod(abs(seconds), 3600)
    m, s = divmod(rest, 60)
    parts = "".join(f"{amount}{unit}" for amount, unit in ((h, "H"), (m, "M"), (s, "S")) if amount)
    return f"{sign}PT{parts or '0S'}"


def format_currency(amount: Any, unit: str = CURRENCY_UNIT) -> Optional[str]:
    """Amount with two decimals and the currency unit, e.g. '12.50 EUR'."""
    if amount is None:
        return None
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{value} {unit}"


def format_sum(value: Any, format_type: SumFormat) -> Any:
    """Format a single sum according to its format type. None stays None."""
    if value is None:
        return None
    if format_type == SumFormat.DURATION:
        return format_duration(value)
    elif format_type == SumFormat.CURRENCY:
        return format_currency(value)
    else:
        return int(value)


def format_date(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.replace(microsecond=0).isoformat() + ("Z" if value.tzinfo is None else "")
