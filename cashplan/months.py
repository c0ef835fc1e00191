"""Year/month arithmetic. Day-of-month is never significant."""

from __future__ import annotations

from datetime import date, datetime
import re

from .money import round_half_up

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})(?:-(\d{2}))?$")


def parse_ym(value: str) -> tuple[int, int]:
    """Parse ``YYYY-MM`` or ``YYYY-MM-DD`` into ``(year, month)``.

    Raises ValueError for anything else; callers upstream are expected to
    have validated the string already.
    """
    match = _MONTH_RE.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise ValueError(f"invalid month date: {value!r}")
    if match.group(3) is not None:
        dt = datetime.strptime(value.strip(), "%Y-%m-%d")
    else:
        dt = datetime.strptime(value.strip(), "%Y-%m")
    return dt.year, dt.month


def is_month_date(value: str | None) -> bool:
    if value is None:
        return False
    try:
        parse_ym(value)
    except ValueError:
        return False
    return True


def month_ordinal(value: str) -> int:
    year, month = parse_ym(value)
    return year * 12 + (month - 1)


def format_ym(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def months_between(start: str, end: str) -> int:
    """Whole months from ``start`` to ``end``, clamped at zero."""
    return max(0, month_ordinal(end) - month_ordinal(start))


def add_months(start: str, months: int) -> str:
    total = month_ordinal(start) + max(0, int(months))
    return format_ym(total // 12, total % 12 + 1)


def current_month(today: date | None = None) -> str:
    today = today or date.today()
    return format_ym(today.year, today.month)


def start_offset(timeline_start: str, start_date: str | None) -> int:
    """Month index at which an entity with ``start_date`` becomes active."""
    if not start_date:
        return 0
    return months_between(timeline_start, start_date)


def horizon_months(horizon_years: float) -> int:
    return max(0, round_half_up(horizon_years * 12))
