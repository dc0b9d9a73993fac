"""
filingdesk.dates
================

Date coercion, calendar arithmetic and UK display formatting shared by the
statutory, VAT and deadline modules.

Inputs arrive from forms, the database and Companies House payloads, so
every helper here accepts "date-like" values (``date``, ``datetime`` or ISO
strings) and degrades to ``None`` instead of raising.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from datetime import date, datetime, timedelta
from functools import lru_cache
from typing import Any, Literal, Optional
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

from .models import AccountingReferenceDate
from .settings import settings

logger = logging.getLogger(__name__)

DateStyle = Literal["numeric", "short"]

MONTH_ABBR = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)
MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


@lru_cache
def local_zone() -> ZoneInfo:
    """Timezone in which calendar dates are decided (Europe/London by default)."""
    return ZoneInfo(settings.timezone)


def london_today() -> date:
    """Today's date in the configured timezone.  The only wall-clock read."""
    return datetime.now(local_zone()).date()


def london_now() -> datetime:
    return datetime.now(local_zone())


# ---------------------------------------------------------------------------
# Coercion
# ---------------------------------------------------------------------------
def coerce_date(value: Any) -> Optional[date]:
    """
    Turn a date-like value into a :class:`datetime.date`.

    Aware datetimes are converted to the local zone first, so a UTC timestamp
    of ``2024-06-30T23:00:00Z`` (midnight in London, BST) becomes 1 July.
    Unparseable input returns ``None``.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            try:
                value = value.astimezone(local_zone())
            except OverflowError:
                logger.debug(f"Ignoring out-of-range timestamp {value!r}")
                return None
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text[-1] in "Zz":
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.debug(f"Ignoring unparseable date {value!r}")
            return None
        return coerce_date(parsed)
    return None


def _to_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def parse_reference_date(value: Any) -> Optional[AccountingReferenceDate]:
    """
    Parse an accounting reference date from any of the shapes it is stored in.

    Accepted: an :class:`AccountingReferenceDate`, a ``{"day", "month"}``
    mapping, the Companies House JSON string ``'{"day": "31", "month": "03"}'``,
    a ``(day, month)`` pair, or ``"DD/MM"``.
    """
    if value is None:
        return None
    if isinstance(value, AccountingReferenceDate):
        return value if value.is_valid() else None

    if isinstance(value, str):
        text = value.strip()
        if text.startswith("{"):
            try:
                value = json.loads(text)
            except ValueError:
                logger.debug(f"Ignoring malformed reference date {text!r}")
                return None
        elif "/" in text:
            value = tuple(text.split("/", 1))
        else:
            return None

    if isinstance(value, Mapping):
        day, month = value.get("day"), value.get("month")
    elif isinstance(value, (tuple, list)) and len(value) == 2:
        day, month = value
    else:
        return None

    day, month = _to_int(day), _to_int(month)
    if day is None or month is None:
        return None
    ard = AccountingReferenceDate(day=day, month=month)
    return ard if ard.is_valid() else None


# ---------------------------------------------------------------------------
# Arithmetic
# ---------------------------------------------------------------------------
def _shift(value: date, delta: Any) -> Optional[date]:
    try:
        return value + delta
    except (ValueError, OverflowError):
        logger.debug(f"{value} + {delta!r} falls outside the calendar")
        return None


def add_years(value: date, years: int) -> Optional[date]:
    """
    Calendar years; 29 Feb lands on 28 Feb in a non-leap year.

    ``None`` when the result would leave the 1..9999 year range, which is
    what sentinel values such as 9999-12-31 run into.
    """
    return _shift(value, relativedelta(years=years))


def add_months(value: date, months: int) -> Optional[date]:
    """Calendar months, clamped to the last day of the target month."""
    return _shift(value, relativedelta(months=months))


def add_days(value: date, days: int) -> Optional[date]:
    return _shift(value, timedelta(days=days))


def days_until(due: Any, today: Optional[date] = None) -> Optional[int]:
    """Signed whole days from *today* to *due* (negative once overdue)."""
    due_date = coerce_date(due)
    if due_date is None:
        return None
    today = today or london_today()
    return (due_date - today).days


# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------
def format_uk_date(
    value: Any,
    style: DateStyle = "numeric",
    fallback: Optional[str] = None,
) -> str:
    """
    Format a date the way the practice reads it.

    >>> format_uk_date(date(2025, 3, 31))
    '31/03/2025'
    >>> format_uk_date(date(2025, 3, 31), "short")
    '31 Mar 2025'
    >>> format_uk_date(None)
    'Not set'
    """
    parsed = coerce_date(value)
    if parsed is None:
        return settings.date_fallback if fallback is None else fallback
    if style == "short":
        return f"{parsed.day:02d} {MONTH_ABBR[parsed.month - 1]} {parsed.year}"
    return f"{parsed.day:02d}/{parsed.month:02d}/{parsed.year}"


def month_label(value: date) -> str:
    """``date(2025, 3, 4)`` -> ``"March 2025"``."""
    return f"{MONTH_NAMES[value.month - 1]} {value.year}"


def due_phrase(due: Any, today: Optional[date] = None) -> str:
    """Human phrase for a due date: ``"3 days overdue"``, ``"due in 12 days"``."""
    days = days_until(due, today)
    if days is None:
        return settings.date_fallback
    if days == 0:
        return "due today"
    unit = "day" if abs(days) == 1 else "days"
    if days < 0:
        return f"{-days} {unit} overdue"
    return f"due in {days} {unit}"
