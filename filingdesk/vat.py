"""
filingdesk.vat
==============

VAT quarter arithmetic.

A client's *quarter group* names the months in which its VAT quarters end:
``"1_4_7_10"``, ``"2_5_8_11"`` or ``"3_6_9_12"``.  A return is due by the
last day of the month following the quarter end.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional, Tuple

from .dates import MONTH_ABBR, add_months, coerce_date, days_until, london_today

QUARTER_GROUPS: Dict[str, Tuple[int, ...]] = {
    "1_4_7_10": (1, 4, 7, 10),
    "2_5_8_11": (2, 5, 8, 11),
    "3_6_9_12": (3, 6, 9, 12),
}

PERIOD_SEPARATOR = "_to_"


@dataclass(frozen=True)
class VATQuarter:
    quarter_period: str
    start: date
    end: date
    filing_due: date
    group: str


def _month_end(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def _end_months(group: str) -> Tuple[int, ...]:
    try:
        return QUARTER_GROUPS[group]
    except KeyError:
        raise ValueError(
            f"invalid quarter group {group!r}; expected one of {', '.join(QUARTER_GROUPS)}"
        ) from None


def vat_quarter(group: str, reference: Optional[date] = None) -> VATQuarter:
    """
    Quarter of *group* that contains *reference* (default: today in London).

    >>> vat_quarter("3_6_9_12", date(2024, 5, 10)).quarter_period
    '2024-04-01_to_2024-06-30'
    >>> vat_quarter("1_4_7_10", date(2024, 11, 2)).end
    datetime.date(2025, 1, 31)
    """
    months = _end_months(group)
    reference = reference or london_today()

    year = reference.year
    end_month = next((m for m in months if m >= reference.month), None)
    if end_month is None:
        end_month, year = months[0], year + 1

    end = _month_end(year, end_month)
    start = add_months(end.replace(day=1), -2)
    due_month = add_months(end.replace(day=1), 1)
    return VATQuarter(
        quarter_period=f"{start.isoformat()}{PERIOD_SEPARATOR}{end.isoformat()}",
        start=start,
        end=end,
        filing_due=_month_end(due_month.year, due_month.month),
        group=group,
    )


def next_vat_quarter(group: str, current_end: date) -> VATQuarter:
    return vat_quarter(group, add_months(current_end, 3))


def is_vat_overdue(filing_due: Any, today: Optional[date] = None) -> bool:
    """Overdue only once the due day itself has passed."""
    days = days_until(filing_due, today)
    return days is not None and days < 0


def days_until_vat_deadline(filing_due: Any, today: Optional[date] = None) -> Optional[int]:
    return days_until(filing_due, today)


def parse_quarter_period(period: str) -> Tuple[date, date]:
    """Split ``"YYYY-MM-DD_to_YYYY-MM-DD"`` into its start and end dates."""
    parts = (period or "").split(PERIOD_SEPARATOR)
    if len(parts) != 2 or not all(parts):
        raise ValueError(f"invalid quarter period {period!r}")
    start, end = coerce_date(parts[0]), coerce_date(parts[1])
    if start is None or end is None:
        raise ValueError(f"invalid quarter period {period!r}")
    if start > end:
        raise ValueError(f"quarter period {period!r} ends before it starts")
    return start, end


def format_quarter_period(period: str) -> str:
    """``"Jan - Mar 2024"``, or ``"Nov 2023 - Jan 2024"`` across a year boundary."""
    start, end = parse_quarter_period(period)
    start_month, end_month = MONTH_ABBR[start.month - 1], MONTH_ABBR[end.month - 1]
    if start.year == end.year:
        return f"{start_month} - {end_month} {end.year}"
    return f"{start_month} {start.year} - {end_month} {end.year}"
