"""
filingdesk.statutory
====================

UK statutory date derivations for a client: next accounting year end,
accounts due, corporation-tax (CT600) filing due and confirmation statement
due, plus the fixed non-Ltd tax-year dates.

Every function here is pure: the reference date is passed in as ``today``
(defaulting to :func:`filingdesk.dates.london_today`) and malformed input
yields ``None`` / ``"Not set"`` rather than an exception, because the
callers are rendering optional fields.

Precedence for the year end is fixed and used by every caller:

1. last accounts made-up-to date + 1 year
2. the accounting reference date's next occurrence after ``today``
3. not set
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional

from .dates import (
    DateStyle,
    add_days,
    add_months,
    add_years,
    coerce_date,
    format_uk_date,
    london_today,
    parse_reference_date,
)
from .models import Client, DueSource
from .settings import settings

logger = logging.getLogger(__name__)

ACCOUNTS_DUE_MONTHS = 9
CT_DUE_MONTHS = 12
CONFIRMATION_GRACE_DAYS = 14
FIRST_PERIOD_MIN_MONTHS = 6

# tax year runs 6 April -> 5 April
NON_LTD_YEAR_END_MONTH, NON_LTD_YEAR_END_DAY = 4, 5
NON_LTD_FILING_MONTHS = 9

# Field name -> accepted spellings (snake_case attrs, camelCase API payloads)
_ALIASES: Dict[str, tuple] = {
    "accounting_reference_date": ("accounting_reference_date", "accountingReferenceDate"),
    "last_accounts_made_up_to": ("last_accounts_made_up_to", "lastAccountsMadeUpTo"),
    "incorporation_date": ("incorporation_date", "incorporationDate"),
    "last_confirmation_made_up_to": ("last_confirmation_made_up_to", "lastConfirmationMadeUpTo"),
    "manual_ct_due_override": ("manual_ct_due_override", "manualCTDueOverride"),
}


def _read(source: Any, field: str) -> Any:
    if source is None:
        return None
    for key in _ALIASES[field]:
        if isinstance(source, Mapping):
            value = source.get(key)
        else:
            value = getattr(source, key, None)
        if value is not None:
            return value
    return None


# ---------------------------------------------------------------------------
# Year end
# ---------------------------------------------------------------------------
def last_accounts_date(source: Any) -> Optional[date]:
    """Made-up-to date of the last filed accounts, if *source* carries one."""
    return coerce_date(_read(source, "last_accounts_made_up_to"))


def year_end(source: Any, today: Optional[date] = None) -> Optional[date]:
    """
    Resolve the client's next statutory year end.

    Parameters
    ----------
    source : Client | Mapping | object
        Anything exposing ``accounting_reference_date``,
        ``last_accounts_made_up_to`` (camelCase keys accepted in mappings).
    today : datetime.date, optional
        Reference date; defaults to today in London.

    Examples
    --------
    >>> year_end({"accountingReferenceDate": {"day": 31, "month": 3}}, today=date(2024, 6, 1))
    datetime.date(2025, 3, 31)
    >>> year_end({"lastAccountsMadeUpTo": "2023-12-31"})
    datetime.date(2024, 12, 31)
    >>> year_end({}) is None
    True
    """
    last_accounts = last_accounts_date(source)
    if last_accounts is not None:
        return add_years(last_accounts, 1)

    ard = parse_reference_date(_read(source, "accounting_reference_date"))
    if ard is None:
        return None

    today = today or london_today()
    candidate = ard.in_year(today.year)
    if candidate <= today:
        if today.year >= date.max.year:
            return None
        candidate = ard.in_year(today.year + 1)
    return candidate


def first_year_end(incorporation_date: Any, reference_date: Any) -> Optional[date]:
    """
    First accounting year end of a newly incorporated company.

    The first period has to run at least six months, so an ARD occurrence
    closer than that to incorporation rolls to the following year.
    """
    incorporated = coerce_date(incorporation_date)
    ard = parse_reference_date(reference_date)
    if incorporated is None or ard is None:
        return None
    earliest = add_months(incorporated, FIRST_PERIOD_MIN_MONTHS)
    if earliest is None:
        return None
    candidate = ard.in_year(incorporated.year)
    if candidate < earliest:
        if incorporated.year >= date.max.year:
            return None
        candidate = ard.in_year(incorporated.year + 1)
    return candidate


# ---------------------------------------------------------------------------
# Due dates
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ResolvedDue:
    """A due date together with where it came from."""
    value: Optional[date]
    source: DueSource = DueSource.AUTO

    @property
    def is_manual(self) -> bool:
        return self.source is DueSource.MANUAL


def ct_due_for_year_end(year_end_date: date) -> Optional[date]:
    """CT600 filing deadline (not the payment deadline): 12 months after *year_end_date*."""
    return add_months(year_end_date, CT_DUE_MONTHS)


def corporation_tax_due(source: Any, today: Optional[date] = None) -> Optional[date]:
    """CT600 filing deadline for the resolved year end."""
    end = year_end(source, today)
    return ct_due_for_year_end(end) if end else None


def resolve_ct_due(source: Any, today: Optional[date] = None) -> ResolvedDue:
    """CT due date with a manual override taking precedence over the computed one."""
    override = coerce_date(_read(source, "manual_ct_due_override"))
    if override is not None:
        return ResolvedDue(override, DueSource.MANUAL)
    return ResolvedDue(corporation_tax_due(source, today), DueSource.AUTO)


def accounts_due(source: Any, today: Optional[date] = None) -> Optional[date]:
    """Companies House accounts deadline: 9 months after the year end."""
    end = year_end(source, today)
    return add_months(end, ACCOUNTS_DUE_MONTHS) if end else None


def confirmation_statement_due(source: Any) -> Optional[date]:
    """
    Confirmation statement deadline.

    The review period ends a year after the last made-up-to date (or a year
    after incorporation for the first statement); filing is due 14 days later.
    """
    last_made_up_to = coerce_date(_read(source, "last_confirmation_made_up_to"))
    anchor = last_made_up_to or coerce_date(_read(source, "incorporation_date"))
    review_end = add_years(anchor, 1) if anchor else None
    if review_end is None:
        return None
    return add_days(review_end, CONFIRMATION_GRACE_DAYS)


# ---------------------------------------------------------------------------
# Bundles & display
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class StatutoryDates:
    year_end: Optional[date]
    accounts_due: Optional[date]
    corporation_tax_due: ResolvedDue
    confirmation_due: Optional[date]

    def formatted(self, style: DateStyle = "numeric") -> Dict[str, str]:
        return {
            "year_end": format_uk_date(self.year_end, style),
            "accounts_due": format_uk_date(self.accounts_due, style),
            "corporation_tax_due": format_uk_date(self.corporation_tax_due.value, style),
            "corporation_tax_due_source": self.corporation_tax_due.source.name,
            "confirmation_due": format_uk_date(self.confirmation_due, style),
        }


def statutory_dates(source: Any, today: Optional[date] = None) -> StatutoryDates:
    """Compute every statutory date for *source* against a single ``today``."""
    today = today or london_today()
    return StatutoryDates(
        year_end=year_end(source, today),
        accounts_due=accounts_due(source, today),
        corporation_tax_due=resolve_ct_due(source, today),
        confirmation_due=confirmation_statement_due(source),
    )


def format_year_end(
    source: Any,
    style: DateStyle = "short",
    fallback: Optional[str] = None,
    today: Optional[date] = None,
) -> str:
    return format_uk_date(year_end(source, today), style, fallback)


def year_end_for_table(source: Any, today: Optional[date] = None) -> str:
    return format_year_end(source, "short", settings.table_fallback, today)


def format_corporation_tax_due(
    source: Any,
    style: DateStyle = "numeric",
    fallback: Optional[str] = None,
    today: Optional[date] = None,
) -> str:
    return format_uk_date(resolve_ct_due(source, today).value, style, fallback)


def format_accounts_due(
    source: Any,
    style: DateStyle = "numeric",
    fallback: Optional[str] = None,
    today: Optional[date] = None,
) -> str:
    return format_uk_date(accounts_due(source, today), style, fallback)


# ---------------------------------------------------------------------------
# Cached fields on Client
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class CachedDateCheck:
    field: str
    stored: Optional[date]
    expected: Optional[date]

    @property
    def consistent(self) -> bool:
        return self.stored is None or self.stored == self.expected


def _expected_cache(client: Client, today: date) -> Dict[str, Any]:
    dates = statutory_dates(client, today)
    return {
        "next_year_end": dates.year_end,
        "next_accounts_due": dates.accounts_due,
        "next_corporation_tax_due": dates.corporation_tax_due.value,
        "next_confirmation_due": dates.confirmation_due,
    }


def check_cached_dates(client: Client, today: Optional[date] = None) -> List[CachedDateCheck]:
    """Compare each cached date on *client* with what the rules produce."""
    expected = _expected_cache(client, today or london_today())
    return [
        CachedDateCheck(field=name, stored=getattr(client, name), expected=value)
        for name, value in expected.items()
    ]


def recalculate_cached_dates(client: Client, today: Optional[date] = None) -> Client:
    """Return a copy of *client* with every cached due date recomputed."""
    today = today or london_today()
    expected = _expected_cache(client, today)
    source = DueSource.MANUAL if client.manual_ct_due_override else DueSource.AUTO
    updated = dataclasses.replace(client, ct_due_source=source, **expected)
    if updated != client:
        logger.debug(f"Recalculated cached dates for {client.code}")
    return updated


# ---------------------------------------------------------------------------
# Non-Ltd (sole trader / partnership) tax year
# ---------------------------------------------------------------------------
def non_ltd_year_end(year: int) -> date:
    """Non-Ltd year end: always 5 April of *year*."""
    return date(year, NON_LTD_YEAR_END_MONTH, NON_LTD_YEAR_END_DAY)


def non_ltd_filing_due(year_end_date: date) -> Optional[date]:
    return add_months(year_end_date, NON_LTD_FILING_MONTHS)


def current_tax_year(today: Optional[date] = None) -> int:
    """Starting calendar year of the UK tax year containing *today*."""
    today = today or london_today()
    if (today.month, today.day) < (NON_LTD_YEAR_END_MONTH, NON_LTD_YEAR_END_DAY + 1):
        return today.year - 1
    return today.year


__all__ = [
    "CachedDateCheck",
    "ResolvedDue",
    "StatutoryDates",
    "accounts_due",
    "check_cached_dates",
    "confirmation_statement_due",
    "corporation_tax_due",
    "ct_due_for_year_end",
    "current_tax_year",
    "first_year_end",
    "format_accounts_due",
    "format_corporation_tax_due",
    "format_year_end",
    "last_accounts_date",
    "non_ltd_filing_due",
    "non_ltd_year_end",
    "recalculate_cached_dates",
    "resolve_ct_due",
    "statutory_dates",
    "year_end",
    "year_end_for_table",
]
