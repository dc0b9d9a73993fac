"""
filingdesk.ct_tracking
======================

Corporation-tax tracking on a :class:`~filingdesk.models.Client`.

Guards the CT due date against the usual accidents: a Companies House
refresh moving the date while the previous period is still unfiled, or an
auto-recalculation trampling an accountant's manual override.

All helpers return an updated copy of the client; the input is never mutated.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from .dates import add_days, add_years, coerce_date, format_uk_date, london_now, london_today
from .models import Client, CTStatus, DueSource
from .settings import settings
from .statutory import corporation_tax_due, ct_due_for_year_end, last_accounts_date, year_end

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CTUpdateDecision:
    should_update: bool
    reason: str
    new_due: Optional[date] = None
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    warnings: List[str] = field(default_factory=list)


def _period_start(period_end: date) -> Optional[date]:
    """First day of the twelve-month period ending on *period_end*."""
    previous_end = add_years(period_end, -1)
    return add_days(previous_end, 1) if previous_end else None


def ct_status(client: Client, today: Optional[date] = None) -> CTStatus:
    """FILED sticks; otherwise OVERDUE once the due date has passed."""
    if client.corporation_tax_status is CTStatus.FILED:
        return CTStatus.FILED
    due = coerce_date(client.next_corporation_tax_due)
    if due is None:
        return CTStatus.PENDING
    today = today or london_today()
    return CTStatus.OVERDUE if due < today else CTStatus.PENDING


def ct_period(source: Any, today: Optional[date] = None) -> Tuple[Optional[date], Optional[date]]:
    """Start and end of the CT accounting period ending at the resolved year end."""
    end = year_end(source, today)
    if end is None:
        return None, None
    last_accounts = last_accounts_date(source)
    if last_accounts is not None:
        return add_days(last_accounts, 1), end
    return _period_start(end), end


def should_update_ct_due(
    client: Client,
    new_year_end: date,
    companies_house_updated: bool = False,
) -> CTUpdateDecision:
    """Decide whether a fresh year end may replace the stored CT due date."""
    if client.ct_due_source is DueSource.MANUAL and client.manual_ct_due_override:
        return CTUpdateDecision(
            should_update=False,
            reason="Manual override active",
            warnings=["Manual CT due override exists - auto-update skipped"],
        )

    new_due = ct_due_for_year_end(new_year_end)
    if new_due is None:
        return CTUpdateDecision(
            should_update=False,
            reason="Year end has no representable CT due date",
            warnings=[f"Year end {format_uk_date(new_year_end)} is out of range"],
        )
    existing = coerce_date(client.next_corporation_tax_due)
    if client.corporation_tax_status is CTStatus.PENDING and existing is not None:
        shift = abs((new_due - existing).days)
        if shift > settings.ct_change_warning_days and companies_house_updated:
            warning = (
                f"Previous CT period (due {format_uk_date(existing)}) is still PENDING. "
                f"New calculation would be {format_uk_date(new_due)}. "
                "Please verify if previous CT was filed before updating."
            )
            logger.warning(f"{client.code}: {warning}")
            return CTUpdateDecision(
                should_update=False,
                reason="Previous CT period still pending with significant date change",
                warnings=[warning],
            )

    return CTUpdateDecision(
        should_update=True,
        reason="Safe to update CT due date",
        new_due=new_due,
        period_start=_period_start(new_year_end),
        period_end=new_year_end,
    )


def mark_ct_filed(
    client: Client,
    filed_by: str,
    next_year_end: Optional[date] = None,
    now: Optional[datetime] = None,
) -> Client:
    """Mark the current period filed and roll forward to *next_year_end* if given."""
    next_due = next_start = None
    if next_year_end is not None:
        next_due = ct_due_for_year_end(next_year_end)
        if client.corporation_tax_period_end is not None:
            next_start = add_days(client.corporation_tax_period_end, 1)
    logger.info(f"CT marked filed for {client.code} by {filed_by}")
    return dataclasses.replace(
        client,
        corporation_tax_status=CTStatus.FILED,
        next_corporation_tax_due=next_due,
        corporation_tax_period_start=next_start,
        corporation_tax_period_end=next_year_end,
        manual_ct_due_override=None,
        ct_due_source=DueSource.AUTO,
        last_ct_status_update=now or london_now(),
        ct_status_updated_by=filed_by,
    )


def set_manual_ct_due(
    client: Client,
    due: date,
    updated_by: str,
    now: Optional[datetime] = None,
) -> Client:
    logger.info(f"Manual CT due {due.isoformat()} set for {client.code} by {updated_by}")
    return dataclasses.replace(
        client,
        next_corporation_tax_due=due,
        manual_ct_due_override=due,
        ct_due_source=DueSource.MANUAL,
        last_ct_status_update=now or london_now(),
        ct_status_updated_by=updated_by,
    )


def reset_to_auto_ct_due(
    client: Client,
    updated_by: str,
    today: Optional[date] = None,
    now: Optional[datetime] = None,
) -> Client:
    """Drop any manual override and go back to the computed CT due date."""
    cleared = dataclasses.replace(client, manual_ct_due_override=None)
    return dataclasses.replace(
        cleared,
        next_corporation_tax_due=corporation_tax_due(cleared, today),
        ct_due_source=DueSource.AUTO,
        last_ct_status_update=now or london_now(),
        ct_status_updated_by=updated_by,
    )


def ct_summary(client: Client) -> Dict[str, Any]:
    warnings: List[str] = []
    if client.corporation_tax_status is CTStatus.OVERDUE:
        warnings.append("Corporation Tax is overdue")
    if client.ct_due_source is DueSource.MANUAL:
        warnings.append("CT due date has been manually overridden")

    start, end = client.corporation_tax_period_start, client.corporation_tax_period_end
    if start and end:
        period = f"{format_uk_date(start, 'short')} to {format_uk_date(end, 'short')}"
    else:
        period = "Period not set"

    return {
        "status": client.corporation_tax_status.name,
        "due_date": format_uk_date(client.next_corporation_tax_due, "short"),
        "source": client.ct_due_source.name,
        "period": period,
        "warnings": warnings,
    }
