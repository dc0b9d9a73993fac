"""
filingdesk.models
=================

Dataclasses and enums describing a practice client and the bookkeeping
attached to it.  Nothing here imports a third-party library, so the pure
date and stage modules stay cheap to import.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional


class CompanyType(Enum):
    """Coarse company type used to pick the accounts workflow."""
    LIMITED_COMPANY = "LIMITED_COMPANY"
    NON_LIMITED_COMPANY = "NON_LIMITED_COMPANY"

    def __str__(self) -> str:
        return self.name


class DueSource(Enum):
    """Where a due date came from."""
    AUTO = "AUTO"
    MANUAL = "MANUAL"

    def __str__(self) -> str:
        return self.name


class CTStatus(Enum):
    """Filing state of the current corporation-tax period."""
    PENDING = "PENDING"
    FILED = "FILED"
    OVERDUE = "OVERDUE"

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class AccountingReferenceDate:
    """
    Day/month pair on which a company's accounting year ends.

    29 February is a legal reference date; it falls back to the 28th in
    non-leap years (see :meth:`in_year`).
    """
    day: int
    month: int

    def is_valid(self) -> bool:
        if not (1 <= self.month <= 12):
            return False
        # 2000 is a leap year, so 29/02 passes here
        return 1 <= self.day <= calendar.monthrange(2000, self.month)[1]

    def in_year(self, year: int) -> date:
        """Return this reference date in *year*, clamped to month end."""
        last_day = calendar.monthrange(year, self.month)[1]
        return date(year, self.month, min(self.day, last_day))

    def __str__(self) -> str:
        return f"{self.day:02d}/{self.month:02d}"


@dataclass
class Client:
    """
    Core record tracked by FilingDesk.

    Parameters
    ----------
    code : str
        Practice client code (e.g. ``"NZ-0042"``); unique key.
    name : str
        Registered company name.
    company_number : str | None
        Companies House number, if the client is incorporated.
    company_type : CompanyType
        Decides between the Ltd and non-Ltd accounts workflow.
    accounting_reference_date : AccountingReferenceDate | None
        Day/month the accounting year ends.
    last_accounts_made_up_to : datetime.date | None
        End of the last period for which accounts were filed.
    incorporation_date : datetime.date | None
        Date of incorporation.
    last_confirmation_made_up_to : datetime.date | None
        Made-up-to date of the last confirmation statement.
    next_year_end, next_accounts_due, next_corporation_tax_due, next_confirmation_due : datetime.date | None
        Cached derived dates; recomputed by
        :func:`filingdesk.statutory.recalculate_cached_dates`.
    manual_ct_due_override : datetime.date | None
        Accountant-entered CT due date; wins over the computed one.
    ct_due_source : DueSource
        ``MANUAL`` while an override is active, otherwise ``AUTO``.
    corporation_tax_status : CTStatus
        Filing state of the current CT period.
    corporation_tax_period_start, corporation_tax_period_end : datetime.date | None
        Bounds of the current CT period.
    last_ct_status_update : datetime.datetime | None
        When the CT tracking fields last changed.
    ct_status_updated_by : str | None
        Who changed them.
    assigned_user : str | None
        Staff member responsible for the client.
    is_active : bool
        Inactive clients are ignored by deadline listings.
    """
    code: str
    name: str
    company_number: Optional[str] = None
    company_type: CompanyType = CompanyType.LIMITED_COMPANY
    accounting_reference_date: Optional[AccountingReferenceDate] = None
    last_accounts_made_up_to: Optional[date] = None
    incorporation_date: Optional[date] = None
    last_confirmation_made_up_to: Optional[date] = None
    next_year_end: Optional[date] = None
    next_accounts_due: Optional[date] = None
    next_corporation_tax_due: Optional[date] = None
    next_confirmation_due: Optional[date] = None
    manual_ct_due_override: Optional[date] = None
    ct_due_source: DueSource = DueSource.AUTO
    corporation_tax_status: CTStatus = CTStatus.PENDING
    corporation_tax_period_start: Optional[date] = None
    corporation_tax_period_end: Optional[date] = None
    last_ct_status_update: Optional[datetime] = None
    ct_status_updated_by: Optional[str] = None
    assigned_user: Optional[str] = None
    is_active: bool = True

    def __post_init__(self):
        if not self.code or not self.code.strip():
            raise ValueError("client code cannot be empty")
        self.code = self.code.strip().upper()

    @property
    def is_limited(self) -> bool:
        return self.company_type is CompanyType.LIMITED_COMPANY
