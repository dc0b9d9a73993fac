"""
filingdesk.deadlines
====================

Flatten the cached due dates of a set of clients into a single deadline list
for dashboards and the calendar.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional

from .dates import coerce_date, london_today, month_label
from .models import Client
from .settings import settings


class DeadlineKind(Enum):
    ACCOUNTS = "accounts"
    CONFIRMATION = "confirmation"
    CORPORATION_TAX = "corporation-tax"

    def __str__(self) -> str:
        return self.name


# Kind -> cached Client field it is read from
_SOURCES = (
    (DeadlineKind.ACCOUNTS, "next_accounts_due"),
    (DeadlineKind.CONFIRMATION, "next_confirmation_due"),
    (DeadlineKind.CORPORATION_TAX, "next_corporation_tax_due"),
)


@dataclass(frozen=True)
class DeadlineItem:
    id: str
    client_code: str
    client_name: str
    due_date: date
    kind: DeadlineKind
    days_until_due: int
    is_overdue: bool
    company_number: Optional[str] = None
    assigned_user: Optional[str] = None


def collect_deadlines(
    clients: Iterable[Client],
    today: Optional[date] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    assigned_user: Optional[str] = None,
) -> List[DeadlineItem]:
    """
    One :class:`DeadlineItem` per cached due date of every active client.

    Parameters
    ----------
    clients : iterable of Client
        Inactive clients are skipped.
    today : datetime.date, optional
        Reference date for ``days_until_due`` / ``is_overdue``.
    start, end : datetime.date, optional
        Inclusive window on the due date.
    assigned_user : str, optional
        Only clients assigned to this user.
    """
    today = today or london_today()
    items: List[DeadlineItem] = []
    for client in clients:
        if not client.is_active:
            continue
        if assigned_user is not None and client.assigned_user != assigned_user:
            continue
        for kind, attr in _SOURCES:
            due = coerce_date(getattr(client, attr))
            if due is None:
                continue
            if (start and due < start) or (end and due > end):
                continue
            days = (due - today).days
            items.append(
                DeadlineItem(
                    id=f"{client.code}-{kind.value}",
                    client_code=client.code,
                    client_name=client.name,
                    company_number=client.company_number,
                    due_date=due,
                    kind=kind,
                    assigned_user=client.assigned_user,
                    days_until_due=days,
                    is_overdue=days < 0,
                )
            )
    return sorted(items, key=lambda item: item.due_date)


def upcoming_deadlines(
    items: Iterable[DeadlineItem],
    today: Optional[date] = None,
    days: Optional[int] = None,
) -> List[DeadlineItem]:
    today = today or london_today()
    horizon = today + timedelta(days=settings.upcoming_window_days if days is None else days)
    return sorted(
        (item for item in items if today <= item.due_date <= horizon),
        key=lambda item: item.due_date,
    )


def overdue_deadlines(items: Iterable[DeadlineItem]) -> List[DeadlineItem]:
    """Overdue items, most overdue (earliest due) first."""
    return sorted((item for item in items if item.is_overdue), key=lambda item: item.due_date)


def group_by_month(items: Iterable[DeadlineItem]) -> Dict[str, List[DeadlineItem]]:
    grouped: Dict[str, List[DeadlineItem]] = OrderedDict()
    for item in sorted(items, key=lambda item: item.due_date):
        grouped.setdefault(month_label(item.due_date), []).append(item)
    return grouped


def deadline_stats(items: Iterable[DeadlineItem], today: Optional[date] = None) -> Dict[str, int]:
    today = today or london_today()
    items = list(items)
    ahead = [(item.due_date - today).days for item in items]
    return {
        "total": len(items),
        "overdue": sum(1 for item in items if item.is_overdue),
        "due_this_week": sum(1 for d in ahead if 0 <= d <= 7),
        "due_this_month": sum(1 for d in ahead if 0 <= d <= 30),
        "accounts": sum(1 for item in items if item.kind is DeadlineKind.ACCOUNTS),
        "confirmations": sum(1 for item in items if item.kind is DeadlineKind.CONFIRMATION),
        "corporation_tax": sum(1 for item in items if item.kind is DeadlineKind.CORPORATION_TAX),
    }
