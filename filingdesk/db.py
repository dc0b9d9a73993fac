"""
filingdesk.db
=============

SQLite persistence layer for FilingDesk.

This module exposes:

* ``engine`` – a global SQLModel engine pointing at ``settings.DB_URL``
* ``SessionLocal`` – a session factory used via ``with SessionLocal() as s:``
* ``create_all()`` – helper to create tables at first run
* ``ClientRecord`` / ``WorkflowRecord`` tables with converters to the plain
  dataclasses in :mod:`filingdesk.models` and :mod:`filingdesk.lifecycle`
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Column
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Field, Session, SQLModel, create_engine, select

from .dates import london_today
from .lifecycle import Milestone, StageChange, WorkflowInstance
from .models import AccountingReferenceDate, Client, CompanyType, CTStatus, DueSource
from .settings import DB_ECHO, DB_URL
from .stages import WorkflowType
from .statutory import recalculate_cached_dates

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------
def make_engine(url: str = DB_URL, echo: bool = DB_ECHO) -> Engine:
    """SQLite engine; in-memory URLs share one connection so tables persist."""
    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url, echo=echo)


engine = make_engine()


# ---------------------------------------------------------------------------
# Session factory
# ---------------------------------------------------------------------------
def SessionLocal() -> Session:  # noqa: N802
    """Return a new Session bound to the global engine."""
    return Session(engine)


# ---------------------------------------------------------------------------
# ORM model that mirrors filingdesk.models.Client
# ---------------------------------------------------------------------------
class ClientRecord(SQLModel, table=True):
    """
    SQLite-backed representation of a :class:`filingdesk.models.Client`.

    The accounting reference date is split into ``ard_day`` / ``ard_month``
    so both halves stay queryable.
    """

    __tablename__ = "clients"

    code: str = Field(primary_key=True, index=True)
    name: str
    company_number: Optional[str] = Field(default=None, index=True)
    company_type: CompanyType = CompanyType.LIMITED_COMPANY
    ard_day: Optional[int] = None
    ard_month: Optional[int] = None
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
    assigned_user: Optional[str] = Field(default=None, index=True)
    is_active: bool = True

    # ---------------------------------------------------------------------
    # Converters
    # ---------------------------------------------------------------------
    @classmethod
    def from_client(cls, client: Client) -> "ClientRecord":
        """Create a DB row from an in-memory client."""
        ard = client.accounting_reference_date
        return cls(
            code=client.code,
            name=client.name,
            company_number=client.company_number,
            company_type=client.company_type,
            ard_day=ard.day if ard else None,
            ard_month=ard.month if ard else None,
            last_accounts_made_up_to=client.last_accounts_made_up_to,
            incorporation_date=client.incorporation_date,
            last_confirmation_made_up_to=client.last_confirmation_made_up_to,
            next_year_end=client.next_year_end,
            next_accounts_due=client.next_accounts_due,
            next_corporation_tax_due=client.next_corporation_tax_due,
            next_confirmation_due=client.next_confirmation_due,
            manual_ct_due_override=client.manual_ct_due_override,
            ct_due_source=client.ct_due_source,
            corporation_tax_status=client.corporation_tax_status,
            corporation_tax_period_start=client.corporation_tax_period_start,
            corporation_tax_period_end=client.corporation_tax_period_end,
            last_ct_status_update=client.last_ct_status_update,
            ct_status_updated_by=client.ct_status_updated_by,
            assigned_user=client.assigned_user,
            is_active=client.is_active,
        )

    def to_client(self) -> Client:
        """Convert the DB row back into a plain Client."""
        ard = None
        if self.ard_day is not None and self.ard_month is not None:
            ard = AccountingReferenceDate(day=self.ard_day, month=self.ard_month)
        return Client(
            code=self.code,
            name=self.name,
            company_number=self.company_number,
            company_type=self.company_type,
            accounting_reference_date=ard,
            last_accounts_made_up_to=self.last_accounts_made_up_to,
            incorporation_date=self.incorporation_date,
            last_confirmation_made_up_to=self.last_confirmation_made_up_to,
            next_year_end=self.next_year_end,
            next_accounts_due=self.next_accounts_due,
            next_corporation_tax_due=self.next_corporation_tax_due,
            next_confirmation_due=self.next_confirmation_due,
            manual_ct_due_override=self.manual_ct_due_override,
            ct_due_source=self.ct_due_source,
            corporation_tax_status=self.corporation_tax_status,
            corporation_tax_period_start=self.corporation_tax_period_start,
            corporation_tax_period_end=self.corporation_tax_period_end,
            last_ct_status_update=self.last_ct_status_update,
            ct_status_updated_by=self.ct_status_updated_by,
            assigned_user=self.assigned_user,
            is_active=self.is_active,
        )


# ---------------------------------------------------------------------------
# ORM model that mirrors filingdesk.lifecycle.WorkflowInstance
# ---------------------------------------------------------------------------
def _dump_milestones(milestones: Dict[str, Milestone]) -> Dict[str, Dict[str, Any]]:
    return {code: {"at": m.at.isoformat(), "by": m.by} for code, m in milestones.items()}


def _load_milestones(raw: Optional[Dict[str, Dict[str, Any]]]) -> Dict[str, Milestone]:
    return {
        code: Milestone(at=datetime.fromisoformat(m["at"]), by=m.get("by"))
        for code, m in (raw or {}).items()
    }


def _dump_history(history: List[StageChange]) -> List[Dict[str, Any]]:
    return [
        {
            "from_stage": h.from_stage,
            "to_stage": h.to_stage,
            "at": h.at.isoformat(),
            "days_in_previous_stage": h.days_in_previous_stage,
            "user_name": h.user_name,
            "notes": h.notes,
        }
        for h in history
    ]


def _load_history(raw: Optional[List[Dict[str, Any]]]) -> List[StageChange]:
    return [
        StageChange(
            from_stage=h.get("from_stage"),
            to_stage=h["to_stage"],
            at=datetime.fromisoformat(h["at"]),
            days_in_previous_stage=h.get("days_in_previous_stage"),
            user_name=h.get("user_name"),
            notes=h.get("notes"),
        )
        for h in raw or []
    ]


class WorkflowRecord(SQLModel, table=True):
    """One VAT quarter / accounts period; milestones and history are JSON."""

    __tablename__ = "workflows"

    id: Optional[int] = Field(default=None, primary_key=True)
    client_code: Optional[str] = Field(default=None, index=True)
    workflow_type: WorkflowType
    current_stage: str
    period_label: Optional[str] = None
    assigned_user: Optional[str] = None
    is_completed: bool = False
    milestones: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    history: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))

    @classmethod
    def from_instance(cls, wf: WorkflowInstance) -> "WorkflowRecord":
        return cls(
            id=wf.id,
            client_code=wf.client_code,
            workflow_type=wf.workflow_type,
            current_stage=wf.current_stage,
            period_label=wf.period_label,
            assigned_user=wf.assigned_user,
            is_completed=wf.is_completed,
            milestones=_dump_milestones(wf.milestones),
            history=_dump_history(wf.history),
        )

    def to_instance(self) -> WorkflowInstance:
        return WorkflowInstance(
            id=self.id,
            client_code=self.client_code,
            workflow_type=self.workflow_type,
            current_stage=self.current_stage,
            period_label=self.period_label,
            assigned_user=self.assigned_user,
            is_completed=self.is_completed,
            milestones=_load_milestones(self.milestones),
            history=_load_history(self.history),
        )


# ---------------------------------------------------------------------------
# Convenience CRUD helpers
# ---------------------------------------------------------------------------
def upsert_client(s: Session, client: Client) -> None:
    """Insert or update a client row."""
    s.merge(ClientRecord.from_client(client))
    s.commit()


def get_client(s: Session, code: str) -> Optional[Client]:
    """Return a client by code or *None* if missing."""
    row = s.get(ClientRecord, code.strip().upper())
    return row.to_client() if row else None


def all_clients(s: Session) -> List[Client]:
    """Return every client in the database, ordered by code."""
    rows = s.exec(select(ClientRecord).order_by(ClientRecord.code)).all()
    return [row.to_client() for row in rows]


def save_workflow(s: Session, wf: WorkflowInstance) -> int:
    """Insert or update a workflow; assigns ``wf.id`` on first save."""
    row = WorkflowRecord.from_instance(wf)
    if wf.id is None:
        s.add(row)
    else:
        row = s.merge(row)
    s.commit()
    s.refresh(row)
    wf.id = row.id
    return row.id


def get_workflow(s: Session, workflow_id: int) -> Optional[WorkflowInstance]:
    row = s.get(WorkflowRecord, workflow_id)
    return row.to_instance() if row else None


def workflows_for_client(
    s: Session,
    client_code: str,
    workflow_type: Optional[WorkflowType] = None,
) -> List[WorkflowInstance]:
    stmt = select(WorkflowRecord).where(WorkflowRecord.client_code == client_code.strip().upper())
    if workflow_type is not None:
        stmt = stmt.where(WorkflowRecord.workflow_type == workflow_type)
    rows = s.exec(stmt.order_by(WorkflowRecord.id)).all()
    return [row.to_instance() for row in rows]


def refresh_cached_dates(s: Session, today: Optional[date] = None) -> int:
    """Recompute cached due dates for every client; return how many changed."""
    today = today or london_today()
    changed = 0
    for client in all_clients(s):
        updated = recalculate_cached_dates(client, today)
        if updated != client:
            s.merge(ClientRecord.from_client(updated))
            changed += 1
    s.commit()
    logger.info(f"Refreshed cached dates: {changed} client(s) updated")
    return changed


# ---------------------------------------------------------------------------
# Utility: create tables
# ---------------------------------------------------------------------------
def create_all(bind: Optional[Engine] = None) -> None:
    """Create all tables (safe if they already exist)."""
    SQLModel.metadata.create_all(bind or engine)


# ---------------------------------------------------------------------------
# Lightweight CLI
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    """
    Quick bootstrap helper.

    Examples
    --------
    $ python -m filingdesk.db --create     # first-time table creation
    $ python -m filingdesk.db --refresh    # recompute cached due dates
    """
    import argparse

    parser = argparse.ArgumentParser(prog="python -m filingdesk.db")
    parser.add_argument("--create", action="store_true", help="create tables")
    parser.add_argument("--refresh", action="store_true", help="recompute cached due dates")
    args = parser.parse_args()

    if args.create:
        create_all()
        print("✅ filingdesk schema initialised")

    if args.refresh:
        with SessionLocal() as session:
            print(f"✅ {refresh_cached_dates(session)} client(s) updated")
