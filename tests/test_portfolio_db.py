"""
tests/test_portfolio_db.py
==========================

Integration-style tests for the SQLite-backed registry and CRUD helpers.

These mirror `test_portfolio.py` but use DBClientRegistry against an
in-memory database (see the ``session`` fixture in conftest.py).
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from filingdesk.db import (
    get_client,
    get_workflow,
    refresh_cached_dates,
    save_workflow,
    upsert_client,
    workflows_for_client,
)
from filingdesk.lifecycle import advance_stage, new_workflow
from filingdesk.models import AccountingReferenceDate, Client, CompanyType, CTStatus, DueSource
from filingdesk.portfolio_db import DBClientRegistry
from filingdesk.stages import WorkflowType

T0 = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)


def _client(**kw):
    return Client(
        "ACM-001",
        "Acme Ltd",
        company_number="01234567",
        accounting_reference_date=AccountingReferenceDate(31, 3),
        last_confirmation_made_up_to=date(2024, 1, 15),
        **kw,
    )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------
def test_add_and_find_by_type(session):
    reg = DBClientRegistry(session)
    client = _client()
    reg.add(client)
    reg.add(Client("SOL-002", "J Smith", company_type=CompanyType.NON_LIMITED_COMPANY, is_active=False))

    assert reg.find_by_type(CompanyType.LIMITED_COMPANY) == [client]
    assert [c.code for c in reg.active()] == ["ACM-001"]
    assert len(reg) == 2
    assert [c.code for c in reg] == ["ACM-001", "SOL-002"]


def test_get_missing_raises(session):
    with pytest.raises(KeyError):
        DBClientRegistry(session).get("NOPE")


def test_round_trip_keeps_every_field(session):
    client = _client(
        manual_ct_due_override=date(2026, 1, 15),
        ct_due_source=DueSource.MANUAL,
        corporation_tax_status=CTStatus.OVERDUE,
        next_year_end=date(2025, 3, 31),
        assigned_user="sam",
    )
    upsert_client(session, client)
    assert get_client(session, "acm-001") == client


def test_upsert_overwrites(session):
    upsert_client(session, _client())
    upsert_client(session, _client(assigned_user="priya"))
    assert get_client(session, "ACM-001").assigned_user == "priya"


def test_refresh_cached_dates(session):
    upsert_client(session, _client())
    assert refresh_cached_dates(session, date(2024, 6, 1)) == 1
    stored = get_client(session, "ACM-001")
    assert stored.next_year_end == date(2025, 3, 31)
    assert stored.next_corporation_tax_due == date(2026, 3, 31)
    assert stored.next_confirmation_due == date(2025, 1, 29)
    # second pass finds nothing to change
    assert refresh_cached_dates(session, date(2024, 6, 1)) == 0


def test_refresh_survives_end_of_calendar_row(session):
    upsert_client(session, Client("END-1", "Forever Ltd", last_accounts_made_up_to=date(9999, 12, 31)))
    upsert_client(session, _client())
    assert refresh_cached_dates(session, date(2024, 6, 1)) == 1
    assert get_client(session, "ACM-001").next_year_end == date(2025, 3, 31)
    assert get_client(session, "END-1").next_year_end is None


# ---------------------------------------------------------------------------
# Workflows
# ---------------------------------------------------------------------------
def test_workflow_round_trip(session):
    wf = new_workflow(WorkflowType.VAT, "ACM-001", "2024-01-01_to_2024-03-31", "sam")
    advance_stage(wf, "PAPERWORK_CHASED", "sam", at=T0)
    advance_stage(wf, "PAPERWORK_RECEIVED", "sam", at=T0 + timedelta(days=2))

    wf_id = save_workflow(session, wf)
    assert wf.id == wf_id

    loaded = get_workflow(session, wf_id)
    assert loaded == wf
    assert loaded.milestones["PAPERWORK_CHASED"].at == T0
    assert loaded.history[-1].days_in_previous_stage == 2


def test_workflow_update_and_listing(session):
    wf = new_workflow(WorkflowType.LTD, "ACM-001")
    save_workflow(session, wf)
    advance_stage(wf, "FILED_TO_HMRC", at=T0)
    save_workflow(session, wf)
    save_workflow(session, new_workflow(WorkflowType.VAT, "ACM-001"))
    save_workflow(session, new_workflow(WorkflowType.VAT, "OTHER-9"))

    ltd = workflows_for_client(session, "acm-001", WorkflowType.LTD)
    assert len(ltd) == 1
    assert ltd[0].is_completed
    assert ltd[0].current_stage == "FILED_TO_HMRC"
    assert len(workflows_for_client(session, "ACM-001")) == 2
    assert get_workflow(session, 999) is None
