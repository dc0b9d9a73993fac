"""
tests/test_ct_tracking.py
=========================

Unit tests for corporation-tax tracking helpers.
"""

from datetime import date, datetime, timezone

from filingdesk.ct_tracking import (
    ct_period,
    ct_status,
    ct_summary,
    mark_ct_filed,
    reset_to_auto_ct_due,
    set_manual_ct_due,
    should_update_ct_due,
)
from filingdesk.models import AccountingReferenceDate, Client, CTStatus, DueSource
from filingdesk.statutory import corporation_tax_due, ct_due_for_year_end

TODAY = date(2024, 6, 1)
NOW = datetime(2024, 6, 1, 9, 30, tzinfo=timezone.utc)


def _client(**kw):
    kw.setdefault("accounting_reference_date", AccountingReferenceDate(31, 3))
    return Client("CT-1", "Taxing Ltd", **kw)


def test_ct_status():
    assert ct_status(_client(), TODAY) is CTStatus.PENDING
    assert ct_status(_client(next_corporation_tax_due=date(2024, 5, 31)), TODAY) is CTStatus.OVERDUE
    assert ct_status(_client(next_corporation_tax_due=date(2024, 6, 1)), TODAY) is CTStatus.PENDING
    filed = _client(next_corporation_tax_due=date(2020, 1, 1), corporation_tax_status=CTStatus.FILED)
    assert ct_status(filed, TODAY) is CTStatus.FILED


def test_ct_period_from_reference_date():
    assert ct_period(_client(), TODAY) == (date(2024, 4, 1), date(2025, 3, 31))


def test_ct_period_from_last_accounts():
    client = _client(last_accounts_made_up_to=date(2023, 12, 31))
    assert ct_period(client, TODAY) == (date(2024, 1, 1), date(2024, 12, 31))
    assert ct_period(Client("X", "Blank Ltd"), TODAY) == (None, None)


def test_ct_period_reads_mapping_keys():
    assert ct_period({"lastAccountsMadeUpTo": "2024-02-29"}, TODAY) == (date(2024, 3, 1), date(2025, 2, 28))
    assert ct_period({"last_accounts_made_up_to": date(2024, 2, 29)}, TODAY) == (
        date(2024, 3, 1),
        date(2025, 2, 28),
    )
    assert ct_period({"lastAccountsMadeUpTo": "9999-12-31"}, TODAY) == (None, None)


def test_should_update_blocked_by_manual_override():
    client = _client(manual_ct_due_override=date(2026, 1, 1), ct_due_source=DueSource.MANUAL)
    decision = should_update_ct_due(client, date(2025, 3, 31))
    assert not decision.should_update
    assert decision.warnings


def test_should_update_blocked_while_previous_period_pending():
    client = _client(next_corporation_tax_due=date(2025, 3, 31))
    decision = should_update_ct_due(client, date(2025, 12, 31), companies_house_updated=True)
    assert not decision.should_update
    assert "still PENDING" in decision.warnings[0]


def test_should_update_allowed():
    client = _client(next_corporation_tax_due=date(2025, 3, 31))
    decision = should_update_ct_due(client, date(2025, 12, 31))
    assert decision.should_update
    assert decision.new_due == date(2026, 12, 31)
    assert (decision.period_start, decision.period_end) == (date(2025, 1, 1), date(2025, 12, 31))

    small_shift = should_update_ct_due(client, date(2024, 4, 10), companies_house_updated=True)
    assert small_shift.should_update


def test_should_update_uses_the_statutory_ct_due():
    client = _client()
    decision = should_update_ct_due(client, date(2025, 3, 31))
    assert decision.new_due == ct_due_for_year_end(date(2025, 3, 31)) == corporation_tax_due(client, TODAY)

    out_of_range = should_update_ct_due(client, date(9999, 12, 31))
    assert not out_of_range.should_update
    assert out_of_range.new_due is None


def test_mark_ct_filed_rolls_forward():
    client = _client(
        next_corporation_tax_due=date(2025, 3, 31),
        corporation_tax_period_start=date(2023, 4, 1),
        corporation_tax_period_end=date(2024, 3, 31),
        manual_ct_due_override=date(2025, 2, 1),
        ct_due_source=DueSource.MANUAL,
    )
    filed = mark_ct_filed(client, "sam", next_year_end=date(2025, 3, 31), now=NOW)
    assert filed.corporation_tax_status is CTStatus.FILED
    assert filed.next_corporation_tax_due == date(2026, 3, 31)
    assert filed.corporation_tax_period_start == date(2024, 4, 1)
    assert filed.corporation_tax_period_end == date(2025, 3, 31)
    assert filed.manual_ct_due_override is None
    assert filed.ct_due_source is DueSource.AUTO
    assert filed.ct_status_updated_by == "sam"
    assert filed.last_ct_status_update == NOW
    # input untouched
    assert client.corporation_tax_status is CTStatus.PENDING


def test_manual_then_reset_to_auto():
    manual = set_manual_ct_due(_client(), date(2026, 1, 15), "priya", now=NOW)
    assert manual.ct_due_source is DueSource.MANUAL
    assert manual.next_corporation_tax_due == date(2026, 1, 15)

    auto = reset_to_auto_ct_due(manual, "priya", today=TODAY, now=NOW)
    assert auto.ct_due_source is DueSource.AUTO
    assert auto.manual_ct_due_override is None
    assert auto.next_corporation_tax_due == date(2026, 3, 31)


def test_ct_summary():
    client = _client(
        next_corporation_tax_due=date(2026, 1, 15),
        ct_due_source=DueSource.MANUAL,
        corporation_tax_period_start=date(2024, 4, 1),
        corporation_tax_period_end=date(2025, 3, 31),
    )
    summary = ct_summary(client)
    assert summary["status"] == "PENDING"
    assert summary["due_date"] == "15 Jan 2026"
    assert summary["source"] == "MANUAL"
    assert summary["period"] == "01 Apr 2024 to 31 Mar 2025"
    assert summary["warnings"] == ["CT due date has been manually overridden"]
    assert ct_summary(Client("X", "Blank Ltd"))["period"] == "Period not set"
