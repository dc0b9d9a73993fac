"""
tests/test_vat.py
=================

Unit tests for VAT quarter arithmetic.
"""

from datetime import date

import pytest

from filingdesk.vat import (
    days_until_vat_deadline,
    format_quarter_period,
    is_vat_overdue,
    next_vat_quarter,
    parse_quarter_period,
    vat_quarter,
)


def test_quarter_containing_date():
    q = vat_quarter("3_6_9_12", date(2024, 5, 10))
    assert (q.start, q.end) == (date(2024, 4, 1), date(2024, 6, 30))
    assert q.filing_due == date(2024, 7, 31)
    assert q.quarter_period == "2024-04-01_to_2024-06-30"
    assert q.group == "3_6_9_12"


def test_quarter_end_month_is_inclusive():
    assert vat_quarter("3_6_9_12", date(2024, 3, 31)).end == date(2024, 3, 31)


def test_quarter_wraps_into_next_year():
    q = vat_quarter("1_4_7_10", date(2024, 11, 2))
    assert q.start == date(2024, 11, 1)
    assert q.end == date(2025, 1, 31)
    assert q.filing_due == date(2025, 2, 28)
    assert format_quarter_period(q.quarter_period) == "Nov 2024 - Jan 2025"


def test_unknown_group_raises():
    with pytest.raises(ValueError):
        vat_quarter("1_2_3_4", date(2024, 1, 1))


def test_next_quarter():
    q = next_vat_quarter("2_5_8_11", date(2024, 5, 31))
    assert q.end == date(2024, 8, 31)
    assert q.filing_due == date(2024, 9, 30)


def test_overdue_and_days_left():
    due = date(2024, 7, 31)
    assert not is_vat_overdue(due, date(2024, 7, 31))
    assert is_vat_overdue(due, date(2024, 8, 1))
    assert not is_vat_overdue(None, date(2024, 8, 1))
    assert days_until_vat_deadline(due, date(2024, 7, 21)) == 10


def test_format_quarter_period_same_year():
    assert format_quarter_period("2024-01-01_to_2024-03-31") == "Jan - Mar 2024"


@pytest.mark.parametrize(
    "bad", ["", "garbage", "2024-01-01_to_", "2024-01-01_to_2024-13-01", "2024-03-31_to_2024-01-01"]
)
def test_parse_quarter_period_rejects(bad):
    with pytest.raises(ValueError):
        parse_quarter_period(bad)
