"""
tests/test_companies_house.py
=============================

Unit tests for mapping Companies House payloads to clients.  No network
calls: payloads are trimmed copies of real ``/company/{number}`` responses.
"""

from datetime import date

import pytest

from filingdesk.companies_house import (
    best_contact_name,
    client_from_profile,
    format_company_number,
    is_valid_company_number,
    map_company_type,
)
from filingdesk.models import AccountingReferenceDate, CompanyType

PROFILE = {
    "company_number": "1234567",
    "company_name": "ACME TRADING LTD",
    "type": "ltd",
    "date_of_creation": "2015-01-15",
    "accounts": {
        "accounting_reference_date": {"day": "31", "month": "03"},
        "last_accounts": {"made_up_to": "2024-03-31"},
    },
    "confirmation_statement": {"last_made_up_to": "2024-01-15"},
}


def test_client_from_profile():
    client = client_from_profile(PROFILE, "acm-001", today=date(2024, 6, 1), assigned_user="sam")
    assert client.code == "ACM-001"
    assert client.company_number == "01234567"
    assert client.company_type is CompanyType.LIMITED_COMPANY
    assert client.accounting_reference_date == AccountingReferenceDate(31, 3)
    assert client.incorporation_date == date(2015, 1, 15)
    assert client.next_year_end == date(2025, 3, 31)
    assert client.next_accounts_due == date(2025, 12, 31)
    assert client.next_corporation_tax_due == date(2026, 3, 31)
    assert client.next_confirmation_due == date(2025, 1, 29)
    assert client.assigned_user == "sam"


def test_profile_without_accounts_history():
    profile = {"company_number": "SC654321", "company_name": "New Co", "type": "llp"}
    client = client_from_profile(profile, "NEW-1", today=date(2024, 6, 1))
    assert client.company_type is CompanyType.NON_LIMITED_COMPANY
    assert client.next_year_end is None
    assert client.next_corporation_tax_due is None


def test_profile_without_number_raises():
    with pytest.raises(ValueError):
        client_from_profile({"company_name": "Ghost Ltd"}, "GH-1")


@pytest.mark.parametrize(
    "ch_type, expected",
    [
        ("ltd", CompanyType.LIMITED_COMPANY),
        ("PLC", CompanyType.LIMITED_COMPANY),
        ("llp", CompanyType.NON_LIMITED_COMPANY),
        ("something-new", CompanyType.NON_LIMITED_COMPANY),
        (None, CompanyType.NON_LIMITED_COMPANY),
    ],
)
def test_map_company_type(ch_type, expected):
    assert map_company_type(ch_type) is expected


def test_company_number_helpers():
    assert is_valid_company_number("01234567")
    assert is_valid_company_number("sc 123456")
    assert not is_valid_company_number("ABC12345")
    assert not is_valid_company_number("12345")
    assert format_company_number(" sc123456 ") == "SC123456"
    assert format_company_number("1234567") == "01234567"


def test_best_contact_name():
    psc = {
        "items": [
            {"name": "Former Owner", "ceased_on": "2020-01-01",
             "natures_of_control": ["ownership-of-shares-75-to-100-percent"]},
            {"name": "Minor Holder", "natures_of_control": ["ownership-of-shares-25-to-50-percent"]},
            {"name": "Majority Holder", "natures_of_control": ["voting-rights-50-to-75-percent"]},
        ]
    }
    officers = {
        "items": [
            {"name": "Resigned Director", "officer_role": "director", "resigned_on": "2021-01-01"},
            {"name": "Company Secretary", "officer_role": "secretary"},
            {"name": "Active Director", "officer_role": "director"},
        ]
    }
    assert best_contact_name(psc, officers, "Acme Ltd") == "Majority Holder"
    assert best_contact_name(None, officers, "Acme Ltd") == "Active Director"
    assert best_contact_name(None, {"items": officers["items"][:2]}, "Acme Ltd") == "Company Secretary"
    assert best_contact_name(None, None, "Acme Ltd") == "Acme Ltd"
