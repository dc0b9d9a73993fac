#!/usr/bin/env python
"""
Seed database with sample clients for testing.

Creates a handful of Ltd and non-Ltd clients, computes their cached due
dates and stores them, so ``filingdesk deadlines`` has something to show.
"""

import json
from datetime import date

from filingdesk.companies_house import client_from_profile
from filingdesk.models import AccountingReferenceDate, Client, CompanyType
from filingdesk.portfolio_db import DBClientRegistry
from filingdesk.statutory import recalculate_cached_dates

# Sample clients with different reference dates and filing histories
SAMPLE_CLIENTS = [
    Client(
        code="ACM-001",
        name="Acme Trading Ltd",
        company_number="01234567",
        accounting_reference_date=AccountingReferenceDate(31, 3),
        last_accounts_made_up_to=date(2024, 3, 31),
        incorporation_date=date(2015, 1, 15),
        last_confirmation_made_up_to=date(2024, 1, 15),
        assigned_user="sam",
    ),
    Client(
        code="WID-002",
        name="Widget Industries Ltd",
        company_number="SC123456",
        accounting_reference_date=AccountingReferenceDate(31, 12),
        incorporation_date=date(2019, 6, 22),
        last_confirmation_made_up_to=date(2024, 6, 22),
        assigned_user="priya",
    ),
    Client(
        code="LEA-003",
        name="Leap Year Holdings Ltd",
        company_number="09876543",
        accounting_reference_date=AccountingReferenceDate(29, 2),
        incorporation_date=date(2020, 2, 29),
        assigned_user="sam",
    ),
    Client(
        code="SOL-004",
        name="J Smith (Sole Trader)",
        company_type=CompanyType.NON_LIMITED_COMPANY,
        assigned_user="priya",
    ),
    Client(
        code="OLD-005",
        name="Legacy Systems Ltd",
        company_number="04444444",
        accounting_reference_date=AccountingReferenceDate(30, 9),
        last_accounts_made_up_to=date(2021, 9, 30),
        is_active=False,
    ),
]

# Add clients from a saved Companies House profile dump if available
try:
    with open("sample_profiles.json", "r") as f:
        sample_profiles = json.load(f)

    for i, profile in enumerate(sample_profiles, start=1):
        try:
            SAMPLE_CLIENTS.append(client_from_profile(profile, code=f"CH-{i:03d}"))
        except ValueError as exc:
            print(f"Skipped profile #{i}: {exc}")
except (FileNotFoundError, json.JSONDecodeError):
    # Continue with default sample clients
    pass


def seed_database():
    """Add sample clients to the database."""
    registry = DBClientRegistry()

    for client in SAMPLE_CLIENTS:
        client = recalculate_cached_dates(client)
        registry.add(client)
        print(f"Added: {client.code} {client.name} (year end {client.next_year_end or '—'})")

    print(f"\nAdded {len(SAMPLE_CLIENTS)} clients to the database!")


if __name__ == "__main__":
    # Initialize DB if needed
    from filingdesk.db import create_all
    print("Ensuring database tables exist...")
    create_all()

    print("Seeding database with sample clients...")
    seed_database()

    print("\nDone! You can now list deadlines with:")
    print("filingdesk deadlines --days 90")
