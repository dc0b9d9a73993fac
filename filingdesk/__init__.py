"""
FilingDesk
==========

Statutory filing deadlines and workflow tracking for a UK accounting
practice: company year ends, accounts / corporation-tax / confirmation
statement due dates, VAT quarters and the stage each piece of work is at.

Import structure
----------------
`import filingdesk` imports no sub-modules.  The date, stage and deadline
modules need only *pydantic-settings* and *python-dateutil*; *sqlmodel* is
only pulled in when you access :pymod:`filingdesk.db`,
:pymod:`filingdesk.portfolio_db` or :pymod:`filingdesk.cli`.

Sub-modules
~~~~~~~~~~~
- :pymod:`filingdesk.models`           – ``Client`` dataclass + enums
- :pymod:`filingdesk.dates`            – date coercion and UK formatting
- :pymod:`filingdesk.statutory`        – year end and statutory due dates
- :pymod:`filingdesk.ct_tracking`      – corporation-tax status bookkeeping
- :pymod:`filingdesk.stages`           – VAT / Ltd / non-Ltd stage registry
- :pymod:`filingdesk.lifecycle`        – ``advance_stage`` on a workflow instance
- :pymod:`filingdesk.vat`              – VAT quarter arithmetic
- :pymod:`filingdesk.deadlines`        – deadline listings and stats
- :pymod:`filingdesk.companies_house`  – company profile -> ``Client``
- :pymod:`filingdesk.portfolio`        – ``ClientRegistry`` in-memory registry
- :pymod:`filingdesk.db`               – SQLite persistence (SQLModel)

Quick start
-----------
>>> from datetime import date
>>> from filingdesk.statutory import year_end, corporation_tax_due
>>> client = {"accountingReferenceDate": {"day": 31, "month": 3}}
>>> year_end(client, today=date(2024, 6, 1))
datetime.date(2025, 3, 31)
>>> corporation_tax_due(client, today=date(2024, 6, 1))
datetime.date(2026, 3, 31)

"""

__all__ = [
    "models",
    "dates",
    "statutory",
    "ct_tracking",
    "stages",
    "lifecycle",
    "vat",
    "deadlines",
    "companies_house",
    "portfolio",
    "db",
    "portfolio_db",
]

__version__ = "0.1.0"
