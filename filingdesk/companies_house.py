"""
filingdesk.companies_house
==========================

Turn Companies House company-profile payloads into :class:`Client` records.

Only the mapping lives here; fetching the JSON is left to the caller.
"""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any, Dict, Mapping, Optional

from .dates import coerce_date, parse_reference_date
from .models import Client, CompanyType
from .statutory import recalculate_cached_dates

logger = logging.getLogger(__name__)

COMPANY_NUMBER_RE = re.compile(r"^[A-Z]{0,2}\d{6,8}$")

# Companies House ``type`` -> our coarse company type
COMPANY_TYPES: Dict[str, CompanyType] = {
    "ltd": CompanyType.LIMITED_COMPANY,
    "plc": CompanyType.LIMITED_COMPANY,
    "llp": CompanyType.NON_LIMITED_COMPANY,
    "partnership": CompanyType.NON_LIMITED_COMPANY,
    "sole-trader": CompanyType.NON_LIMITED_COMPANY,
    "private-unlimited": CompanyType.NON_LIMITED_COMPANY,
    "private-limited-guarant-nsc": CompanyType.NON_LIMITED_COMPANY,
    "private-limited-guarant-nsc-limited-exemption": CompanyType.NON_LIMITED_COMPANY,
    "other": CompanyType.NON_LIMITED_COMPANY,
}

# PSC nature of control -> weight; the heaviest active PSC is the contact
CONTROL_WEIGHTS: Dict[str, int] = {
    "ownership-of-shares-75-to-100-percent": 100,
    "voting-rights-75-to-100-percent": 95,
    "ownership-of-shares-50-to-75-percent": 90,
    "voting-rights-50-to-75-percent": 85,
    "ownership-of-shares-25-to-50-percent": 80,
    "voting-rights-25-to-50-percent": 75,
    "significant-influence-or-control": 70,
    "right-to-appoint-and-remove-directors": 65,
    "right-to-appoint-and-remove-members": 60,
}


def _clean_number(company_number: str) -> str:
    return re.sub(r"\s", "", company_number or "").upper()


def map_company_type(ch_type: Optional[str]) -> CompanyType:
    """Unknown or missing types are treated as non-limited."""
    return COMPANY_TYPES.get((ch_type or "").lower(), CompanyType.NON_LIMITED_COMPANY)


def is_valid_company_number(company_number: str) -> bool:
    return bool(COMPANY_NUMBER_RE.match(_clean_number(company_number)))


def format_company_number(company_number: str) -> str:
    """
    >>> format_company_number(" 1234567 ")
    '01234567'
    >>> format_company_number("sc 123456")
    'SC123456'
    """
    cleaned = _clean_number(company_number)
    if cleaned.isdigit():
        return cleaned.zfill(8)
    return cleaned


def _section(payload: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = payload.get(key) if payload else None
    return value if isinstance(value, Mapping) else {}


def client_from_profile(
    profile: Mapping[str, Any],
    code: str,
    today: Optional[date] = None,
    **extra: Any,
) -> Client:
    """
    Build a :class:`Client` from a company profile and compute its cached dates.

    Parameters
    ----------
    profile : Mapping
        The ``GET /company/{number}`` JSON body.
    code : str
        Practice client code to assign.
    today : datetime.date, optional
        Reference date for the year-end resolver.
    **extra
        Further :class:`Client` fields (``assigned_user``, ...).

    Raises
    ------
    ValueError
        If the profile has no company number.
    """
    number = profile.get("company_number")
    if not number:
        raise ValueError("company profile has no company_number")

    accounts = _section(profile, "accounts")
    last_accounts = _section(accounts, "last_accounts")
    confirmation = _section(profile, "confirmation_statement")

    client = Client(
        code=code,
        name=profile.get("company_name") or format_company_number(number),
        company_number=format_company_number(number),
        company_type=map_company_type(profile.get("type")),
        accounting_reference_date=parse_reference_date(accounts.get("accounting_reference_date")),
        last_accounts_made_up_to=coerce_date(last_accounts.get("made_up_to")),
        incorporation_date=coerce_date(profile.get("date_of_creation")),
        last_confirmation_made_up_to=coerce_date(confirmation.get("last_made_up_to")),
        **extra,
    )
    logger.info(f"Mapped Companies House profile {client.company_number} to client {client.code}")
    return recalculate_cached_dates(client, today)


def best_contact_name(
    psc: Optional[Mapping[str, Any]],
    officers: Optional[Mapping[str, Any]],
    company_name: str,
) -> str:
    """
    Pick a contact name: the PSC with the most control, else the first active
    director, else any active officer, else the company name.
    """
    best, best_weight = None, 0
    for person in (psc or {}).get("items") or []:
        if person.get("ceased") or person.get("ceased_on") or not person.get("name"):
            continue
        weight = max(
            (CONTROL_WEIGHTS.get(n, 0) for n in person.get("natures_of_control") or []),
            default=0,
        )
        if weight > best_weight:
            best, best_weight = person["name"], weight
    if best:
        return best

    active = [
        o for o in (officers or {}).get("items") or []
        if not o.get("resigned_on") and o.get("name")
    ]
    for officer in active:
        if "director" in (officer.get("officer_role") or "").lower():
            return officer["name"]
    if active:
        return active[0]["name"]
    return company_name
