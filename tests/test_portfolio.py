"""
tests/test_portfolio.py
=======================

Unit tests for filingdesk.portfolio.ClientRegistry
"""

import pytest

from filingdesk.models import Client, CompanyType
from filingdesk.portfolio import ClientRegistry


def _demo_registry():
    reg = ClientRegistry()
    reg.add(Client("ACM-001", "Acme Ltd"))
    reg.add(Client("SOL-002", "J Smith", company_type=CompanyType.NON_LIMITED_COMPANY))
    reg.add(Client("OLD-003", "Legacy Ltd", is_active=False))
    return reg


def test_add_and_get_by_code():
    reg = ClientRegistry()
    client = Client("acm-001", "Acme Ltd")
    reg.add(client)
    assert reg.get("ACM-001") is client
    assert reg.get(" acm-001 ") is client


def test_missing_code_raises_key_error():
    with pytest.raises(KeyError):
        ClientRegistry().get("NOPE")


def test_find_by_type_and_active():
    reg = _demo_registry()
    non_ltd = reg.find_by_type(CompanyType.NON_LIMITED_COMPANY)
    assert [c.code for c in non_ltd] == ["SOL-002"]
    assert {c.code for c in reg.active()} == {"ACM-001", "SOL-002"}


def test_len_and_iter():
    reg = _demo_registry()
    assert len(reg) == 3
    assert {c.name for c in reg} == {"Acme Ltd", "J Smith", "Legacy Ltd"}
