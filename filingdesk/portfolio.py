"""
filingdesk.portfolio
====================

An in-memory registry of :class:`filingdesk.models.Client` objects keyed by
their (upper-cased) client code.

Only the standard library, so it can stand in for the database in tests.
"""

from __future__ import annotations

from typing import Dict, Iterator, List

from .models import Client, CompanyType


class ClientRegistry:
    """
    Dictionary-backed registry of clients.

    Example
    -------
    >>> reg = ClientRegistry()
    >>> reg.add(Client("ab-01", "Acme Ltd"))
    >>> reg.get("AB-01").name
    'Acme Ltd'
    """

    def __init__(self) -> None:
        self._clients: Dict[str, Client] = {}

    @staticmethod
    def _key(code: str) -> str:
        return code.strip().upper()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def add(self, client: Client) -> None:
        """Insert or overwrite a client."""
        self._clients[self._key(client.code)] = client

    def get(self, code: str) -> Client:
        """Retrieve by client code (raise KeyError if not present)."""
        return self._clients[self._key(code)]

    def find_by_type(self, company_type: CompanyType) -> List[Client]:
        return [c for c in self._clients.values() if c.company_type is company_type]

    def active(self) -> List[Client]:
        return [c for c in self._clients.values() if c.is_active]

    # ------------------------------------------------------------------
    # Dunder helpers
    # ------------------------------------------------------------------
    def __iter__(self) -> Iterator[Client]:
        return iter(self._clients.values())

    def __len__(self) -> int:
        return len(self._clients)
