"""
filingdesk.portfolio_db
=======================

Client registry persisted in the practice database.

Same calls as :class:`filingdesk.portfolio.ClientRegistry`, but every read
goes through :mod:`filingdesk.db`, so callers such as ``seed_database.py``
see what is stored rather than a per-process copy.
"""

from __future__ import annotations

from typing import Iterator, List

from sqlmodel import Session

from filingdesk.db import SessionLocal, all_clients, get_client, upsert_client
from filingdesk.models import Client, CompanyType


class DBClientRegistry:
    """
    Registry over the ``clients`` table.

    Pass an open *session* to share a transaction with other db helpers;
    otherwise one is opened from ``SessionLocal`` and closed on ``__exit__``.
    Lookups are by client code, case-insensitive; a missing code raises
    ``KeyError``.
    """

    def __init__(self, session: Session | None = None) -> None:
        self._session: Session = session or SessionLocal()

    # ------------------------------------------------------------ writes
    def add(self, client: Client) -> None:
        upsert_client(self._session, client)

    # ------------------------------------------------------------- reads
    def get(self, code: str) -> Client:
        client = get_client(self._session, code)
        if client is None:
            raise KeyError(code)
        return client

    def find_by_type(self, company_type: CompanyType) -> List[Client]:
        return [c for c in all_clients(self._session) if c.company_type is company_type]

    def active(self) -> List[Client]:
        """Clients still on the books (``is_active``)."""
        return [c for c in all_clients(self._session) if c.is_active]

    def __iter__(self) -> Iterator[Client]:
        yield from all_clients(self._session)

    def __len__(self) -> int:
        return len(all_clients(self._session))

    # ---------------------------------------------------------- lifetime
    def __enter__(self) -> "DBClientRegistry":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._session.close()
