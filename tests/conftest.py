"""
Pytest configuration: make sure `import filingdesk` works regardless of
where pytest is invoked.

It prepends the project root (one directory above *tests/*) to
``sys.path`` **before** any tests are collected, and provides an in-memory
SQLite session for the persistence tests.
"""

import sys
from pathlib import Path

import pytest

# /path/to/project/tests -> project root
PROJECT_ROOT = Path(__file__).resolve().parent.parent

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture
def session():
    """Fresh in-memory database per test."""
    from sqlmodel import Session

    from filingdesk.db import create_all, make_engine

    engine = make_engine("sqlite://")
    create_all(engine)
    with Session(engine) as s:
        yield s
    engine.dispose()
