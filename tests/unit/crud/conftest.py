"""Shared fixtures for crud unit tests"""

import pytest
from sqlmodel import Session

from infopub.crud.database import init_db, make_engine
from infopub.crud.documents import SQLPageStore


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine with all tables created."""
    engine = make_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture(name="session")
def session_fixture(engine):
    """Fresh session per test; changes are not committed."""
    with Session(engine) as s:
        yield s


@pytest.fixture(name="sql_store")
def sql_store_fixture(engine):
    """SQL page store bound to a freshly created tenant."""
    store = SQLPageStore(engine)
    store.ensure_tenant("owner@example.com")
    return store
