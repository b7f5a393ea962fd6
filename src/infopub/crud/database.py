"""Engine creation and schema initialization"""

from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

import infopub.crud.tables  # noqa: F401  (registers tables on SQLModel.metadata)


def make_engine(db_url: str):
    """Create an engine; in-memory SQLite URLs share one connection across threads."""
    if db_url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(db_url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    if db_url.startswith("sqlite"):
        return create_engine(db_url, connect_args={"check_same_thread": False})
    return create_engine(db_url)


def init_db(engine) -> None:
    """Create all tables that do not exist yet."""
    SQLModel.metadata.create_all(engine)


def reset_db(engine) -> None:
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
