"""Unit tests for crud/database.py"""

from sqlalchemy import inspect

from infopub.crud.database import init_db, make_engine, reset_db


def test_init_db_creates_tables():
    engine = make_engine("sqlite://")
    init_db(engine)
    assert {"tenants", "subscriptions", "pages"} <= set(inspect(engine).get_table_names())


def test_init_db_is_repeatable(engine):
    init_db(engine)
    assert "pages" in inspect(engine).get_table_names()


def test_reset_db_clears_rows(sql_store, engine):
    assert sql_store.get_subscription() is not None
    reset_db(engine)
    assert sql_store.get_subscription() is None


def test_file_database(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path}/test.db")
    init_db(engine)
    assert (tmp_path / "test.db").exists()
