"""Shared fixtures for core unit tests"""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest

from infopub.core.models import (
    IconRowBlock, IconRowItem, NavigationGraph, Page, ParagraphBlock, Theme, TitleBlock,
)
from infopub.core.projection import refresh
from infopub.crud.memory_repo import MemoryPageStore


_BASE_TIME = datetime(2026, 1, 1, 9, 0)


def _make_page(title: str = "Welcome", slug: str = None, blocks: list = None, graph: NavigationGraph = None, **kw) -> Page:
    """A page with caches derived from its blocks."""
    if blocks is None:
        blocks = [TitleBlock(id="t1", text=title), ParagraphBlock(id="p1", text="Hello there")]
    return refresh(Page(
        id=kw.pop("id", str(uuid4())),
        title=title,
        slug=slug or title.lower().replace(" ", "-"),
        blocks=blocks,
        theme=Theme(node_map=graph),
        **kw,
    ))


def _icon_row(block_id: str = "row", *node_ids: str) -> IconRowBlock:
    """An iconRow block with one item per node id (item ids: item-1, item-2, ...)."""
    return IconRowBlock(
        id=block_id,
        icon_items=[IconRowItem(id=f"item-{i}", label=f"Item {i}", node_id=n) for i, n in enumerate(node_ids, start=1)],
    )


@pytest.fixture(name="store")
def store_fixture():
    """Empty in-memory store with an active free subscription."""
    store = MemoryPageStore()
    store.ensure_tenant("owner@example.com")
    return store


@pytest.fixture(name="seeded")
def seeded_fixture(store):
    """Store holding three draft pages with distinct update times (newest first: c, b, a)."""
    for i, name in enumerate(["a", "b", "c"]):
        store.insert(_make_page(title=f"Page {name}", slug=f"page-{name}", updated_at=_BASE_TIME + timedelta(minutes=i)))
    return store


@pytest.fixture(name="make_page")
def make_page_fixture():
    return _make_page


@pytest.fixture(name="icon_row")
def icon_row_fixture():
    return _icon_row
