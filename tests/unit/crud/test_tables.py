"""Unit tests for crud/tables.py"""

import pytest
from sqlalchemy.exc import IntegrityError

from infopub.core.billing import Plan, SubscriptionStatus
from infopub.core.models import PageStatus
from infopub.crud.tables import PageRow, SubscriptionRow, Tenant


def test_page_row_defaults(session):
    row = PageRow(title="Lobby", slug="lobby")
    session.add(row)
    session.flush()
    assert row.id is not None
    assert row.status == PageStatus.draft
    assert row.body == ""
    assert row.blocks is None


def test_page_row_json_columns(session):
    row = PageRow(title="Lobby", slug="lobby", blocks=[{"type": "title", "text": "Hi"}], theme={"textColor": "#111"})
    session.add(row)
    session.commit()
    session.refresh(row)
    assert row.blocks == [{"type": "title", "text": "Hi"}]
    assert row.theme == {"textColor": "#111"}


def test_slug_unique_per_tenant(session):
    tenant = Tenant(name="A Store", owner_email="a@example.com")
    session.add(tenant)
    session.flush()
    session.add(PageRow(tenant_id=tenant.id, title="One", slug="same"))
    session.flush()
    session.add(PageRow(tenant_id=tenant.id, title="Two", slug="same"))
    with pytest.raises(IntegrityError):
        session.flush()


def test_same_slug_in_other_tenant(session):
    a = Tenant(name="A Store", owner_email="a@example.com")
    b = Tenant(name="B Store", owner_email="b@example.com")
    session.add_all([a, b])
    session.flush()
    session.add_all([PageRow(tenant_id=a.id, title="One", slug="same"), PageRow(tenant_id=b.id, title="Two", slug="same")])
    session.flush()


def test_subscription_defaults(session):
    tenant = Tenant(name="A Store", owner_email="a@example.com")
    session.add(tenant)
    session.flush()
    sub = SubscriptionRow(tenant_id=tenant.id)
    session.add(sub)
    session.flush()
    assert (sub.plan, sub.status, sub.max_published_pages) == (Plan.free, SubscriptionStatus.active, 3)
