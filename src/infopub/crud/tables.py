"""Database table definitions for tenants, subscriptions, and pages"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from sqlalchemy import Column, DateTime, JSON, String, Text, UniqueConstraint
from sqlmodel import Field, SQLModel

from infopub.core.billing import Plan, SubscriptionStatus
from infopub.core.models import PageStatus


class Tenant(SQLModel, table=True):
    """A store/hotel that owns pages; membership is keyed by the owner's email"""
    __tablename__ = "tenants"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(..., sa_column=Column(String(255), nullable=False))
    owner_email: str = Field(..., sa_column=Column(String(320), nullable=False, unique=True, index=True))
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))


class SubscriptionRow(SQLModel, table=True):
    """Billing state mirrored from the payment provider; read-only for the core"""
    __tablename__ = "subscriptions"
    tenant_id: UUID = Field(foreign_key="tenants.id", primary_key=True)
    plan: Plan = Field(default=Plan.free, nullable=False)
    status: SubscriptionStatus = Field(default=SubscriptionStatus.active, nullable=False)
    max_published_pages: int = Field(default=3, nullable=False, description="Published page ceiling for the plan")
    updated_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))


class PageRow(SQLModel, table=True):
    """An information page. blocks and theme are opaque JSON, normalized on every read"""
    __tablename__ = "pages"
    __table_args__ = (UniqueConstraint("tenant_id", "slug", name="uq_pages_tenant_slug"),)
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    tenant_id: Optional[UUID] = Field(default=None, foreign_key="tenants.id", index=True)
    title: str = Field(..., sa_column=Column(Text, nullable=False))
    slug: str = Field(..., index=True, nullable=False)
    status: PageStatus = Field(default=PageStatus.draft, nullable=False)
    body: str = Field(default="", sa_column=Column(Text, nullable=False))
    images: Optional[List[str]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    blocks: Optional[List[Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    theme: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    publish_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=False), nullable=True))
    unpublish_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=False), nullable=True))
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
    updated_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
