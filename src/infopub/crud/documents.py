"""Page persistence on SQLModel: row mapping, tenant bootstrap, and the SQL page store"""

import logging
from datetime import datetime
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from infopub.core.billing import Plan, Subscription, SubscriptionStatus, limit_for_plan
from infopub.core.errors import PageNotFound, StoreError
from infopub.core.models import Page, PageStatus
from infopub.core.normalize import normalize_blocks, normalize_theme, serialize_blocks, serialize_theme
from infopub.core.projection import body_of, images_of
from infopub.crud.repo import PageStore, default_tenant_name, prepare_patch
from infopub.crud.tables import PageRow, SubscriptionRow, Tenant


logger = logging.getLogger(__name__)


def _uuid(value: Optional[str]) -> Optional[UUID]:
    """Parse an id string; None for anything that is not a UUID."""
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None


def row_to_page(row: PageRow) -> Page:
    """Map a stored row to a Page, normalizing blocks and theme.

    Rows written before caches existed get body/images derived on the fly.
    """
    blocks = normalize_blocks(row.blocks, row.body)
    return Page(
        id=str(row.id),
        tenant_id=str(row.tenant_id) if row.tenant_id else None,
        title=row.title,
        slug=row.slug,
        status=row.status,
        body=row.body or body_of(blocks),
        images=list(row.images or []) or images_of(blocks),
        blocks=blocks,
        theme=normalize_theme(row.theme),
        publish_at=row.publish_at,
        unpublish_at=row.unpublish_at,
        updated_at=row.updated_at,
    )


def _column_values(values: dict[str, Any]) -> dict[str, Any]:
    """Convert Page attribute values into JSON-ready column values."""
    result = dict(values)
    if "blocks" in result:
        result["blocks"] = serialize_blocks(result["blocks"])
    if "theme" in result:
        result["theme"] = serialize_theme(result["theme"])
    if "images" in result:
        result["images"] = list(result["images"])
    return result


def get_row(session: Session, tenant_id: Optional[UUID], page_id: str) -> Optional[PageRow]:
    """Return the row for page_id within the tenant, or None."""
    uid = _uuid(page_id)
    if uid is None:
        return None
    row = session.get(PageRow, uid)
    return row if row is not None and row.tenant_id == tenant_id else None


def get_row_by_slug(session: Session, tenant_id: Optional[UUID], slug: str) -> Optional[PageRow]:
    return session.exec(
        select(PageRow).where(PageRow.tenant_id == tenant_id).where(PageRow.slug == slug)
    ).first()


def list_rows(session: Session, tenant_id: Optional[UUID]) -> list[PageRow]:
    return list(session.exec(
        select(PageRow).where(PageRow.tenant_id == tenant_id).order_by(PageRow.updated_at.desc())
    ).all())


def count_published(session: Session, tenant_id: Optional[UUID]) -> int:
    return session.exec(
        select(func.count()).select_from(PageRow)
        .where(PageRow.tenant_id == tenant_id)
        .where(PageRow.status == PageStatus.published)
    ).one()


def ensure_tenant(session: Session, email: Optional[str], free_limit: int = 3) -> Tenant:
    """Return the tenant owned by email, creating it with a free subscription if missing."""
    key = (email or "").strip().lower() or "local"
    tenant = session.exec(select(Tenant).where(Tenant.owner_email == key)).first()
    if tenant:
        return tenant
    tenant = Tenant(name=default_tenant_name(email), owner_email=key)
    session.add(tenant)
    session.flush()
    session.add(SubscriptionRow(tenant_id=tenant.id, plan=Plan.free, max_published_pages=free_limit))
    session.flush()
    logger.info("Created tenant %s for %s", tenant.id, key)
    return tenant


def set_subscription(
    session: Session,
    tenant_id: UUID,
    plan: Plan,
    status: SubscriptionStatus = SubscriptionStatus.active,
    free_limit: int = 3,
    pro_limit: int = 1000,
    ) -> SubscriptionRow:
    """Mirror a billing change onto the tenant's subscription row, deriving the page ceiling from the plan."""
    row = session.get(SubscriptionRow, tenant_id) or SubscriptionRow(tenant_id=tenant_id)
    row.plan = plan
    row.status = status
    row.max_published_pages = limit_for_plan(plan, free_limit, pro_limit)
    row.updated_at = datetime.now()
    session.add(row)
    return row


class SQLPageStore(PageStore):
    """PageStore over a SQLModel engine; each call runs in its own session."""

    def __init__(self, engine, tenant_id: Optional[str] = None, free_limit: int = 3):
        self.engine = engine
        self.tenant_id = tenant_id
        self.free_limit = free_limit

    @property
    def _tenant(self) -> Optional[UUID]:
        return _uuid(self.tenant_id) if self.tenant_id else None

    def ensure_tenant(self, email: Optional[str]) -> str:
        with Session(self.engine) as session:
            tenant = ensure_tenant(session, email, self.free_limit)
            session.commit()
            self.tenant_id = str(tenant.id)
        return self.tenant_id

    def get(self, page_id: str) -> Optional[Page]:
        with Session(self.engine) as session:
            row = get_row(session, self._tenant, page_id)
            return row_to_page(row) if row else None

    def get_by_slug(self, slug: str) -> Optional[Page]:
        with Session(self.engine) as session:
            row = get_row_by_slug(session, self._tenant, slug)
            return row_to_page(row) if row else None

    def list_pages(self) -> list[Page]:
        with Session(self.engine) as session:
            return [row_to_page(r) for r in list_rows(session, self._tenant)]

    def published_count(self) -> int:
        with Session(self.engine) as session:
            return count_published(session, self._tenant)

    def insert(self, page: Page) -> Page:
        row = PageRow(
            id=_uuid(page.id) or uuid4(),
            tenant_id=self._tenant,
            **_column_values({
                "title": page.title, "slug": page.slug, "status": page.status,
                "body": page.body, "images": page.images, "blocks": page.blocks,
                "theme": page.theme, "publish_at": page.publish_at,
                "unpublish_at": page.unpublish_at,
            }),
        )
        try:
            with Session(self.engine) as session:
                session.add(row)
                session.commit()
                session.refresh(row)
                return row_to_page(row)
        except IntegrityError as e:
            raise StoreError(f"Slug already in use: {page.slug}") from e
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to create page: {e}") from e

    def update(self, page_id: str, patch: dict[str, Any]) -> Page:
        values = _column_values(prepare_patch(patch))
        try:
            with Session(self.engine) as session:
                row = get_row(session, self._tenant, page_id)
                if row is None:
                    raise PageNotFound(f"Page not found: {page_id}")
                for key, value in values.items():
                    setattr(row, key, value)
                session.add(row)
                session.commit()
                session.refresh(row)
                return row_to_page(row)
        except IntegrityError as e:
            raise StoreError(f"Slug already in use: {patch.get('slug')}") from e
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to update page: {e}") from e

    def delete(self, page_id: str) -> None:
        try:
            with Session(self.engine) as session:
                row = get_row(session, self._tenant, page_id)
                if row is None:
                    raise PageNotFound(f"Page not found: {page_id}")
                session.delete(row)
                session.commit()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to delete page: {e}") from e

    def get_subscription(self) -> Optional[Subscription]:
        with Session(self.engine) as session:
            row = session.get(SubscriptionRow, self._tenant) if self._tenant else None
            if row is None:
                return None
            return Subscription(plan=row.plan, status=row.status, max_published_pages=row.max_published_pages)

    def set_subscription(
        self,
        plan: Plan,
        status: SubscriptionStatus = SubscriptionStatus.active,
        free_limit: int = 3,
        pro_limit: int = 1000,
        ) -> Subscription:
        if self._tenant is None:
            raise StoreError("No tenant selected for this store.")
        with Session(self.engine) as session:
            row = set_subscription(session, self._tenant, plan, status, free_limit, pro_limit)
            session.commit()
            session.refresh(row)
            logger.info("Subscription for tenant %s set to %s (%s)", self.tenant_id, plan.value, status.value)
            return Subscription(plan=row.plan, status=row.status, max_published_pages=row.max_published_pages)
