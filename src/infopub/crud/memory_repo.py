from dataclasses import dataclass, field
from typing import Any, Optional
from uuid import uuid4

from infopub.core.billing import Subscription
from infopub.core.errors import PageNotFound, StoreError
from infopub.core.models import Page
from infopub.core.normalize import normalize_blocks, normalize_theme, serialize_blocks, serialize_theme
from infopub.crud.repo import PageStore, default_tenant_name, prepare_patch


def _roundtrip(page: Page) -> Page:
    """Store what a JSON column would: serialized blocks/theme, re-normalized on read."""
    return page.model_copy(update={
        "blocks": normalize_blocks(serialize_blocks(page.blocks), page.body),
        "theme": normalize_theme(serialize_theme(page.theme)),
    })


@dataclass
class MemoryPageStore(PageStore):
    """Dict-backed store for local use and tests."""
    tenant_id: Optional[str] = None
    tenant_name: str = ""
    subscription: Optional[Subscription] = field(default_factory=Subscription)
    _pages: dict[str, Page] = field(default_factory=dict)

    def ensure_tenant(self, email: Optional[str]) -> str:
        if self.tenant_id is None:
            self.tenant_id = str(uuid4())
            self.tenant_name = default_tenant_name(email)
        return self.tenant_id

    def get(self, page_id: str) -> Optional[Page]:
        page = self._pages.get(page_id)
        return _roundtrip(page) if page else None

    def get_by_slug(self, slug: str) -> Optional[Page]:
        page = next((p for p in self._pages.values() if p.slug == slug), None)
        return _roundtrip(page) if page else None

    def list_pages(self) -> list[Page]:
        pages = sorted(self._pages.values(), key=lambda p: p.updated_at, reverse=True)
        return [_roundtrip(p) for p in pages]

    def insert(self, page: Page) -> Page:
        if any(p.slug == page.slug for p in self._pages.values()):
            raise StoreError(f"Slug already in use: {page.slug}")
        stored = page.model_copy(update={"tenant_id": self.tenant_id})
        self._pages[stored.id] = stored
        return _roundtrip(stored)

    def update(self, page_id: str, patch: dict[str, Any]) -> Page:
        current = self._pages.get(page_id)
        if current is None:
            raise PageNotFound(f"Page not found: {page_id}")
        values = prepare_patch(patch)
        slug = values.get("slug")
        if slug and any(p.slug == slug and p.id != page_id for p in self._pages.values()):
            raise StoreError(f"Slug already in use: {slug}")
        self._pages[page_id] = current.model_copy(update=values)
        return _roundtrip(self._pages[page_id])

    def delete(self, page_id: str) -> None:
        if self._pages.pop(page_id, None) is None:
            raise PageNotFound(f"Page not found: {page_id}")

    def get_subscription(self) -> Optional[Subscription]:
        return self.subscription
