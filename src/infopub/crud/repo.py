"""Abstract page store consumed by the lifecycle controller"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

from infopub.core.billing import Subscription
from infopub.core.models import Page, PageStatus
from infopub.core.projection import body_of, images_of


PATCHABLE = {
    "title", "slug", "status", "blocks", "theme", "publish_at", "unpublish_at",
}


def prepare_patch(patch: dict[str, Any]) -> dict[str, Any]:
    """Validate patch keys and recompute body/images whenever blocks change.

    body and images are never patched directly: they are written only here,
    from the blocks in the same patch.
    """
    unknown = set(patch) - PATCHABLE
    if unknown:
        raise ValueError(f"Cannot patch field(s): {', '.join(sorted(unknown))}")
    result = dict(patch)
    if "blocks" in result:
        result["body"] = body_of(result["blocks"])
        result["images"] = images_of(result["blocks"])
    result["updated_at"] = datetime.now()
    return result


def default_tenant_name(email: Optional[str]) -> str:
    """'<local part> Store' for a login email, 'My Store' when there is none."""
    label = (email or "").split("@")[0].strip()
    return f"{label} Store" if label else "My Store"


class PageStore(ABC):
    """Tenant-scoped persistence for pages. Reads return normalized pages."""

    tenant_id: Optional[str] = None

    @abstractmethod
    def ensure_tenant(self, email: Optional[str]) -> str:
        """Return the caller's tenant id, creating a default tenant on first use."""
        raise NotImplementedError

    @abstractmethod
    def get(self, page_id: str) -> Optional[Page]:
        raise NotImplementedError

    @abstractmethod
    def get_by_slug(self, slug: str) -> Optional[Page]:
        raise NotImplementedError

    @abstractmethod
    def list_pages(self) -> list[Page]:
        """All pages of the tenant, most recently updated first."""
        raise NotImplementedError

    @abstractmethod
    def insert(self, page: Page) -> Page:
        raise NotImplementedError

    @abstractmethod
    def update(self, page_id: str, patch: dict[str, Any]) -> Page:
        raise NotImplementedError

    @abstractmethod
    def delete(self, page_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def get_subscription(self) -> Optional[Subscription]:
        raise NotImplementedError

    def published_count(self) -> int:
        return sum(1 for p in self.list_pages() if p.status == PageStatus.published)

    def status_by_slug(self) -> dict[str, PageStatus]:
        return {p.slug: p.status for p in self.list_pages()}
