"""Pre-publish check: static inspection of a page and its graph for blocking problems"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from infopub.core.models import INTERNAL_LINK_PREFIX, NavigationGraph, Page, PageStatus
from infopub.core.projection import has_content


EXTERNAL_URL_RE = re.compile(r"^https?://", re.IGNORECASE)

BLOCK_LABELS = {
    "image": "Image",
    "gallery": "Gallery",
    "iconRow": "Icon row",
}


class IssueLevel(str, Enum):
    error = "error"
    warning = "warning"


@dataclass(frozen=True)
class PublishIssue:
    level: IssueLevel
    message: str

    @property
    def blocking(self) -> bool:
        return self.level == IssueLevel.error


def _error(message: str) -> PublishIssue:
    return PublishIssue(IssueLevel.error, message)


def _warning(message: str) -> PublishIssue:
    return PublishIssue(IssueLevel.warning, message)


def _status_for(slug: str, page: Page, status_by_slug: Mapping[str, PageStatus]) -> Optional[PageStatus]:
    if slug == page.slug:
        return page.status
    status = status_by_slug.get(slug)
    if status is None:
        return None
    try:
        return PageStatus(status)
    except ValueError:
        return PageStatus.draft


def _check_link(label: str, link: str, page: Page, status_by_slug: Mapping[str, PageStatus]) -> Optional[PublishIssue]:
    if link.startswith(INTERNAL_LINK_PREFIX):
        slug = link[len(INTERNAL_LINK_PREFIX):].strip()
        if not slug:
            return _error(f"{label}: page link is malformed.")
        status = _status_for(slug, page, status_by_slug)
        if status is None:
            return _error(f"{label}: linked page '{slug}' does not exist.")
        if status != PageStatus.published:
            return _warning(f"{label}: linked page '{slug}' is still a draft.")
        return None
    if not EXTERNAL_URL_RE.match(link):
        return _warning(f"{label}: external links should start with http:// or https://.")
    return None


def validate(
    page: Page,
    graph: Optional[NavigationGraph],
    status_by_slug: Mapping[str, PageStatus],
    ) -> list[PublishIssue]:
    """Collect every publish issue for page; all checks run, none short-circuit.

    status_by_slug maps sibling slugs to their status and is used to resolve
    internal /p/<slug> links. Never raises.
    """
    issues: list[PublishIssue] = []

    if not page.title.strip():
        issues.append(_error("Page title is empty."))

    if not any(has_content(b) for b in page.blocks):
        issues.append(_error("Page has no content; fill in at least one block."))

    if page.publish_at and page.unpublish_at:
        try:
            out_of_order = page.publish_at >= page.unpublish_at
        except TypeError:
            # naive vs aware timestamps
            out_of_order = page.publish_at.timestamp() >= page.unpublish_at.timestamp()
        if out_of_order:
            issues.append(_error("Unpublish time must be later than publish time."))

    for position, block in enumerate(page.blocks, start=1):
        prefix = f"{position}. {BLOCK_LABELS.get(block.type, block.type)}"
        if block.type == "image":
            if not (block.url or "").strip():
                issues.append(_error(f"{prefix}: image URL is not set."))
        elif block.type == "gallery":
            for n, item in enumerate(block.gallery_items, start=1):
                if not item.url.strip():
                    issues.append(_error(f"{prefix} #{n}: image URL is not set."))
        elif block.type == "iconRow":
            for n, item in enumerate(block.icon_items, start=1):
                link = item.link.strip()
                if not link:
                    continue
                label = item.label.strip() or f"{prefix} #{n}"
                issue = _check_link(label, link, page, status_by_slug)
                if issue:
                    issues.append(issue)

    for node in (graph.spokes if graph else []):
        slug = node.target_slug.strip()
        if slug and _status_for(slug, page, status_by_slug) is None:
            issues.append(_warning(f"Map node '{node.title}': target page '{slug}' does not exist."))

    return issues


def can_publish(issues: list[PublishIssue]) -> bool:
    return not any(i.blocking for i in issues)


def errors(issues: list[PublishIssue]) -> list[PublishIssue]:
    return [i for i in issues if i.level == IssueLevel.error]


def warnings(issues: list[PublishIssue]) -> list[PublishIssue]:
    return [i for i in issues if i.level == IssueLevel.warning]
