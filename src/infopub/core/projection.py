"""Derived cache fields: plain-text body and preview images folded from blocks"""

from typing import Iterable, Optional

from infopub.core.models import BaseBlock, Page


MAX_IMAGES = 3


def _clean(*values: Optional[str]) -> list[str]:
    return [v.strip() for v in values if v and v.strip()]


def _lines(*values: Optional[str]) -> str:
    return "\n".join(_clean(*values))


def block_text(block: BaseBlock) -> str:
    """Plain-text contribution of a single block ('' when it has none)."""
    t = block.type
    if t in ("title", "heading", "paragraph"):
        return _lines(block.text)
    if t == "icon":
        return _lines(block.label, block.description)
    if t == "section":
        return _lines(block.section_title, block.section_body)
    if t == "columns":
        return _lines(block.left_title, block.left_text, block.right_title, block.right_text)
    if t == "iconRow":
        return " / ".join(_clean(*(item.label for item in block.icon_items)))
    if t == "cta":
        return _lines(block.cta_label, block.cta_url)
    if t == "badge":
        return _lines(block.badge_text)
    if t in ("hours", "pricing"):
        items = block.hours_items if t == "hours" else block.pricing_items
        return "\n".join(
            line for line in (f"{i.label.strip()} {i.value.strip()}".strip() for i in items) if line
        )
    if t == "quote":
        return _lines(block.text, block.quote_author)
    if t == "checklist":
        return _lines(*(item.text for item in block.checklist_items))
    if t == "columnGroup":
        return "\n".join(_clean(*(_lines(i.title, i.body) for i in block.column_group_items)))
    return ""


def body_of(blocks: Iterable[BaseBlock]) -> str:
    """Blocks' text joined by a blank line; blocks without text are skipped."""
    return "\n\n".join(text for text in (block_text(b) for b in blocks) if text)


def images_of(blocks: Iterable[BaseBlock]) -> list[str]:
    """First three non-empty image URLs (image blocks and gallery items) in block order."""
    urls: list[str] = []
    for block in blocks:
        if block.type == "image":
            urls.extend(_clean(block.url))
        elif block.type == "gallery":
            urls.extend(_clean(*(item.url for item in block.gallery_items)))
        if len(urls) >= MAX_IMAGES:
            break
    return urls[:MAX_IMAGES]


def has_content(block: BaseBlock) -> bool:
    """Whether a block carries anything a reader would see."""
    t = block.type
    if t in ("divider", "space"):
        return True
    if t == "image":
        return bool(_clean(block.url))
    if t == "iconRow":
        return any(_clean(i.label, i.link) for i in block.icon_items)
    if t in ("hours", "pricing"):
        items = block.hours_items if t == "hours" else block.pricing_items
        return any(_clean(i.label, i.value) for i in items)
    if t == "gallery":
        return any(_clean(i.url) for i in block.gallery_items)
    if t == "icon":
        return bool(_clean(block.label, block.description))
    return bool(block_text(block))


def refresh(page: Page) -> Page:
    """Return page with body and images recomputed from its blocks."""
    return page.model_copy(update={"body": body_of(page.blocks), "images": images_of(page.blocks)})
