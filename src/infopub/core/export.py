"""Export pipeline: render pages to Markdown/HTML with frontmatter and a sidecar JSON"""

import json
from pathlib import Path
from typing import Optional

import yaml
from markdown_it import MarkdownIt

from infopub.core.models import BaseBlock, Page
from infopub.core.normalize import serialize_blocks, serialize_theme
from infopub.core.utils.slug import public_path


def _items(rows: list[str]) -> str:
    return "\n".join(f"- {r}" for r in rows)


def block_markdown(block: BaseBlock) -> str:
    """Markdown for a single block; empty string for purely visual blocks."""
    t = block.type
    if t == "title":
        return f"# {block.text}" if block.text else ""
    if t == "heading":
        return f"## {block.text}" if block.text else ""
    if t == "paragraph":
        return block.text or ""
    if t == "image":
        return f"![]({block.url})" if block.url else ""
    if t == "divider":
        return "---"
    if t == "icon":
        head = " ".join(v for v in (block.icon, f"**{block.label}**" if block.label else "") if v)
        return "\n\n".join(v for v in (head, block.description) if v)
    if t == "section":
        return "\n\n".join(v for v in (f"### {block.section_title}" if block.section_title else "", block.section_body) if v)
    if t == "columns":
        parts = []
        for title, text in ((block.left_title, block.left_text), (block.right_title, block.right_text)):
            if title:
                parts.append(f"### {title}")
            if text:
                parts.append(text)
        return "\n\n".join(parts)
    if t == "iconRow":
        return _items([
            f"{i.icon} [{i.label}]({i.link})" if i.link else f"{i.icon} {i.label}"
            for i in block.icon_items if i.label or i.link
        ])
    if t == "cta":
        if block.cta_label and block.cta_url:
            return f"[{block.cta_label}]({block.cta_url})"
        return block.cta_label or ""
    if t == "badge":
        return f"**{block.badge_text}**" if block.badge_text else ""
    if t in ("hours", "pricing"):
        items = block.hours_items if t == "hours" else block.pricing_items
        return _items([f"{i.label}: {i.value}" for i in items if i.label or i.value])
    if t == "quote":
        lines = [f"> {line}" for line in (block.text or "").splitlines()]
        if block.quote_author:
            lines.append(f">\n> -- {block.quote_author}")
        return "\n".join(lines)
    if t == "checklist":
        return "\n".join(f"- [ ] {i.text}" for i in block.checklist_items if i.text)
    if t == "gallery":
        return "\n\n".join(f"![{i.caption}]({i.url})" for i in block.gallery_items if i.url)
    if t == "columnGroup":
        parts = []
        for item in block.column_group_items:
            if item.title:
                parts.append(f"### {item.title}")
            if item.body:
                parts.append(item.body)
        return "\n\n".join(parts)
    return ""


def build_body(page: Page) -> str:
    return "\n\n".join(md for md in (block_markdown(b) for b in page.blocks) if md)


def build_frontmatter(page: Page, base_url: str = "") -> dict:
    fm = {
        "title": page.title,
        "slug": page.slug,
        "status": page.status.value,
        "url": f"{base_url.rstrip('/')}{public_path(page.slug)}",
    }
    if page.publish_at:
        fm["publish_at"] = page.publish_at.isoformat()
    if page.unpublish_at:
        fm["unpublish_at"] = page.unpublish_at.isoformat()
    return fm


def build_markdown(page: Page, base_url: str = "") -> str:
    """Return the page body with a YAML frontmatter block prepended."""
    header = yaml.dump(build_frontmatter(page, base_url), default_flow_style=False, allow_unicode=True, sort_keys=False)
    return f"---\n{header}---\n\n{build_body(page)}\n"


def build_html(page: Page, preset: str = "gfm-like") -> str:
    md = MarkdownIt(preset, options_update={"linkify": False})
    return (
        "<!doctype html>\n"
        f"<html><head><meta charset=\"utf-8\"><title>{md.renderInline(page.title)}</title></head>\n"
        f"<body>\n{md.render(build_body(page))}</body></html>\n"
    )


def build_sidecar(page: Page) -> dict:
    """Sidecar JSON: identity, caches, and the normalized blocks and theme in wire format."""
    return {
        "id": page.id,
        "slug": page.slug,
        "title": page.title,
        "status": page.status.value,
        "updated_at": page.updated_at.isoformat() if page.updated_at else None,
        "body": page.body,
        "images": page.images,
        "blocks": serialize_blocks(page.blocks),
        "theme": serialize_theme(page.theme),
    }


def write_page(
    page: Page,
    output_dir: Path,
    fmt: str = "md",
    base_url: str = "",
    preset: Optional[str] = None,
    ) -> tuple[Path, Path]:
    """Write <slug>.<fmt> and <slug>.json into output_dir. Returns (content_path, json_path)."""
    output_dir.mkdir(parents=True, exist_ok=True)
    content_path = output_dir / f"{page.slug}.{fmt}"
    json_path = output_dir / f"{page.slug}.json"

    if fmt == "html":
        content = build_html(page, preset or "gfm-like")
    else:
        content = build_markdown(page, base_url)
    content_path.write_text(content, encoding="utf-8")
    json_path.write_text(json.dumps(build_sidecar(page), indent=2, ensure_ascii=False), encoding="utf-8")
    return content_path, json_path
