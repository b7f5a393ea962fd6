"""Unit tests for core/export.py"""

import json

import yaml

from infopub.core.export import block_markdown, build_html, build_markdown, build_sidecar, write_page
from infopub.core.models import (
    ChecklistBlock, ChecklistItem, CtaBlock, IconRowBlock, IconRowItem, QuoteBlock, TitleBlock,
)


def _frontmatter(text: str) -> dict:
    _, header, _ = text.split("---\n", 2)
    return yaml.safe_load(header)


def test_build_markdown_frontmatter(make_page):
    text = build_markdown(make_page("Lobby", slug="lobby"), base_url="https://info.test/")
    fm = _frontmatter(text)
    assert fm == {"title": "Lobby", "slug": "lobby", "status": "draft", "url": "https://info.test/p/lobby"}
    assert text.endswith("# Lobby\n\nHello there\n")


def test_block_markdown_variants():
    assert block_markdown(TitleBlock(id="t", text="Hi")) == "# Hi"
    assert block_markdown(TitleBlock(id="t")) == ""
    assert block_markdown(CtaBlock(id="c", cta_label="Book", cta_url="https://x.test")) == "[Book](https://x.test)"
    assert block_markdown(QuoteBlock(id="q", text="Great", quote_author="Ann")) == "> Great\n>\n> -- Ann"
    checklist = ChecklistBlock(id="c", checklist_items=[ChecklistItem(id="1", text="Key"), ChecklistItem(id="2")])
    assert block_markdown(checklist) == "- [ ] Key"


def test_icon_row_renders_links():
    row = IconRowBlock(id="r", icon_items=[
        IconRowItem(id="1", icon="🍽", label="Menu", link="/p/menu"),
        IconRowItem(id="2", icon="🚗", label="Parking"),
    ])
    assert block_markdown(row) == "- 🍽 [Menu](/p/menu)\n- 🚗 Parking"


def test_build_html_escapes_title(make_page):
    html = build_html(make_page("Tom & Jerry", slug="tj"))
    assert "<title>Tom &amp; Jerry</title>" in html
    assert "<h1>Tom &amp; Jerry</h1>" in html


def test_sidecar_uses_wire_format(make_page):
    data = build_sidecar(make_page("Lobby", slug="lobby"))
    assert data["slug"] == "lobby"
    assert data["blocks"][0] == {"id": "t1", "textAlign": "left", "type": "title", "text": "Lobby"}
    assert data["theme"] == {}


def test_write_page_outputs(tmp_path, make_page):
    page = make_page("Lobby", slug="lobby")
    content_path, json_path = write_page(page, tmp_path / "dist", fmt="html")
    assert content_path == tmp_path / "dist" / "lobby.html"
    assert content_path.read_text(encoding="utf-8").startswith("<!doctype html>")
    assert json.loads(json_path.read_text(encoding="utf-8"))["title"] == "Lobby"
