"""Unit tests for core/normalize.py"""

import pytest

from infopub.core.models import IconRowBlock, ParagraphBlock
from infopub.core.normalize import (
    blocks_from_text, clamp, decode_block, normalize_blocks, normalize_graph,
    normalize_theme, serialize_blocks, serialize_theme,
)


# --- decode_block ---

def test_decode_block_reads_camel_case_fields():
    """Wire names map onto snake_case attributes."""
    decoded = decode_block({"id": "c1", "type": "cta", "ctaLabel": "Book", "ctaUrl": "https://x.test"}, "c1")
    assert decoded.ok
    assert decoded.block.cta_label == "Book"
    assert decoded.block.cta_url == "https://x.test"


def test_decode_block_unknown_type_reports_issue():
    """Unknown types are reported as an issue instead of raising."""
    decoded = decode_block({"type": "carousel"}, "b1")
    assert not decoded.ok
    assert "carousel" in decoded.issue


@pytest.mark.parametrize("raw", [None, 3, "text", ["type", "title"]])
def test_decode_block_non_mapping(raw):
    """Anything that is not a mapping is dropped with an issue."""
    assert not decode_block(raw, "b1").ok


def test_decode_block_invalid_enum_falls_back_to_default():
    """An out-of-range enum value is omitted, so the field default applies."""
    block = decode_block({"type": "title", "text": "Hi", "textAlign": "justify", "spacing": "xl"}, "t").block
    assert block.text_align == "left"
    assert block.spacing is None


def test_decode_block_mistyped_scalar_dropped():
    """Non-string values for string fields are dropped."""
    block = decode_block({"type": "paragraph", "text": 42}, "p").block
    assert block.text is None


def test_decode_block_synthesizes_item_ids():
    """Items without ids get positional ids; non-mapping items are dropped."""
    raw = {"type": "checklist", "checklistItems": [{"text": "a"}, "junk", {"id": "keep", "text": "b"}, {"text": "c"}]}
    block = decode_block(raw, "c").block
    assert [i.id for i in block.checklist_items] == ["check-item-1", "keep", "check-item-4"]
    assert [i.text for i in block.checklist_items] == ["a", "b", "c"]


def test_decode_block_item_defaults():
    """iconRow items default icon, link, nodeId, and background colour."""
    block = decode_block({"type": "iconRow", "iconItems": [{"label": "Wi-Fi"}]}, "r").block
    item = block.icon_items[0]
    assert item.icon == "⭐"
    assert item.link == ""
    assert item.node_id == ""
    assert item.background_color == "#ffffff"


def test_decode_block_non_list_items_become_empty():
    block = decode_block({"type": "hours", "hoursItems": "9-5"}, "h").block
    assert block.hours_items == []


# --- normalize_blocks ---

def test_normalize_blocks_assigns_missing_ids_by_position():
    """Missing ids become block-<n>, avoiding ids already in use."""
    raw = [{"type": "title", "text": "A"}, {"id": "block-1", "type": "paragraph", "text": "B"}]
    blocks = normalize_blocks(raw)
    assert [b.id for b in blocks] == ["block-1-1", "block-1"]


def test_normalize_blocks_renames_repeated_ids():
    raw = [
        {"id": "x", "type": "title", "text": "A"},
        {"id": "x", "type": "paragraph", "text": "B"},
        {"id": "x", "type": "divider"},
    ]
    blocks = normalize_blocks(raw)
    assert [b.id for b in blocks] == ["x", "block-2", "block-3"]
    assert normalize_blocks(serialize_blocks(blocks)) == blocks


def test_normalize_blocks_drops_invalid_elements():
    raw = [{"type": "title", "text": "A"}, 7, {"type": "nope"}, {"type": "divider"}]
    blocks = normalize_blocks(raw)
    assert [b.type for b in blocks] == ["title", "divider"]


@pytest.mark.parametrize("raw", [None, [], {}, "blocks", [1, 2, {"type": "?"}]])
def test_normalize_blocks_falls_back_to_text(raw):
    """With nothing decodable, the legacy body text is split into paragraphs."""
    blocks = normalize_blocks(raw, "First\n\nSecond")
    assert [b.text for b in blocks] == ["First", "Second"]
    assert all(isinstance(b, ParagraphBlock) for b in blocks)


def test_normalize_blocks_never_empty():
    """No blocks and no text still yields one empty paragraph."""
    blocks = normalize_blocks(None, "   ")
    assert len(blocks) == 1
    assert blocks[0].id == "block-1"
    assert blocks[0].text == ""


def test_normalize_blocks_is_idempotent():
    """Normalizing serialized output again gives the same blocks."""
    raw = [
        {"type": "title", "text": "Hi", "textAlign": "bogus"},
        {"type": "iconRow", "iconItems": [{"label": "A"}, {"label": "B", "nodeId": "n1"}]},
        {"type": "gallery", "galleryItems": [{"url": "https://img.test/1.png"}]},
    ]
    once = normalize_blocks(raw)
    twice = normalize_blocks(serialize_blocks(once))
    assert twice == once


def test_normalize_blocks_accepts_typed_blocks():
    block = IconRowBlock(id="r", icon_items=[])
    assert normalize_blocks([block]) == [block]


# --- blocks_from_text ---

def test_blocks_from_text_splits_on_blank_lines_with_whitespace():
    blocks = blocks_from_text("One\n  \n\nTwo\nstill two\n\t\nThree")
    assert [b.text for b in blocks] == ["One", "Two\nstill two", "Three"]
    assert [b.id for b in blocks] == ["block-1", "block-2", "block-3"]


def test_blocks_from_text_non_string():
    assert blocks_from_text(None)[0].text == ""


# --- serialize ---

def test_serialize_blocks_uses_wire_names_and_omits_unset():
    out = serialize_blocks(normalize_blocks([{"id": "x", "type": "badge", "badgeText": "New"}]))
    assert out == [{"id": "x", "textAlign": "left", "type": "badge", "badgeText": "New"}]


# --- graph and theme ---

@pytest.mark.parametrize("value,expected", [
    (-10, 2.0), (0, 2.0), (50, 50.0), (98, 98.0), (120, 98.0),
])
def test_clamp(value, expected):
    assert clamp(value) == expected


def test_normalize_graph_none_for_non_mapping():
    assert normalize_graph(None) is None
    assert normalize_graph([1, 2]) is None


def test_normalize_graph_defaults_nodes_and_clamps():
    """Nodes get ids, default titles, and clamped coordinates; non-finite values reset to 50."""
    graph = normalize_graph({
        "enabled": True,
        "nodes": [{"x": 500, "y": -4}, {"id": "n2", "x": float("nan"), "y": "12"}],
    })
    assert graph.enabled
    first, second = graph.nodes
    assert (first.id, first.title, first.x, first.y) == ("node-1", "Page", 98.0, 2.0)
    assert (second.id, second.x, second.y) == ("n2", 50.0, 50.0)


def test_normalize_graph_edges_require_endpoints():
    graph = normalize_graph({"edges": [{"from": "a", "to": "b"}, {"from": "a"}, {"id": "e", "from": "a", "to": "c"}]})
    assert [(e.id, e.from_, e.to) for e in graph.edges] == [("edge-1", "a", "b"), ("e", "a", "c")]


def test_normalize_graph_enabled_must_be_true():
    """Only the literal true enables the map."""
    assert not normalize_graph({"enabled": "yes"}).enabled


def test_normalize_graph_reads_owner_id():
    assert normalize_graph({"ownerId": "p1"}).owner_id == "p1"
    assert normalize_graph({"ownerId": 3}).owner_id is None


def test_normalize_theme_drops_invalid_values():
    theme = normalize_theme({"backgroundColor": "#000", "titleSize": "huge", "bodySize": "lg", "extra": 1})
    assert theme.background_color == "#000"
    assert theme.title_size is None
    assert theme.body_size == "lg"
    assert theme.node_map is None


def test_theme_roundtrip_keeps_node_map():
    theme = normalize_theme({"nodeMap": {"enabled": True, "nodes": [{"id": "__hub__", "title": "Home"}]}})
    again = normalize_theme(serialize_theme(theme))
    assert again == theme
    assert serialize_theme(theme)["nodeMap"]["nodes"][0]["id"] == "__hub__"
