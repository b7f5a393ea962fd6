"""Tolerant decoding of persisted blocks, themes, and navigation graphs.

Persisted values are schema-less JSON. Every read goes through this module: each
element is decoded on its own, malformed fields fall back to defaults, and
elements that cannot be decoded at all are dropped. Nothing here raises.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ValidationError

from infopub.core.models import (
    BLOCK_CLASSES, BaseBlock, ChecklistItem, ColumnGroupItem, GalleryItem,
    IconRowItem, KeyValueItem, NavEdge, NavigationGraph, NavNode, ParagraphBlock, Theme,
)


logger = logging.getLogger(__name__)

SIZES = {"sm", "md", "lg"}
WEIGHTS = {"normal", "medium", "semibold"}
ALIGNS = {"left", "center", "right"}
THICKNESSES = {"thin", "medium", "thick"}
RADII = {"sm", "md", "lg", "xl", "full"}

# camelCase wire name -> allowed values
ENUM_FIELDS: dict[str, set[str]] = {
    "spacing":          SIZES,
    "textAlign":        ALIGNS,
    "textSize":         SIZES,
    "textWeight":       WEIGHTS,
    "cardRadius":       RADII,
    "dividerThickness": THICKNESSES,
    "titleSize":        SIZES,
    "titleWeight":      WEIGHTS,
    "titleAlign":       ALIGNS,
    "bodySize":         SIZES,
}

# camelCase wire name -> (item model, synthesized id prefix)
ITEM_FIELDS: dict[str, tuple[type[BaseModel], str]] = {
    "iconItems":        (IconRowItem, "icon-item"),
    "hoursItems":       (KeyValueItem, "hours-item"),
    "pricingItems":     (KeyValueItem, "pricing-item"),
    "checklistItems":   (ChecklistItem, "check-item"),
    "galleryItems":     (GalleryItem, "gallery-item"),
    "columnGroupItems": (ColumnGroupItem, "column-item"),
}

BLANK_LINE_RE = re.compile(r"\n[ \t]*\n\s*")
CLAMP_MIN, CLAMP_MAX = 2.0, 98.0


@dataclass(frozen=True)
class Decoded:
    """Outcome of decoding one persisted element: a block or the reason it was dropped."""
    block: Optional[BaseBlock] = None
    issue: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.block is not None


def _as_mapping(value: Any) -> Optional[dict]:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, exclude_none=True)
    return value if isinstance(value, dict) else None


def _pick(raw: dict, alias: str, name: str) -> Any:
    """Read a field by wire name, accepting the snake_case attribute name as a fallback."""
    return raw[alias] if alias in raw else raw.get(name)


def _unique_id(candidate: str, taken: set[str]) -> str:
    result, n = candidate, 1
    while result in taken:
        result = f"{candidate}-{n}"
        n += 1
    return result


def _assign_ids(entries: list[dict], prefix: str) -> list[str]:
    """Keep valid string ids and synthesize positional ones (<prefix>-<n>) for the rest.

    A repeated id is kept on its first occurrence only; later ones get a fresh id.
    """
    taken = {e["id"] for e in entries if isinstance(e.get("id"), str) and e["id"]}
    seen: set[str] = set()
    ids = []
    for i, entry in enumerate(entries):
        value = entry.get("id")
        if isinstance(value, str) and value and value not in seen:
            seen.add(value)
            ids.append(value)
            continue
        new_id = _unique_id(f"{prefix}-{i + 1}", taken)
        taken.add(new_id)
        ids.append(new_id)
    return ids


def _scalar_fields(model: type[BaseModel], raw: dict, skip: Iterable[str] = ()) -> dict[str, Any]:
    """Type-check every plain field of model against raw; invalid values are omitted."""
    data: dict[str, Any] = {}
    for name, field in model.model_fields.items():
        alias = field.alias or name
        if name in skip or alias in ITEM_FIELDS:
            continue
        value = _pick(raw, alias, name)
        if alias in ENUM_FIELDS:
            if isinstance(value, str) and value in ENUM_FIELDS[alias]:
                data[name] = value
        elif isinstance(value, str):
            data[name] = value
    return data


def decode_items(value: Any, model: type[BaseModel], prefix: str) -> list[BaseModel]:
    """Decode a list of sub-items; non-mapping entries are dropped, ids filled in by position."""
    if not isinstance(value, list):
        return []
    entries = [(i, _as_mapping(v)) for i, v in enumerate(value)]
    positional = [m if m is not None else {} for _, m in entries]
    ids = _assign_ids(positional, prefix)
    items = []
    for (i, mapping), item_id in zip(entries, ids):
        if mapping is None:
            continue
        data = _scalar_fields(model, mapping, skip=("id",))
        items.append(model(id=item_id, **data))
    return items


def decode_block(raw: Any, block_id: str) -> Decoded:
    """Decode one persisted block. Unknown types and non-mappings are reported, not raised."""
    mapping = _as_mapping(raw)
    if mapping is None:
        return Decoded(issue=f"not a mapping: {type(raw).__name__}")
    block_type = mapping.get("type")
    cls = BLOCK_CLASSES.get(block_type) if isinstance(block_type, str) else None
    if cls is None:
        return Decoded(issue=f"unknown block type: {block_type!r}")

    data = _scalar_fields(cls, mapping, skip=("id", "type"))
    for name, field in cls.model_fields.items():
        if field.alias in ITEM_FIELDS:
            model, prefix = ITEM_FIELDS[field.alias]
            data[name] = decode_items(_pick(mapping, field.alias, name), model, prefix)
    try:
        return Decoded(block=cls(id=block_id, **data))
    except ValidationError as e:
        return Decoded(issue=f"invalid {block_type} block: {e.error_count()} error(s)")


def blocks_from_text(text: Any) -> list[BaseBlock]:
    """Legacy path: split plain text on blank lines into paragraph blocks."""
    body = text.strip() if isinstance(text, str) else ""
    if not body:
        return [ParagraphBlock(id="block-1", text="")]
    chunks = [c.strip() for c in BLANK_LINE_RE.split(body)]
    return [
        ParagraphBlock(id=f"block-{i + 1}", text=chunk)
        for i, chunk in enumerate(c for c in chunks if c)
    ]


def normalize_blocks(raw: Any, fallback_text: Any = "") -> list[BaseBlock]:
    """Reconstruct a typed block sequence from any persisted value.

    A non-empty list is decoded element by element; anything else (or a list in
    which nothing survives) falls back to splitting fallback_text into paragraphs.
    The result is never empty and repeated normalization is stable.
    """
    if isinstance(raw, (list, tuple)) and raw:
        mappings = [_as_mapping(v) or {} for v in raw]
        ids = _assign_ids(mappings, "block")
        blocks = []
        for position, (value, block_id) in enumerate(zip(raw, ids)):
            decoded = decode_block(value, block_id)
            if decoded.ok:
                blocks.append(decoded.block)
            else:
                logger.debug("Dropped block at position %d: %s", position, decoded.issue)
        if blocks:
            return blocks
    return blocks_from_text(fallback_text)


def serialize_blocks(blocks: Iterable[BaseBlock]) -> list[dict[str, Any]]:
    """Wire format for persistence: camelCase keys, unset fields omitted."""
    return [b.model_dump(by_alias=True, exclude_none=True, mode="json") for b in blocks]


# --- theme and graph ---

def _coordinate(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        value = 50.0
    return min(CLAMP_MAX, max(CLAMP_MIN, float(value)))


def clamp(value: float) -> float:
    """Clamp a percentage coordinate into the safe interior rectangle."""
    return _coordinate(value)


def normalize_graph(raw: Any) -> Optional[NavigationGraph]:
    """Decode an embedded navigation graph; None when nothing graph-like is stored."""
    mapping = _as_mapping(raw)
    if mapping is None:
        return None

    raw_nodes = mapping.get("nodes") if isinstance(mapping.get("nodes"), list) else []
    node_maps = [_as_mapping(v) for v in raw_nodes]
    node_ids = _assign_ids([m or {} for m in node_maps], "node")
    nodes = []
    for m, node_id in zip(node_maps, node_ids):
        if m is None:
            continue
        data = _scalar_fields(NavNode, m, skip=("id", "x", "y"))
        nodes.append(NavNode(id=node_id, x=_coordinate(m.get("x")), y=_coordinate(m.get("y")), **data))

    raw_edges = mapping.get("edges") if isinstance(mapping.get("edges"), list) else []
    edges = []
    for i, value in enumerate(raw_edges):
        m = _as_mapping(value)
        if m is None or not isinstance(m.get("from"), str) or not isinstance(m.get("to"), str):
            continue
        edge_id = m["id"] if isinstance(m.get("id"), str) and m["id"] else f"edge-{i + 1}"
        edges.append(NavEdge(id=edge_id, from_=m["from"], to=m["to"]))

    owner = mapping.get("ownerId")
    return NavigationGraph(
        enabled=mapping.get("enabled") is True,
        owner_id=owner if isinstance(owner, str) and owner else None,
        nodes=nodes,
        edges=edges,
    )


def normalize_theme(raw: Any) -> Theme:
    """Decode a persisted theme; unknown or mistyped values are dropped."""
    mapping = _as_mapping(raw)
    if mapping is None:
        return Theme()
    data = _scalar_fields(Theme, mapping, skip=("node_map",))
    return Theme(node_map=normalize_graph(mapping.get("nodeMap")), **data)


def serialize_theme(theme: Theme) -> dict[str, Any]:
    return theme.model_dump(by_alias=True, exclude_none=True, mode="json")
