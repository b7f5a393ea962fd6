"""Hub-and-spoke navigation graph kept consistent with iconRow node references.

Edges are never edited directly: sync_graph rebuilds them from the blocks every
time. Node deletion cascades into the blocks so no item keeps a dangling nodeId.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence
from uuid import uuid4

from infopub.core.models import (
    HUB_ID, INTERNAL_LINK_PREFIX, BaseBlock, IconRowBlock, NavEdge,
    NavigationGraph, NavNode, Page,
)
from infopub.core.normalize import clamp


logger = logging.getLogger(__name__)

HUB_ICON = "🏠"
HUB_X, HUB_Y = 50.0, 12.0
GRID_COLUMNS = 4


def edge_id(node_id: str) -> str:
    return f"auto-{HUB_ID}-{node_id}"


def internal_link(slug: str) -> str:
    return f"{INTERNAL_LINK_PREFIX}{slug}" if slug else ""


def linked_node_ids(blocks: Iterable[BaseBlock], valid_ids: Optional[set[str]] = None) -> list[str]:
    """Distinct spoke ids referenced by iconRow items, in block order."""
    seen: dict[str, None] = {}
    for block in blocks:
        if block.type != "iconRow":
            continue
        for item in block.icon_items:
            node_id = item.node_id.strip()
            if not node_id or node_id == HUB_ID:
                continue
            if valid_ids is not None and node_id not in valid_ids:
                continue
            seen.setdefault(node_id)
    return list(seen)


def sync_graph(
    graph: Optional[NavigationGraph],
    blocks: Sequence[BaseBlock],
    owner_title: str,
    owner_slug: str,
    ) -> NavigationGraph:
    """Return graph with a current hub and exactly the edges implied by blocks."""
    graph = graph or NavigationGraph()
    existing = graph.hub
    if existing:
        hub = existing.model_copy(update={"title": owner_title, "target_slug": owner_slug, "icon": HUB_ICON})
    else:
        hub = NavNode(id=HUB_ID, title=owner_title, icon=HUB_ICON, x=HUB_X, y=HUB_Y, target_slug=owner_slug)

    nodes = [hub, *graph.spokes]
    valid = {n.id for n in nodes}
    edges = [NavEdge(id=edge_id(n), from_=HUB_ID, to=n) for n in linked_node_ids(blocks, valid)]
    return graph.model_copy(update={"enabled": True, "nodes": nodes, "edges": edges})


def _map_items(blocks: Sequence[BaseBlock], target: str, changes: dict) -> list[BaseBlock]:
    """Apply changes to every iconRow item pointing at target; other blocks are returned as-is."""
    result = []
    for block in blocks:
        if isinstance(block, IconRowBlock) and any(i.node_id == target for i in block.icon_items):
            items = [i.model_copy(update=changes) if i.node_id == target else i for i in block.icon_items]
            block = block.model_copy(update={"icon_items": items})
        result.append(block)
    return result


def detach_dangling(graph: NavigationGraph, blocks: Sequence[BaseBlock]) -> list[BaseBlock]:
    """Unbind iconRow items whose nodeId names no node of graph."""
    valid = {n.id for n in graph.nodes}
    result = []
    for block in blocks:
        if isinstance(block, IconRowBlock):
            items = [
                i.model_copy(update={"node_id": "", "link": ""}) if i.node_id and i.node_id not in valid else i
                for i in block.icon_items
            ]
            if items != block.icon_items:
                block = block.model_copy(update={"icon_items": items})
        result.append(block)
    return result


def delete_node(
    graph: NavigationGraph,
    blocks: Sequence[BaseBlock],
    node_id: str,
    owner_title: str,
    owner_slug: str,
    ) -> tuple[NavigationGraph, list[BaseBlock]]:
    """Remove a spoke and clear every item that referenced it. The hub cannot be removed."""
    if node_id == HUB_ID or graph.node(node_id) is None:
        return graph, list(blocks)
    remaining = graph.model_copy(update={
        "nodes": [n for n in graph.nodes if n.id != node_id],
        "edges": [e for e in graph.edges if node_id not in (e.from_, e.to)],
    })
    next_blocks = _map_items(blocks, node_id, {"node_id": "", "link": ""})
    logger.debug("Deleted node %s", node_id)
    return sync_graph(remaining, next_blocks, owner_title, owner_slug), next_blocks


def add_node(
    graph: NavigationGraph,
    siblings: Sequence[tuple[str, str]],
    node_id: Optional[str] = None,
    ) -> NavigationGraph:
    """Append a spoke targeting the first sibling (title, slug) not yet on the map."""
    used = {n.target_slug for n in graph.nodes if n.target_slug}
    candidate = next(((t, s) for t, s in siblings if s not in used), None)
    count = len(graph.nodes)
    node = NavNode(
        id=node_id or str(uuid4()),
        title=candidate[0] if candidate else f"Page {count + 1}",
        x=clamp(14 + (count % GRID_COLUMNS) * 22),
        y=clamp(18 + (count // GRID_COLUMNS) * 20),
        target_slug=candidate[1] if candidate else "",
    )
    return graph.model_copy(update={"enabled": True, "nodes": [*graph.nodes, node]})


def set_node_target(
    graph: NavigationGraph,
    blocks: Sequence[BaseBlock],
    node_id: str,
    slug: str,
    title: Optional[str] = None,
    ) -> tuple[NavigationGraph, list[BaseBlock]]:
    """Point a spoke at another page and rewrite the links of items bound to it."""
    if node_id == HUB_ID or graph.node(node_id) is None:
        return graph, list(blocks)
    nodes = [
        n.model_copy(update={"target_slug": slug, "title": title or n.title}) if n.id == node_id else n
        for n in graph.nodes
    ]
    return graph.model_copy(update={"nodes": nodes}), _map_items(blocks, node_id, {"link": internal_link(slug)})


def rename_node(graph: NavigationGraph, node_id: str, title: str) -> NavigationGraph:
    if node_id == HUB_ID:
        return graph
    nodes = [n.model_copy(update={"title": title}) if n.id == node_id else n for n in graph.nodes]
    return graph.model_copy(update={"nodes": nodes})


def move_node(graph: NavigationGraph, node_id: str, x: float, y: float) -> NavigationGraph:
    nodes = [n.model_copy(update={"x": clamp(x), "y": clamp(y)}) if n.id == node_id else n for n in graph.nodes]
    return graph.model_copy(update={"nodes": nodes})


def link_item_to_node(
    graph: NavigationGraph,
    blocks: Sequence[BaseBlock],
    block_id: str,
    item_id: str,
    node_id: str,
    ) -> list[BaseBlock]:
    """Bind one iconRow item to a spoke (or unbind with an empty/unknown node_id)."""
    node = graph.node(node_id) if node_id and node_id != HUB_ID else None
    changes = {"node_id": node.id, "link": internal_link(node.target_slug)} if node else {"node_id": "", "link": ""}
    result = []
    for block in blocks:
        if isinstance(block, IconRowBlock) and block.id == block_id:
            items = [i.model_copy(update=changes) if i.id == item_id else i for i in block.icon_items]
            block = block.model_copy(update={"icon_items": items})
        result.append(block)
    return result


# --- ownership ---

@dataclass
class GraphOwnership:
    """Which page stores the graph a given page edits or displays."""
    owner: Page
    graph: NavigationGraph
    follower: bool = False

    @property
    def owner_id(self) -> str:
        return self.owner.id


def _references(graph: NavigationGraph, slug: str) -> bool:
    return any(n.target_slug == slug for n in graph.spokes)


def resolve_owner(page: Page, siblings: Iterable[Page]) -> GraphOwnership:
    """Find the graph owner for page.

    A page with its own enabled graph owns it. Otherwise the first enabled sibling
    graph with a spoke targeting this page's slug makes it a follower, preferring
    graphs whose stored ownerId confirms the sibling as owner; the returned graph is
    a copy. With no owner found, the page owns its own graph.
    """
    own = page.graph
    if own.enabled:
        return GraphOwnership(owner=page, graph=own)

    candidates = [s for s in siblings if s.id != page.id and s.graph.enabled]
    owner = next((s for s in candidates if _references(s.graph, page.slug) and s.graph.owner_id == s.id), None)
    owner = owner or next((s for s in candidates if _references(s.graph, page.slug)), None)
    if owner is not None:
        logger.debug("Page %s follows graph owned by %s", page.id, owner.id)
        return GraphOwnership(owner=owner, graph=owner.graph.model_copy(deep=True), follower=True)
    return GraphOwnership(owner=page, graph=own)


@dataclass
class ProjectGroup:
    """A hub page and the pages its spokes target."""
    hub: Page
    pages: list[Page] = field(default_factory=list)

    @property
    def members(self) -> list[Page]:
        return [self.hub, *self.pages]


def project_groups(pages: Sequence[Page]) -> list[ProjectGroup]:
    by_slug = {p.slug: p for p in pages}
    groups = []
    for hub in pages:
        graph = hub.graph
        if not graph.enabled:
            continue
        slugs = dict.fromkeys(n.target_slug.strip() for n in graph.nodes if n.target_slug.strip())
        members = [by_slug[s] for s in slugs if s in by_slug and by_slug[s].id != hub.id]
        groups.append(ProjectGroup(hub=hub, pages=members))
    return groups
