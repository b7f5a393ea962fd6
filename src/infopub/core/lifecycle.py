"""Page lifecycle: creation, editing sessions, publishing, and undoable deletion.

EditSession holds one dirty page value and persists it on save(); every
mutation goes through a single recompute step that refreshes the body/images
caches and re-syncs the navigation graph. SoftDeleteQueue hides pages at once
and deletes them for real only after a grace window.
"""

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional, Sequence
from uuid import uuid4

from pydantic import ValidationError

from infopub.core import graph as nav
from infopub.core.errors import (
    GraphReadOnly, InfopubError, PageNotFound, PublishLimitReached, PublishRefused, SubscriptionInactive,
)
from infopub.core.graph import GraphOwnership, ProjectGroup, resolve_owner
from infopub.core.models import BaseBlock, NavigationGraph, Page, PageStatus
from infopub.core.normalize import normalize_blocks, serialize_blocks
from infopub.core.projection import refresh
from infopub.core.scheduler import Scheduler, Timer
from infopub.core.templates import get_template, make_block
from infopub.core.utils.slug import create_slug, slugify
from infopub.core.validate import PublishIssue, can_publish, validate
from infopub.crud.repo import PageStore


logger = logging.getLogger(__name__)
audit = logging.getLogger("infopub.audit")

HISTORY_LIMIT = 80
OUTCOME_LIMIT = 50
FIXED_BLOCK_FIELDS = ("id", "type")
THEME_STYLE_FIELDS = (
    "background_color", "text_color", "title_size", "title_color",
    "title_weight", "title_align", "body_size",
)


# --- creation ---

def _new_page(title: str, blocks: list[BaseBlock]) -> Page:
    return refresh(Page(id=str(uuid4()), title=title, slug=create_slug(title), blocks=blocks))


def create_blank(store: PageStore, title: str = "New page") -> Page:
    page = store.insert(_new_page(title, normalize_blocks(None, "")))
    audit.info("created page=%s slug=%s", page.id, page.slug)
    return page


def create_from_template(store: PageStore, index: int = 0) -> Page:
    template = get_template(index)
    page = store.insert(_new_page(template.title, template.blocks()))
    audit.info("created page=%s slug=%s template=%d", page.id, page.slug, index)
    return page


# --- editing ---

class EditSession:
    """Editing state for one page.

    Mutations change the held page and mark fields dirty; nothing reaches the
    store until save(), flush(), or a debounced schedule_save() fires. When the
    page follows another page's map, the graph is shown read-only.
    """

    def __init__(
        self,
        store: PageStore,
        page_id: str,
        scheduler: Optional[Scheduler] = None,
        save_debounce: float = 1.0,
        history_limit: int = HISTORY_LIMIT,
        ):
        page = store.get(page_id)
        if page is None:
            raise PageNotFound(f"Page not found: {page_id}")
        self.store = store
        self.scheduler = scheduler
        self.save_debounce = save_debounce
        self.history_limit = history_limit
        self.page: Page = page
        self.ownership: GraphOwnership = resolve_owner(page, store.list_pages())
        self.last_error: Optional[str] = None
        self._dirty: set[str] = set()
        self._past: list[list[BaseBlock]] = []
        self._future: list[list[BaseBlock]] = []
        self._save_timer: Optional[Timer] = None
        self._lock = threading.RLock()

    # state

    @property
    def dirty(self) -> bool:
        return bool(self._dirty)

    @property
    def is_follower(self) -> bool:
        return self.ownership.follower

    @property
    def graph(self) -> NavigationGraph:
        return self.ownership.graph

    @property
    def can_undo(self) -> bool:
        return bool(self._past)

    @property
    def can_redo(self) -> bool:
        return bool(self._future)

    def _set(self, **values: Any) -> None:
        with self._lock:
            self.page = self.page.model_copy(update=values)
            self._dirty.update(values)

    def _commit_blocks(self, blocks: Sequence[BaseBlock], record: bool = True) -> None:
        """Single recompute entrypoint for block changes.

        Items bound to nodes missing from the owned map are unbound here, so an
        undo past a node deletion cannot bring a dangling nodeId back.
        """
        with self._lock:
            blocks = normalize_blocks(serialize_blocks(blocks), "")
            if not self.is_follower and self.graph.enabled:
                blocks = nav.detach_dangling(self.graph, blocks)
            if record:
                self._past.append(list(self.page.blocks))
                del self._past[:-self.history_limit]
                self._future.clear()
            self._set(blocks=blocks)
            self.page = refresh(self.page)
            self._resync_graph()

    def _resync_graph(self) -> None:
        """Rebuild hub and edges from the blocks when this page owns an enabled map."""
        if self.is_follower or not self.graph.enabled:
            return
        synced = nav.sync_graph(self.graph, self.page.blocks, self.page.title, self.page.slug)
        self._store_graph(synced)

    def _store_graph(self, graph: NavigationGraph) -> None:
        with self._lock:
            graph = graph.model_copy(update={"owner_id": self.page.id})
            if graph == self.page.theme.node_map:
                return
            self.ownership = GraphOwnership(owner=self.page, graph=graph)
            self._set(theme=self.page.theme.model_copy(update={"node_map": graph}))

    # page fields

    def set_title(self, title: str) -> None:
        self._set(title=title)
        self._resync_graph()

    def set_slug(self, slug: str) -> None:
        value = slugify(slug)
        if not value:
            raise InfopubError("Slug must contain at least one letter or digit.")
        self._set(slug=value)
        self._resync_graph()

    def set_schedule(self, publish_at: Optional[datetime], unpublish_at: Optional[datetime]) -> None:
        self._set(publish_at=publish_at, unpublish_at=unpublish_at)

    def set_theme(self, **style: Any) -> None:
        unknown = set(style) - set(THEME_STYLE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown theme field(s): {', '.join(sorted(unknown))}")
        self._set(theme=self.page.theme.model_copy(update=style))

    # blocks

    def _index(self, block_id: str) -> int:
        for i, block in enumerate(self.page.blocks):
            if block.id == block_id:
                return i
        raise KeyError(block_id)

    def replace_blocks(self, blocks: Sequence[BaseBlock]) -> None:
        self._commit_blocks(blocks)

    def add_block(self, block_type: str, index: Optional[int] = None) -> BaseBlock:
        block = make_block(block_type)
        blocks = list(self.page.blocks)
        blocks.insert(len(blocks) if index is None else index, block)
        self._commit_blocks(blocks)
        return block

    def update_block(self, block_id: str, **changes: Any) -> None:
        fixed = set(changes) & set(FIXED_BLOCK_FIELDS)
        if fixed:
            raise InfopubError(f"Block field(s) cannot be changed: {', '.join(sorted(fixed))}")
        with self._lock:
            blocks = list(self.page.blocks)
            i = self._index(block_id)
            try:
                blocks[i] = type(blocks[i]).model_validate({**blocks[i].model_dump(), **changes})
            except ValidationError as e:
                raise InfopubError(f"Invalid value for block {block_id}: {e.error_count()} error(s)") from e
            self._commit_blocks(blocks)

    def remove_block(self, block_id: str) -> None:
        blocks = [b for b in self.page.blocks if b.id != block_id]
        if len(blocks) != len(self.page.blocks):
            self._commit_blocks(blocks)

    def move_block(self, block_id: str, offset: int) -> None:
        blocks = list(self.page.blocks)
        i = self._index(block_id)
        j = min(max(i + offset, 0), len(blocks) - 1)
        if i == j:
            return
        blocks.insert(j, blocks.pop(i))
        self._commit_blocks(blocks)

    def undo_blocks(self) -> bool:
        if not self._past:
            return False
        self._future.append(list(self.page.blocks))
        self._commit_blocks(self._past.pop(), record=False)
        return True

    def redo_blocks(self) -> bool:
        if not self._future:
            return False
        self._past.append(list(self.page.blocks))
        self._commit_blocks(self._future.pop(), record=False)
        return True

    # navigation graph

    def _require_owner(self) -> None:
        if self.is_follower:
            raise GraphReadOnly(
                f"This page follows the map of '{self.ownership.owner.title}'; edit the map there."
            )

    def _siblings(self) -> list[tuple[str, str]]:
        return [(p.title, p.slug) for p in self.store.list_pages() if p.id != self.page.id]

    def enable_graph(self) -> None:
        self._require_owner()
        synced = nav.sync_graph(self.graph, self.page.blocks, self.page.title, self.page.slug)
        self._store_graph(synced)

    def add_node(self) -> str:
        self._require_owner()
        graph = nav.add_node(self.graph, self._siblings())
        self._store_graph(nav.sync_graph(graph, self.page.blocks, self.page.title, self.page.slug))
        return graph.nodes[-1].id

    def delete_node(self, node_id: str) -> None:
        self._require_owner()
        graph, blocks = nav.delete_node(self.graph, self.page.blocks, node_id, self.page.title, self.page.slug)
        self._store_graph(graph)
        if blocks != self.page.blocks:
            self._commit_blocks(blocks)

    def set_node_target(self, node_id: str, slug: str) -> None:
        self._require_owner()
        target = next((p for p in self.store.list_pages() if p.slug == slug), None)
        graph, blocks = nav.set_node_target(
            self.graph, self.page.blocks, node_id, slug, target.title if target else None,
        )
        self._store_graph(graph)
        if blocks != self.page.blocks:
            self._commit_blocks(blocks)

    def rename_node(self, node_id: str, title: str) -> None:
        self._require_owner()
        self._store_graph(nav.rename_node(self.graph, node_id, title))

    def move_node(self, node_id: str, x: float, y: float) -> None:
        self._require_owner()
        self._store_graph(nav.move_node(self.graph, node_id, x, y))

    def link_item(self, block_id: str, item_id: str, node_id: str) -> None:
        self._require_owner()
        self._commit_blocks(nav.link_item_to_node(self.graph, self.page.blocks, block_id, item_id, node_id))

    # persistence

    def save(self) -> Page:
        """Write dirty fields to the store. On failure the fields stay dirty."""
        with self._lock:
            if not self._dirty:
                return self.page
            fields = set(self._dirty)
            patch = {name: getattr(self.page, name) for name in fields if name not in ("body", "images")}
            self._dirty.clear()
        try:
            stored = self.store.update(self.page.id, patch)
        except InfopubError as e:
            with self._lock:
                self._dirty |= fields
                self.last_error = str(e)
            raise
        with self._lock:
            self.last_error = None
            logger.debug("Saved page %s (%s)", stored.id, ", ".join(sorted(patch)))
            if self._dirty:
                # edited during the write; the local page is newer than stored
                return stored
            self.page = stored
            if not self.is_follower:
                self.ownership = GraphOwnership(owner=stored, graph=stored.graph)
            return stored

    def _autosave(self) -> None:
        try:
            self.save()
        except InfopubError as e:
            logger.warning("Autosave of page %s failed: %s", self.page.id, e)

    def schedule_save(self) -> None:
        """Debounce persistence: only the last call within the window saves."""
        if self.scheduler is None:
            self.save()
            return
        if self._save_timer is not None:
            self._save_timer.cancel()
        self._save_timer = self.scheduler.call_later(self.save_debounce, self._autosave)

    def flush(self) -> Page:
        """Cancel any pending debounced save and save now."""
        if self._save_timer is not None:
            self._save_timer.cancel()
            self._save_timer = None
        return self.save()

    def close(self) -> Page:
        """Save pending edits and end the session."""
        return self.flush()

    # publishing

    def check(self) -> list[PublishIssue]:
        owned = None if self.is_follower else self.graph
        return validate(self.page, owned if owned and owned.enabled else None, self.store.status_by_slug())

    def _transition(self, status: PageStatus) -> None:
        previous = self.page.status
        self._set(status=status)
        try:
            self.flush()
        except InfopubError:
            self.page = self.page.model_copy(update={"status": previous})
            self._dirty.discard("status")
            raise

    def publish(self) -> list[PublishIssue]:
        """Validate, enforce the plan, and publish. Returns the non-blocking warnings."""
        issues = self.check()
        if not can_publish(issues):
            raise PublishRefused(issues)
        if self.page.status != PageStatus.published:
            subscription = self.store.get_subscription()
            if subscription is None:
                raise SubscriptionInactive("No subscription found for this store.")
            if not subscription.can_publish:
                raise SubscriptionInactive(
                    f"Subscription is {subscription.status.value}; update billing to publish."
                )
            if self.store.published_count() >= subscription.max_published_pages:
                raise PublishLimitReached(subscription.max_published_pages)
        self._transition(PageStatus.published)
        audit.info("published page=%s slug=%s", self.page.id, self.page.slug)
        return [i for i in issues if not i.blocking]

    def unpublish(self) -> None:
        self._transition(PageStatus.draft)
        audit.info("unpublished page=%s slug=%s", self.page.id, self.page.slug)


# --- deletion ---

@dataclass
class PendingBatch:
    id: str
    label: str
    items: list[Page]
    expires_at: float
    timer: Optional[Timer] = None


@dataclass
class DeleteOutcome:
    batch_id: str
    label: str
    deleted: list[str] = field(default_factory=list)
    failed: list[Page] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def message(self) -> str:
        if self.ok:
            return f"Deleted '{self.label}'."
        return f"Some deletions of '{self.label}' failed ({len(self.failed)} of " \
               f"{len(self.failed) + len(self.deleted)}). Please retry."


class SoftDeleteQueue:
    """Undoable deletion over a visible page list.

    A batch is hidden immediately and deleted from the store when its timer
    fires; undo() within the grace window restores it without touching the
    store. Whichever of undo and the timer takes the batch first wins.
    """

    def __init__(
        self,
        store: PageStore,
        scheduler: Scheduler,
        grace: float = 5.0,
        pages: Optional[Sequence[Page]] = None,
        on_outcome: Optional[Callable[[DeleteOutcome], None]] = None,
        clock: Callable[[], float] = time.monotonic,
        ):
        self.store = store
        self.scheduler = scheduler
        self.grace = grace
        self.on_outcome = on_outcome
        self.clock = clock
        self.outcomes: deque[DeleteOutcome] = deque(maxlen=OUTCOME_LIMIT)
        self._visible: list[Page] = list(store.list_pages() if pages is None else pages)
        self._pending: dict[str, PendingBatch] = {}
        self._lock = threading.Lock()

    @property
    def visible(self) -> list[Page]:
        with self._lock:
            return list(self._visible)

    @property
    def pending(self) -> list[PendingBatch]:
        with self._lock:
            return list(self._pending.values())

    def remaining(self, batch_id: str) -> float:
        """Seconds left before the batch is deleted; 0 when it is no longer pending."""
        with self._lock:
            batch = self._pending.get(batch_id)
        return max(0.0, batch.expires_at - self.clock()) if batch else 0.0

    def _is_pending(self, page_id: str) -> bool:
        return any(p.id == page_id for b in self._pending.values() for p in b.items)

    def delete(self, page: Page) -> Optional[str]:
        return self.schedule([page], page.title)

    def delete_group(self, group: ProjectGroup) -> Optional[str]:
        return self.schedule(group.members, f"{group.hub.title} (+{len(group.pages)})")

    def schedule(self, pages: Sequence[Page], label: str) -> Optional[str]:
        """Hide pages and start one countdown for all of them.

        Returns the batch id, or None when nothing was scheduled because the
        list is empty or one of the pages is already pending.
        """
        if not pages:
            return None
        ids = {p.id for p in pages}
        with self._lock:
            if any(self._is_pending(i) for i in ids):
                return None
            batch = PendingBatch(
                id=str(uuid4()), label=label, items=list(pages), expires_at=self.clock() + self.grace,
            )
            self._visible = [p for p in self._visible if p.id not in ids]
            self._pending[batch.id] = batch
        batch.timer = self.scheduler.call_later(self.grace, lambda: self.finalize(batch.id))
        logger.debug("Scheduled deletion of %d page(s) as batch %s", len(pages), batch.id)
        return batch.id

    def _restore(self, pages: Sequence[Page]) -> None:
        known = {p.id for p in self._visible}
        merged = self._visible + [p for p in pages if p.id not in known]
        self._visible = sorted(merged, key=lambda p: p.updated_at, reverse=True)

    def undo(self, batch_id: str) -> bool:
        with self._lock:
            batch = self._pending.pop(batch_id, None)
            if batch is None:
                return False
            self._restore(batch.items)
        if batch.timer is not None:
            batch.timer.cancel()
        logger.info("Restored '%s'", batch.label)
        return True

    def finalize(self, batch_id: str) -> Optional[DeleteOutcome]:
        """Irrevocably delete a pending batch; None if undo already took it."""
        with self._lock:
            batch = self._pending.pop(batch_id, None)
        if batch is None:
            return None

        outcome = DeleteOutcome(batch_id=batch.id, label=batch.label)
        for page in batch.items:
            try:
                self.store.delete(page.id)
            except Exception as e:
                logger.error("Failed to delete page %s: %s", page.id, e)
                outcome.failed.append(page)
            else:
                outcome.deleted.append(page.id)
                audit.info("deleted page=%s slug=%s", page.id, page.slug)

        if outcome.failed:
            with self._lock:
                self._restore(outcome.failed)
        self.outcomes.append(outcome)
        if self.on_outcome is not None:
            self.on_outcome(outcome)
        return outcome

    def flush(self) -> list[DeleteOutcome]:
        """Finalize every pending batch now."""
        results = []
        for batch in self.pending:
            if batch.timer is not None:
                batch.timer.cancel()
            outcome = self.finalize(batch.id)
            if outcome is not None:
                results.append(outcome)
        return results

    def cancel_all(self) -> list[PendingBatch]:
        """Drop pending timers; pages in those batches are left in the store."""
        with self._lock:
            batches = list(self._pending.values())
            self._pending.clear()
        for batch in batches:
            if batch.timer is not None:
                batch.timer.cancel()
        return batches
