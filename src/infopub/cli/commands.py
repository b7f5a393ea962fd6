"""CLI command implementations"""

import logging
import threading
from pathlib import Path
from typing import Annotated, Optional

import typer
from sqlmodel import SQLModel

from infopub.config import Settings, load_config
from infopub.core.billing import Plan, SubscriptionStatus
from infopub.core.errors import InfopubError
from infopub.core.export import write_page
from infopub.core.lifecycle import EditSession, SoftDeleteQueue, create_blank, create_from_template
from infopub.core.models import Page, PageStatus
from infopub.core.scheduler import BackgroundTimers
from infopub.core.templates import INDUSTRY_LABELS, STARTER_TEMPLATES
from infopub.core.utils.slug import public_path
from infopub.core.validate import IssueLevel
from infopub.crud.database import init_db, make_engine
from infopub.crud.documents import SQLPageStore


logger = logging.getLogger(__name__)


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _store(settings: Settings) -> SQLPageStore:
    """Open the database and resolve the tenant for the configured email."""
    engine = make_engine(settings.db_url)
    init_db(engine)
    store = SQLPageStore(engine, free_limit=settings.free_page_limit)
    try:
        store.ensure_tenant(settings.tenant_email)
    except InfopubError as e:
        _fail("Could not resolve the store for this user", e)
    return store


def _page(store: SQLPageStore, slug: str) -> Page:
    page = store.get_by_slug(slug)
    if page is None:
        _fail(f"No page with slug '{slug}'.")
    return page


def _session(store: SQLPageStore, settings: Settings, slug: str) -> EditSession:
    return EditSession(
        store, _page(store, slug).id,
        save_debounce=settings.save_debounce_seconds, history_limit=settings.history_limit,
    )


def _echo_issues(issues) -> None:
    for issue in issues:
        marker = "x" if issue.level == IssueLevel.error else "!"
        typer.echo(f"  [{marker}] {issue.message}")


def init_cmd(
    reset: Annotated[bool, typer.Option("--reset", help="Drop and recreate all tables")] = False,
    ):
    """Initialize database schema. Use --reset to clear existing data."""
    settings = _settings()
    engine = make_engine(settings.db_url)
    if reset:
        SQLModel.metadata.drop_all(engine)
        typer.echo("Existing data cleared.")
    init_db(engine)
    typer.echo(f"Database initialized at: {settings.db_url}")


def templates_cmd():
    """List the starter templates available to 'create --template'."""
    for i, template in enumerate(STARTER_TEMPLATES):
        typer.echo(f"  {i}: {template.title} ({INDUSTRY_LABELS[template.industry]})")


def create_cmd(
    title: Annotated[Optional[str], typer.Argument(help="Title of a blank page")] = None,
    template: Annotated[Optional[int], typer.Option("--template", help="Start from starter template N")] = None,
    ):
    """Create a draft page, blank or from a starter template."""
    store = _store(_settings())
    try:
        if template is not None:
            page = create_from_template(store, template)
        else:
            page = create_blank(store, title or "New page")
    except InfopubError as e:
        _fail("Create failed", e)
    typer.echo(f"Created draft '{page.title}' at {public_path(page.slug)}")


def list_cmd():
    """List pages of the current store, most recently updated first."""
    store = _store(_settings())
    pages = store.list_pages()
    if not pages:
        typer.echo("No pages found.")
        raise typer.Exit(1)
    for p in pages:
        typer.echo(f"  {p.status.value:<9} {p.slug:<40} {p.title}")


def check_cmd(
    slug: Annotated[str, typer.Argument(help="Slug of the page to check")],
    ):
    """Run the publish check and list errors and warnings."""
    settings = _settings()
    store = _store(settings)
    session = _session(store, settings, slug)
    issues = session.check()
    if not issues:
        typer.echo("No issues found.")
        return
    _echo_issues(issues)
    if any(i.blocking for i in issues):
        raise typer.Exit(1)


def publish_cmd(
    slug: Annotated[str, typer.Argument(help="Slug of the page to publish")],
    ):
    """Publish a page if it passes the check and the plan allows it."""
    settings = _settings()
    store = _store(settings)
    session = _session(store, settings, slug)
    try:
        warnings = session.publish()
    except InfopubError as e:
        _echo_issues(getattr(e, "issues", []))
        _fail(str(e))
    _echo_issues(warnings)
    typer.echo(f"Published: {settings.base_url.rstrip('/')}{public_path(slug)}")


def unpublish_cmd(
    slug: Annotated[str, typer.Argument(help="Slug of the page to unpublish")],
    ):
    """Return a published page to draft."""
    settings = _settings()
    store = _store(settings)
    session = _session(store, settings, slug)
    try:
        session.unpublish()
    except InfopubError as e:
        _fail("Unpublish failed", e)
    typer.echo(f"Unpublished: {slug}")


def export_cmd(
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    fmt: Annotated[Optional[str], typer.Option("--format", help="md or html")] = None,
    slug: Annotated[Optional[str], typer.Option("--slug", help="Export a single page")] = None,
    all_pages: Annotated[bool, typer.Option("--all", help="Export drafts too")] = False,
    ):
    """Write rendered pages + sidecar JSON to the output dir (published pages by default)."""
    settings = _settings(overrides={"output_dir": out, "output_format": fmt})
    store = _store(settings)
    output_dir = Path(settings.output_dir)

    if slug:
        pages = [_page(store, slug)]
    elif all_pages:
        pages = store.list_pages()
    else:
        pages = [p for p in store.list_pages() if p.status == PageStatus.published]
    if not pages:
        typer.echo("No pages to export.")
        raise typer.Exit(1)

    try:
        results = [
            write_page(p, output_dir, settings.output_format, settings.base_url, settings.parser_config)
            for p in pages
        ]
    except OSError as e:
        _fail("Export failed", e)
    for content_path, _ in results:
        typer.echo(f"  {content_path}")
    typer.echo(f"Exported {len(results)} page(s) to {output_dir}/")


def delete_cmd(
    slugs: Annotated[list[str], typer.Argument(help="Slugs of the pages to delete")],
    grace: Annotated[Optional[float], typer.Option("--grace", help="Seconds to undo with Ctrl+C")] = None,
    ):
    """Delete pages after a grace period; Ctrl+C during the countdown restores them."""
    settings = _settings(overrides={"delete_grace_seconds": grace})
    store = _store(settings)
    pages = list({p.id: p for p in (_page(store, s) for s in slugs)}.values())
    label = pages[0].title if len(pages) == 1 else f"{len(pages)} pages"

    done = threading.Event()
    timers = BackgroundTimers()
    queue = SoftDeleteQueue(
        store, timers, grace=settings.delete_grace_seconds, pages=store.list_pages(),
        on_outcome=lambda _: done.set(),
    )
    batch_id = queue.schedule(pages, label)
    if settings.delete_grace_seconds > 0:
        typer.echo(f"Deleting '{label}' in {settings.delete_grace_seconds:g}s. Press Ctrl+C to undo.")
    try:
        if settings.delete_grace_seconds <= 0:
            queue.flush()
        while not done.wait(0.1):
            pass
    except KeyboardInterrupt:
        if queue.undo(batch_id):
            typer.echo(f"Restored '{label}'.")
            return
        done.wait()
    finally:
        timers.shutdown()

    outcome = queue.outcomes[-1]
    if not outcome.ok:
        _fail(outcome.message)
    typer.echo(outcome.message)


def url_cmd(
    slug: Annotated[str, typer.Argument(help="Slug of the page")],
    qr: Annotated[bool, typer.Option("--qr", help="URL tagged for QR code scans")] = False,
    ):
    """Print the public URL of a page."""
    settings = _settings()
    store = _store(settings)
    page = _page(store, slug)
    if page.status != PageStatus.published:
        logger.warning("Page %s is not published yet", slug)
    typer.echo(f"{settings.base_url.rstrip('/')}{public_path(page.slug, qr=qr)}")


def plan_cmd(
    set_plan: Annotated[Optional[Plan], typer.Option("--set", help="Record a plan change (free or pro)")] = None,
    status: Annotated[SubscriptionStatus, typer.Option("--status", help="Status recorded with --set")] = SubscriptionStatus.active,
    ):
    """Show the current plan and how many pages are published."""
    settings = _settings()
    store = _store(settings)
    if set_plan is not None:
        try:
            store.set_subscription(set_plan, status, settings.free_page_limit, settings.pro_page_limit)
        except InfopubError as e:
            _fail("Could not update the plan", e)
    subscription = store.get_subscription()
    if subscription is None:
        _fail("No subscription found for this store.")
    typer.echo(f"Plan: {subscription.plan.value} ({subscription.status.value})")
    typer.echo(f"Published: {store.published_count()} / {subscription.max_published_pages}")
