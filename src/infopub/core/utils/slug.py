"""Slug generation for page identifiers"""

import re
from uuid import uuid4


MAX_BASE_LENGTH = 40


def slugify(text: str) -> str:
    """Convert text to a lowercase, hyphen-separated URL-safe slug (ASCII only)."""
    text = text.lower()
    text = re.sub(r'[^a-z0-9\s_-]', '', text)
    text = re.sub(r'[\s_]+', '-', text)
    return re.sub(r'-+', '-', text).strip('-')


def create_slug(title: str) -> str:
    """Slug for a new page: slugified title (or 'info') plus a short random suffix."""
    base = slugify(title)[:MAX_BASE_LENGTH].strip('-')
    return f"{base or 'info'}-{uuid4().hex[:6]}"


def public_path(slug: str, qr: bool = False) -> str:
    """Public URL path for a page; the QR variant is tagged for view tracking."""
    return f"/p/{slug}?src=qr" if qr else f"/p/{slug}"
