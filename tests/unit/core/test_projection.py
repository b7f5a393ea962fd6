"""Unit tests for core/projection.py"""

from infopub.core.models import (
    ColumnsBlock, DividerBlock, GalleryBlock, GalleryItem, HoursBlock, ImageBlock,
    KeyValueItem, Page, ParagraphBlock, SpaceBlock, TitleBlock,
)
from infopub.core.projection import MAX_IMAGES, block_text, body_of, has_content, images_of, refresh


def test_body_joins_block_text_with_blank_lines():
    blocks = [
        TitleBlock(id="t", text="  Welcome "),
        DividerBlock(id="d"),
        ColumnsBlock(id="c", left_title="Left", right_text="Right"),
    ]
    assert body_of(blocks) == "Welcome\n\nLeft\nRight"


def test_body_of_icon_row_joins_labels(icon_row):
    block = icon_row("r", "", "")
    assert block_text(block) == "Item 1 / Item 2"


def test_hours_lines_skip_empty_items():
    block = HoursBlock(id="h", hours_items=[
        KeyValueItem(id="1", label="Mon", value="9-5"),
        KeyValueItem(id="2"),
        KeyValueItem(id="3", value="closed"),
    ])
    assert block_text(block) == "Mon 9-5\nclosed"


def test_images_capped_in_block_order():
    """Image blocks and gallery items count toward one cap of three, in order."""
    blocks = [
        ImageBlock(id="i1", url=""),
        ImageBlock(id="i2", url="https://img.test/a.png"),
        GalleryBlock(id="g", gallery_items=[
            GalleryItem(id="1", url="https://img.test/b.png"),
            GalleryItem(id="2", url=" "),
            GalleryItem(id="3", url="https://img.test/c.png"),
            GalleryItem(id="4", url="https://img.test/d.png"),
        ]),
        ImageBlock(id="i3", url="https://img.test/e.png"),
    ]
    images = images_of(blocks)
    assert len(images) == MAX_IMAGES
    assert images == ["https://img.test/a.png", "https://img.test/b.png", "https://img.test/c.png"]


def test_has_content_visual_blocks_always_count():
    assert has_content(DividerBlock(id="d"))
    assert has_content(SpaceBlock(id="s"))


def test_has_content_empty_text_blocks():
    assert not has_content(ParagraphBlock(id="p", text="   "))
    assert not has_content(ImageBlock(id="i"))


def test_refresh_recomputes_caches():
    page = Page(id="x", title="T", slug="t", body="stale", images=["old"], blocks=[
        ParagraphBlock(id="p", text="Fresh"), ImageBlock(id="i", url="https://img.test/n.png"),
    ])
    fresh = refresh(page)
    assert fresh.body == "Fresh"
    assert fresh.images == ["https://img.test/n.png"]
    assert page.body == "stale"
