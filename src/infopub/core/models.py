"""Typed content model: blocks, sub-items, navigation graph, theme, and page"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


HUB_ID = "__hub__"
INTERNAL_LINK_PREFIX = "/p/"


class PageStatus(str, Enum):
    """Publication state of a page"""
    draft = "draft"
    published = "published"


class BlockType(str, Enum):
    """The closed palette of content block types"""
    title = "title"
    heading = "heading"
    paragraph = "paragraph"
    image = "image"
    divider = "divider"
    icon = "icon"
    space = "space"
    section = "section"
    columns = "columns"
    icon_row = "iconRow"
    cta = "cta"
    badge = "badge"
    hours = "hours"
    pricing = "pricing"
    quote = "quote"
    checklist = "checklist"
    gallery = "gallery"
    column_group = "columnGroup"


Size = Literal["sm", "md", "lg"]
Weight = Literal["normal", "medium", "semibold"]
Align = Literal["left", "center", "right"]
Thickness = Literal["thin", "medium", "thick"]
Radius = Literal["sm", "md", "lg", "xl", "full"]


class WireModel(BaseModel):
    """Base for persisted structures: snake_case attributes, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- sub-items ---

class IconRowItem(WireModel):
    id: str
    icon: str = "⭐"
    label: str = ""
    link: str = ""
    node_id: str = ""
    background_color: str = "#ffffff"


class KeyValueItem(WireModel):
    id: str
    label: str = ""
    value: str = ""


class ChecklistItem(WireModel):
    id: str
    text: str = ""


class GalleryItem(WireModel):
    id: str
    url: str = ""
    caption: str = ""


class ColumnGroupItem(WireModel):
    id: str
    title: str = ""
    body: str = ""


# --- blocks ---

class BaseBlock(WireModel):
    """Fields shared by every block: identity plus optional text styling."""
    id: str
    spacing: Optional[Size] = None
    text_align: Align = "left"
    text_size: Optional[Size] = None
    text_color: Optional[str] = None
    text_weight: Optional[Weight] = None
    card_radius: Optional[Radius] = None


class TitleBlock(BaseBlock):
    type: Literal["title"] = "title"
    text: Optional[str] = None


class HeadingBlock(BaseBlock):
    type: Literal["heading"] = "heading"
    text: Optional[str] = None


class ParagraphBlock(BaseBlock):
    type: Literal["paragraph"] = "paragraph"
    text: Optional[str] = None


class ImageBlock(BaseBlock):
    type: Literal["image"] = "image"
    url: Optional[str] = None


class DividerBlock(BaseBlock):
    type: Literal["divider"] = "divider"
    divider_thickness: Optional[Thickness] = None
    divider_color: Optional[str] = None


class IconBlock(BaseBlock):
    type: Literal["icon"] = "icon"
    icon: Optional[str] = None
    label: Optional[str] = None
    description: Optional[str] = None


class SpaceBlock(BaseBlock):
    type: Literal["space"] = "space"


class SectionBlock(BaseBlock):
    type: Literal["section"] = "section"
    section_title: Optional[str] = None
    section_body: Optional[str] = None
    section_background_color: Optional[str] = None


class ColumnsBlock(BaseBlock):
    type: Literal["columns"] = "columns"
    left_title: Optional[str] = None
    left_text: Optional[str] = None
    right_title: Optional[str] = None
    right_text: Optional[str] = None
    columns_background_color: Optional[str] = None


class IconRowBlock(BaseBlock):
    type: Literal["iconRow"] = "iconRow"
    icon_row_background_color: Optional[str] = None
    icon_items: list[IconRowItem] = Field(default_factory=list)


class CtaBlock(BaseBlock):
    type: Literal["cta"] = "cta"
    cta_label: Optional[str] = None
    cta_url: Optional[str] = None


class BadgeBlock(BaseBlock):
    type: Literal["badge"] = "badge"
    badge_text: Optional[str] = None
    badge_color: Optional[str] = None
    badge_text_color: Optional[str] = None


class HoursBlock(BaseBlock):
    type: Literal["hours"] = "hours"
    hours_items: list[KeyValueItem] = Field(default_factory=list)


class PricingBlock(BaseBlock):
    type: Literal["pricing"] = "pricing"
    pricing_items: list[KeyValueItem] = Field(default_factory=list)


class QuoteBlock(BaseBlock):
    type: Literal["quote"] = "quote"
    text: Optional[str] = None
    quote_author: Optional[str] = None


class ChecklistBlock(BaseBlock):
    type: Literal["checklist"] = "checklist"
    checklist_items: list[ChecklistItem] = Field(default_factory=list)


class GalleryBlock(BaseBlock):
    type: Literal["gallery"] = "gallery"
    gallery_items: list[GalleryItem] = Field(default_factory=list)


class ColumnGroupBlock(BaseBlock):
    type: Literal["columnGroup"] = "columnGroup"
    column_group_items: list[ColumnGroupItem] = Field(default_factory=list)


Block = Annotated[
    Union[
        TitleBlock, HeadingBlock, ParagraphBlock, ImageBlock, DividerBlock, IconBlock,
        SpaceBlock, SectionBlock, ColumnsBlock, IconRowBlock, CtaBlock, BadgeBlock,
        HoursBlock, PricingBlock, QuoteBlock, ChecklistBlock, GalleryBlock, ColumnGroupBlock,
    ],
    Field(discriminator="type"),
]

BLOCK_CLASSES: dict[str, type[BaseBlock]] = {
    "title":       TitleBlock,
    "heading":     HeadingBlock,
    "paragraph":   ParagraphBlock,
    "image":       ImageBlock,
    "divider":     DividerBlock,
    "icon":        IconBlock,
    "space":       SpaceBlock,
    "section":     SectionBlock,
    "columns":     ColumnsBlock,
    "iconRow":     IconRowBlock,
    "cta":         CtaBlock,
    "badge":       BadgeBlock,
    "hours":       HoursBlock,
    "pricing":     PricingBlock,
    "quote":       QuoteBlock,
    "checklist":   ChecklistBlock,
    "gallery":     GalleryBlock,
    "columnGroup": ColumnGroupBlock,
}


# --- navigation graph ---

class NavNode(WireModel):
    id: str
    title: str = "Page"
    icon: str = "📄"
    x: float = 50
    y: float = 50
    target_slug: str = ""

    @property
    def is_hub(self) -> bool:
        return self.id == HUB_ID


class NavEdge(WireModel):
    id: str
    from_: str = Field(alias="from")
    to: str


class NavigationGraph(WireModel):
    """Hub-and-spoke map stored inside the owning page's theme."""
    enabled: bool = False
    owner_id: Optional[str] = None
    nodes: list[NavNode] = Field(default_factory=list)
    edges: list[NavEdge] = Field(default_factory=list)

    @property
    def hub(self) -> Optional[NavNode]:
        return next((n for n in self.nodes if n.is_hub), None)

    @property
    def spokes(self) -> list[NavNode]:
        return [n for n in self.nodes if not n.is_hub]

    def node(self, node_id: str) -> Optional[NavNode]:
        return next((n for n in self.nodes if n.id == node_id), None)


class Theme(WireModel):
    background_color: Optional[str] = None
    text_color: Optional[str] = None
    title_size: Optional[Size] = None
    title_color: Optional[str] = None
    title_weight: Optional[Weight] = None
    title_align: Optional[Align] = None
    body_size: Optional[Size] = None
    node_map: Optional[NavigationGraph] = None


# --- page ---

class Page(BaseModel):
    """One information page. body and images are caches derived from blocks."""
    id: str
    title: str
    slug: str
    status: PageStatus = PageStatus.draft
    body: str = ""
    images: list[str] = Field(default_factory=list)
    blocks: list[Block] = Field(default_factory=list)
    theme: Theme = Field(default_factory=Theme)
    publish_at: Optional[datetime] = None
    unpublish_at: Optional[datetime] = None
    updated_at: datetime = Field(default_factory=datetime.now)
    tenant_id: Optional[str] = None

    @property
    def graph(self) -> NavigationGraph:
        return self.theme.node_map or NavigationGraph()
