"""Starter templates for new pages and default content for each block type"""

from dataclasses import dataclass
from enum import Enum
from typing import Any
from uuid import uuid4

from infopub.core.models import BLOCK_CLASSES, BaseBlock
from infopub.core.normalize import normalize_blocks


class Industry(str, Enum):
    hotel_business = "hotel_business"
    hotel_resort = "hotel_resort"
    ryokan = "ryokan"
    restaurant = "restaurant"
    cafe = "cafe"
    salon = "salon"
    clinic = "clinic"
    retail = "retail"


INDUSTRY_LABELS = {
    Industry.hotel_business: "Hotel (business)",
    Industry.hotel_resort:   "Hotel (resort)",
    Industry.ryokan:         "Ryokan",
    Industry.restaurant:     "Restaurant",
    Industry.cafe:           "Cafe",
    Industry.salon:          "Salon",
    Industry.clinic:         "Clinic",
    Industry.retail:         "Retail",
}


@dataclass(frozen=True)
class StarterTemplate:
    industry: Industry
    title: str
    body: str

    def blocks(self) -> list[BaseBlock]:
        """Blocks for a page created from this template (legacy text split on blank lines)."""
        return normalize_blocks(None, self.body)


STARTER_TEMPLATES: list[StarterTemplate] = [
    StarterTemplate(
        Industry.hotel_business,
        "[Business hotel] Check-in & facilities",
        "Thank you for staying with us.\n\n"
        "[Check-in / Check-out]\nCheck-in: from 15:00\nCheck-out: until 10:00\n\n"
        "[Facilities]\nCoin laundry: 2F (24 hours)\nVending machines: 2F / 5F\nIce machine: 5F\n\n"
        "[Assistance]\nFor anything urgent, please contact the front desk.",
    ),
    StarterTemplate(
        Industry.hotel_resort,
        "[Resort hotel] Activities",
        "Here are the activities you can enjoy during your stay.\n\n"
        "[Morning yoga]\n7:00 - 7:40 (garden area)\n\n"
        "[Sunset cruise]\n17:30 - 18:30 (reservation required)\n\n"
        "[Kids program]\n10:00 - 16:00 (meet in the lobby)",
    ),
    StarterTemplate(
        Industry.ryokan,
        "[Ryokan] Dining hall",
        "Information about our dining hall.\n\n"
        "[Dinner]\n18:00 / 18:30 / 19:00 (three seatings)\n\n"
        "[Breakfast]\n7:00 - 9:00\n\n"
        "Please let us know about any allergies in advance.",
    ),
    StarterTemplate(
        Industry.restaurant,
        "[Restaurant] Today's specials",
        "Today's recommendations.\n\n"
        "[Limited quantity]\nSeasonal appetizer platter\n\n"
        "[Recommended drinks]\nHomemade lemon sour / Alcohol-free lemonade\n\n"
        "[Last order]\nFood 22:00 / Drinks 22:30",
    ),
    StarterTemplate(
        Industry.restaurant,
        "[Restaurant] Opening hours",
        "Thank you for visiting.\n\n"
        "[Opening hours]\nLunch 11:30 - 14:30\nDinner 17:30 - 23:00\n\n"
        "[Notes]\nWhen busy, seating may be limited to 90 minutes.",
    ),
    StarterTemplate(
        Industry.cafe,
        "[Cafe] Seasonal drinks",
        "Our seasonal drinks are here.\n\n"
        "[Period]\nMarch 1 - April 30\n\n"
        "[Menu]\nSakura latte / Matcha strawberry smoothie\n\n"
        "Takeaway is available.",
    ),
    StarterTemplate(
        Industry.salon,
        "[Salon] Before your visit",
        "Thank you for your reservation.\n\n"
        "[Arrival]\nPlease arrive about 5 minutes before your appointment.\n\n"
        "[Running late]\nIf you will be late, please call us.\n\n"
        "[Cancellation]\nPlease let us know by the day before.",
    ),
    StarterTemplate(
        Industry.clinic,
        "[Clinic] Before your appointment",
        "Please check the following so we can see you smoothly.\n\n"
        "[Reception hours]\nMorning 9:00 - 12:00 / Afternoon 15:00 - 18:00\n\n"
        "[Please bring]\nHealth insurance card / Patient card / Medication record\n\n"
        "If you have a fever, please tell the reception.",
    ),
    StarterTemplate(
        Industry.retail,
        "[Retail] Campaign",
        "A limited-time campaign is running.\n\n"
        "[Period]\nUntil the end of this month\n\n"
        "[Offer]\n10% off when you buy two or more eligible items\n\n"
        "Ask our staff for details.",
    ),
]


def get_template(index: int) -> StarterTemplate:
    """Template at index; out-of-range indexes fall back to the first template."""
    if 0 <= index < len(STARTER_TEMPLATES):
        return STARTER_TEMPLATES[index]
    return STARTER_TEMPLATES[0]


# Per-type defaults; list fields hold item dicts that receive fresh ids.
BLOCK_DEFAULTS: dict[str, dict[str, Any]] = {
    "title":     {"text": "Enter a title"},
    "heading":   {"text": "Enter a heading"},
    "paragraph": {"text": "Enter text"},
    "image":     {"url": ""},
    "divider":   {"divider_thickness": "thin", "divider_color": "#e2e8f0", "spacing": "md"},
    "icon":      {"icon": "⭐", "label": "Service name", "description": "Describe the service"},
    "space":     {"spacing": "md"},
    "section": {
        "section_title": "Section title", "section_body": "Describe the section",
        "section_background_color": "#f8fafc", "spacing": "md",
    },
    "columns": {
        "left_title": "Left column", "left_text": "Left side text",
        "right_title": "Right column", "right_text": "Right side text",
        "columns_background_color": "#f8fafc", "card_radius": "lg", "spacing": "md",
    },
    "iconRow": {
        "icon_row_background_color": "#f8fafc", "card_radius": "lg", "spacing": "md",
        "icon_items": [
            {"icon": "svg:wifi", "label": "Wi-Fi"},
            {"icon": "svg:car", "label": "Parking"},
            {"icon": "svg:clock", "label": "Opening hours"},
        ],
    },
    "cta":   {"cta_label": "Book now", "cta_url": "https://example.com", "spacing": "md", "text_align": "center"},
    "badge": {"badge_text": "Today only", "badge_color": "#dcfce7", "badge_text_color": "#065f46", "spacing": "md"},
    "hours": {
        "spacing": "md",
        "hours_items": [{"label": "Weekdays", "value": "10:00 - 20:00"}, {"label": "Weekends", "value": "9:00 - 21:00"}],
    },
    "pricing": {
        "spacing": "md",
        "pricing_items": [{"label": "Standard", "value": "$30"}, {"label": "Premium", "value": "$50"}],
    },
    "quote": {"text": "Add a memorable line here", "quote_author": "Source or author", "spacing": "md"},
    "checklist": {
        "spacing": "md",
        "checklist_items": [{"text": "Checklist item 1"}, {"text": "Checklist item 2"}, {"text": "Checklist item 3"}],
    },
    "gallery": {
        "spacing": "md",
        "gallery_items": [{"url": "", "caption": "Photo 1"}, {"url": "", "caption": "Photo 2"}],
    },
    "columnGroup": {
        "spacing": "md",
        "column_group_items": [
            {"title": "Column 1", "body": "Column text"},
            {"title": "Column 2", "body": "Column text"},
            {"title": "Column 3", "body": "Column text"},
        ],
    },
}


def make_block(block_type: str) -> BaseBlock:
    """A new block of block_type filled with editable placeholder content."""
    cls = BLOCK_CLASSES.get(block_type)
    if cls is None:
        raise ValueError(f"Unknown block type: {block_type}")
    values = {}
    for key, value in BLOCK_DEFAULTS.get(block_type, {}).items():
        if isinstance(value, list):
            value = [{"id": str(uuid4()), **item} for item in value]
        values[key] = value
    return cls(id=str(uuid4()), **values)
