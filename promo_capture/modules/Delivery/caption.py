"""Lead caption text sent with the video."""

from __future__ import annotations

import html
import re
from enum import Enum
from typing import Optional

from promo_capture.modules.Location.models import Location

from .record import ParticipantRecord

DEFAULT_TITLE = "NEW LEAD"
LOCATION_UNKNOWN = "Not determined"

# Bot API rejects media captions longer than this
CAPTION_LIMIT = 1024

_PARTIAL_MARKUP = re.compile(r"&[#\w]*$|<[^>]*$")


class CaptionStyle(Enum):
    HTML = "html"
    PLAIN = "plain"


def _location_lines(location: Optional[Location]) -> list[str]:
    if location is None:
        return [f"• {LOCATION_UNKNOWN}"]
    return [
        f"• Coordinates: {location.latitude:.6f}, {location.longitude:.6f}",
        f"• Accuracy: {location.accuracy_m:.0f} m",
        f"• Map: {location.map_url}",
    ]


def build_caption(
    record: ParticipantRecord,
    location: Optional[Location] = None,
    *,
    style: CaptionStyle = CaptionStyle.HTML,
    title: str = DEFAULT_TITLE,
    footer: Optional[str] = None,
) -> str:
    """Render the lead summary.

    HTML style escapes every user-supplied value, since the Bot API parses
    the caption with ``parse_mode=HTML``. Plain style is for share sheets
    and chat links where markup would show up literally.
    """
    if style is CaptionStyle.HTML:
        esc = html.escape

        def heading(text: str) -> str:
            return f"<b>{esc(text)}</b>"
    else:
        def esc(text: str) -> str:
            return text

        def heading(text: str) -> str:
            return text

    lines = [
        heading(f"🎯 {title}"),
        "",
        heading("👨‍👩‍👧‍👦 PARTICIPANT:"),
        f"• Parent: {esc(record.parent_name.strip())}",
        f"• Child: {esc(record.child_name.strip())}",
        f"• Age: {esc(record.age.strip())}",
        f"• Phone: {esc(record.phone.strip())}",
        f"• Promoter: {esc(record.promoter.strip())}",
        "",
        heading("📍 LOCATION:"),
    ]
    lines.extend(esc(line) for line in _location_lines(location))
    lines.extend(["", "📹 Video attached"])
    if footer:
        lines.extend(["", esc(footer)])
    return "\n".join(lines)


def truncate_caption(caption: str, limit: int = CAPTION_LIMIT) -> str:
    """Shorten an HTML caption without splitting an entity or a tag."""
    if len(caption) <= limit:
        return caption
    head = _PARTIAL_MARKUP.sub("", caption[: limit - 1])
    # An unclosed <b> fails HTML parsing on the Bot API side
    if head.rfind("<b>") > head.rfind("</b>"):
        head = head[: head.rfind("<b>")]
    return head + "…"


__all__ = [
    "CAPTION_LIMIT",
    "CaptionStyle",
    "DEFAULT_TITLE",
    "LOCATION_UNKNOWN",
    "build_caption",
    "truncate_caption",
]
