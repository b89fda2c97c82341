"""
Conversion configuration for Markdown ⇄ ENML.

Centralizes the ENML allow-list and behavior flags so callers can tune
defaults without touching core logic. The allow-list mirrors what Evernote
accepts in a note body; widening it produces notes the service will reject.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional, Tuple

ENML_ALLOWED_TAGS: FrozenSet[str] = frozenset(
    {
        "a", "abbr", "acronym", "b", "blockquote", "br", "code", "dd", "div",
        "dl", "dt", "em", "font", "h1", "h2", "h3", "h4", "h5", "h6", "hr",
        "i", "li", "ol", "p", "pre", "s", "small", "span", "strong", "sub",
        "sup", "table", "tbody", "td", "tfoot", "th", "thead", "tr", "u",
        "ul", "en-todo", "en-media",
    }
)  # fmt: skip

ENML_ALLOWED_ATTRIBUTES: Dict[str, FrozenSet[str]] = {
    "a": frozenset({"href", "title"}),
    "div": frozenset({"align"}),
    "td": frozenset({"colspan", "rowspan", "align"}),
    "th": frozenset({"colspan", "rowspan", "align"}),
    "en-todo": frozenset({"checked"}),
    "en-media": frozenset(
        {"type", "hash", "width", "height", "style", "alt", "title"}
    ),
}


@dataclass(frozen=True)
class ConversionConfig:
    # Logging/debug: dump intermediate HTML with rich
    debug: bool = False

    # ENML contract
    allowed_tags: FrozenSet[str] = ENML_ALLOWED_TAGS
    allowed_attributes: Dict[str, FrozenSet[str]] = field(
        default_factory=lambda: dict(ENML_ALLOWED_ATTRIBUTES)
    )
    allowed_schemes: Tuple[str, ...] = ("http", "https", "mailto")
    # Removed together with everything inside them
    drop_content_tags: Tuple[str, ...] = (
        "script",
        "style",
        "iframe",
        "object",
        "embed",
        "textarea",
        "noscript",
        "title",
        "head",
    )
    self_closing_tags: Tuple[str, ...] = ("en-todo", "en-media")

    # Markdown side
    resource_scheme: str = "resource"
    breaks: bool = True
    default_mime_type: str = "application/octet-stream"
    image_mime_prefixes: Tuple[str, ...] = ("image/",)

    # Search previews
    preview_length: int = 300
    preview_break_ratio: float = 0.7

    def is_image_mime(self, mime: Optional[str]) -> bool:
        if not mime:
            return False
        m = mime.lower()
        return any(m.startswith(p) for p in self.image_mime_prefixes or ("image/",))

    def attributes_for(self, tag: str) -> FrozenSet[str]:
        return self.allowed_attributes.get(tag, frozenset())
