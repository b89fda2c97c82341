"""
Exporter for ENML → Markdown.

The ENML-specific elements are rewritten to plain HTML first, so the generic
markdownify conversion can handle the rest:

  - ``<en-todo checked="true"/>`` → checked checkbox input, rendered ``[x]``
  - ``<en-todo/>``                → unchecked checkbox input, rendered ``[ ]``
  - ``<en-media>`` with an image mime → ``![alt](resource:<hex>)``
  - other ``<en-media>``           → ``[name](resource:<hex>)``

Beyond markdownify's defaults:

  - header separators carry the cells' ``align`` (``:---``, ``---:``, ``:---:``)
  - a code fence is longer than any backtick run inside the code
  - underscores inside words stay unescaped
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional, Union

from bs4 import BeautifulSoup
from bs4.element import Tag
from markdownify import ATX, BACKSLASH, MarkdownConverter
from rich.console import Console

from ..decoding import BodyDecoder
from ..models.dto import KnownResource
from ..models.payloads import ResourcePayload
from .options import ConversionConfig
from .renderer_iface import ResourceSource, resource_url
from .resource_source import InMemoryResourceSource

console = Console()

LOGGER = logging.getLogger(__name__)

_BLANK_RUN_RE = re.compile(r"\n{3,}")
_FENCE_RE = re.compile(r"^\s{0,3}(`{3,}|~{3,})")
_TASK_SPACING_RE = re.compile(r"^(\s*(?:[-*+]\s+)?\[[ xX]\]) {2,}")
_ORPHAN_TASK_RE = re.compile(r"^([ \t]*)(\[[ xX]\] )")
_BACKTICK_RUN_RE = re.compile(r"`+")
_INTRAWORD_UNDERSCORE_RE = re.compile(r"(?<=[^\W_])\\_(?=[^\W_])")
_ALIGN_MARKERS = {"left": ":---", "right": "---:", "center": ":---:"}

Resources = Optional[
    Union[ResourceSource, Iterable[Union[KnownResource, ResourcePayload, dict]]]
]


class EnmlMarkdownConverter(MarkdownConverter):
    """markdownify converter aware of task-list checkboxes, table alignment
    and code that itself contains fences."""

    def escape(self, text, parent_tags):
        # intraword underscores never open emphasis
        return _INTRAWORD_UNDERSCORE_RE.sub("_", super().escape(text, parent_tags))

    def convert_input(self, el, text, parent_tags):
        if (el.get("type") or "").lower() != "checkbox":
            return text
        return "[x] " if el.has_attr("checked") else "[ ] "

    def convert_pre(self, el, text, parent_tags):
        text = (text or "").rstrip("\n")
        md = super().convert_pre(el, text, parent_tags)
        longest = max((len(run) for run in _BACKTICK_RUN_RE.findall(text)), default=0)
        if not md or longest < 3:
            return md
        fence = "`" * (longest + 1)
        return "\n\n" + fence + md[len("\n\n```"):-len("```\n\n")] + fence + "\n\n"

    def convert_tr(self, el, text, parent_tags):
        md = super().convert_tr(el, text, parent_tags)
        markers: List[str] = []
        for cell in el.find_all(["td", "th"]):
            span = str(cell.get("colspan") or "1")
            span_count = max(1, min(1000, int(span))) if span.isdigit() else 1
            align = str(cell.get("align") or "").lower()
            markers.extend([_ALIGN_MARKERS.get(align, "---")] * span_count)
        plain = "| " + " | ".join(["---"] * len(markers)) + " |"
        aligned = "| " + " | ".join(markers) + " |"
        if aligned == plain:
            return md
        row = "|" + text
        return "\n".join(
            aligned if line == plain and line != row else line for line in md.split("\n")
        )


def _as_source(resources: Resources) -> ResourceSource:
    if resources is None:
        return InMemoryResourceSource()
    if hasattr(resources, "get") and not isinstance(resources, (list, tuple, dict)):
        return resources  # type: ignore[return-value]
    return InMemoryResourceSource.from_resources(resources)  # type: ignore[arg-type]


class NoteExporter:
    def __init__(self, config: Optional[ConversionConfig] = None):
        self.config = config or ConversionConfig()
        self._decoder = BodyDecoder()

    def _converter(self) -> EnmlMarkdownConverter:
        inline_images = ["td", "th", "a", "p", "li", "div", "span"] + [
            f"h{i}" for i in range(1, 7)
        ]
        return EnmlMarkdownConverter(
            heading_style=ATX,
            bullets="-",
            newline_style=BACKSLASH,
            keep_inline_images_in=inline_images,
        )

    def export(self, enml: Optional[str], resources: Resources = None) -> str:
        body = self._decoder.decode(enml)
        if not body.strip():
            return ""
        source = _as_source(resources)
        soup = BeautifulSoup(body, "html.parser")
        todos = self._rewrite_todos(soup)
        media = self._rewrite_media(soup, source)

        if self.config.debug:
            console.rule("enml → html")
            console.print(str(soup), markup=False, highlight=False)

        markdown = _postprocess(self._converter().convert_soup(soup))
        LOGGER.info(
            "notes.export.done enml=%d md=%d todos=%d media=%d",
            len(enml or ""),
            len(markdown),
            todos,
            media,
        )
        return markdown

    def _rewrite_todos(self, soup: BeautifulSoup) -> int:
        count = 0
        for todo in soup.find_all("en-todo"):
            box = soup.new_tag("input", attrs={"type": "checkbox"})
            if str(todo.get("checked") or "").strip().lower() == "true":
                box["checked"] = "checked"
            todo.replace_with(box)
            count += 1
        return count

    def _rewrite_media(self, soup: BeautifulSoup, source: ResourceSource) -> int:
        count = 0
        for media in soup.find_all("en-media"):
            replacement = self._media_replacement(soup, media, source)
            if replacement is None:
                media.decompose()
            else:
                media.replace_with(replacement)
            count += 1
        return count

    def _media_replacement(
        self, soup: BeautifulSoup, media: Tag, source: ResourceSource
    ) -> Optional[Tag]:
        hash_hex = str(media.get("hash") or "").strip().lower()
        if not hash_hex:
            LOGGER.debug("notes.export.media_without_hash")
            return None
        known = source.get(hash_hex)
        if known is None:
            LOGGER.debug("notes.export.unknown_media hash=%s", hash_hex)

        mime = (
            str(media.get("type") or "")
            or (known.mime_type if known else None)
            or self.config.default_mime_type
        )
        name = (
            str(media.get("title") or "")
            or (known.filename if known else None)
            or (known.mime_type if known else None)
            or hash_hex
        )
        url = resource_url(hash_hex, self.config.resource_scheme)

        if self.config.is_image_mime(mime):
            return soup.new_tag(
                "img", attrs={"src": url, "alt": str(media.get("alt") or "") or name}
            )
        link = soup.new_tag("a", attrs={"href": url})
        link.string = name
        return link


def _postprocess(markdown: str) -> str:
    lines: List[str] = []
    fence: Optional[str] = None
    for line in markdown.split("\n"):
        m = _FENCE_RE.match(line)
        if m:
            marker = m.group(1)
            if fence is None:
                fence = marker
            elif marker[0] == fence[0] and len(marker) >= len(fence):
                fence = None
        elif fence is None:
            line = _TASK_SPACING_RE.sub(r"\1 ", line)
            line = _ORPHAN_TASK_RE.sub(r"\1- \2", line)
        lines.append(line.rstrip() if fence is None else line)
    return _BLANK_RUN_RE.sub("\n\n", "\n".join(lines)).strip()


def enml_to_markdown(
    enml: Optional[str],
    resources: Resources = None,
    config: Optional[ConversionConfig] = None,
) -> str:
    """Convert an ENML document (or body fragment) to Markdown."""
    return NoteExporter(config).export(enml, resources)
