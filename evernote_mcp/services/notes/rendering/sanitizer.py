"""
ENML allow-list sanitizer.

Takes the HTML produced by the Markdown pipeline and reduces it to the subset
Evernote accepts inside ``<en-note>``:

  - comments, doctypes and processing instructions are removed;
  - ``script``/``style``/``iframe``/... are removed together with their content;
  - any other element outside the allow-list is unwrapped (its text is kept);
  - attributes outside the per-tag allow-list are dropped;
  - ``href`` values must be scheme-less or use an allowed scheme;
  - leftover task-list checkboxes become ``<en-todo>``;
  - ``en-todo`` / ``en-media`` are serialized self-closing.
"""

from __future__ import annotations

import logging
import re
from typing import Optional
from urllib.parse import urlsplit

from bs4 import BeautifulSoup, Comment, Declaration, Doctype, ProcessingInstruction
from bs4.element import Tag

from .options import ConversionConfig

LOGGER = logging.getLogger(__name__)

_TEXT_ALIGN_RE = re.compile(r"text-align\s*:\s*(left|right|center|justify)", re.IGNORECASE)
_TRUTHY_CHECKED = ("", "true", "checked", "1")


class EnmlSanitizer:
    def __init__(self, config: Optional[ConversionConfig] = None):
        self.config = config or ConversionConfig()
        tags = "|".join(re.escape(t) for t in self.config.self_closing_tags)
        self._self_closing_re = re.compile(rf"<({tags})\b([^>]*?)\s*></\1>")

    def sanitize(self, fragment: str) -> str:
        if not fragment or not fragment.strip():
            return ""
        soup = BeautifulSoup(fragment, "html.parser")

        for node in soup.find_all(
            string=lambda s: isinstance(s, (Comment, Declaration, Doctype, ProcessingInstruction))
        ):
            node.extract()

        for tag in soup.find_all(list(self.config.drop_content_tags)):
            tag.decompose()

        self._normalize_checkboxes(soup)

        dropped = 0
        for tag in soup.find_all(True):
            if tag.name not in self.config.allowed_tags:
                tag.unwrap()
                dropped += 1
                continue
            self._filter_attributes(tag)
            if tag.name == "en-media" and not tag.get("hash"):
                tag.decompose()

        out = self._self_closing_re.sub(r"<\1\2/>", str(soup))
        LOGGER.debug(
            "notes.sanitize in=%d out=%d unwrapped=%d", len(fragment), len(out), dropped
        )
        return out.strip()

    # ------------------------------------------------------------------------

    def _normalize_checkboxes(self, soup: BeautifulSoup) -> None:
        for box in soup.find_all("input"):
            if (box.get("type") or "").lower() != "checkbox":
                continue
            todo = soup.new_tag("en-todo")
            if box.has_attr("checked"):
                todo["checked"] = "true"
            box.replace_with(todo)

    def _filter_attributes(self, tag: Tag) -> None:
        allowed = self.config.attributes_for(tag.name)

        if tag.name in ("td", "th") and "align" not in tag.attrs:
            m = _TEXT_ALIGN_RE.search(tag.get("style") or "")
            if m:
                tag["align"] = m.group(1).lower()

        for name in list(tag.attrs):
            if name not in allowed:
                del tag[name]

        href = tag.get("href")
        if href is not None and not self._href_allowed(href):
            del tag["href"]

        if tag.name == "en-todo" and tag.has_attr("checked"):
            if str(tag["checked"]).strip().lower() in _TRUTHY_CHECKED:
                tag["checked"] = "true"
            else:
                del tag["checked"]

    def _href_allowed(self, href) -> bool:
        value = str(href).strip()
        if not value:
            return False
        try:
            scheme = urlsplit(value).scheme.lower()
        except ValueError:
            return False
        return not scheme or scheme in self.config.allowed_schemes


def sanitize_enml(fragment: str, config: Optional[ConversionConfig] = None) -> str:
    return EnmlSanitizer(config).sanitize(fragment)
