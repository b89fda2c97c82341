"""Plain-text previews of ENML bodies, as shown next to search results."""

from __future__ import annotations

import html
import re
from typing import Optional

from .options import ConversionConfig

_DECLARATION_RE = re.compile(r"<\?xml[^?]*\?>", re.IGNORECASE)
_DOCTYPE_RE = re.compile(r"<!DOCTYPE[^>]*>", re.IGNORECASE)
_MEDIA_RE = re.compile(r"<en-media[^>]*/?>(?:\s*</en-media>)?", re.IGNORECASE)
_BLOCK_RE = re.compile(r"</?(?:div|p|br|li|h[1-6])\b[^>]*>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_BLANK_LINES_RE = re.compile(r"\n\s*\n")
_HSPACE_RE = re.compile(r"[ \t]+")


def enml_to_plain_text(enml: Optional[str]) -> str:
    if not enml:
        return ""
    text = _DECLARATION_RE.sub("", enml)
    text = _DOCTYPE_RE.sub("", text)
    text = _MEDIA_RE.sub("", text)
    text = _BLOCK_RE.sub("\n", text)
    text = _TAG_RE.sub("", text)
    text = html.unescape(text).replace("\xa0", " ")
    text = _BLANK_LINES_RE.sub("\n", text)
    text = _HSPACE_RE.sub(" ", text)
    return text.strip()


def truncate_preview(
    text: Optional[str],
    max_length: Optional[int] = None,
    config: Optional[ConversionConfig] = None,
) -> Optional[str]:
    """Cut ``text`` to ``max_length`` characters plus ``...``.

    The cut backs off to the last space when that space lies beyond the
    configured ratio of the limit. Empty input yields None.
    """
    if not text:
        return None
    cfg = config or ConversionConfig()
    limit = cfg.preview_length if max_length is None else max_length
    if len(text) <= limit:
        return text
    truncated = text[:limit]
    last_space = truncated.rfind(" ")
    if last_space > limit * cfg.preview_break_ratio:
        truncated = truncated[:last_space]
    return truncated + "..."


def note_preview(
    enml: Optional[str],
    max_length: Optional[int] = None,
    config: Optional[ConversionConfig] = None,
) -> Optional[str]:
    return truncate_preview(enml_to_plain_text(enml), max_length, config)
