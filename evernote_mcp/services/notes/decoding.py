from __future__ import annotations

import logging
import re
from typing import Optional

LOGGER = logging.getLogger(__name__)

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
ENML_DOCTYPE = '<!DOCTYPE en-note SYSTEM "http://xml.evernote.com/pub/enml2.dtd">'

_DECLARATION_RE = re.compile(r"<\?xml[^>]*\?>", re.IGNORECASE)
_DOCTYPE_RE = re.compile(r"<!DOCTYPE[^>]*>", re.IGNORECASE)
_EN_NOTE_RE = re.compile(r"<en-note\b[^>]*>(.*?)</en-note\s*>", re.IGNORECASE | re.DOTALL)
_EN_NOTE_EMPTY_RE = re.compile(r"<en-note\b[^>]*/>", re.IGNORECASE)


def strip_declarations(document: str) -> str:
    """Remove the XML declaration and DOCTYPE, leaving the markup intact."""
    content = _DECLARATION_RE.sub("", document or "")
    return _DOCTYPE_RE.sub("", content)


def unwrap_enml(document: Optional[str]) -> str:
    """Return the inner content of the ``<en-note>`` root.

    Fragments without an ``en-note`` root are returned as-is (minus any
    declarations), so callers can pass either a full document or a body.
    """
    if not document:
        return ""
    content = strip_declarations(document)
    match = _EN_NOTE_RE.search(content)
    if match:
        return match.group(1)
    if _EN_NOTE_EMPTY_RE.search(content):
        return ""
    LOGGER.debug("notes.envelope.no_root len=%d", len(content))
    return content.strip()


def wrap_enml(body: str) -> str:
    """Wrap a body fragment in the declaration, DOCTYPE and ``<en-note>`` root."""
    return f"{XML_DECLARATION}{ENML_DOCTYPE}<en-note>{body or ''}</en-note>"


class BodyDecoder:
    """Decode/encode the ENML envelope around a note body."""

    def decode(self, document: Optional[str]) -> str:
        body = unwrap_enml(document)
        LOGGER.debug(
            "notes.envelope.decoded in=%d out=%d", len(document or ""), len(body)
        )
        return body

    def encode(self, body: str) -> str:
        return wrap_enml(body)
