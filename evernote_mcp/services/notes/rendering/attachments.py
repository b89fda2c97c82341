"""
Content-addressed attachment handling for Markdown → ENML conversion.

This module owns the two pieces of state a forward conversion needs:

  - AttachmentRegistry: hash → Attachment, one per conversion call. Inserts
    are idempotent and first-insertion order is kept for the output list.
  - AttachmentResolver: classifies every image/link target found in Markdown
    and renders the matching ENML fragment:
      1. ``resource:<hex>`` of a known resource → existing ``<en-media>``
      2. readable local file (path, ``~/``, ``file:`` URL) → new ``<en-media>``
      3. anything else → plain hyperlink (never fetched)

Resolution never raises; failures degrade to the hyperlink fallback.
"""

from __future__ import annotations

import html
import logging
import mimetypes
import os
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Union
from urllib.parse import unquote, urlsplit
from urllib.request import pathname2url, url2pathname

from bs4 import BeautifulSoup
from tinyhtml import h

from ..domain import ContentHash
from ..models.dto import Attachment
from .options import ConversionConfig
from .renderer_iface import ResourceSource, parse_resource_url, resource_url

LOGGER = logging.getLogger(__name__)


class AttachmentRegistry:
    """Attachments referenced by one conversion, deduplicated by content hash."""

    def __init__(self) -> None:
        self._by_hash: Dict[str, Attachment] = {}

    def register(self, candidate: Attachment) -> Attachment:
        existing = self._by_hash.get(candidate.hash_hex)
        if existing is not None:
            if existing.mime_type != candidate.mime_type:
                LOGGER.debug(
                    "notes.registry.mime_conflict hash=%s kept=%s ignored=%s",
                    candidate.hash_hex,
                    existing.mime_type,
                    candidate.mime_type,
                )
            return existing
        self._by_hash[candidate.hash_hex] = candidate
        return candidate

    def list(self) -> List[Attachment]:
        return list(self._by_hash.values())

    def get(self, key: Union[ContentHash, str]) -> Optional[Attachment]:
        hash_hex = key.hex if isinstance(key, ContentHash) else key.lower()
        return self._by_hash.get(hash_hex)

    def __contains__(self, key: object) -> bool:
        if isinstance(key, (ContentHash, str)):
            return self.get(key) is not None
        return False

    def __len__(self) -> int:
        return len(self._by_hash)

    def __iter__(self) -> Iterator[Attachment]:
        return iter(self.list())


@dataclass(frozen=True)
class LocalFile:
    path: str
    source_url: str


def resolve_local_path(href: str, base_dir: Optional[str] = None) -> Optional[LocalFile]:
    """Map an image target to a readable local file, or None.

    Accepts absolute and relative paths, ``~/`` paths and ``file:`` URLs.
    Query strings and fragments are ignored; percent-escapes are decoded.
    """
    candidate = href.split("#", 1)[0].split("?", 1)[0].strip()
    if not candidate:
        return None

    parts = urlsplit(candidate)
    scheme = parts.scheme.lower()
    if scheme == "file":
        path = url2pathname(unquote(parts.path))
    elif scheme and not (len(scheme) == 1 and os.name == "nt"):
        # http:, data:, mailto: ... are never read
        return None
    else:
        path = unquote(candidate)
        if path.startswith("~"):
            path = os.path.expanduser(path)
        if not os.path.isabs(path):
            path = os.path.join(base_dir or os.getcwd(), path)

    path = os.path.abspath(path)
    if not os.path.isfile(path):
        return None
    return LocalFile(path=path, source_url="file://" + pathname2url(path))


def guess_mime_type(path: str, default: str) -> str:
    mime, _ = mimetypes.guess_type(path, strict=False)
    return mime or default


class AttachmentResolver:
    """Resolve image/link targets against known resources and the filesystem.

    The resolver writes only to the registry it was given; one resolver (and
    registry) exists per conversion call.
    """

    def __init__(
        self,
        registry: AttachmentRegistry,
        source: Optional[ResourceSource] = None,
        config: Optional[ConversionConfig] = None,
        base_dir: Optional[str] = None,
    ):
        self.registry = registry
        self.source = source
        self.config = config or ConversionConfig()
        self.base_dir = base_dir

    def resolve(self, href: Optional[str], alt: str = "", title: Optional[str] = None) -> str:
        """Return the ENML fragment for a Markdown image (or resource link)."""
        url = (href or "").strip()
        if not url:
            return html.escape(alt)

        ref = parse_resource_url(url)
        if ref is not None:
            known = ref.resolve(self.source)
            if known is None:
                LOGGER.debug("notes.resolve.unknown_resource hash=%s", ref.hash_hex)
                return self.render_link(url, alt or url, title)
            attachment = self.registry.register(
                Attachment.from_known(known, self.config.default_mime_type)
            )
            LOGGER.debug("notes.resolve.existing hash=%s", attachment.hash_hex)
            return self.render_media(attachment, alt, title)

        local = resolve_local_path(url, self.base_dir)
        if local is not None:
            try:
                attachment = self._register_local(local)
            except (OSError, ValueError) as e:
                LOGGER.warning(
                    "notes.resolve.local_failed path=%s err=%s", local.path, e
                )
            else:
                return self.render_media(attachment, alt, title)

        LOGGER.debug("notes.resolve.fallback url=%s", url)
        return self.render_link(url, alt or url, title)

    def _register_local(self, local: LocalFile) -> Attachment:
        with open(local.path, "rb") as f:
            data = f.read()
        digest = ContentHash.of(data)
        known = self.source.get(digest.hex) if self.source is not None else None
        if known is not None:
            # Already stored with the note: reference it, never re-upload.
            LOGGER.debug("notes.resolve.local_known path=%s hash=%s", local.path, digest.hex)
            return self.registry.register(
                Attachment.from_known(known, self.config.default_mime_type)
            )
        candidate = Attachment(
            hash=digest,
            mime_type=guess_mime_type(local.path, self.config.default_mime_type),
            filename=os.path.basename(local.path),
            source_path=local.path,
            source_url=local.source_url,
            data=data,
            is_new=True,
        )
        attachment = self.registry.register(candidate)
        LOGGER.debug(
            "notes.resolve.local path=%s hash=%s bytes=%d dedup=%s",
            local.path,
            attachment.hash_hex,
            len(data),
            attachment is not candidate,
        )
        return attachment

    # ----------------------------- fragments ---------------------------------

    @staticmethod
    def render_media(attachment: Attachment, alt: str = "", title: Optional[str] = None) -> str:
        attrs = {"type": attachment.mime_type, "hash": attachment.hash_hex}
        if alt:
            attrs["alt"] = alt
        if title:
            attrs["title"] = title
        # tinyhtml only accepts alphanumeric tag names
        return str(BeautifulSoup("", "html.parser").new_tag("en-media", attrs=attrs))

    @staticmethod
    def render_link(url: str, label: str, title: Optional[str] = None) -> str:
        attrs = {"href": url}
        if title:
            attrs["title"] = title
        return h("a", **attrs)(label or url).render()


def describe_attachment(attachment: Attachment) -> Dict[str, object]:
    return {
        "hash": attachment.hash_hex,
        "url": resource_url(attachment.hash),
        "mime": attachment.mime_type,
        "filename": attachment.filename,
        "size": attachment.size,
        "new": attachment.is_new,
    }


__all__ = [
    "AttachmentRegistry",
    "AttachmentResolver",
    "LocalFile",
    "describe_attachment",
    "guess_mime_type",
    "resolve_local_path",
]
