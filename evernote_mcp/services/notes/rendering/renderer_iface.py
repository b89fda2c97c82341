"""
Transport-agnostic seams shared by the Markdown ⇄ ENML converters.

Defines the minimal datasource (`ResourceSource`) the converters require to
resolve the metadata of resources already stored with a note, and the
``resource:<hex>`` pseudo-URL that names such a resource inside Markdown.

The converters never talk to the note store; they only call this interface.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Optional, Protocol

from ..domain import ContentHash
from ..models.dto import KnownResource

# Older exports used an "evernote-resource:" prefix; both are read, only the
# short form is written.
_RESOURCE_URL_RE = re.compile(
    r"^(?:evernote-)?resource:([0-9a-f]{32})$", re.IGNORECASE
)


class ResourceSource(Protocol):
    """Minimal known-resource datasource required by the converters."""

    def get(self, hash_hex: str) -> Optional[KnownResource]: ...

    def __iter__(self) -> Iterator[KnownResource]: ...


@dataclass(frozen=True)
class ResourceRef:
    """A parsed ``resource:<hex>`` reference found in Markdown."""

    hash: ContentHash

    @property
    def hash_hex(self) -> str:
        return self.hash.hex

    @property
    def url(self) -> str:
        return resource_url(self.hash)

    def resolve(self, source: Optional[ResourceSource]) -> Optional[KnownResource]:
        if source is None:
            return None
        return source.get(self.hash_hex)


def parse_resource_url(url: Optional[str]) -> Optional[ResourceRef]:
    if not url:
        return None
    m = _RESOURCE_URL_RE.match(url.strip())
    if not m:
        return None
    return ResourceRef(ContentHash.from_hex(m.group(1)))


def resource_url(value: "ContentHash | str", scheme: str = "resource") -> str:
    hash_hex = value.hex if isinstance(value, ContentHash) else value.lower()
    return f"{scheme}:{hash_hex}"
