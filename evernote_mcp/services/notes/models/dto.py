"""High-level Notes content data transfer objects."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from evernote_mcp.exceptions import InvalidReplacementError

from ..decoding import wrap_enml
from ..domain import ContentHash


@dataclass(frozen=True)
class KnownResource:
    """Metadata for a resource the note store already holds for a note."""

    hash_hex: str
    mime_type: Optional[str] = None
    filename: Optional[str] = None
    source_url: Optional[str] = None

    def __post_init__(self) -> None:
        # Normalizes and validates in one go; lookups are always lowercase.
        object.__setattr__(self, "hash_hex", ContentHash.from_hex(self.hash_hex).hex)


@dataclass(frozen=True)
class Attachment:
    """A resource referenced by converted ENML.

    ``is_new`` attachments were discovered during the conversion and carry
    ``data`` for upload; the others are already stored with the note.
    """

    hash: ContentHash
    mime_type: str
    filename: Optional[str] = None
    source_path: Optional[str] = None
    source_url: Optional[str] = None
    data: Optional[bytes] = field(default=None, repr=False)
    is_new: bool = False

    @property
    def hash_hex(self) -> str:
        return self.hash.hex

    @property
    def size(self) -> Optional[int]:
        return len(self.data) if self.data is not None else None

    @classmethod
    def from_known(cls, resource: KnownResource, default_mime: str) -> "Attachment":
        return cls(
            hash=ContentHash.from_hex(resource.hash_hex),
            mime_type=resource.mime_type or default_mime,
            filename=resource.filename,
            source_url=resource.source_url,
            is_new=False,
        )


@dataclass(frozen=True)
class ConversionResult:
    """ENML body produced from Markdown plus the attachments it references."""

    enml: str
    attachments: List[Attachment]

    @property
    def body(self) -> str:
        return self.enml

    @property
    def new_attachments(self) -> List[Attachment]:
        return [a for a in self.attachments if a.is_new]

    @property
    def existing_attachments(self) -> List[Attachment]:
        return [a for a in self.attachments if not a.is_new]

    @property
    def document(self) -> str:
        """The body wrapped in the full ENML envelope."""
        return wrap_enml(self.enml)


@dataclass(frozen=True)
class Replacement:
    find: str
    replace: str = ""
    replace_all: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.find, str) or self.find == "":
            raise InvalidReplacementError("Replacement 'find' text must be non-empty")
        if not isinstance(self.replace, str):
            raise InvalidReplacementError("Replacement 'replace' text must be a string")


@dataclass(frozen=True)
class ReplacementReport:
    find: str
    occurrences: int
    replaced: int


class PatchStatus(str, Enum):
    COMMITTED = "committed"
    NO_MATCH = "no_match"
    EMPTY_RESULT = "empty_result"


@dataclass(frozen=True)
class PatchResult:
    """Outcome of a find/replace patch.

    Only ``COMMITTED`` results carry ``enml``; aborted patches leave the note
    untouched and report per-rule counts so the caller can explain why.
    """

    status: PatchStatus
    reports: List[ReplacementReport]
    message: str
    enml: Optional[str] = None
    markdown: Optional[str] = None
    attachments: List[Attachment] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status is PatchStatus.COMMITTED

    @property
    def total_replaced(self) -> int:
        return sum(r.replaced for r in self.reports)
