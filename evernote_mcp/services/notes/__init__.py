"""Public API for the Notes content service."""

from .domain import ContentHash
from .models import (
    Attachment,
    ConversionResult,
    KnownResource,
    NotePayload,
    PatchResult,
    PatchStatus,
    Replacement,
    ResourcePayload,
)
from .service import NotesService

__all__ = [
    "NotesService",
    "ContentHash",
    "Attachment",
    "ConversionResult",
    "KnownResource",
    "NotePayload",
    "PatchResult",
    "PatchStatus",
    "Replacement",
    "ResourcePayload",
]
