"""Public exports for Notes content data models."""

from __future__ import annotations

from .dto import (
    Attachment,
    ConversionResult,
    KnownResource,
    PatchResult,
    PatchStatus,
    Replacement,
    ReplacementReport,
)
from .payloads import NotePayload, ReplacementPayload, ResourcePayload

__all__ = [
    "Attachment",
    "ConversionResult",
    "KnownResource",
    "NotePayload",
    "PatchResult",
    "PatchStatus",
    "Replacement",
    "ReplacementPayload",
    "ReplacementReport",
    "ResourcePayload",
]
