"""
High-level Notes content service (DX-first).

Public API:
  - NotesService.to_markdown(note, resources=None) -> str
  - NotesService.from_markdown(markdown, existing=None, base_dir=None) -> ConversionResult
  - NotesService.patch(note, replacements, drop_unreferenced=False) -> PatchResult
  - NotesService.preview(note, max_length=None) -> Optional[str]
  - NotesService.recognition(xml) -> List[RecognitionItem]

``note`` arguments accept a NotePayload, the JSON dict the note-store client
produced, or a bare ENML string. The service performs no network I/O; the
tool layer fetches notes and persists the results.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Union

from pydantic import ValidationError

from evernote_mcp.exceptions import (
    InvalidContentHashError,
    InvalidReplacementError,
    NotesError,
    PayloadValidationError,
)

from .models.dto import ConversionResult, KnownResource, PatchResult
from .models.payloads import NotePayload
from .patching import PatchEngine, ReplacementLike, coerce_replacement
from .recognition import RecognitionItem, parse_recognition_xml
from .rendering.exporter import NoteExporter
from .rendering.options import ConversionConfig
from .rendering.preview import note_preview
from .rendering.renderer import ExistingResources, MarkdownRenderer
from .rendering.resource_source import InMemoryResourceSource

LOGGER = logging.getLogger(__name__)

NoteLike = Union[NotePayload, dict, str]


class NotesService:
    """
    Markdown-facing view of Evernote notes. Stateless apart from its config;
    every call builds its own attachment registry.
    """

    def __init__(self, config: Optional[ConversionConfig] = None):
        self.config = config or ConversionConfig()
        self._exporter = NoteExporter(self.config)
        self._renderer = MarkdownRenderer(self.config)

    # -------------------------- Public API methods ---------------------------

    def to_markdown(
        self, note: NoteLike, resources: ExistingResources = None
    ) -> str:
        enml, known = self._unpack(note, resources)
        LOGGER.debug("notes.to_markdown enml=%d resources=%d", len(enml), len(known))
        return self._exporter.export(enml, known)

    def from_markdown(
        self,
        markdown: str,
        existing: ExistingResources = None,
        base_dir: Optional[str] = None,
    ) -> ConversionResult:
        return self._renderer.render(markdown, existing, base_dir)

    def patch(
        self,
        note: NoteLike,
        replacements: Iterable[ReplacementLike],
        resources: ExistingResources = None,
        drop_unreferenced: bool = False,
        base_dir: Optional[str] = None,
    ) -> PatchResult:
        rules = self._coerce_replacements(replacements)
        enml, known = self._unpack(note, resources)
        return PatchEngine(self.config).patch(
            enml,
            rules,
            known,
            base_dir=base_dir,
            drop_unreferenced=drop_unreferenced,
        )

    def preview(self, note: NoteLike, max_length: Optional[int] = None) -> Optional[str]:
        enml, _ = self._unpack(note, None)
        return note_preview(enml, max_length, self.config)

    def recognition(self, xml: Union[str, bytes, None]) -> List[RecognitionItem]:
        return parse_recognition_xml(xml)

    # ------------------------------ Internals --------------------------------

    def _unpack(self, note: NoteLike, resources: ExistingResources):
        if isinstance(note, str):
            return note, list(self._coerce_resources(resources))
        payload = self._coerce_note(note)
        known = payload.known_resources()
        if resources is not None:
            known.extend(self._coerce_resources(resources))
        return payload.content, known

    @staticmethod
    def _coerce_note(note: Union[NotePayload, dict]) -> NotePayload:
        if isinstance(note, NotePayload):
            return note
        try:
            return NotePayload.model_validate(note)
        except ValidationError as e:
            raise PayloadValidationError(f"Invalid note payload: {e}", note) from e

    @staticmethod
    def _coerce_resources(resources: ExistingResources) -> Iterable[Any]:
        try:
            return list(InMemoryResourceSource.from_resources(resources))
        except ValidationError as e:
            raise PayloadValidationError(f"Invalid resource payload: {e}", resources) from e

    @staticmethod
    def _coerce_replacements(replacements: Iterable[ReplacementLike]):
        try:
            return [coerce_replacement(r) for r in replacements]
        except ValidationError as e:
            raise InvalidReplacementError(f"Invalid replacement: {e}") from e


__all__ = [
    "InvalidContentHashError",
    "InvalidReplacementError",
    "KnownResource",
    "NotesError",
    "NotesService",
    "PayloadValidationError",
]
