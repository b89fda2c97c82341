"""
Find/replace patching of note content.

A patch runs through a fixed sequence of stages:

    FETCHED → CONVERTED → EDITED → COMMITTED
                               ↘ ABORTED_NO_MATCH
                               ↘ ABORTED_EMPTY_RESULT

Edits are literal (no regex), applied in order to the Markdown view of the
note, each seeing the output of the previous one. Aborted patches produce no
ENML; the caller keeps the stored note as-is.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .models.dto import (
    Attachment,
    ConversionResult,
    PatchResult,
    PatchStatus,
    Replacement,
    ReplacementReport,
)
from .models.payloads import ReplacementPayload
from .rendering.exporter import NoteExporter
from .rendering.options import ConversionConfig
from .rendering.renderer import MarkdownRenderer
from .rendering.resource_source import InMemoryResourceSource

LOGGER = logging.getLogger(__name__)

ReplacementLike = Union[Replacement, ReplacementPayload, dict]


class PatchStage(str, Enum):
    FETCHED = "fetched"
    CONVERTED = "converted"
    EDITED = "edited"
    COMMITTED = "committed"
    ABORTED_NO_MATCH = "aborted_no_match"
    ABORTED_EMPTY_RESULT = "aborted_empty_result"


def coerce_replacement(value: ReplacementLike) -> Replacement:
    if isinstance(value, Replacement):
        return value
    if isinstance(value, dict):
        value = ReplacementPayload.model_validate(value)
    return value.to_replacement()


def apply_replacements(
    markdown: str, replacements: Sequence[Replacement]
) -> Tuple[str, List[ReplacementReport]]:
    """Apply literal replacements in order; count non-overlapping matches."""
    reports: List[ReplacementReport] = []
    for rule in replacements:
        occurrences = markdown.count(rule.find)
        if occurrences and rule.replace_all:
            markdown = markdown.replace(rule.find, rule.replace)
            replaced = occurrences
        elif occurrences:
            markdown = markdown.replace(rule.find, rule.replace, 1)
            replaced = 1
        else:
            replaced = 0
        reports.append(ReplacementReport(rule.find, occurrences, replaced))
    return markdown, reports


class PatchEngine:
    def __init__(self, config: Optional[ConversionConfig] = None):
        self.config = config or ConversionConfig()
        self._exporter = NoteExporter(self.config)
        self._renderer = MarkdownRenderer(self.config)
        self.stage = PatchStage.FETCHED

    def _advance(self, stage: PatchStage) -> None:
        LOGGER.debug("notes.patch.stage %s -> %s", self.stage.value, stage.value)
        self.stage = stage

    def patch(
        self,
        enml: str,
        replacements: Iterable[ReplacementLike],
        resources=None,
        base_dir: Optional[str] = None,
        drop_unreferenced: bool = False,
    ) -> PatchResult:
        # Validate every rule before doing any work.
        rules = [coerce_replacement(r) for r in replacements]
        self.stage = PatchStage.FETCHED
        source = (
            resources
            if isinstance(resources, InMemoryResourceSource)
            else InMemoryResourceSource.from_resources(resources)
        )

        markdown = self._exporter.export(enml, source)
        self._advance(PatchStage.CONVERTED)

        edited, reports = apply_replacements(markdown, rules)
        self._advance(PatchStage.EDITED)
        total = sum(r.replaced for r in reports)

        if total == 0:
            self._advance(PatchStage.ABORTED_NO_MATCH)
            missing = ", ".join(repr(r.find) for r in reports)
            return PatchResult(
                status=PatchStatus.NO_MATCH,
                reports=reports,
                message=f"No matches found for: {missing}; note left unchanged",
                markdown=markdown,
            )

        if not edited.strip():
            self._advance(PatchStage.ABORTED_EMPTY_RESULT)
            return PatchResult(
                status=PatchStatus.EMPTY_RESULT,
                reports=reports,
                message="Replacements would leave the note empty; note left unchanged",
                markdown=edited,
            )

        converted = self._renderer.render(edited, list(source), base_dir)
        attachments = self._merge_attachments(converted, source, drop_unreferenced)
        self._advance(PatchStage.COMMITTED)
        LOGGER.info(
            "notes.patch.committed rules=%d replaced=%d attachments=%d",
            len(rules),
            total,
            len(attachments),
        )
        return PatchResult(
            status=PatchStatus.COMMITTED,
            reports=reports,
            message=f"Replaced {total} occurrence(s)",
            enml=converted.enml,
            markdown=edited,
            attachments=attachments,
        )

    def _merge_attachments(
        self,
        converted: ConversionResult,
        source: InMemoryResourceSource,
        drop_unreferenced: bool,
    ) -> List[Attachment]:
        attachments = list(converted.attachments)
        if drop_unreferenced:
            return attachments
        referenced = {a.hash_hex for a in attachments}
        for known in source:
            if known.hash_hex not in referenced:
                attachments.append(
                    Attachment.from_known(known, self.config.default_mime_type)
                )
        return attachments


def patch_note(
    enml: str,
    replacements: Iterable[ReplacementLike],
    resources=None,
    config: Optional[ConversionConfig] = None,
    drop_unreferenced: bool = False,
) -> PatchResult:
    return PatchEngine(config).patch(
        enml, replacements, resources, drop_unreferenced=drop_unreferenced
    )
