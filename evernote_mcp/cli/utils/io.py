"""File helpers for CLI commands."""

import json
import sys
from typing import Any, List, Optional, Union

from evernote_mcp.exceptions import PayloadValidationError
from evernote_mcp.services.notes.models import KnownResource, NotePayload, Replacement
from evernote_mcp.services.notes.patching import coerce_replacement
from evernote_mcp.services.notes.rendering.resource_source import (
    InMemoryResourceSource,
)


def read_text(path: str) -> str:
    """Read a UTF-8 file; ``-`` reads standard input."""
    if path == "-":
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def read_bytes(path: str) -> bytes:
    if path == "-":
        return sys.stdin.buffer.read()
    with open(path, "rb") as f:
        return f.read()


def load_json(path: str) -> Any:
    try:
        return json.loads(read_text(path))
    except json.JSONDecodeError as e:
        raise PayloadValidationError(f"{path} is not valid JSON: {e}") from e


def read_note(path: str) -> Union[NotePayload, str]:
    """A note file is either raw ENML or a note-store JSON payload."""
    text = read_text(path)
    if text.lstrip().startswith("{"):
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise PayloadValidationError(f"{path} is not valid JSON: {e}") from e
        return NotePayload.model_validate(data)
    return text


def load_resources(path: Optional[str]) -> List[KnownResource]:
    """Load known resources from a JSON list or a note payload's ``resources``."""
    if not path:
        return []
    data = load_json(path)
    if isinstance(data, dict):
        data = data.get("resources") or []
    if not isinstance(data, list):
        raise PayloadValidationError(f"{path}: expected a list of resources", data)
    return list(InMemoryResourceSource.from_resources(data))


def load_replacements(path: str) -> List[Replacement]:
    data = load_json(path)
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise PayloadValidationError(f"{path}: expected a list of replacements", data)
    return [coerce_replacement(item) for item in data]
