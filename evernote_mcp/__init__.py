"""Markdown ⇄ ENML conversion core for an Evernote tool server."""

from evernote_mcp.services.notes import NotesService
from evernote_mcp.services.notes.rendering import (
    ConversionConfig,
    enml_to_markdown,
    render_markdown_to_enml,
)

__version__ = "0.1.0"

__all__ = [
    "ConversionConfig",
    "NotesService",
    "enml_to_markdown",
    "render_markdown_to_enml",
]
