"""Services."""

from evernote_mcp.services.notes import NotesService

__all__ = ["NotesService"]
