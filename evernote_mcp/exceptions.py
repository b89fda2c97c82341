"""Library exceptions."""

from typing import Optional


class EvernoteMcpException(Exception):
    """Generic evernote-mcp exception."""


# Notes content
class NotesError(EvernoteMcpException):
    """Base Notes content error."""


class InvalidContentHashError(NotesError, ValueError):
    """A resource hash is not 16 bytes / 32 hex characters."""


class InvalidReplacementError(NotesError, ValueError):
    """A find/replace rule cannot be applied (e.g. empty search text)."""


class PayloadValidationError(NotesError):
    """A note-store payload failed validation."""

    def __init__(self, message: str, payload: Optional[object] = None):
        super().__init__(message)
        self.payload = payload
