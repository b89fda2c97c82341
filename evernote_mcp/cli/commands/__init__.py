"""Command modules for the evernote-mcp CLI."""

# Import all command modules here for easy access
from evernote_mcp.cli.commands import notes, resources

__all__ = ["notes", "resources"]
