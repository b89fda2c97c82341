"""Command line interface for evernote-mcp."""
