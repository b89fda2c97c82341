#!/usr/bin/env python
"""Command line interface for evernote-mcp."""

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from evernote_mcp.cli.commands import notes, resources

app = typer.Typer(help="Markdown ⇄ ENML tools for Evernote notes")
console = Console(stderr=True)

# Add command groups
app.add_typer(notes.app, name="notes")
app.add_typer(resources.app, name="resources")


@app.callback()
def callback(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log conversion decisions at DEBUG level"
    ),
):
    """Convert, patch and inspect Evernote note content."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
