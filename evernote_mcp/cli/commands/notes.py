"""Note content commands for the evernote-mcp CLI."""

import json
import os
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from evernote_mcp.exceptions import EvernoteMcpException
from evernote_mcp.services.notes import NotesService
from evernote_mcp.services.notes.decoding import wrap_enml
from evernote_mcp.services.notes.models import Replacement
from evernote_mcp.services.notes.rendering.attachments import describe_attachment

from ..utils.io import load_replacements, load_resources, read_note, read_text

app = typer.Typer(help="Note content commands")
console = Console()
err_console = Console(stderr=True)

ERRORS = (EvernoteMcpException, OSError, ValueError)


def _attachments_table(attachments) -> Table:
    table = Table("Hash", "Type", "Filename", "New")
    for a in attachments:
        table.add_row(a.hash_hex, a.mime_type, a.filename or "", "yes" if a.is_new else "")
    return table


@app.command("to-enml")
def to_enml(
    path: str = typer.Argument(..., help="Markdown file, or - for stdin"),
    existing: Optional[str] = typer.Option(
        None, "--existing", "-e", help="JSON file with the note's current resources"
    ),
    full_document: bool = typer.Option(
        False, "--full-document", "-d", help="Emit the XML declaration, DOCTYPE and en-note root"
    ),
    base_dir: Optional[str] = typer.Option(
        None, "--base-dir", help="Directory relative image paths resolve against"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print ENML and attachments as JSON"),
):
    """Convert Markdown to ENML."""
    try:
        markdown = read_text(path)
        if base_dir is None and path != "-":
            base_dir = os.path.dirname(os.path.abspath(path))
        result = NotesService().from_markdown(
            markdown, existing=load_resources(existing), base_dir=base_dir
        )
    except ERRORS as e:
        console.print(f"[bold red]Error:[/bold red] {str(e)}")
        raise typer.Exit(1)

    enml = result.document if full_document else result.enml
    if as_json:
        payload = {
            "enml": enml,
            "attachments": [describe_attachment(a) for a in result.attachments],
        }
        typer.echo(json.dumps(payload, indent=2))
        return

    typer.echo(enml)
    if result.attachments:
        err_console.print(_attachments_table(result.attachments))


@app.command("to-markdown")
def to_markdown(
    path: str = typer.Argument(..., help="ENML document or note JSON payload, or - for stdin"),
    resources: Optional[str] = typer.Option(
        None, "--resources", "-r", help="JSON file with the note's resources"
    ),
):
    """Convert ENML to Markdown."""
    try:
        note = read_note(path)
        markdown = NotesService().to_markdown(note, load_resources(resources))
    except ERRORS as e:
        console.print(f"[bold red]Error:[/bold red] {str(e)}")
        raise typer.Exit(1)
    typer.echo(markdown)


@app.command("patch")
def patch(
    path: str = typer.Argument(..., help="ENML document or note JSON payload"),
    find: Optional[str] = typer.Option(None, "--find", "-f", help="Literal text to find"),
    replace: str = typer.Option("", "--replace", "-R", help="Replacement text"),
    replace_all: bool = typer.Option(False, "--all", "-a", help="Replace every occurrence"),
    replacements: Optional[str] = typer.Option(
        None, "--replacements", help="JSON file with a list of {find, replace, replaceAll}"
    ),
    resources: Optional[str] = typer.Option(
        None, "--resources", "-r", help="JSON file with the note's resources"
    ),
    drop_unreferenced: bool = typer.Option(
        False, "--drop-unreferenced", help="Do not keep resources the new body no longer shows"
    ),
    full_document: bool = typer.Option(False, "--full-document", "-d"),
):
    """Apply literal find/replace edits to a note's Markdown view."""
    try:
        rules: List[Replacement] = []
        if find is not None:
            rules.append(Replacement(find=find, replace=replace, replace_all=replace_all))
        if replacements:
            rules.extend(load_replacements(replacements))
        if not rules:
            raise typer.BadParameter("pass --find or --replacements")
        result = NotesService().patch(
            read_note(path),
            rules,
            resources=load_resources(resources),
            drop_unreferenced=drop_unreferenced,
        )
    except ERRORS as e:
        console.print(f"[bold red]Error:[/bold red] {str(e)}")
        raise typer.Exit(1)

    table = Table("Find", "Occurrences", "Replaced")
    for report in result.reports:
        table.add_row(report.find, str(report.occurrences), str(report.replaced))
    err_console.print(table)

    if not result.ok:
        console.print(f"[bold yellow]Not applied:[/bold yellow] {result.message}")
        raise typer.Exit(1)

    typer.echo(wrap_enml(result.enml) if full_document else result.enml)
    if result.attachments:
        err_console.print(_attachments_table(result.attachments))


@app.command("preview")
def preview(
    path: str = typer.Argument(..., help="ENML document or note JSON payload"),
    length: Optional[int] = typer.Option(
        None, "--length", "-n", min=1, help="Maximum preview length (default 300)"
    ),
):
    """Print the plain-text search preview of a note."""
    try:
        text = NotesService().preview(read_note(path), length)
    except ERRORS as e:
        console.print(f"[bold red]Error:[/bold red] {str(e)}")
        raise typer.Exit(1)
    if text is None:
        console.print("No text content")
        return
    typer.echo(text)
