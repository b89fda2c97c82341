"""Resource commands for the evernote-mcp CLI."""

import os

import typer
from rich.console import Console
from rich.table import Table

from evernote_mcp.exceptions import EvernoteMcpException
from evernote_mcp.services.notes import ContentHash, NotesService
from evernote_mcp.services.notes.recognition import best_text
from evernote_mcp.services.notes.rendering.attachments import guess_mime_type
from evernote_mcp.services.notes.rendering.options import ConversionConfig
from evernote_mcp.services.notes.rendering.renderer_iface import resource_url

from ..utils.io import read_bytes

app = typer.Typer(help="Resource commands")
console = Console()


@app.command("hash")
def hash_file(path: str = typer.Argument(..., help="File to hash")):
    """Show the content hash and resource URL a file would get as an attachment."""
    try:
        digest = ContentHash.of(read_bytes(path))
    except (EvernoteMcpException, OSError) as e:
        console.print(f"[bold red]Error:[/bold red] {str(e)}")
        raise typer.Exit(1)

    console.print(f"Hash: [bold]{digest.hex}[/bold]")
    console.print(f"URL: {resource_url(digest)}")
    console.print(
        f"Type: {guess_mime_type(os.path.basename(path), ConversionConfig().default_mime_type)}"
    )


@app.command("recognition")
def recognition(
    path: str = typer.Argument(..., help="recoIndex XML file"),
):
    """Show the OCR text Evernote recognized in an image resource."""
    try:
        items = NotesService().recognition(read_bytes(path))
    except (EvernoteMcpException, OSError) as e:
        console.print(f"[bold red]Error:[/bold red] {str(e)}")
        raise typer.Exit(1)

    if not items:
        console.print("No recognition data found")
        return

    table = Table("X", "Y", "Width", "Height", "Text", "Confidence")
    for item in items:
        box = item.bounding_box
        best = item.best
        table.add_row(
            str(box.x),
            str(box.y),
            str(box.width),
            str(box.height),
            best.text if best else "",
            str(best.confidence) if best else "",
        )
    console.print(table)
    console.print(f"Text: [bold]{best_text(items)}[/bold]")
