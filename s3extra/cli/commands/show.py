"""``s3extra show`` — print tracked filesets and their file hashes."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from s3extra.cli.render import render_record
from s3extra.cli.state_store import StateStore
from s3extra.config import settings
from s3extra.core.errors import HostProtocolError

console = Console()


def show_cmd(
    name: str = typer.Argument(None, help="Only show this resource."),
    state_path: Path = typer.Option(
        settings.state_path,
        "--state",
        "-s",
        help="Path to the local state file.",
    ),
) -> None:
    """Show tracked filesets."""
    try:
        document = StateStore(state_path).load()
    except HostProtocolError as exc:
        console.print(str(exc), style="bold red", markup=False)
        raise typer.Exit(code=1)

    records = document.resources
    if name is not None:
        if name not in records:
            console.print(f"[bold red]Not tracked:[/bold red] {name}")
            raise typer.Exit(code=1)
        records = {name: records[name]}

    if not records:
        console.print("[dim]No tracked filesets.[/dim]")
        return

    for resource_name, record in sorted(records.items()):
        console.print(render_record(resource_name, record))
