"""``s3extra destroy NAME`` — stop tracking a fileset.

Objects already in the bucket are left in place.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from s3extra.cli import host
from s3extra.cli.render import print_response
from s3extra.cli.state_store import StateStore
from s3extra.config import settings
from s3extra.core.errors import HostProtocolError
from s3extra.models.lifecycle import LifecycleOperation, ResourceRequest

console = Console()


def destroy_cmd(
    name: str = typer.Argument(..., help="Resource name to stop tracking."),
    state_path: Path = typer.Option(
        settings.state_path,
        "--state",
        "-s",
        help="Path to the local state file.",
    ),
) -> None:
    """Remove a fileset from state without touching the bucket."""
    store = StateStore(state_path)
    try:
        document = store.load()
    except HostProtocolError as exc:
        console.print(str(exc), style="bold red", markup=False)
        raise typer.Exit(code=1)

    record = document.resources.get(name)
    if record is None:
        console.print(f"[bold red]Not tracked:[/bold red] {name}")
        raise typer.Exit(code=1)

    reconciler = host.build_reconciler()
    response = reconciler.reconcile(
        ResourceRequest(operation=LifecycleOperation.DELETE, config=record.config, prior=record.state)
    )
    print_response(console, name, response)
    if response.has_error:
        raise typer.Exit(code=1)

    store.save(document.without(name))
