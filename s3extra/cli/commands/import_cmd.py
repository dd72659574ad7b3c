"""``s3extra import NAME ID`` — start tracking an existing fileset.

Nothing is uploaded. The next ``refresh --config`` or ``apply`` fills in
file hashes and recomputes the identity from the configuration.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from s3extra.cli import host
from s3extra.cli.render import print_response
from s3extra.cli.state_store import ResourceRecord, StateStore
from s3extra.config import settings
from s3extra.core.errors import HostProtocolError
from s3extra.models.lifecycle import LifecycleOperation, ResourceRequest

console = Console()


def import_cmd(
    name: str = typer.Argument(..., help="Resource name to track the fileset under."),
    identity: str = typer.Argument(..., help="Identity of the existing fileset."),
    state_path: Path = typer.Option(
        settings.state_path,
        "--state",
        "-s",
        help="Path to the local state file.",
    ),
) -> None:
    """Adopt an existing fileset by identity."""
    store = StateStore(state_path)
    try:
        document = store.load()
    except HostProtocolError as exc:
        console.print(str(exc), style="bold red", markup=False)
        raise typer.Exit(code=1)

    if name in document.resources:
        console.print(f"[bold red]Already tracked:[/bold red] {name}")
        raise typer.Exit(code=1)

    reconciler = host.build_reconciler()
    response = reconciler.reconcile(
        ResourceRequest(operation=LifecycleOperation.IMPORT, import_id=identity)
    )
    print_response(console, name, response)
    if response.has_error or response.state is None:
        raise typer.Exit(code=1)

    store.save(document.with_record(name, ResourceRecord(state=response.state)))
