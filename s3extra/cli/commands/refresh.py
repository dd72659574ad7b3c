"""``s3extra refresh`` — re-read local files and refresh tracked state.

No uploads happen. Local drift becomes visible as changed file hashes.
When a configuration file is given, its glob is used; otherwise the
configuration recorded at the last apply.
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


def refresh_cmd(
    config_file: Path = typer.Option(
        None,
        "--config",
        "-c",
        help="JSON configuration to read globs from.",
    ),
    state_path: Path = typer.Option(
        settings.state_path,
        "--state",
        "-s",
        help="Path to the local state file.",
    ),
    root: Path = typer.Option(
        Path("."),
        "--root",
        "-r",
        help="Directory glob patterns are rooted at.",
    ),
) -> None:
    """Refresh identity and file hashes from local content."""
    store = StateStore(state_path)
    try:
        desired = host.load_desired(config_file) if config_file else {}
        document = store.load()
    except HostProtocolError as exc:
        console.print(str(exc), style="bold red", markup=False)
        raise typer.Exit(code=1)

    if not document.resources:
        console.print("[dim]No tracked filesets.[/dim]")
        return

    reconciler = host.build_reconciler(root)
    failed = False

    for name, record in sorted(document.resources.items()):
        config = desired.get(name, record.config)
        response = reconciler.reconcile(
            ResourceRequest(operation=LifecycleOperation.READ, config=config, prior=record.state)
        )
        print_response(console, name, response)
        if response.has_error or response.state is None:
            failed = True
            continue
        if response.state.file_hashes != record.state.file_hashes:
            console.print("  [yellow]local files changed since last apply[/yellow]")
        document = document.with_record(name, ResourceRecord(config=config, state=response.state))

    store.save(document)
    if failed:
        raise typer.Exit(code=1)
