"""``s3extra apply CONFIG`` — converge every configured fileset.

For each resource in the configuration file:

- no tracked state               -> create
- bucket, glob or prefix changed -> delete, then create
  (for imported records: identity differs from the configured one)
- anything else                  -> update (full republish)

Tracked resources missing from the configuration are deleted from state.
Stops at the first failing resource. A failed create or update leaves that
resource's tracked state as it was, except on the replace path: the old
record is already dropped by then, so the resource is no longer tracked.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from s3extra.cli import host
from s3extra.cli.render import print_response
from s3extra.cli.state_store import ResourceRecord, StateStore
from s3extra.config import settings
from s3extra.core.context import OperationContext
from s3extra.core.errors import HostProtocolError
from s3extra.core.hasher import resource_identity
from s3extra.core.reconciler import requires_replace
from s3extra.models.fileset import FilesetConfiguration
from s3extra.models.lifecycle import LifecycleOperation, ResourceRequest

console = Console()


def _needs_replace(record: ResourceRecord, config: FilesetConfiguration) -> bool:
    # Imported records carry no configuration, only the identity.
    if record.config is None:
        return record.state.id != resource_identity(*config.identity_fields())
    return requires_replace(record.config, config)


def apply_cmd(
    config_file: Path = typer.Argument(
        ...,
        help="JSON file mapping resource names to fileset configuration.",
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
    timeout: float = typer.Option(
        None,
        "--timeout",
        help="Deadline in seconds for each operation.",
    ),
) -> None:
    """Create, replace or update filesets to match the configuration."""
    store = StateStore(state_path)
    try:
        desired = host.load_desired(config_file)
        document = store.load()
    except HostProtocolError as exc:
        console.print(str(exc), style="bold red", markup=False)
        raise typer.Exit(code=1)

    reconciler = host.build_reconciler(root)

    for name in sorted(set(document.resources) - set(desired)):
        record = document.resources[name]
        response = reconciler.reconcile(
            ResourceRequest(operation=LifecycleOperation.DELETE, config=record.config, prior=record.state)
        )
        print_response(console, name, response)
        document = document.without(name)
        store.save(document)

    for name, config in sorted(desired.items()):
        record = document.resources.get(name)

        if record is not None and _needs_replace(record, config):
            response = reconciler.reconcile(
                ResourceRequest(operation=LifecycleOperation.DELETE, config=record.config, prior=record.state)
            )
            print_response(console, name, response)
            document = document.without(name)
            store.save(document)
            record = None

        operation = LifecycleOperation.CREATE if record is None else LifecycleOperation.UPDATE
        response = reconciler.reconcile(
            ResourceRequest(
                operation=operation,
                config=config,
                prior=record.state if record is not None else None,
            ),
            context=OperationContext(timeout),
        )
        print_response(console, name, response)
        if response.has_error or response.state is None:
            raise typer.Exit(code=1)

        document = document.with_record(name, ResourceRecord(config=config, state=response.state))
        store.save(document)

    console.print(f"[bold green]Applied {len(desired)} fileset(s).[/bold green]")
