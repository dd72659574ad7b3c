"""Rich rendering of reconciler responses and tracked state."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from s3extra.cli.state_store import ResourceRecord
from s3extra.models.lifecycle import ResourceResponse, Severity

_SEVERITY_STYLES: dict[Severity, str] = {
    Severity.ERROR: "bold red",
    Severity.WARNING: "bold yellow",
}


def print_response(console: Console, name: str, response: ResourceResponse) -> None:
    """One status line per operation, then its diagnostics."""
    if response.has_error:
        status = "[bold red]failed[/bold red]"
    elif response.removed:
        status = "[yellow]removed from state[/yellow]"
    else:
        status = "[green]ok[/green]"
    console.print(f"[bold]{name}[/bold] {response.operation.value}: {status}")

    if response.uploads:
        console.print(f"  [dim]{len(response.uploads)} object(s) uploaded[/dim]")
    if response.state is not None:
        console.print(f"  [dim]id {response.state.id}[/dim]")

    for diagnostic in response.diagnostics:
        style = _SEVERITY_STYLES[diagnostic.severity]
        console.print(f"  [{style}]{diagnostic.summary}[/{style}]")
        if diagnostic.detail:
            console.print(f"    {diagnostic.detail}", markup=False)


def render_record(name: str, record: ResourceRecord) -> Table:
    """Table of file hashes for one tracked resource."""
    config = record.config
    title = f"{name} ({record.state.id[:12]})"
    if config is not None:
        title += f" s3://{config.bucket}/{config.prefix}"

    table = Table(title=title)
    table.add_column("Path", style="cyan", no_wrap=True)
    table.add_column("SHA-256", style="green", overflow="fold")
    for path, digest in sorted(record.state.file_hashes.items()):
        table.add_row(path, digest)
    return table
