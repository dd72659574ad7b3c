"""Main Typer application — registers all CLI commands.

Entry point: ``s3extra`` (configured via pyproject.toml console_scripts).
"""

from __future__ import annotations

import typer

from s3extra.cli.commands.apply import apply_cmd
from s3extra.cli.commands.destroy import destroy_cmd
from s3extra.cli.commands.import_cmd import import_cmd
from s3extra.cli.commands.refresh import refresh_cmd
from s3extra.cli.commands.show import show_cmd
from s3extra.cli.host import configure_logging
from s3extra.config import settings

app = typer.Typer(
    name="s3extra",
    help="s3extra: immutable asset filesets for S3-compatible object stores.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
) -> None:
    configure_logging("DEBUG" if verbose else settings.log_level)


# Register subcommands
app.command(name="apply", help="Create, replace or update filesets.")(apply_cmd)
app.command(name="refresh", help="Refresh tracked state from local files.")(refresh_cmd)
app.command(name="destroy", help="Stop tracking a fileset (objects are kept).")(destroy_cmd)
app.command(name="import", help="Track an existing fileset by identity.")(import_cmd)
app.command(name="show", help="Show tracked filesets and file hashes.")(show_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
