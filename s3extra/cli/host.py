"""Local host glue — desired configuration loading and reconciler wiring."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import TypeAdapter, ValidationError
from rich.logging import RichHandler

from s3extra.config import S3ExtraSettings, settings
from s3extra.core.errors import HostProtocolError
from s3extra.core.reconciler import LifecycleReconciler
from s3extra.models.fileset import FilesetConfiguration

_DESIRED = TypeAdapter(dict[str, FilesetConfiguration])


def configure_logging(level: str) -> None:
    """Route all log records through Rich at *level*."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )
    # botocore is chatty at DEBUG.
    logging.getLogger("botocore").setLevel(logging.WARNING)


def load_desired(path: Path) -> dict[str, FilesetConfiguration]:
    """Read ``{resource name: configuration}`` from a JSON file."""
    try:
        raw = Path(path).read_bytes()
    except OSError as exc:
        raise HostProtocolError(f"Cannot read configuration {path}: {exc}") from exc
    try:
        return _DESIRED.validate_json(raw)
    except ValidationError as exc:
        raise HostProtocolError(f"Configuration {path} is invalid: {exc}") from exc


def build_reconciler(
    root: Path | None = None, app_settings: S3ExtraSettings | None = None
) -> LifecycleReconciler:
    """Wire a reconciler to a boto3 client built from settings."""
    return LifecycleReconciler.from_settings(app_settings or settings, root=root)
