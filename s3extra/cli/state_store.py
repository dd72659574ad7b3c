"""JSON state file for the local host.

Stores, per resource name, the configuration last applied and the
persisted state returned by the reconciler. Writes go through a temporary
file and an atomic rename.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError

from s3extra.core.errors import HostProtocolError
from s3extra.models.fileset import FilesetConfiguration
from s3extra.models.lifecycle import PersistedState

logger = logging.getLogger(__name__)

STATE_FORMAT_VERSION = 1


class ResourceRecord(BaseModel):
    """One tracked resource. ``config`` is ``None`` right after an import."""

    model_config = ConfigDict(frozen=True)

    config: FilesetConfiguration | None = None
    state: PersistedState


class StateDocument(BaseModel):
    model_config = ConfigDict(frozen=True)

    version: int = STATE_FORMAT_VERSION
    resources: dict[str, ResourceRecord] = {}

    def with_record(self, name: str, record: ResourceRecord) -> StateDocument:
        return self.model_copy(update={"resources": {**self.resources, name: record}})

    def without(self, name: str) -> StateDocument:
        remaining = {k: v for k, v in self.resources.items() if k != name}
        return self.model_copy(update={"resources": remaining})


class StateStore:
    """Loads and saves the state document at *path*."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> StateDocument:
        if not self._path.exists():
            return StateDocument()
        try:
            document = StateDocument.model_validate_json(self._path.read_bytes())
        except ValidationError as exc:
            raise HostProtocolError(f"State file {self._path} is malformed: {exc}") from exc
        if document.version != STATE_FORMAT_VERSION:
            raise HostProtocolError(
                f"State file {self._path} has unsupported version {document.version}"
            )
        return document

    def save(self, document: StateDocument) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(self._path.name + ".tmp")
        tmp.write_text(document.model_dump_json(indent=2), encoding="utf-8")
        os.replace(tmp, self._path)
        logger.debug("Saved %d resource(s) to %s", len(document.resources), self._path)
