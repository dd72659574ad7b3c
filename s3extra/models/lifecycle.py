"""Lifecycle models — operations, host requests and responses, diagnostics."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from s3extra.models.fileset import FilesetConfiguration, UploadRecord


class LifecycleOperation(str, Enum):
    """Host-driven operations dispatched to the reconciler."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    IMPORT = "import"


# What each operation needs from the host: (desired config, prior state).
OPERATION_REQUIREMENTS: dict[LifecycleOperation, tuple[bool, bool]] = {
    LifecycleOperation.CREATE: (True, False),
    LifecycleOperation.READ: (True, True),
    LifecycleOperation.UPDATE: (True, False),
    LifecycleOperation.DELETE: (False, True),
    LifecycleOperation.IMPORT: (False, False),
}

# Update is a full create: every file is re-read and republished.
CONVERGING_OPERATIONS: frozenset[LifecycleOperation] = frozenset(
    {LifecycleOperation.CREATE, LifecycleOperation.UPDATE}
)


class PersistedState(BaseModel):
    """The durable record the host stores between operations.

    ``id`` is the fileset identity; ``file_hashes`` maps each relative path
    to the hex SHA-256 of its contents.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    file_hashes: dict[str, str] = {}


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class Diagnostic(BaseModel):
    """A host-visible error or warning."""

    model_config = ConfigDict(frozen=True)

    severity: Severity
    summary: str
    detail: str = ""


class ResourceRequest(BaseModel):
    """One lifecycle invocation from the host."""

    model_config = ConfigDict(frozen=True)

    operation: LifecycleOperation
    config: FilesetConfiguration | None = None
    prior: PersistedState | None = None
    import_id: str | None = None


class ResourceResponse(BaseModel):
    """Outcome of a lifecycle operation.

    ``state`` is ``None`` whenever the operation failed or removed the
    resource; the host then keeps (or drops) its prior record.
    """

    model_config = ConfigDict(frozen=True)

    operation: LifecycleOperation
    state: PersistedState | None = None
    removed: bool = False
    diagnostics: list[Diagnostic] = []
    content_digest: str | None = None  # aggregate digest of the fileset
    uploads: list[UploadRecord] = Field(default_factory=list)

    @property
    def has_error(self) -> bool:
        return any(d.severity == Severity.ERROR for d in self.diagnostics)

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.WARNING]
