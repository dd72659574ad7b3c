"""s3extra data models — all Pydantic v2, all frozen (immutable)."""

from s3extra.models.fileset import (
    MAX_TAGS,
    CacheDirective,
    CacheDirectiveKind,
    FileConfiguration,
    FilesetConfiguration,
    MatchedFile,
    UploadRecord,
)
from s3extra.models.lifecycle import (
    CONVERGING_OPERATIONS,
    OPERATION_REQUIREMENTS,
    Diagnostic,
    LifecycleOperation,
    PersistedState,
    ResourceRequest,
    ResourceResponse,
    Severity,
)

__all__ = [
    # fileset
    "MAX_TAGS",
    "MatchedFile",
    "CacheDirective",
    "CacheDirectiveKind",
    "FileConfiguration",
    "FilesetConfiguration",
    "UploadRecord",
    # lifecycle
    "LifecycleOperation",
    "OPERATION_REQUIREMENTS",
    "CONVERGING_OPERATIONS",
    "PersistedState",
    "Severity",
    "Diagnostic",
    "ResourceRequest",
    "ResourceResponse",
]
