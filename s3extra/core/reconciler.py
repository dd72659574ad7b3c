"""Lifecycle reconciler — one dispatch point for every host operation.

The host invokes create, read, update, delete and import. All of them go
through :meth:`LifecycleReconciler.reconcile`, which dispatches on the
explicit :class:`LifecycleOperation`:

    create, update -> converge (discover -> publish -> identity)
    read           -> discover only, refresh identity and file hashes
    delete         -> no store action, warn that objects are retained
    import         -> adopt the supplied identity, no upload

Errors are raised by the engine and converted to diagnostics here only.
A failed operation never returns state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, cast

from pydantic import ValidationError

from s3extra.config import S3ExtraSettings
from s3extra.core.context import OperationContext
from s3extra.core.errors import (
    FileReadError,
    HostProtocolError,
    NoMatchError,
    OperationCancelledError,
    PublishError,
)
from s3extra.core.file_reader import discover_and_load
from s3extra.core.hasher import aggregate_digest, file_hashes, resource_identity
from s3extra.core.uploader import FileUploader
from s3extra.models.fileset import FilesetConfiguration, MatchedFile
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

logger = logging.getLogger(__name__)

Reader = Callable[..., dict[str, MatchedFile]]

RETENTION_WARNING = Diagnostic(
    severity=Severity.WARNING,
    summary="Not deleting files",
    detail=(
        "This resource treats its files as immutable. To delete previously "
        "managed files, either remove them from the bucket manually or allow "
        "them to expire based on the bucket lifecycle policy."
    ),
)


def requires_replace(
    prior: FilesetConfiguration, desired: FilesetConfiguration
) -> bool:
    """True when any identity-defining field (bucket, glob, prefix) changed."""
    return prior.identity_fields() != desired.identity_fields()


def request_from_host(payload: Mapping[str, Any]) -> ResourceRequest:
    """Validate a raw host payload into a :class:`ResourceRequest`."""
    try:
        return ResourceRequest.model_validate(payload)
    except ValidationError as exc:
        raise HostProtocolError(f"Malformed request from host: {exc}") from exc


class LifecycleReconciler:
    """Converges one fileset resource per invocation.

    Parameters
    ----------
    uploader:
        Publishes matched files to the object store.
    root:
        Directory globs are rooted at. Defaults to the working directory.
    read_workers:
        Thread cap for discovery; ``None`` uses the executor default.
    reader:
        Discovery function, :func:`discover_and_load` by default.
    """

    def __init__(
        self,
        uploader: FileUploader,
        *,
        root: Path | str | None = None,
        read_workers: int | None = None,
        reader: Reader = discover_and_load,
    ) -> None:
        self._uploader = uploader
        self._root = root
        self._read_workers = read_workers
        self._reader = reader

    @classmethod
    def from_settings(
        cls,
        settings: S3ExtraSettings,
        *,
        client: Any | None = None,
        root: Path | str | None = None,
    ) -> LifecycleReconciler:
        return cls(
            FileUploader.from_settings(settings, client),
            root=root,
            read_workers=settings.read_workers,
        )

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def reconcile(
        self,
        request: ResourceRequest,
        *,
        context: OperationContext | None = None,
    ) -> ResourceResponse:
        """Run one lifecycle operation and report its outcome to the host."""
        operation = request.operation
        context = context or OperationContext()
        handlers = {
            LifecycleOperation.READ: self._read,
            LifecycleOperation.DELETE: self._delete,
            LifecycleOperation.IMPORT: self._import,
        }

        try:
            self._validate(request)
            if operation in CONVERGING_OPERATIONS:
                return self._converge(request, context)
            return handlers[operation](request, context)
        except HostProtocolError as exc:
            return self._failure(operation, "Invalid request", str(exc))
        except (NoMatchError, FileReadError) as exc:
            return self._failure(
                operation,
                "Local files error",
                f"Failed to load local files with error: {exc}",
            )
        except PublishError as exc:
            return self._failure(
                operation,
                "Upload error",
                f"Failed to upload files to bucket with error: {exc}",
            )
        except OperationCancelledError as exc:
            return self._failure(operation, "Operation cancelled", str(exc))

    def _validate(self, request: ResourceRequest) -> None:
        needs_config, needs_prior = OPERATION_REQUIREMENTS[request.operation]
        if needs_config and request.config is None:
            raise HostProtocolError(
                f"{request.operation.value} requires the desired configuration"
            )
        if needs_prior and request.prior is None:
            raise HostProtocolError(
                f"{request.operation.value} requires prior state"
            )
        if request.operation == LifecycleOperation.IMPORT:
            if not request.import_id or not request.import_id.strip():
                raise HostProtocolError("import requires a non-empty identity")

    def _failure(
        self, operation: LifecycleOperation, summary: str, detail: str
    ) -> ResourceResponse:
        logger.error("%s failed — %s: %s", operation.value, summary, detail)
        return ResourceResponse(
            operation=operation,
            diagnostics=[Diagnostic(severity=Severity.ERROR, summary=summary, detail=detail)],
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def _discover(
        self, config: FilesetConfiguration, context: OperationContext
    ) -> dict[str, MatchedFile]:
        return self._reader(
            config.glob,
            root=self._root,
            context=context,
            max_workers=self._read_workers,
        )

    def _converge(
        self, request: ResourceRequest, context: OperationContext
    ) -> ResourceResponse:
        config = cast(FilesetConfiguration, request.config)
        logger.info(
            "%s: converging s3://%s (glob=%r, prefix=%r)",
            request.operation.value,
            config.bucket,
            config.glob,
            config.prefix,
        )

        files = self._discover(config, context)
        content_digest = aggregate_digest(files.values())
        uploads = self._uploader.publish(files, config, context=context)

        state = PersistedState(
            id=resource_identity(*config.identity_fields()),
            file_hashes=file_hashes(files),
        )
        logger.info(
            "%s: published %d file(s), id=%s content=%s",
            request.operation.value,
            len(uploads),
            state.id[:12],
            content_digest[:12],
        )
        return ResourceResponse(
            operation=request.operation,
            state=state,
            content_digest=content_digest,
            uploads=uploads,
        )

    def _read(
        self, request: ResourceRequest, context: OperationContext
    ) -> ResourceResponse:
        config = cast(FilesetConfiguration, request.config)
        files = self._discover(config, context)
        state = PersistedState(
            id=resource_identity(*config.identity_fields()),
            file_hashes=file_hashes(files),
        )

        prior = request.prior
        if prior is not None and prior.file_hashes and prior.file_hashes != state.file_hashes:
            logger.info("read: local files drifted from the last applied state")
        return ResourceResponse(
            operation=request.operation,
            state=state,
            content_digest=aggregate_digest(files.values()),
        )

    def _delete(
        self, request: ResourceRequest, context: OperationContext
    ) -> ResourceResponse:
        prior = cast(PersistedState, request.prior)
        logger.warning("delete: leaving objects for %s in the bucket", prior.id[:12])
        return ResourceResponse(
            operation=request.operation,
            removed=True,
            diagnostics=[RETENTION_WARNING],
        )

    def _import(
        self, request: ResourceRequest, context: OperationContext
    ) -> ResourceResponse:
        import_id = (request.import_id or "").strip()
        logger.info("import: tracking existing fileset %s", import_id)
        return ResourceResponse(
            operation=request.operation,
            state=PersistedState(id=import_id),
        )
