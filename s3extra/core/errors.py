"""Error taxonomy for fileset operations.

Errors are raised where they are detected and only turned into host
diagnostics at the reconciler boundary.
"""

from __future__ import annotations


class S3ExtraError(RuntimeError):
    """Base class for all fileset engine errors."""


class NoMatchError(S3ExtraError):
    """Raised when a glob pattern resolves to zero files."""

    def __init__(self, pattern: str) -> None:
        self.pattern = pattern
        super().__init__(
            "Could not find any files that match the provided glob pattern."
            f" (pattern: {pattern!r})"
        )


class FileReadError(S3ExtraError):
    """Raised when a matched local file cannot be read."""

    def __init__(self, path: str, cause: BaseException) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to read {path}: {cause}")


class PublishError(S3ExtraError):
    """Raised when an object write or its existence confirmation fails."""

    def __init__(self, path: str, key: str, cause: BaseException | str) -> None:
        self.path = path
        self.key = key
        self.cause = cause
        super().__init__(f"Failed to publish {path} to key {key!r}: {cause}")


class HostProtocolError(S3ExtraError):
    """Raised when the host supplies malformed desired or prior state."""


class OperationCancelledError(S3ExtraError):
    """Raised when an operation is cancelled or its deadline passes."""
