"""Fileset models — matched files, desired configuration, upload records."""

from __future__ import annotations

from enum import Enum
from pathlib import PurePosixPath, PureWindowsPath
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

MAX_TAGS = 10


class MatchedFile(BaseModel):
    """A local file matched by the glob, with its SHA-256 digest.

    Created fresh by every discovery and owned by that operation only.
    """

    model_config = ConfigDict(frozen=True)

    path: str  # relative, slash-separated
    digest: str  # hex SHA-256 of data
    data: bytes

    @property
    def size_bytes(self) -> int:
        return len(self.data)


class CacheDirectiveKind(str, Enum):
    """Which case of the cache directive variant is held."""

    UNSET = "unset"
    UNKNOWN = "unknown"  # pending computation by the host
    VALUE = "value"


class CacheDirective(BaseModel):
    """Tagged variant: ``Unset | Unknown | Value(v)``.

    Only ``Value(v)`` is ever forwarded to the object store.
    """

    model_config = ConfigDict(frozen=True)

    kind: CacheDirectiveKind = CacheDirectiveKind.UNSET
    value: str | None = None

    @model_validator(mode="after")
    def _value_matches_kind(self) -> CacheDirective:
        if self.kind == CacheDirectiveKind.VALUE and self.value is None:
            raise ValueError("a cache directive value is required")
        if self.kind != CacheDirectiveKind.VALUE and self.value is not None:
            raise ValueError(f"a {self.kind.value} cache directive carries no value")
        return self

    @classmethod
    def unset(cls) -> CacheDirective:
        return cls(kind=CacheDirectiveKind.UNSET)

    @classmethod
    def unknown(cls) -> CacheDirective:
        return cls(kind=CacheDirectiveKind.UNKNOWN)

    @classmethod
    def of(cls, value: str) -> CacheDirective:
        return cls(kind=CacheDirectiveKind.VALUE, value=value)

    @property
    def forwardable(self) -> bool:
        return self.kind == CacheDirectiveKind.VALUE


class FileConfiguration(BaseModel):
    """Options applied to every uploaded object. Not identity-defining."""

    model_config = ConfigDict(frozen=True)

    cache_control: CacheDirective = Field(default_factory=CacheDirective.unset)

    @field_validator("cache_control", mode="before")
    @classmethod
    def _coerce_cache_control(cls, value: Any) -> Any:
        # Hosts send plain strings or null.
        if value is None:
            return CacheDirective.unset()
        if isinstance(value, str):
            return CacheDirective.of(value)
        return value


class FilesetConfiguration(BaseModel):
    """Desired configuration for one managed fileset.

    ``bucket``, ``glob`` and ``prefix`` are identity-defining: changing any
    of them replaces the resource. ``file_configuration`` and ``tags`` are
    applied in place on the next update.
    """

    model_config = ConfigDict(frozen=True)

    bucket: str = Field(min_length=1)
    glob: str = Field(min_length=1)
    prefix: str = ""
    file_configuration: FileConfiguration | None = None
    tags: dict[str, str] = Field(default_factory=dict)

    @field_validator("prefix", mode="before")
    @classmethod
    def _null_prefix(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("tags", mode="before")
    @classmethod
    def _null_tags(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("glob")
    @classmethod
    def _relative_glob(cls, value: str) -> str:
        if PurePosixPath(value).is_absolute() or PureWindowsPath(value).is_absolute():
            raise ValueError("glob must be relative to the working directory")
        return value

    @field_validator("tags")
    @classmethod
    def _tag_limit(cls, value: dict[str, str]) -> dict[str, str]:
        if len(value) > MAX_TAGS:
            raise ValueError(f"at most {MAX_TAGS} tags may be assigned, got {len(value)}")
        return value

    def identity_fields(self) -> tuple[str, str, str]:
        """Return the identity-defining ``(bucket, glob, prefix)`` triple."""
        return (self.bucket, self.glob, self.prefix)

    @property
    def cache_control(self) -> CacheDirective:
        if self.file_configuration is None:
            return CacheDirective.unset()
        return self.file_configuration.cache_control


class UploadRecord(BaseModel):
    """Result of one object write. Transient, never persisted."""

    model_config = ConfigDict(frozen=True)

    path: str
    key: str
    content_type: str
    etag: str = ""
    version_id: str | None = None
