"""Upload orchestration — one object per matched file, written sequentially.

For each file the key, content type, tagging and cache directive are
computed, the object is written with ``put_object`` (or boto3's managed
transfer, multipart, at or above the multipart threshold), and the call blocks
until ``head_object`` confirms the object is readable. Uploads run one at a
time so store write load stays predictable and every failure names exactly
one file. Nothing is rolled back: objects written before a failure stay.
"""

from __future__ import annotations

import io
import logging
import mimetypes
import time
from collections.abc import Callable, Mapping
from pathlib import PurePosixPath
from typing import Any
from urllib.parse import urlencode

import boto3
from boto3.exceptions import S3UploadFailedError
from boto3.s3.transfer import TransferConfig
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from s3extra.config import S3ExtraSettings
from s3extra.core.context import OperationContext
from s3extra.core.errors import PublishError
from s3extra.models.fileset import FilesetConfiguration, MatchedFile, UploadRecord

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Web asset types take precedence over the platform mimetypes table, which
# varies between systems and Python versions.
WEB_CONTENT_TYPES: dict[str, str] = {
    ".avif": "image/avif",
    ".css": "text/css; charset=utf-8",
    ".gif": "image/gif",
    ".htm": "text/html; charset=utf-8",
    ".html": "text/html; charset=utf-8",
    ".ico": "image/vnd.microsoft.icon",
    ".jpeg": "image/jpeg",
    ".jpg": "image/jpeg",
    ".js": "application/javascript",
    ".json": "application/json",
    ".map": "application/json",
    ".mjs": "application/javascript",
    ".pdf": "application/pdf",
    ".png": "image/png",
    ".svg": "image/svg+xml",
    ".txt": "text/plain; charset=utf-8",
    ".wasm": "application/wasm",
    ".webp": "image/webp",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".xml": "text/xml; charset=utf-8",
}

NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})

# Single PUTs are capped at 5 GiB by the store; larger bodies go multipart.
MULTIPART_THRESHOLD = 8 * 1024 * 1024
MULTIPART_CHUNKSIZE = 8 * 1024 * 1024


def object_key(path: str, prefix: str = "") -> str:
    """``path`` when there is no prefix, else ``prefix/path``."""
    if prefix:
        return f"{prefix}/{path}"
    return path


def content_type_for(path: str) -> str:
    """Infer a media type from the file extension."""
    extension = PurePosixPath(path).suffix.lower()
    if extension in WEB_CONTENT_TYPES:
        return WEB_CONTENT_TYPES[extension]
    guessed, _ = mimetypes.guess_type(path)
    return guessed or DEFAULT_CONTENT_TYPE


def tagging_query(tags: Mapping[str, str]) -> str | None:
    """URL-encode tags as one tag-set value, sorted by key. Empty → ``None``."""
    if not tags:
        return None
    return urlencode(sorted(tags.items()))


def make_s3_client(settings: S3ExtraSettings) -> Any:
    """Build a boto3 S3 client from settings (credentials via boto3's chain)."""
    session_kwargs: dict[str, Any] = {}
    if settings.profile:
        session_kwargs["profile_name"] = settings.profile
    if settings.region:
        session_kwargs["region_name"] = settings.region
    session = boto3.session.Session(**session_kwargs)
    return session.client(
        "s3",
        endpoint_url=settings.endpoint_url,
        config=BotoConfig(
            retries={"max_attempts": settings.max_attempts, "mode": "standard"},
        ),
    )


class FileUploader:
    """Publishes a fileset to one bucket and confirms every write.

    Parameters
    ----------
    client:
        A boto3 S3 client (or anything with ``put_object``, ``upload_fileobj``
        and ``head_object``).
    wait_timeout:
        Ceiling in seconds for the existence-confirmation poll per object.
    min_delay, max_delay:
        Bounds of the exponential backoff between polls.
    multipart_threshold, multipart_chunksize:
        Files of at least ``multipart_threshold`` bytes are written with the
        managed transfer in parts of ``multipart_chunksize`` bytes.
    clock, sleep:
        Injectable time sources. ``sleep`` defaults to the operation
        context's interruptible sleep.
    """

    def __init__(
        self,
        client: Any,
        *,
        wait_timeout: float = 300.0,
        min_delay: float = 5.0,
        max_delay: float = 120.0,
        multipart_threshold: int = MULTIPART_THRESHOLD,
        multipart_chunksize: int = MULTIPART_CHUNKSIZE,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self._client = client
        self._wait_timeout = wait_timeout
        self._min_delay = min_delay
        self._max_delay = max_delay
        self._transfer_config = TransferConfig(
            multipart_threshold=multipart_threshold,
            multipart_chunksize=multipart_chunksize,
        )
        self._clock = clock
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls, settings: S3ExtraSettings, client: Any | None = None
    ) -> FileUploader:
        return cls(
            client if client is not None else make_s3_client(settings),
            wait_timeout=settings.wait_timeout_seconds,
            min_delay=settings.wait_min_delay_seconds,
            max_delay=settings.wait_max_delay_seconds,
            multipart_threshold=settings.multipart_threshold_bytes,
            multipart_chunksize=settings.multipart_chunksize_bytes,
        )

    # ------------------------------------------------------------------
    # Publish
    # ------------------------------------------------------------------

    def publish(
        self,
        files: Mapping[str, MatchedFile],
        config: FilesetConfiguration,
        *,
        context: OperationContext | None = None,
    ) -> list[UploadRecord]:
        """Upload every file, in path order, aborting on the first failure."""
        context = context or OperationContext()
        records: list[UploadRecord] = []

        for path in sorted(files):
            context.check()
            matched = files[path]
            key = object_key(matched.path, config.prefix)
            record = self._put(matched, key, config)
            attempts = self.wait_until_exists(config.bucket, key, path=matched.path, context=context)
            logger.info(
                "Uploaded %s to s3://%s/%s (%s, confirmed after %d check(s))",
                matched.path,
                config.bucket,
                key,
                record.content_type,
                attempts,
            )
            records.append(record)

        return records

    def _put(
        self, matched: MatchedFile, key: str, config: FilesetConfiguration
    ) -> UploadRecord:
        content_type = content_type_for(matched.path)
        extra_args: dict[str, Any] = {"ContentType": content_type}

        tagging = tagging_query(config.tags)
        if tagging is not None:
            extra_args["Tagging"] = tagging

        if config.cache_control.forwardable:
            extra_args["CacheControl"] = config.cache_control.value

        try:
            if matched.size_bytes >= self._transfer_config.multipart_threshold:
                response = self._transfer(matched, config.bucket, key, extra_args)
            else:
                response = self._client.put_object(
                    Bucket=config.bucket, Key=key, Body=matched.data, **extra_args
                )
        except (ClientError, BotoCoreError, S3UploadFailedError) as exc:
            raise PublishError(matched.path, key, exc) from exc

        return UploadRecord(
            path=matched.path,
            key=key,
            content_type=content_type,
            etag=response.get("ETag", ""),
            version_id=response.get("VersionId"),
        )

    def _transfer(
        self, matched: MatchedFile, bucket: str, key: str, extra_args: dict[str, Any]
    ) -> dict[str, Any]:
        logger.debug("Writing %s as multipart (%d bytes)", key, matched.size_bytes)
        self._client.upload_fileobj(
            io.BytesIO(matched.data),
            bucket,
            key,
            ExtraArgs=extra_args,
            Config=self._transfer_config,
        )
        # The managed transfer does not surface the completion response.
        return {}

    # ------------------------------------------------------------------
    # Existence confirmation
    # ------------------------------------------------------------------

    def wait_until_exists(
        self,
        bucket: str,
        key: str,
        *,
        path: str = "",
        context: OperationContext | None = None,
    ) -> int:
        """Poll ``head_object`` until the key is readable.

        Not-found answers back off exponentially; any other error, or
        running past ``wait_timeout``, raises ``PublishError``. Returns the
        number of checks made.
        """
        context = context or OperationContext()
        sleep = self._sleep or context.sleep
        deadline = self._clock() + self._wait_timeout
        delay = self._min_delay
        attempts = 0

        while True:
            context.check()
            attempts += 1
            try:
                self._client.head_object(Bucket=bucket, Key=key)
                return attempts
            except ClientError as exc:
                code = str(exc.response.get("Error", {}).get("Code", ""))
                if code not in NOT_FOUND_CODES:
                    raise PublishError(path or key, key, exc) from exc
            except BotoCoreError as exc:
                raise PublishError(path or key, key, exc) from exc

            remaining = deadline - self._clock()
            if remaining <= 0:
                raise PublishError(
                    path or key,
                    key,
                    f"object not readable after {self._wait_timeout:g}s",
                )
            logger.debug("s3://%s/%s not readable yet, retrying in %.1fs", bucket, key, min(delay, remaining))
            sleep(min(delay, remaining))
            delay = min(delay * 2, self._max_delay)
