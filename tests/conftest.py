"""Shared test fixtures for s3extra."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import boto3
import pytest
from botocore.stub import Stubber

from s3extra.core.hasher import sha256_hex
from s3extra.core.reconciler import LifecycleReconciler
from s3extra.core.uploader import FileUploader
from s3extra.models.fileset import FilesetConfiguration, MatchedFile

BUCKET = "s3extra-test-bucket"

FIXTURE_FILES: dict[str, bytes] = {
    "fixtures/hello.txt": b"hello world\n",
    "fixtures/static/main.js": b"console.log('hello');\n",
    "fixtures/static/site.css": b"body { margin: 0; }\n",
    "notes/readme.md": b"# notes\n",
}


@pytest.fixture
def fileset_root(tmp_path: Path) -> Path:
    """A directory populated with a small tree of fixture files."""
    root = tmp_path / "site"
    for relative, data in FIXTURE_FILES.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    return root


@pytest.fixture
def make_matched() -> Callable[..., MatchedFile]:
    """Factory fixture: build a MatchedFile whose digest matches its data."""

    def _factory(path: str, data: bytes) -> MatchedFile:
        return MatchedFile(path=path, digest=sha256_hex(data), data=data)

    return _factory


@pytest.fixture
def make_config() -> Callable[..., FilesetConfiguration]:
    """Factory fixture: build a FilesetConfiguration with test defaults."""

    def _factory(**overrides: Any) -> FilesetConfiguration:
        defaults: dict[str, Any] = {
            "bucket": BUCKET,
            "glob": "**/*.{txt,js}",
        }
        defaults.update(overrides)
        return FilesetConfiguration(**defaults)

    return _factory


# ---------------------------------------------------------------------------
# Object store: a real boto3 client under botocore's Stubber, no network
# ---------------------------------------------------------------------------


@pytest.fixture
def s3_client() -> Any:
    return boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


@pytest.fixture
def stubber(s3_client: Any) -> Iterator[Stubber]:
    with Stubber(s3_client) as stub:
        yield stub


@pytest.fixture
def uploader(s3_client: Any) -> FileUploader:
    """FileUploader with no real sleeping between existence checks."""
    return FileUploader(s3_client, min_delay=0.0, max_delay=0.0, sleep=lambda _: None)


@pytest.fixture
def reconciler(uploader: FileUploader, fileset_root: Path) -> LifecycleReconciler:
    return LifecycleReconciler(uploader, root=fileset_root)


@pytest.fixture
def expect_upload(stubber: Stubber) -> Callable[..., None]:
    """Queue one put_object and one successful head_object on the stubber."""

    def _expect(
        key: str,
        body: bytes,
        content_type: str,
        *,
        bucket: str = BUCKET,
        not_found_checks: int = 0,
        **extra: str,
    ) -> None:
        put_params: dict[str, Any] = {
            "Bucket": bucket,
            "Key": key,
            "Body": body,
            "ContentType": content_type,
        }
        put_params.update(extra)
        stubber.add_response("put_object", {"ETag": '"etag"'}, put_params)
        for _ in range(not_found_checks):
            stubber.add_client_error(
                "head_object",
                service_error_code="404",
                service_message="Not Found",
                http_status_code=404,
                expected_params={"Bucket": bucket, "Key": key},
            )
        stubber.add_response(
            "head_object",
            {"ContentLength": len(body)},
            {"Bucket": bucket, "Key": key},
        )

    return _expect
