"""Tests for the upload orchestrator — keys, metadata, existence confirmation."""

from __future__ import annotations

import pytest
from boto3.exceptions import S3UploadFailedError
from botocore.stub import Stubber

from s3extra.config import S3ExtraSettings
from s3extra.core.errors import PublishError
from s3extra.core.uploader import (
    DEFAULT_CONTENT_TYPE,
    FileUploader,
    content_type_for,
    make_s3_client,
    object_key,
    tagging_query,
)
from s3extra.models.fileset import CacheDirective, FileConfiguration

BUCKET = "s3extra-test-bucket"


class FakeClock:
    """Monotonic clock that only moves when the uploader sleeps."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class TestHelpers:
    def test_object_key_with_prefix(self):
        assert object_key("fixtures/hello.txt", "updated") == "updated/fixtures/hello.txt"

    def test_object_key_without_prefix(self):
        assert object_key("fixtures/hello.txt", "") == "fixtures/hello.txt"

    def test_content_type_javascript(self):
        assert content_type_for("static/main.js") == "application/javascript"

    def test_content_type_text(self):
        assert content_type_for("hello.txt") == "text/plain; charset=utf-8"

    def test_content_type_case_insensitive(self):
        assert content_type_for("README.TXT") == "text/plain; charset=utf-8"

    def test_content_type_falls_back_to_mimetypes(self):
        assert content_type_for("archive.zip") == "application/zip"

    def test_content_type_unknown_extension(self):
        assert content_type_for("blob.zzz-unknown") == DEFAULT_CONTENT_TYPE
        assert content_type_for("Makefile") == DEFAULT_CONTENT_TYPE

    def test_tagging_empty(self):
        assert tagging_query({}) is None

    def test_tagging_sorted_and_encoded(self):
        assert tagging_query({"team": "web ops", "env": "prod&qa"}) == "env=prod%26qa&team=web+ops"

    def test_make_s3_client_uses_endpoint(self):
        client = make_s3_client(
            S3ExtraSettings(region="us-east-1", endpoint_url="http://localhost:9000")
        )
        assert client.meta.endpoint_url == "http://localhost:9000"
        assert client.meta.region_name == "us-east-1"


class TestPublish:
    def test_uploads_each_file_with_metadata(
        self, uploader, stubber: Stubber, expect_upload, make_matched, make_config
    ):
        hello = make_matched("fixtures/hello.txt", b"hello")
        main = make_matched("fixtures/static/main.js", b"main()")
        config = make_config(
            prefix="updated",
            file_configuration={"cache_control": "max-age=0"},
            tags={"hello": "world"},
        )
        expect_upload(
            "updated/fixtures/hello.txt", b"hello", "text/plain; charset=utf-8",
            Tagging="hello=world", CacheControl="max-age=0",
        )
        expect_upload(
            "updated/fixtures/static/main.js", b"main()", "application/javascript",
            Tagging="hello=world", CacheControl="max-age=0",
        )

        records = uploader.publish({main.path: main, hello.path: hello}, config)

        stubber.assert_no_pending_responses()
        assert [r.key for r in records] == [
            "updated/fixtures/hello.txt",
            "updated/fixtures/static/main.js",
        ]
        assert records[0].etag == '"etag"'

    def test_unknown_cache_directive_not_forwarded(
        self, uploader, stubber: Stubber, expect_upload, make_matched, make_config
    ):
        hello = make_matched("hello.txt", b"hi")
        config = make_config(
            file_configuration=FileConfiguration(cache_control=CacheDirective.unknown())
        )
        expect_upload("hello.txt", b"hi", "text/plain; charset=utf-8")

        uploader.publish({hello.path: hello}, config)
        stubber.assert_no_pending_responses()

    def test_waits_until_object_exists(
        self, uploader, stubber: Stubber, expect_upload, make_matched, make_config
    ):
        hello = make_matched("hello.txt", b"hi")
        expect_upload("hello.txt", b"hi", "text/plain; charset=utf-8", not_found_checks=2)

        uploader.publish({hello.path: hello}, make_config())
        stubber.assert_no_pending_responses()

    def test_put_failure_aborts_remaining_files(
        self, uploader, stubber: Stubber, make_matched, make_config
    ):
        first = make_matched("a.txt", b"a")
        second = make_matched("b.txt", b"b")
        stubber.add_client_error(
            "put_object", service_error_code="AccessDenied", http_status_code=403
        )

        with pytest.raises(PublishError) as excinfo:
            uploader.publish({first.path: first, second.path: second}, make_config())
        assert excinfo.value.path == "a.txt"
        assert excinfo.value.key == "a.txt"
        stubber.assert_no_pending_responses()

    def test_forbidden_head_is_fatal(
        self, uploader, stubber: Stubber, make_matched, make_config
    ):
        hello = make_matched("hello.txt", b"hi")
        stubber.add_response("put_object", {"ETag": '"etag"'})
        stubber.add_client_error("head_object", service_error_code="403", http_status_code=403)

        with pytest.raises(PublishError, match="hello.txt"):
            uploader.publish({hello.path: hello}, make_config())


class TestManagedTransfer:
    """Files at or above the multipart threshold go through upload_fileobj."""

    @pytest.fixture
    def small_threshold(self, s3_client) -> FileUploader:
        return FileUploader(
            s3_client,
            min_delay=0.0,
            max_delay=0.0,
            multipart_threshold=8,
            sleep=lambda _: None,
        )

    def test_large_file_uses_managed_transfer(
        self, small_threshold, s3_client, stubber: Stubber, monkeypatch, make_matched, make_config
    ):
        calls: list[dict] = []

        def fake_upload_fileobj(fileobj, bucket, key, ExtraArgs=None, Config=None):
            calls.append(
                {
                    "body": fileobj.read(),
                    "bucket": bucket,
                    "key": key,
                    "extra": ExtraArgs,
                    "threshold": Config.multipart_threshold,
                }
            )

        monkeypatch.setattr(s3_client, "upload_fileobj", fake_upload_fileobj)
        large = make_matched("bundle.js", b"x" * 32)
        small = make_matched("tiny.txt", b"hi")
        config = make_config(prefix="p", tags={"hello": "world"})
        stubber.add_response(
            "head_object", {"ContentLength": 32}, {"Bucket": BUCKET, "Key": "p/bundle.js"}
        )
        stubber.add_response(
            "put_object",
            {"ETag": '"etag"'},
            {
                "Bucket": BUCKET,
                "Key": "p/tiny.txt",
                "Body": b"hi",
                "ContentType": "text/plain; charset=utf-8",
                "Tagging": "hello=world",
            },
        )
        stubber.add_response(
            "head_object", {"ContentLength": 2}, {"Bucket": BUCKET, "Key": "p/tiny.txt"}
        )

        records = small_threshold.publish({large.path: large, small.path: small}, config)

        stubber.assert_no_pending_responses()
        assert calls == [
            {
                "body": b"x" * 32,
                "bucket": BUCKET,
                "key": "p/bundle.js",
                "extra": {"ContentType": "application/javascript", "Tagging": "hello=world"},
                "threshold": 8,
            }
        ]
        assert [r.key for r in records] == ["p/bundle.js", "p/tiny.txt"]
        assert records[0].etag == ""

    def test_managed_transfer_failure_is_publish_error(
        self, small_threshold, s3_client, stubber: Stubber, monkeypatch, make_matched, make_config
    ):
        def failing_upload_fileobj(fileobj, bucket, key, ExtraArgs=None, Config=None):
            raise S3UploadFailedError("Failed to upload: EntityTooLarge")

        monkeypatch.setattr(s3_client, "upload_fileobj", failing_upload_fileobj)
        large = make_matched("video.mp4", b"x" * 64)

        with pytest.raises(PublishError, match="video.mp4"):
            small_threshold.publish({large.path: large}, make_config())
        stubber.assert_no_pending_responses()

    def test_threshold_from_settings(self, s3_client):
        uploader = FileUploader.from_settings(
            S3ExtraSettings(multipart_threshold_bytes=1024), client=s3_client
        )
        assert uploader._transfer_config.multipart_threshold == 1024


class TestWaitUntilExists:
    def _not_found(self, stubber: Stubber, count: int) -> None:
        for _ in range(count):
            stubber.add_client_error(
                "head_object", service_error_code="404", http_status_code=404
            )

    def test_exponential_backoff_capped(self, s3_client, stubber: Stubber):
        clock = FakeClock()
        uploader = FileUploader(
            s3_client, wait_timeout=100.0, min_delay=1.0, max_delay=3.0,
            clock=clock, sleep=clock.sleep,
        )
        self._not_found(stubber, 4)
        stubber.add_response("head_object", {})

        attempts = uploader.wait_until_exists(BUCKET, "k")
        assert attempts == 5
        assert clock.sleeps == [1.0, 2.0, 3.0, 3.0]

    def test_gives_up_at_ceiling(self, s3_client, stubber: Stubber):
        clock = FakeClock()
        uploader = FileUploader(
            s3_client, wait_timeout=10.0, min_delay=4.0, max_delay=8.0,
            clock=clock, sleep=clock.sleep,
        )
        self._not_found(stubber, 3)

        with pytest.raises(PublishError, match="not readable after 10s"):
            uploader.wait_until_exists(BUCKET, "k", path="p.txt")
        assert clock.sleeps == [4.0, 6.0]
        stubber.assert_no_pending_responses()

    def test_from_settings(self, s3_client):
        uploader = FileUploader.from_settings(
            S3ExtraSettings(wait_timeout_seconds=42), client=s3_client
        )
        assert uploader._wait_timeout == 42
