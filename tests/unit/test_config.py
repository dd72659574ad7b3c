"""Tests for settings — env-driven configuration."""

from __future__ import annotations

from pathlib import Path

from s3extra.config import S3ExtraSettings


class TestS3ExtraSettings:
    def test_defaults(self):
        config = S3ExtraSettings()
        assert config.environment == "development"
        assert config.log_level == "INFO"
        assert config.wait_timeout_seconds == 300.0
        assert config.read_workers is None

    def test_default_state_path(self):
        assert S3ExtraSettings().state_path == Path(".s3extra/state.json")

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("S3EXTRA_WAIT_TIMEOUT_SECONDS", "60")
        monkeypatch.setenv("S3EXTRA_ENDPOINT_URL", "http://localhost:9000")
        config = S3ExtraSettings()
        assert config.wait_timeout_seconds == 60.0
        assert config.endpoint_url == "http://localhost:9000"
