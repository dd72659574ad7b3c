"""Runtime configuration — env-driven via pydantic-settings.

Reads from a .env file and S3EXTRA_* environment variables. Store
credentials themselves are resolved by boto3's own provider chain.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class S3ExtraSettings(BaseSettings):
    """Engine and local host settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export S3EXTRA_REGION=eu-west-1
        export S3EXTRA_LOG_LEVEL=DEBUG
        export S3EXTRA_WAIT_TIMEOUT_SECONDS=60

    Or via .env file::

        S3EXTRA_ENDPOINT_URL=http://localhost:9000
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="S3EXTRA_",
        env_file_encoding="utf-8",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"

    # Object store access
    region: str | None = None
    profile: str | None = None
    endpoint_url: str | None = None
    max_attempts: int = 3

    # Existence-confirmation poll after each write
    wait_timeout_seconds: float = 300.0
    wait_min_delay_seconds: float = 5.0
    wait_max_delay_seconds: float = 120.0

    # Objects at or above the threshold are written as multipart uploads
    multipart_threshold_bytes: int = 8 * 1024 * 1024
    multipart_chunksize_bytes: int = 8 * 1024 * 1024

    # Discovery; None lets the executor pick its default worker count
    read_workers: int | None = None

    # Local host state file
    state_path: Path = Path(".s3extra/state.json")


# Shared instance: `from s3extra.config import settings`
settings = S3ExtraSettings()
