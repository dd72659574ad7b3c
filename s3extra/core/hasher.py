"""Hashing helpers for file digests, fileset digests and resource identity.

One primitive (SHA-256) serves all three purposes. Identity tokens are
computed over a canonical JSON framing with an explicit ``kind`` field, so
they never collide with a digest of raw file bytes.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable
from typing import Any

from s3extra.models.fileset import MatchedFile

IDENTITY_KIND = "immutable_assets"


def canonical_json_bytes(obj: Any) -> bytes:
    """Produce canonical JSON bytes — deterministic, sorted, compact.

    - sorted keys
    - no whitespace separators (",", ":")
    - ensure_ascii=True
    - UTF-8 encoding
    """
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def aggregate_digest(files: Iterable[MatchedFile]) -> str:
    """Order-independent SHA-256 over the contents of a fileset.

    Files are stably sorted by their own digest (not their path), then their
    raw bytes are fed into one accumulator in that order.
    """
    accumulator = hashlib.sha256()
    for matched in sorted(files, key=lambda f: f.digest):
        accumulator.update(matched.data)
    return accumulator.hexdigest()


def resource_identity(bucket: str, glob: str, prefix: str = "") -> str:
    """Stable identity token derived only from the identity-defining fields.

    File contents, tags and per-file options never influence it, so content
    changes update in place while location/pattern/prefix changes replace.
    """
    payload = {
        "kind": IDENTITY_KIND,
        "bucket": bucket,
        "glob": glob,
        "prefix": prefix,
    }
    return sha256_hex(canonical_json_bytes(payload))


def file_hashes(files: dict[str, MatchedFile]) -> dict[str, str]:
    """Map each relative path to its hex digest, for the persisted state."""
    return {path: matched.digest for path, matched in sorted(files.items())}
