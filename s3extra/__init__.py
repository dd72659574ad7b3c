"""s3extra: immutable, content-addressed asset filesets published to S3.

A fileset is the set of local files matched by one glob pattern. It is
uploaded once, never mutated in place, and replaced whenever its identity
(bucket, glob, prefix) changes:
  - Concurrent discovery and SHA-256 hashing of matched files
  - Sequential upload with content type, cache control and tagging
  - Post-write existence confirmation with bounded backoff
  - Explicit lifecycle reconciler (create / read / update / delete / import)
"""

__version__ = "0.2.0"
__description__ = "Immutable asset filesets for S3-compatible object stores"

from s3extra.core.reconciler import LifecycleReconciler
from s3extra.models.lifecycle import LifecycleOperation, ResourceRequest, ResourceResponse

__all__ = [
    "LifecycleReconciler",
    "LifecycleOperation",
    "ResourceRequest",
    "ResourceResponse",
    "__version__",
]
