"""bitcache library.

This library caches binary build artifacts (e.g., FPGA bitstreams) in a
git repository, keyed by the MD5 digest of the source file that
produced them. Concurrent publishers coordinate optimistically: each one
clones the store, updates it, and pushes without force, starting over
from a fresh clone when another publisher got there first.
"""

from .config import RetryPolicy
from .get import GetResult, GetWorkflow, list_records
from .hasher import compute_md5, compute_md5_bytes
from .metadata import (
    ArtifactRecord,
    DigestNotFoundError,
    MetadataIndex,
    MetadataParseError,
)
from .publish import (
    PublishConflictExhaustedError,
    PublishResult,
    PublishWorkflow,
    SourceUnreadableError,
)
from .store import (
    ArtifactMissingError,
    GitRemote,
    RemoteError,
    StoreConflictError,
)

__version__ = "0.1.0"

__all__ = [
    "ArtifactMissingError",
    "ArtifactRecord",
    "DigestNotFoundError",
    "GetResult",
    "GetWorkflow",
    "GitRemote",
    "MetadataIndex",
    "MetadataParseError",
    "PublishConflictExhaustedError",
    "PublishResult",
    "PublishWorkflow",
    "RemoteError",
    "RetryPolicy",
    "SourceUnreadableError",
    "StoreConflictError",
    "compute_md5",
    "compute_md5_bytes",
    "list_records",
    "__version__",
]
