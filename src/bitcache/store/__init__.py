"""
Store backed by a remote git repository.

Every operation clones the remote into a fresh temporary directory,
works on that copy, and deletes it when done. Publishing never forces
the remote: when another writer advanced the branch first, the push is
rejected and `publish` raises StoreConflictError, so the caller can
start over from a fresh clone.
"""

from .git import GitRemote, GitStoreSession
from .session import (
    ArtifactMissingError,
    RemoteError,
    StoreConflictError,
    StoreRemote,
    StoreSession,
    store_relative_path,
)

__all__ = [
    "ArtifactMissingError",
    "GitRemote",
    "GitStoreSession",
    "RemoteError",
    "StoreConflictError",
    "StoreRemote",
    "StoreSession",
    "store_relative_path",
]
