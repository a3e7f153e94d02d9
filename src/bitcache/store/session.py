"""Protocols hiding the version-control mechanics of the store."""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Protocol

from ..metadata import MetadataIndex


class RemoteError(RuntimeError):
    """Error emitted when we cannot clone from or push to the remote."""


class StoreConflictError(RemoteError):
    """Error emitted when the remote advanced between acquire and publish."""


class ArtifactMissingError(RuntimeError):
    """Error emitted when the index references a binary absent from the store."""


class StoreSession(Protocol):
    """
    One ephemeral working copy of the store, owned by a single operation.

    Sessions are context managers: leaving the context calls `release`.

    Methods:
        read_metadata: load the index (an absent document is an empty index).
        write_metadata: write the index back into the working copy.
        write_artifact: materialize a binary at a store-relative path.
        artifact_file: resolve a store-relative path to a local file.
        publish: commit and push; raises StoreConflictError when the
            remote moved and RemoteError on other failures.
        release: delete the working copy; idempotent.
    """

    def read_metadata(self) -> MetadataIndex: ...

    def write_metadata(self, index: MetadataIndex) -> None: ...

    def write_artifact(self, relative_path: str, data: bytes) -> None: ...

    def artifact_file(self, relative_path: str) -> Path: ...

    def publish(self, message: str) -> None: ...

    def release(self) -> None: ...

    def __enter__(self) -> StoreSession: ...

    def __exit__(self, exc_type, exc_value, traceback) -> bool | None: ...


class StoreRemote(Protocol):
    """Represent a remote store from which we can acquire sessions."""

    url: str

    def acquire(self) -> StoreSession: ...


def store_relative_path(relative_path: str | PurePosixPath) -> PurePosixPath:
    """
    Validate and normalize a path relative to the store root.

    Raises:
        ValueError: if the path is empty, absolute, or escapes the root.
    """
    path = PurePosixPath(relative_path)
    if path.is_absolute():
        raise ValueError(f"store path must be relative: {relative_path}")
    parts = [part for part in path.parts if part not in ("", ".")]
    if not parts:
        raise ValueError(f"store path must not be empty: {relative_path!r}")
    if ".." in parts:
        raise ValueError(f"store path must not contain '..': {relative_path}")
    if parts[0] == ".git":
        raise ValueError(f"store path must not point inside .git: {relative_path}")
    return PurePosixPath(*parts)
