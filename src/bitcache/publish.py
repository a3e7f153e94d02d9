"""Module implementing the publish workflow."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath

from .config import METADATA_FILENAME, RetryPolicy
from .hasher import compute_md5_bytes
from .metadata import ArtifactRecord
from .store import StoreConflictError, StoreRemote, store_relative_path

log = logging.getLogger("publish")


class SourceUnreadableError(RuntimeError):
    """Error emitted when we cannot read the source file to hash."""


class PublishConflictExhaustedError(RuntimeError):
    """Error emitted when the remote kept advancing for every publish attempt."""


@dataclass(frozen=True, kw_only=True)
class PublishResult:
    """
    Outcome of a successful publish.

    Attributes:
        record: the record stored in the index.
        attempts: number of publish attempts, including the successful one.
    """

    record: ArtifactRecord
    attempts: int


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PublishWorkflow:
    """Component publishing a binary keyed by the digest of its source file."""

    def __init__(
        self,
        remote: StoreRemote,
        *,
        retry: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """
        Initialize the workflow.

        Parameters:
            remote: the store to publish to.
            retry: policy for retrying when the remote advanced while we
                were publishing. If None, use the default RetryPolicy.
            sleep: function used to wait between attempts.
            clock: function returning the current UTC time.
        """
        self.remote = remote
        self.retry = retry or RetryPolicy()
        self.sleep = sleep
        self.clock = clock

    def run(
        self,
        *,
        source: str | Path,
        binary: str | Path,
        target_dir: str | PurePosixPath,
    ) -> PublishResult:
        """
        Publish the binary under `target_dir` keyed by the digest of `source`.

        The source digest and the binary bytes are read once and reused by
        every attempt, so repeating the write and the index update after a
        conflict cannot produce an inconsistent entry.

        Raises:
            SourceUnreadableError: if the source file cannot be read.
            OSError: if the binary file cannot be read.
            ValueError: if `target_dir` is not a valid store-relative path.
            RemoteError: if cloning or pushing fails for reasons other
                than a conflict.
            MetadataParseError: if the store contains a corrupt index.
            PublishConflictExhaustedError: if every attempt conflicted.
        """
        source = Path(source)
        binary = Path(binary)

        try:
            source_bytes = source.read_bytes()
        except OSError as exc:
            raise SourceUnreadableError(f"cannot read source file {source}: {exc}") from exc
        digest = compute_md5_bytes(source_bytes)
        log.info("MD5 of %s: %s", source, digest)

        data = binary.read_bytes()
        binary_path = store_relative_path(
            PurePosixPath(Path(target_dir).as_posix()) / binary.name
        ).as_posix()
        if binary_path == METADATA_FILENAME:
            raise ValueError(f"binary path collides with the metadata document: {binary_path}")

        for attempt in range(1, self.retry.max_attempts + 1):
            record = ArtifactRecord(
                md5=digest,
                binary_path=binary_path,
                source_file=source.name,
                timestamp=self.clock().isoformat(),
            )
            try:
                stored = self._attempt(record, data)
            except StoreConflictError as exc:
                log.debug(
                    "publishing %s... attempt %d/%d conflicted: %s",
                    digest,
                    attempt,
                    self.retry.max_attempts,
                    exc,
                )
                if attempt < self.retry.max_attempts:
                    self.sleep(self.retry.delay(attempt))
                continue
            log.info("publishing %s... ok", digest)
            return PublishResult(record=stored, attempts=attempt)

        raise PublishConflictExhaustedError(
            f"cannot publish MD5 {digest} to {self.remote.url}: remote changed "
            f"during each of {self.retry.max_attempts} attempt(s)"
        )

    def _attempt(self, record: ArtifactRecord, data: bytes) -> ArtifactRecord:
        log.info("publishing %s to %s... start", record.md5, record.binary_path)
        with self.remote.acquire() as session:
            index = session.read_metadata()
            session.write_artifact(record.binary_path, data)
            stored = index.upsert(record)
            session.write_metadata(index)
            session.publish(f"Add bitstream for source MD5: {record.md5}")
        return stored
