"""Module implementing the get and list workflows."""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from tempfile import TemporaryDirectory

from .metadata import ArtifactRecord
from .store import StoreRemote

log = logging.getLogger("get")


@dataclass(frozen=True, kw_only=True)
class GetResult:
    """
    Outcome of a successful get.

    Attributes:
        record: the record found in the index.
        path: the local file where we saved the binary.
    """

    record: ArtifactRecord
    path: Path


class GetWorkflow:
    """Component retrieving a binary given the digest of its source file."""

    def __init__(self, remote: StoreRemote):
        self.remote = remote

    def run(self, digest: str, *, dest_dir: str | Path | None = None) -> GetResult:
        """
        Copy the binary published for `digest` into `dest_dir`.

        The binary keeps its own filename. If `dest_dir` is None we use
        the current working directory.

        Raises:
            RemoteError: if cloning fails.
            MetadataParseError: if the store contains a corrupt index.
            DigestNotFoundError: if no binary was published for `digest`.
            ArtifactMissingError: if the index references a missing file.
            OSError: if we cannot write into `dest_dir`.
        """
        dest_dir = Path.cwd() if dest_dir is None else Path(dest_dir)
        log.info("retrieving %s... start", digest)
        with self.remote.acquire() as session:
            record = session.read_metadata().lookup(digest)
            source_path = session.artifact_file(record.binary_path)
            dest_path = dest_dir / PurePosixPath(record.binary_path).name
            _copy_atomic(source_path, dest_path)
        log.info("retrieving %s... ok", digest)
        return GetResult(record=record, path=dest_path)


def list_records(remote: StoreRemote) -> list[ArtifactRecord]:
    """Return the records published in the remote sorted by digest."""
    with remote.acquire() as session:
        return session.read_metadata().records()


def _copy_atomic(source: Path, dest: Path) -> None:
    # Stage next to the destination so os.replace() stays on one filesystem
    log.info("copying %s to %s", source.name, dest)
    with TemporaryDirectory(dir=dest.parent) as tmp_dir:
        tmp_file = Path(tmp_dir) / dest.name
        shutil.copyfile(source, tmp_file)
        os.replace(tmp_file, dest)
