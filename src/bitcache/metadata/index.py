"""Module containing the MetadataIndex implementation."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime
from pathlib import Path

from dacite import from_dict
from dacite.exceptions import DaciteError

log = logging.getLogger("metadata/index")


class MetadataParseError(ValueError):
    """Error emitted when the metadata document is present but corrupt."""


class DigestNotFoundError(LookupError):
    """Error emitted when the index does not contain a digest."""


@dataclass(frozen=True, kw_only=True)
class ArtifactRecord:
    """
    Entry in the index for a single published artifact.

    Attributes:
        md5: digest of the source file, which is also the index key.
        binary_path: POSIX path of the binary relative to the store root.
        source_file: original source filename, for display only.
        timestamp: ISO-8601 UTC time of the last write to this record.
    """

    md5: str
    binary_path: str
    source_file: str
    timestamp: str


@dataclass(kw_only=True)
class MetadataIndex:
    """Mapping from source digest to the corresponding ArtifactRecord."""

    entries: dict[str, ArtifactRecord] = field(default_factory=dict)

    @classmethod
    def load(cls, data: bytes) -> MetadataIndex:
        """
        Deserialize the index from the bytes of the metadata document.

        Empty input yields an empty index.

        Raises:
            MetadataParseError: if the document is present but malformed.
        """
        if not data.strip():
            return cls()

        try:
            raw = json.loads(data)
        except ValueError as exc:
            raise MetadataParseError(f"invalid metadata JSON: {exc}") from exc

        if not isinstance(raw, dict) or "entries" not in raw:
            raise MetadataParseError("invalid metadata document: missing `entries` object")

        try:
            index = from_dict(cls, raw)
        except DaciteError as exc:
            raise MetadataParseError(f"invalid metadata document: {exc}") from exc

        for key, record in index.entries.items():
            if key != record.md5:
                raise MetadataParseError(
                    f"invalid metadata document: entry {key} has md5 {record.md5}"
                )
        return index

    def serialize(self) -> bytes:
        """Serialize the index to canonical JSON bytes."""
        content = json.dumps(asdict(self), indent=2, sort_keys=True)
        return (content + "\n").encode("utf-8")

    def upsert(self, record: ArtifactRecord) -> ArtifactRecord:
        """
        Insert or replace the record keyed by its digest and return the
        record actually stored.

        The stored timestamp never goes backwards: when the new record is
        older than the existing one (e.g., clock skew between publishers)
        we keep the existing timestamp.
        """
        previous = self.entries.get(record.md5)
        if previous is not None and _is_older(record.timestamp, previous.timestamp):
            record = replace(record, timestamp=previous.timestamp)
        self.entries[record.md5] = record
        return record

    def lookup(self, digest: str) -> ArtifactRecord:
        """
        Return the record for the given digest.

        Raises:
            DigestNotFoundError: if there is no such record.
        """
        try:
            return self.entries[digest]
        except KeyError as exc:
            raise DigestNotFoundError(f"no binary found for MD5: {digest}") from exc

    def records(self) -> list[ArtifactRecord]:
        """Return all the records sorted by digest."""
        return [self.entries[key] for key in sorted(self.entries)]


def _parse_timestamp(value: str) -> datetime | None:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _is_older(candidate: str, existing: str) -> bool:
    new_time = _parse_timestamp(candidate)
    old_time = _parse_timestamp(existing)
    if new_time is None or old_time is None:
        return False
    # Naive timestamps are not comparable with aware ones
    if (new_time.tzinfo is None) != (old_time.tzinfo is None):
        return False
    return new_time < old_time


def load_index(path: Path) -> MetadataIndex:
    """Load the index from the given file, or return an empty index if not found."""
    if not path.exists():
        log.debug("no metadata at %s: using an empty index", path)
        return MetadataIndex()
    return MetadataIndex.load(path.read_bytes())


def save_index(index: MetadataIndex, path: Path) -> None:
    """Write the canonical serialization of the index to the given file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(index.serialize())
