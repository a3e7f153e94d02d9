"""
Metadata index linking source digests to published binaries.

Document format:

{
  "entries": {
    "9e107d9d372bb6826bd81d3542a419d6": {
      "binary_path": "builds/x/a.bit",
      "md5": "9e107d9d372bb6826bd81d3542a419d6",
      "source_file": "a.vhd",
      "timestamp": "2025-01-01T00:00:00+00:00"
    }
  }
}

The document lives at the root of the store:

    $store/bitcache_metadata.json
"""

from .index import (
    ArtifactRecord,
    DigestNotFoundError,
    MetadataIndex,
    MetadataParseError,
    load_index,
    save_index,
)

__all__ = [
    "ArtifactRecord",
    "DigestNotFoundError",
    "MetadataIndex",
    "MetadataParseError",
    "load_index",
    "save_index",
]
