"""Content hashing for source files."""

from __future__ import annotations

import hashlib
from pathlib import Path


def compute_md5(path: str | Path) -> str:
    """
    Compute the MD5 hex digest of a file.

    The digest only depends on the file bytes, not on its name or on
    when we compute it, which makes it suitable as the index key.

    Raises:
        OSError: if the file cannot be read.
    """
    md5 = hashlib.md5(usedforsecurity=False)
    with open(path, "rb") as fp:
        while chunk := fp.read(8192):
            md5.update(chunk)
    return md5.hexdigest()


def compute_md5_bytes(data: bytes) -> str:
    """Compute the MD5 hex digest of in-memory bytes."""
    return hashlib.md5(data, usedforsecurity=False).hexdigest()
