"""Digest helpers for content identity.

Files are hashed in fixed-size chunks so engine bundles of any size can be
verified without loading them into memory.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

from enginecache.models.artifacts import HashAlgorithm

CHUNK_SIZE = 64 * 1024


def bytes_digest(data: bytes, algorithm: str | HashAlgorithm) -> str:
    """Return the lowercase hex digest of raw bytes."""
    return hashlib.new(HashAlgorithm.parse(algorithm).value, data).hexdigest()


def file_digest(path: Path, algorithm: str | HashAlgorithm) -> str:
    """Return the lowercase hex digest of a file's bytes."""
    digest = hashlib.new(HashAlgorithm.parse(algorithm).value)
    with Path(path).open("rb") as fh:
        for chunk in iter(lambda: fh.read(CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()

