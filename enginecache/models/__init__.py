"""enginecache data models — Pydantic v2, frozen."""

from enginecache.models.artifacts import (
    ArchiveEntry,
    ArchiveFormat,
    CachedArtifact,
    CacheKey,
    HashAlgorithm,
    PublishOutcome,
)

__all__ = [
    "ArchiveEntry",
    "ArchiveFormat",
    "CacheKey",
    "CachedArtifact",
    "HashAlgorithm",
    "PublishOutcome",
]
