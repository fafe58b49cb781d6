"""enginecache: verified, content-addressed download cache for engine bundles.

Fetches a named artifact through an injected transport callback, checks its
digest, publishes it atomically into a cache shared by many processes, and
extracts archives without letting entries escape the target directory.
"""

__version__ = "0.1.0"

from enginecache.core.errors import (
    DirectoryCreationFailure,
    EngineCacheError,
    GenericIOFailure,
    HashMismatch,
    InvalidFileMode,
    PathTraversalViolation,
    TransferFailure,
    UnsupportedHashAlgorithmError,
)
from enginecache.core.extractor import ArchiveExtractor
from enginecache.core.file_cache import FileCache
from enginecache.core.resolver import CachedArtifactResolver
from enginecache.models.artifacts import (
    ArchiveFormat,
    CachedArtifact,
    CacheKey,
    HashAlgorithm,
    PublishOutcome,
)

__all__ = [
    "ArchiveExtractor",
    "ArchiveFormat",
    "CacheKey",
    "CachedArtifact",
    "CachedArtifactResolver",
    "DirectoryCreationFailure",
    "EngineCacheError",
    "FileCache",
    "GenericIOFailure",
    "HashAlgorithm",
    "HashMismatch",
    "InvalidFileMode",
    "PathTraversalViolation",
    "PublishOutcome",
    "TransferFailure",
    "UnsupportedHashAlgorithmError",
    "__version__",
]
