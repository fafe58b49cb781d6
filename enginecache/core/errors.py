"""Error hierarchy for the download-verify-publish-extract pipeline.

Every failure the core raises derives from ``EngineCacheError`` so callers
can catch the whole family at one seam.  None of these are retried by the
core; retry policy belongs to the caller.
"""

from __future__ import annotations

from pathlib import Path


class EngineCacheError(RuntimeError):
    """Base class for all enginecache failures."""


class TransferFailure(EngineCacheError):
    """Raised when the fetch callback fails to produce the artifact bytes.

    The original exception is always chained as ``__cause__``.
    """

    def __init__(self, filename: str, destination: Path) -> None:
        self.filename = filename
        self.destination = destination
        super().__init__(f"Fail to download {filename} to {destination}")


class HashMismatch(EngineCacheError):
    """Raised when downloaded bytes do not match the expected digest.

    Signals corruption or tampering upstream.  The mismatched temp file is
    never promoted to its final cache path.
    """

    def __init__(
        self,
        *,
        expected: str,
        actual: str,
        algorithm: str,
        temp_path: Path,
    ) -> None:
        self.expected = expected
        self.actual = actual
        self.algorithm = algorithm
        self.temp_path = temp_path
        super().__init__(
            f"INVALID HASH: File {temp_path} was expected to have {algorithm} "
            f"hash {expected} but was downloaded with hash {actual}"
        )


class PathTraversalViolation(EngineCacheError):
    """Raised when an archive entry would be written outside the target tree."""

    def __init__(self, entry_name: str, target_dir: Path) -> None:
        self.entry_name = entry_name
        self.target_dir = target_dir
        super().__init__(
            "Extracting an entry outside the target directory is not allowed: "
            f"{entry_name}"
        )


class GenericIOFailure(EngineCacheError):
    """Wraps a filesystem error that aborts the current call."""


class DirectoryCreationFailure(GenericIOFailure):
    """Raised when a cache or extraction directory cannot be created."""

    def __init__(self, path: Path, reason: str = "") -> None:
        self.path = path
        message = f"Error creating directory: {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class InvalidFileMode(EngineCacheError, ValueError):
    """Raised when a TAR entry carries a mode outside ``0..0o777``."""

    def __init__(self, mode: int) -> None:
        self.mode = mode
        super().__init__(
            f"Invalid file mode '{mode:o}'. File mode must be between 0 and "
            f"511 (777 in octal)"
        )


class UnsupportedHashAlgorithmError(EngineCacheError, ValueError):
    """Raised for a hash algorithm name the cache does not know."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unsupported hash algorithm: {name!r}")
