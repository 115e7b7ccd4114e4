"""
Centralized exception hierarchy for NodeKit.

Low-level modules raise the specific errors below; the installer wraps
all of them into a single InstallationError that keeps the original cause.
"""

from enum import Enum
from pathlib import Path
from typing import Optional, Union


# ============================================================================
# Base Exceptions
# ============================================================================


class NodeKitError(Exception):
    """Base exception for all NodeKit errors."""

    pass


class ConfigError(NodeKitError):
    """Configuration parsing or validation error."""

    pass


# ============================================================================
# Installation Exceptions
# ============================================================================


class InstallationError(NodeKitError):
    """
    Raised when a node installation cannot be completed.

    Attributes:
        cause: The underlying error that made the installation fail, if any
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class ValidationError(InstallationError):
    """Install request is invalid (checked before any I/O)."""

    pass


# ============================================================================
# Component Exceptions
# ============================================================================


class DownloadError(NodeKitError):
    """Exception raised when a download fails."""

    pass


class IntegrityError(NodeKitError):
    """Downloaded file does not match the expected hash."""

    def __init__(self, file_path: Path, expected: str, actual: str):
        self.file_path = file_path
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"SHA-256 hash of {file_path} does not match expected hash. "
            f"Expected '{expected}', got '{actual}'"
        )


class FilesystemError(NodeKitError):
    """Base exception for filesystem operations."""

    pass


class ExtractionFailure(Enum):
    """Reason an archive could not be extracted."""

    SOURCE_INCOMPLETE = "source_incomplete"  # truncated download
    CORRUPT = "corrupt"
    UNSUPPORTED_FORMAT = "unsupported_format"
    INSECURE = "insecure"  # directory traversal
    IO = "io"


class ArchiveExtractionError(FilesystemError):
    """
    Failed to extract an archive.

    Attributes:
        archive_path: Archive that was being extracted
        kind: ExtractionFailure describing what went wrong
    """

    def __init__(
        self,
        message: str,
        archive_path: Optional[Union[str, Path]] = None,
        kind: ExtractionFailure = ExtractionFailure.CORRUPT,
    ):
        self.archive_path = Path(archive_path) if archive_path else None
        self.kind = kind
        super().__init__(message)

    @property
    def source_incomplete(self) -> bool:
        """True when the archive ended early (interrupted download)."""
        return self.kind is ExtractionFailure.SOURCE_INCOMPLETE


class BinaryNotFoundError(FilesystemError):
    """The node binary was not found in the extracted archive."""

    def __init__(self, expected_path: Path):
        self.expected_path = expected_path
        super().__init__(
            f"Could not find the downloaded Node.js binary in {expected_path}"
        )


class ProcessExecutionError(NodeKitError):
    """Running an external executable failed."""

    pass
