"""
Cross-platform file system utilities for NodeKit.

This module provides the file operations the installer is built on:
- Archive extraction (zip, tar.gz, tar.xz, tar.bz2) with failures tagged
  by ExtractionFailure, so callers can tell a truncated download apart
  from other broken archives
- Deterministic search for a file inside an extracted tree
- Safe file operations (safe deletion, tree copies, executable bits)
"""

import logging
import lzma
import os
import shutil
import stat
import sys
import tarfile
import zipfile
import zlib
from pathlib import Path
from typing import Optional, Union

from nodekit.core.exceptions import (
    ArchiveExtractionError,
    ExtractionFailure,
    FilesystemError,
)

logger = logging.getLogger(__name__)

# Platform detection
IS_WINDOWS = os.name == "nt"


# ============================================================================
# Path Utilities
# ============================================================================


def is_relative_to(path: Path, parent: Path) -> bool:
    """
    Check if path is relative to parent.

    Example:
        >>> is_relative_to(Path('/a/b/c'), Path('/a'))
        True
    """
    try:
        path.relative_to(parent)
        return True
    except ValueError:
        return False


def find_file(root: Union[str, Path], name: str) -> Optional[Path]:
    """
    Find the first regular file called name below root.

    The walk is depth-first with entries visited in lexical order, and the
    files of a directory are checked before its subdirectories. The result
    therefore does not depend on the order the filesystem lists entries in.

    Args:
        root: Directory to search
        name: Exact file name to look for

    Returns:
        Path of the first match, or None

    Example:
        >>> find_file('/tmp/extract', 'node')
        PosixPath('/tmp/extract/node-v18.17.1-linux-x64/bin/node')
    """
    root = Path(root)
    if not root.is_dir():
        return None

    try:
        entries = sorted(root.iterdir(), key=lambda p: p.name)
    except OSError as e:
        logger.warning(f"Could not list {root}: {e}")
        return None

    directories = []
    for entry in entries:
        if entry.is_symlink() and entry.is_dir():
            continue  # don't follow directory links out of the tree
        if entry.is_dir():
            directories.append(entry)
        elif entry.name == name and entry.is_file():
            return entry

    for directory in directories:
        match = find_file(directory, name)
        if match is not None:
            return match

    return None


# ============================================================================
# Archive Extraction
# ============================================================================


def _validate_archive_path(path: str, destination: Path, archive_path: Path) -> None:
    """
    Validate that an archive member path is safe to extract.

    Prevents directory traversal attacks (e.g., paths containing '../').

    Raises:
        ArchiveExtractionError: If path attempts directory traversal
    """
    member_path = (destination / path).resolve()

    if not is_relative_to(member_path, destination.resolve()):
        raise ArchiveExtractionError(
            f"Archive member '{path}' attempts directory traversal. "
            "This is a security risk and extraction has been blocked.",
            archive_path,
            ExtractionFailure.INSECURE,
        )


def extract_archive(archive_path: Union[str, Path], destination: Union[str, Path]) -> None:
    """
    Extract an archive to a destination directory.

    Supported formats:
    - .zip
    - .tar.gz, .tgz
    - .tar.xz
    - .tar.bz2

    Args:
        archive_path: Path to the archive file
        destination: Directory to extract to

    Raises:
        ArchiveExtractionError: If extraction fails. The kind is
            SOURCE_INCOMPLETE when the archive ends before it should.

    Example:
        >>> extract_archive('node-v18.17.1-linux-x64.tar.gz', '/tmp/node')
    """
    archive_path = Path(archive_path)
    destination = Path(destination)

    if not archive_path.exists():
        raise ArchiveExtractionError(
            f"Archive not found: {archive_path}", archive_path, ExtractionFailure.IO
        )

    destination.mkdir(parents=True, exist_ok=True)

    archive_name = archive_path.name.lower()

    if archive_name.endswith(".zip"):
        extractor = _extract_zip
        mode = None
    elif archive_name.endswith((".tar.gz", ".tgz")):
        extractor, mode = _extract_tar, "r:gz"
    elif archive_name.endswith(".tar.xz"):
        extractor, mode = _extract_tar, "r:xz"
    elif archive_name.endswith((".tar.bz2", ".tbz2")):
        extractor, mode = _extract_tar, "r:bz2"
    else:
        raise ArchiveExtractionError(
            f"Unsupported archive format: {archive_path.name}. "
            "Supported: .zip, .tar.gz, .tar.xz, .tar.bz2",
            archive_path,
            ExtractionFailure.UNSUPPORTED_FORMAT,
        )

    try:
        if mode is None:
            extractor(archive_path, destination)
        else:
            extractor(archive_path, destination, mode)
    except ArchiveExtractionError:
        raise
    except EOFError as e:
        raise ArchiveExtractionError(
            f"Archive {archive_path} is incomplete: {e}",
            archive_path,
            ExtractionFailure.SOURCE_INCOMPLETE,
        ) from e
    except tarfile.ReadError as e:
        kind = (
            ExtractionFailure.SOURCE_INCOMPLETE
            if "unexpected end of data" in str(e)
            else ExtractionFailure.CORRUPT
        )
        raise ArchiveExtractionError(
            f"Failed to extract {archive_path}: {e}", archive_path, kind
        ) from e
    except (tarfile.TarError, zipfile.BadZipFile, zlib.error, lzma.LZMAError) as e:
        raise ArchiveExtractionError(
            f"Failed to extract {archive_path}: {e}",
            archive_path,
            ExtractionFailure.CORRUPT,
        ) from e
    except OSError as e:
        raise ArchiveExtractionError(
            f"Failed to extract {archive_path}: {e}",
            archive_path,
            ExtractionFailure.IO,
        ) from e


def _extract_zip(archive_path: Path, destination: Path) -> None:
    """Extract a ZIP archive, restoring Unix permission bits when present."""
    with zipfile.ZipFile(archive_path, "r") as zf:
        members = zf.infolist()

        # Validate all paths first
        for member in members:
            _validate_archive_path(member.filename, destination, archive_path)

        for member in members:
            extracted = zf.extract(member, destination)
            mode = (member.external_attr >> 16) & 0o777
            if mode and not IS_WINDOWS and not member.is_dir():
                os.chmod(extracted, mode)


def _extract_tar(archive_path: Path, destination: Path, mode: str) -> None:
    """Extract a tar archive with specified compression."""
    with tarfile.open(archive_path, mode) as tar:
        members = tar.getmembers()

        # Validate all paths first
        for member in members:
            _validate_archive_path(member.name, destination, archive_path)

        # Extract with filter for security (Python 3.12+)
        # For older Python, we've already validated paths above
        if sys.version_info >= (3, 12):
            tar.extractall(destination, filter="data")
        else:
            tar.extractall(destination)


class ArchiveExtractor:
    """Extracts downloaded archives into a directory."""

    def extract(self, archive_path: Union[str, Path], destination: Union[str, Path]) -> None:
        """
        Extract archive_path into destination.

        Raises:
            ArchiveExtractionError: If extraction fails
        """
        extract_archive(archive_path, destination)


# ============================================================================
# Safe File Operations
# ============================================================================


def safe_rmtree(
    path: Union[str, Path], require_prefix: Optional[Union[str, Path]] = None
) -> None:
    """
    Safely remove a directory tree with safeguards.

    Args:
        path: Directory to remove
        require_prefix: If specified, path must be under this directory

    Raises:
        ValueError: If path is not under require_prefix
        FilesystemError: If deletion fails

    Example:
        >>> safe_rmtree('/project/target/node/tmp', require_prefix='/project/target/node')
    """
    path = Path(path).resolve()

    # Safety check: require path to be under specified prefix
    if require_prefix is not None:
        require_prefix = Path(require_prefix).resolve()
        if not is_relative_to(path, require_prefix):
            raise ValueError(
                f"Refusing to delete '{path}': not under required prefix '{require_prefix}'"
            )

    if not path.exists():
        return  # Already gone, nothing to do

    if not path.is_dir():
        raise FilesystemError(f"Path is not a directory: {path}")

    try:
        # Handle read-only files on Windows
        if IS_WINDOWS:

            def handle_remove_readonly(func, path, exc):
                """Error handler for Windows read-only files."""
                if not os.access(path, os.W_OK):
                    os.chmod(path, stat.S_IWRITE)
                    func(path)
                else:
                    raise

            shutil.rmtree(path, onerror=handle_remove_readonly)
        else:
            shutil.rmtree(path)

    except Exception as e:
        raise FilesystemError(f"Failed to remove directory '{path}': {e}") from e


def remove_file(path: Union[str, Path]) -> None:
    """
    Delete a file if it exists.

    Raises:
        FilesystemError: If the file exists but could not be deleted
    """
    path = Path(path)
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        raise FilesystemError(f"Was not allowed to delete {path}: {e}") from e


def copy_tree(source: Union[str, Path], destination: Union[str, Path]) -> None:
    """
    Recursively copy a directory tree, merging into an existing destination.

    Symlinks inside the tree are copied as symlinks.

    Raises:
        FilesystemError: If source is missing or copying fails

    Example:
        >>> copy_tree('/tmp/node/lib/node_modules', '/project/target/node/node_modules')
    """
    source = Path(source)
    destination = Path(destination)

    if not source.is_dir():
        raise FilesystemError(f"Source is not a directory: {source}")

    try:
        shutil.copytree(source, destination, symlinks=True, dirs_exist_ok=True)
    except (OSError, shutil.Error) as e:
        raise FilesystemError(f"Failed to copy {source} to {destination}: {e}") from e


def make_executable(path: Union[str, Path], all_users: bool = True) -> None:
    """
    Add execute permission to a file.

    Args:
        path: File to mark executable
        all_users: Grant execute to group and others too, not only the owner

    Raises:
        FilesystemError: If the permission cannot be set
    """
    path = Path(path)
    bits = stat.S_IXUSR
    if all_users:
        bits |= stat.S_IXGRP | stat.S_IXOTH

    try:
        current = path.stat().st_mode
        os.chmod(path, current | bits)
    except OSError as e:
        raise FilesystemError(f"Was not allowed to make {path} executable: {e}") from e


# ============================================================================
# Public API
# ============================================================================

__all__ = [
    "is_relative_to",
    "find_file",
    "extract_archive",
    "ArchiveExtractor",
    "safe_rmtree",
    "remove_file",
    "copy_tree",
    "make_executable",
]
