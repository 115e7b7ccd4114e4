"""
Hash verification for downloaded node archives.

Verification is opt-in: it only runs when an expected SHA-256 hash has been
configured for the download.
"""

import hashlib
import logging
from pathlib import Path
from typing import Optional

from nodekit.core.exceptions import IntegrityError

logger = logging.getLogger(__name__)


def compute_file_hash(file_path: Path) -> str:
    """
    Compute the SHA-256 hash of a file.

    Args:
        file_path: Path to file

    Returns:
        Lower-case hex string of hash

    Raises:
        FileNotFoundError: If file doesn't exist

    Example:
        >>> hash_value = compute_file_hash(Path('node-v18.17.1-linux-x64.tar.gz'))
    """
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    hasher = hashlib.sha256()

    with open(file_path, "rb") as f:
        while chunk := f.read(8192):
            hasher.update(chunk)

    return hasher.hexdigest()


def is_verification_enabled(expected_hash: Optional[str]) -> bool:
    """Return True if an expected hash was configured."""
    return bool(expected_hash and expected_hash.strip())


def verify_download_hash(file_path: Path, expected_hash: Optional[str]) -> bool:
    """
    Check a downloaded file against its expected SHA-256 hash.

    The comparison is case-insensitive. Nothing is read when no hash is
    configured.

    Args:
        file_path: Downloaded archive or executable
        expected_hash: Expected hex digest, or None/empty to skip

    Returns:
        True if the file was verified, False if verification was skipped

    Raises:
        IntegrityError: If the computed hash differs from the expected one
        FileNotFoundError: If file doesn't exist
    """
    if not is_verification_enabled(expected_hash):
        return False

    expected = expected_hash.strip()
    actual = compute_file_hash(Path(file_path))

    if actual.lower() != expected.lower():
        logger.warning(
            f"SHA-256 hash does not match expected hash. "
            f"Expected '{expected}', got '{actual}'"
        )
        raise IntegrityError(Path(file_path), expected, actual)

    logger.debug(f"SHA-256 hash verified for {file_path}")
    return True
