"""
Download cache for NodeKit.

Downloaded archives are kept in a shared cache directory and looked up by a
CacheDescriptor. The presence of the file at the resolved path is what marks
an archive as downloaded.

Directory Structure:
    Cache root (~/.nodekit/cache/ or %USERPROFILE%\\.nodekit\\cache\\):
        <name>/<version>/<name>-<version>-<classifier>.<extension>
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from nodekit.core.exceptions import FilesystemError

logger = logging.getLogger(__name__)

CACHE_DIR_ENV = "NODEKIT_CACHE_DIR"


@dataclass(frozen=True)
class CacheDescriptor:
    """Identifies one cached download."""

    name: str
    version: str
    classifier: str
    extension: str

    def filename(self) -> str:
        """
        File name of the cached download.

        Example:
            >>> CacheDescriptor("node", "v18.17.1", "linux-x64", "tar.gz").filename()
            'node-v18.17.1-linux-x64.tar.gz'
        """
        parts = [self.name, self.version]
        if self.classifier:
            parts.append(self.classifier)
        return "-".join(parts) + f".{self.extension}"


def get_global_cache_dir() -> Path:
    """
    Get the platform-specific download cache directory.

    The NODEKIT_CACHE_DIR environment variable overrides the default.

    Returns:
        Path: The cache directory path.
            - Windows: %USERPROFILE%\\.nodekit\\cache
            - Linux/macOS: ~/.nodekit/cache
    """
    override = os.environ.get(CACHE_DIR_ENV)
    if override:
        return Path(override).expanduser()

    if os.name == "nt":  # Windows
        user_profile = os.environ.get("USERPROFILE")
        if not user_profile:
            raise FilesystemError(
                "USERPROFILE environment variable is not set. "
                "Cannot determine cache directory."
            )
        return Path(user_profile) / ".nodekit" / "cache"
    else:  # Linux/macOS
        return Path.home() / ".nodekit" / "cache"


class DirectoryCacheResolver:
    """
    Resolves cache descriptors to files below a cache directory.

    Example:
        >>> resolver = DirectoryCacheResolver(Path("/tmp/cache"))
        >>> resolver.resolve(CacheDescriptor("node", "v18.17.1", "linux-x64", "tar.gz"))
        PosixPath('/tmp/cache/node/v18.17.1/node-v18.17.1-linux-x64.tar.gz')
    """

    def __init__(self, cache_dir: Optional[Path] = None):
        self.cache_dir = Path(cache_dir) if cache_dir else get_global_cache_dir()

    def resolve(self, descriptor: CacheDescriptor) -> Path:
        """
        Map a descriptor to its archive path, creating the parent directory.

        Args:
            descriptor: Cache descriptor to resolve

        Returns:
            Path of the cached file (which may not exist yet)
        """
        directory = self.cache_dir / descriptor.name / descriptor.version
        if not directory.exists():
            logger.debug(f"Creating cache directory {directory}")
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise FilesystemError(
                    f"Could not create cache directory {directory}: {e}"
                ) from e
        return directory / descriptor.filename()
