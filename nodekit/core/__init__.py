"""
Core functionality for NodeKit.

This package contains the foundational modules the installer depends on.
"""

from .exceptions import (
    NodeKitError,
    ConfigError,
    InstallationError,
    ValidationError,
    DownloadError,
    IntegrityError,
    FilesystemError,
    ExtractionFailure,
    ArchiveExtractionError,
    BinaryNotFoundError,
    ProcessExecutionError,
)

from .platform import (
    PlatformInfo,
    NodePlatform,
    detect_platform,
    clear_platform_cache,
    node_major_version,
)

from .cache import (
    CacheDescriptor,
    DirectoryCacheResolver,
    get_global_cache_dir,
)

from .locking import install_lock

__all__ = [
    "NodeKitError",
    "ConfigError",
    "InstallationError",
    "ValidationError",
    "DownloadError",
    "IntegrityError",
    "FilesystemError",
    "ExtractionFailure",
    "ArchiveExtractionError",
    "BinaryNotFoundError",
    "ProcessExecutionError",
    "PlatformInfo",
    "NodePlatform",
    "detect_platform",
    "clear_platform_cache",
    "node_major_version",
    "CacheDescriptor",
    "DirectoryCacheResolver",
    "get_global_cache_dir",
    "install_lock",
]
