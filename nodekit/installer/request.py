"""
Install request and installer configuration.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from nodekit.core.cache import DirectoryCacheResolver
from nodekit.core.platform import NodePlatform
from nodekit.installer.policy import VERSION_PROVIDED, npm_is_bundled

INSTALL_FOLDER = "node"
NODE_MODULES_FOLDER = "node_modules"
TEMP_FOLDER = "tmp"


@dataclass(frozen=True)
class InstallRequest:
    """
    What to install. Validated on construction.

    Attributes:
        node_version: Node version such as 'v18.17.1', or 'provided' to
            install the archive at download_root as is
        npm_version: None, 'provided' to take npm from the node archive, or
            an explicit npm version (installed by other means)
        download_root: Base URL of the node distribution; defaults to the
            platform's official mirror
        username: User name for the download server
        password: Password for the download server
        download_hash: Expected SHA-256 of the download; no verification
            when empty

    Raises:
        ValidationError: If the version combination is invalid
    """

    node_version: str
    npm_version: Optional[str] = None
    download_root: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    download_hash: Optional[str] = None

    def __post_init__(self):
        npm_is_bundled(self.node_version, self.npm_version)

    @property
    def npm_bundled(self) -> bool:
        return self.npm_version == VERSION_PROVIDED

    @property
    def node_provided(self) -> bool:
        return self.node_version == VERSION_PROVIDED


class InstallConfig:
    """
    Where and for which platform to install.

    Args:
        install_directory: Directory that receives the node/ folder
        platform: Platform descriptor (defaults to the current platform)
        cache_resolver: Resolver for the download cache (defaults to the
            global cache directory)
    """

    def __init__(
        self,
        install_directory: Path,
        platform: Optional[NodePlatform] = None,
        cache_resolver: Optional[DirectoryCacheResolver] = None,
    ):
        self.install_directory = Path(install_directory)
        self.platform = platform or NodePlatform.current()
        self.cache_resolver = cache_resolver or DirectoryCacheResolver()

    @property
    def node_directory(self) -> Path:
        """<install_directory>/node"""
        return self.install_directory / INSTALL_FOLDER

    @property
    def node_path(self) -> Path:
        """Path of the installed node executable."""
        return self.node_directory / self.platform.binary_name()

    @property
    def node_modules_directory(self) -> Path:
        return self.node_directory / NODE_MODULES_FOLDER

    @property
    def temp_directory(self) -> Path:
        return self.node_directory / TEMP_FOLDER
