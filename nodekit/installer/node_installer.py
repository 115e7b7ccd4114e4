"""
Node.js installation orchestrator.

This module provisions one node version into a project-local directory:
1. Skip everything if the installed node already reports the requested version
2. Resolve the download in the shared cache, downloading it if missing
3. Verify its SHA-256 hash (when one is configured)
4. Extract it, locate the node binary and move it into place
5. Copy the bundled npm next to it (when requested)
6. Remove the scratch directory

All installations in a process are serialized by one lock.
"""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from nodekit.core.cache import CacheDescriptor
from nodekit.core.download import FileDownloader
from nodekit.core.exceptions import (
    ArchiveExtractionError,
    DownloadError,
    FilesystemError,
    InstallationError,
    IntegrityError,
    NodeKitError,
)
from nodekit.core.filesystem import ArchiveExtractor, make_executable, remove_file
from nodekit.core.locking import install_lock
from nodekit.core.process import ProcessExecutor
from nodekit.core.verification import verify_download_hash
from nodekit.installer.bundler import NpmBundler
from nodekit.installer.checker import InstalledNodeChecker
from nodekit.installer.policy import InstallFlow, decide_flow
from nodekit.installer.request import InstallConfig, InstallRequest
from nodekit.installer.stager import ArchiveStager

logger = logging.getLogger(__name__)

CACHE_NAME = "node"


@dataclass
class InstallResult:
    """Result of a node installation."""

    node_path: Path
    """Path to the installed node executable"""

    version: str
    """Node version that was requested"""

    flow: Optional[InstallFlow]
    """Install flow used, None when nothing had to be installed"""

    already_installed: bool
    """Whether the requested version was already in place"""

    npm_bundled: bool = False
    """Whether npm was copied from the node archive"""


class NodeInstaller:
    """
    Installs node (and optionally its bundled npm) into an install directory.

    Example:
        >>> installer = NodeInstaller(InstallConfig(Path("target")))
        >>> result = installer.install(InstallRequest("v18.17.1", npm_version="provided"))
        >>> print(f"Installed at: {result.node_path}")
    """

    def __init__(
        self,
        config: InstallConfig,
        downloader: Optional[FileDownloader] = None,
        extractor: Optional[ArchiveExtractor] = None,
        executor: Optional[ProcessExecutor] = None,
    ):
        """
        Initialize node installer.

        Args:
            config: Install directory, platform and cache
            downloader: File downloader (default: requests based)
            extractor: Archive extractor (default: zip/tar)
            executor: Process executor used to probe an installed node
        """
        self.config = config
        self.downloader = downloader or FileDownloader()
        self.stager = ArchiveStager(extractor)
        self.checker = InstalledNodeChecker(executor)
        self.bundler = NpmBundler()

    def install(self, request: InstallRequest) -> InstallResult:
        """
        Install the requested node version.

        Args:
            request: Validated install request

        Returns:
            InstallResult describing what was done

        Raises:
            InstallationError: If the installation fails; the original error
                is available as its cause
        """
        with install_lock():
            return self._install(request)

    def _install(self, request: InstallRequest) -> InstallResult:
        platform = self.config.platform
        download_root = request.download_root or platform.download_root_default()
        node_path = self.config.node_path

        if self.checker.is_installed(node_path, request.node_version):
            return InstallResult(
                node_path=node_path,
                version=request.node_version,
                flow=None,
                already_installed=True,
            )

        logger.info(f"Installing node version {request.node_version}")
        if not request.node_version.startswith("v"):
            logger.warning("Node version does not start with naming convention 'v'.")

        flow = decide_flow(request.node_version, request.npm_version, platform)
        logger.debug(f"Using {flow.value} install flow on {platform.info}")

        try:
            if flow.extracts_archive:
                npm_bundled = self._install_from_archive(request, download_root)
            else:
                self._install_executable(request, download_root)
                npm_bundled = False
        except NodeKitError as e:
            raise InstallationError(_failure_message(e), cause=e) from e
        except OSError as e:
            raise InstallationError("Could not install Node", cause=e) from e

        logger.info("Installed node locally.")
        return InstallResult(
            node_path=node_path,
            version=request.node_version,
            flow=flow,
            already_installed=False,
            npm_bundled=npm_bundled,
        )

    def _install_from_archive(self, request: InstallRequest, download_root: str) -> bool:
        """Download, verify and unpack a node archive. Returns True if npm was bundled."""
        platform = self.config.platform
        version = request.node_version
        long_node_filename = platform.long_node_filename(version, archive_on_windows=True)

        if request.node_provided:
            download_url = download_root
        else:
            download_url = _join_url(
                download_root, platform.download_filename(version, archive_on_windows=True)
            )

        descriptor = CacheDescriptor(
            CACHE_NAME, version, platform.classifier(version), platform.archive_extension()
        )
        archive = self.config.cache_resolver.resolve(descriptor)

        self._download_if_missing(download_url, archive, request)
        verify_download_hash(archive, request.download_hash)

        temp_dir = self._prepare_temp_directory()
        try:
            self.stager.stage(
                archive=archive,
                temp_dir=temp_dir,
                conventional_path=platform.binary_path_in_archive(long_node_filename),
                binary_name=platform.binary_name(),
                destination=self.config.node_path,
                all_users=not platform.is_windows(),
            )

            if not request.npm_bundled:
                return False

            return self.bundler.bundle(
                temp_dir / platform.node_modules_path_in_archive(long_node_filename),
                self.config.node_modules_directory,
            )
        finally:
            self.stager.cleanup(temp_dir, require_prefix=self.config.node_directory)

    def _install_executable(self, request: InstallRequest, download_root: str) -> None:
        """Download a bare node.exe and copy it into place (Windows without npm)."""
        platform = self.config.platform
        version = request.node_version
        download_url = _join_url(
            download_root, platform.download_filename(version, archive_on_windows=False)
        )

        descriptor = CacheDescriptor(CACHE_NAME, version, platform.classifier(version), "exe")
        binary = self.config.cache_resolver.resolve(descriptor)

        self._download_if_missing(download_url, binary, request)
        verify_download_hash(binary, request.download_hash)

        destination = self._ensure_node_directory() / platform.binary_name()
        logger.info(f"Copying node binary from {binary} to {destination}")

        if destination.exists():
            remove_file(destination)
        try:
            shutil.copy2(binary, destination)
        except OSError as e:
            raise FilesystemError(
                f"Could not install Node: Was not allowed to copy {binary} to {destination}"
            ) from e
        make_executable(destination, all_users=False)

    def _download_if_missing(
        self, download_url: str, destination: Path, request: InstallRequest
    ) -> None:
        if destination.exists():
            logger.debug(f"Using cached download {destination}")
            return

        logger.info(f"Downloading {download_url} to {destination}")
        self.downloader.download(
            download_url, destination, request.username, request.password
        )

    def _ensure_node_directory(self) -> Path:
        node_directory = self.config.node_directory
        if not node_directory.exists():
            logger.debug(f"Creating install directory {node_directory}")
            node_directory.mkdir(parents=True, exist_ok=True)
        return node_directory

    def _prepare_temp_directory(self) -> Path:
        """Create an empty scratch directory, removing leftovers of earlier runs."""
        self._ensure_node_directory()
        temp_dir = self.config.temp_directory
        self.stager.cleanup(temp_dir, require_prefix=self.config.node_directory)

        logger.debug(f"Creating temporary directory {temp_dir}")
        temp_dir.mkdir(parents=True, exist_ok=True)
        return temp_dir


def _join_url(root: str, path: str) -> str:
    """
    Append a download path to a download root.

    Example:
        >>> _join_url("https://nodejs.org/dist", "v18.17.1/node-v18.17.1-linux-x64.tar.gz")
        'https://nodejs.org/dist/v18.17.1/node-v18.17.1-linux-x64.tar.gz'
    """
    return root.rstrip("/") + "/" + path.lstrip("/")


def _failure_message(error: NodeKitError) -> str:
    if isinstance(error, DownloadError):
        return "Could not download Node.js"
    if isinstance(error, IntegrityError):
        return "Downloaded Node.js failed verification"
    if isinstance(error, ArchiveExtractionError):
        return "Could not extract the Node archive"
    return "Could not install Node"
