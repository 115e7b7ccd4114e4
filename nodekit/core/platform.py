"""
Platform detection and Node.js distribution naming for NodeKit.

This module detects the current platform (OS, architecture, C library) and
turns it into the names used by the Node.js distribution servers:

- OS codenames ('linux', 'darwin', 'win', ...)
- Architecture names ('x64', 'arm64', 'armv7l', ...)
- Archive names and download paths for a given node version
- The default download root (official or unofficial musl builds)

Usage:
    from nodekit.core.platform import NodePlatform

    node_platform = NodePlatform.current()
    print(node_platform.classifier("v18.17.1"))          # linux-x64
    print(node_platform.download_filename("v18.17.1"))   # v18.17.1/node-v18.17.1-linux-x64.tar.gz
"""

import functools
import logging
import platform
import subprocess
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_DOWNLOAD_ROOT = "https://nodejs.org/dist/"
UNOFFICIAL_DOWNLOAD_ROOT = "https://unofficial-builds.nodejs.org/download/release/"

# First node release line that shipped native Apple Silicon builds
FIRST_DARWIN_ARM64_MAJOR = 16


@dataclass(frozen=True)
class PlatformInfo:
    """
    Platform information relevant for picking a node build.

    Attributes:
        os: Operating system ('windows', 'linux', 'macos', 'sunos', 'aix')
        arch: CPU architecture ('x64', 'arm64', 'x86', 'arm', 'ppc64le', 's390x')
        libc: C library on Linux ('glibc', 'musl') or empty
    """

    os: str
    arch: str
    libc: str = ""

    def platform_string(self) -> str:
        """
        Get canonical platform string (e.g., 'linux-x64', 'macos-arm64').

        Example:
            >>> PlatformInfo('linux', 'x64', 'glibc').platform_string()
            'linux-x64'
        """
        return f"{self.os}-{self.arch}"

    def __str__(self) -> str:
        if self.libc:
            return f"{self.platform_string()} [{self.libc}]"
        return self.platform_string()


@functools.lru_cache(maxsize=1)
def detect_platform() -> PlatformInfo:
    """
    Detect current platform information.

    This function is cached - it only runs detection once per process.

    Returns:
        PlatformInfo instance with detected platform information
    """
    os_name = _detect_os()
    arch = _detect_architecture()
    libc = _detect_libc() if os_name == "linux" else ""

    info = PlatformInfo(os=os_name, arch=arch, libc=libc)
    logger.debug(f"Detected platform: {info}")
    return info


def clear_platform_cache():
    """Clear the platform detection cache (useful for testing)."""
    detect_platform.cache_clear()


def _detect_os() -> str:
    """
    Detect operating system.

    Returns:
        Normalized OS name

    Raises:
        RuntimeError: If OS is not supported
    """
    system = platform.system().lower()

    if system == "windows":
        return "windows"
    elif system == "linux":
        return "linux"
    elif system == "darwin":
        return "macos"
    elif system in ("sunos", "solaris"):
        return "sunos"
    elif system == "aix":
        return "aix"
    else:
        raise RuntimeError(f"Unsupported operating system: {system}")


def _detect_architecture() -> str:
    """
    Detect CPU architecture.

    Returns:
        Normalized architecture: 'x64', 'arm64', 'x86', 'arm', 'ppc64le', 's390x'
    """
    machine = platform.machine().lower()

    if machine in ("x86_64", "amd64", "x64"):
        return "x64"
    elif machine in ("aarch64", "arm64"):
        return "arm64"
    elif machine in ("i386", "i686", "x86"):
        return "x86"
    elif machine.startswith("arm"):
        return "arm"
    elif machine in ("ppc64le", "s390x"):
        return machine
    else:
        # Return original for unknown architectures
        return machine


def _detect_libc() -> str:
    """
    Detect the Linux C library.

    Returns:
        'musl', 'glibc', or empty string if detection failed
    """
    try:
        result = subprocess.run(
            ["ldd", "--version"], capture_output=True, text=True, timeout=5
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug(f"Could not run ldd to detect libc: {e}")
        return ""

    output = result.stdout.lower() + result.stderr.lower()
    if "musl" in output:
        return "musl"
    if "glibc" in output or "gnu libc" in output:
        return "glibc"
    return ""


def node_major_version(version: str) -> Optional[int]:
    """
    Parse the major version number out of a node version string.

    Args:
        version: Version such as 'v18.17.1' or '18.17.1'

    Returns:
        Major version, or None if the string does not start with a number

    Example:
        >>> node_major_version("v3.9.0")
        3
    """
    head = version.strip().lstrip("v").split(".")[0]
    try:
        return int(head)
    except ValueError:
        return None


class NodePlatform:
    """
    Describes how node builds are named and laid out for one platform.

    Node archives unpack to a single folder named after the archive
    ('node-v18.17.1-linux-x64'); on Windows the folder holds node.exe
    directly, elsewhere the binary lives in its bin/ subfolder.
    """

    _CODENAMES = {
        "windows": "win",
        "linux": "linux",
        "macos": "darwin",
        "sunos": "sunos",
        "aix": "aix",
    }

    _ARCHES = {
        "x64": "x64",
        "x86": "x86",
        "arm64": "arm64",
        "arm": "armv7l",
        "ppc64le": "ppc64le",
        "s390x": "s390x",
    }

    def __init__(self, info: PlatformInfo):
        if info.os not in self._CODENAMES:
            raise ValueError(f"Unsupported operating system: {info.os}")
        self.info = info

    @classmethod
    def current(cls) -> "NodePlatform":
        """Create a descriptor for the platform this process runs on."""
        return cls(detect_platform())

    def is_windows(self) -> bool:
        return self.info.os == "windows"

    def is_musl(self) -> bool:
        return self.info.os == "linux" and self.info.libc == "musl"

    def codename(self) -> str:
        return self._CODENAMES[self.info.os]

    def archive_extension(self) -> str:
        return "zip" if self.is_windows() else "tar.gz"

    def binary_name(self) -> str:
        return "node.exe" if self.is_windows() else "node"

    def node_arch(self, version: str) -> str:
        """
        Architecture name used in node archive names.

        Apple Silicon builds only exist from node 16 on; older versions
        fall back to the x64 build (run through Rosetta).
        """
        arch = self._ARCHES.get(self.info.arch, self.info.arch)
        if self.info.os == "macos" and arch == "arm64":
            major = node_major_version(version)
            if major is not None and major < FIRST_DARWIN_ARM64_MAJOR:
                logger.debug(
                    f"No darwin-arm64 build before node {FIRST_DARWIN_ARM64_MAJOR}, "
                    "using darwin-x64"
                )
                return "x64"
        return arch

    def classifier(self, version: str) -> str:
        """
        Platform tag identifying the archive variant, e.g. 'linux-x64'.

        Example:
            >>> NodePlatform(PlatformInfo("linux", "x64", "musl")).classifier("v18.0.0")
            'linux-x64-musl'
        """
        classifier = f"{self.codename()}-{self.node_arch(version)}"
        if self.is_musl():
            classifier += "-musl"
        return classifier

    def long_node_filename(self, version: str, archive_on_windows: bool = False) -> str:
        """
        Name of the folder the archive unpacks to.

        Args:
            version: Node version, e.g. 'v18.17.1'
            archive_on_windows: Whether a zip archive is used on Windows
                (only needed when npm is bundled)
        """
        if self.is_windows() and not archive_on_windows:
            return "node.exe"
        return f"node-{version}-{self.classifier(version)}"

    def download_filename(self, version: str, archive_on_windows: bool = False) -> str:
        """
        Path of the download relative to the download root.

        Example:
            >>> NodePlatform(PlatformInfo("windows", "x64")).download_filename("v18.17.1")
            'v18.17.1/win-x64/node.exe'
        """
        if self.is_windows() and not archive_on_windows:
            arch = self.node_arch(version)
            if version.startswith("v0."):
                # 0.x releases kept the executables in differently named folders
                return f"{version}/x64/node.exe" if arch == "x64" else f"{version}/node.exe"
            return f"{version}/win-{arch}/node.exe"

        long_name = self.long_node_filename(version, archive_on_windows)
        return f"{version}/{long_name}.{self.archive_extension()}"

    def binary_path_in_archive(self, long_node_filename: str) -> str:
        """Conventional location of the binary inside the extracted archive."""
        if self.is_windows():
            return f"{long_node_filename}/{self.binary_name()}"
        return f"{long_node_filename}/bin/{self.binary_name()}"

    def node_modules_path_in_archive(self, long_node_filename: str) -> str:
        """Location of the bundled node_modules tree inside the extracted archive."""
        if self.is_windows():
            return f"{long_node_filename}/node_modules"
        return f"{long_node_filename}/lib/node_modules"

    def download_root_default(self) -> str:
        """Default download root; musl builds are only published unofficially."""
        if self.is_musl():
            return UNOFFICIAL_DOWNLOAD_ROOT
        return DEFAULT_DOWNLOAD_ROOT

    def __repr__(self) -> str:
        return f"NodePlatform({self.info!r})"
