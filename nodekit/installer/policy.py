"""
Provisioning policy: which install flow applies to a request.

Pure decision logic, no I/O. The version rules are checked here so an
impossible request fails before anything is downloaded.
"""

from enum import Enum
from typing import Optional

from nodekit.core.exceptions import ValidationError
from nodekit.core.platform import NodePlatform, node_major_version

# Sentinel version: for node it means "download root is the full archive URL",
# for npm it means "use the npm shipped inside the node archive"
VERSION_PROVIDED = "provided"

# First node release line that shipped npm in its archives
FIRST_NPM_BUNDLED_MAJOR = 4


class InstallFlow(Enum):
    """The ways a node installation can be carried out."""

    PROVIDED = "provided"  # download root is the complete archive URL
    WINDOWS_ARCHIVE = "windows-archive"  # zip with node.exe and node_modules
    WINDOWS_EXECUTABLE = "windows-executable"  # bare node.exe, no extraction
    DEFAULT = "default"  # versioned tar archive

    @property
    def extracts_archive(self) -> bool:
        return self is not InstallFlow.WINDOWS_EXECUTABLE


def validate_versions(node_version: Optional[str], npm_version: Optional[str]) -> None:
    """
    Check that the node version is set and compatible with the npm mode.

    Raises:
        ValidationError: If node_version is empty, or npm is requested from the
            node archive for a node release that did not bundle it
    """
    if not node_version or not node_version.strip():
        raise ValidationError("Node version must be set before installing")

    if npm_version != VERSION_PROVIDED or node_version == VERSION_PROVIDED:
        return

    major = node_major_version(node_version)
    if major is None:
        raise ValidationError(
            f"Cannot determine the major version of node '{node_version}'"
        )
    if major < FIRST_NPM_BUNDLED_MAJOR:
        raise ValidationError(
            f"NPM version is '{npm_version}' but Node didn't include NPM "
            f"prior to v{FIRST_NPM_BUNDLED_MAJOR}.0.0"
        )


def npm_is_bundled(node_version: str, npm_version: Optional[str]) -> bool:
    """
    Whether npm should be taken from the node archive.

    Raises:
        ValidationError: If the combination is impossible
    """
    validate_versions(node_version, npm_version)
    return npm_version == VERSION_PROVIDED


def decide_flow(
    node_version: str, npm_version: Optional[str], platform: NodePlatform
) -> InstallFlow:
    """
    Pick the install flow for a request.

    Example:
        >>> decide_flow("v18.17.1", None, NodePlatform(PlatformInfo("windows", "x64")))
        <InstallFlow.WINDOWS_EXECUTABLE: 'windows-executable'>
    """
    bundled = npm_is_bundled(node_version, npm_version)

    if node_version == VERSION_PROVIDED:
        return InstallFlow.PROVIDED
    if platform.is_windows():
        return InstallFlow.WINDOWS_ARCHIVE if bundled else InstallFlow.WINDOWS_EXECUTABLE
    return InstallFlow.DEFAULT
