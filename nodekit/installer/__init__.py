"""
Node.js installation.

Provides the NodeInstaller orchestrator and the pieces it is built from.
"""

from .policy import (
    VERSION_PROVIDED,
    InstallFlow,
    decide_flow,
    npm_is_bundled,
)

from .request import (
    InstallConfig,
    InstallRequest,
)

from .checker import InstalledNodeChecker
from .stager import ArchiveStager
from .bundler import NpmBundler

from .node_installer import (
    InstallResult,
    NodeInstaller,
)

__all__ = [
    "VERSION_PROVIDED",
    "InstallFlow",
    "decide_flow",
    "npm_is_bundled",
    "InstallConfig",
    "InstallRequest",
    "InstalledNodeChecker",
    "ArchiveStager",
    "NpmBundler",
    "InstallResult",
    "NodeInstaller",
]
