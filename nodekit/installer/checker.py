"""
Detects whether the requested node version is already installed.
"""

import logging
from pathlib import Path
from typing import Optional

from nodekit.core.exceptions import ProcessExecutionError
from nodekit.core.process import ProcessExecutor

logger = logging.getLogger(__name__)


class InstalledNodeChecker:
    """
    Probes an existing node binary by asking it for its version.

    A binary that cannot be run is reported as not installed, so a broken
    install never blocks reinstallation.
    """

    def __init__(self, executor: Optional[ProcessExecutor] = None):
        self.executor = executor or ProcessExecutor()

    def installed_version(self, node_path: Path) -> Optional[str]:
        """
        Version reported by the node binary at node_path.

        Returns:
            The output of 'node --version', or None if there is no binary or
            it could not be executed
        """
        if not node_path.exists():
            return None

        try:
            return self.executor.run(node_path, ["--version"]).strip()
        except ProcessExecutionError as e:
            logger.warning(f"Unable to determine current node version: {e}")
            return None

    def is_installed(self, node_path: Path, version: str) -> bool:
        """
        True if node_path holds a binary reporting exactly version.
        """
        installed = self.installed_version(node_path)
        if installed is None:
            return False

        if installed == version:
            logger.info(f"Node {installed} is already installed.")
            return True

        logger.info(f"Node {installed} was installed, but we need version {version}")
        return False
