"""
Copies the npm shipped inside a node archive next to the installed node.
"""

import logging
from pathlib import Path

from nodekit.core.exceptions import FilesystemError
from nodekit.core.filesystem import copy_tree, make_executable

logger = logging.getLogger(__name__)

NPM_FOLDER = "npm"
NPM_LAUNCHERS = ("npm", "npm.cmd", "npx", "npx.cmd")


class NpmBundler:
    """Installs the bundled node_modules tree (npm) from an extracted archive."""

    def bundle(self, source_node_modules: Path, node_modules_directory: Path) -> bool:
        """
        Copy source_node_modules into node_modules_directory.

        An archive without a node_modules folder is accepted silently.

        Args:
            source_node_modules: node_modules folder inside the extracted archive
            node_modules_directory: <install>/node/node_modules

        Returns:
            True if anything was copied

        Raises:
            FilesystemError: If copying fails
        """
        if not source_node_modules.is_dir():
            logger.debug(f"No bundled node_modules at {source_node_modules}")
            return False

        logger.info("Extracting NPM")
        copy_tree(source_node_modules, node_modules_directory)
        self.enable_launchers(node_modules_directory / NPM_FOLDER / "bin")
        return True

    def enable_launchers(self, npm_bin_directory: Path) -> None:
        """Mark the npm launcher scripts executable; failures are only logged."""
        for script in NPM_LAUNCHERS:
            script_file = npm_bin_directory / script
            if not script_file.exists():
                continue
            try:
                make_executable(script_file, all_users=False)
                logger.debug(f"Enabled executable at {script_file.absolute()}")
            except FilesystemError as e:
                logger.warning(f"Could not make {script_file} executable: {e}")
