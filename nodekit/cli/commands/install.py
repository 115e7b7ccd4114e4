"""
Install command implementation.

Installs the configured node version into the project.
"""

import logging

from nodekit.cli.utils import build_install_settings
from nodekit.core.exceptions import NodeKitError
from nodekit.installer.node_installer import NodeInstaller

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the install command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    try:
        request, config = build_install_settings(args)
        result = NodeInstaller(config).install(request)
    except NodeKitError as e:
        logger.error(str(e))
        cause = getattr(e, "cause", None)
        if cause is not None:
            logger.debug(f"Caused by {type(cause).__name__}: {cause}")
        return 1

    if result.already_installed:
        print(f"Node {result.version} is already installed at {result.node_path}")
    else:
        print(f"Installed node {result.version} at {result.node_path}")
        if result.npm_bundled:
            print(f"  npm: {config.node_modules_directory / 'npm'}")

    return 0
