"""
Check command implementation.

Reports the node version installed in the project.
"""

import logging

from nodekit.cli.utils import build_install_config, load_project_config
from nodekit.core.exceptions import NodeKitError
from nodekit.installer.checker import InstalledNodeChecker

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the check command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 if node is installed and, when --node-version is given,
        has that version)
    """
    try:
        project_config = load_project_config(args)
        config = build_install_config(args, project_config)
    except NodeKitError as e:
        logger.error(str(e))
        return 1

    expected = args.node_version
    if expected is None and project_config is not None:
        expected = project_config.request.node_version

    installed = InstalledNodeChecker().installed_version(config.node_path)
    if installed is None:
        print(f"Node is not installed at {config.node_path}")
        return 1

    print(f"Node {installed} is installed at {config.node_path}")
    if expected and installed != expected:
        print(f"  expected version: {expected}")
        return 1

    return 0
