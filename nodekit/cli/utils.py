"""
Shared utilities for CLI commands.

Combines nodekit.yaml and command-line flags into the objects the installer
needs. Flags take precedence over the configuration file.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple

from nodekit.config.parser import DEFAULT_CONFIG_NAME, NodeKitConfig, parse_config
from nodekit.core.cache import DirectoryCacheResolver
from nodekit.core.exceptions import ConfigError
from nodekit.installer.request import InstallConfig, InstallRequest

logger = logging.getLogger(__name__)


def load_project_config(args) -> Optional[NodeKitConfig]:
    """
    Load nodekit.yaml from --config or the project root.

    Returns:
        Parsed configuration, or None if there is no configuration file

    Raises:
        ConfigError: If --config points to a missing or invalid file
    """
    config_file = getattr(args, "config", None)
    if config_file is not None:
        return parse_config(Path(config_file))

    default_file = Path(args.project_root) / DEFAULT_CONFIG_NAME
    if default_file.exists():
        logger.debug(f"Using configuration file {default_file}")
        return parse_config(default_file)

    return None


def build_install_settings(args) -> Tuple[InstallRequest, InstallConfig]:
    """
    Build the install request and configuration for the install command.

    Raises:
        ConfigError: If no node version is configured anywhere
        ValidationError: If the resulting request is invalid
    """
    project_config = load_project_config(args)
    base = project_config.request if project_config else None

    def pick(flag_value, config_value):
        return flag_value if flag_value is not None else config_value

    node_version = pick(args.node_version, base.node_version if base else None)
    if not node_version:
        raise ConfigError(
            f"No node version given. Use --node-version or set node.version in {DEFAULT_CONFIG_NAME}"
        )

    request = InstallRequest(
        node_version=node_version,
        npm_version=pick(args.npm_version, base.npm_version if base else None),
        download_root=pick(args.download_root, base.download_root if base else None),
        username=pick(args.username, base.username if base else None),
        password=pick(args.password, base.password if base else None),
        download_hash=pick(args.download_hash, base.download_hash if base else None),
    )

    return request, build_install_config(args, project_config)


def build_install_config(
    args, project_config: Optional[NodeKitConfig] = None
) -> InstallConfig:
    """Build the install configuration (directories) from flags and config file."""
    install_directory = args.install_directory
    if install_directory is None:
        install_directory = (
            project_config.install_directory
            if project_config
            else Path(args.project_root) / "target"
        )

    cache_directory = args.cache_directory
    if cache_directory is None and project_config:
        cache_directory = project_config.cache_directory

    return InstallConfig(
        install_directory=Path(install_directory),
        cache_resolver=DirectoryCacheResolver(cache_directory),
    )
