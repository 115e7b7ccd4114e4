"""YAML configuration parser for NodeKit.

This module provides parsing and validation for nodekit.yaml configuration files.

Example nodekit.yaml:

    version: 1
    install_directory: target
    node:
      version: v18.17.1
      npm: provided
      download_hash: 0d6f4a0d...
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from nodekit.core.exceptions import ConfigError, ValidationError
from nodekit.installer.request import InstallRequest

DEFAULT_CONFIG_NAME = "nodekit.yaml"
DEFAULT_INSTALL_DIRECTORY = "target"

_NODE_KEYS = {"version", "npm", "download_root", "download_hash", "username", "password"}


@dataclass
class NodeKitConfig:
    """Complete NodeKit configuration."""

    version: int
    request: InstallRequest
    install_directory: Path
    cache_directory: Optional[Path] = None


def parse_config(config_path: Path) -> NodeKitConfig:
    """
    Parse nodekit.yaml configuration file.

    Relative directories are resolved against the directory holding the file.

    Args:
        config_path: Path to nodekit.yaml

    Returns:
        Parsed and validated configuration

    Raises:
        ConfigError: If configuration is invalid
    """
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax: {e}")

    if data is None:
        raise ConfigError("Configuration file is empty")

    return parse_config_data(data, base_dir=config_path.parent)


def parse_config_data(data: Dict[str, Any], base_dir: Optional[Path] = None) -> NodeKitConfig:
    """Parse and validate configuration data."""
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")

    if "version" not in data:
        raise ConfigError("Missing required field: version")

    if data["version"] != 1:
        raise ConfigError(f"Unsupported version: {data['version']} (expected 1)")

    base_dir = base_dir or Path.cwd()

    node_data = data.get("node")
    if not isinstance(node_data, dict):
        raise ConfigError("Missing required section: node")

    request = _parse_node(node_data)

    install_directory = _resolve_dir(
        data.get("install_directory", DEFAULT_INSTALL_DIRECTORY), base_dir, "install_directory"
    )

    cache_directory = None
    if data.get("cache_directory") is not None:
        cache_directory = _resolve_dir(data["cache_directory"], base_dir, "cache_directory")

    return NodeKitConfig(
        version=data["version"],
        request=request,
        install_directory=install_directory,
        cache_directory=cache_directory,
    )


def _parse_node(node_data: Dict[str, Any]) -> InstallRequest:
    """Parse the node section into an install request."""
    unknown = set(node_data) - _NODE_KEYS
    if unknown:
        raise ConfigError(f"Unknown keys in node section: {', '.join(sorted(unknown))}")

    if not node_data.get("version"):
        raise ConfigError("Missing required field: node.version")

    values = {}
    for key in _NODE_KEYS:
        value = node_data.get(key)
        if value is not None and not isinstance(value, str):
            # YAML turns 'version: 18' into an int
            value = str(value)
        values[key] = value

    try:
        return InstallRequest(
            node_version=values["version"],
            npm_version=values["npm"],
            download_root=values["download_root"],
            username=values["username"],
            password=values["password"],
            download_hash=values["download_hash"],
        )
    except ValidationError as e:
        raise ConfigError(f"Invalid node configuration: {e}") from e


def _resolve_dir(value: Any, base_dir: Path, field_name: str) -> Path:
    if not isinstance(value, str) or not value:
        raise ConfigError(f"{field_name} must be a non-empty string")

    path = Path(value).expanduser()
    if not path.is_absolute():
        path = base_dir / path
    return path
