"""
Configuration management for NodeKit.
"""

from .parser import (
    DEFAULT_CONFIG_NAME,
    NodeKitConfig,
    parse_config,
    parse_config_data,
)

__all__ = [
    "DEFAULT_CONFIG_NAME",
    "NodeKitConfig",
    "parse_config",
    "parse_config_data",
]
