"""Unit tests for the nodekit.yaml parser."""

from pathlib import Path

import pytest

from nodekit.config.parser import ConfigError, parse_config, parse_config_data


@pytest.mark.unit
def test_parse_basic_config(tmp_path):
    """Test parsing a complete configuration."""
    config_file = tmp_path / "nodekit.yaml"
    config_file.write_text(
        """
version: 1
install_directory: build
cache_directory: /opt/cache
node:
  version: v18.17.1
  npm: provided
  download_root: https://mirror.example.com/node/
  download_hash: ABCDEF
  username: ci
  password: s3cret
"""
    )

    config = parse_config(config_file)

    assert config.version == 1
    assert config.install_directory == tmp_path / "build"
    assert config.cache_directory == Path("/opt/cache")
    request = config.request
    assert request.node_version == "v18.17.1"
    assert request.npm_bundled
    assert request.download_root == "https://mirror.example.com/node/"
    assert request.download_hash == "ABCDEF"
    assert request.username == "ci"
    assert request.password == "s3cret"


@pytest.mark.unit
def test_defaults(tmp_path):
    """Test that optional fields get defaults."""
    config = parse_config_data({"version": 1, "node": {"version": "v20.5.0"}}, tmp_path)

    assert config.install_directory == tmp_path / "target"
    assert config.cache_directory is None
    assert config.request.npm_version is None
    assert config.request.download_hash is None


@pytest.mark.unit
def test_numeric_values_become_strings(tmp_path):
    config = parse_config_data(
        {"version": 1, "node": {"version": "provided", "npm": 9.8, "password": 1234}},
        tmp_path,
    )

    assert config.request.npm_version == "9.8"
    assert config.request.password == "1234"


@pytest.mark.unit
def test_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        parse_config(tmp_path / "nodekit.yaml")


@pytest.mark.unit
def test_empty_file(tmp_path):
    config_file = tmp_path / "nodekit.yaml"
    config_file.write_text("")

    with pytest.raises(ConfigError, match="empty"):
        parse_config(config_file)


@pytest.mark.unit
def test_invalid_yaml(tmp_path):
    config_file = tmp_path / "nodekit.yaml"
    config_file.write_text("version: 1\nnode: [unclosed\n")

    with pytest.raises(ConfigError, match="Invalid YAML"):
        parse_config(config_file)


@pytest.mark.unit
@pytest.mark.parametrize(
    "data, message",
    [
        (["not", "a", "mapping"], "must be a mapping"),
        ({"node": {"version": "v18.17.1"}}, "Missing required field: version"),
        ({"version": 2, "node": {"version": "v18.17.1"}}, "Unsupported version"),
        ({"version": 1}, "Missing required section: node"),
        ({"version": 1, "node": {}}, "node.version"),
        ({"version": 1, "node": {"version": "v18.17.1", "mirror": "x"}}, "Unknown keys"),
        ({"version": 1, "install_directory": "", "node": {"version": "v18.17.1"}},
         "install_directory"),
    ],
)
def test_invalid_configs(data, message, tmp_path):
    with pytest.raises(ConfigError, match=message):
        parse_config_data(data, tmp_path)


@pytest.mark.unit
def test_invalid_version_combination(tmp_path):
    """Bundled npm on a node release that never shipped it is a config error."""
    data = {"version": 1, "node": {"version": "v3.9.0", "npm": "provided"}}

    with pytest.raises(ConfigError, match="prior to v4.0.0"):
        parse_config_data(data, tmp_path)
