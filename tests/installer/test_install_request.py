"""
Tests for install requests and installer configuration.
"""

from pathlib import Path

import pytest

from nodekit.core.exceptions import ValidationError
from nodekit.core.platform import NodePlatform
from nodekit.installer.request import InstallConfig, InstallRequest


class TestInstallRequest:
    def test_defaults(self):
        request = InstallRequest("v18.17.1")
        assert request.npm_version is None
        assert request.download_root is None
        assert request.download_hash is None
        assert not request.npm_bundled
        assert not request.node_provided

    def test_bundled_npm(self):
        request = InstallRequest("v18.17.1", npm_version="provided")
        assert request.npm_bundled

    def test_provided_node(self):
        request = InstallRequest("provided", download_root="https://mirror/node.tar.gz")
        assert request.node_provided

    def test_invalid_combination_raises_on_construction(self):
        with pytest.raises(ValidationError, match="prior to v4.0.0"):
            InstallRequest("v3.9.0", npm_version="provided")

    def test_empty_version_rejected(self):
        with pytest.raises(ValidationError):
            InstallRequest("")

    def test_password_hidden_from_repr(self):
        request = InstallRequest("v18.17.1", username="ci", password="s3cret")
        assert "s3cret" not in repr(request)
        assert "ci" in repr(request)

    def test_immutable(self):
        request = InstallRequest("v18.17.1")
        with pytest.raises(AttributeError):
            request.node_version = "v20.0.0"


class TestInstallConfig:
    def test_linux_paths(self, tmp_path, linux_platform):
        config = InstallConfig(tmp_path / "target", platform=linux_platform)

        assert config.node_directory == tmp_path / "target" / "node"
        assert config.node_path == tmp_path / "target" / "node" / "node"
        assert config.node_modules_directory == tmp_path / "target" / "node" / "node_modules"
        assert config.temp_directory == tmp_path / "target" / "node" / "tmp"

    def test_windows_binary(self, tmp_path, windows_platform):
        config = InstallConfig(tmp_path / "target", platform=windows_platform)
        assert config.node_path.name == "node.exe"

    def test_accepts_string_directory(self, tmp_path, linux_platform):
        config = InstallConfig(str(tmp_path), platform=linux_platform)
        assert config.install_directory == Path(tmp_path)

    def test_defaults_to_current_platform(self, tmp_path, isolated_home):
        config = InstallConfig(tmp_path)
        assert isinstance(config.platform, NodePlatform)
        assert config.cache_resolver.cache_dir == isolated_home / ".nodekit" / "cache"
