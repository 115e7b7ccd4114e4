"""
Pytest configuration and shared fixtures for NodeKit tests.
"""

import io
import tarfile
import zipfile
from pathlib import Path
from typing import Callable, List, Optional

import pytest

from nodekit.core.cache import DirectoryCacheResolver
from nodekit.core.exceptions import ProcessExecutionError
from nodekit.core.locking import is_install_locked
from nodekit.core.platform import NodePlatform, PlatformInfo
from nodekit.installer.request import InstallConfig

NODE_VERSION = "v18.17.1"


# ============================================================================
# Test doubles for installer collaborators
# ============================================================================


class FakeDownloader:
    """
    Downloader that writes canned payloads instead of using the network.

    Each call consumes the next payload; the last one is reused.
    """

    def __init__(self, *payloads: bytes):
        self.payloads = list(payloads)
        self.calls: List[dict] = []
        self.lock_held: List[bool] = []

    def download(self, url, destination, username=None, password=None):
        self.calls.append(
            {
                "url": url,
                "destination": Path(destination),
                "username": username,
                "password": password,
            }
        )
        self.lock_held.append(is_install_locked())
        index = min(len(self.calls), len(self.payloads)) - 1
        Path(destination).write_bytes(self.payloads[index])


class FakeExecutor:
    """
    Process executor that 'runs' fake node binaries.

    A fake binary's content is the version it reports; a binary containing
    'broken' fails to execute.
    """

    def __init__(self):
        self.calls: List[tuple] = []

    def run(self, executable, args, cwd=None):
        self.calls.append((Path(executable), list(args)))
        content = Path(executable).read_text().strip()
        if content == "broken":
            raise ProcessExecutionError(f"{executable} exited with code 126")
        return content


# ============================================================================
# Archive builders
# ============================================================================


def _add_file(entries: dict, path: str, content: str, mode: int = 0o644):
    entries[path] = (content.encode(), mode)


def node_archive_entries(
    long_name: str,
    version: str = NODE_VERSION,
    windows: bool = False,
    with_npm: bool = False,
    nested_root: Optional[str] = None,
) -> dict:
    """
    Files of a fake node archive, keyed by archive path.

    Args:
        long_name: Top-level folder name (e.g. node-v18.17.1-linux-x64)
        version: Version the fake binary reports
        windows: Use the Windows layout (node.exe at the top, node_modules beside it)
        with_npm: Include a bundled npm
        nested_root: Put the binary somewhere unconventional below this folder
    """
    entries: dict = {}
    if nested_root:
        binary = "node.exe" if windows else "node"
        _add_file(entries, f"{nested_root}/deep/{binary}", version, 0o755)
        _add_file(entries, f"{nested_root}/README.md", "custom build")
        return entries

    if windows:
        _add_file(entries, f"{long_name}/node.exe", version, 0o755)
        modules = f"{long_name}/node_modules"
    else:
        _add_file(entries, f"{long_name}/bin/node", version, 0o755)
        _add_file(entries, f"{long_name}/include/node/node.h", "// header")
        modules = f"{long_name}/lib/node_modules"

    if with_npm:
        _add_file(entries, f"{modules}/npm/package.json", '{"name": "npm"}')
        _add_file(entries, f"{modules}/npm/bin/npm", "#!/bin/sh\n")
        _add_file(entries, f"{modules}/npm/bin/npm.cmd", "@echo off\n")
        _add_file(entries, f"{modules}/npm/bin/npx", "#!/bin/sh\n")
        _add_file(entries, f"{modules}/npm/bin/npm-cli.js", "// cli\n")

    return entries


def build_tar_gz(entries: dict) -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for path, (content, mode) in sorted(entries.items()):
            info = tarfile.TarInfo(path)
            info.size = len(content)
            info.mode = mode
            tar.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


def build_zip(entries: dict) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        for path, (content, mode) in sorted(entries.items()):
            info = zipfile.ZipInfo(path)
            info.external_attr = (0o100000 | mode) << 16
            zf.writestr(info, content)
    return buffer.getvalue()


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: marks tests as fast unit tests")
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture
def linux_platform() -> NodePlatform:
    return NodePlatform(PlatformInfo("linux", "x64", "glibc"))


@pytest.fixture
def windows_platform() -> NodePlatform:
    return NodePlatform(PlatformInfo("windows", "x64"))


@pytest.fixture
def cache_dir(tmp_path) -> Path:
    return tmp_path / "cache"


@pytest.fixture
def install_dir(tmp_path) -> Path:
    return tmp_path / "project" / "target"


@pytest.fixture
def make_config(install_dir, cache_dir) -> Callable[[NodePlatform], InstallConfig]:
    """Factory for install configurations on a given platform."""

    def factory(platform: NodePlatform) -> InstallConfig:
        return InstallConfig(
            install_directory=install_dir,
            platform=platform,
            cache_resolver=DirectoryCacheResolver(cache_dir),
        )

    return factory


@pytest.fixture
def linux_archive() -> bytes:
    """tar.gz of node v18.17.1 for linux-x64 with bundled npm."""
    return build_tar_gz(
        node_archive_entries(f"node-{NODE_VERSION}-linux-x64", with_npm=True)
    )


@pytest.fixture
def windows_archive() -> bytes:
    """zip of node v18.17.1 for win-x64 with bundled npm."""
    return build_zip(
        node_archive_entries(f"node-{NODE_VERSION}-win-x64", windows=True, with_npm=True)
    )


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def isolated_home(tmp_path, monkeypatch) -> Path:
    """Create isolated home directory for tests."""
    fake_home = tmp_path / "home"
    fake_home.mkdir()

    monkeypatch.setenv("HOME", str(fake_home))
    monkeypatch.setenv("USERPROFILE", str(fake_home))
    monkeypatch.delenv("NODEKIT_CACHE_DIR", raising=False)

    return fake_home


@pytest.fixture
def make_downloader() -> Callable[..., FakeDownloader]:
    """Factory for fake downloaders: make_downloader(payload, ...)."""
    return FakeDownloader


class ArchiveBuilder:
    """Builds fake node archives in memory."""

    entries = staticmethod(node_archive_entries)
    tar_gz = staticmethod(build_tar_gz)
    zip = staticmethod(build_zip)


@pytest.fixture
def archive_builder() -> ArchiveBuilder:
    return ArchiveBuilder()
