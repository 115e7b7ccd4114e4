"""
Unit tests for download module.

Tests download functionality with mocked network requests.
"""

import base64

import pytest
import responses
from unittest.mock import patch

from nodekit.core.download import (
    DownloadProgress,
    FileDownloader,
    download_file,
    format_progress,
)
from nodekit.core.exceptions import DownloadError

URL = "https://nodejs.org/dist/v18.17.1/node-v18.17.1-linux-x64.tar.gz"


class TestFormatProgress:
    """Test format_progress function."""

    def test_format_with_known_size(self):
        progress = DownloadProgress(
            bytes_downloaded=10485760,  # 10 MB
            total_bytes=104857600,  # 100 MB
            percentage=10.0,
            speed_bps=2097152,  # 2 MB/s
            eta_seconds=45,
        )

        result = format_progress(progress)

        assert "10.0/100.0 MB" in result
        assert "(10.0%)" in result
        assert "2.0 MB/s" in result
        assert "ETA: 45s" in result

    def test_format_with_unknown_size(self):
        progress = DownloadProgress(
            bytes_downloaded=10485760,
            total_bytes=10485760,
            percentage=0.0,
            speed_bps=1048576,
            eta_seconds=0,
        )

        result = str(progress)

        assert "10.0 MB" in result
        assert "1.0 MB/s" in result
        assert "ETA" not in result


class TestDownloadFile:
    """Test download_file function."""

    @responses.activate
    def test_simple_download(self, tmp_path):
        content = b"archive content"
        destination = tmp_path / "cache" / "node.tar.gz"

        responses.add(
            responses.GET,
            URL,
            body=content,
            status=200,
            headers={"content-length": str(len(content))},
        )

        result = download_file(URL, destination)

        assert result == destination
        assert destination.read_bytes() == content
        assert not (tmp_path / "cache" / "node.tar.gz.part").exists()

    @responses.activate
    def test_basic_auth(self, tmp_path):
        responses.add(responses.GET, URL, body=b"data", status=200)

        download_file(URL, tmp_path / "node.tar.gz", username="user", password="secret")

        expected = "Basic " + base64.b64encode(b"user:secret").decode()
        assert responses.calls[0].request.headers["Authorization"] == expected

    @responses.activate
    def test_no_auth_without_username(self, tmp_path):
        responses.add(responses.GET, URL, body=b"data", status=200)

        download_file(URL, tmp_path / "node.tar.gz")

        assert "Authorization" not in responses.calls[0].request.headers

    @responses.activate
    def test_client_error_is_not_retried(self, tmp_path):
        destination = tmp_path / "node.tar.gz"
        responses.add(responses.GET, URL, status=404)

        with pytest.raises(DownloadError, match="HTTP 404"):
            download_file(URL, destination)

        assert len(responses.calls) == 1
        assert not destination.exists()

    @responses.activate
    @patch("nodekit.core.download.time.sleep")
    def test_server_error_is_retried(self, mock_sleep, tmp_path):
        destination = tmp_path / "node.tar.gz"
        responses.add(responses.GET, URL, status=503)

        with pytest.raises(DownloadError, match="after 3 attempts"):
            download_file(URL, destination, max_retries=3)

        assert len(responses.calls) == 3
        assert mock_sleep.call_count == 2
        assert not destination.exists()

    @responses.activate
    @patch("nodekit.core.download.time.sleep")
    def test_retry_then_success(self, mock_sleep, tmp_path):
        destination = tmp_path / "node.tar.gz"
        responses.add(responses.GET, URL, status=500)
        responses.add(responses.GET, URL, body=b"data", status=200)

        download_file(URL, destination)

        assert destination.read_bytes() == b"data"
        mock_sleep.assert_called_once_with(1)

    @responses.activate
    def test_progress_callback(self, tmp_path):
        content = b"x" * 100000
        responses.add(
            responses.GET,
            URL,
            body=content,
            status=200,
            headers={"content-length": str(len(content))},
        )

        progress_updates = []
        download_file(URL, tmp_path / "node.tar.gz", progress_callback=progress_updates.append)

        assert len(progress_updates) > 0
        assert progress_updates[-1].bytes_downloaded == len(content)
        assert progress_updates[-1].percentage == 100.0

    def test_empty_url(self, tmp_path):
        with pytest.raises(ValueError, match="URL cannot be empty"):
            download_file("", tmp_path / "node.tar.gz")


class TestFileDownloader:
    @responses.activate
    def test_download(self, tmp_path):
        destination = tmp_path / "node.tar.gz"
        responses.add(responses.GET, URL, body=b"data", status=200)

        FileDownloader().download(URL, destination, "user", "secret")

        assert destination.read_bytes() == b"data"

    @responses.activate
    def test_download_error(self, tmp_path):
        responses.add(responses.GET, URL, status=401)

        with pytest.raises(DownloadError):
            FileDownloader(max_retries=1).download(URL, tmp_path / "node.tar.gz")
