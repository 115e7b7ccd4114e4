"""
Network download manager with progress tracking and retry logic.

This module provides the file downloader used to fill the archive cache:
- HTTP/HTTPS downloads with TLS verification
- Optional HTTP basic authentication for private mirrors
- Progress reporting (bytes, percentage, speed, ETA)
- Retry logic with exponential backoff for transport errors
- Downloads land in a '.part' file that is renamed only when complete,
  so an interrupted transfer never occupies the cache path
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

import requests
from requests.exceptions import HTTPError, RequestException

from nodekit.core.exceptions import DownloadError

logger = logging.getLogger(__name__)

PART_SUFFIX = ".part"


@dataclass
class DownloadProgress:
    """Progress information for a download."""

    bytes_downloaded: int
    total_bytes: int
    percentage: float
    speed_bps: float  # bytes per second
    eta_seconds: float  # estimated time remaining

    def __str__(self) -> str:
        """Format progress for display."""
        return format_progress(self)


def download_file(
    url: str,
    destination: Union[str, Path],
    username: Optional[str] = None,
    password: Optional[str] = None,
    progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
    timeout: int = 30,
    max_retries: int = 3,
) -> Path:
    """
    Download file from URL to destination with retry logic.

    Args:
        url: URL to download from
        destination: Local path to save file
        username: Optional user name for HTTP basic authentication
        password: Optional password for HTTP basic authentication
        progress_callback: Optional callback for progress updates
        timeout: Request timeout in seconds
        max_retries: Maximum number of attempts for transport errors

    Returns:
        Path to downloaded file

    Raises:
        DownloadError: If download fails after retries
        ValueError: If URL or destination is invalid

    Example:
        >>> from nodekit.core.download import download_file
        >>> url = "https://nodejs.org/dist/v18.17.1/node-v18.17.1-linux-x64.tar.gz"
        >>> download_file(url, Path("cache/node.tar.gz"))
    """
    if not url:
        raise ValueError("URL cannot be empty")

    if not destination:
        raise ValueError("Destination path cannot be empty")

    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)

    auth = (username, password or "") if username else None

    for attempt in range(max_retries):
        try:
            return _download_with_progress(
                url=url,
                destination=destination,
                auth=auth,
                progress_callback=progress_callback,
                timeout=timeout,
            )
        except HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            if status is not None and 400 <= status < 500:
                # Client errors (404, 401, ...) won't change on retry
                raise DownloadError(f"Could not download {url}: HTTP {status}") from e
            if attempt == max_retries - 1:
                raise DownloadError(
                    f"Download failed after {max_retries} attempts: {e}"
                ) from e
            _backoff(attempt, e)
        except RequestException as e:
            if attempt == max_retries - 1:
                raise DownloadError(
                    f"Download failed after {max_retries} attempts: {e}"
                ) from e
            _backoff(attempt, e)
        except OSError as e:
            raise DownloadError(f"Could not write {destination}: {e}") from e

    raise DownloadError(f"Download of {url} was not attempted (max_retries={max_retries})")


def _backoff(attempt: int, error: Exception):
    backoff_seconds = 2**attempt
    logger.warning(
        f"Download attempt {attempt + 1} failed: {error}. "
        f"Retrying in {backoff_seconds}s..."
    )
    time.sleep(backoff_seconds)


def _download_with_progress(
    url: str,
    destination: Path,
    auth: Optional[tuple],
    progress_callback: Optional[Callable[[DownloadProgress], None]],
    timeout: int,
) -> Path:
    """
    Perform download with streaming and progress updates.

    This is an internal function called by download_file().

    Raises:
        RequestException: If HTTP request fails
        OSError: If the file cannot be written
    """
    logger.info(f"Downloading from {url}")

    part_path = destination.with_name(destination.name + PART_SUFFIX)

    with requests.get(
        url, auth=auth, stream=True, timeout=timeout, allow_redirects=True
    ) as response:
        response.raise_for_status()

        content_length = response.headers.get("content-length")
        total_size = int(content_length) if content_length else 0

        downloaded = 0
        start_time = time.time()
        last_progress_time = start_time

        try:
            with open(part_path, "wb") as f:
                for chunk in response.iter_content(chunk_size=8192):
                    if not chunk:
                        continue
                    f.write(chunk)
                    downloaded += len(chunk)

                    # Report progress (max once per 0.5 seconds to avoid spam)
                    current_time = time.time()
                    if progress_callback and (
                        current_time - last_progress_time >= 0.5
                        or downloaded == total_size
                    ):
                        progress_callback(
                            _make_progress(downloaded, total_size, start_time, current_time)
                        )
                        last_progress_time = current_time
        except Exception:
            part_path.unlink(missing_ok=True)
            raise

    if total_size and downloaded < total_size:
        part_path.unlink(missing_ok=True)
        raise RequestException(
            f"Connection closed after {downloaded} of {total_size} bytes"
        )

    part_path.replace(destination)
    logger.info(f"Download complete: {destination}")
    return destination


def _make_progress(
    downloaded: int, total_size: int, start_time: float, current_time: float
) -> DownloadProgress:
    elapsed = current_time - start_time
    speed = downloaded / elapsed if elapsed > 0 else 0
    remaining = total_size - downloaded if total_size > 0 else 0
    eta = remaining / speed if speed > 0 else 0

    return DownloadProgress(
        bytes_downloaded=downloaded,
        total_bytes=total_size if total_size > 0 else downloaded,
        percentage=(downloaded / total_size * 100) if total_size > 0 else 0,
        speed_bps=speed,
        eta_seconds=eta,
    )


def format_progress(progress: DownloadProgress) -> str:
    """
    Format progress for display.

    Example:
        >>> progress = DownloadProgress(52428800, 104857600, 50.0, 1048576, 50)
        >>> print(format_progress(progress))
        50.0/100.0 MB (50.0%) at 1.0 MB/s ETA: 50s
    """
    mb_downloaded = progress.bytes_downloaded / 1024 / 1024
    mb_total = progress.total_bytes / 1024 / 1024
    speed_mbps = progress.speed_bps / 1024 / 1024

    if progress.percentage > 0:
        return (
            f"{mb_downloaded:.1f}/{mb_total:.1f} MB "
            f"({progress.percentage:.1f}%) "
            f"at {speed_mbps:.1f} MB/s "
            f"ETA: {progress.eta_seconds:.0f}s"
        )
    else:
        # Unknown total size
        return f"{mb_downloaded:.1f} MB " f"at {speed_mbps:.1f} MB/s"


class FileDownloader:
    """
    Downloads files into the cache, logging progress as it goes.

    Args:
        timeout: Request timeout in seconds
        max_retries: Attempts per download for transport errors
    """

    def __init__(self, timeout: int = 30, max_retries: int = 3):
        self.timeout = timeout
        self.max_retries = max_retries

    def download(
        self,
        url: str,
        destination: Union[str, Path],
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> None:
        """
        Download url to destination.

        Raises:
            DownloadError: If the download fails
        """
        download_file(
            url,
            destination,
            username=username,
            password=password,
            progress_callback=self._log_progress,
            timeout=self.timeout,
            max_retries=self.max_retries,
        )

    @staticmethod
    def _log_progress(progress: DownloadProgress):
        logger.debug(f"Downloaded {progress}")
