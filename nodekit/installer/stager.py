"""
Archive staging: unpack a node archive and move its binary into place.

The layout inside node archives is not fully predictable (custom 'provided'
archives in particular), so the binary is first looked for at its
conventional location and then searched for in the whole extracted tree.
"""

import logging
import shutil
from pathlib import Path
from typing import Optional

from nodekit.core.exceptions import (
    ArchiveExtractionError,
    BinaryNotFoundError,
    FilesystemError,
)
from nodekit.core.filesystem import (
    ArchiveExtractor,
    find_file,
    make_executable,
    remove_file,
    safe_rmtree,
)

logger = logging.getLogger(__name__)


class ArchiveStager:
    """
    Extracts archives into a scratch directory and relocates the binary.

    Example:
        >>> stager = ArchiveStager()
        >>> stager.stage(
        ...     archive=Path("cache/node-v18.17.1-linux-x64.tar.gz"),
        ...     temp_dir=Path("target/node/tmp"),
        ...     conventional_path="node-v18.17.1-linux-x64/bin/node",
        ...     binary_name="node",
        ...     destination=Path("target/node/node"),
        ... )
    """

    def __init__(self, extractor: Optional[ArchiveExtractor] = None):
        self.extractor = extractor or ArchiveExtractor()

    def stage(
        self,
        archive: Path,
        temp_dir: Path,
        conventional_path: str,
        binary_name: str,
        destination: Path,
        all_users: bool = True,
    ) -> Path:
        """
        Extract archive, locate the binary, and move it to destination.

        The temp directory is left in place so bundled files can still be
        copied out of it; call cleanup() afterwards.

        Args:
            archive: Downloaded archive
            temp_dir: Scratch directory to extract into
            conventional_path: Expected binary location relative to temp_dir
            binary_name: File name to search for if it's not there
            destination: Final path of the binary
            all_users: Make the binary executable for everyone, not just the owner

        Returns:
            destination

        Raises:
            ArchiveExtractionError: If extraction fails
            BinaryNotFoundError: If the archive holds no binary
            FilesystemError: If the binary cannot be moved or made executable
        """
        self.extract(archive, temp_dir)
        binary = self.locate_binary(temp_dir, conventional_path, binary_name)
        self.place_binary(binary, destination)
        make_executable(destination, all_users=all_users)
        return destination

    def extract(self, archive: Path, temp_dir: Path) -> None:
        """
        Extract archive into temp_dir.

        If the archive turns out to be truncated (an interrupted download),
        the archive and temp_dir are deleted before the error is re-raised so
        the next attempt downloads it again.
        """
        logger.info(f"Unpacking {archive} into {temp_dir}")
        try:
            self.extractor.extract(archive, temp_dir)
        except ArchiveExtractionError as e:
            if e.source_incomplete:
                logger.error(
                    f"The archive file {archive} is corrupted and will be deleted. "
                    "Please try the build again."
                )
                self._discard_corrupt_download(archive, temp_dir)
            raise

    def locate_binary(self, temp_dir: Path, conventional_path: str, binary_name: str) -> Path:
        """
        Find the binary inside the extracted tree.

        Raises:
            BinaryNotFoundError: If no file named binary_name exists anywhere
        """
        expected = temp_dir / conventional_path
        if expected.is_file():
            return expected

        logger.debug(f"{expected} not found, searching {temp_dir} for {binary_name}")
        found = find_file(temp_dir, binary_name)
        if found is None:
            raise BinaryNotFoundError(expected)
        return found

    def place_binary(self, source: Path, destination: Path) -> None:
        """
        Move source to destination, deleting whatever is at destination first.

        Raises:
            FilesystemError: If the old file cannot be deleted or the move fails
        """
        logger.info(f"Copying node binary from {source} to {destination}")

        if destination.exists() or destination.is_symlink():
            try:
                remove_file(destination)
            except FilesystemError as e:
                raise FilesystemError(
                    f"Could not install Node: Was not allowed to delete {destination}"
                ) from e

        destination.parent.mkdir(parents=True, exist_ok=True)
        try:
            shutil.move(str(source), str(destination))
        except OSError as e:
            raise FilesystemError(
                f"Could not install Node: Was not allowed to rename {source} to {destination}"
            ) from e

    def cleanup(self, temp_dir: Path, require_prefix: Optional[Path] = None) -> bool:
        """
        Delete the temp directory.

        A failure, or a directory outside require_prefix, is logged and the
        directory is left behind.

        Returns:
            True if the directory is gone
        """
        if not temp_dir.exists():
            return True

        logger.debug(f"Deleting temporary directory {temp_dir}")
        try:
            safe_rmtree(temp_dir, require_prefix=require_prefix)
        except (FilesystemError, ValueError) as e:
            logger.error(f"Could not delete temporary directory {temp_dir}: {e}")
            return False
        return True

    def _discard_corrupt_download(self, archive: Path, temp_dir: Path) -> None:
        try:
            remove_file(archive)
        except FilesystemError as e:
            logger.warning(f"Failed to remove corrupt archive: {e}")

        self.cleanup(temp_dir)
