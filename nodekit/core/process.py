"""
Running external executables and capturing their output.
"""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Union

from nodekit.core.exceptions import ProcessExecutionError

logger = logging.getLogger(__name__)


class ProcessExecutor:
    """
    Runs an executable to completion and returns what it printed.

    Args:
        timeout: Seconds to wait before giving up on the process
    """

    def __init__(self, timeout: Optional[float] = 30):
        self.timeout = timeout

    def run(
        self,
        executable: Union[str, Path],
        args: List[str],
        cwd: Optional[Path] = None,
    ) -> str:
        """
        Execute a command and return its stripped standard output.

        Args:
            executable: Program to run
            args: Arguments passed to the program
            cwd: Working directory for the process

        Returns:
            Standard output with surrounding whitespace removed

        Raises:
            ProcessExecutionError: If the process cannot be started, times out,
                or exits with a non-zero status

        Example:
            >>> ProcessExecutor().run(Path('target/node/node'), ['--version'])
            'v18.17.1'
        """
        cmd = [str(executable), *args]
        logger.debug(f"Executing: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
                cwd=cwd,
            )
        except subprocess.TimeoutExpired as e:
            raise ProcessExecutionError(
                f"{executable} timed out after {self.timeout} seconds"
            ) from e
        except OSError as e:
            raise ProcessExecutionError(f"Could not execute {executable}: {e}") from e

        if result.returncode != 0:
            raise ProcessExecutionError(
                f"{executable} exited with code {result.returncode}: "
                f"{result.stderr.strip()}"
            )

        return result.stdout.strip()
