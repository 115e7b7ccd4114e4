"""
In-process mutual exclusion for node installations.

Every NodeInstaller.install() call in a process goes through the same lock,
so two installers sharing an install directory never interleave their
download, extraction and move steps.

There is no cross-process locking: separate processes targeting the same
install directory are not coordinated.

Usage:
    from nodekit.core.locking import install_lock

    with install_lock():
        # Safely modify the install directory
        pass
"""

import logging
import threading
from contextlib import contextmanager

logger = logging.getLogger(__name__)

_INSTALL_LOCK = threading.Lock()


@contextmanager
def install_lock():
    """
    Hold the process-wide install lock for the duration of the block.

    Yields:
        None
    """
    logger.debug("Waiting for install lock")
    _INSTALL_LOCK.acquire()
    try:
        logger.debug("Acquired install lock")
        yield
    finally:
        _INSTALL_LOCK.release()
        logger.debug("Released install lock")


def is_install_locked() -> bool:
    """Return True if some caller currently holds the shared install lock."""
    return _INSTALL_LOCK.locked()
