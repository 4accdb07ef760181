"""Daemon lock probe.

A running daemon holds an exclusive ``flock`` on ``<root>/daemon.lock``
for its whole lifetime.  This module only ever *probes* that lock: it
never keeps it, so probing cannot block a daemon from starting later.
"""

from __future__ import annotations

import fcntl
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

LOCK_FILENAME = "daemon.lock"


def lock_path(config_root: Path) -> Path:
    return config_root / LOCK_FILENAME


def is_locked(config_root: Path) -> bool:
    """Return True if another process holds the daemon lock for *config_root*.

    A missing lock file means no daemon has ever run there.  Otherwise a
    non-blocking exclusive lock is attempted and, on success, released
    immediately.
    """
    path = lock_path(config_root)
    if not path.is_file():
        return False

    try:
        handle = path.open("rb")
    except OSError:
        logger.debug("Cannot open lock file %s", path, exc_info=True)
        return False

    with handle:
        try:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            logger.debug("Daemon lock held: %s", path)
            return True
        fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
    return False
