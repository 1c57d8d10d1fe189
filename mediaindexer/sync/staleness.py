"""
Staleness check: does a source file need (re)processing?

The durable "already synced" record is the artifact itself plus its
modification time, which is copied from the source after every successful
job. There is no index or database.

A source needs processing when:
- it is a regular file larger than MIN_SOURCE_SIZE, and
- its artifact is missing or empty, or the modification times differ, and
- it is not currently being written

Modification times are compared at whole-second resolution. Equal times
are trusted even if the artifact is actually outdated (for example after a
restore from backup with preserved timestamps).
"""

import logging
import os
import stat
from pathlib import Path

from .in_use import WriteInProgressDetector

logger = logging.getLogger(__name__)


# Files this small are placeholders or stubs, never media
MIN_SOURCE_SIZE = 65536


def mtimes_match(source_mtime: float, destination_mtime: float) -> bool:
    return int(source_mtime) == int(destination_mtime)


def needs_processing(
    source: Path,
    destination: Path,
    detector: WriteInProgressDetector,
    min_size: int = MIN_SOURCE_SIZE,
) -> bool:
    """
    Decide whether `source` must be turned into `destination` now.

    Never raises: a file that vanishes or cannot be stat-ed is simply not
    processed this pass.
    """
    try:
        source_stat = os.stat(source, follow_symlinks=False)
        if not stat.S_ISREG(source_stat.st_mode):
            return False
        if source_stat.st_size <= min_size:
            return False

        try:
            destination_stat = os.stat(destination)
        except FileNotFoundError:
            destination_stat = None

        if destination_stat is None or destination_stat.st_size == 0:
            return not detector.is_in_use(source)

        if mtimes_match(source_stat.st_mtime, destination_stat.st_mtime):
            return False

        return not detector.is_in_use(source)

    except OSError as e:
        logger.debug(f"Cannot check {source}: {e}")
        return False
