"""
Write-in-progress detection.

Decides whether a source file is probably still being written by an external
producer, so that a half-copied file is not turned into an artifact.

Two checks, in order:
1. lsof: any process holding the file open for writing (access mode w or u)
2. size sampling: the size changes across a short sleep

The lsof check is skipped when lsof is not installed or fails; size
sampling always runs when lsof did not already report a writer.

This is a heuristic and racy by construction: a producer may start or
resume writing right after the check returns False. The staleness check is
re-evaluated every pass, so a file caught mid-write is regenerated once its
modification time settles.
"""

import logging
import os
import time
from pathlib import Path
from typing import Callable, Optional

from ..execution.tools import ToolRunner

logger = logging.getLogger(__name__)


LSOF = "lsof"
LSOF_TIMEOUT = 5.0

# lsof -F access field values for write and read/write handles
WRITE_ACCESS_FIELDS = ("aw", "au")


def has_write_access(lsof_output: str) -> bool:
    """True if `lsof -F a` output lists a handle open for writing."""
    return any(line.strip() in WRITE_ACCESS_FIELDS for line in (lsof_output or "").splitlines())


class WriteInProgressDetector:
    """
    Heuristic "is someone still writing this file" check.

    Args:
        sample_interval: Seconds between the two size samples
        use_lsof: Consult lsof when it is installed
        runner: Tool runner used for lsof
        sleep: Sleep function (replaced in tests)
    """

    def __init__(
        self,
        sample_interval: float = 0.1,
        use_lsof: bool = True,
        runner: Optional[ToolRunner] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.sample_interval = sample_interval
        self.runner = runner or ToolRunner()
        self.use_lsof = use_lsof and self.runner.available(LSOF)
        self._sleep = sleep

        if use_lsof and not self.use_lsof:
            logger.debug("lsof not available, using size sampling only")

    def is_in_use(self, path: Path) -> bool:
        if not path.is_file():
            return False

        if self.use_lsof and self._open_for_writing(path):
            logger.debug(f"File {path} is open for writing (detected by lsof)")
            return True

        return self._size_changing(path)

    def _open_for_writing(self, path: Path) -> bool:
        result = self.runner.run(LSOF, ["-F", "a", "--", str(path)], timeout=LSOF_TIMEOUT)
        if result.not_found or result.timed_out:
            logger.debug(f"lsof check unavailable for {path}: {result.failure_reason()}")
            return False
        # lsof exits 1 when no process has the file open
        return has_write_access(result.stdout)

    def _size_changing(self, path: Path) -> bool:
        try:
            size_before = os.stat(path).st_size
            self._sleep(self.sample_interval)
            size_after = os.stat(path).st_size
        except FileNotFoundError:
            return False

        if size_before != size_after:
            logger.debug(f"File {path} size changed ({size_before} -> {size_after}) - still being written")
            return True

        logger.debug(f"File {path} appears to be stable - not being written")
        return False
