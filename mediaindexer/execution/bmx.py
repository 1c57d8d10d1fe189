"""
MXF tool command layer (bmxtranswrap, mxf2raw).

Both tools are optional. When they are absent, MXF filmstrips and mxfinfo
dumps fail per file; every other artifact type is unaffected.
"""

import logging
import re
from pathlib import Path
from typing import Optional

from .tools import ToolResult, ToolRunner

logger = logging.getLogger(__name__)


BMXTRANSWRAP = "bmxtranswrap"
MXF2RAW = "mxf2raw"

# Start past the end so bmxtranswrap only reports the essence duration
_SEEK_TO_END = str(2 ** 63 - 1)

_FRAME_COUNT_PATTERN = re.compile(r"input duration (\d+)")


def parse_frame_count(text: str) -> Optional[int]:
    """Parse `input duration N` from bmxtranswrap output."""
    match = _FRAME_COUNT_PATTERN.search(text or "")
    return int(match.group(1)) if match else None


class BmxTools:
    """bmxtranswrap and mxf2raw invocations."""

    def __init__(self, runner: ToolRunner):
        self.runner = runner

    @property
    def has_bmxtranswrap(self) -> bool:
        return self.runner.available(BMXTRANSWRAP)

    @property
    def has_mxf2raw(self) -> bool:
        return self.runner.available(MXF2RAW)

    def frame_count(self, source: Path) -> Optional[int]:
        """
        Number of essence frames in an OP1a MXF file.

        bmxtranswrap exits non-zero for this probe on some builds, so only the
        reported duration is used.

        Returns:
            Frame count, or None if the tool is missing or reports none
        """
        result = self.runner.run(BMXTRANSWRAP, [
            "-t", "op1a",
            "--start", _SEEK_TO_END,
            "--dur", "0",
            "--check-end",
            "--check-complete",
            "--disable-audio",
            "--disable-data",
            str(source),
        ])
        if result.not_found:
            logger.debug(f"bmxtranswrap not available, no frame count for {source}")
            return None
        return parse_frame_count(result.output)

    def cut_frame(self, source: Path, frame: int, output: Path) -> ToolResult:
        """Rewrap the single frame at index `frame` into a one-frame MXF."""
        return self.runner.run(BMXTRANSWRAP, [
            "--log-level", "0",
            "-t", "op1a",
            "--start", str(frame),
            "--dur", "1",
            "--check-complete",
            "-o", str(output),
            "--disable-audio",
            "--disable-data",
            str(source),
        ])

    def container_info(self, source: Path, output: Path) -> ToolResult:
        """Write mxf2raw's XML container report to `output`."""
        return self.runner.run(MXF2RAW, [
            "--info",
            "--info-format", "xml",
            "--info-file", str(output),
            "--check-complete",
            "--check-end",
            str(source),
        ])
