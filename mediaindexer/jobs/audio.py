"""
Audio jobs: waveform pictures and EBU R128 loudness reports.

Every audio job first treats the source as two mono tracks (merged into
stereo) and, if that fails, retries it as a single stereo track.
"""

import logging
from pathlib import Path
from typing import Callable

from ..execution.errors import ToolError
from ..execution.ffmpeg import extract_loudness_frames, extract_loudness_summary
from .errors import JobError
from .models import JobContext

logger = logging.getLogger(__name__)


def with_track_fallback(source: Path, attempt: Callable[[bool], None]) -> None:
    """
    Run attempt(dual_track=True), then attempt(dual_track=False).

    Raises:
        The error of the single-track attempt if both fail
    """
    try:
        attempt(True)
        return
    except (JobError, ToolError) as e:
        logger.debug(f"Dual-track attempt failed for {source}: {e}; retrying as single track")
    attempt(False)


def create_waveform(source: Path, output: Path, context: JobContext) -> None:
    logger.info(f"Creating waveform for: {source}")

    def attempt(dual_track: bool) -> None:
        context.ffmpeg.render_waveform(
            source, output, context.config.img_width, dual_track
        ).raise_for_status()

    with_track_fallback(source, attempt)


def _loudness_report(
    source: Path,
    output: Path,
    context: JobContext,
    verbose: bool,
    extract: Callable[[str], str],
) -> None:
    def attempt(dual_track: bool) -> None:
        result = context.ffmpeg.analyze_loudness(source, dual_track, verbose)
        result.raise_for_status()
        report = extract(result.output)
        if not report:
            raise JobError(f"ffmpeg produced no loudness report for {source.name}")
        output.write_text(report, encoding="utf-8")

    with_track_fallback(source, attempt)


def create_loudness_summary(source: Path, output: Path, context: JobContext) -> None:
    logger.info(f"Creating EBU R128 summary for: {source}")
    _loudness_report(source, output, context, verbose=False, extract=extract_loudness_summary)


def create_loudness_log(source: Path, output: Path, context: JobContext) -> None:
    logger.info(f"Creating EBU R128 log for: {source}")
    _loudness_report(source, output, context, verbose=True, extract=extract_loudness_frames)
