"""
Filmstrip job.

A filmstrip is 11 frames of the source tiled left-to-right into one JPEG:
frames at 0%, 10%, ..., 90% of the duration plus one near the end.

The near-end frame is backed off from the exact end, since decoders often
fail on the final frames of a stream:
- generic sources seek to max(duration - 10s, 0) and decode the stream in
  reverse, keeping the last decodable frame
- MXF sources cut the last frame (index frame_count - 1) with bmxtranswrap

MXF frames are always cut to a one-frame temporary MXF first and then
decoded with ffmpeg.

Design rules:
- Every frame is an independent tool run; successes are counted
- All 11 frames are required unless ignore_missing_frames is set, in which
  case at least one is
- Temporary frames are removed on every exit path
"""

import logging
import os
from pathlib import Path
from typing import List, Tuple

from .errors import JobError
from .models import JobContext

logger = logging.getLogger(__name__)


FRAME_COUNT = 11
TAIL_BACKOFF_SECONDS = 10.0
FRAME_PATTERN = "temp%02d.bmp"


def frame_seek_positions(duration: float) -> List[Tuple[float, bool]]:
    """
    (seek seconds, reverse) for each frame of a generic source.

    Only the last position is decoded in reverse.
    """
    positions = [(duration * i / 10, False) for i in range(FRAME_COUNT - 1)]
    positions.append((max(duration - TAIL_BACKOFF_SECONDS, 0.0), True))
    return positions


def mxf_frame_indices(frame_count: int) -> List[int]:
    """Frame index for each frame of an MXF source (0-based, truncated)."""
    last = frame_count - 1
    return [last * i // 10 for i in range(FRAME_COUNT - 1)] + [last]


def _frame_path(temp_dir: Path, index: int, suffix: str = "bmp") -> Path:
    return temp_dir / f"temp{index:02d}.{suffix}"


def _has_output(path: Path) -> bool:
    try:
        return path.stat().st_size > 0
    except OSError:
        return False


def _discard(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass


def _cleanup_temporaries(temp_dir: Path) -> None:
    for index in range(FRAME_COUNT):
        for suffix in ("bmp", "mxf"):
            try:
                _frame_path(temp_dir, index, suffix).unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning(f"Could not remove temporary frame: {e}")


class FilmstripBuilder:
    """
    Builds one filmstrip.

    Args:
        source: Source media file
        output: Where the tiled JPEG is written
        context: Job context (tools and configuration)
    """

    def __init__(self, source: Path, output: Path, context: JobContext):
        self.source = source
        self.output = output
        self.context = context
        self.temp_dir = context.config.temp_dir
        self.is_mxf = source.suffix.lower() == ".mxf"

    def build(self) -> None:
        logger.info(f"Creating filmstrip for: {self.source}")
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        # Frames left over from an interrupted run must not count as extracted
        _cleanup_temporaries(self.temp_dir)

        try:
            if self.is_mxf:
                extracted = self._extract_mxf_frames()
            else:
                extracted = self._extract_frames()

            self._require_frames(extracted)
            self._renumber(extracted)

            frame_pattern = str(self.temp_dir / FRAME_PATTERN)
            self.context.ffmpeg.tile_frames(
                frame_pattern,
                self.output,
                columns=FRAME_COUNT,
                width=self.context.config.img_width,
            ).raise_for_status()
        finally:
            _cleanup_temporaries(self.temp_dir)

        logger.info(f"Filmstrip created successfully: {self.output}")

    # -------------------------------------------------------------------------
    # Frame extraction
    # -------------------------------------------------------------------------

    def _extract_frames(self) -> List[int]:
        duration = self.context.ffmpeg.probe_duration(self.source)
        if duration <= 0:
            raise JobError(f"Could not determine duration for: {self.source}")

        extracted = []
        for index, (seek, reverse) in enumerate(frame_seek_positions(duration)):
            frame = _frame_path(self.temp_dir, index)
            result = self.context.ffmpeg.extract_frame(self.source, frame, seek, reverse)
            if result.ok and _has_output(frame):
                extracted.append(index)
            else:
                logger.debug(f"Frame {index} of {self.source} failed: {result.failure_reason()}")
                # A failed run may leave a truncated frame inside the tiled sequence
                _discard(frame)
        return extracted

    def _extract_mxf_frames(self) -> List[int]:
        if not self.context.bmx.has_bmxtranswrap:
            raise JobError(f"bmxtranswrap not available, cannot create filmstrip for: {self.source}")

        frame_count = self.context.bmx.frame_count(self.source)
        if not frame_count or frame_count <= 0:
            raise JobError(f"Could not determine duration for: {self.source}")

        extracted = []
        for index, position in enumerate(mxf_frame_indices(frame_count)):
            if self._extract_mxf_frame(index, position):
                extracted.append(index)
        return extracted

    def _extract_mxf_frame(self, index: int, position: int) -> bool:
        cut = _frame_path(self.temp_dir, index, "mxf")
        frame = _frame_path(self.temp_dir, index)
        try:
            result = self.context.bmx.cut_frame(self.source, position, cut)
            if not result.ok:
                logger.debug(f"Frame {index} of {self.source} failed: {result.failure_reason()}")
                return False
            result = self.context.ffmpeg.extract_frame(cut, frame, reverse=True)
            if result.ok and _has_output(frame):
                return True
            logger.debug(f"Frame {index} of {self.source} failed: {result.failure_reason()}")
            _discard(frame)
            return False
        finally:
            _discard(cut)

    # -------------------------------------------------------------------------
    # Tiling
    # -------------------------------------------------------------------------

    def _require_frames(self, extracted: List[int]) -> None:
        if len(extracted) == FRAME_COUNT:
            return
        if self.context.config.ignore_missing_frames and extracted:
            logger.warning(
                f"Only {len(extracted)} of {FRAME_COUNT} frames extracted for: {self.source}, "
                f"tiling anyway"
            )
            return
        raise JobError(f"Only {len(extracted)} of {FRAME_COUNT} frames extracted for: {self.source}")

    def _renumber(self, extracted: List[int]) -> None:
        """Close gaps so the image sequence is contiguous from temp00."""
        for new_index, old_index in enumerate(extracted):
            if new_index != old_index:
                os.replace(
                    _frame_path(self.temp_dir, old_index),
                    _frame_path(self.temp_dir, new_index),
                )


def create_filmstrip(source: Path, output: Path, context: JobContext) -> None:
    FilmstripBuilder(source, output, context).build()
