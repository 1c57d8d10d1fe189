"""
FFmpeg / ffprobe command layer.

Builds and runs the ffmpeg and ffprobe invocations behind every generic
artifact type:
- metadata dumps (ffprobe, JSON or XML)
- duration probe (ffprobe, falling back to parsing `ffmpeg -i`)
- single-frame extraction and frame tiling (filmstrip)
- waveform rendering and EBU R128 loudness analysis

Design rules:
- Pure command construction, no filesystem policy (staging, cleanup and
  timestamp handling live in the job layer)
- Global options from configuration are prepended verbatim
- Every call returns a ToolResult; only probe_duration raises
"""

import logging
import re
from pathlib import Path
from typing import List, Optional, Sequence

from .errors import ToolError
from .tools import ToolResult, ToolRunner

logger = logging.getLogger(__name__)


FFMPEG = "ffmpeg"
FFPROBE = "ffprobe"

# Sections dumped for xmlinfo / jsoninfo
PROBE_SECTIONS = [
    "-show_format",
    "-show_programs",
    "-show_streams",
    "-show_chapters",
    "-show_error",
]

# Audio routing prefixes for waveform and loudness filters
DUAL_TRACK_FILTER = "amerge=inputs=2,"
SINGLE_TRACK_FILTER = "pan=stereo|c0=c0|c1=c1,"

WAVEFORM_HEIGHT = 64

# "Duration: 01:02:03.45" as printed by `ffmpeg -i`
_DURATION_PATTERN = re.compile(r"Duration:\s*(\d+):(\d{2}):(\d{2}(?:\.\d+)?)")


def audio_filter_prefix(dual_track: bool) -> str:
    """Filter prefix merging two mono tracks or panning one stereo track."""
    return DUAL_TRACK_FILTER if dual_track else SINGLE_TRACK_FILTER


def parse_ffmpeg_duration(text: str) -> Optional[float]:
    """
    Parse the first `Duration: HH:MM:SS.ss` line of ffmpeg output.

    Returns:
        Duration in seconds, or None if no duration line is present
        (e.g. `Duration: N/A` for streams).
    """
    match = _DURATION_PATTERN.search(text or "")
    if not match:
        return None
    hours, minutes, seconds = match.groups()
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


def extract_loudness_summary(text: str) -> str:
    """
    Return the `Summary:` block of an ebur128 run.

    ffmpeg prints the summary as one multi-line message: a "Summary:" line
    carrying the log prefix, followed by indented and blank lines. The block
    ends at the next prefixed log line or at the end of the output. The log
    prefix and trailing blank lines are dropped.

    Returns:
        The summary text, or an empty string if ffmpeg printed none
    """
    lines: List[str] = []
    in_summary = False
    for line in (text or "").splitlines():
        if not in_summary:
            if "Summary:" in line:
                in_summary = True
                lines.append(line[line.index("Summary:"):])
            continue
        if line.strip() and not line[0].isspace():
            break
        lines.append(line.rstrip())

    while lines and not lines[-1]:
        lines.pop()
    return "\n".join(lines) + "\n" if lines else ""


def extract_loudness_frames(text: str) -> str:
    """
    Return the per-frame ebur128 measurements of a verbose run.

    Keeps `[verbose] ... t: ...` lines with everything up to and including
    the level tag stripped. Empty string if no frame lines were logged.
    """
    frames = []
    for line in (text or "").splitlines():
        if "[verbose] " not in line:
            continue
        measurement = line.rsplit("[verbose] ", 1)[1]
        if "t: " in measurement:
            frames.append(measurement)
    return "\n".join(frames) + "\n" if frames else ""


class FFmpegTools:
    """
    ffmpeg and ffprobe invocations used by the job procedures.

    Args:
        runner: Tool runner (timeout-wrapped)
        ffmpeg_opts: Global options prepended to every ffmpeg call
        ffprobe_opts: Global options prepended to every ffprobe call
    """

    def __init__(
        self,
        runner: ToolRunner,
        ffmpeg_opts: Sequence[str] = (),
        ffprobe_opts: Sequence[str] = (),
    ):
        self.runner = runner
        self.ffmpeg_opts = list(ffmpeg_opts)
        self.ffprobe_opts = list(ffprobe_opts)

    def _ffmpeg(self, args: Sequence[str], stdout_path: Optional[Path] = None) -> ToolResult:
        return self.runner.run(FFMPEG, [*self.ffmpeg_opts, *args], stdout_path=stdout_path)

    def _ffprobe(self, args: Sequence[str], stdout_path: Optional[Path] = None) -> ToolResult:
        return self.runner.run(FFPROBE, [*self.ffprobe_opts, *args], stdout_path=stdout_path)

    # -------------------------------------------------------------------------
    # Metadata
    # -------------------------------------------------------------------------

    def dump_metadata(self, source: Path, print_format: str, output: Path) -> ToolResult:
        """Write the full ffprobe report of `source` to `output`."""
        args = [*PROBE_SECTIONS, "-print_format", print_format, str(source)]
        return self._ffprobe(args, stdout_path=output)

    def probe_duration(self, source: Path) -> float:
        """
        Determine media duration in seconds.

        Tries ffprobe's container duration first, then parses the banner of
        `ffmpeg -i` (which always exits non-zero without an output).

        Raises:
            ToolError: If neither tool reports a duration
        """
        result = self._ffprobe([
            "-show_entries", "format=duration",
            "-of", "default=noprint_wrappers=1:nokey=1",
            str(source),
        ])
        if result.ok:
            try:
                return float(result.stdout.strip().splitlines()[0])
            except (IndexError, ValueError):
                logger.debug(f"ffprobe reported no usable duration for {source}")

        fallback = self._ffmpeg(["-i", str(source)])
        if fallback.not_found:
            fallback.raise_for_status()
        duration = parse_ffmpeg_duration(fallback.output)
        if duration is None:
            raise ToolError(FFMPEG, f"could not determine duration of {source}")
        return duration

    # -------------------------------------------------------------------------
    # Filmstrip
    # -------------------------------------------------------------------------

    def extract_frame(
        self,
        source: Path,
        output: Path,
        seek_seconds: float = 0.0,
        reverse: bool = False,
    ) -> ToolResult:
        """
        Decode one frame at `seek_seconds` into a half-size bitmap.

        With reverse=True the stream is reversed from the seek point, which
        yields the last decodable frame instead of the first.
        """
        args: List[str] = ["-loglevel", "quiet"]
        if seek_seconds > 0:
            args.extend(["-ss", f"{seek_seconds:.3f}"])
        video_filter = ("reverse," if reverse else "") + "scale=dar*ih/2:ih/2"
        args.extend([
            "-i", str(source),
            "-an",
            # No -vsync / -fps_mode: one output frame, and ffmpeg 4.x lacks -fps_mode
            "-vf", video_filter,
            "-frames:v", "1",
            "-y", str(output),
        ])
        return self._ffmpeg(args)

    def tile_frames(self, frame_pattern: str, output: Path, columns: int, width: int) -> ToolResult:
        """Tile a numbered image sequence left-to-right into one image."""
        return self._ffmpeg([
            "-loglevel", "quiet",
            "-i", frame_pattern,
            "-vf", f"tile={columns}x1:color=lime,scale={width}:-1",
            "-qscale:v", "5",
            "-y", str(output),
        ])

    # -------------------------------------------------------------------------
    # Audio
    # -------------------------------------------------------------------------

    def render_waveform(self, source: Path, output: Path, width: int, dual_track: bool) -> ToolResult:
        """Render a white-on-black log-scale waveform picture."""
        audio_filter = (
            f"{audio_filter_prefix(dual_track)}"
            f"showwavespic=s={width}x{WAVEFORM_HEIGHT}:colors=white:scale=log,negate"
        )
        return self._ffmpeg([
            "-loglevel", "quiet",
            "-i", str(source),
            "-vn",
            "-filter_complex:a", audio_filter,
            "-frames:v", "1",
            "-y", str(output),
        ])

    def analyze_loudness(self, source: Path, dual_track: bool, verbose: bool) -> ToolResult:
        """
        Run an EBU R128 analysis; the report is in the captured stderr.

        verbose=False logs at info level (summary only), verbose=True also
        logs one line per measured frame.
        """
        level = "level+verbose" if verbose else "level+info"
        audio_filter = f"{audio_filter_prefix(dual_track)}ebur128=peak=true:framelog=verbose"
        return self._ffmpeg([
            "-loglevel", level,
            "-i", str(source),
            "-vn",
            "-filter_complex:a", audio_filter,
            "-f", "null", "-",
        ])
