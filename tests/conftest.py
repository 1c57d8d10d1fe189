"""
Shared fixtures for MediaIndexer tests.

External tools are never executed: FakeToolRunner records every invocation
and answers it with a handler per tool name. FakeMedia provides handlers
that behave like well-formed ffmpeg / ffprobe / bmxtranswrap runs.
"""

import os
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

import pytest

from mediaindexer.config import IndexerConfig
from mediaindexer.execution.tools import ToolResult, ToolRunner
from mediaindexer.jobs.models import JobContext
from mediaindexer.sync.staleness import MIN_SOURCE_SIZE


Handler = Callable[[List[str], Optional[Path]], ToolResult]


def tool_result(name: str, returncode: int = 0, stdout: str = "", stderr: str = "") -> ToolResult:
    return ToolResult(command=[f"/usr/bin/{name}"], returncode=returncode, stdout=stdout, stderr=stderr)


def output_arg(args: Sequence[str]) -> Path:
    """Output path of an ffmpeg call (the argument after -y)."""
    return Path(args[list(args).index("-y") + 1])


class FakeToolRunner(ToolRunner):
    """ToolRunner that dispatches to in-process handlers."""

    def __init__(self, handlers: Optional[Dict[str, Handler]] = None, missing: Iterable[str] = ()):
        super().__init__(timeout=None)
        self.handlers: Dict[str, Handler] = dict(handlers or {})
        self.missing: Set[str] = set(missing)
        self.calls: List[Tuple[str, List[str]]] = []

    def which(self, name: str) -> Optional[str]:
        return None if name in self.missing else f"/usr/bin/{name}"

    def run(self, name, args, stdout_path=None, timeout=None) -> ToolResult:
        args = list(args)
        self.calls.append((name, args))

        if name in self.missing:
            return ToolResult(command=[name, *args], returncode=None, not_found=True)
        if name in self.handlers:
            return self.handlers[name](args, stdout_path)
        return tool_result(name)

    def calls_to(self, name: str) -> List[List[str]]:
        return [args for tool, args in self.calls if tool == name]


class StubDetector:
    """Write-in-progress detector with a fixed set of busy files."""

    def __init__(self, busy: Iterable[Path] = ()):
        self.busy = {Path(p) for p in busy}
        self.checked: List[Path] = []

    def is_in_use(self, path: Path) -> bool:
        self.checked.append(Path(path))
        return Path(path) in self.busy


SAMPLE_LOUDNESS_OUTPUT = """\
[Parsed_ebur128_0 @ 0x55d0c4a3c8c0] [verbose] t: 0.1       TARGET:-23 LUFS    M:-120.7 S:-120.7     I: -70.0 LUFS       LRA:   0.0 LU  FTPK: -inf dBFS  TPK: -inf dBFS
[Parsed_ebur128_0 @ 0x55d0c4a3c8c0] [verbose] t: 0.2       TARGET:-23 LUFS    M: -25.3 S:-120.7     I: -25.3 LUFS       LRA:   0.0 LU  FTPK: -8.1 dBFS  TPK: -8.1 dBFS
[out#0/null @ 0x55d0c4a3f100] [verbose] No more output streams to write to, finishing.
[Parsed_ebur128_0 @ 0x55d0c4a3c8c0] [info] Summary:

  Integrated loudness:
    I:         -23.0 LUFS
    Threshold: -33.1 LUFS

  Loudness range:
    LRA:         4.2 LU

  True peak:
    Peak:       -1.2 dBFS
[AVIOContext @ 0x55d0c4a41a40] [verbose] Statistics: 0 bytes written, 0 seeks, 0 writeouts
"""


class FakeMedia:
    """
    Handlers for a healthy set of media tools.

    Attributes:
        duration: Reported duration in seconds (None: no duration at all)
        mxf_frames: Frame count reported by bmxtranswrap
        failing_frames: ffmpeg frame extractions (by temp index) that fail,
            leaving a truncated frame file behind
        dual_track_ok: Whether amerge=inputs=2 filters succeed
    """

    def __init__(self):
        self.duration: Optional[float] = 120.0
        self.mxf_frames: Optional[int] = 250
        self.failing_frames: Set[int] = set()
        self.dual_track_ok = True
        self.tile_inputs: List[List[str]] = []

    def ffprobe(self, args: List[str], stdout_path: Optional[Path]) -> ToolResult:
        if "format=duration" in args:
            if self.duration is None:
                return tool_result("ffprobe", stdout="N/A\n")
            return tool_result("ffprobe", stdout=f"{self.duration}\n")

        fmt = args[args.index("-print_format") + 1]
        body = '{\n  "format": {"duration": "120.0"}\n}\n' if fmt == "json" else "<ffprobe/>\n"
        if stdout_path is not None:
            stdout_path.write_text(body)
            return tool_result("ffprobe")
        return tool_result("ffprobe", stdout=body)

    def ffmpeg(self, args: List[str], stdout_path: Optional[Path]) -> ToolResult:
        filter_graph = " ".join(args)

        if "amerge=inputs=2," in filter_graph and not self.dual_track_ok:
            return tool_result("ffmpeg", returncode=1, stderr="Not enough inputs for amerge")

        if "-f" in args and "null" in args:
            return tool_result("ffmpeg", stderr=SAMPLE_LOUDNESS_OUTPUT)

        if "-y" not in args:
            # Bare `ffmpeg -i file`: banner only, always exits 1
            banner = "Input #0, mov,mp4 from 'x.mov':\n"
            if self.duration is not None:
                hours, rest = divmod(self.duration, 3600)
                minutes, seconds = divmod(rest, 60)
                banner += f"  Duration: {int(hours):02d}:{int(minutes):02d}:{seconds:05.2f}, start: 0.0\n"
            banner += "At least one output file must be specified\n"
            return tool_result("ffmpeg", returncode=1, stderr=banner)

        output = output_arg(args)
        if output.suffix == ".bmp":
            index = int(output.stem.replace("temp", ""))
            if index in self.failing_frames:
                # Decoder errors can leave a truncated picture behind
                output.write_bytes(b"BM\x00")
                return tool_result("ffmpeg", returncode=1, stderr="Invalid data found")
            output.write_bytes(b"BM" + bytes(64))
            return tool_result("ffmpeg")

        if "tile=" in filter_graph:
            pattern = Path(args[args.index("-i") + 1])
            self.tile_inputs.append(sorted(p.name for p in pattern.parent.glob("temp*.bmp")))

        output.write_bytes(b"\xff\xd8artifact")
        return tool_result("ffmpeg")

    def bmxtranswrap(self, args: List[str], stdout_path: Optional[Path]) -> ToolResult:
        if "-o" in args:
            Path(args[args.index("-o") + 1]).write_bytes(b"mxf-frame")
            return tool_result("bmxtranswrap")
        if self.mxf_frames is None:
            return tool_result("bmxtranswrap", returncode=1, stderr="failed to open input")
        return tool_result("bmxtranswrap", returncode=1, stderr=f"input duration {self.mxf_frames}\n")

    def mxf2raw(self, args: List[str], stdout_path: Optional[Path]) -> ToolResult:
        Path(args[args.index("--info-file") + 1]).write_text("<mxf2raw/>\n")
        return tool_result("mxf2raw")

    def handlers(self) -> Dict[str, Handler]:
        return {
            "ffprobe": self.ffprobe,
            "ffmpeg": self.ffmpeg,
            "bmxtranswrap": self.bmxtranswrap,
            "mxf2raw": self.mxf2raw,
        }


def write_media(path: Path, size: int = MIN_SOURCE_SIZE + 1, mtime: Optional[float] = None) -> Path:
    """Create a fake media file above the size threshold."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\0" * size)
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


@pytest.fixture
def make_config(tmp_path: Path):
    """Factory for configs rooted in tmp_path."""

    def factory(**overrides) -> IndexerConfig:
        values = dict(
            source_dir=tmp_path / "input",
            destination_dir=tmp_path / "output",
            temp_dir=tmp_path / "tmp",
            sleep_interval=0,
        )
        values.update(overrides)
        return IndexerConfig(**values)

    return factory


@pytest.fixture
def config(make_config) -> IndexerConfig:
    return make_config()


@pytest.fixture
def media() -> FakeMedia:
    return FakeMedia()


@pytest.fixture
def runner(media: FakeMedia) -> FakeToolRunner:
    return FakeToolRunner(media.handlers(), missing={"lsof"})


@pytest.fixture
def context(config: IndexerConfig, runner: FakeToolRunner) -> JobContext:
    return JobContext.from_config(config, runner=runner)
