"""
Tests for filmstrip generation.

These tests verify:
1. Frame positions for generic and MXF sources
2. All 11 frames are required unless missing frames are tolerated
3. Temporary frames never outlive the job
4. Missing duration fails before any frame is extracted
"""

from pathlib import Path

import pytest

from conftest import FakeToolRunner, write_media
from mediaindexer.jobs.filmstrip import FRAME_COUNT, frame_seek_positions, mxf_frame_indices
from mediaindexer.jobs.models import JobContext, JobStatus
from mediaindexer.jobs.registry import get_job, run_job


def temp_files(temp_dir: Path):
    if not temp_dir.exists():
        return []
    return sorted(p.name for p in temp_dir.iterdir())


def frame_calls(runner):
    return [args for args in runner.calls_to("ffmpeg") if args[-1].endswith(".bmp")]


def tile_calls(runner):
    return [args for args in runner.calls_to("ffmpeg") if any(a.startswith("tile=") for a in args)]


@pytest.fixture
def destination(config) -> Path:
    config.destination_dir.mkdir(parents=True, exist_ok=True)
    return config.destination_dir / "clip.jpg"


class TestFramePositions:
    def test_generic_positions(self):
        positions = frame_seek_positions(100.0)

        assert len(positions) == FRAME_COUNT
        assert [seek for seek, _ in positions[:10]] == pytest.approx([0, 10, 20, 30, 40, 50, 60, 70, 80, 90])
        assert positions[10] == (90.0, True)
        assert not any(reverse for _, reverse in positions[:10])

    def test_short_clip_tail_starts_at_zero(self):
        assert frame_seek_positions(4.0)[-1] == (0.0, True)

    def test_mxf_indices(self):
        assert mxf_frame_indices(250) == [0, 24, 49, 74, 99, 124, 149, 174, 199, 224, 249]

    def test_single_frame_mxf(self):
        assert mxf_frame_indices(1) == [0] * FRAME_COUNT


class TestGenericFilmstrip:
    def test_all_frames_succeed(self, config, context, runner, destination):
        source = write_media(config.source_dir / "clip.mov")

        result = run_job(get_job("filmstrip"), source, destination, context)

        assert result.status == JobStatus.SUCCESS
        assert destination.read_bytes().startswith(b"\xff\xd8")
        assert len(frame_calls(runner)) == FRAME_COUNT
        tile = tile_calls(runner)[0]
        assert tile[tile.index("-vf") + 1] == "tile=11x1:color=lime,scale=4096:-1"
        assert tile[tile.index("-qscale:v") + 1] == "5"
        assert temp_files(config.temp_dir) == []

    def test_configured_width(self, make_config, runner, tmp_path):
        config = make_config(img_width=1920)
        context = JobContext.from_config(config, runner=runner)
        source = write_media(config.source_dir / "clip.mov")
        config.destination_dir.mkdir(parents=True)

        run_job(get_job("filmstrip"), source, config.destination_dir / "clip.jpg", context)

        tile = tile_calls(runner)[0]
        assert tile[tile.index("-vf") + 1] == "tile=11x1:color=lime,scale=1920:-1"

    def test_missing_frame_fails_without_tolerance(self, config, context, runner, media, destination):
        media.failing_frames = {7}
        source = write_media(config.source_dir / "clip.mov")

        result = run_job(get_job("filmstrip"), source, destination, context)

        assert result.status == JobStatus.FAILED
        assert "Only 10 of 11 frames" in result.failure_reason
        assert not destination.exists()
        assert tile_calls(runner) == []
        assert temp_files(config.temp_dir) == []
        assert list(config.destination_dir.iterdir()) == []

    def test_missing_frame_tolerated(self, make_config, runner, media):
        config = make_config(ignore_missing_frames=True)
        context = JobContext.from_config(config, runner=runner)
        media.failing_frames = {3, 7}
        source = write_media(config.source_dir / "clip.mov")
        config.destination_dir.mkdir(parents=True)
        destination = config.destination_dir / "clip.jpg"

        result = run_job(get_job("filmstrip"), source, destination, context)

        assert result.succeeded
        assert destination.exists()
        # Remaining frames are renumbered into a gap-free sequence before tiling
        assert media.tile_inputs == [[f"temp{i:02d}.bmp" for i in range(9)]]
        assert temp_files(config.temp_dir) == []

    def test_truncated_last_frame_is_not_tiled(self, make_config, runner, media):
        config = make_config(ignore_missing_frames=True)
        context = JobContext.from_config(config, runner=runner)
        media.failing_frames = {10}
        source = write_media(config.source_dir / "clip.mov")
        config.destination_dir.mkdir(parents=True)

        result = run_job(get_job("filmstrip"), source, config.destination_dir / "clip.jpg", context)

        assert result.succeeded
        assert media.tile_inputs == [[f"temp{i:02d}.bmp" for i in range(10)]]

    def test_no_frames_fails_even_when_tolerated(self, make_config, runner, media):
        config = make_config(ignore_missing_frames=True)
        context = JobContext.from_config(config, runner=runner)
        media.failing_frames = set(range(FRAME_COUNT))
        source = write_media(config.source_dir / "clip.mov")
        config.destination_dir.mkdir(parents=True)

        result = run_job(get_job("filmstrip"), source, config.destination_dir / "clip.jpg", context)

        assert not result.succeeded
        assert tile_calls(runner) == []

    def test_unknown_duration_fails_immediately(self, config, context, runner, media, destination):
        media.duration = None
        source = write_media(config.source_dir / "clip.mov")

        result = run_job(get_job("filmstrip"), source, destination, context)

        assert not result.succeeded
        assert frame_calls(runner) == []
        assert not destination.exists()

    def test_zero_duration_fails_immediately(self, config, context, runner, media, destination):
        media.duration = 0.0
        source = write_media(config.source_dir / "clip.mov")

        result = run_job(get_job("filmstrip"), source, destination, context)

        assert not result.succeeded
        assert "Could not determine duration" in result.failure_reason
        assert frame_calls(runner) == []

    def test_leftover_frames_are_not_reused(self, config, context, media, destination):
        config.temp_dir.mkdir(parents=True)
        (config.temp_dir / "temp07.bmp").write_bytes(b"BM stale")
        media.failing_frames = {7}
        source = write_media(config.source_dir / "clip.mov")

        result = run_job(get_job("filmstrip"), source, destination, context)

        assert not result.succeeded
        assert temp_files(config.temp_dir) == []


class TestMxfFilmstrip:
    def test_frames_cut_with_bmxtranswrap(self, config, context, runner, destination):
        source = write_media(config.source_dir / "clip.mxf")

        result = run_job(get_job("filmstrip"), source, destination, context)

        assert result.succeeded
        cuts = [args for args in runner.calls_to("bmxtranswrap") if "-o" in args]
        starts = [int(args[args.index("--start") + 1]) for args in cuts]
        assert starts == mxf_frame_indices(250)
        # Every frame is decoded from its one-frame cut, in reverse
        for args in frame_calls(runner):
            assert args[args.index("-i") + 1].endswith(".mxf")
            assert args[args.index("-vf") + 1].startswith("reverse,")
        assert runner.calls_to("ffprobe") == []
        assert temp_files(config.temp_dir) == []

    def test_truncated_mxf_frame_is_not_tiled(self, make_config, runner, media):
        config = make_config(ignore_missing_frames=True)
        context = JobContext.from_config(config, runner=runner)
        media.failing_frames = {4}
        source = write_media(config.source_dir / "clip.mxf")
        config.destination_dir.mkdir(parents=True)

        result = run_job(get_job("filmstrip"), source, config.destination_dir / "clip.jpg", context)

        assert result.succeeded
        assert media.tile_inputs == [[f"temp{i:02d}.bmp" for i in range(10)]]
        assert temp_files(config.temp_dir) == []

    def test_mxf_without_bmxtranswrap(self, config, destination):
        context = JobContext.from_config(config, runner=FakeToolRunner(missing={"bmxtranswrap"}))
        source = write_media(config.source_dir / "clip.mxf")

        result = run_job(get_job("filmstrip"), source, destination, context)

        assert not result.succeeded
        assert "bmxtranswrap not available" in result.failure_reason

    def test_mxf_without_frame_count(self, config, context, media, destination):
        media.mxf_frames = None
        source = write_media(config.source_dir / "clip.mxf")

        result = run_job(get_job("filmstrip"), source, destination, context)

        assert not result.succeeded
