"""
Tests for startup dependency checks.
"""

from conftest import FakeToolRunner
from mediaindexer.readiness.checks import CheckStatus, is_ready, run_all_checks


class TestReadiness:
    def test_all_tools_present(self):
        results = run_all_checks(FakeToolRunner())

        assert all(result.passed for result in results)
        assert is_ready(results)
        assert [r.id for r in results] == ["ffmpeg", "ffprobe", "bmxtranswrap", "mxf2raw", "lsof"]

    def test_missing_required_tool_blocks(self):
        results = run_all_checks(FakeToolRunner(missing={"ffprobe"}))

        failed = [r for r in results if r.status == CheckStatus.FAIL]
        assert [r.id for r in failed] == ["ffprobe"]
        assert failed[0].hint
        assert not is_ready(results)

    def test_missing_optional_tools_warn(self):
        results = run_all_checks(FakeToolRunner(missing={"bmxtranswrap", "mxf2raw", "lsof"}))

        warned = {r.id: r for r in results if r.status == CheckStatus.WARN}
        assert set(warned) == {"bmxtranswrap", "mxf2raw", "lsof"}
        assert "size-sampling" in warned["lsof"].message
        assert is_ready(results)

    def test_to_dict(self):
        result = run_all_checks(FakeToolRunner(missing={"ffmpeg"}))[0]

        assert result.to_dict() == {
            "id": "ffmpeg",
            "status": "fail",
            "message": "ffmpeg not found in PATH",
            "hint": "Install FFmpeg: apt install ffmpeg",
        }
