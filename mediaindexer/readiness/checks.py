"""
Startup dependency checks.

Each check follows the same pattern:
1. Look up one external tool
2. Return CheckResult with:
   - id: tool name
   - status: pass | fail | warn
   - message: factual explanation
   - hint: optional remediation text

Missing required tools (ffmpeg, ffprobe) are fatal at startup. Missing
optional tools only limit what the daemon can do.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from ..execution.tools import ToolRunner


class CheckStatus(str, Enum):
    """Check result status."""
    PASS = "pass"
    FAIL = "fail"
    WARN = "warn"


@dataclass
class CheckResult:
    """
    Result of a single dependency check.

    Attributes:
        id: Tool name (e.g. "ffmpeg")
        status: pass | fail | warn
        message: Factual explanation of the result
        hint: Optional remediation hint (text only)
    """
    id: str
    status: CheckStatus
    message: str
    hint: Optional[str] = None

    def to_dict(self) -> dict:
        result = {
            "id": self.id,
            "status": self.status.value,
            "message": self.message,
        }
        if self.hint:
            result["hint"] = self.hint
        return result

    @property
    def passed(self) -> bool:
        return self.status == CheckStatus.PASS

    @property
    def blocking(self) -> bool:
        return self.status == CheckStatus.FAIL


REQUIRED_TOOLS: Dict[str, str] = {
    "ffmpeg": "Install FFmpeg: apt install ffmpeg",
    "ffprobe": "ffprobe ships with FFmpeg: apt install ffmpeg",
}

# Tool -> what is lost without it
OPTIONAL_TOOLS: Dict[str, str] = {
    "bmxtranswrap": "MXF support will be limited",
    "mxf2raw": "MXF metadata extraction will not be available",
    "lsof": "file-in-use detection will use the size-sampling fallback",
}


def check_tool(runner: ToolRunner, name: str, required: bool) -> CheckResult:
    """Check that one tool resolves to an executable."""
    path = runner.which(name)
    if path:
        return CheckResult(id=name, status=CheckStatus.PASS, message=f"{name} found at {path}")

    if required:
        return CheckResult(
            id=name,
            status=CheckStatus.FAIL,
            message=f"{name} not found in PATH",
            hint=REQUIRED_TOOLS.get(name),
        )
    return CheckResult(
        id=name,
        status=CheckStatus.WARN,
        message=f"{name} not found, {OPTIONAL_TOOLS.get(name, 'some features disabled')}",
    )


def run_all_checks(runner: ToolRunner) -> List[CheckResult]:
    """Check every required tool, then every optional one."""
    results = [check_tool(runner, name, required=True) for name in REQUIRED_TOOLS]
    results.extend(check_tool(runner, name, required=False) for name in OPTIONAL_TOOLS)
    return results


def is_ready(results: List[CheckResult]) -> bool:
    """
    The daemon may start if no required tool is missing.

    Warnings (optional tools) never block startup.
    """
    return not any(result.blocking for result in results)
