"""
Job models.

Structured representation of the artifact types and of single-file job
outcomes.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..config import IndexerConfig
from ..execution.bmx import BmxTools
from ..execution.ffmpeg import FFmpegTools
from ..execution.tools import ToolRunner


class InstanceType(str, Enum):
    """
    Artifact type served by one daemon process.

    Chosen once at startup; a process never switches type.
    """

    FILMSTRIP = "filmstrip"
    WAVEFORM = "waveform"
    R128SUM = "r128sum"
    R128LOG = "r128log"
    XMLINFO = "xmlinfo"
    JSONINFO = "jsoninfo"
    MXFINFO = "mxfinfo"


class JobStatus(str, Enum):
    """
    Job outcome classification.

    SUCCESS: Artifact written and moved into place
    FAILED: No artifact written; existing artifact (if any) untouched
    """

    SUCCESS = "success"
    FAILED = "failed"


class JobResult(BaseModel):
    """Result of generating one artifact from one source file."""

    model_config = ConfigDict(extra="forbid")

    status: JobStatus
    """Final job status."""

    instance_type: InstanceType
    """Artifact type that was generated."""

    source_path: str
    """Source media file that was processed."""

    output_path: str
    """Artifact path (written only on success)."""

    started_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    failure_reason: Optional[str] = None
    """Human-readable failure reason (set if status is FAILED)."""

    @property
    def succeeded(self) -> bool:
        return self.status == JobStatus.SUCCESS

    def duration_seconds(self) -> Optional[float]:
        """Calculate job duration in seconds."""
        if self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()

    def summary(self) -> str:
        """Human-readable summary of the job result."""
        duration_str = ""
        duration = self.duration_seconds()
        if duration is not None:
            duration_str = f" ({duration:.1f}s)"

        if self.succeeded:
            return f"SUCCESS{duration_str}: {self.source_path} → {self.output_path}"
        return f"FAILED{duration_str}: {self.source_path} - {self.failure_reason}"


@dataclass
class JobContext:
    """
    Everything a job procedure needs besides its source and output paths.

    Built once per process and shared by every job of the pass.
    """

    config: IndexerConfig
    runner: ToolRunner
    ffmpeg: FFmpegTools
    bmx: BmxTools

    @classmethod
    def from_config(cls, config: IndexerConfig, runner: Optional[ToolRunner] = None) -> "JobContext":
        if runner is None:
            runner = ToolRunner(timeout=config.tool_timeout)
        return cls(
            config=config,
            runner=runner,
            ffmpeg=FFmpegTools(runner, config.ffmpeg_opts, config.ffprobe_opts),
            bmx=BmxTools(runner),
        )
