"""
Sync models.

SourceFile is an observation of one source file at scan time. Pass and reap
results are logged once and discarded.
"""

import os
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SourceFile(BaseModel):
    """
    A regular file in the source directory, as seen by one scan.

    base_name is the filename without its last extension (clip.v2.mov ->
    clip.v2); artifacts are named after it.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    path: Path = Field(..., description="Absolute path to the source file")
    size: int = Field(..., ge=0, description="Size in bytes at scan time")
    mtime: float = Field(..., description="Modification time at scan time")

    @property
    def base_name(self) -> str:
        return self.path.stem

    @classmethod
    def from_entry(cls, entry: os.DirEntry) -> "SourceFile":
        stat = entry.stat(follow_symlinks=False)
        return cls(path=Path(entry.path).absolute(), size=stat.st_size, mtime=stat.st_mtime)


class SyncPassResult(BaseModel):
    """Statistics of one sync pass."""

    model_config = ConfigDict(extra="forbid")

    instance_type: str
    seen: int = 0
    processed: int = 0
    failed: int = 0
    failed_paths: List[str] = Field(default_factory=list)

    started_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    def duration_seconds(self) -> Optional[float]:
        if self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()

    def summary(self) -> str:
        return (
            f"Processing completed: {self.processed} successful, {self.failed} failed, "
            f"{self.seen} total files"
        )


class ReapResult(BaseModel):
    """Statistics of one orphan-reaping run."""

    model_config = ConfigDict(extra="forbid")

    extension: str
    disabled: bool = False
    scanned: int = 0
    removed: int = 0
    errors: int = 0
    removed_paths: List[str] = Field(default_factory=list)

    def summary(self) -> str:
        if self.disabled:
            return "File removal disabled by configuration"
        summary = f"Removed {self.removed} orphaned files"
        if self.errors:
            summary += f" ({self.errors} could not be removed)"
        return summary
