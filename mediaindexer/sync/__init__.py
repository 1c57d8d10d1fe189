"""
Directory synchronization.

Keeps the destination directory consistent with the source directory for
one artifact type.

Public API:
    needs_processing - staleness check for one source/artifact pair
    WriteInProgressDetector - lsof + size sampling heuristic
    FileScanner - non-recursive directory listing
    SyncPassExecutor - one pass over the source directory
    OrphanReaper - removal of artifacts whose source is gone
    SchedulerLoop - pass + reap cycles, once or forever
"""

from .errors import SourceDirectoryError, SyncError
from .executor import SyncPassExecutor, copy_time_props
from .in_use import WriteInProgressDetector, has_write_access
from .models import ReapResult, SourceFile, SyncPassResult
from .reaper import OrphanReaper
from .scanner import FileScanner
from .scheduler import SchedulerLoop
from .staleness import MIN_SOURCE_SIZE, mtimes_match, needs_processing

__all__ = [
    "FileScanner",
    "MIN_SOURCE_SIZE",
    "OrphanReaper",
    "ReapResult",
    "SchedulerLoop",
    "SourceDirectoryError",
    "SourceFile",
    "SyncError",
    "SyncPassExecutor",
    "SyncPassResult",
    "WriteInProgressDetector",
    "copy_time_props",
    "has_write_access",
    "mtimes_match",
    "needs_processing",
]
