"""
Sync error hierarchy.

All errors are non-fatal to the daemon. They abort at most one pass step;
the scheduler logs them and the next pass starts over.
"""


class SyncError(Exception):
    """Base exception for sync pass failures."""

    pass


class SourceDirectoryError(SyncError):
    """Source or destination directory cannot be created or listed."""

    pass
