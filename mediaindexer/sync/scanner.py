"""
Directory scanner.

Lists the immediate regular files of a directory. Used for the source
directory (candidates for processing) and for the destination directory
(candidates for reaping).
"""

import logging
import os
from pathlib import Path
from typing import List, Optional, Set

from .errors import SourceDirectoryError
from .models import SourceFile

logger = logging.getLogger(__name__)


class FileScanner:
    """
    Non-recursive scanner for one directory.

    Skips subdirectories and symlinks. Files are returned in deterministic
    order (sorted by path). A file that disappears while being listed is
    skipped.
    """

    def __init__(self, directory: Path):
        self.directory = directory

    def scan(self, extension: Optional[str] = None) -> List[SourceFile]:
        """
        List regular files, optionally only those ending in `.{extension}`.

        Raises:
            SourceDirectoryError: If the directory cannot be listed
        """
        suffix = f".{extension}" if extension else None
        files = []

        try:
            with os.scandir(self.directory) as entries:
                for entry in entries:
                    if suffix and not entry.name.endswith(suffix):
                        continue
                    try:
                        if not entry.is_file(follow_symlinks=False):
                            continue
                        files.append(SourceFile.from_entry(entry))
                    except FileNotFoundError:
                        logger.debug(f"File vanished during scan: {entry.path}")
        except OSError as e:
            raise SourceDirectoryError(f"Cannot list {self.directory}: {e}") from e

        return sorted(files, key=lambda f: f.path)

    def base_names(self) -> Set[str]:
        """Base names of all regular files, for constant-time orphan checks."""
        return {source.base_name for source in self.scan()}
