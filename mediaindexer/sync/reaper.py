"""
Orphan reaper.

Deletes artifacts whose source file is gone. An artifact clip.jpg belongs to
any source whose base name is "clip", whatever its extension.

Leftover staging files (.clip.partial.jpg) from an interrupted run have the
base name ".clip.partial", which no source has, so they are reaped too.
"""

import logging

from ..config import IndexerConfig
from .errors import SourceDirectoryError
from .models import ReapResult
from .scanner import FileScanner

logger = logging.getLogger(__name__)


class OrphanReaper:
    """Removes orphaned artifacts of one extension from the destination."""

    def __init__(self, config: IndexerConfig):
        self.config = config
        self.source_scanner = FileScanner(config.source_dir)
        self.destination_scanner = FileScanner(config.destination_dir)

    def reap(self, extension: str) -> ReapResult:
        """
        Delete every `*.{extension}` artifact without a source.

        When the source directory cannot be listed nothing is deleted, since
        every artifact would look orphaned.
        """
        result = ReapResult(extension=extension)

        if self.config.disable_removal:
            result.disabled = True
            logger.info(result.summary())
            return result

        logger.info("Entering deletion loop")

        try:
            source_names = self.source_scanner.base_names()
        except SourceDirectoryError as e:
            logger.error(f"{e}; skipping orphan removal this pass")
            return result

        try:
            artifacts = self.destination_scanner.scan(extension=extension)
        except SourceDirectoryError as e:
            logger.warning(f"{e}; nothing to reap")
            return result

        for artifact in artifacts:
            result.scanned += 1
            if artifact.base_name in source_names:
                continue

            logger.info(f"Source for {artifact.base_name} has gone. Removing {artifact.path}")
            try:
                artifact.path.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                result.errors += 1
                logger.error(f"Could not remove {artifact.path}: {e}")
                continue

            result.removed += 1
            result.removed_paths.append(str(artifact.path))

        logger.info(result.summary())
        return result
