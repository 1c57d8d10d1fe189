"""
Sync pass executor.

One pass walks the source directory once, in sorted order, and brings every
stale artifact up to date. Failures are isolated per file: a file that fails
is logged and counted, and the pass continues with the next file. Because
staleness is re-evaluated every pass, a failed file is retried next time.

Design rules:
- Source files are never written, moved or deleted
- Only the destination and temp directories are written
- After a successful job the artifact carries the source's timestamps,
  which is what marks it as up to date
"""

import logging
import os
from datetime import datetime
from pathlib import Path

from ..config import IndexerConfig
from ..jobs.models import JobContext
from ..jobs.registry import JobDescriptor, run_job
from .errors import SourceDirectoryError
from .in_use import WriteInProgressDetector
from .models import SourceFile, SyncPassResult
from .scanner import FileScanner
from .staleness import needs_processing

logger = logging.getLogger(__name__)


def copy_time_props(source: Path, destination: Path) -> None:
    """Give `destination` the access and modification times of `source`."""
    source_stat = os.stat(source)
    os.utime(destination, ns=(source_stat.st_atime_ns, source_stat.st_mtime_ns))


class SyncPassExecutor:
    """
    Runs sync passes for one instance type.

    Args:
        config: Daemon configuration
        descriptor: Registry entry of the instance type served
        detector: Write-in-progress detector
        context: Tools shared by all jobs
    """

    def __init__(
        self,
        config: IndexerConfig,
        descriptor: JobDescriptor,
        detector: WriteInProgressDetector,
        context: JobContext,
    ):
        self.config = config
        self.descriptor = descriptor
        self.detector = detector
        self.context = context
        self.scanner = FileScanner(config.source_dir)

    def artifact_path(self, source: SourceFile) -> Path:
        return self.config.destination_dir / f"{source.base_name}.{self.descriptor.extension}"

    def ensure_directories(self) -> None:
        """
        Create source, destination and temp directories if missing.

        Raises:
            SourceDirectoryError: If a directory cannot be created
        """
        for directory in (self.config.source_dir, self.config.destination_dir, self.config.temp_dir):
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise SourceDirectoryError(f"Cannot create directory {directory}: {e}") from e

    def run_pass(self) -> SyncPassResult:
        """
        Process every stale source file once.

        Returns:
            SyncPassResult with seen/processed/failed counts

        Raises:
            SourceDirectoryError: If the directories cannot be created or the
                source directory cannot be listed
        """
        instance_type = self.descriptor.instance_type.value
        result = SyncPassResult(instance_type=instance_type)
        logger.info(f"Processing source files for type: {instance_type}")

        self.ensure_directories()

        for source in self.scanner.scan():
            result.seen += 1
            destination = self.artifact_path(source)

            try:
                if not needs_processing(source.path, destination, self.detector):
                    continue

                logger.info(f"Processing: {source.path} -> {destination}")
                job = run_job(self.descriptor, source.path, destination, self.context)

                if job.succeeded:
                    copy_time_props(source.path, destination)
                    result.processed += 1
                    logger.info(f"Successfully processed: {source.path}")
                    logger.debug(job.summary())
                else:
                    result.failed += 1
                    result.failed_paths.append(str(source.path))
                    logger.error(f"Failed to process file: {source.path}: {job.failure_reason}")
                    logger.warning(f"Failed to process: {source.path} (continuing with next file)")

            except Exception as e:
                result.failed += 1
                result.failed_paths.append(str(source.path))
                logger.error(f"Unexpected error processing {source.path}: {e} (continuing with next file)")

        result.completed_at = datetime.now()
        logger.info(result.summary())
        logger.debug(f"Pass for {instance_type} took {result.duration_seconds():.1f}s")
        return result
