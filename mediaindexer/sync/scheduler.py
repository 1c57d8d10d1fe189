"""
Scheduler loop.

Runs sync pass + orphan reaping cycles, either once or forever with a sleep
between cycles.

Design rules:
- Strictly sequential, one file at a time
- The stop signal is checked between cycles, never mid-file; a stop during
  the sleep wakes the loop immediately
- A cycle that raises is logged and the loop carries on
"""

import logging
import threading
from typing import Optional

from .executor import SyncPassExecutor
from .reaper import OrphanReaper

logger = logging.getLogger(__name__)


class SchedulerLoop:
    """
    Drives the daemon.

    Args:
        executor: Sync pass executor for the served instance type
        reaper: Orphan reaper for the destination directory
        extension: Artifact extension to reap
        interval_seconds: Sleep between cycles
        run_once: Return after the first cycle
        stop_event: Event that ends the loop when set
    """

    def __init__(
        self,
        executor: SyncPassExecutor,
        reaper: OrphanReaper,
        extension: str,
        interval_seconds: float = 10.0,
        run_once: bool = False,
        stop_event: Optional[threading.Event] = None,
    ):
        self.executor = executor
        self.reaper = reaper
        self.extension = extension
        self.interval_seconds = interval_seconds
        self.run_once = run_once
        self.stop_event = stop_event or threading.Event()

    def stop(self) -> None:
        """Request shutdown; honored after the current cycle."""
        self.stop_event.set()

    @property
    def stopping(self) -> bool:
        return self.stop_event.is_set()

    def run_cycle(self) -> None:
        instance_type = self.executor.descriptor.instance_type.value
        logger.info(f"Starting processing cycle for instance type: {instance_type}")
        self.executor.run_pass()
        self.reaper.reap(self.extension)
        logger.info("Processing cycle completed")

    def run(self) -> int:
        """
        Run cycles until single-shot completion or stop.

        Returns:
            Number of cycles run
        """
        cycles = 0

        while not self.stopping:
            try:
                self.run_cycle()
            except Exception as e:
                logger.error(f"Processing cycle failed: {e}")
            cycles += 1

            if self.run_once:
                break

            # Returns early when stop() is called
            self.stop_event.wait(self.interval_seconds)

        if self.stopping:
            logger.info("Stop requested, shutting down")
        return cycles
