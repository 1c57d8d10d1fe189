"""
Command line entry point.

Usage:
    mediaindexer [-o|--once] [-c|--config PATH] INSTANCE_TYPE

Exit codes:
    0 - single pass completed, help shown, or stopped by signal
    1 - missing or invalid instance type, bad option, invalid configuration,
        or a required tool (ffmpeg, ffprobe) is missing
"""

import argparse
import logging
import signal
import sys
from typing import List, Optional

from . import __version__
from .config import ConfigError, IndexerConfig, load_config
from .execution.tools import ToolRunner
from .jobs.errors import UnknownInstanceTypeError
from .jobs.models import InstanceType, JobContext
from .jobs.registry import JOB_REGISTRY, JobDescriptor, get_job
from .logging_setup import setup_logging
from .readiness.checks import CheckStatus, is_ready, run_all_checks
from .sync.executor import SyncPassExecutor
from .sync.in_use import WriteInProgressDetector
from .sync.reaper import OrphanReaper
from .sync.scheduler import SchedulerLoop

logger = logging.getLogger("mediaindexer.cli")


SUPPORTED_TYPES = ", ".join(t.value for t in InstanceType)


class IndexerArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that exits with 1 (not 2) on usage errors."""

    def error(self, message: str):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    type_lines = "\n".join(
        f"  {descriptor.instance_type.value:<11} - {descriptor.description}"
        for descriptor in JOB_REGISTRY.values()
    )
    parser = IndexerArgumentParser(
        prog="mediaindexer",
        description="MediaIndexer - keep derived media artifacts in sync with a source directory",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
INSTANCE_TYPE:
{type_lines}

Examples:
  %(prog)s filmstrip            # Run filmstrip generation continuously
  %(prog)s --once waveform      # Generate waveforms once and exit

Configuration is loaded from the first of:
  1. --config PATH or MEDIAINDEXER_CONFIG_FILE
  2. /etc/mediaindexer/mediaindexer.env
  3. ./mediaindexer.env

Requirements:
  ffmpeg and ffprobe (required)
  bmxtranswrap, mxf2raw (optional, MXF support)
  lsof (optional, better file-in-use detection)
""",
    )

    # Validated by hand so a missing type exits 1 with the list of types
    parser.add_argument(
        "instance_type",
        nargs="?",
        metavar="INSTANCE_TYPE",
        help="Artifact type to generate",
    )
    parser.add_argument(
        "-o", "--once",
        action="store_true",
        help="Run a single pass and exit (default: continuous loop)",
    )
    parser.add_argument(
        "-c", "--config",
        metavar="PATH",
        help="Configuration file (overrides MEDIAINDEXER_CONFIG_FILE)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def _install_signal_handlers(loop: SchedulerLoop) -> None:
    def handle_shutdown(signum, frame):
        logger.info(f"Received {signal.Signals(signum).name}, stopping after current pass")
        loop.stop()

    signal.signal(signal.SIGTERM, handle_shutdown)
    signal.signal(signal.SIGINT, handle_shutdown)


def _check_dependencies(runner: ToolRunner) -> bool:
    results = run_all_checks(runner)
    for result in results:
        if result.status == CheckStatus.FAIL:
            hint = f" ({result.hint})" if result.hint else ""
            logger.error(f"{result.message}{hint}")
        elif result.status == CheckStatus.WARN:
            logger.warning(result.message)
        else:
            logger.debug(result.message)
    return is_ready(results)


def _log_banner(config: IndexerConfig, descriptor: JobDescriptor, run_once: bool) -> None:
    logger.info(f"MediaIndexer {__version__} starting")
    if config.config_file:
        logger.info(f"Configuration File: {config.config_file}")
    else:
        logger.info("No configuration file found, using defaults")
    logger.info(f"Instance Type: {descriptor.instance_type.value}")
    logger.info(f"Instance Extension: {descriptor.extension}")
    logger.info(f"Source Directory: {config.source_dir}")
    logger.info(f"Destination Directory: {config.destination_dir}")
    logger.info(f"Temp Directory: {config.temp_dir}")
    logger.info(f"Run Once: {run_once}")
    logger.info(f"Log Level: {config.log_level}")
    if config.log_file:
        logger.info(f"Log File: {config.log_file}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return int(e.code or 0)

    try:
        config = load_config(override_path=args.config)
    except ConfigError as e:
        setup_logging()
        logger.error(str(e))
        return 1

    try:
        setup_logging(config.log_level, config.log_file)
    except OSError as e:
        setup_logging()
        logger.error(f"Cannot open log file {config.log_file}: {e}")
        return 1

    if not args.instance_type:
        logger.error("Instance type parameter is missing")
        logger.error(f"Supported instance types are: {SUPPORTED_TYPES}")
        return 1

    try:
        descriptor = get_job(args.instance_type)
    except UnknownInstanceTypeError:
        logger.error(f"Wrong instance type parameter: {args.instance_type}")
        logger.error(f"Supported instance types are: {SUPPORTED_TYPES}")
        return 1

    runner = ToolRunner(timeout=config.tool_timeout)
    if not _check_dependencies(runner):
        return 1

    _log_banner(config, descriptor, args.once)

    context = JobContext.from_config(config, runner=runner)
    executor = SyncPassExecutor(
        config,
        descriptor,
        WriteInProgressDetector(runner=runner),
        context,
    )
    loop = SchedulerLoop(
        executor,
        OrphanReaper(config),
        descriptor.extension,
        interval_seconds=config.sleep_interval,
        run_once=args.once,
    )

    _install_signal_handlers(loop)
    cycles = loop.run()

    logger.info(f"MediaIndexer completed after {cycles} cycle(s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
