"""
Metadata dump jobs: xmlinfo, jsoninfo (ffprobe) and mxfinfo (mxf2raw).
"""

import logging
from pathlib import Path

from .errors import JobError
from .models import JobContext

logger = logging.getLogger(__name__)


def _probe_dump(source: Path, output: Path, context: JobContext, print_format: str) -> None:
    logger.info(f"Creating {print_format.upper()} metadata for: {source}")
    context.ffmpeg.dump_metadata(source, print_format, output).raise_for_status()


def create_xml_info(source: Path, output: Path, context: JobContext) -> None:
    _probe_dump(source, output, context, "xml")


def create_json_info(source: Path, output: Path, context: JobContext) -> None:
    _probe_dump(source, output, context, "json")


def create_mxf_info(source: Path, output: Path, context: JobContext) -> None:
    """
    Dump the MXF container structure.

    Only .mxf sources are accepted; anything else fails without running a
    tool. Without mxf2raw every file fails and is retried each pass.
    """
    if source.suffix.lower() != ".mxf":
        raise JobError(f"Not an MXF file: {source.name}")
    if not context.bmx.has_mxf2raw:
        raise JobError("mxf2raw not available")

    logger.info(f"Creating MXF info for: {source}")
    context.bmx.container_info(source, output).raise_for_status()
