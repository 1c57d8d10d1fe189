"""
Job registry.

Maps each InstanceType to the artifact extension and the procedure that
produces it, and runs procedures so that a failure never damages the
destination directory.

Design rules:
- Dispatch is a lookup table, no branching on type names
- Procedures write to a staging path next to the artifact; success renames
  it onto the artifact (atomic on one filesystem), failure deletes it
- Any error escaping a procedure becomes a FAILED JobResult
"""

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Union

from ..execution.errors import ToolError
from .audio import create_loudness_log, create_loudness_summary, create_waveform
from .errors import JobError, StagingError, UnknownInstanceTypeError
from .filmstrip import create_filmstrip
from .metadata import create_json_info, create_mxf_info, create_xml_info
from .models import InstanceType, JobContext, JobResult, JobStatus

logger = logging.getLogger(__name__)


# procedure(source, output, context); raises on failure
JobProcedure = Callable[[Path, Path, JobContext], None]


@dataclass(frozen=True)
class JobDescriptor:
    instance_type: InstanceType
    extension: str
    procedure: JobProcedure
    description: str


JOB_REGISTRY: Dict[InstanceType, JobDescriptor] = {
    descriptor.instance_type: descriptor
    for descriptor in (
        JobDescriptor(InstanceType.FILMSTRIP, "jpg", create_filmstrip, "Create filmstrips (JPG)"),
        JobDescriptor(InstanceType.WAVEFORM, "gif", create_waveform, "Create waveform visualizations (GIF)"),
        JobDescriptor(InstanceType.R128SUM, "r128sum", create_loudness_summary, "Create EBU R128 audio summaries"),
        JobDescriptor(InstanceType.R128LOG, "r128log", create_loudness_log, "Create detailed EBU R128 logs"),
        JobDescriptor(InstanceType.XMLINFO, "xml", create_xml_info, "Extract metadata as XML"),
        JobDescriptor(InstanceType.JSONINFO, "json", create_json_info, "Extract metadata as JSON"),
        JobDescriptor(InstanceType.MXFINFO, "xml", create_mxf_info, "Extract MXF-specific information"),
    )
}


def get_job(instance_type: Union[str, InstanceType]) -> JobDescriptor:
    """
    Look up the job for an instance type.

    Raises:
        UnknownInstanceTypeError: If the type is not registered
    """
    try:
        return JOB_REGISTRY[InstanceType(instance_type)]
    except ValueError:
        raise UnknownInstanceTypeError(str(instance_type)) from None


def staging_path_for(destination: Path) -> Path:
    """
    Hidden sibling of `destination` that procedures write to.

    The real extension is kept so tools infer the output format from it:
    clip.jpg -> .clip.partial.jpg
    """
    return destination.with_name(f".{destination.stem}.partial{destination.suffix}")


def _discard(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove staging file {path}: {e}")


def _promote(staging: Path, destination: Path) -> None:
    try:
        size = staging.stat().st_size
    except FileNotFoundError:
        raise JobError("no output file was written") from None
    if size == 0:
        raise JobError("output file is empty")

    try:
        os.replace(staging, destination)
    except OSError as e:
        raise StagingError(f"could not move {staging.name} to {destination}: {e}") from e


def run_job(descriptor: JobDescriptor, source: Path, destination: Path, context: JobContext) -> JobResult:
    """
    Generate one artifact.

    Args:
        descriptor: Registry entry to run
        source: Source media file
        destination: Final artifact path
        context: Shared tools and configuration

    Returns:
        JobResult; never raises for per-file failures
    """
    started_at = datetime.now()
    staging = staging_path_for(destination)
    failure_reason = None

    _discard(staging)
    try:
        descriptor.procedure(source, staging, context)
        _promote(staging, destination)
    except (JobError, ToolError) as e:
        failure_reason = str(e)
    except Exception as e:
        logger.exception(f"Unexpected error generating {descriptor.instance_type.value} for {source}")
        failure_reason = f"{type(e).__name__}: {e}"
    finally:
        _discard(staging)

    return JobResult(
        status=JobStatus.FAILED if failure_reason else JobStatus.SUCCESS,
        instance_type=descriptor.instance_type,
        source_path=str(source),
        output_path=str(destination),
        started_at=started_at,
        completed_at=datetime.now(),
        failure_reason=failure_reason,
    )
