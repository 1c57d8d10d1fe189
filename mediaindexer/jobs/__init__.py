"""
Artifact jobs.

One job per InstanceType. Jobs shell out through the execution layer and
never leave a partial artifact behind.

Public API:
    InstanceType - the seven artifact types
    JobDescriptor / JOB_REGISTRY - extension and procedure per type
    get_job - registry lookup
    run_job - staged, atomic execution of one job
    JobContext - tools and configuration shared by all jobs
"""

from .errors import JobError, StagingError, UnknownInstanceTypeError
from .models import InstanceType, JobContext, JobResult, JobStatus
from .registry import JOB_REGISTRY, JobDescriptor, get_job, run_job, staging_path_for

__all__ = [
    "InstanceType",
    "JOB_REGISTRY",
    "JobContext",
    "JobDescriptor",
    "JobError",
    "JobResult",
    "JobStatus",
    "StagingError",
    "UnknownInstanceTypeError",
    "get_job",
    "run_job",
    "staging_path_for",
]
