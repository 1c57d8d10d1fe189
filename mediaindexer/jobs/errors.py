"""
Job error hierarchy.

All errors are non-fatal to the daemon. A failed job leaves no artifact
behind and the source file is retried on the next pass. The one exception is
UnknownInstanceTypeError, which is raised at startup before the loop runs.
"""


class JobError(Exception):
    """Base exception for artifact generation failures."""

    pass


class UnknownInstanceTypeError(JobError):
    """Instance type is not one of the registered types."""

    def __init__(self, instance_type: str):
        self.instance_type = instance_type
        super().__init__(f"Unknown instance type: {instance_type}")


class StagingError(JobError):
    """Staged output could not be moved onto the artifact path."""

    pass
