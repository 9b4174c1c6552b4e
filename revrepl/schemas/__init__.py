"""
revrepl.schemas - Data structures for the reverse replication workflow.

JobRequest -> NormalizedJobRequest -> JobRecord / ResourceRecord

TuningConfig describes how a single Dataflow job is launched.
"""

from .job_request import JobRequest, NormalizedJobRequest
from .tuning import TuningConfig
from .job_record import JobRecord, JobStatus, ResourceRecord, ResourceType

__all__ = [
    "JobRequest",
    "NormalizedJobRequest",
    "TuningConfig",
    "JobRecord",
    "JobStatus",
    "ResourceRecord",
    "ResourceType",
]
