"""
JobRecord and ResourceRecord schemas - what the job store persists.

A JobRecord is written by RegisterJob with status CREATED and moved to
RUNNING by FinalizeJobStatus (or FAILED when the saga rolls back).
ResourceRecords list the resources a job provisioned itself, so they can be
found and cleaned up later.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


def _utcnow() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


class JobStatus(str, Enum):
    """Lifecycle status of a reverse replication job."""
    CREATED = "CREATED"
    RUNNING = "RUNNING"
    FAILED = "FAILED"


class ResourceType(str, Enum):
    """Kinds of resources a job can provision."""
    CHANGE_STREAM = "change_stream"
    STAGING_BUCKET = "staging_bucket"
    METADATA_DATABASE = "metadata_database"
    DATAFLOW_JOB = "dataflow_job"


@dataclass
class JobRecord:
    """
    The durable summary of a job.

    Attributes:
        job_id: smt-job-<run_id>
        job_name: Display name from the normalized request
        spanner_project_id / instance_id / database_id: Database being replicated
        job_data: Normalized request serialized as JSON (opaque to the store)
        status: CREATED, RUNNING or FAILED
    """
    job_id: str
    job_name: str
    spanner_project_id: str
    instance_id: str
    database_id: str
    job_data: str
    status: JobStatus = JobStatus.CREATED
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        result = {
            "job_id": self.job_id,
            "job_name": self.job_name,
            "spanner_project_id": self.spanner_project_id,
            "instance_id": self.instance_id,
            "database_id": self.database_id,
            "job_data": self.job_data,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
        }
        if self.updated_at:
            result["updated_at"] = self.updated_at.isoformat()
        return result


@dataclass(frozen=True)
class ResourceRecord:
    """A resource provisioned by (and owned by) a job."""
    job_id: str
    resource_type: ResourceType
    resource_name: str
    resource_data: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "resource_type": self.resource_type.value,
            "resource_name": self.resource_name,
            "resource_data": dict(self.resource_data),
            "created_at": self.created_at.isoformat(),
        }
