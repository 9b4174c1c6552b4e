"""
Capability protocols for the external resource managers.

Activities depend only on these protocols, never on Google client
libraries, so that:
1. The orchestration layer has no SDK imports
2. Backends can be swapped (real clients, in-memory fakes, mocks)
3. Testing is simplified via fake implementations
"""

from pathlib import Path
from typing import Any, Optional, Protocol, runtime_checkable

from revrepl.schemas import JobRecord, JobStatus, ResourceRecord


@runtime_checkable
class LocationResolver(Protocol):
    """Resolves where a Spanner instance lives."""

    def get_leader_location(self, project_id: str, instance_id: str) -> str:
        """Return the default leader region of the instance (e.g. us-central1)."""
        ...


@runtime_checkable
class ChangeStreamAdmin(Protocol):
    """Change stream administration on a Spanner database.

    db_uri is always projects/<p>/instances/<i>/databases/<d>.
    """

    def exists(self, name: str, db_uri: str) -> bool:
        ...

    def validate_options(self, name: str, db_uri: str) -> None:
        """Raise ChangeStreamOptionsError if the stream cannot be used."""
        ...

    def create(self, name: str, db_uri: str) -> None:
        ...

    def drop(self, name: str, db_uri: str) -> None:
        ...


@runtime_checkable
class MetadataDatabaseAdmin(Protocol):
    """Existence and lifecycle of the pipeline metadata database."""

    def exists(self, db_uri: str) -> bool:
        ...

    def create(self, db_uri: str) -> None:
        ...

    def drop(self, db_uri: str) -> None:
        ...


@runtime_checkable
class StagingStore(Protocol):
    """Object store holding staged input files and pipeline data."""

    def bucket_exists(self, name: str) -> bool:
        ...

    def create_bucket(
        self,
        name: str,
        project_id: str,
        location: str,
        labels: dict[str, str],
        ttl_days: int = 0,
    ) -> None:
        """Create a bucket. ttl_days > 0 adds an object delete lifecycle rule."""
        ...

    def delete_bucket(self, name: str) -> None:
        ...

    def upload_file(self, bucket: str, object_name: str, local_path: Path) -> None:
        ...

    def read_text(self, gcs_path: str) -> str:
        ...


@runtime_checkable
class PipelineLauncher(Protocol):
    """Launches and cancels Dataflow flex template jobs."""

    def launch(self, request: Any) -> str:
        """Launch a LaunchFlexTemplateRequest and return the Dataflow job id."""
        ...

    def cancel(self, project_id: str, location: str, job_id: str) -> None:
        ...


@runtime_checkable
class JobStore(Protocol):
    """Persistence of job records and the resources each job provisioned."""

    def create_job(self, record: JobRecord) -> None:
        ...

    def update_status(self, job_id: str, status: JobStatus) -> None:
        """Raise JobNotFoundError if the job does not exist."""
        ...

    def get_job(self, job_id: str) -> Optional[JobRecord]:
        ...

    def record_resource(self, resource: ResourceRecord) -> None:
        ...
