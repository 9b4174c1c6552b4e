"""PrepareStagingStore - creates the staging bucket and stages input files."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from revrepl import constants
from revrepl.activity import Activity, ActivityContext
from revrepl.adapters.base import JobStore, StagingStore
from revrepl.schemas import ResourceRecord, ResourceType
from revrepl.utils import gcs_path, is_gcs_path


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PrepareStagingStoreInput:
    job_id: str
    bucket_name: str
    spanner_project_id: str
    spanner_location: str
    session_file_path: str
    source_connection_config: str
    is_bucket_required: bool
    ttl_days: int = 0


@dataclass
class PrepareStagingStoreOutput:
    exists: bool = False
    created: bool = False
    staged_files: list[str] = field(default_factory=list)


class PrepareStagingStore(Activity):
    """
    Ensures the staging bucket exists in the Spanner leader region and
    uploads local session / source connection files to their canonical
    names. No-op when the normalizer decided no bucket is needed.
    """

    def __init__(self, input: PrepareStagingStoreInput, store: StagingStore, job_store: JobStore):
        self.input = input
        self.output = PrepareStagingStoreOutput()
        self.store = store
        self.job_store = job_store

    def transaction(self, ctx: ActivityContext) -> None:
        inp = self.input
        if not inp.is_bucket_required:
            logger.info("Input files are already on GCS, skipping staging bucket creation")
            return

        ctx.raise_if_cancelled()
        if self.store.bucket_exists(inp.bucket_name):
            logger.info(f"Bucket gs://{inp.bucket_name} already exists, skipping creation")
            self.output.exists = True
        else:
            labels = {constants.SMT_JOB_PREFIX: inp.job_id}
            self.store.create_bucket(
                inp.bucket_name,
                inp.spanner_project_id,
                inp.spanner_location,
                labels,
                ttl_days=inp.ttl_days,
            )
            self.output.created = True
            self.job_store.record_resource(ResourceRecord(
                job_id=inp.job_id,
                resource_type=ResourceType.STAGING_BUCKET,
                resource_name=inp.bucket_name,
                resource_data={"location": inp.spanner_location},
            ))

        staged = [
            (inp.session_file_path, constants.SESSION_FILE_NAME),
            (inp.source_connection_config, constants.SOURCE_CONNECTION_FILE_NAME),
        ]
        for local_path, object_name in staged:
            if is_gcs_path(local_path):
                continue
            ctx.raise_if_cancelled()
            self.store.upload_file(inp.bucket_name, object_name, Path(local_path).expanduser())
            self.output.staged_files.append(gcs_path(inp.bucket_name, object_name))

    def compensation(self, ctx: ActivityContext) -> None:
        if not self.output.created:
            return
        self.store.delete_bucket(self.input.bucket_name)
