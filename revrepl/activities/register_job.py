"""RegisterJob and FinalizeJobStatus - the job record bookends of the saga."""

import logging
from dataclasses import dataclass

from revrepl.activity import Activity, ActivityContext
from revrepl.adapters.base import JobStore
from revrepl.schemas import JobRecord, JobStatus


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegisterJobInput:
    job_id: str
    job_name: str
    spanner_project_id: str
    instance_id: str
    database_id: str
    job_data: str


@dataclass
class RegisterJobOutput:
    created: bool = False


class RegisterJob(Activity):
    """Writes the initial job record with status CREATED."""

    def __init__(self, input: RegisterJobInput, job_store: JobStore):
        self.input = input
        self.output = RegisterJobOutput()
        self.job_store = job_store

    def transaction(self, ctx: ActivityContext) -> None:
        ctx.raise_if_cancelled()
        record = JobRecord(
            job_id=self.input.job_id,
            job_name=self.input.job_name,
            spanner_project_id=self.input.spanner_project_id,
            instance_id=self.input.instance_id,
            database_id=self.input.database_id,
            job_data=self.input.job_data,
            status=JobStatus.CREATED,
        )
        self.job_store.create_job(record)
        self.output.created = True
        logger.info(f"Registered job {self.input.job_id} ({self.input.job_name})")

    def compensation(self, ctx: ActivityContext) -> None:
        if not self.output.created:
            return
        self.job_store.update_status(self.input.job_id, JobStatus.FAILED)
        logger.info(f"Marked job {self.input.job_id} as {JobStatus.FAILED.value}")


@dataclass(frozen=True)
class FinalizeJobStatusInput:
    job_id: str
    status: JobStatus = JobStatus.RUNNING


@dataclass
class FinalizeJobStatusOutput:
    updated: bool = False


class FinalizeJobStatus(Activity):
    """Marks the job record RUNNING. Always the last activity."""

    def __init__(self, input: FinalizeJobStatusInput, job_store: JobStore):
        self.input = input
        self.output = FinalizeJobStatusOutput()
        self.job_store = job_store

    def transaction(self, ctx: ActivityContext) -> None:
        ctx.raise_if_cancelled()
        self.job_store.update_status(self.input.job_id, self.input.status)
        self.output.updated = True

    def compensation(self, ctx: ActivityContext) -> None:
        if not self.output.updated:
            return
        self.job_store.update_status(self.input.job_id, JobStatus.CREATED)
