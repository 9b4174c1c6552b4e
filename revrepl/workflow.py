"""
Workflow entry point for creating a reverse replication pipeline.

Usage:
    from revrepl.adapters import Clients
    from revrepl.schemas import JobRequest
    from revrepl.workflow import create_workflow

    request = JobRequest.from_json(Path("request.json").read_text())
    clients = Clients.from_config(config, project_id=request.spanner_project_id)
    result = create_workflow(request, clients, config)

Flow: generate run id -> normalize -> build activity catalog -> run saga.
A request that fails normalization never reaches the catalog, so it has no
external side effects beyond the leader location lookup.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Optional

from revrepl import constants
from revrepl.activities import LaunchReaderPipeline, LaunchWriterPipeline
from revrepl.activity import Activity, ActivityContext
from revrepl.adapters import Clients
from revrepl.catalog import build_activities
from revrepl.config import RevreplConfig
from revrepl.normalizer import normalize_request
from revrepl.saga import Saga, SagaResult
from revrepl.schemas import JobRequest, NormalizedJobRequest
from revrepl.utils import generate_hash_str


logger = logging.getLogger(__name__)


@dataclass
class WorkflowPlan:
    """A normalized request and the activities that would run for it."""
    job_id: str
    normalized: NormalizedJobRequest
    activities: list[Activity]

    def to_dict(self) -> dict:
        return {
            "job_id": self.job_id,
            "normalized_request": self.normalized.to_dict(),
            "activities": [a.name for a in self.activities],
        }


@dataclass
class WorkflowResult:
    """Result of a successful create_workflow call."""
    job_id: str
    normalized: NormalizedJobRequest
    saga: SagaResult
    reader_job_id: str = ""
    writer_job_id: str = ""


def plan_workflow(
    request: JobRequest,
    clients: Clients,
    config: Optional[RevreplConfig] = None,
    run_id: Optional[str] = None,
) -> WorkflowPlan:
    """
    Normalize a request and build its activity catalog without running it.

    Raises:
        ValidationError: The request is invalid
        LocationLookupError: The leader location could not be resolved
    """
    run_id = run_id or generate_hash_str()
    normalized = normalize_request(request, run_id, clients.location_resolver)
    logger.debug(f"Updated job request: {normalized}")

    job_id = f"{constants.SMT_JOB_PREFIX}-{run_id}"
    activities = build_activities(normalized, job_id, normalized.to_json(), clients, config)
    return WorkflowPlan(job_id=job_id, normalized=normalized, activities=activities)


def create_workflow(
    request: JobRequest,
    clients: Clients,
    config: Optional[RevreplConfig] = None,
    run_id: Optional[str] = None,
    cancel_event: Optional[threading.Event] = None,
) -> WorkflowResult:
    """
    Provision every resource of a reverse replication pipeline.

    Args:
        request: The job request
        clients: Adapters for Spanner, GCS, Dataflow and the job store
        config: Runtime configuration (defaults if None)
        run_id: Run identifier (generated if None)
        cancel_event: Set it from another thread to stop the run; completed
            activities are then compensated

    Returns:
        WorkflowResult with the job id and the launched Dataflow job ids

    Raises:
        ValidationError, LocationLookupError: Before any resource is touched
        SagaExecutionError: An activity failed; earlier ones were compensated
    """
    logger.info("Creating reverse replication pipeline.")
    logger.debug(f"Received create reverse replication job request: {request}")

    plan = plan_workflow(request, clients, config, run_id=run_id)

    ctx = ActivityContext(run_id=plan.normalized.run_id)
    if cancel_event is not None:
        ctx.cancel_event = cancel_event

    saga_result = Saga(plan.activities).execute(ctx)

    result = WorkflowResult(job_id=plan.job_id, normalized=plan.normalized, saga=saga_result)
    for activity in plan.activities:
        if isinstance(activity, LaunchReaderPipeline):
            result.reader_job_id = activity.output.job_id
        elif isinstance(activity, LaunchWriterPipeline):
            result.writer_job_id = activity.output.job_id

    logger.info(f"Successfully launched reverse replication pipeline {plan.job_id}.")
    return result
