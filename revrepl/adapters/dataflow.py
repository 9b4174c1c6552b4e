"""
Dataflow backed PipelineLauncher using google-cloud-dataflow-client.
"""

import logging
from typing import Any, Optional

from google.cloud import dataflow_v1beta3


logger = logging.getLogger(__name__)


class DataflowLauncher:
    """Launches flex templates and cancels jobs."""

    def __init__(
        self,
        templates_client: Optional[Any] = None,
        jobs_client: Optional[Any] = None,
    ):
        self._templates_client = templates_client
        self._jobs_client = jobs_client

    @property
    def templates_client(self) -> Any:
        if self._templates_client is None:
            self._templates_client = dataflow_v1beta3.FlexTemplatesServiceClient()
        return self._templates_client

    @property
    def jobs_client(self) -> Any:
        if self._jobs_client is None:
            self._jobs_client = dataflow_v1beta3.JobsV1Beta3Client()
        return self._jobs_client

    def launch(self, request: dataflow_v1beta3.LaunchFlexTemplateRequest) -> str:
        try:
            response = self.templates_client.launch_flex_template(request=request)
        except Exception:
            logger.error(f"flexTemplateRequest: {request}")
            raise
        return response.job.id

    def cancel(self, project_id: str, location: str, job_id: str) -> None:
        request = dataflow_v1beta3.UpdateJobRequest(
            project_id=project_id,
            location=location,
            job_id=job_id,
            job=dataflow_v1beta3.Job(
                requested_state=dataflow_v1beta3.JobState.JOB_STATE_CANCELLED,
            ),
        )
        self.jobs_client.update_job(request=request)
        logger.info(f"Requested cancellation of Dataflow job {job_id}")
