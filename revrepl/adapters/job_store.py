"""
JobStore implementations.

- BigQueryJobStore: job and resource records in BigQuery tables
- InMemoryJobStore: for testing and dry runs

Table layout (dataset configured in RevreplConfig):

    smt_jobs(job_id STRING, job_name STRING, spanner_project_id STRING,
             instance_id STRING, database_id STRING, job_data STRING,
             status STRING, created_at TIMESTAMP, updated_at TIMESTAMP)

    smt_resources(job_id STRING, resource_type STRING, resource_name STRING,
                  resource_data STRING, created_at TIMESTAMP)
"""

import json
import logging
from datetime import datetime, timezone
from typing import Optional

from google.cloud import bigquery

from revrepl.errors import RevreplError
from revrepl.schemas import JobRecord, JobStatus, ResourceRecord


logger = logging.getLogger(__name__)


class JobNotFoundError(RevreplError):
    """Raised when a job record does not exist."""
    pass


class BigQueryJobStore:
    """JobStore backed by BigQuery DML statements."""

    def __init__(
        self,
        bq_client: bigquery.Client,
        dataset: str,
        jobs_table: str = "smt_jobs",
        resources_table: str = "smt_resources",
    ):
        self.bq_client = bq_client
        self.dataset = dataset
        self.jobs_table = jobs_table
        self.resources_table = resources_table

    def _table(self, name: str) -> str:
        return f"`{self.dataset}.{name}`"

    def _run(self, query: str, params: list) -> bigquery.QueryJob:
        job_config = bigquery.QueryJobConfig(query_parameters=params)
        query_job = self.bq_client.query(query, job_config=job_config)
        query_job.result()
        return query_job

    def create_job(self, record: JobRecord) -> None:
        query = f"""
            INSERT INTO {self._table(self.jobs_table)}
                (job_id, job_name, spanner_project_id, instance_id, database_id,
                 job_data, status, created_at)
            VALUES
                (@job_id, @job_name, @spanner_project_id, @instance_id, @database_id,
                 @job_data, @status, @created_at)
        """
        params = [
            bigquery.ScalarQueryParameter("job_id", "STRING", record.job_id),
            bigquery.ScalarQueryParameter("job_name", "STRING", record.job_name),
            bigquery.ScalarQueryParameter("spanner_project_id", "STRING", record.spanner_project_id),
            bigquery.ScalarQueryParameter("instance_id", "STRING", record.instance_id),
            bigquery.ScalarQueryParameter("database_id", "STRING", record.database_id),
            bigquery.ScalarQueryParameter("job_data", "STRING", record.job_data),
            bigquery.ScalarQueryParameter("status", "STRING", record.status.value),
            bigquery.ScalarQueryParameter("created_at", "TIMESTAMP", record.created_at),
        ]
        self._run(query, params)
        logger.debug(f"Inserted job record {record.job_id}")

    def update_status(self, job_id: str, status: JobStatus) -> None:
        query = f"""
            UPDATE {self._table(self.jobs_table)}
            SET status = @status, updated_at = CURRENT_TIMESTAMP()
            WHERE job_id = @job_id
        """
        params = [
            bigquery.ScalarQueryParameter("status", "STRING", status.value),
            bigquery.ScalarQueryParameter("job_id", "STRING", job_id),
        ]
        query_job = self._run(query, params)
        if not query_job.num_dml_affected_rows:
            raise JobNotFoundError(f"Job record not found: {job_id}")

    def get_job(self, job_id: str) -> Optional[JobRecord]:
        query = f"""
            SELECT job_id, job_name, spanner_project_id, instance_id, database_id,
                   job_data, status, created_at, updated_at
            FROM {self._table(self.jobs_table)}
            WHERE job_id = @job_id
            LIMIT 1
        """
        params = [bigquery.ScalarQueryParameter("job_id", "STRING", job_id)]
        job_config = bigquery.QueryJobConfig(query_parameters=params)
        for row in self.bq_client.query(query, job_config=job_config).result():
            data = dict(row)
            return JobRecord(
                job_id=data["job_id"],
                job_name=data["job_name"],
                spanner_project_id=data["spanner_project_id"],
                instance_id=data["instance_id"],
                database_id=data["database_id"],
                job_data=data["job_data"],
                status=JobStatus(data["status"]),
                created_at=data["created_at"],
                updated_at=data.get("updated_at"),
            )
        return None

    def record_resource(self, resource: ResourceRecord) -> None:
        query = f"""
            INSERT INTO {self._table(self.resources_table)}
                (job_id, resource_type, resource_name, resource_data, created_at)
            VALUES
                (@job_id, @resource_type, @resource_name, @resource_data, @created_at)
        """
        params = [
            bigquery.ScalarQueryParameter("job_id", "STRING", resource.job_id),
            bigquery.ScalarQueryParameter("resource_type", "STRING", resource.resource_type.value),
            bigquery.ScalarQueryParameter("resource_name", "STRING", resource.resource_name),
            bigquery.ScalarQueryParameter(
                "resource_data", "STRING", json.dumps(resource.resource_data, sort_keys=True)
            ),
            bigquery.ScalarQueryParameter("created_at", "TIMESTAMP", resource.created_at),
        ]
        self._run(query, params)


class InMemoryJobStore:
    """In-memory JobStore for testing and dry runs."""

    def __init__(self):
        self.jobs: dict[str, JobRecord] = {}
        self.resources: list[ResourceRecord] = []

    def create_job(self, record: JobRecord) -> None:
        self.jobs[record.job_id] = record

    def update_status(self, job_id: str, status: JobStatus) -> None:
        record = self.jobs.get(job_id)
        if record is None:
            raise JobNotFoundError(f"Job record not found: {job_id}")
        record.status = status
        record.updated_at = datetime.now(timezone.utc)

    def get_job(self, job_id: str) -> Optional[JobRecord]:
        return self.jobs.get(job_id)

    def record_resource(self, resource: ResourceRecord) -> None:
        self.resources.append(resource)

    def resources_for(self, job_id: str) -> list[ResourceRecord]:
        return [r for r in self.resources if r.job_id == job_id]
