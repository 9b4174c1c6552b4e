"""
revrepl.adapters - Narrow interfaces to the external resource managers.

Protocols:
- LocationResolver, ChangeStreamAdmin, MetadataDatabaseAdmin: Spanner
- StagingStore: Cloud Storage
- PipelineLauncher: Dataflow
- JobStore: job and resource records

Clients bundles one implementation of each for an activity catalog.
"""

from dataclasses import dataclass
from typing import Optional

from revrepl.adapters.base import (
    ChangeStreamAdmin,
    JobStore,
    LocationResolver,
    MetadataDatabaseAdmin,
    PipelineLauncher,
    StagingStore,
)
from revrepl.adapters.job_store import InMemoryJobStore, JobNotFoundError
from revrepl.config import RevreplConfig


@dataclass
class Clients:
    """Adapters shared by the activities of one workflow run."""

    location_resolver: LocationResolver
    change_streams: ChangeStreamAdmin
    metadata_databases: MetadataDatabaseAdmin
    staging_store: StagingStore
    launcher: PipelineLauncher
    job_store: JobStore

    @classmethod
    def from_config(cls, config: RevreplConfig, project_id: Optional[str] = None) -> "Clients":
        """
        Build the Google backed adapters.

        Args:
            config: Runtime configuration (job store dataset/tables)
            project_id: Project for the BigQuery and Storage clients when
                config.project is unset
        """
        from google.cloud import bigquery

        from revrepl.adapters.dataflow import DataflowLauncher
        from revrepl.adapters.job_store import BigQueryJobStore
        from revrepl.adapters.spanner import SpannerAdmin, SpannerMetadataAdmin
        from revrepl.adapters.storage import GcsStagingStore

        project = config.project or project_id
        spanner_admin = SpannerAdmin()
        return cls(
            location_resolver=spanner_admin,
            change_streams=spanner_admin,
            metadata_databases=SpannerMetadataAdmin(spanner_admin),
            staging_store=GcsStagingStore(project=project),
            launcher=DataflowLauncher(),
            job_store=BigQueryJobStore(
                bigquery.Client(project=project),
                dataset=config.dataset,
                jobs_table=config.jobs_table,
                resources_table=config.resources_table,
            ),
        )


__all__ = [
    "ChangeStreamAdmin",
    "Clients",
    "InMemoryJobStore",
    "JobNotFoundError",
    "JobStore",
    "LocationResolver",
    "MetadataDatabaseAdmin",
    "PipelineLauncher",
    "StagingStore",
]
