"""
Activity catalog for the create reverse replication job type.

build_activities() binds the normalized request into the Input of each
activity, in the fixed order the saga runs them.
"""

from dataclasses import replace
from typing import Optional

from revrepl.activities import (
    FinalizeJobStatus,
    FinalizeJobStatusInput,
    LaunchReaderPipeline,
    LaunchReaderPipelineInput,
    LaunchWriterPipeline,
    LaunchWriterPipelineInput,
    PrepareChangeFeed,
    PrepareChangeFeedInput,
    PrepareMetadataStore,
    PrepareMetadataStoreInput,
    PrepareStagingStore,
    PrepareStagingStoreInput,
    RegisterJob,
    RegisterJobInput,
)
from revrepl.activity import Activity
from revrepl.adapters import Clients
from revrepl.config import RevreplConfig
from revrepl.schemas import JobStatus, NormalizedJobRequest
from revrepl.tuning import READER_DEFAULTS, WRITER_DEFAULTS


def build_activities(
    request: NormalizedJobRequest,
    job_id: str,
    job_data: str,
    clients: Clients,
    config: Optional[RevreplConfig] = None,
) -> list[Activity]:
    """
    Build the ordered activity list for one job.

    Args:
        request: The normalized request
        job_id: smt-job-<run_id>, shared by every activity
        job_data: The normalized request serialized for the job record
        clients: Adapters used by the activities
        config: Template paths and staging bucket TTL (defaults if None)

    Returns:
        The seven activities in execution order
    """
    config = config or RevreplConfig()
    reader_defaults = replace(READER_DEFAULTS, template_path=config.reader_template_path)
    writer_defaults = replace(WRITER_DEFAULTS, template_path=config.writer_template_path)

    return [
        RegisterJob(
            RegisterJobInput(
                job_id=job_id,
                job_name=request.job_name,
                spanner_project_id=request.spanner_project_id,
                instance_id=request.instance_id,
                database_id=request.database_id,
                job_data=job_data,
            ),
            job_store=clients.job_store,
        ),
        PrepareStagingStore(
            PrepareStagingStoreInput(
                job_id=job_id,
                bucket_name=request.staging_bucket_name,
                spanner_project_id=request.spanner_project_id,
                spanner_location=request.spanner_location,
                session_file_path=request.session_file_path,
                source_connection_config=request.source_connection_config,
                is_bucket_required=request.is_staging_bucket_required,
                ttl_days=config.staging_bucket_ttl_days,
            ),
            store=clients.staging_store,
            job_store=clients.job_store,
        ),
        PrepareChangeFeed(
            PrepareChangeFeedInput(
                job_id=job_id,
                change_stream_name=request.change_stream_name,
                db_uri=request.database_uri,
            ),
            admin=clients.change_streams,
            job_store=clients.job_store,
        ),
        PrepareMetadataStore(
            PrepareMetadataStoreInput(
                job_id=job_id,
                db_uri=request.metadata_database_uri,
            ),
            admin=clients.metadata_databases,
            job_store=clients.job_store,
        ),
        LaunchReaderPipeline(
            LaunchReaderPipelineInput(
                job_id=job_id,
                change_stream_name=request.change_stream_name,
                instance_id=request.instance_id,
                database_id=request.database_id,
                spanner_project_id=request.spanner_project_id,
                session_file_path=request.session_file_gcs_path,
                source_shards_file_path=request.source_connection_config_gcs_path,
                metadata_instance=request.metadata_instance,
                metadata_database=request.metadata_database,
                gcs_output_directory=request.gcs_data_directory,
                start_timestamp=request.start_timestamp,
                end_timestamp=request.end_timestamp,
                window_duration=request.window_duration,
                filtration_mode=request.filtration_mode,
                metadata_table_suffix=request.metadata_table_suffix,
                skip_directory_name=request.skip_directory_name,
                sharding_custom_jar_path=request.sharding_custom_jar_path,
                sharding_custom_class_name=request.sharding_custom_class_name,
                tuning_cfg=request.reader_cfg,
                spanner_location=request.spanner_location,
            ),
            launcher=clients.launcher,
            store=clients.staging_store,
            job_store=clients.job_store,
            defaults=reader_defaults,
        ),
        LaunchWriterPipeline(
            LaunchWriterPipelineInput(
                job_id=job_id,
                source_shards_file_path=request.source_connection_config_gcs_path,
                session_file_path=request.session_file_gcs_path,
                source_type=request.source_type,
                source_db_timezone_offset=request.source_db_timezone_offset,
                timer_interval=request.timer_interval,
                start_timestamp=request.start_timestamp,
                window_duration=request.window_duration,
                gcs_input_directory_path=request.gcs_data_directory,
                spanner_project_id=request.spanner_project_id,
                metadata_instance=request.metadata_instance,
                metadata_database=request.metadata_database,
                metadata_table_suffix=request.metadata_table_suffix,
                tuning_cfg=request.writer_cfg,
                spanner_location=request.spanner_location,
            ),
            launcher=clients.launcher,
            store=clients.staging_store,
            job_store=clients.job_store,
            defaults=writer_defaults,
        ),
        FinalizeJobStatus(
            FinalizeJobStatusInput(job_id=job_id, status=JobStatus.RUNNING),
            job_store=clients.job_store,
        ),
    ]
