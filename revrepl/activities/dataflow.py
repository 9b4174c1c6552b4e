"""
LaunchReaderPipeline and LaunchWriterPipeline - start the Dataflow jobs.

Both follow the same steps: load the tuning file, resolve it against the
job's defaults, build the parameter map and launch request, launch, record
the job as a resource owned by this run.
"""

import logging
from abc import abstractmethod
from dataclasses import dataclass
from typing import Optional

from revrepl import constants
from revrepl.activity import Activity, ActivityContext
from revrepl.adapters.base import JobStore, PipelineLauncher, StagingStore
from revrepl.launch import build_launch_parameters, build_launch_request, gcloud_command
from revrepl.schemas import ResourceRecord, ResourceType, TuningConfig
from revrepl.tuning import (
    READER_DEFAULTS,
    WRITER_DEFAULTS,
    TuningDefaults,
    load_tuning_config,
    resolve_tuning_config,
)


logger = logging.getLogger(__name__)


@dataclass
class LaunchPipelineOutput:
    job_id: str = ""
    job_name: str = ""
    project_id: str = ""
    location: str = ""

    @property
    def created(self) -> bool:
        return bool(self.job_id)


class _LaunchPipeline(Activity):
    """Shared launch logic; subclasses provide defaults and parameters."""

    role = ""
    default_tuning: TuningDefaults

    def __init__(
        self,
        launcher: PipelineLauncher,
        store: StagingStore,
        job_store: JobStore,
        defaults: Optional[TuningDefaults] = None,
        name_suffix: Optional[str] = None,
    ):
        self.output = LaunchPipelineOutput()
        self.defaults = defaults or self.default_tuning
        self.launcher = launcher
        self.store = store
        self.job_store = job_store
        self.name_suffix = name_suffix

    @abstractmethod
    def launch_parameters(self) -> dict[str, str]:
        pass

    def resolve_tuning(self) -> TuningConfig:
        inp = self.input
        cfg = load_tuning_config(inp.tuning_cfg, self.store)
        logger.debug(f"{self.role} tuning config: {cfg}")
        resolved = resolve_tuning_config(
            cfg,
            self.defaults,
            project_id=inp.spanner_project_id,
            location=inp.spanner_location,
            run_id=inp.job_id,
            name_suffix=self.name_suffix,
        )
        logger.debug(f"Updated {self.role} tuning config: {resolved}")
        return resolved

    def transaction(self, ctx: ActivityContext) -> None:
        ctx.raise_if_cancelled()
        tuning = self.resolve_tuning()
        request = build_launch_request(self.launch_parameters(), tuning)

        ctx.raise_if_cancelled()
        job_id = self.launcher.launch(request)
        self.output.job_id = job_id
        self.output.job_name = tuning.job_name
        self.output.project_id = tuning.project_id
        self.output.location = tuning.location

        self.job_store.record_resource(ResourceRecord(
            job_id=self.input.job_id,
            resource_type=ResourceType.DATAFLOW_JOB,
            resource_name=job_id,
            resource_data={
                "role": self.role,
                "job_name": tuning.job_name,
                "project_id": tuning.project_id,
                "location": tuning.location,
            },
        ))
        logger.info(f"Launched {self.role} job with id: {job_id}")
        logger.info(
            f"Equivalent gcloud command for job {tuning.job_name}:\n{gcloud_command(request)}"
        )

    def compensation(self, ctx: ActivityContext) -> None:
        if not self.output.created:
            return
        self.launcher.cancel(self.output.project_id, self.output.location, self.output.job_id)


@dataclass(frozen=True)
class LaunchReaderPipelineInput:
    job_id: str
    change_stream_name: str
    instance_id: str
    database_id: str
    spanner_project_id: str
    session_file_path: str
    source_shards_file_path: str
    metadata_instance: str
    metadata_database: str
    gcs_output_directory: str
    start_timestamp: str
    end_timestamp: str
    window_duration: str
    filtration_mode: str
    metadata_table_suffix: str
    skip_directory_name: str
    sharding_custom_jar_path: str
    sharding_custom_class_name: str
    tuning_cfg: str
    spanner_location: str


class LaunchReaderPipeline(_LaunchPipeline):
    """Launches the change stream reader (Spanner -> GCS) job."""

    role = "reader"
    default_tuning = READER_DEFAULTS

    def __init__(self, input: LaunchReaderPipelineInput, launcher: PipelineLauncher,
                 store: StagingStore, job_store: JobStore, defaults: Optional[TuningDefaults] = None,
                 name_suffix: Optional[str] = None):
        super().__init__(launcher, store, job_store, defaults=defaults, name_suffix=name_suffix)
        self.input = input

    def launch_parameters(self) -> dict[str, str]:
        inp = self.input
        base = {
            "changeStreamName": inp.change_stream_name,
            "instanceId": inp.instance_id,
            "databaseId": inp.database_id,
            "spannerProjectId": inp.spanner_project_id,
            "metadataInstance": inp.metadata_instance,
            "metadataDatabase": inp.metadata_database,
            "gcsOutputDirectory": inp.gcs_output_directory,
            "sessionFilePath": inp.session_file_path,
            "sourceShardsFilePath": inp.source_shards_file_path,
            "startTimestamp": inp.start_timestamp,
            "endTimestamp": inp.end_timestamp,
            "windowDuration": inp.window_duration,
            "filtrationMode": inp.filtration_mode,
            "metadataTableSuffix": inp.metadata_table_suffix,
            "skipDirectoryName": inp.skip_directory_name,
            "runIdentifier": inp.job_id,
            "runMode": constants.RR_READER_REGULAR_MODE,
        }
        # The template expects GCS paths here, empty strings are rejected.
        optional = {}
        if inp.sharding_custom_jar_path:
            optional = {
                "shardingCustomJarPath": inp.sharding_custom_jar_path,
                "shardingCustomClassName": inp.sharding_custom_class_name,
            }
        return build_launch_parameters(base, optional)


@dataclass(frozen=True)
class LaunchWriterPipelineInput:
    job_id: str
    source_shards_file_path: str
    session_file_path: str
    source_type: str
    source_db_timezone_offset: str
    timer_interval: int
    start_timestamp: str
    window_duration: str
    gcs_input_directory_path: str
    spanner_project_id: str
    metadata_instance: str
    metadata_database: str
    metadata_table_suffix: str
    tuning_cfg: str
    spanner_location: str


class LaunchWriterPipeline(_LaunchPipeline):
    """Launches the writer (GCS -> source database) job."""

    role = "writer"
    default_tuning = WRITER_DEFAULTS

    def __init__(self, input: LaunchWriterPipelineInput, launcher: PipelineLauncher,
                 store: StagingStore, job_store: JobStore, defaults: Optional[TuningDefaults] = None,
                 name_suffix: Optional[str] = None):
        super().__init__(launcher, store, job_store, defaults=defaults, name_suffix=name_suffix)
        self.input = input

    def launch_parameters(self) -> dict[str, str]:
        inp = self.input
        base = {
            "sourceShardsFilePath": inp.source_shards_file_path,
            "sessionFilePath": inp.session_file_path,
            "sourceType": inp.source_type,
            "sourceDbTimezoneOffset": inp.source_db_timezone_offset,
            "timerInterval": str(inp.timer_interval),
            "startTimestamp": inp.start_timestamp,
            "windowDuration": inp.window_duration,
            "GCSInputDirectoryPath": inp.gcs_input_directory_path,
            "spannerProjectId": inp.spanner_project_id,
            "metadataInstance": inp.metadata_instance,
            "metadataDatabase": inp.metadata_database,
            "metadataTableSuffix": inp.metadata_table_suffix,
            "runIdentifier": inp.job_id,
            "runMode": constants.RR_WRITER_REGULAR_MODE,
        }
        return build_launch_parameters(base)
