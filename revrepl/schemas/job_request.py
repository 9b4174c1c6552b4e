"""
JobRequest schemas - the user supplied request and its normalized form.

A JobRequest is built from the request intake layer (web UI or CLI JSON
file). The normalizer turns it into a NormalizedJobRequest, which adds the
derived fields every activity relies on and is read-only afterwards.
"""

import json
from dataclasses import asdict, dataclass, fields
from typing import Any

from revrepl.errors import ValidationError


# Wire names used by the request intake layer -> field names
_WIRE_NAMES = {
    "InstanceId": "instance_id",
    "DatabaseId": "database_id",
    "SpannerProjectId": "spanner_project_id",
    "SessionFilePath": "session_file_path",
    "SourceConnectionConfig": "source_connection_config",
    "GcsDataDirectory": "gcs_data_directory",
    "ChangeStreamName": "change_stream_name",
    "JobName": "job_name",
    "SourceType": "source_type",
    "MetadataInstance": "metadata_instance",
    "MetadataDatabase": "metadata_database",
    "MetadataTableSuffix": "metadata_table_suffix",
    "StartTimestamp": "start_timestamp",
    "EndTimestamp": "end_timestamp",
    "WindowDuration": "window_duration",
    "FiltrationMode": "filtration_mode",
    "SkipDirectoryName": "skip_directory_name",
    "ShardingCustomJarPath": "sharding_custom_jar_path",
    "ShardingCustomClassName": "sharding_custom_class_name",
    "SourceDbTimezoneOffset": "source_db_timezone_offset",
    "TimerInterval": "timer_interval",
    "ReaderCfg": "reader_cfg",
    "WriterCfg": "writer_cfg",
}


@dataclass(frozen=True)
class JobRequest:
    """
    Parameters of a create reverse replication job request.

    Empty strings mean "not supplied"; the normalizer fills defaults.

    Attributes:
        instance_id: Spanner instance of the database being replicated
        database_id: Spanner database being replicated
        spanner_project_id: Project hosting the Spanner instance
        session_file_path: Local or gs:// path of the schema session file
        source_connection_config: Local or gs:// path of the source shards config
        gcs_data_directory: gs:// directory for the change records written
            by the reader and consumed by the writer
        change_stream_name: Change stream to read from (created if missing)
        job_name: Display name of the job
        source_type: Source database type (only mysql is supported)
        metadata_instance / metadata_database: Spanner database for
            pipeline metadata
        timer_interval: Writer timer interval in seconds (>= 1)
        reader_cfg / writer_cfg: Paths to Dataflow tuning config JSON files
    """
    instance_id: str = ""
    database_id: str = ""
    spanner_project_id: str = ""
    session_file_path: str = ""
    source_connection_config: str = ""
    gcs_data_directory: str = ""
    change_stream_name: str = ""
    job_name: str = ""
    source_type: str = ""
    metadata_instance: str = ""
    metadata_database: str = ""
    metadata_table_suffix: str = ""
    start_timestamp: str = ""
    end_timestamp: str = ""
    window_duration: str = ""
    filtration_mode: str = ""
    skip_directory_name: str = ""
    sharding_custom_jar_path: str = ""
    sharding_custom_class_name: str = ""
    source_db_timezone_offset: str = ""
    timer_interval: int = 0
    reader_cfg: str = ""
    writer_cfg: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JobRequest":
        """
        Build a JobRequest from a dict using wire names or field names.

        Raises:
            ValidationError: On unknown keys or wrongly typed values
        """
        known = {f.name: f for f in fields(JobRequest)}
        values: dict[str, Any] = {}
        for key, value in data.items():
            name = _WIRE_NAMES.get(key, key)
            if name not in known:
                raise ValidationError(key, f"unknown job request field: {key}")
            if value is None:
                continue
            if name == "timer_interval":
                if isinstance(value, bool) or not isinstance(value, int):
                    raise ValidationError(key, f"{key} must be an integer, got: {value!r}")
            elif not isinstance(value, str):
                raise ValidationError(key, f"{key} must be a string, got: {value!r}")
            values[name] = value
        return cls(**values)

    @classmethod
    def from_json(cls, text: str) -> "JobRequest":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValidationError("request", f"job request is not valid JSON: {e}")
        if not isinstance(data, dict):
            raise ValidationError("request", "job request must be a JSON object")
        return cls.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class NormalizedJobRequest(JobRequest):
    """
    A JobRequest with defaults applied and derived fields filled in.

    Additional attributes:
        run_id: Token embedded in every resource name created for this job
        is_staging_bucket_required: False only when both input files and the
            data directory are already on GCS
        staging_bucket_name: smt-rr-gcs-<run_id>, or "" when not required
        session_file_gcs_path: gs:// path the pipelines read the session from
        source_connection_config_gcs_path: gs:// path of the shards config
        spanner_location: Leader region of the Spanner instance
    """
    run_id: str = ""
    is_staging_bucket_required: bool = True
    staging_bucket_name: str = ""
    session_file_gcs_path: str = ""
    source_connection_config_gcs_path: str = ""
    spanner_location: str = ""

    @property
    def database_uri(self) -> str:
        return (
            f"projects/{self.spanner_project_id}/instances/{self.instance_id}"
            f"/databases/{self.database_id}"
        )

    @property
    def metadata_database_uri(self) -> str:
        return (
            f"projects/{self.spanner_project_id}/instances/{self.metadata_instance}"
            f"/databases/{self.metadata_database}"
        )

    def to_json(self) -> str:
        """Serialize for the job record (sorted keys, stable output)."""
        return json.dumps(self.to_dict(), sort_keys=True)
