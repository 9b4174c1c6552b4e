"""
Request normalizer - validates a JobRequest and fills derived fields.

normalize_request() either returns a complete NormalizedJobRequest or raises;
the caller's JobRequest is never modified. The only external call is the
Spanner leader location lookup, made after every local check has passed.
"""

import logging
from dataclasses import asdict

from revrepl import constants
from revrepl.adapters.base import LocationResolver
from revrepl.errors import LocationLookupError, ValidationError
from revrepl.schemas import JobRequest, NormalizedJobRequest
from revrepl.utils import gcs_path, is_gcs_path


logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "instance_id",
    "database_id",
    "session_file_path",
    "source_connection_config",
    "spanner_project_id",
)


def sanitize_change_stream_name(name: str) -> str:
    """Replace '-' with '_' since hyphens are not allowed in change stream names."""
    return name.replace("-", "_")


def _require(values: dict, field: str) -> None:
    if not values[field]:
        raise ValidationError(field, f"found empty {field} which is a required parameter")


def normalize_request(
    request: JobRequest,
    run_id: str,
    location_resolver: LocationResolver,
) -> NormalizedJobRequest:
    """
    Validate a job request and apply defaults.

    Args:
        request: The raw request
        run_id: Run identifier embedded in every synthesized resource name
        location_resolver: Used once to resolve the Spanner leader location

    Returns:
        A NormalizedJobRequest

    Raises:
        ValidationError: A required field is missing or a value is invalid
        LocationLookupError: The leader location could not be resolved
    """
    if not run_id:
        raise ValidationError("run_id", "found empty run_id")

    values = asdict(request)

    # Staging bucket is only skipped when nothing needs to be staged.
    bucket_name = f"{constants.SMT_BUCKET_PREFIX}-{run_id}"
    is_bucket_required = True
    if (
        is_gcs_path(values["session_file_path"])
        and is_gcs_path(values["source_connection_config"])
        and values["gcs_data_directory"]
    ):
        is_bucket_required = False
        bucket_name = ""

    for field in REQUIRED_FIELDS:
        _require(values, field)

    if is_gcs_path(values["session_file_path"]):
        session_file_gcs_path = values["session_file_path"]
    else:
        session_file_gcs_path = gcs_path(bucket_name, constants.SESSION_FILE_NAME)

    if is_gcs_path(values["source_connection_config"]):
        source_connection_config_gcs_path = values["source_connection_config"]
    else:
        source_connection_config_gcs_path = gcs_path(bucket_name, constants.SOURCE_CONNECTION_FILE_NAME)

    if not values["job_name"]:
        values["job_name"] = f"{constants.SMT_JOB_PREFIX}-{run_id}"

    if not values["source_type"]:
        values["source_type"] = constants.MYSQL
    if values["source_type"] not in constants.SUPPORTED_SOURCE_TYPES:
        raise ValidationError(
            "source_type",
            f"{values['source_type']} is not a valid source type for reverse replication. "
            f"Only supported source type is {constants.MYSQL}",
        )

    if not values["metadata_instance"]:
        values["metadata_instance"] = values["instance_id"]
    if not values["metadata_database"]:
        values["metadata_database"] = f"{constants.METADATA_DATABASE_PREFIX}-{run_id}"

    if not values["gcs_data_directory"]:
        values["gcs_data_directory"] = gcs_path(
            f"{constants.SMT_BUCKET_PREFIX}-{run_id}", constants.DATA_DIRECTORY_SUFFIX
        )
    elif not is_gcs_path(values["gcs_data_directory"]):
        raise ValidationError(
            "gcs_data_directory",
            f"invalid gcs path for gcs_data_directory: {values['gcs_data_directory']}",
        )

    if not values["change_stream_name"]:
        values["change_stream_name"] = f"{constants.CHANGE_STREAM_PREFIX}-{run_id}"

    if not values["filtration_mode"]:
        values["filtration_mode"] = constants.RR_READER_FILTER_FWD
    elif values["filtration_mode"] not in constants.RR_READER_FILTER_MODES:
        raise ValidationError(
            "filtration_mode",
            f"found filtration_mode {values['filtration_mode']}, only allowed values are "
            f"[{constants.RR_READER_FILTER_FWD}, {constants.RR_READER_FILTER_NONE}]",
        )

    if values["timer_interval"] < 1:
        values["timer_interval"] = 1
    if not values["window_duration"]:
        values["window_duration"] = constants.DEFAULT_WINDOW_DURATION

    jar_path = values["sharding_custom_jar_path"]
    class_name = values["sharding_custom_class_name"]
    if jar_path and not class_name:
        raise ValidationError(
            "sharding_custom_class_name",
            "found non-empty value for sharding_custom_jar_path, "
            "but empty value for sharding_custom_class_name",
        )
    if class_name and not jar_path:
        raise ValidationError(
            "sharding_custom_jar_path",
            "found non-empty value for sharding_custom_class_name, "
            "but empty value for sharding_custom_jar_path",
        )
    if jar_path and not is_gcs_path(jar_path):
        raise ValidationError(
            "sharding_custom_jar_path",
            "please specify a valid GCS path for sharding_custom_jar_path, starting with gs://",
        )

    values["change_stream_name"] = sanitize_change_stream_name(values["change_stream_name"])

    try:
        spanner_location = location_resolver.get_leader_location(
            values["spanner_project_id"], values["instance_id"]
        )
    except Exception as e:
        raise LocationLookupError(
            f"could not resolve leader location for projects/{values['spanner_project_id']}"
            f"/instances/{values['instance_id']}: {e}"
        ) from e
    if not spanner_location:
        raise LocationLookupError(
            f"empty leader location for projects/{values['spanner_project_id']}"
            f"/instances/{values['instance_id']}"
        )

    normalized = NormalizedJobRequest(
        **values,
        run_id=run_id,
        is_staging_bucket_required=is_bucket_required,
        staging_bucket_name=bucket_name,
        session_file_gcs_path=session_file_gcs_path,
        source_connection_config_gcs_path=source_connection_config_gcs_path,
        spanner_location=spanner_location,
    )
    logger.debug(f"Normalized job request: {normalized}")
    return normalized
