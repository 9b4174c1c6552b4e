"""Constants shared by the normalizer, activities and launch builders."""

GCS_FILE_PREFIX = "gs://"

# Source types
MYSQL = "mysql"
SUPPORTED_SOURCE_TYPES = (MYSQL,)

# Reader filtration modes
RR_READER_FILTER_FWD = "forward_migration"
RR_READER_FILTER_NONE = "none"
RR_READER_FILTER_MODES = (RR_READER_FILTER_FWD, RR_READER_FILTER_NONE)

RR_READER_REGULAR_MODE = "regular"
RR_WRITER_REGULAR_MODE = "regular"

DEFAULT_WINDOW_DURATION = "10s"

# Flex templates
REVERSE_REPLICATION_READER_TEMPLATE_PATH = (
    "gs://dataflow-templates-southamerica-west1/2023-09-12-00_RC00/flex/"
    "Spanner_Change_Streams_to_Sharded_File_Sink"
)
REVERSE_REPLICATION_WRITER_TEMPLATE_PATH = (
    "gs://dataflow-templates-southamerica-west1/2023-09-12-00_RC00/flex/"
    "GCS_to_Sourcedb"
)

# Resource name prefixes, all followed by "-<run_id>"
SMT_JOB_PREFIX = "smt-job"
SMT_BUCKET_PREFIX = "smt-rr-gcs"
METADATA_DATABASE_PREFIX = "smt-rr-metadata"
CHANGE_STREAM_PREFIX = "smt-rr-cs"
READER_JOB_PREFIX = "smt-reverse-replication-reader"
WRITER_JOB_PREFIX = "smt-reverse-replication-writer"

# Staged object names inside the staging bucket
SESSION_FILE_NAME = "session.json"
SOURCE_CONNECTION_FILE_NAME = "source-connection-config.json"
DATA_DIRECTORY_SUFFIX = "reverse-replication/data"

# Change streams
CHANGE_STREAM_VALUE_CAPTURE_TYPES = ("NEW_ROW", "NEW_ROW_AND_OLD_VALUES")
CHANGE_STREAM_CREATE_OPTIONS = {
    "value_capture_type": "NEW_ROW",
    "retention_period": "7d",
}

RUNNER_V2_EXPERIMENT = "use_runner_v2"
