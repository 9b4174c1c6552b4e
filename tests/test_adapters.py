"""Tests for the Google backed adapters, using mocked client libraries."""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from google.cloud import dataflow_v1beta3

from revrepl.adapters import Clients, InMemoryJobStore, JobNotFoundError
from revrepl.adapters.dataflow import DataflowLauncher
from revrepl.adapters.job_store import BigQueryJobStore
from revrepl.adapters.spanner import (
    OPERATION_TIMEOUT_S,
    SpannerAdmin,
    SpannerMetadataAdmin,
    parse_database_uri,
)
from revrepl.adapters.storage import GcsStagingStore
from revrepl.config import RevreplConfig
from revrepl.errors import ChangeStreamOptionsError
from revrepl.schemas import JobRecord, JobStatus, ResourceRecord, ResourceType


DB_URI = "projects/p1/instances/inst/databases/db"


def _params(call):
    """Return {name: value} of the query parameters passed to bq_client.query."""
    job_config = call.kwargs["job_config"]
    return {p.name: p.value for p in job_config.query_parameters}


class TestParseDatabaseUri:
    """Tests for parse_database_uri()."""

    def test_valid(self):
        assert parse_database_uri(DB_URI) == ("p1", "inst", "db")

    @pytest.mark.parametrize("uri", [
        "projects/p1/instances/inst",
        "projects//instances/inst/databases/db",
        "project/p1/instances/inst/databases/db",
    ])
    def test_invalid(self, uri):
        with pytest.raises(ValueError, match="Invalid database URI"):
            parse_database_uri(uri)


@pytest.fixture
def spanner_client():
    return MagicMock()


@pytest.fixture
def spanner_admin(spanner_client):
    return SpannerAdmin(client_factory=lambda project: spanner_client)


def _snapshot_rows(spanner_client, rows):
    database = spanner_client.instance.return_value.database.return_value
    snapshot = database.snapshot.return_value.__enter__.return_value
    snapshot.execute_sql.return_value = rows
    return database


class TestSpannerAdmin:
    """Tests for SpannerAdmin."""

    def test_leader_location(self, spanner_admin, spanner_client):
        instance = spanner_client.instance.return_value
        instance.configuration_name = "projects/p1/instanceConfigs/nam3"
        spanner_client.instance_admin_api.get_instance_config.return_value = SimpleNamespace(replicas=[
            SimpleNamespace(location="us-east4", default_leader_location=False),
            SimpleNamespace(location="us-east1", default_leader_location=True),
        ])

        assert spanner_admin.get_leader_location("p1", "inst") == "us-east1"
        instance.reload.assert_called_once()
        spanner_client.instance_admin_api.get_instance_config.assert_called_once_with(
            name="projects/p1/instanceConfigs/nam3"
        )

    def test_leader_location_missing(self, spanner_admin, spanner_client):
        spanner_client.instance_admin_api.get_instance_config.return_value = SimpleNamespace(replicas=[
            SimpleNamespace(location="us-east4", default_leader_location=False),
        ])
        with pytest.raises(ValueError, match="no default leader location"):
            spanner_admin.get_leader_location("p1", "inst")

    def test_clients_cached_per_project(self):
        factory = MagicMock()
        admin = SpannerAdmin(client_factory=factory)
        admin.database(DB_URI)
        admin.database(DB_URI)
        factory.assert_called_once_with("p1")

    def test_change_stream_exists(self, spanner_admin, spanner_client):
        _snapshot_rows(spanner_client, [("cs",)])
        assert spanner_admin.exists("cs", DB_URI) is True

        _snapshot_rows(spanner_client, [])
        assert spanner_admin.exists("cs", DB_URI) is False

    def test_valid_options(self, spanner_admin, spanner_client):
        _snapshot_rows(spanner_client, [("value_capture_type", "NEW_ROW"), ("retention_period", "7d")])
        spanner_admin.validate_options("cs", DB_URI)

    def test_invalid_options(self, spanner_admin, spanner_client):
        _snapshot_rows(spanner_client, [("VALUE_CAPTURE_TYPE", "OLD_AND_NEW_VALUES")])
        with pytest.raises(ChangeStreamOptionsError) as exc_info:
            spanner_admin.validate_options("cs", DB_URI)
        assert exc_info.value.change_stream_name == "cs"

    def test_missing_value_capture_type_is_invalid(self, spanner_admin, spanner_client):
        _snapshot_rows(spanner_client, [])
        with pytest.raises(ChangeStreamOptionsError, match="OLD_AND_NEW_VALUES"):
            spanner_admin.validate_options("cs", DB_URI)

    def test_create_change_stream(self, spanner_admin, spanner_client):
        database = spanner_client.instance.return_value.database.return_value
        spanner_admin.create("cs", DB_URI)

        database.update_ddl.assert_called_once_with([
            "CREATE CHANGE STREAM cs FOR ALL OPTIONS "
            "(value_capture_type = 'NEW_ROW', retention_period = '7d')"
        ])
        database.update_ddl.return_value.result.assert_called_once_with(OPERATION_TIMEOUT_S)
        spanner_client.instance.assert_called_with("inst")
        spanner_client.instance.return_value.database.assert_called_with("db")

    def test_drop_change_stream(self, spanner_admin, spanner_client):
        database = spanner_client.instance.return_value.database.return_value
        spanner_admin.drop("cs", DB_URI)
        database.update_ddl.assert_called_once_with(["DROP CHANGE STREAM cs"])


class TestSpannerMetadataAdmin:
    """Tests for SpannerMetadataAdmin."""

    def test_lifecycle(self, spanner_admin, spanner_client):
        database = spanner_client.instance.return_value.database.return_value
        database.exists.return_value = False
        admin = SpannerMetadataAdmin(spanner_admin)

        assert admin.exists(DB_URI) is False
        admin.create(DB_URI)
        database.create.return_value.result.assert_called_once_with(OPERATION_TIMEOUT_S)
        admin.drop(DB_URI)
        database.drop.assert_called_once()


class TestGcsStagingStore:
    """Tests for GcsStagingStore."""

    def test_create_bucket(self):
        client = MagicMock()
        bucket = client.bucket.return_value
        store = GcsStagingStore(client=client)

        store.create_bucket("b", "p1", "us-central1", {"smt-job": "smt-job-abc"}, ttl_days=3)

        assert bucket.labels == {"smt-job": "smt-job-abc"}
        bucket.add_lifecycle_delete_rule.assert_called_once_with(age=3)
        client.create_bucket.assert_called_once_with(bucket, project="p1", location="us-central1")

    def test_create_bucket_without_ttl(self):
        client = MagicMock()
        GcsStagingStore(client=client).create_bucket("b", "p1", "us-central1", {})
        client.bucket.return_value.add_lifecycle_delete_rule.assert_not_called()

    def test_delete_bucket_forces(self):
        client = MagicMock()
        GcsStagingStore(client=client).delete_bucket("b")
        client.bucket.return_value.delete.assert_called_once_with(force=True)

    def test_upload_and_read(self, tmp_path):
        client = MagicMock()
        blob = client.bucket.return_value.blob.return_value
        blob.download_as_text.return_value = "{}"
        store = GcsStagingStore(client=client)

        store.upload_file("b", "session.json", tmp_path / "session.json")
        blob.upload_from_filename.assert_called_once_with(str(tmp_path / "session.json"))

        assert store.read_text("gs://cfg/dir/reader.json") == "{}"
        client.bucket.assert_called_with("cfg")
        client.bucket.return_value.blob.assert_called_with("dir/reader.json")

    def test_bucket_exists(self):
        client = MagicMock()
        client.bucket.return_value.exists.return_value = True
        assert GcsStagingStore(client=client).bucket_exists("b") is True


class TestDataflowLauncher:
    """Tests for DataflowLauncher."""

    def test_launch_returns_job_id(self):
        templates = MagicMock()
        templates.launch_flex_template.return_value.job.id = "2024-01-01_job"
        launcher = DataflowLauncher(templates_client=templates, jobs_client=MagicMock())
        request = dataflow_v1beta3.LaunchFlexTemplateRequest(project_id="p1", location="us-central1")

        assert launcher.launch(request) == "2024-01-01_job"
        templates.launch_flex_template.assert_called_once_with(request=request)

    def test_launch_error_propagates(self):
        templates = MagicMock()
        templates.launch_flex_template.side_effect = RuntimeError("quota")
        launcher = DataflowLauncher(templates_client=templates, jobs_client=MagicMock())

        with pytest.raises(RuntimeError, match="quota"):
            launcher.launch(dataflow_v1beta3.LaunchFlexTemplateRequest())

    def test_cancel(self):
        jobs = MagicMock()
        DataflowLauncher(templates_client=MagicMock(), jobs_client=jobs).cancel("p1", "us-central1", "j1")

        request = jobs.update_job.call_args.kwargs["request"]
        assert request.project_id == "p1"
        assert request.location == "us-central1"
        assert request.job_id == "j1"
        assert request.job.requested_state == dataflow_v1beta3.JobState.JOB_STATE_CANCELLED


@pytest.fixture
def job_record():
    return JobRecord(
        job_id="smt-job-abc",
        job_name="my-job",
        spanner_project_id="p1",
        instance_id="inst",
        database_id="db",
        job_data="{}",
    )


class TestBigQueryJobStore:
    """Tests for BigQueryJobStore."""

    def test_create_job(self, job_record):
        bq_client = MagicMock()
        store = BigQueryJobStore(bq_client, dataset="revrepl")
        store.create_job(job_record)

        call = bq_client.query.call_args
        assert "INSERT INTO `revrepl.smt_jobs`" in call.args[0]
        params = _params(call)
        assert params["job_id"] == "smt-job-abc"
        assert params["status"] == "CREATED"
        bq_client.query.return_value.result.assert_called_once()

    def test_update_status(self):
        bq_client = MagicMock()
        bq_client.query.return_value.num_dml_affected_rows = 1
        BigQueryJobStore(bq_client, dataset="revrepl").update_status("smt-job-abc", JobStatus.RUNNING)

        call = bq_client.query.call_args
        assert "UPDATE `revrepl.smt_jobs`" in call.args[0]
        assert _params(call) == {"status": "RUNNING", "job_id": "smt-job-abc"}

    def test_update_status_missing_job(self):
        bq_client = MagicMock()
        bq_client.query.return_value.num_dml_affected_rows = 0
        with pytest.raises(JobNotFoundError):
            BigQueryJobStore(bq_client, dataset="revrepl").update_status("missing", JobStatus.FAILED)

    def test_get_job(self, job_record):
        bq_client = MagicMock()
        row = job_record.to_dict()
        row["created_at"] = job_record.created_at
        bq_client.query.return_value.result.return_value = iter([row])

        record = BigQueryJobStore(bq_client, dataset="revrepl").get_job("smt-job-abc")
        assert record.job_id == "smt-job-abc"
        assert record.status == JobStatus.CREATED
        assert record.updated_at is None

    def test_get_job_missing(self):
        bq_client = MagicMock()
        bq_client.query.return_value.result.return_value = iter([])
        assert BigQueryJobStore(bq_client, dataset="revrepl").get_job("missing") is None

    def test_record_resource(self):
        bq_client = MagicMock()
        store = BigQueryJobStore(bq_client, dataset="revrepl", resources_table="res")
        store.record_resource(ResourceRecord(
            job_id="smt-job-abc",
            resource_type=ResourceType.CHANGE_STREAM,
            resource_name="cs",
            resource_data={"db_uri": DB_URI},
        ))

        call = bq_client.query.call_args
        assert "INSERT INTO `revrepl.res`" in call.args[0]
        params = _params(call)
        assert params["resource_type"] == "change_stream"
        assert params["resource_data"] == '{"db_uri": "projects/p1/instances/inst/databases/db"}'


class TestInMemoryJobStore:
    """Tests for InMemoryJobStore."""

    def test_update_missing_job(self):
        with pytest.raises(JobNotFoundError):
            InMemoryJobStore().update_status("missing", JobStatus.RUNNING)

    def test_update_sets_timestamp(self, job_record):
        store = InMemoryJobStore()
        store.create_job(job_record)
        store.update_status("smt-job-abc", JobStatus.RUNNING)

        assert store.get_job("smt-job-abc").status == JobStatus.RUNNING
        assert store.get_job("smt-job-abc").updated_at is not None


class TestClientsFromConfig:
    """Tests for Clients.from_config()."""

    def test_builds_google_adapters(self):
        config = RevreplConfig(dataset="ds", jobs_table="jobs", resources_table="res")
        with patch("google.cloud.bigquery.Client") as bq_cls:
            clients = Clients.from_config(config, project_id="p1")

        bq_cls.assert_called_once_with(project="p1")
        assert isinstance(clients.location_resolver, SpannerAdmin)
        assert clients.change_streams is clients.location_resolver
        assert isinstance(clients.metadata_databases, SpannerMetadataAdmin)
        assert isinstance(clients.staging_store, GcsStagingStore)
        assert isinstance(clients.launcher, DataflowLauncher)
        assert isinstance(clients.job_store, BigQueryJobStore)
        assert clients.job_store.dataset == "ds"
        assert clients.job_store.jobs_table == "jobs"

    def test_config_project_wins(self):
        with patch("google.cloud.bigquery.Client") as bq_cls:
            Clients.from_config(RevreplConfig(project="records"), project_id="p1")
        bq_cls.assert_called_once_with(project="records")
