"""Shared fixtures for revrepl tests."""

import pytest

from fakes import (
    FakeChangeStreamAdmin,
    FakeLauncher,
    FakeLocationResolver,
    FakeMetadataAdmin,
    FakeStagingStore,
)
from revrepl.adapters import Clients, InMemoryJobStore
from revrepl.schemas import JobRequest


@pytest.fixture
def location_resolver():
    return FakeLocationResolver()


@pytest.fixture
def clients(location_resolver):
    return Clients(
        location_resolver=location_resolver,
        change_streams=FakeChangeStreamAdmin(),
        metadata_databases=FakeMetadataAdmin(),
        staging_store=FakeStagingStore(),
        launcher=FakeLauncher(),
        job_store=InMemoryJobStore(),
    )


@pytest.fixture
def valid_request():
    return JobRequest(
        instance_id="test-instance",
        database_id="test-db",
        spanner_project_id="test-project",
        session_file_path="/tmp/session.json",
        source_connection_config="/tmp/shards.json",
    )


@pytest.fixture
def gcs_request():
    """A request whose inputs are all on GCS already."""
    return JobRequest(
        instance_id="test-instance",
        database_id="test-db",
        spanner_project_id="test-project",
        session_file_path="gs://inputs/session.json",
        source_connection_config="gs://inputs/shards.json",
        gcs_data_directory="gs://inputs/data",
    )
