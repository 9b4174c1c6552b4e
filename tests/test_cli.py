"""Tests for the revrepl CLI."""

import json
from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from fakes import FakeLauncher
from revrepl.cli import main


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def home(tmp_path, monkeypatch):
    home = tmp_path / "revrepl_home"
    monkeypatch.setenv("REVREPL_HOME", str(home))
    return home


@pytest.fixture
def configured_home(home):
    home.mkdir(parents=True)
    (home / "config.yaml").write_text(yaml.safe_dump({"project": "p1", "log_level": "WARNING"}))
    return home


@pytest.fixture
def request_file(tmp_path):
    path = tmp_path / "request.json"
    path.write_text(json.dumps({
        "InstanceId": "test-instance",
        "DatabaseId": "test-db",
        "SpannerProjectId": "test-project",
        "SessionFilePath": "/tmp/session.json",
        "SourceConnectionConfig": "/tmp/shards.json",
    }))
    return path


@pytest.fixture
def fake_clients(clients):
    with patch("revrepl.cli._build_clients", return_value=clients):
        yield clients


class TestInit:
    """Tests for `revrepl init`."""

    def test_creates_files(self, runner, home):
        result = runner.invoke(main, ["init"])

        assert result.exit_code == 0
        assert "Initialized revrepl config" in result.output
        assert (home / ".env").exists()
        cfg = yaml.safe_load((home / "config.yaml").read_text())
        assert cfg["dataset"] == "revrepl"
        assert cfg["env_file"] == str(home / ".env")

    def test_does_not_overwrite_without_force(self, runner, home):
        home.mkdir(parents=True)
        (home / "config.yaml").write_text("project: mine\n")

        result = runner.invoke(main, ["init"])

        assert result.exit_code == 1
        assert "Config already exists" in result.output
        assert (home / "config.yaml").read_text() == "project: mine\n"

    def test_force_overwrites(self, runner, home):
        home.mkdir(parents=True)
        (home / "config.yaml").write_text("project: mine\n")

        result = runner.invoke(main, ["init", "--force"])

        assert result.exit_code == 0
        assert yaml.safe_load((home / "config.yaml").read_text())["project"] is None


class TestMissingConfig:
    """Commands other than init need a config."""

    def test_validate_without_config(self, runner, home, request_file):
        result = runner.invoke(main, ["validate", str(request_file)])

        assert result.exit_code == 1
        assert "Config not loaded" in result.output
        assert "revrepl init" in result.output


class TestValidate:
    """Tests for `revrepl validate`."""

    def test_prints_plan(self, runner, configured_home, request_file, fake_clients):
        result = runner.invoke(main, ["validate", str(request_file)])

        assert result.exit_code == 0, result.output
        plan = json.loads(result.output)
        assert plan["job_id"].startswith("smt-job-")
        assert len(plan["activities"]) == 7
        assert plan["normalized_request"]["spanner_location"] == "us-central1"
        assert fake_clients.job_store.jobs == {}

    def test_invalid_request(self, runner, configured_home, tmp_path, fake_clients):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"InstanceId": "inst"}))

        result = runner.invoke(main, ["validate", str(path)])

        assert result.exit_code == 1
        assert "✗ Invalid request" in result.output


class TestCreate:
    """Tests for `revrepl create`."""

    def test_success(self, runner, configured_home, request_file, fake_clients):
        result = runner.invoke(main, ["create", str(request_file)])

        assert result.exit_code == 0, result.output
        assert "✓ smt-job-" in result.output
        assert "reader job: df-job-1" in result.output
        assert "writer job: df-job-2" in result.output

    def test_dry_run(self, runner, configured_home, request_file, fake_clients):
        result = runner.invoke(main, ["create", str(request_file), "--dry-run"])

        assert result.exit_code == 0, result.output
        assert "DRY RUN MODE" in result.output
        assert "#1 RegisterJob" in result.output
        assert "#7 FinalizeJobStatus" in result.output
        assert fake_clients.launcher.requests == []
        assert fake_clients.job_store.jobs == {}

    def test_failure_reports_activity(self, runner, configured_home, request_file, fake_clients):
        fake_clients.launcher = FakeLauncher(fail_on="reader")

        result = runner.invoke(main, ["create", str(request_file)])

        assert result.exit_code == 1
        assert "✗ Create failed at activity #5 (LaunchReaderPipeline)" in result.output

    def test_invalid_json(self, runner, configured_home, tmp_path, fake_clients):
        path = tmp_path / "bad.json"
        path.write_text("{not json")

        result = runner.invoke(main, ["create", str(path)])

        assert result.exit_code == 1
        assert "✗ Create failed" in result.output


class TestClientErrors:
    """Client construction failures are reported, not raised."""

    @pytest.mark.parametrize("command,message", [
        ("create", "✗ Create failed: could not find default credentials"),
        ("validate", "✗ Validate failed: could not find default credentials"),
    ])
    def test_credentials_error(self, runner, configured_home, request_file, command, message):
        error = RuntimeError("could not find default credentials")
        with patch("revrepl.cli._build_clients", side_effect=error):
            result = runner.invoke(main, [command, str(request_file)])

        assert result.exit_code == 1
        assert message in result.output
        assert not isinstance(result.exception, RuntimeError)
