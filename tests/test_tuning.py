"""Tests for tuning config resolution and loading."""

import json

import pytest

from fakes import FakeStagingStore
from revrepl import constants
from revrepl.errors import TuningConfigError
from revrepl.schemas import TuningConfig
from revrepl.tuning import (
    READER_DEFAULTS,
    WRITER_DEFAULTS,
    load_tuning_config,
    resolve_tuning_config,
)


def _resolve(cfg=None, defaults=READER_DEFAULTS, **kwargs):
    return resolve_tuning_config(cfg, defaults, project_id="p1", location="us-central1", run_id="abc", **kwargs)


class TestResolveDefaults:
    """An empty config gets every default."""

    def test_reader_defaults(self):
        resolved = _resolve(TuningConfig(), name_suffix="xyz")

        assert resolved.project_id == "p1"
        assert resolved.location == "us-central1"
        assert resolved.job_name == "smt-reverse-replication-reader-xyz"
        assert resolved.max_workers == 50
        assert resolved.num_workers == 5
        assert resolved.machine_type == "n1-standard-2"
        assert resolved.gcs_template_path == constants.REVERSE_REPLICATION_READER_TEMPLATE_PATH
        assert resolved.additional_user_labels == {"smt-reverse-replication-reader": "abc"}
        assert resolved.additional_experiments == ["use_runner_v2"]
        assert resolved.enable_streaming_engine is True

    def test_writer_defaults(self):
        resolved = _resolve(None, defaults=WRITER_DEFAULTS, name_suffix="xyz")

        assert resolved.job_name == "smt-reverse-replication-writer-xyz"
        assert resolved.num_workers == 1
        assert resolved.gcs_template_path == constants.REVERSE_REPLICATION_WRITER_TEMPLATE_PATH
        assert resolved.additional_user_labels == {"smt-reverse-replication-writer": "abc"}


class TestResolveTwice:
    """Resolving is repeatable and never duplicates mandatory entries."""

    def test_two_resolutions_differ_only_in_job_name(self):
        first = _resolve(TuningConfig())
        second = _resolve(TuningConfig())

        assert first.job_name != second.job_name
        assert first.job_name.startswith("smt-reverse-replication-reader-")
        second.job_name = first.job_name
        assert first == second

    def test_mandatory_entries_appear_once(self):
        once = _resolve(TuningConfig())
        twice = _resolve(once)

        assert twice.additional_experiments.count(constants.RUNNER_V2_EXPERIMENT) == 1
        assert twice.enable_streaming_engine is True
        assert twice.job_name == once.job_name

    def test_input_is_not_modified(self):
        cfg = TuningConfig(additional_experiments=["a"], additional_user_labels={"k": "v"})
        _resolve(cfg)

        assert cfg == TuningConfig(additional_experiments=["a"], additional_user_labels={"k": "v"})


class TestResolveUserValues:
    """User supplied values take precedence, except the forced ones."""

    def test_user_values_are_kept(self):
        cfg = TuningConfig(
            project_id="other",
            location="europe-west1",
            job_name="custom",
            max_workers=3,
            num_workers=2,
            machine_type="n2-standard-4",
            gcs_template_path="gs://templates/reader",
        )
        resolved = _resolve(cfg)

        assert resolved.project_id == "other"
        assert resolved.location == "europe-west1"
        assert resolved.job_name == "custom"
        assert resolved.max_workers == 3
        assert resolved.num_workers == 2
        assert resolved.machine_type == "n2-standard-4"
        assert resolved.gcs_template_path == "gs://templates/reader"

    def test_labels_merged_and_run_label_overwritten(self):
        cfg = TuningConfig(additional_user_labels={
            "team": "data",
            "smt-reverse-replication-reader": "stale",
        })
        resolved = _resolve(cfg)

        assert resolved.additional_user_labels == {
            "team": "data",
            "smt-reverse-replication-reader": "abc",
        }

    def test_experiments_deduplicated(self):
        cfg = TuningConfig(additional_experiments=["a", "use_runner_v2", "a"])
        resolved = _resolve(cfg)
        assert resolved.additional_experiments == ["a", "use_runner_v2"]

    def test_streaming_engine_forced(self):
        resolved = _resolve(TuningConfig(enable_streaming_engine=False))
        assert resolved.enable_streaming_engine is True


class TestLoadTuningConfig:
    """Tests for load_tuning_config()."""

    def test_empty_blob(self):
        assert load_tuning_config("") == TuningConfig()

    def test_local_file(self, tmp_path):
        path = tmp_path / "reader.json"
        path.write_text(json.dumps({"maxWorkers": 7, "network": "vpc"}))

        cfg = load_tuning_config(str(path))
        assert cfg.max_workers == 7
        assert cfg.network == "vpc"

    def test_gcs_file(self):
        store = FakeStagingStore(files={"gs://cfg/reader.json": '{"numWorkers": 2}'})
        assert load_tuning_config("gs://cfg/reader.json", store).num_workers == 2

    def test_gcs_without_store(self):
        with pytest.raises(TuningConfigError, match="without a staging store"):
            load_tuning_config("gs://cfg/reader.json")

    def test_missing_file(self, tmp_path):
        with pytest.raises(TuningConfigError, match="error reading"):
            load_tuning_config(str(tmp_path / "missing.json"))

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "reader.json"
        path.write_text("{nope")
        with pytest.raises(TuningConfigError, match="error parsing"):
            load_tuning_config(str(path))
