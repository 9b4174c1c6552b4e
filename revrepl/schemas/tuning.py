"""
TuningConfig schema - scaling, placement and feature settings for a
launched Dataflow job.

Tuning files are JSON documents using the camelCase keys below. Any key may
be omitted; the tuning resolver fills defaults for the reader and writer.
"""

import copy
from dataclasses import dataclass, field, fields
from typing import Any, Optional

from revrepl.errors import TuningConfigError


_JSON_KEYS = {
    "projectId": "project_id",
    "jobName": "job_name",
    "location": "location",
    "vpcHostProjectId": "vpc_host_project_id",
    "network": "network",
    "subnetwork": "subnetwork",
    "maxWorkers": "max_workers",
    "numWorkers": "num_workers",
    "serviceAccountEmail": "service_account_email",
    "machineType": "machine_type",
    "additionalUserLabels": "additional_user_labels",
    "kmsKeyName": "kms_key_name",
    "gcsTemplatePath": "gcs_template_path",
    "additionalExperiments": "additional_experiments",
    "enableStreamingEngine": "enable_streaming_engine",
}


@dataclass
class TuningConfig:
    """Dataflow launch tuning. Zero values mean "use the default"."""
    project_id: str = ""
    job_name: str = ""
    location: str = ""
    vpc_host_project_id: str = ""
    network: str = ""
    subnetwork: str = ""
    max_workers: int = 0
    num_workers: int = 0
    service_account_email: str = ""
    machine_type: str = ""
    additional_user_labels: dict[str, str] = field(default_factory=dict)
    kms_key_name: str = ""
    gcs_template_path: str = ""
    additional_experiments: list[str] = field(default_factory=list)
    enable_streaming_engine: bool = False

    def __post_init__(self):
        # Containers are always allocated, even when a caller passes None.
        if self.additional_user_labels is None:
            self.additional_user_labels = {}
        if self.additional_experiments is None:
            self.additional_experiments = []

    def copy(self) -> "TuningConfig":
        return copy.deepcopy(self)

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "TuningConfig":
        """
        Build a TuningConfig from a parsed tuning file.

        Accepts the camelCase file keys as well as field names.

        Raises:
            TuningConfigError: On unknown keys or wrongly typed values
        """
        if not data:
            return cls()
        if not isinstance(data, dict):
            raise TuningConfigError("tuning config must be a JSON object")

        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in data.items():
            name = _JSON_KEYS.get(key, key)
            if name not in known:
                raise TuningConfigError(f"unknown tuning config key: {key}")
            if value is None:
                continue
            values[name] = value

        for name in ("max_workers", "num_workers"):
            value = values.get(name, 0)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise TuningConfigError(f"{name} must be a non-negative integer, got: {value!r}")
        labels = values.get("additional_user_labels", {})
        if not isinstance(labels, dict):
            raise TuningConfigError("additionalUserLabels must be an object")
        experiments = values.get("additional_experiments", [])
        if not isinstance(experiments, list):
            raise TuningConfigError("additionalExperiments must be a list")

        values["additional_user_labels"] = {str(k): str(v) for k, v in labels.items()}
        values["additional_experiments"] = [str(e) for e in experiments]
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the tuning file keys."""
        return {key: copy.deepcopy(getattr(self, name)) for key, name in _JSON_KEYS.items()}
