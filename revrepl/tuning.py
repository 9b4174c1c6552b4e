"""
Tuning config resolver - merges a user supplied Dataflow tuning config with
the defaults of the reader or writer job.

Rules:
- Scalar fields are only set when empty
- The run label is always written under the defaults' label key
- use_runner_v2 is added to the experiments only if absent (set semantics)
- Streaming engine is always enabled
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from revrepl import constants
from revrepl.adapters.base import StagingStore
from revrepl.errors import TuningConfigError
from revrepl.schemas import TuningConfig
from revrepl.utils import generate_hash_str, is_gcs_path


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TuningDefaults:
    """Defaults applied to one kind of launched job."""
    job_name_prefix: str
    label_key: str
    max_workers: int
    num_workers: int
    machine_type: str
    template_path: str


READER_DEFAULTS = TuningDefaults(
    job_name_prefix=constants.READER_JOB_PREFIX,
    label_key=constants.READER_JOB_PREFIX,
    max_workers=50,
    num_workers=5,
    machine_type="n1-standard-2",
    template_path=constants.REVERSE_REPLICATION_READER_TEMPLATE_PATH,
)

WRITER_DEFAULTS = TuningDefaults(
    job_name_prefix=constants.WRITER_JOB_PREFIX,
    label_key=constants.WRITER_JOB_PREFIX,
    max_workers=50,
    num_workers=1,
    machine_type="n1-standard-2",
    template_path=constants.REVERSE_REPLICATION_WRITER_TEMPLATE_PATH,
)


def _dedupe(items: list[str]) -> list[str]:
    """Drop repeated entries, keeping first-seen order."""
    return list(dict.fromkeys(items))


def resolve_tuning_config(
    cfg: Optional[TuningConfig],
    defaults: TuningDefaults,
    project_id: str,
    location: str,
    run_id: str,
    name_suffix: Optional[str] = None,
) -> TuningConfig:
    """
    Return a fully populated copy of cfg.

    Args:
        cfg: User supplied config (None or empty for all defaults). Not modified.
        defaults: READER_DEFAULTS or WRITER_DEFAULTS
        project_id: Project the job runs in, if cfg has none
        location: Region the job runs in, if cfg has none
        run_id: Written into the run label
        name_suffix: Suffix of the generated job name. A fresh random token
            when omitted, so every resolution yields a distinct job name.

    Returns:
        A new TuningConfig
    """
    resolved = cfg.copy() if cfg is not None else TuningConfig()

    if not resolved.project_id:
        resolved.project_id = project_id
    if not resolved.job_name:
        suffix = name_suffix if name_suffix is not None else generate_hash_str()
        resolved.job_name = f"{defaults.job_name_prefix}-{suffix}"
    if not resolved.location:
        resolved.location = location
    if resolved.max_workers == 0:
        resolved.max_workers = defaults.max_workers
    if resolved.num_workers == 0:
        resolved.num_workers = defaults.num_workers
    if not resolved.machine_type:
        resolved.machine_type = defaults.machine_type
    if not resolved.gcs_template_path:
        resolved.gcs_template_path = defaults.template_path

    labels = dict(resolved.additional_user_labels or {})
    labels[defaults.label_key] = run_id
    resolved.additional_user_labels = labels

    experiments = _dedupe(list(resolved.additional_experiments or []))
    if constants.RUNNER_V2_EXPERIMENT not in experiments:
        experiments.append(constants.RUNNER_V2_EXPERIMENT)
    resolved.additional_experiments = experiments

    resolved.enable_streaming_engine = True
    return resolved


def load_tuning_config(blob: str, store: Optional[StagingStore] = None) -> TuningConfig:
    """
    Load a tuning config from a gs:// path or a local file path.

    An empty blob yields an empty TuningConfig.

    Raises:
        TuningConfigError: If the file cannot be read or parsed
    """
    if not blob:
        return TuningConfig()

    try:
        if is_gcs_path(blob):
            if store is None:
                raise TuningConfigError(f"cannot read {blob} without a staging store")
            text = store.read_text(blob)
        else:
            text = Path(blob).expanduser().read_text()
    except TuningConfigError:
        raise
    except Exception as e:
        raise TuningConfigError(f"error reading tuning config {blob}: {e}") from e

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise TuningConfigError(f"error parsing tuning config {blob}: {e}") from e

    return TuningConfig.from_dict(data)
