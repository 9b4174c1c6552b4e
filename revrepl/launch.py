"""
Dataflow launch request builder.

Turns a flat parameter map plus a resolved TuningConfig into a
LaunchFlexTemplateRequest, and renders the equivalent gcloud command for
the logs.
"""

import shlex
from typing import Optional

from google.cloud import dataflow_v1beta3

from revrepl.schemas import TuningConfig


SUBNETWORK_URL = "https://www.googleapis.com/compute/v1/projects/{project}/regions/{region}/subnetworks/{subnetwork}"


def build_launch_parameters(
    base: dict[str, str],
    optional: Optional[dict[str, str]] = None,
) -> dict[str, str]:
    """
    Build the template parameter map.

    Values in `base` are always sent. Values in `optional` are template
    fields that must hold a URI when present, so empty ones are omitted
    rather than sent as "".
    """
    params = {key: str(value) for key, value in base.items()}
    for key, value in (optional or {}).items():
        if value:
            params[key] = str(value)
    return params


def _subnetwork_url(tuning: TuningConfig) -> str:
    if not tuning.subnetwork:
        return ""
    return SUBNETWORK_URL.format(
        project=tuning.vpc_host_project_id or tuning.project_id,
        region=tuning.location,
        subnetwork=tuning.subnetwork,
    )


def build_launch_request(
    parameters: dict[str, str],
    tuning: TuningConfig,
) -> dataflow_v1beta3.LaunchFlexTemplateRequest:
    """
    Build a LaunchFlexTemplateRequest.

    Args:
        parameters: Template parameters (see build_launch_parameters)
        tuning: A resolved TuningConfig (project, location, job name and
            template path must be set)

    Raises:
        ValueError: If a required tuning field is empty
    """
    for name in ("project_id", "location", "job_name", "gcs_template_path"):
        if not getattr(tuning, name):
            raise ValueError(f"tuning config field {name} must be set before launch")

    environment = dataflow_v1beta3.FlexTemplateRuntimeEnvironment(
        num_workers=tuning.num_workers,
        max_workers=tuning.max_workers,
        machine_type=tuning.machine_type,
        additional_experiments=list(tuning.additional_experiments),
        additional_user_labels=dict(tuning.additional_user_labels),
        enable_streaming_engine=tuning.enable_streaming_engine,
    )
    if tuning.service_account_email:
        environment.service_account_email = tuning.service_account_email
    if tuning.kms_key_name:
        environment.kms_key_name = tuning.kms_key_name
    if tuning.network:
        environment.network = tuning.network
    subnetwork = _subnetwork_url(tuning)
    if subnetwork:
        environment.subnetwork = subnetwork
    if tuning.network or subnetwork:
        environment.ip_configuration = dataflow_v1beta3.WorkerIPAddressConfiguration.WORKER_IP_PRIVATE

    return dataflow_v1beta3.LaunchFlexTemplateRequest(
        project_id=tuning.project_id,
        location=tuning.location,
        launch_parameter=dataflow_v1beta3.LaunchFlexTemplateParameter(
            job_name=tuning.job_name,
            container_spec_gcs_path=tuning.gcs_template_path,
            parameters=dict(parameters),
            environment=environment,
        ),
    )


def gcloud_command(request: dataflow_v1beta3.LaunchFlexTemplateRequest) -> str:
    """Render the gcloud command equivalent to a launch request."""
    launch = request.launch_parameter
    env = launch.environment
    parts = [
        "gcloud dataflow flex-template run",
        shlex.quote(launch.job_name),
        f"--project={request.project_id}",
        f"--region={request.location}",
        f"--template-file-gcs-location={launch.container_spec_gcs_path}",
    ]
    if env.num_workers:
        parts.append(f"--num-workers={env.num_workers}")
    if env.max_workers:
        parts.append(f"--max-workers={env.max_workers}")
    if env.machine_type:
        parts.append(f"--worker-machine-type={env.machine_type}")
    if env.service_account_email:
        parts.append(f"--service-account-email={env.service_account_email}")
    if env.network:
        parts.append(f"--network={env.network}")
    if env.subnetwork:
        parts.append(f"--subnetwork={env.subnetwork}")
    if env.ip_configuration == dataflow_v1beta3.WorkerIPAddressConfiguration.WORKER_IP_PRIVATE:
        parts.append("--disable-public-ips")
    if env.kms_key_name:
        parts.append(f"--dataflow-kms-key={env.kms_key_name}")
    if env.additional_experiments:
        parts.append(f"--additional-experiments={','.join(env.additional_experiments)}")
    if env.additional_user_labels:
        labels = ",".join(f"{k}={v}" for k, v in sorted(env.additional_user_labels.items()))
        parts.append(f"--additional-user-labels={labels}")
    if env.enable_streaming_engine:
        parts.append("--enable-streaming-engine")
    if launch.parameters:
        params = ",".join(f"{k}={v}" for k, v in sorted(launch.parameters.items()))
        parts.append(f"--parameters {shlex.quote(params)}")
    return " ".join(parts)
