"""
Configuration management for revrepl.

Loads ~/.config/revrepl/config.yaml (or $REVREPL_HOME/config.yaml) into a
RevreplConfig. The optional env_file is loaded into the process environment
so Google client libraries pick up credentials and project settings.
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from revrepl import constants


class ConfigError(Exception):
    """Configuration validation error."""
    pass


def get_revrepl_home() -> Path:
    """Return the revrepl home directory ($REVREPL_HOME or ~/.config/revrepl)."""
    home = os.environ.get("REVREPL_HOME")
    if home:
        return Path(home).expanduser()
    return Path("~/.config/revrepl").expanduser()


@dataclass
class RevreplConfig:
    """
    Runtime configuration.

    Attributes:
        project: GCP project holding the job record dataset (defaults to the
            request's Spanner project when unset)
        dataset: BigQuery dataset for job and resource records
        jobs_table: Table holding one row per job
        resources_table: Table holding the resources provisioned per job
        reader_template_path: Flex template used for the reader job
        writer_template_path: Flex template used for the writer job
        staging_bucket_ttl_days: Delete staged objects after N days (0 = keep)
        log_level: DEBUG, INFO, WARNING, ERROR
        log_format: "pretty" (rich console) or "structured" (JSON)
        log_file: Optional log file path
        env_file: Optional dotenv file loaded at startup
    """
    project: Optional[str] = None
    dataset: str = "revrepl"
    jobs_table: str = "smt_jobs"
    resources_table: str = "smt_resources"
    reader_template_path: str = constants.REVERSE_REPLICATION_READER_TEMPLATE_PATH
    writer_template_path: str = constants.REVERSE_REPLICATION_WRITER_TEMPLATE_PATH
    staging_bucket_ttl_days: int = 0
    log_level: str = "INFO"
    log_format: str = "pretty"
    log_file: Optional[str] = None
    env_file: Optional[str] = None

    def validate(self) -> None:
        """Validate field values."""
        if self.log_format not in ("pretty", "structured"):
            raise ConfigError(f"log_format must be 'pretty' or 'structured', got: {self.log_format}")
        if self.staging_bucket_ttl_days < 0:
            raise ConfigError("staging_bucket_ttl_days must be >= 0")
        for name in ("reader_template_path", "writer_template_path"):
            value = getattr(self, name)
            if not value.startswith(constants.GCS_FILE_PREFIX):
                raise ConfigError(f"{name} must be a GCS path, got: {value}")

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def load_config(config_path: Optional[Path] = None) -> RevreplConfig:
    """
    Load revrepl configuration from YAML.

    Args:
        config_path: Path to config file. Defaults to <revrepl home>/config.yaml

    Returns:
        RevreplConfig instance

    Raises:
        FileNotFoundError: If the config file does not exist
        ConfigError: If the config is empty, malformed or has unknown keys
    """
    if config_path is None:
        config_path = get_revrepl_home() / "config.yaml"

    if not config_path.exists():
        raise FileNotFoundError(
            f"revrepl config.yaml not found at {config_path}. Run 'revrepl init' first."
        )

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax: {e}")

    if not data:
        raise ConfigError("Configuration file is empty")
    if not isinstance(data, dict):
        raise ConfigError("Configuration file must contain a mapping")

    known = {f.name for f in fields(RevreplConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown config keys: {unknown}")

    config = RevreplConfig(**data)
    config.validate()

    if config.env_file:
        env_path = Path(config.env_file).expanduser()
        if env_path.exists():
            load_dotenv(env_path)

    return config
