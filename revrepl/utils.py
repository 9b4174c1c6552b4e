"""
Utility functions for revrepl.

Includes logging setup, run identifier generation and GCS path helpers.
"""

import json
import logging
import secrets
import string
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from revrepl.constants import GCS_FILE_PREFIX


# Global console for pretty output
console = Console()

_HASH_ALPHABET = string.ascii_lowercase + string.digits


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "pretty",
    log_file: Optional[Path] = None,
    console_output: bool = True,
) -> logging.Logger:
    """
    Set up logging for workflow execution.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: "structured" (JSON) or "pretty" (human-readable)
        log_file: Optional path to a log file
        console_output: Also log to console

    Returns:
        Configured logger
    """
    logger = logging.getLogger("revrepl")
    logger.setLevel(getattr(logging, log_level.upper()))
    logger.handlers = []  # Clear existing handlers

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        if log_format == "structured":
            file_handler.setFormatter(StructuredFormatter())
        else:
            file_handler.setFormatter(
                logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
            )
        logger.addHandler(file_handler)

    if console_output:
        if log_format == "pretty":
            console_handler = RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_time=False)
        else:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(StructuredFormatter())
        logger.addHandler(console_handler)

    return logger


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data)


def generate_hash_str(length: int = 10) -> str:
    """
    Generate a short random lowercase token.

    Used as the run identifier and as the suffix of Dataflow job names, so it
    only contains characters valid in bucket, database and job names.
    """
    return "".join(secrets.choice(_HASH_ALPHABET) for _ in range(length))


def is_gcs_path(path: str) -> bool:
    return path.startswith(GCS_FILE_PREFIX)


def parse_gcs_path(path: str) -> tuple[str, str]:
    """
    Split a gs:// path into (bucket, object_name).

    Example:
        >>> parse_gcs_path("gs://bucket/dir/session.json")
        ('bucket', 'dir/session.json')

    Raises:
        ValueError: If the path is not a gs:// path or has no bucket
    """
    if not is_gcs_path(path):
        raise ValueError(f"Not a GCS path: {path}")
    remainder = path[len(GCS_FILE_PREFIX):]
    bucket, _, object_name = remainder.partition("/")
    if not bucket:
        raise ValueError(f"GCS path has no bucket: {path}")
    return bucket, object_name


def gcs_path(bucket: str, object_name: str = "") -> str:
    """Build a gs:// path from a bucket and an optional object name."""
    if object_name:
        return f"{GCS_FILE_PREFIX}{bucket}/{object_name}"
    return f"{GCS_FILE_PREFIX}{bucket}"
