"""
GCS backed StagingStore using google-cloud-storage.
"""

import logging
from pathlib import Path
from typing import Any, Optional

from google.cloud import storage

from revrepl.utils import parse_gcs_path


logger = logging.getLogger(__name__)


class GcsStagingStore:
    """StagingStore implementation backed by Cloud Storage."""

    def __init__(self, client: Optional[Any] = None, project: Optional[str] = None):
        self._client = client
        self._project = project

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = storage.Client(project=self._project)
        return self._client

    def bucket_exists(self, name: str) -> bool:
        return self.client.bucket(name).exists()

    def create_bucket(
        self,
        name: str,
        project_id: str,
        location: str,
        labels: dict[str, str],
        ttl_days: int = 0,
    ) -> None:
        bucket = self.client.bucket(name)
        bucket.labels = dict(labels)
        if ttl_days > 0:
            bucket.add_lifecycle_delete_rule(age=ttl_days)
        self.client.create_bucket(bucket, project=project_id, location=location)
        logger.info(f"Created bucket gs://{name} in {location}")

    def delete_bucket(self, name: str) -> None:
        # force=True deletes the objects first (up to 256 objects)
        self.client.bucket(name).delete(force=True)
        logger.info(f"Deleted bucket gs://{name}")

    def upload_file(self, bucket: str, object_name: str, local_path: Path) -> None:
        self.client.bucket(bucket).blob(object_name).upload_from_filename(str(local_path))
        logger.debug(f"Uploaded {local_path} to gs://{bucket}/{object_name}")

    def read_text(self, gcs_path: str) -> str:
        bucket, object_name = parse_gcs_path(gcs_path)
        return self.client.bucket(bucket).blob(object_name).download_as_text()
