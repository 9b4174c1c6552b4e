"""
Spanner backed adapters: leader location lookup, change stream admin and
metadata database admin.

Uses google-cloud-spanner. Clients are created lazily per project.
"""

import logging
from typing import Any, Optional

from google.cloud import spanner

from revrepl import constants
from revrepl.errors import ChangeStreamOptionsError


logger = logging.getLogger(__name__)

# Timeout for long running DDL / database operations
OPERATION_TIMEOUT_S = 600


def parse_database_uri(db_uri: str) -> tuple[str, str, str]:
    """
    Split projects/<p>/instances/<i>/databases/<d> into (p, i, d).

    Raises:
        ValueError: If the URI is malformed
    """
    parts = db_uri.split("/")
    if (
        len(parts) != 6
        or parts[0] != "projects"
        or parts[2] != "instances"
        or parts[4] != "databases"
        or not all(parts[i] for i in (1, 3, 5))
    ):
        raise ValueError(f"Invalid database URI: {db_uri}")
    return parts[1], parts[3], parts[5]


class SpannerAdmin:
    """
    Implements LocationResolver, ChangeStreamAdmin and MetadataDatabaseAdmin
    on top of google-cloud-spanner.
    """

    def __init__(self, client_factory: Optional[Any] = None):
        self._client_factory = client_factory or (lambda project: spanner.Client(project=project))
        self._clients: dict[str, Any] = {}

    def _client(self, project_id: str) -> Any:
        if project_id not in self._clients:
            self._clients[project_id] = self._client_factory(project_id)
        return self._clients[project_id]

    def database(self, db_uri: str) -> Any:
        project_id, instance_id, database_id = parse_database_uri(db_uri)
        return self._client(project_id).instance(instance_id).database(database_id)

    # -------------------------------------------------------------------------
    # LocationResolver
    # -------------------------------------------------------------------------

    def get_leader_location(self, project_id: str, instance_id: str) -> str:
        client = self._client(project_id)
        instance = client.instance(instance_id)
        instance.reload()
        config = client.instance_admin_api.get_instance_config(name=instance.configuration_name)
        for replica in config.replicas:
            if replica.default_leader_location:
                return replica.location
        raise ValueError(
            f"no default leader location found for instance "
            f"projects/{project_id}/instances/{instance_id}"
        )

    # -------------------------------------------------------------------------
    # ChangeStreamAdmin
    # -------------------------------------------------------------------------

    def exists(self, name: str, db_uri: str) -> bool:
        query = """
            SELECT CHANGE_STREAM_NAME
            FROM INFORMATION_SCHEMA.CHANGE_STREAMS
            WHERE CHANGE_STREAM_NAME = @name
        """
        with self.database(db_uri).snapshot() as snapshot:
            rows = list(snapshot.execute_sql(
                query,
                params={"name": name},
                param_types={"name": spanner.param_types.STRING},
            ))
        return len(rows) > 0

    def validate_options(self, name: str, db_uri: str) -> None:
        query = """
            SELECT OPTION_NAME, OPTION_VALUE
            FROM INFORMATION_SCHEMA.CHANGE_STREAM_OPTIONS
            WHERE CHANGE_STREAM_NAME = @name
        """
        with self.database(db_uri).snapshot() as snapshot:
            options = {
                row[0].lower(): row[1]
                for row in snapshot.execute_sql(
                    query,
                    params={"name": name},
                    param_types={"name": spanner.param_types.STRING},
                )
            }
        value_capture_type = options.get("value_capture_type", "OLD_AND_NEW_VALUES")
        if value_capture_type not in constants.CHANGE_STREAM_VALUE_CAPTURE_TYPES:
            raise ChangeStreamOptionsError(
                name,
                f"change stream {name} has value_capture_type {value_capture_type}, "
                f"expected one of {list(constants.CHANGE_STREAM_VALUE_CAPTURE_TYPES)}",
            )

    def create(self, name: str, db_uri: str) -> None:
        options = ", ".join(
            f"{key} = '{value}'" for key, value in constants.CHANGE_STREAM_CREATE_OPTIONS.items()
        )
        ddl = f"CREATE CHANGE STREAM {name} FOR ALL OPTIONS ({options})"
        logger.debug(f"Applying DDL on {db_uri}: {ddl}")
        self.database(db_uri).update_ddl([ddl]).result(OPERATION_TIMEOUT_S)

    def drop(self, name: str, db_uri: str) -> None:
        self.database(db_uri).update_ddl([f"DROP CHANGE STREAM {name}"]).result(OPERATION_TIMEOUT_S)


class SpannerMetadataAdmin:
    """MetadataDatabaseAdmin on top of google-cloud-spanner."""

    def __init__(self, admin: SpannerAdmin):
        self._admin = admin

    def exists(self, db_uri: str) -> bool:
        return self._admin.database(db_uri).exists()

    def create(self, db_uri: str) -> None:
        self._admin.database(db_uri).create().result(OPERATION_TIMEOUT_S)

    def drop(self, db_uri: str) -> None:
        self._admin.database(db_uri).drop()
