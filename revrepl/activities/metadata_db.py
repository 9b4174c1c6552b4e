"""PrepareMetadataStore - ensures the pipeline metadata database exists."""

import logging
from dataclasses import dataclass

from revrepl.activity import Activity, ActivityContext
from revrepl.adapters.base import JobStore, MetadataDatabaseAdmin
from revrepl.schemas import ResourceRecord, ResourceType


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PrepareMetadataStoreInput:
    job_id: str
    db_uri: str


@dataclass
class PrepareMetadataStoreOutput:
    exists: bool = False
    created: bool = False


class PrepareMetadataStore(Activity):
    """Creates the metadata database if missing; an existing one is reused."""

    def __init__(self, input: PrepareMetadataStoreInput, admin: MetadataDatabaseAdmin, job_store: JobStore):
        self.input = input
        self.output = PrepareMetadataStoreOutput()
        self.admin = admin
        self.job_store = job_store

    def transaction(self, ctx: ActivityContext) -> None:
        ctx.raise_if_cancelled()
        if self.admin.exists(self.input.db_uri):
            self.output.exists = True
            logger.info(f"Metadata database {self.input.db_uri} already exists, skipping creation")
            return

        ctx.raise_if_cancelled()
        self.admin.create(self.input.db_uri)
        self.output.created = True
        self.job_store.record_resource(ResourceRecord(
            job_id=self.input.job_id,
            resource_type=ResourceType.METADATA_DATABASE,
            resource_name=self.input.db_uri,
        ))
        logger.info(f"Created metadata database {self.input.db_uri}")

    def compensation(self, ctx: ActivityContext) -> None:
        if not self.output.created:
            return
        self.admin.drop(self.input.db_uri)
