"""PrepareChangeFeed - ensures the change stream exists with usable options."""

import logging
from dataclasses import dataclass

from revrepl.activity import Activity, ActivityContext
from revrepl.adapters.base import ChangeStreamAdmin, JobStore
from revrepl.errors import ActivityError
from revrepl.schemas import ResourceRecord, ResourceType


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PrepareChangeFeedInput:
    job_id: str
    change_stream_name: str
    db_uri: str


@dataclass
class PrepareChangeFeedOutput:
    exists: bool = False
    exists_with_incorrect_options: bool = False
    created: bool = False


class PrepareChangeFeed(Activity):
    """
    Creates the change stream on the source database if missing.

    An existing stream with valid options is reused. An existing stream with
    invalid options is a hard failure: it is never altered.
    """

    def __init__(self, input: PrepareChangeFeedInput, admin: ChangeStreamAdmin, job_store: JobStore):
        self.input = input
        self.output = PrepareChangeFeedOutput()
        self.admin = admin
        self.job_store = job_store

    def transaction(self, ctx: ActivityContext) -> None:
        inp = self.input
        ctx.raise_if_cancelled()
        if self.admin.exists(inp.change_stream_name, inp.db_uri):
            try:
                self.admin.validate_options(inp.change_stream_name, inp.db_uri)
            except ActivityError:
                self.output.exists_with_incorrect_options = True
                raise
            self.output.exists = True
            logger.info("Provided change stream already exists, skipping change stream creation")
            return

        ctx.raise_if_cancelled()
        self.admin.create(inp.change_stream_name, inp.db_uri)
        self.output.created = True
        self.job_store.record_resource(ResourceRecord(
            job_id=inp.job_id,
            resource_type=ResourceType.CHANGE_STREAM,
            resource_name=inp.change_stream_name,
            resource_data={"db_uri": inp.db_uri},
        ))
        logger.info(f"Created change stream {inp.change_stream_name} on {inp.db_uri}")

    def compensation(self, ctx: ActivityContext) -> None:
        if not self.output.created:
            return
        self.admin.drop(self.input.change_stream_name, self.input.db_uri)
        logger.info(f"Dropped change stream {self.input.change_stream_name}")
