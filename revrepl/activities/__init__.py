"""
revrepl.activities - The activities of the create reverse replication saga.

In catalog order:
1. RegisterJob: job record with status CREATED
2. PrepareStagingStore: staging bucket and staged input files
3. PrepareChangeFeed: change stream on the replicated database
4. PrepareMetadataStore: metadata database for the pipelines
5. LaunchReaderPipeline: Spanner change stream -> GCS Dataflow job
6. LaunchWriterPipeline: GCS -> source database Dataflow job
7. FinalizeJobStatus: job record status RUNNING
"""

from revrepl.activities.change_stream import (
    PrepareChangeFeed,
    PrepareChangeFeedInput,
    PrepareChangeFeedOutput,
)
from revrepl.activities.dataflow import (
    LaunchPipelineOutput,
    LaunchReaderPipeline,
    LaunchReaderPipelineInput,
    LaunchWriterPipeline,
    LaunchWriterPipelineInput,
)
from revrepl.activities.metadata_db import (
    PrepareMetadataStore,
    PrepareMetadataStoreInput,
    PrepareMetadataStoreOutput,
)
from revrepl.activities.register_job import (
    FinalizeJobStatus,
    FinalizeJobStatusInput,
    FinalizeJobStatusOutput,
    RegisterJob,
    RegisterJobInput,
    RegisterJobOutput,
)
from revrepl.activities.staging import (
    PrepareStagingStore,
    PrepareStagingStoreInput,
    PrepareStagingStoreOutput,
)

__all__ = [
    "FinalizeJobStatus",
    "FinalizeJobStatusInput",
    "FinalizeJobStatusOutput",
    "LaunchPipelineOutput",
    "LaunchReaderPipeline",
    "LaunchReaderPipelineInput",
    "LaunchWriterPipeline",
    "LaunchWriterPipelineInput",
    "PrepareChangeFeed",
    "PrepareChangeFeedInput",
    "PrepareChangeFeedOutput",
    "PrepareMetadataStore",
    "PrepareMetadataStoreInput",
    "PrepareMetadataStoreOutput",
    "PrepareStagingStore",
    "PrepareStagingStoreInput",
    "PrepareStagingStoreOutput",
    "RegisterJob",
    "RegisterJobInput",
    "RegisterJobOutput",
]
