"""
revrepl - Reverse replication workflow orchestrator

Provisions the resources of a Spanner -> source database reverse replication
pipeline (job record, staging bucket, change stream, metadata database,
reader and writer Dataflow jobs) as an ordered saga of activities.
"""

__version__ = "0.1.0"
__author__ = "Local Pipeline Team"


__all__ = ["RevreplConfig", "load_config", "get_revrepl_home"]

from .config import RevreplConfig, load_config, get_revrepl_home
