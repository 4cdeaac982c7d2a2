"""
Pipeline engine components.

This module contains the record transformer, the dispatch grouper and the
batching planner.
"""

from eslsync.engine.grouper import DispatchGrouper, GroupingResult, group_records
from eslsync.engine.planner import BatchPlanner, chunk_keys, plan_batches
from eslsync.engine.transformer import RecordTransformer, transform

__all__ = [
    "RecordTransformer",
    "transform",
    "DispatchGrouper",
    "GroupingResult",
    "group_records",
    "BatchPlanner",
    "plan_batches",
    "chunk_keys",
]
