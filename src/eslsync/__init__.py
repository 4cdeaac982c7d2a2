"""
ESL Sync

Receives item-update batches from a point-of-sale back office and
republishes them, reshaped per store, to a cloud electronic-shelf-label API.
"""

__version__ = "0.1.0"

from eslsync.core.item import DestinationRecord
from eslsync.core.outcome import RequestOutcome
from eslsync.core.records import SourceRecord, StoreScope
from eslsync.core.store_map import StoreMap

__all__ = [
    "DestinationRecord",
    "RequestOutcome",
    "SourceRecord",
    "StoreScope",
    "StoreMap",
]
