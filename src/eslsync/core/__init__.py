"""
Core sync models.

This module contains the value objects that flow through the pipeline:
source records, sink items, delivery batches and request outcomes.
"""

from eslsync.core.batch import BatchKind, DeliveryBatch
from eslsync.core.errors import (
    ConfigurationError,
    DeliveryCancelledError,
    DeliveryError,
    EslSyncError,
    InvalidInputError,
    ServiceUnavailableError,
    TransformError,
)
from eslsync.core.item import DestinationRecord
from eslsync.core.outcome import RequestOutcome
from eslsync.core.records import SourceRecord, StoreScope, decode_records
from eslsync.core.store_map import StoreMap

__all__ = [
    "BatchKind",
    "DeliveryBatch",
    "DestinationRecord",
    "RequestOutcome",
    "SourceRecord",
    "StoreScope",
    "StoreMap",
    "decode_records",
    "EslSyncError",
    "InvalidInputError",
    "TransformError",
    "DeliveryError",
    "DeliveryCancelledError",
    "ConfigurationError",
    "ServiceUnavailableError",
]
