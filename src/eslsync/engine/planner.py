"""
Batching Planner - splits per-store work into sink-sized batches.

The sink accepts a bounded number of items and bytes per request. Items
are never dropped or split: an item that alone exceeds the byte limit is
sent in a batch of its own and left for the sink to reject.
"""

import json
from typing import Any, Callable, List, Optional, Sequence, Union

import structlog

from eslsync.config import SyncConfig, get_config
from eslsync.core.batch import BatchKind, DeliveryBatch
from eslsync.core.item import DestinationRecord

logger = structlog.get_logger(__name__)

DEFAULT_MAX_ITEMS = 999
DEFAULT_MAX_BYTES = 10 * 1024 * 1024

# Brackets of the enclosing JSON array
_ARRAY_OVERHEAD = 2

Serializer = Callable[[Any], Union[str, bytes]]


def to_json(value: Any) -> str:
    """Compact JSON encoding used for sink request bodies."""
    if isinstance(value, DestinationRecord):
        value = value.to_dict()
    elif isinstance(value, list):
        value = [v.to_dict() if isinstance(v, DestinationRecord) else v for v in value]
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def serialized_size(value: Any, serialize: Serializer = to_json) -> int:
    """Get the UTF-8 byte size of a serialized value."""
    encoded = serialize(value)
    if isinstance(encoded, str):
        encoded = encoded.encode("utf-8")
    return len(encoded)


def plan_batches(
    items: Sequence[Any],
    max_count: int = DEFAULT_MAX_ITEMS,
    max_bytes: int = DEFAULT_MAX_BYTES,
    serialize: Serializer = to_json,
    kind: BatchKind = BatchKind.UPSERT,
) -> List[DeliveryBatch]:
    """
    Split items into batches bounded by count and serialized size.

    Args:
        items: Items in delivery order
        max_count: Maximum items per batch
        max_bytes: Maximum serialized bytes per batch
        serialize: Encodes one item the way it appears in the request body
        kind: Operation the batches are sent with

    Returns:
        Non-empty batches whose concatenation is the input, in order
    """
    batches: List[DeliveryBatch] = []
    current = DeliveryBatch(kind=kind, size_bytes=_ARRAY_OVERHEAD)

    for item in items:
        item_size = serialized_size(item, serialize)

        would_exceed_count = current.size >= max_count
        # +1 for the comma before this item
        would_exceed_bytes = current.size_bytes + item_size + 1 > max_bytes

        if not current.is_empty and (would_exceed_count or would_exceed_bytes):
            batches.append(current)
            current = DeliveryBatch(kind=kind, size_bytes=_ARRAY_OVERHEAD)

        current.items.append(item)
        current.size_bytes += item_size + (1 if current.size > 1 else 0)

        if current.size == 1 and current.size_bytes > max_bytes:
            logger.warning(
                "oversized_item",
                size_bytes=item_size,
                max_bytes=max_bytes,
            )

    if not current.is_empty:
        batches.append(current)

    return batches


def chunk_keys(keys: Sequence[str], max_count: int = DEFAULT_MAX_ITEMS) -> List[DeliveryBatch]:
    """
    Split delete keys into fixed-size batches.

    Keys are small and uniform, so only the count limit applies.
    """
    return [
        DeliveryBatch(kind=BatchKind.DELETE, items=list(keys[i:i + max_count]))
        for i in range(0, len(keys), max_count)
    ]


class BatchPlanner:
    """
    Batching limits bound to one sink.

    Usage:
        ```python
        planner = BatchPlanner(max_count=999, max_bytes=10 * 1024 * 1024)
        for batch in planner.plan(records):
            ...
        ```
    """

    def __init__(
        self,
        max_count: Optional[int] = None,
        max_bytes: Optional[int] = None,
        serialize: Serializer = to_json,
        config: Optional[SyncConfig] = None,
    ):
        """
        Initialize the planner.

        Args:
            max_count: Items per batch (config value if not provided)
            max_bytes: Bytes per batch (config value if not provided)
            serialize: Item encoder used for size estimates
            config: Sync configuration
        """
        self.config = config or get_config()
        self.max_count = max_count or self.config.batch_max_items
        self.max_bytes = max_bytes or self.config.batch_max_bytes
        self.serialize = serialize

    def plan(self, items: Sequence[DestinationRecord]) -> List[DeliveryBatch]:
        """Plan upsert batches."""
        batches = plan_batches(items, self.max_count, self.max_bytes, self.serialize)
        logger.debug("upsert_batches_planned", items=len(items), batches=len(batches))
        return batches

    def plan_keys(self, keys: Sequence[str]) -> List[DeliveryBatch]:
        """Plan delete batches."""
        batches = chunk_keys(keys, self.max_count)
        logger.debug("delete_batches_planned", keys=len(keys), batches=len(batches))
        return batches
