"""
Delivery batch model.

Represents one request-sized group of sink records or delete keys.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List


class BatchKind(str, Enum):
    """Operation a batch is sent with."""
    UPSERT = "upsert"       # Create or update items
    DELETE = "delete"       # Remove items by key


@dataclass
class DeliveryBatch:
    """
    A batch of items delivered to the sink in a single HTTP request.

    Batches are built per request and discarded after delivery.

    Attributes:
        kind: Upsert or delete
        items: DestinationRecords (upsert) or item keys (delete), in order
        size_bytes: Estimated serialized size of the JSON array body
    """

    kind: BatchKind
    items: List[Any] = field(default_factory=list)
    size_bytes: int = 2

    def __post_init__(self):
        if isinstance(self.kind, str):
            self.kind = BatchKind(self.kind)

    @property
    def size(self) -> int:
        """Get the number of items in this batch."""
        return len(self.items)

    @property
    def is_empty(self) -> bool:
        """Check if batch has no items."""
        return len(self.items) == 0

    def __repr__(self) -> str:
        return f"DeliveryBatch(kind={self.kind.value}, size={self.size}, bytes={self.size_bytes})"
