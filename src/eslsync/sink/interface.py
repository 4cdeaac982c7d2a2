"""
Abstract interface for the ESL sink.

Defines the contract for item delivery that all sink clients must implement.
"""

from abc import ABC, abstractmethod
from typing import List, Sequence

import structlog

from eslsync.core.item import DestinationRecord
from eslsync.engine.planner import BatchPlanner

logger = structlog.get_logger(__name__)


class SinkInterface(ABC):
    """
    Abstract interface for ESL sink access.

    Implementations deliver single batches (upsert, delete); splitting
    per-store work into batches and sequencing them is shared here.
    """

    planner: BatchPlanner

    @abstractmethod
    async def connect(self) -> None:
        """
        Prepare the sink connection.

        Raises:
            ConfigurationError: If the client is not configured for delivery
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Release network resources."""
        pass

    @abstractmethod
    async def upsert(self, store_id: str, records: Sequence[DestinationRecord]) -> None:
        """
        Create or update one batch of items at a sink store.

        Args:
            store_id: Sink store id
            records: Items for a single request

        Raises:
            DeliveryError: If the batch failed after all retries
        """
        pass

    @abstractmethod
    async def delete(self, store_id: str, keys: Sequence[str]) -> None:
        """
        Delete one batch of items from a sink store.

        Args:
            store_id: Sink store id
            keys: Item keys for a single request

        Raises:
            DeliveryError: If the batch failed after all retries
        """
        pass

    def begin_shutdown(self) -> None:
        """Abort pending retry backoffs. No-op unless the client retries."""
        pass

    async def post_items(self, store_id: str, records: List[DestinationRecord]) -> int:
        """
        Upsert all items for a store, split into batches.

        Batches are sent in order; the first failed batch aborts the rest.
        Batches already delivered are not rolled back.

        Args:
            store_id: Sink store id
            records: All items for the store

        Returns:
            Number of items delivered

        Raises:
            DeliveryError: If any batch failed after all retries
        """
        if not records:
            logger.debug("no_items_to_post", store=store_id)
            return 0

        batches = self.planner.plan(records)
        logger.info("posting_items", store=store_id, items=len(records), batches=len(batches))

        for index, batch in enumerate(batches, start=1):
            logger.info(
                "posting_batch",
                store=store_id,
                batch=f"{index}/{len(batches)}",
                size=batch.size,
                size_bytes=batch.size_bytes,
            )
            await self.upsert(store_id, batch.items)

        logger.info("items_posted", store=store_id, items=len(records))
        return len(records)

    async def delete_items(self, store_id: str, keys: List[str]) -> int:
        """
        Delete all keys for a store, split into batches.

        Same sequencing and failure rules as post_items.

        Returns:
            Number of keys deleted
        """
        if not keys:
            logger.debug("no_items_to_delete", store=store_id)
            return 0

        batches = self.planner.plan_keys(keys)
        logger.info("deleting_items", store=store_id, items=len(keys), batches=len(batches))

        for index, batch in enumerate(batches, start=1):
            logger.info(
                "deleting_batch",
                store=store_id,
                batch=f"{index}/{len(batches)}",
                size=batch.size,
            )
            await self.delete(store_id, batch.items)

        logger.info("items_deleted", store=store_id, items=len(keys))
        return len(keys)
