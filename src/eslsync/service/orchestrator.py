"""
Request Orchestrator.

Drives one inbound request through grouping, transformation and delivery,
and aggregates the per-request outcome.
"""

import asyncio
from typing import List, Optional, Sequence, Tuple

import structlog

from eslsync.config import SyncConfig, get_config
from eslsync.core.errors import DeliveryError, ServiceUnavailableError
from eslsync.core.item import DestinationRecord
from eslsync.core.outcome import RequestOutcome
from eslsync.core.records import SourceRecord
from eslsync.core.store_map import StoreMap
from eslsync.engine.grouper import DispatchGrouper
from eslsync.engine.transformer import RecordTransformer
from eslsync.sink.interface import SinkInterface

logger = structlog.get_logger(__name__)


class SyncOrchestrator:
    """
    Main request orchestrator.

    Coordinates the pipeline for each inbound request:
    - Grouping records by destination store
    - Transforming records into sink items
    - Delivering upserts and deletes per store
    - Aggregating counts and errors

    Requests share a bounded pool of workers. Destination stores within one
    request are delivered concurrently; a failure at one store is recorded
    and does not stop the others.

    Usage:
        ```python
        orchestrator = SyncOrchestrator(store_map, SinkClient(config), config)
        outcome, status = await orchestrator.handle(records)
        ```
    """

    def __init__(
        self,
        store_map: StoreMap,
        client: SinkInterface,
        config: Optional[SyncConfig] = None,
        transformer: Optional[RecordTransformer] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            store_map: Source store number -> sink store id, read-only
            client: Sink client shared by all requests
            config: Sync configuration
            transformer: Custom record transformer
        """
        self.config = config or get_config()
        self.store_map = store_map
        self.client = client
        self.grouper = DispatchGrouper(store_map, transformer)

        self._workers = asyncio.Semaphore(self.config.max_concurrent_requests)
        self._accepting = True
        self._in_flight = 0
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def accepting(self) -> bool:
        """Whether new requests are accepted."""
        return self._accepting

    @property
    def in_flight(self) -> int:
        """Number of requests currently being processed or waiting for a worker."""
        return self._in_flight

    async def handle(self, records: Sequence[SourceRecord]) -> Tuple[RequestOutcome, int]:
        """
        Process a request and map the outcome to an HTTP-style status.

        Unexpected exceptions are reported as a generic internal failure.

        Args:
            records: Decoded source records

        Returns:
            (outcome, 200 if no errors else 500)

        Raises:
            ServiceUnavailableError: If the service is shutting down
        """
        try:
            outcome = await self.process(records)
        except ServiceUnavailableError:
            raise
        except Exception as e:
            logger.exception("request_failed", error=str(e))
            outcome = RequestOutcome(internal_error=str(e))
            return outcome, outcome.status_code

        if outcome.has_errors:
            logger.warning("request_completed_with_errors", **outcome.to_dict())
        else:
            logger.info("request_completed", **outcome.to_dict())
        return outcome, outcome.status_code

    async def process(self, records: Sequence[SourceRecord]) -> RequestOutcome:
        """
        Run the full pipeline for one request.

        Args:
            records: Decoded source records in request order

        Returns:
            Aggregated outcome for the request

        Raises:
            ServiceUnavailableError: If the service is shutting down
        """
        if not self._accepting:
            raise ServiceUnavailableError("Service is shutting down")

        self._in_flight += 1
        self._idle.clear()
        try:
            async with self._workers:
                return await self._run(records)
        finally:
            self._in_flight -= 1
            if self._in_flight == 0:
                self._idle.set()

    async def _run(self, records: Sequence[SourceRecord]) -> RequestOutcome:
        logger.info("processing_request", items=len(records))

        grouped = self.grouper.group(records)

        outcome = RequestOutcome(skipped=grouped.skipped)
        for error in grouped.errors:
            outcome.add_error(error)

        stores = grouped.destination_stores
        partials = await asyncio.gather(
            *(
                self._deliver_store(
                    store_id,
                    grouped.upserts.get(store_id, []),
                    grouped.deletes.get(store_id, []),
                )
                for store_id in stores
            ),
            return_exceptions=True,
        )

        # Every store task has finished here, failed or not
        for store_id, partial in zip(stores, partials):
            if isinstance(partial, Exception):
                logger.error(
                    "store_delivery_failed",
                    store=store_id,
                    error=str(partial),
                    exc_info=partial,
                )
                outcome.add_error(f"Delivery failed for store {store_id}: {partial}")
            elif isinstance(partial, BaseException):
                raise partial
            else:
                outcome.merge(partial)

        return outcome

    async def _deliver_store(
        self,
        store_id: str,
        upserts: List[DestinationRecord],
        deletes: List[str],
    ) -> RequestOutcome:
        """Deliver one store's work; failures are recorded, not raised."""
        partial = RequestOutcome()

        if upserts:
            try:
                partial.add_updated(await self.client.post_items(store_id, upserts))
                logger.info("store_items_posted", store=store_id, items=len(upserts))
            except DeliveryError as e:
                logger.error("store_post_failed", store=store_id, items=len(upserts), error=str(e))
                partial.add_error(f"POST failed for store {store_id}: {e}")

        if deletes:
            try:
                partial.add_deleted(await self.client.delete_items(store_id, deletes))
                logger.info("store_items_deleted", store=store_id, items=len(deletes))
            except DeliveryError as e:
                logger.error("store_delete_failed", store=store_id, items=len(deletes), error=str(e))
                partial.add_error(f"DELETE failed for store {store_id}: {e}")

        return partial

    def begin_shutdown(self) -> None:
        """Stop accepting requests and abort pending retry backoffs."""
        if self._accepting:
            logger.info("orchestrator_stopping", in_flight=self._in_flight)
        self._accepting = False
        self.client.begin_shutdown()

    async def shutdown(self, grace_seconds: Optional[float] = None) -> None:
        """
        Shut down gracefully.

        Waits for in-flight requests up to the grace period, then releases
        the sink client.

        Args:
            grace_seconds: Grace period (config value if not provided)
        """
        self.begin_shutdown()
        grace = self.config.shutdown_grace_seconds if grace_seconds is None else grace_seconds

        if self._in_flight:
            try:
                await asyncio.wait_for(self._idle.wait(), timeout=grace)
            except asyncio.TimeoutError:
                logger.warning("shutdown_grace_expired", in_flight=self._in_flight)

        await self.client.disconnect()
        logger.info("orchestrator_shutdown")
