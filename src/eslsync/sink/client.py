"""
ESL sink API client.

Delivers item batches to the sink's REST API with bounded retries.
"""

from typing import Any, Optional, Sequence

import httpx
import structlog

from eslsync.config import SyncConfig, get_config
from eslsync.core.errors import DeliveryCancelledError, DeliveryError
from eslsync.core.item import DestinationRecord
from eslsync.engine.planner import BatchPlanner, to_json
from eslsync.sink.interface import SinkInterface
from eslsync.sink.retry import ShutdownAwareSleep, SleepFn, retry_async

logger = structlog.get_logger(__name__)

HEADER_SUBSCRIPTION_KEY = "Ocp-Apim-Subscription-Key"
HEADER_CACHE_CONTROL = "Cache-Control"


class SinkClient(SinkInterface):
    """
    HTTP client for the ESL sink.

    Implements the SinkInterface using the sink's REST API. One client is
    shared by all concurrent requests; httpx pools connections safely.
    """

    def __init__(
        self,
        config: Optional[SyncConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Optional[SleepFn] = None,
        planner: Optional[BatchPlanner] = None,
    ):
        """
        Initialize the sink client.

        Args:
            config: Sync configuration. Uses global config if not provided.
            transport: Custom httpx transport (e.g. httpx.MockTransport in tests)
            sleep: Backoff sleep override; defaults to a shutdown-aware sleep
            planner: Batch planner (built from config if not provided)
        """
        self.config = config or get_config()
        self.base_url = self.config.sink_base_url
        self.planner = planner or BatchPlanner(config=self.config)
        self._transport = transport
        self._shutdown_sleep = ShutdownAwareSleep()
        self._sleep = sleep or self._shutdown_sleep
        self._client: Optional[httpx.AsyncClient] = None
        self._closed = False

    @property
    def headers(self) -> dict:
        """Get request headers with API key."""
        return {
            HEADER_SUBSCRIPTION_KEY: self.config.sink_api_key or "",
            HEADER_CACHE_CONTROL: "no-cache",
            "Content-Type": "application/json",
        }

    async def connect(self) -> None:
        """Create the HTTP client."""
        if self._client is not None:
            return

        self.config.require_api_key()
        self._closed = False

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=httpx.Timeout(
                self.config.response_timeout_seconds,
                connect=self.config.connect_timeout_seconds,
            ),
            transport=self._transport,
        )
        logger.info("sink_client_connected", base_url=self.base_url)

    async def disconnect(self) -> None:
        """Close the HTTP client. Deliveries after this fail instead of reconnecting."""
        self._closed = True
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("sink_client_disconnected")

    def begin_shutdown(self) -> None:
        """Fail pending backoff sleeps so retry loops end promptly."""
        self._shutdown_sleep.trigger()

    async def upsert(self, store_id: str, records: Sequence[DestinationRecord]) -> None:
        """POST one batch of items to a store."""
        if not records:
            return
        await self._send_with_retry("POST", store_id, list(records))

    async def delete(self, store_id: str, keys: Sequence[str]) -> None:
        """DELETE one batch of item keys from a store."""
        if not keys:
            return
        await self._send_with_retry("DELETE", store_id, list(keys))

    @staticmethod
    def items_path(store_id: str) -> str:
        """Path of a store's item collection."""
        return f"/stores/{store_id}/items"

    async def _send_with_retry(self, method: str, store_id: str, payload: Any) -> None:
        if not self._client:
            if self._closed:
                raise DeliveryCancelledError("Sink client is closed")
            await self.connect()

        path = self.items_path(store_id)
        body = to_json(payload).encode("utf-8")
        logger.debug("sink_request", method=method, path=path, size_bytes=len(body))

        async def attempt() -> None:
            await self._send(method, path, body)

        try:
            await retry_async(
                attempt,
                max_attempts=self.config.max_attempts,
                base_delay=self.config.retry_base_delay_seconds,
                sleep=self._sleep,
                operation_name=method,
            )
        except DeliveryError as e:
            logger.error(
                "delivery_failed",
                method=method,
                path=path,
                attempts=self.config.max_attempts,
                status=e.status_code,
                error=str(e),
            )
            raise

    async def _send(self, method: str, path: str, body: bytes) -> None:
        """Make one API request; any non-2xx status is a failure."""
        client = self._client
        if client is None:
            raise DeliveryCancelledError("Sink client is closed")

        try:
            response = await client.request(method, path, content=body)
        except httpx.RequestError as e:
            logger.warning("delivery_attempt_failed", method=method, path=path, error=str(e))
            raise DeliveryError(f"{method} failed: {e}") from e

        if 200 <= response.status_code < 300:
            logger.debug("sink_request_succeeded", method=method, path=path, status=response.status_code)
            return

        logger.warning(
            "delivery_attempt_failed",
            method=method,
            path=path,
            status=response.status_code,
            error=response.text,
        )
        raise DeliveryError(
            f"{method} failed with status {response.status_code}",
            status_code=response.status_code,
        )
