"""
Pytest configuration and shared fixtures for the test suite.
"""

import json
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

import httpx
import pytest

from eslsync.config import SyncConfig
from eslsync.core.errors import DeliveryError
from eslsync.core.item import DestinationRecord
from eslsync.core.records import SourceRecord, StoreScope
from eslsync.core.store_map import StoreMap
from eslsync.engine.planner import BatchPlanner
from eslsync.sink.interface import SinkInterface


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_config() -> SyncConfig:
    """Create a test configuration."""
    return SyncConfig(
        sink_base_url="https://esl.example.test/v1",
        sink_api_key="test-subscription-key",
        store_mappings={
            "RS1": "acme_corp_us.main_street",
            "RS2": "acme_corp_us.harbor",
        },
        batch_max_items=999,
        max_attempts=3,
        retry_base_delay_seconds=1.0,
        max_concurrent_requests=4,
        shutdown_grace_seconds=1.0,
        log_level="DEBUG",
    )


@pytest.fixture
def store_map(test_config) -> StoreMap:
    """Store map built from the test configuration."""
    return StoreMap(test_config.store_mappings)


# ============================================================================
# Test Data Generators
# ============================================================================

def make_scope(store: str = "RS1", **fields: Any) -> StoreScope:
    """Create a store scope from feed-style (camelCase) fields."""
    data = {"storeNumber": store, "price1": 12.98, "divider1": 1}
    data.update(fields)
    return StoreScope.model_validate(data)


def make_record(item_id: Optional[str] = "012345", stores: Optional[List[dict]] = None, **fields: Any) -> SourceRecord:
    """
    Create a source record from feed-style fields.

    Each entry in stores is a dict of scope fields; storeNumber defaults to RS1.
    """
    data: Dict[str, Any] = {
        "itemId": item_id,
        "itemName": "Test Item",
        "brand": "Acme",
        "size": "7 OZ",
    }
    data.update(fields)
    scopes = []
    for scope in stores if stores is not None else [{}]:
        scope_data = {"storeNumber": "RS1", "price1": 12.98, "divider1": 1}
        scope_data.update(scope)
        scopes.append(scope_data)
    data["stores"] = scopes
    return SourceRecord.model_validate(data)


@pytest.fixture
def sample_record() -> SourceRecord:
    """One item at mapped store RS1, regular price $12.98."""
    return make_record()


@pytest.fixture
def sample_records() -> List[SourceRecord]:
    """Five items at RS1 with increasing prices."""
    return [
        make_record(item_id=f"00000{i}", stores=[{"price1": 1.0 + i}])
        for i in range(5)
    ]


# ============================================================================
# Mock Sink
# ============================================================================

class MockSink(SinkInterface):
    """In-memory sink for testing."""

    def __init__(self, planner: Optional[BatchPlanner] = None):
        self.planner = planner or BatchPlanner(max_count=999, max_bytes=10 * 1024 * 1024, config=SyncConfig())
        self.upserts: List[Tuple[str, List[DestinationRecord]]] = []
        self.deletes: List[Tuple[str, List[str]]] = []
        self.failing_stores: Set[str] = set()
        self.shutdown_requested = False
        self._connected = False

    async def connect(self) -> None:
        self._connected = True

    async def disconnect(self) -> None:
        self._connected = False

    def begin_shutdown(self) -> None:
        self.shutdown_requested = True

    async def upsert(self, store_id: str, records) -> None:
        if store_id in self.failing_stores:
            raise DeliveryError("POST failed with status 503", status_code=503)
        self.upserts.append((store_id, list(records)))

    async def delete(self, store_id: str, keys) -> None:
        if store_id in self.failing_stores:
            raise DeliveryError("DELETE failed with status 503", status_code=503)
        self.deletes.append((store_id, list(keys)))

    @property
    def connected(self) -> bool:
        return self._connected


@pytest.fixture
def mock_sink() -> MockSink:
    """Create a mock sink."""
    return MockSink()


# ============================================================================
# Mock HTTP Transport
# ============================================================================

class RecordingTransport:
    """
    httpx.MockTransport handler that records requests and replays responses.

    Responses are consumed in order; the last one repeats. An Exception in
    the list is raised instead of returning a response.
    """

    def __init__(self, responses: Optional[List[Any]] = None):
        self.responses = list(responses or [200])
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests) - 1, len(self.responses) - 1)
        response = self.responses[index]
        if isinstance(response, Exception):
            raise response
        return httpx.Response(response, text="ok" if response < 300 else "error")

    def bodies(self) -> List[Any]:
        return [json.loads(r.content) for r in self.requests]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def make_transport() -> Callable[..., RecordingTransport]:
    """Factory for recording transports."""
    return lambda *responses: RecordingTransport(list(responses) or None)


class SleepRecorder:
    """Backoff sleep replacement that records delays without waiting."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()
