"""
Test suite for the webhook receiver.
"""

import json

import pytest
from fastapi.testclient import TestClient

from eslsync.core.store_map import StoreMap
from eslsync.service.orchestrator import SyncOrchestrator
from eslsync.service.server import create_app


ITEM = {
    "itemId": "012345",
    "itemName": "Test Item",
    "stores": [{"storeNumber": "RS1", "price1": 12.98, "divider1": 1}],
}


@pytest.fixture
def orchestrator(store_map, mock_sink, test_config) -> SyncOrchestrator:
    return SyncOrchestrator(store_map, mock_sink, test_config)


@pytest.fixture
def client(orchestrator, test_config) -> TestClient:
    return TestClient(create_app(orchestrator, test_config))


# ============================================================================
# Test Request Validation
# ============================================================================

class TestRequestValidation:
    """Tests for malformed requests."""

    def test_get_not_allowed(self, client):
        assert client.get("/catapult").status_code == 405

    def test_unknown_path(self, client):
        assert client.post("/other", content=b"[]").status_code == 404

    def test_empty_body(self, client):
        response = client.post("/catapult", content=b"")
        assert response.status_code == 400
        assert response.text == "Empty request body"

    def test_whitespace_body(self, client):
        assert client.post("/catapult", content=b"  \n").status_code == 400

    def test_invalid_json(self, client):
        response = client.post("/catapult", content=b"{not json")
        assert response.status_code == 400
        assert response.text.startswith("Invalid JSON: ")

    def test_json_object_instead_of_array(self, client):
        response = client.post("/catapult", json={"itemId": "1"})
        assert response.status_code == 400
        assert response.text.startswith("Invalid JSON: ")

    def test_wrong_field_type(self, client):
        bad = dict(ITEM, stores="RS1")
        response = client.post("/catapult", json=[bad])
        assert response.status_code == 400
        assert "stores" in response.text

    def test_empty_array(self, client, mock_sink):
        response = client.post("/catapult", json=[])
        assert response.status_code == 200
        assert response.text == "No items to process"
        assert mock_sink.upserts == []


# ============================================================================
# Test Processing
# ============================================================================

class TestProcessing:
    """Tests for processed requests."""

    def test_success(self, client, mock_sink):
        response = client.post("/catapult", content=json.dumps([ITEM]))

        assert response.status_code == 200
        assert response.text == (
            "Success: 1 items updated, 0 items deleted, 0 items skipped (unmapped stores)"
        )
        assert response.headers["content-type"].startswith("text/plain")
        assert mock_sink.upserts[0][1][0].id == "012345"

    def test_unknown_fields_are_ignored(self, client):
        item = dict(ITEM, somethingNew=True)
        assert client.post("/catapult", json=[item]).status_code == 200

    def test_delivery_failure(self, client, mock_sink):
        mock_sink.failing_stores.add("acme_corp_us.main_street")
        response = client.post("/catapult", json=[ITEM])

        assert response.status_code == 500
        assert response.text.startswith("Processed with errors: 0 items updated")

    def test_shutting_down(self, client, orchestrator):
        orchestrator.begin_shutdown()
        response = client.post("/catapult", json=[ITEM])

        assert response.status_code == 503
        assert response.text == "Service is shutting down"

    def test_custom_webhook_path(self, orchestrator, test_config):
        config = test_config.model_copy(update={"webhook_path": "/items"})
        client = TestClient(create_app(orchestrator, config))

        assert client.post("/items", json=[]).status_code == 200
        assert client.post("/catapult", json=[]).status_code == 404


class TestLifespan:
    """Tests for startup and shutdown hooks."""

    def test_connects_and_shuts_down(self, orchestrator, mock_sink, test_config):
        with TestClient(create_app(orchestrator, test_config)) as client:
            assert mock_sink.connected
            assert client.post("/catapult", json=[ITEM]).status_code == 200

        assert not mock_sink.connected
        assert not orchestrator.accepting


class TestNumericIdentifiers:
    """Feeds that send item ids and store numbers as JSON numbers."""

    def test_numeric_identifiers(self, client, mock_sink):
        item = {
            "itemId": 12345,
            "itemName": "Test Item",
            "powerField5": 778,
            "stores": [{"storeNumber": "RS1", "price1": 1.0}],
        }
        response = client.post("/catapult", json=[item])

        assert response.status_code == 200
        record = mock_sink.upserts[0][1][0]
        assert record.id == "12345"
        assert record.custom["WHItem"] == "778"

    def test_numeric_store_number(self, mock_sink, test_config):
        config = test_config.model_copy(update={"store_mappings": {"1": "acme_corp_us.main_street"}})
        orchestrator = SyncOrchestrator(StoreMap(config.store_mappings), mock_sink, config)
        client = TestClient(create_app(orchestrator, config))

        response = client.post("/catapult", json=[{"itemId": "A", "stores": [{"storeNumber": 1, "price1": 2.0}]}])

        assert response.status_code == 200
        assert response.text.startswith("Success: 1 items updated")
        assert mock_sink.upserts[0][0] == "acme_corp_us.main_street"
