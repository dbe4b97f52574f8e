"""
Tests for the inbound webhook endpoint
"""

import pytest
from fastapi.testclient import TestClient

from whaapy.webhooks.models import WebhookRegistration
from whaapy.webhooks.router import create_app


@pytest.fixture
def client(store):
    store.save("trigger-1", WebhookRegistration(webhookId="w1", event="message.received"))
    return TestClient(create_app(store))


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_matching_event_returns_item(client):
    response = client.post(
        "/webhooks/trigger-1/webhook",
        json={"event": "message.received", "timestamp": "2026-01-01T00:00:00Z", "data": {"text": "hola"}},
        headers={"X-Whaapy-Event": "message.received"},
    )

    assert response.status_code == 200
    items = response.json()["items"]
    assert len(items) == 1
    record = items[0]["json"]
    assert record["event"] == "message.received"
    assert record["data"] == {"text": "hola"}
    assert record["headers"]["x-whaapy-event"] == "message.received"


def test_filtered_event_is_acknowledged_without_items(client):
    response = client.post("/webhooks/trigger-1/webhook", json={"event": "message.sent"})
    assert response.status_code == 200
    assert response.json() == {"items": []}


def test_unknown_trigger(client):
    response = client.post("/webhooks/nope/webhook", json={"event": "message.received"})
    assert response.status_code == 404
    assert response.json()["detail"] == "Trigger not found or not active"


def test_non_json_body(store):
    store.save("trigger-2", WebhookRegistration(event="*"))
    client = TestClient(create_app(store))

    response = client.post("/webhooks/trigger-2/webhook", content=b"ping", headers={"Content-Type": "text/plain"})

    record = response.json()["items"][0]["json"]
    assert record["event"] is None
    assert record["raw"] == "ping"
