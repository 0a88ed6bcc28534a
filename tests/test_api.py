"""
Test the HTTP management surface.
"""

import pytest
from fastapi.testclient import TestClient
from solders.keypair import Keypair

from auto_sender.api.main import create_app
from tests.fakes import encode_secret


BASE = "/api/v1/auto-senders"


@pytest.fixture
def client(service):
    with TestClient(create_app(service)) as test_client:
        yield test_client


def create_body(source: Keypair, destination: str, **overrides):
    body = {
        "source_address": str(source.pubkey()),
        "destination_address": destination,
        "signing_secret": encode_secret(source),
        "reserve_amount": 5,
        "name": "Treasury sweep",
    }
    body.update(overrides)
    return body


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["rpc"] == "healthy"
    assert response.json()["scheduler"] == "stopped"


def test_add_and_list(client, service, source, destination):
    body = create_body(source, destination)

    response = client.post(f"{BASE}/", json=body)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["id"].startswith("autoSender_")
    assert data["is_active"] is True
    assert body["signing_secret"] not in response.text
    assert service.scheduler.is_running

    listed = client.get(f"{BASE}/")
    assert [c["id"] for c in listed.json()["data"]] == [data["id"]]
    assert body["signing_secret"] not in listed.text


def test_status_is_redacted(client, source, destination):
    body = create_body(source, destination)
    client.post(f"{BASE}/", json=body)

    response = client.get(f"{BASE}/status")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["is_running"] is True
    assert data["config_count"] == 1
    assert data["sol_to_usd_rate"] == 195
    assert body["signing_secret"] not in response.text


def test_invalid_address_is_rejected(client, source, destination):
    response = client.post(f"{BASE}/", json=create_body(source, destination, destination_address="0" * 40))

    assert response.status_code == 400
    assert response.json()["error_code"] == "VALIDATION_ERROR"


def test_negative_reserve_is_rejected(client, source, destination):
    response = client.post(f"{BASE}/", json=create_body(source, destination, reserve_amount=-1))

    assert response.status_code == 422


def test_get_toggle_and_remove(client, service, source, destination):
    config_id = client.post(f"{BASE}/", json=create_body(source, destination)).json()["data"]["id"]

    detail = client.get(f"{BASE}/{config_id}").json()["data"]
    assert detail["has_signing_secret"] is True

    toggled = client.post(f"{BASE}/{config_id}/toggle")
    assert toggled.json()["data"]["is_active"] is False
    assert not service.scheduler.is_running

    removed = client.delete(f"{BASE}/{config_id}")
    assert removed.status_code == 200
    assert not service.secrets.contains(config_id)

    assert client.get(f"{BASE}/{config_id}").status_code == 404
    assert client.delete(f"{BASE}/{config_id}").status_code == 404
    assert client.post(f"{BASE}/{config_id}/toggle").status_code == 404


def test_policy_updates(client, service):
    rate = client.put(f"{BASE}/settings/rate", json={"sol_to_usd_rate": 150})
    threshold = client.put(f"{BASE}/settings/threshold", json={"min_usd_threshold": 0})

    assert rate.status_code == 200
    assert threshold.status_code == 200
    assert service.threshold.sol_to_usd_rate == 150
    assert service.threshold.min_usd_threshold == 0

    assert client.put(f"{BASE}/settings/rate", json={"sol_to_usd_rate": -1}).status_code == 422


def test_evaluate_now_transfers(client, rpc, source, destination):
    rpc.set_balance(str(source.pubkey()), 10)
    config_id = client.post(f"{BASE}/", json=create_body(source, destination)).json()["data"]["id"]

    response = client.post(f"{BASE}/{config_id}/evaluate")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "transferred"
    assert data["transfer"]["lamports"] == 5_000_000_000

    detail = client.get(f"{BASE}/{config_id}").json()["data"]
    assert detail["transfer_count"] == 1
    assert detail["total_transferred"] == 5


def test_refresh_secret(client, clock, source, destination):
    config_id = client.post(f"{BASE}/", json=create_body(source, destination)).json()["data"]["id"]
    clock.advance(301)

    assert client.get(f"{BASE}/{config_id}").json()["data"]["has_signing_secret"] is False

    response = client.post(f"{BASE}/{config_id}/secret", json={"signing_secret": encode_secret(source)})

    assert response.status_code == 200
    assert response.json()["data"]["has_signing_secret"] is True
    assert encode_secret(source) not in response.text
