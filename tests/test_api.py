"""Tests for the HTTP API."""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from chatwallet import api
from chatwallet.api import app
from chatwallet.metrics import get_metrics_collector
from chatwallet.wallet.stub_service import StubValueTransferService

ALICE = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
CONV = "15551234567@chat"

client = TestClient(app)


@pytest.fixture(autouse=True)
def fresh_app(monkeypatch):
    """Give each test its own in-memory database, wallet and engine."""
    monkeypatch.delenv("CHATWALLET_ENABLE_METRICS", raising=False)
    monkeypatch.setattr(api, "_db_conn", None)
    monkeypatch.setattr(api, "_wallet_service", None)
    monkeypatch.setattr(api, "_record_store", None)
    monkeypatch.setattr(api, "_engine", None)


def _message(text: str, conversation_id: str = CONV, **kwargs):
    return client.post(
        "/v1/messages", json={"conversation_id": conversation_id, "text": text}, **kwargs
    )


def test_health():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_status_reports_dependencies():
    response = client.get("/v1/status")
    assert response.status_code == 200

    data = response.json()
    deps = {d["name"]: d["status"] for d in data["dependencies"]}
    assert deps["duckdb"] == "ok"
    assert deps["wallet"] == "ok"
    # REDIS_ENABLED=false in tests
    assert deps["redis"] == "degraded"
    assert data["status"] == "degraded"
    assert data["version"] == app.version


class TestMessages:
    """Test POST /v1/messages."""

    def test_balance_reply(self):
        response = _message("balance")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "ok"
        assert data["reply_text"] == "Your current balance is 0.0000 SOL."
        assert data["intent"]["kind"] == "balance"
        assert data["side_effect"] is None

    def test_unknown_is_silent(self):
        data = _message("see you at 5").json()
        assert data["status"] == "silent"
        assert data["reply_text"] is None

    def test_request_id_echoed(self):
        response = _message("help", headers={"X-Request-Id": "req-123"})
        assert response.headers["X-Request-Id"] == "req-123"

    def test_request_id_generated(self):
        response = _message("help")
        assert response.headers["X-Request-Id"]

    def test_full_transfer_flow(self):
        airdrop = _message("airdrop").json()
        assert airdrop["side_effect"]["kind"] == "airdrop"

        prompt = _message(f"send 0.25 to {ALICE}").json()
        assert prompt["status"] == "needs_confirmation"
        assert Decimal(prompt["intent"]["amount"]) == Decimal("0.25")
        assert prompt["intent"]["recipient"] == ALICE

        confirmed = _message("yes").json()
        assert confirmed["status"] == "ok"
        assert confirmed["side_effect"]["kind"] == "sent"
        assert Decimal(confirmed["side_effect"]["amount"]) == Decimal("0.25")

        transactions = client.get("/v1/transactions").json()["transactions"]
        assert [t["kind"] for t in transactions] == ["sent", "airdrop"]
        assert transactions[0]["signature"] == confirmed["side_effect"]["receipt_id"]
        assert transactions[0]["recipient"] == ALICE

    def test_send_to_saved_contact(self):
        client.post("/v1/contacts", json={"name": "alice", "address": ALICE})

        data = _message("send 1 to Alice").json()
        assert data["status"] == "needs_confirmation"
        assert data["reply_text"] == "Are you sure you want to send 1 SOL to Tokenk...? (yes/no)"

    def test_rejects_empty_conversation_id(self):
        response = _message("balance", conversation_id="")
        assert response.status_code == 422


class TestWallet:
    """Test wallet and airdrop endpoints."""

    def test_wallet_summary(self):
        data = client.get("/v1/wallet").json()
        assert data["address"] == api.get_wallet().address()
        assert Decimal(data["balance"]) == Decimal("0")
        assert data["currency"] == "SOL"

    def test_airdrop(self):
        response = client.post("/v1/airdrop")
        assert response.status_code == 200
        assert Decimal(response.json()["amount"]) == Decimal("1")

        assert Decimal(client.get("/v1/wallet").json()["balance"]) == Decimal("1")
        assert client.get("/v1/transactions").json()["transactions"][0]["kind"] == "airdrop"

    def test_airdrop_unavailable(self, monkeypatch):
        monkeypatch.setattr(
            api, "_wallet_service", StubValueTransferService(airdrop_enabled=False)
        )

        response = client.post("/v1/airdrop")
        assert response.status_code == 503
        assert response.json()["detail"] == "Airdrop failed. The network might be busy."


class TestContacts:
    """Test contact endpoints."""

    def test_create_and_list(self):
        response = client.post("/v1/contacts", json={"name": "alice", "address": ALICE})
        assert response.status_code == 201
        contact = response.json()
        assert contact["name"] == "alice"
        assert contact["address"] == ALICE

        contacts = client.get("/v1/contacts").json()["contacts"]
        assert contacts == [contact]

    def test_invalid_address(self):
        response = client.post("/v1/contacts", json={"name": "bob", "address": "0" * 40})
        assert response.status_code == 422

    def test_duplicate_name(self):
        client.post("/v1/contacts", json={"name": "alice", "address": ALICE})
        response = client.post("/v1/contacts", json={"name": "ALICE", "address": ALICE})
        assert response.status_code == 409

    def test_delete(self):
        contact = client.post("/v1/contacts", json={"name": "alice", "address": ALICE}).json()

        assert client.delete(f"/v1/contacts/{contact['id']}").status_code == 204
        assert client.get("/v1/contacts").json()["contacts"] == []
        assert client.delete(f"/v1/contacts/{contact['id']}").status_code == 404


class TestMetricsEndpoint:
    """Test GET /v1/metrics."""

    def test_disabled_by_default(self):
        assert client.get("/v1/metrics").status_code == 404

    def test_enabled(self, monkeypatch):
        monkeypatch.setenv("CHATWALLET_ENABLE_METRICS", "true")
        get_metrics_collector().reset()

        _message("balance")
        _message("random chatter")

        data = client.get("/v1/metrics").json()
        assert data["intent_counts"] == {"balance": 1, "unknown": 1}
        assert data["status_counts"] == {"ok": 1, "silent": 1}
