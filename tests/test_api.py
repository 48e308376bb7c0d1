"""Tests for the internal status API endpoints."""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from cryptobot.api.routers import configure_routers, reset_bot_status, update_bot_status
from cryptobot.errors import PersistenceError
from cryptobot.ledger import PositionLedger
from cryptobot.main import app
from cryptobot.repos.db import init_db

client = TestClient(app)


@pytest.fixture
def ledger(tmp_path):
    path = str(tmp_path / "api.db")
    init_db(path)
    ledger = PositionLedger(path)
    configure_routers(ledger=ledger, symbol="BTCUSDT")
    yield ledger
    reset_bot_status()


def test_health():
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


class TestStatusEndpoint:
    def test_status_reflects_updates(self, ledger):
        update_bot_status(running=True, rsi=28.5, last_action="waiting")
        data = client.get("/status").json()
        assert data["symbol"] == "BTCUSDT"
        assert data["running"] is True
        assert data["rsi"] == pytest.approx(28.5)
        assert data["last_action"] == "waiting"

    def test_status_defaults(self, ledger):
        data = client.get("/status").json()
        assert data["cycle_count"] == 0
        assert data["is_open"] is False


class TestPositionEndpoint:
    def test_unknown_position_is_closed(self, ledger):
        data = client.get("/position").json()
        assert data == {"symbol": "BTCUSDT", "is_opened": False, "updated_at": None}

    def test_open_position(self, ledger):
        ledger.update_position("BTCUSDT", True)
        data = client.get("/position").json()
        assert data["is_opened"] is True
        assert data["updated_at"]

    def test_explicit_symbol(self, ledger):
        ledger.update_position("ETHUSDT", True)
        data = client.get("/position", params={"symbol": "ETHUSDT"}).json()
        assert data["symbol"] == "ETHUSDT"
        assert data["is_opened"] is True

    def test_persistence_error_returns_500(self, ledger):
        broken = MagicMock()
        broken.get_position_record.side_effect = PersistenceError("locked")
        configure_routers(ledger=broken, symbol="BTCUSDT")
        resp = client.get("/position")
        assert resp.status_code == 500


class TestOrdersEndpoint:
    def test_empty(self, ledger):
        data = client.get("/orders").json()
        assert data == {"orders": [], "total": 0}

    def test_lists_newest_first(self, ledger):
        ledger.record_order("BTCUSDT", "BUY", 0.001, 42000.0)
        ledger.record_order("BTCUSDT", "SELL", 0.001, 43000.0)
        data = client.get("/orders").json()
        assert data["total"] == 2
        assert [o["side"] for o in data["orders"]] == ["SELL", "BUY"]

    def test_limit_validation(self, ledger):
        assert client.get("/orders", params={"limit": 0}).status_code == 422
