"""Tests for the HTTP API."""

import uuid
from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest

from wheelbook.database.models import Trade


def _headers(user) -> dict:
    return {"X-User-Id": user.id}


def _trade_body(**overrides) -> dict:
    body = {
        "ticker": "AAPL",
        "option_type": "PUT",
        "action": "SELL_TO_OPEN",
        "strike_price": "150.00",
        "premium": "250.00",
        "contracts": 1,
        "expiration_date": (date.today() + timedelta(days=30)).isoformat(),
    }
    body.update(overrides)
    return body


class TestSystemEndpoints:
    """Tests for health, root, and info."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root(self, client):
        data = client.get("/").json()
        assert data["api"] == "/api/v1/info"
        assert data["docs"] == "/docs"

    def test_info(self, client):
        with patch(
            "wheelbook.api.v1.router.check_database_connection", return_value=True
        ):
            response = client.get("/api/v1/info")

        assert response.status_code == 200
        data = response.json()
        assert data["database_connected"] is True
        assert data["free_trade_limit"] == 20


class TestTradeEndpoints:
    """Tests for trade routes and status mapping."""

    def test_create_returns_201(self, client, test_db, user):
        response = client.post("/api/v1/trades", json=_trade_body(), headers=_headers(user))

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert test_db.get(Trade, body["data"]["id"]).ticker == "AAPL"

    def test_create_without_identity_is_401(self, client):
        response = client.post("/api/v1/trades", json=_trade_body())
        assert response.status_code == 401
        assert response.json()["detail"]["error"] == (
            "Unauthorized. Please sign in to create trades."
        )

    def test_create_with_invalid_body_is_422(self, client, user):
        response = client.post(
            "/api/v1/trades", json=_trade_body(ticker="TOOLONG1"), headers=_headers(user)
        )
        assert response.status_code == 422

    def test_limit_reached_is_400(self, client, user, make_trade):
        for _ in range(20):
            make_trade(user)

        response = client.post("/api/v1/trades", json=_trade_body(), headers=_headers(user))

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["error"] == "FREE_TIER_LIMIT_REACHED"
        assert detail["details"] == {"trades_used": 20, "trade_limit": 20}

    def test_get_trade(self, client, user, make_trade):
        trade = make_trade(user)
        response = client.get(f"/api/v1/trades/{trade.id}", headers=_headers(user))
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "OPEN"

    def test_get_missing_trade_is_404(self, client, user):
        response = client.get(f"/api/v1/trades/{uuid.uuid4()}", headers=_headers(user))
        assert response.status_code == 404

    def test_get_other_users_trade_is_403(self, client, user, other_user, make_trade):
        trade = make_trade(other_user)
        response = client.get(f"/api/v1/trades/{trade.id}", headers=_headers(user))
        assert response.status_code == 403

    def test_malformed_id_is_422(self, client, user):
        response = client.get("/api/v1/trades/not-a-uuid", headers=_headers(user))
        assert response.status_code == 422
        assert response.json()["detail"]["error"] == "Invalid trade ID"

    def test_list_trades_by_status(self, client, user, make_trade):
        make_trade(user)
        make_trade(user, status="EXPIRED")

        response = client.get("/api/v1/trades?status=EXPIRED", headers=_headers(user))

        data = response.json()["data"]
        assert [t["status"] for t in data] == ["EXPIRED"]

    def test_close_option(self, client, user, make_trade):
        trade = make_trade(user)

        response = client.post(
            f"/api/v1/trades/{trade.id}/close",
            json={"close_premium": "100.00"},
            headers=_headers(user),
        )

        assert response.status_code == 200
        assert response.json()["data"]["net_pl"] == "150.00"

    def test_invalid_transition_is_400(self, client, user, make_trade):
        trade = make_trade(user, status="EXPIRED")
        response = client.post(f"/api/v1/trades/{trade.id}/expire", headers=_headers(user))
        assert response.status_code == 400
        assert response.json()["detail"]["error_type"] == "invalid_state"

    def test_roll(self, client, user, make_trade):
        trade = make_trade(user)

        response = client.post(
            f"/api/v1/trades/{trade.id}/roll",
            json={
                "new_expiration_date": (date.today() + timedelta(days=60)).isoformat(),
                "new_strike_price": "145.00",
                "new_premium": "300.00",
                "close_premium": "100.00",
            },
            headers=_headers(user),
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["close_trade_id"] != data["open_trade_id"]

    def test_assign_put_then_call(self, client, user, make_trade):
        put = make_trade(user)
        assigned = client.post(f"/api/v1/trades/{put.id}/assign-put", headers=_headers(user))
        position_id = assigned.json()["data"]["position_id"]
        call = make_trade(
            user,
            option_type="CALL",
            strike_price=Decimal("155"),
            premium=Decimal("200"),
            position_id=position_id,
        )

        response = client.post(f"/api/v1/trades/{call.id}/assign-call", headers=_headers(user))

        assert response.status_code == 200
        assert response.json()["data"]["realized_gain_loss"] == "1200.00"

    def test_delete_trade(self, client, test_db, user, make_trade):
        trade = make_trade(user)
        trade_id = trade.id
        response = client.delete(f"/api/v1/trades/{trade_id}", headers=_headers(user))
        assert response.status_code == 200
        assert test_db.get(Trade, trade_id) is None


class TestBatchEndpoints:
    """Batch routes must not be shadowed by single-trade routes."""

    def test_batch_expire(self, client, user, make_trade):
        trades = [make_trade(user), make_trade(user)]

        response = client.post(
            "/api/v1/trades/batch/expire",
            json={"trade_ids": [t.id for t in trades]},
            headers=_headers(user),
        )

        assert response.status_code == 200
        assert response.json()["data"]["success_count"] == 2

    def test_batch_assign_partial(self, client, user, make_trade):
        put = make_trade(user)
        call = make_trade(user, option_type="CALL")

        response = client.post(
            "/api/v1/trades/batch/assign",
            json={"trade_ids": [put.id, call.id]},
            headers=_headers(user),
        )

        data = response.json()["data"]
        assert data["success_count"] == 1
        assert data["failure_count"] == 1

    def test_batch_too_large_is_422(self, client, user):
        ids = [str(uuid.uuid4()) for _ in range(51)]
        response = client.post(
            "/api/v1/trades/batch/assign", json={"trade_ids": ids}, headers=_headers(user)
        )
        assert response.status_code == 422
        assert response.json()["detail"]["error"] == "Invalid input"

    def test_batch_with_no_valid_trades_is_400(self, client, user, make_trade):
        trade = make_trade(user, status="CLOSED")
        response = client.post(
            "/api/v1/trades/batch/expire", json={"trade_ids": [trade.id]}, headers=_headers(user)
        )
        assert response.status_code == 400
        assert response.json()["detail"]["details"]["errors"][0]["trade_id"] == trade.id


class TestPositionEndpoints:
    """Tests for position routes."""

    def test_list_and_get(self, client, user, make_position):
        position = make_position(user)

        listed = client.get("/api/v1/positions?status=OPEN", headers=_headers(user))
        detail = client.get(f"/api/v1/positions/{position.id}", headers=_headers(user))

        assert [p["id"] for p in listed.json()["data"]] == [position.id]
        assert detail.json()["data"]["cost_basis"] == "147.5000"

    def test_update(self, client, user, make_position):
        position = make_position(user)
        response = client.patch(
            f"/api/v1/positions/{position.id}",
            json={"notes": "core holding"},
            headers=_headers(user),
        )
        assert response.status_code == 200

    @pytest.mark.parametrize("price, code", [("155.00", 200), ("0", 422)])
    def test_close(self, client, user, make_position, price, code):
        position = make_position(user)
        response = client.post(
            f"/api/v1/positions/{position.id}/close",
            json={"closing_price": price},
            headers=_headers(user),
        )
        assert response.status_code == code


class TestUsageEndpoint:
    """Tests for trade usage."""

    def test_usage(self, client, user, make_trade):
        make_trade(user)
        data = client.get("/api/v1/usage", headers=_headers(user)).json()["data"]
        assert data["trades_used"] == 1
        assert data["remaining"] == 19

    def test_usage_requires_identity(self, client):
        assert client.get("/api/v1/usage").status_code == 401


class TestWheelEndpoints:
    """Tests for wheel routes."""

    def test_create_list_and_get(self, client, user):
        created = client.post("/api/v1/wheels", json={"ticker": "aapl"}, headers=_headers(user))
        assert created.status_code == 201
        wheel_id = created.json()["data"]["id"]

        listed = client.get("/api/v1/wheels?status=ACTIVE", headers=_headers(user))
        detail = client.get(f"/api/v1/wheels/{wheel_id}", headers=_headers(user))

        assert [w["ticker"] for w in listed.json()["data"]] == ["AAPL"]
        assert detail.json()["data"]["trades"] == []

    def test_duplicate_active_wheel_is_400(self, client, user):
        client.post("/api/v1/wheels", json={"ticker": "AAPL"}, headers=_headers(user))
        response = client.post("/api/v1/wheels", json={"ticker": "AAPL"}, headers=_headers(user))
        assert response.status_code == 400
        assert response.json()["detail"]["error_type"] == "business_rule"

    def test_invalid_ticker_is_422(self, client, user):
        response = client.post("/api/v1/wheels", json={"ticker": "123"}, headers=_headers(user))
        assert response.status_code == 422

    def test_pause_then_complete(self, client, user):
        wheel_id = client.post(
            "/api/v1/wheels", json={"ticker": "AAPL"}, headers=_headers(user)
        ).json()["data"]["id"]

        paused = client.post(f"/api/v1/wheels/{wheel_id}/pause", headers=_headers(user))
        repaused = client.post(f"/api/v1/wheels/{wheel_id}/pause", headers=_headers(user))
        completed = client.post(f"/api/v1/wheels/{wheel_id}/complete", headers=_headers(user))

        assert paused.status_code == 200
        assert repaused.status_code == 400
        assert completed.status_code == 200

    def test_missing_wheel_is_404(self, client, user):
        response = client.get(f"/api/v1/wheels/{uuid.uuid4()}", headers=_headers(user))
        assert response.status_code == 404

    def test_position_reports_unrealized_gain(self, client, user, make_position):
        position = make_position(user, current_value=Decimal("15200.00"))
        data = client.get(f"/api/v1/positions/{position.id}", headers=_headers(user)).json()["data"]
        assert data["unrealized_gain_loss"] == "450.00"
        assert data["unrealized_gain_loss_pct"] == "3.05"
