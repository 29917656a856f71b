"""Tests for starting, listing, pausing, and completing wheels."""

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from wheelbook.database.models import Position, Wheel
from wheelbook.models.common import ErrorType
from wheelbook.services.position_service import PositionService
from wheelbook.services.trade_service import TradeService
from wheelbook.services.wheel_service import WheelService


@pytest.fixture
def service(test_db, mock_publisher) -> WheelService:
    return WheelService(test_db, publisher=mock_publisher)


@pytest.fixture
def make_wheel(test_db):
    def _make(owner, **fields) -> Wheel:
        values = {"user_id": owner.id, "ticker": "AAPL"}
        values.update(fields)
        wheel = Wheel(**values)
        test_db.add(wheel)
        test_db.commit()
        return wheel

    return _make


class TestCreateWheel:
    """Tests for starting wheels."""

    def test_creates_active_wheel(self, service, test_db, user):
        result = service.create_wheel(user.id, " aapl ", notes="Conservative strikes")

        assert result.success is True
        wheel = test_db.get(Wheel, result.data.id)
        assert wheel.ticker == "AAPL"
        assert wheel.status == "ACTIVE"
        assert wheel.notes == "Conservative strikes"
        assert wheel.cycle_count == 0

    def test_publishes_invalidation(self, service, user, mock_publisher):
        service.create_wheel(user.id, "AAPL")
        mock_publisher.invalidate.assert_called_once_with("/wheels", "/dashboard")

    def test_rejects_second_active_wheel(self, service, test_db, user, make_wheel):
        make_wheel(user)

        result = service.create_wheel(user.id, "aapl")

        assert result.error_type == ErrorType.BUSINESS_RULE
        assert result.error == (
            "An active wheel already exists for AAPL. "
            "Please pause or complete it before starting a new one."
        )
        assert test_db.query(Wheel).count() == 1

    @pytest.mark.parametrize("status", ["PAUSED", "COMPLETED"])
    def test_inactive_wheel_does_not_block(self, service, user, make_wheel, status):
        make_wheel(user, status=status)
        assert service.create_wheel(user.id, "AAPL").success is True

    def test_other_users_wheel_does_not_block(self, service, user, other_user, make_wheel):
        make_wheel(other_user)
        assert service.create_wheel(user.id, "AAPL").success is True

    def test_invalid_ticker(self, service, user):
        result = service.create_wheel(user.id, "AAPL1")
        assert result.error == "Invalid input"
        assert result.error_type == ErrorType.VALIDATION

    def test_no_identity(self, service):
        assert service.create_wheel(None, "AAPL").error_type == ErrorType.UNAUTHORIZED


class TestWheelQueries:
    """Tests for wheel listing and detail."""

    def test_orders_by_status_then_activity(self, service, user, other_user, make_wheel):
        now = datetime.utcnow()
        older = make_wheel(user, ticker="MSFT", last_activity_at=now - timedelta(days=2))
        newer = make_wheel(user, ticker="AAPL", last_activity_at=now)
        done = make_wheel(user, ticker="KO", status="COMPLETED", last_activity_at=now)
        make_wheel(other_user)

        wheels = service.get_wheels(user.id).data

        assert [w.id for w in wheels] == [newer.id, older.id, done.id]

    def test_filters(self, service, user, make_wheel):
        make_wheel(user, ticker="AAPL")
        make_wheel(user, ticker="MSFT", status="PAUSED")

        paused = service.get_wheels(user.id, status="paused").data
        by_ticker = service.get_wheels(user.id, ticker="aapl").data

        assert [w.ticker for w in paused] == ["MSFT"]
        assert [w.ticker for w in by_ticker] == ["AAPL"]

    def test_rejects_unknown_status(self, service, user):
        result = service.get_wheels(user.id, status="RUNNING")
        assert result.error == "Invalid wheel status: RUNNING"

    def test_counts_and_deployed_capital(
        self, service, user, make_wheel, make_trade, make_position
    ):
        wheel = make_wheel(user)
        make_trade(user, wheel_id=wheel.id)
        make_trade(user, wheel_id=wheel.id, status="EXPIRED")
        make_position(user, wheel_id=wheel.id)
        make_position(user, wheel_id=wheel.id, status="CLOSED")

        listed = service.get_wheels(user.id).data[0]

        assert listed.trade_count == 2
        assert listed.position_count == 2
        # Open PUT at 150 x 100 plus one open position at 14750
        assert listed.deployed_capital == Decimal("29750.00")

    def test_detail_lists_records(self, service, user, make_wheel, make_trade, make_position):
        wheel = make_wheel(user)
        trade = make_trade(user, wheel_id=wheel.id)
        position = make_position(user, wheel_id=wheel.id, current_value=Decimal("15200.00"))

        detail = service.get_wheel(user.id, wheel.id).data

        assert [t.id for t in detail.trades] == [trade.id]
        assert [p.id for p in detail.positions] == [position.id]
        assert detail.positions[0].unrealized_gain_loss == Decimal("450.00")

    def test_detail_not_found(self, service, user):
        result = service.get_wheel(user.id, "00000000-0000-0000-0000-000000000000")
        assert result.error == "Wheel not found"
        assert result.error_type == ErrorType.NOT_FOUND

    def test_detail_other_users_wheel(self, service, user, other_user, make_wheel):
        wheel = make_wheel(other_user)
        result = service.get_wheel(user.id, wheel.id)
        assert result.error == "Unauthorized"
        assert result.error_type == ErrorType.FORBIDDEN

    def test_detail_malformed_id(self, service, user):
        assert service.get_wheel(user.id, "wheel-1").error == "Invalid wheel ID"


class TestWheelStatusChanges:
    """Tests for pausing and completing wheels."""

    def test_pause(self, service, test_db, user, make_wheel, mock_publisher):
        wheel = make_wheel(user)

        result = service.pause_wheel(user.id, wheel.id)

        assert result.success is True
        test_db.refresh(wheel)
        assert wheel.status == "PAUSED"
        mock_publisher.invalidate.assert_called_once_with(
            "/wheels", f"/wheels/{wheel.id}", "/dashboard"
        )

    @pytest.mark.parametrize("status", ["PAUSED", "COMPLETED"])
    def test_pause_requires_active(self, service, user, make_wheel, status):
        wheel = make_wheel(user, status=status)

        result = service.pause_wheel(user.id, wheel.id)

        assert result.error_type == ErrorType.INVALID_STATE
        assert result.error == (
            f"Cannot pause {status.lower()} wheel. Only ACTIVE wheels can be paused."
        )

    @pytest.mark.parametrize("status", ["ACTIVE", "PAUSED"])
    def test_complete(self, service, test_db, user, make_wheel, status):
        wheel = make_wheel(user, status=status)

        result = service.complete_wheel(user.id, wheel.id)

        assert result.success is True
        test_db.refresh(wheel)
        assert wheel.status == "COMPLETED"
        assert wheel.completed_at is not None
        assert wheel.last_activity_at == wheel.completed_at

    def test_complete_twice(self, service, user, make_wheel):
        wheel = make_wheel(user, status="COMPLETED")
        result = service.complete_wheel(user.id, wheel.id)
        assert result.error == "Wheel is already completed."
        assert result.error_type == ErrorType.INVALID_STATE

    def test_other_users_wheel(self, service, test_db, user, other_user, make_wheel):
        wheel = make_wheel(other_user)

        assert service.pause_wheel(user.id, wheel.id).error == "Unauthorized"
        assert service.complete_wheel(user.id, wheel.id).error == "Unauthorized"
        test_db.refresh(wheel)
        assert wheel.status == "ACTIVE"


class TestWheelLifecycle:
    """Trades and positions linked to a wheel through the public operations."""

    def test_assigned_put_carries_wheel_to_position(self, service, test_db, user):
        wheel_id = service.create_wheel(user.id, "AAPL").data.id
        trades = TradeService(test_db)
        created = trades.create_trade(
            user.id,
            ticker="AAPL",
            option_type="PUT",
            action="SELL_TO_OPEN",
            strike_price=Decimal("150"),
            premium=Decimal("250"),
            contracts=1,
            expiration_date=date.today() + timedelta(days=30),
            wheel_id=wheel_id,
        )
        before = test_db.get(Wheel, wheel_id).last_activity_at

        assigned = PositionService(test_db).assign_put(user.id, created.data.id)

        position = test_db.get(Position, assigned.data.position_id)
        assert position.wheel_id == wheel_id
        wheel = test_db.get(Wheel, wheel_id)
        test_db.refresh(wheel)
        assert wheel.last_activity_at >= before

        detail = service.get_wheel(user.id, wheel_id).data
        assert [t.status.value for t in detail.trades] == ["ASSIGNED"]
        assert [p.id for p in detail.positions] == [position.id]
        assert detail.deployed_capital == Decimal("14750.00")
