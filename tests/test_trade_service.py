"""Tests for trade creation, early close, expiration, deletion, and reads."""

import uuid
from datetime import date, timedelta
from decimal import Decimal

import pytest

from wheelbook.database.models import Trade, Wheel
from wheelbook.models.common import ErrorType
from wheelbook.services.trade_service import TradeService


def _future(days: int = 30) -> date:
    return date.today() + timedelta(days=days)


@pytest.fixture
def service(test_db, mock_publisher) -> TradeService:
    return TradeService(test_db, publisher=mock_publisher)


def _create(service, user_id, **overrides):
    values = {
        "ticker": "aapl",
        "option_type": "PUT",
        "action": "SELL_TO_OPEN",
        "strike_price": Decimal("150"),
        "premium": Decimal("250"),
        "contracts": 1,
        "expiration_date": _future(),
    }
    values.update(overrides)
    return service.create_trade(user_id, **values)


class TestCreateTrade:
    """Tests for recording trades."""

    def test_creates_open_trade(self, service, test_db, user):
        result = _create(service, user.id, contracts=2)

        assert result.success is True
        trade = test_db.get(Trade, result.data.id)
        assert trade.ticker == "AAPL"
        assert trade.status == "OPEN"
        assert trade.shares == 200
        assert trade.premium == Decimal("250.00")

    def test_open_date_is_kept(self, service, test_db, user):
        opened = date.today() - timedelta(days=3)
        result = _create(service, user.id, open_date=opened)
        trade = test_db.get(Trade, result.data.id)
        assert trade.open_date.date() == opened

    def test_requires_identity(self, service):
        result = _create(service, None)
        assert result.error == "Unauthorized. Please sign in to create trades."
        assert result.error_type == ErrorType.UNAUTHORIZED

    @pytest.mark.parametrize(
        "overrides",
        [
            {"ticker": "TOOLONG"},
            {"ticker": "AB1"},
            {"strike_price": Decimal("0")},
            {"premium": Decimal("-5")},
            {"contracts": 0},
            {"expiration_date": date.today()},
            {"notes": "x" * 1001},
        ],
    )
    def test_rejects_invalid_input(self, service, test_db, user, overrides):
        result = _create(service, user.id, **overrides)

        assert result.success is False
        assert result.error == "Invalid input"
        assert result.details
        assert test_db.query(Trade).count() == 0

    def test_unknown_user(self, service):
        result = _create(service, str(uuid.uuid4()))
        assert result.error == "User not found"

    def test_publishes_invalidation(self, service, user, mock_publisher):
        _create(service, user.id)
        mock_publisher.invalidate.assert_called_once_with("/trades", "/dashboard")

    def test_links_owned_wheel(self, service, test_db, user):
        wheel = Wheel(user_id=user.id, ticker="AAPL")
        test_db.add(wheel)
        test_db.commit()

        result = _create(service, user.id, wheel_id=wheel.id)

        assert test_db.get(Trade, result.data.id).wheel_id == wheel.id

    def test_rejects_other_users_wheel(self, service, test_db, user, other_user):
        wheel = Wheel(user_id=other_user.id, ticker="AAPL")
        test_db.add(wheel)
        test_db.commit()

        result = _create(service, user.id, wheel_id=wheel.id)

        assert result.error == "Unauthorized"
        assert test_db.query(Trade).count() == 0


class TestCoveredCallCreation:
    """Tests for writing CALLs against a position."""

    def test_links_call_to_position(self, service, test_db, user, make_position):
        position = make_position(user)

        result = _create(service, user.id, option_type="CALL", position_id=position.id)

        assert result.success is True
        assert test_db.get(Trade, result.data.id).position_id == position.id

    def test_second_open_call_is_rejected(self, service, test_db, user, make_position):
        position = make_position(user)
        assert _create(service, user.id, option_type="CALL", position_id=position.id).success

        result = _create(service, user.id, option_type="CALL", position_id=position.id)

        assert result.error == "Position already has an open covered call"
        assert test_db.query(Trade).filter_by(position_id=position.id).count() == 1

    def test_closing_call_frees_position(self, service, user, make_position):
        position = make_position(user)
        first = _create(service, user.id, option_type="CALL", position_id=position.id)
        assert service.close_option(user.id, first.data.id, Decimal("20")).success

        result = _create(service, user.id, option_type="CALL", position_id=position.id)

        assert result.success is True

    def test_put_cannot_link_to_position(self, service, user, make_position):
        position = make_position(user)
        result = _create(service, user.id, position_id=position.id)
        assert result.error == "Only CALL trades can be linked to a position"

    def test_ticker_must_match(self, service, user, make_position):
        position = make_position(user)
        result = _create(service, user.id, ticker="MSFT", option_type="CALL", position_id=position.id)
        assert "does not match" in result.error

    def test_contracts_limited_by_shares(self, service, user, make_position):
        position = make_position(user)
        result = _create(
            service, user.id, option_type="CALL", contracts=2, position_id=position.id
        )
        assert "not enough to cover" in result.error

    def test_closed_position(self, service, user, make_position):
        position = make_position(user, status="CLOSED")
        result = _create(service, user.id, option_type="CALL", position_id=position.id)
        assert result.error == "Position is already closed"


class TestCloseOption:
    """Tests for early close."""

    def test_records_net_pl(self, service, test_db, user, make_trade):
        trade = make_trade(user)

        result = service.close_option(user.id, trade.id, Decimal("100"))

        assert result.success is True
        assert result.data.net_pl == Decimal("150.00")
        test_db.refresh(trade)
        assert trade.status == "CLOSED"
        assert trade.close_premium == Decimal("100.00")
        assert trade.realized_gain_loss == Decimal("150.00")
        assert trade.close_date is not None

    def test_zero_close_premium(self, service, user, make_trade):
        trade = make_trade(user)
        result = service.close_option(user.id, trade.id, Decimal("0"))
        assert result.data.net_pl == Decimal("250.00")

    def test_negative_close_premium(self, service, user, make_trade):
        trade = make_trade(user)
        result = service.close_option(user.id, trade.id, Decimal("-1"))
        assert result.error == "Invalid input"

    def test_terminal_trade_is_rejected(self, service, test_db, user, make_trade):
        trade = make_trade(user, status="EXPIRED")

        result = service.close_option(user.id, trade.id, Decimal("100"))

        assert result.error == "Cannot transition from EXPIRED to CLOSED"
        assert result.error_type == ErrorType.INVALID_STATE
        test_db.refresh(trade)
        assert trade.close_premium is None

    def test_touches_wheel(self, service, test_db, user, make_trade):
        wheel = Wheel(user_id=user.id, ticker="AAPL")
        test_db.add(wheel)
        test_db.commit()
        trade = make_trade(user, wheel_id=wheel.id)

        service.close_option(user.id, trade.id, Decimal("100"))

        test_db.refresh(wheel)
        test_db.refresh(trade)
        assert wheel.last_activity_at == trade.close_date


class TestExpireAndDelete:
    """Tests for single expiration and deletion."""

    def test_expire(self, service, test_db, user, make_trade):
        trade = make_trade(user)

        result = service.expire_trade(user.id, trade.id)

        assert result.success is True
        test_db.refresh(trade)
        assert trade.status == "EXPIRED"
        assert trade.realized_gain_loss is None

    def test_expire_twice(self, service, user, make_trade):
        trade = make_trade(user)
        service.expire_trade(user.id, trade.id)
        result = service.expire_trade(user.id, trade.id)
        assert result.error == "Cannot transition from EXPIRED to EXPIRED"

    def test_delete_open_trade(self, service, test_db, user, make_trade):
        trade = make_trade(user)
        trade_id = trade.id

        result = service.delete_trade(user.id, trade_id)

        assert result.success is True
        assert test_db.get(Trade, trade_id) is None

    def test_delete_closed_trade_is_rejected(self, service, test_db, user, make_trade):
        trade = make_trade(user, status="CLOSED")
        result = service.delete_trade(user.id, trade.id)
        assert result.error == "Only OPEN trades can be deleted"
        assert test_db.get(Trade, trade.id) is not None


class TestReads:
    """Tests for owner-scoped reads."""

    def test_get_trade(self, service, user, make_trade):
        trade = make_trade(user)
        data = service.get_trade(user.id, trade.id).data
        assert data.id == trade.id
        assert data.strike_price == Decimal("150.00")

    def test_get_other_users_trade(self, service, user, other_user, make_trade):
        trade = make_trade(other_user)
        assert service.get_trade(user.id, trade.id).error == "Unauthorized"

    def test_list_filters(self, service, user, other_user, make_trade):
        make_trade(user)
        make_trade(user, ticker="MSFT")
        make_trade(user, status="EXPIRED")
        make_trade(other_user)

        assert len(service.list_trades(user.id).data) == 3
        assert len(service.list_trades(user.id, status="open").data) == 2
        assert len(service.list_trades(user.id, ticker="msft").data) == 1

    def test_list_rejects_unknown_status(self, service, user):
        result = service.list_trades(user.id, status="PENDING")
        assert result.error == "Invalid trade status: PENDING"
