"""Tests for rolling options."""

import uuid
from datetime import date, timedelta
from decimal import Decimal

import pytest

from wheelbook.database.models import Trade, Wheel
from wheelbook.models.common import ErrorType
from wheelbook.services.roll_service import RollService


@pytest.fixture
def service(test_db, mock_publisher) -> RollService:
    return RollService(test_db, publisher=mock_publisher)


def _roll(service, user_id, trade_id, **overrides):
    values = {
        "new_expiration_date": date.today() + timedelta(days=60),
        "new_strike_price": Decimal("145"),
        "new_premium": Decimal("300"),
        "close_premium": Decimal("100"),
    }
    values.update(overrides)
    return service.roll_option(user_id, trade_id, **values)


class TestRollOption:
    """Tests for the atomic close-and-reopen."""

    def test_net_credit_roll(self, service, test_db, user, make_trade):
        original = make_trade(user)
        new_expiration = date.today() + timedelta(days=60)

        result = _roll(service, user.id, original.id, new_expiration_date=new_expiration)

        assert result.success is True
        assert result.data.net_credit == Decimal("200")

        test_db.refresh(original)
        assert original.status == "CLOSED"
        assert original.close_date is not None
        assert "Rolled to new expiration" in original.notes
        assert new_expiration.isoformat() in original.notes
        assert "net credit: $200.00" in original.notes
        assert original.close_premium is None
        assert original.realized_gain_loss is None

        close_leg = test_db.get(Trade, result.data.close_trade_id)
        assert close_leg.action == "BUY_TO_CLOSE"
        assert close_leg.status == "CLOSED"
        assert close_leg.option_type == "PUT"
        assert close_leg.strike_price == Decimal("150.00")
        assert close_leg.premium == Decimal("100.00")
        assert close_leg.expiration_date == original.expiration_date
        assert close_leg.roll_from_trade_id == original.id

        open_leg = test_db.get(Trade, result.data.open_trade_id)
        assert open_leg.action == "SELL_TO_OPEN"
        assert open_leg.status == "OPEN"
        assert open_leg.strike_price == Decimal("145.00")
        assert open_leg.premium == Decimal("300.00")
        assert open_leg.expiration_date == new_expiration
        assert open_leg.roll_from_trade_id == original.id

    def test_net_debit_roll(self, service, test_db, user, make_trade):
        original = make_trade(user)

        result = _roll(
            service, user.id, original.id, new_premium=Decimal("250"), close_premium=Decimal("400")
        )

        assert result.data.net_credit == Decimal("-150")
        test_db.refresh(original)
        assert "net debit: $150.00" in original.notes

    def test_appends_to_existing_notes(self, service, test_db, user, make_trade):
        original = make_trade(user, notes="Earnings next week")
        _roll(service, user.id, original.id)
        test_db.refresh(original)
        assert original.notes.startswith("Earnings next week\nRolled to new expiration")

    def test_roll_notes_on_legs(self, service, test_db, user, make_trade):
        original = make_trade(user)
        result = _roll(service, user.id, original.id, notes="defensive roll")
        assert test_db.get(Trade, result.data.close_trade_id).notes == "Roll close: defensive roll"
        assert test_db.get(Trade, result.data.open_trade_id).notes == "Roll open: defensive roll"

    def test_covered_call_keeps_links(self, service, test_db, user, make_trade, make_position):
        wheel = Wheel(user_id=user.id, ticker="AAPL")
        test_db.add(wheel)
        test_db.commit()
        position = make_position(user, wheel_id=wheel.id)
        call = make_trade(
            user, option_type="CALL", position_id=position.id, wheel_id=wheel.id
        )

        result = _roll(service, user.id, call.id)

        for leg_id in (result.data.close_trade_id, result.data.open_trade_id):
            leg = test_db.get(Trade, leg_id)
            assert leg.position_id == position.id
            assert leg.wheel_id == wheel.id
        test_db.refresh(position)
        assert position.has_open_covered_call is True

    def test_rolls_are_not_limited(self, service, test_db, user, make_trade):
        for _ in range(19):
            make_trade(user, status="EXPIRED")
        original = make_trade(user)

        result = _roll(service, user.id, original.id)

        assert result.success is True
        assert test_db.query(Trade).filter_by(user_id=user.id).count() == 22

    def test_rejects_closed_trade(self, service, test_db, user, make_trade):
        original = make_trade(user, status="CLOSED")

        result = _roll(service, user.id, original.id)

        assert result.error == "Cannot roll closed trade. Only OPEN trades can be rolled."
        assert result.error_type == ErrorType.INVALID_STATE
        assert test_db.query(Trade).count() == 1

    def test_rejects_buy_to_close(self, service, user, make_trade):
        original = make_trade(user, action="BUY_TO_CLOSE")
        result = _roll(service, user.id, original.id)
        assert result.error == "Can only roll SELL_TO_OPEN trades"

    def test_not_found(self, service, user):
        result = _roll(service, user.id, str(uuid.uuid4()))
        assert result.error == "Original trade not found"

    def test_other_user(self, service, user, other_user, make_trade):
        original = make_trade(other_user)
        result = _roll(service, user.id, original.id)
        assert result.error == "Unauthorized"

    def test_malformed_id(self, service, user):
        result = _roll(service, user.id, "abc")
        assert result.error == "Invalid trade ID"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"new_expiration_date": date.today()},
            {"new_strike_price": Decimal("0")},
            {"new_premium": Decimal("0")},
            {"close_premium": Decimal("-1")},
            {"notes": "x" * 1001},
        ],
    )
    def test_invalid_input_writes_nothing(self, service, test_db, user, make_trade, overrides):
        original = make_trade(user)

        result = _roll(service, user.id, original.id, **overrides)

        assert result.error == "Invalid input"
        test_db.refresh(original)
        assert original.status == "OPEN"
        assert test_db.query(Trade).count() == 1

    def test_failure_mid_transaction_rolls_back(self, service, test_db, user, make_trade):
        original = make_trade(user)

        def explode(*args, **kwargs):
            raise RuntimeError("disk full")

        service.wheel_repo.touch_activity = explode
        result = _roll(service, user.id, original.id)

        assert result.error == "Failed to roll option"
        test_db.refresh(original)
        assert original.status == "OPEN"
        assert original.notes is None
        assert test_db.query(Trade).count() == 1
