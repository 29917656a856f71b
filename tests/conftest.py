"""Pytest fixtures for wheelbook tests.

This module provides test fixtures for database sessions, test clients,
users, and trade factories.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Callable, Generator
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from wheelbook.database.models import Position, Trade, User, Wheel  # noqa: F401
from wheelbook.database.session import Base, get_db
from wheelbook.events import EventPublisher
from wheelbook.main import app
from wheelbook.repositories import UserRepository


@pytest.fixture(scope="function")
def test_db() -> Generator[Session, None, None]:
    """Create a test database session.

    Creates an in-memory SQLite database for testing that is
    destroyed after each test function completes.

    Yields:
        SQLAlchemy session for testing

    Example:
        >>> def test_something(test_db):
        >>>     result = test_db.query(Trade).all()
        >>>     assert len(result) == 0
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,  # Keep connection alive for in-memory database
    )

    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
    )

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        # trades and positions reference each other; dropping the in-memory
        # database with the engine avoids ordering the drop
        engine.dispose()


@pytest.fixture
def make_user(test_db: Session) -> Callable[..., User]:
    """Factory creating committed users."""
    counter = {"n": 0}

    def _make(**fields) -> User:
        counter["n"] += 1
        email = fields.pop("email", f"trader{counter['n']}@example.com")
        user = UserRepository(test_db).create_user(email, **fields)
        test_db.commit()
        return user

    return _make


@pytest.fixture
def user(make_user) -> User:
    """FREE tier user."""
    return make_user(name="Free Trader")


@pytest.fixture
def other_user(make_user) -> User:
    """Second user, used for ownership checks."""
    return make_user(name="Other Trader")


@pytest.fixture
def pro_user(make_user) -> User:
    """PRO tier user."""
    return make_user(name="Pro Trader", subscription_tier="PRO")


@pytest.fixture
def make_trade(test_db: Session) -> Callable[..., Trade]:
    """Factory inserting trades directly, bypassing service validation.

    Defaults describe a 1-contract AAPL $150 PUT sold for $250.
    """

    def _make(owner: User, **fields) -> Trade:
        contracts = fields.pop("contracts", 1)
        values = {
            "user_id": owner.id,
            "ticker": "AAPL",
            "option_type": "PUT",
            "action": "SELL_TO_OPEN",
            "status": "OPEN",
            "strike_price": Decimal("150.00"),
            "premium": Decimal("250.00"),
            "contracts": contracts,
            "shares": contracts * 100,
            "expiration_date": date.today() + timedelta(days=30),
            "open_date": datetime.utcnow(),
        }
        values.update(fields)
        trade = Trade(**values)
        test_db.add(trade)
        test_db.commit()
        return trade

    return _make


@pytest.fixture
def make_position(test_db: Session, make_trade) -> Callable[..., Position]:
    """Factory creating an OPEN position backed by an ASSIGNED PUT.

    Defaults match a $150 PUT with $250 premium: cost basis 147.50 and
    total cost 14750.00 on 100 shares.
    """

    def _make(owner: User, **fields) -> Position:
        put = make_trade(owner, status="ASSIGNED", close_date=datetime.utcnow())
        values = {
            "user_id": owner.id,
            "ticker": put.ticker,
            "shares": put.shares,
            "cost_basis": Decimal("147.5000"),
            "total_cost": Decimal("14750.00"),
            "status": "OPEN",
            "acquired_date": datetime.utcnow(),
            "assignment_trade_id": put.id,
        }
        values.update(fields)
        position = Position(**values)
        test_db.add(position)
        test_db.commit()
        return position

    return _make


@pytest.fixture(scope="function")
def client(test_db: Session) -> TestClient:
    """Create a test client with test database.

    Creates a FastAPI TestClient that uses the test database
    instead of the real database.

    Args:
        test_db: Test database session fixture

    Returns:
        FastAPI TestClient for making test requests

    Example:
        >>> def test_endpoint(client):
        >>>     response = client.get("/health")
        >>>     assert response.status_code == 200
    """

    def override_get_db():
        """Override database dependency with test database."""
        yield test_db

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    test_db.rollback()
    app.dependency_overrides.clear()


@pytest.fixture
def mock_publisher() -> MagicMock:
    """Publisher stand-in for asserting emitted events."""
    return MagicMock(spec=EventPublisher)
