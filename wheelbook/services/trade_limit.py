"""Free-tier trade limit enforcement.

FREE users may create a fixed number of trades over the lifetime of their
account. The count and the insert share one SERIALIZABLE transaction, so
two concurrent creations cannot both observe ``limit - 1`` and both insert.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Union

from sqlalchemy.orm import Session

from wheelbook.config import settings
from wheelbook.database.models.trade import Trade
from wheelbook.database.models.user import User
from wheelbook.database.session import SERIALIZABLE, run_in_transaction
from wheelbook.models.enums import GRACE_PERIOD_STATUSES, SubscriptionTier
from wheelbook.models.trade import TradeUsageData
from wheelbook.repositories.trade import TradeRepository

logger = logging.getLogger(__name__)

LIMIT_REACHED_ERROR = "FREE_TIER_LIMIT_REACHED"


@dataclass
class TradeCreated:
    """Creation went through; the transaction commits."""

    trade: Trade


@dataclass
class LimitReached:
    """Creation was refused; the transaction rolls back."""

    trades_used: int


CreateOutcome = Union[TradeCreated, LimitReached]


def effective_tier(user: User, now: Optional[datetime] = None) -> SubscriptionTier:
    """Tier that governs the user's limits right now.

    Canceled and past-due subscriptions keep PRO access until
    ``subscription_ends_at``.

    Args:
        user: User record
        now: Reference time, defaults to now

    Returns:
        SubscriptionTier.PRO or SubscriptionTier.FREE
    """
    if user.subscription_tier == SubscriptionTier.PRO.value:
        return SubscriptionTier.PRO
    now = now or datetime.utcnow()
    if (
        user.subscription_status in GRACE_PERIOD_STATUSES
        and user.subscription_ends_at is not None
        and user.subscription_ends_at > now
    ):
        return SubscriptionTier.PRO
    return SubscriptionTier.FREE


class TradeLimitGuard:
    """Gatekeeper for trade creation under the free-tier cap.

    Attributes:
        db: SQLAlchemy database session
        trade_repo: Trade repository
        limit: Lifetime trade cap for FREE users
    """

    def __init__(self, db: Session, limit: Optional[int] = None):
        """Initialize the guard.

        Args:
            db: SQLAlchemy database session
            limit: Trade cap override, defaults to ``settings.free_trade_limit``
        """
        self.db = db
        self.trade_repo = TradeRepository(db)
        self.limit = settings.free_trade_limit if limit is None else limit

    def create_within_limit(
        self, user: User, build: Callable[[Session], Trade]
    ) -> CreateOutcome:
        """Count the user's trades and run ``build`` in one serializable transaction.

        PRO users (including the grace period) skip the count entirely.
        ``build`` may raise; the transaction is then rolled back and the
        error propagates.

        Args:
            user: Caller's user record
            build: Callable that validates and inserts the trade

        Returns:
            TradeCreated on commit, LimitReached on rollback
        """
        unlimited = effective_tier(user) == SubscriptionTier.PRO

        def work(db: Session) -> CreateOutcome:
            if not unlimited:
                used = self.trade_repo.count_trades_for_user(user.id)
                if used >= self.limit:
                    return LimitReached(trades_used=used)
            return TradeCreated(trade=build(db))

        outcome = run_in_transaction(
            self.db,
            work,
            isolation_level=SERIALIZABLE,
            should_commit=lambda result: isinstance(result, TradeCreated),
        )
        if isinstance(outcome, LimitReached):
            logger.warning(
                f"User {user.id} hit the free trade limit "
                f"({outcome.trades_used}/{self.limit})"
            )
        return outcome

    def usage(self, user: User) -> TradeUsageData:
        """Lifetime trade usage for the user.

        ``trade_limit`` and ``remaining`` are None when access is unlimited.
        """
        tier = effective_tier(user)
        used = self.trade_repo.count_trades_for_user(user.id)
        if tier == SubscriptionTier.PRO:
            return TradeUsageData(
                trades_used=used,
                trade_limit=None,
                tier=tier.value,
                remaining=None,
                limit_reached=False,
            )
        return TradeUsageData(
            trades_used=used,
            trade_limit=self.limit,
            tier=tier.value,
            remaining=max(0, self.limit - used),
            limit_reached=used >= self.limit,
        )
