"""Trade status state machine.

A trade starts OPEN and moves to exactly one terminal status. Terminal
statuses have no outgoing transitions.
"""

from datetime import datetime
from typing import Optional

from wheelbook.exceptions import InvalidTransitionError
from wheelbook.models.enums import TradeStatus

# Valid status transitions for a trade
VALID_TRANSITIONS: dict[TradeStatus, frozenset[TradeStatus]] = {
    TradeStatus.OPEN: frozenset(
        {TradeStatus.CLOSED, TradeStatus.EXPIRED, TradeStatus.ASSIGNED}
    ),
    TradeStatus.CLOSED: frozenset(),
    TradeStatus.EXPIRED: frozenset(),
    TradeStatus.ASSIGNED: frozenset(),
}


def get_valid_targets(current: TradeStatus) -> list[TradeStatus]:
    """Get the statuses reachable from ``current``, in declaration order."""
    allowed = VALID_TRANSITIONS.get(TradeStatus(current), frozenset())
    return [s for s in TradeStatus if s in allowed]


def can_transition(current: TradeStatus, target: TradeStatus) -> bool:
    """Check if a transition is valid from the current status."""
    return TradeStatus(target) in VALID_TRANSITIONS.get(TradeStatus(current), frozenset())


def apply_transition(trade, target: TradeStatus, at: Optional[datetime] = None):
    """
    Move a trade to ``target`` and stamp its close date.

    The trade is left untouched when the transition is not allowed.

    Raises:
        InvalidTransitionError: If the transition is not valid.
    """
    current = TradeStatus(trade.status)
    target = TradeStatus(target)
    if not can_transition(current, target):
        raise InvalidTransitionError(current.value, target.value)
    trade.status = target.value
    trade.close_date = at or datetime.utcnow()
    return trade
