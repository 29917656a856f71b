"""Data access layer repositories."""

from wheelbook.repositories.position import PositionRepository
from wheelbook.repositories.trade import TradeRepository
from wheelbook.repositories.user import UserRepository
from wheelbook.repositories.wheel import WheelRepository

__all__ = [
    "PositionRepository",
    "TradeRepository",
    "UserRepository",
    "WheelRepository",
]
