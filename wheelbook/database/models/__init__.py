"""Database models for the Wheelbook engine.

Models:
    User: Account owning trades, positions, and wheels
    Wheel: Strategy cycle grouping trades on one ticker
    Trade: Individual option trades (puts and calls)
    Position: Stock positions created by PUT assignment
"""

from .position import Position
from .trade import Trade
from .user import User
from .wheel import Wheel

__all__ = [
    "User",
    "Wheel",
    "Trade",
    "Position",
]
