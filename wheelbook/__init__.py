"""Wheelbook: trade lifecycle and position P&L tracking for the options wheel."""

__version__ = "1.0.0"
