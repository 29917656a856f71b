"""Business logic services for the trade lifecycle engine."""
