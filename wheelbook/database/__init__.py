"""Database layer: engine, sessions, transactions, and ORM models."""
