"""Persistence: SQLAlchemy async (MySQL) and in-memory stores."""
