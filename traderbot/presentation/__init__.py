"""Presentation layer - FastAPI control surface."""
