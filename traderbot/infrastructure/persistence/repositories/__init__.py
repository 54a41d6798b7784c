"""Repository implementations."""

from traderbot.infrastructure.persistence.repositories.memory_repository import (
    InMemoryCandleRepository,
    InMemoryPositionRepository,
)

__all__ = [
    "InMemoryCandleRepository",
    "InMemoryPositionRepository",
]
