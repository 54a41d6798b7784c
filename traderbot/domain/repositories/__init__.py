"""Domain repository interfaces (ABCs)."""
from traderbot.domain.repositories.candle_repository import ICandleRepository
from traderbot.domain.repositories.position_repository import IPositionRepository

__all__ = ["ICandleRepository", "IPositionRepository"]
