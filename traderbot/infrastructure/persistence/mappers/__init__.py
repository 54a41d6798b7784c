"""Entity ↔ ORM mappers."""
from traderbot.infrastructure.persistence.mappers.candle_mapper import CandleMapper
from traderbot.infrastructure.persistence.mappers.position_mapper import PositionMapper

__all__ = ["CandleMapper", "PositionMapper"]
