"""Domain entities - Core business objects."""

from traderbot.domain.entities.candle import Candle
from traderbot.domain.entities.martingale_state import MartingaleState
from traderbot.domain.entities.position import Position

__all__ = ["Candle", "MartingaleState", "Position"]
