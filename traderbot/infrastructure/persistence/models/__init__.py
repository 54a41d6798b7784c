"""
Infrastructure Models Package.

Modelos ORM de SQLAlchemy. Representan la estructura de la base de
datos, NO las entidades de dominio.
"""

from traderbot.infrastructure.persistence.models.candle import CandleModel
from traderbot.infrastructure.persistence.models.position import PositionModel

__all__ = [
    "CandleModel",
    "PositionModel",
]
