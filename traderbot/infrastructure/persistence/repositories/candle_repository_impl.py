"""
Candle Repository Implementation.

Implementación del almacén de velas con SQLAlchemy + MySQL async.
La restricción UNIQUE (symbol, timestamp) resuelve las carreras entre
writers; antes se consulta para evitar el error.
"""

from __future__ import annotations

from datetime import datetime
from typing import List

from sqlalchemy import desc, select
from sqlalchemy.exc import IntegrityError

from traderbot.domain.entities.candle import Candle
from traderbot.domain.repositories.candle_repository import ICandleRepository
from traderbot.infrastructure.persistence.database import DatabaseManager
from traderbot.infrastructure.persistence.mappers.candle_mapper import CandleMapper, to_db_datetime
from traderbot.infrastructure.persistence.models import CandleModel
from traderbot.shared.logging.logger import get_logger

logger = get_logger("candle_repository")


class CandleRepositoryImpl(ICandleRepository):
    """Una sesión por operación: el bot es de larga vida."""

    def __init__(self, db: DatabaseManager):
        self._db = db
        self._mapper = CandleMapper()

    async def save(self, candle: Candle) -> bool:
        async with self._db.session() as session:
            existing = await session.execute(
                select(CandleModel.id).where(
                    CandleModel.symbol == candle.symbol,
                    CandleModel.timestamp == to_db_datetime(candle.timestamp),
                )
            )
            if existing.scalar_one_or_none() is not None:
                return False

            session.add(CandleModel(**self._mapper.to_model(candle)))
            try:
                await session.commit()
            except IntegrityError:
                # Carrera con otro writer: la primera escritura ya ganó
                await session.rollback()
                logger.debug("Vela duplicada por UNIQUE: %s %s", candle.symbol, candle.timestamp)
                return False
            return True

    async def get_range(self, symbol: str, start: datetime, end: datetime) -> List[Candle]:
        async with self._db.session() as session:
            result = await session.execute(
                select(CandleModel)
                .where(
                    CandleModel.symbol == symbol,
                    CandleModel.timestamp >= to_db_datetime(start),
                    CandleModel.timestamp <= to_db_datetime(end),
                )
                .order_by(CandleModel.timestamp)
            )
            return [self._mapper.to_entity(m) for m in result.scalars().all()]

    async def get_latest(self, symbol: str, limit: int = 100) -> List[Candle]:
        async with self._db.session() as session:
            result = await session.execute(
                select(CandleModel)
                .where(CandleModel.symbol == symbol)
                .order_by(desc(CandleModel.timestamp))
                .limit(limit)
            )
            models = result.scalars().all()
            return [self._mapper.to_entity(m) for m in reversed(models)]
