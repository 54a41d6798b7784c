"""
Position Repository Implementation.

Implementación del repositorio de posiciones con SQLAlchemy + MySQL async.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import desc, select

from traderbot.domain.entities.position import Position
from traderbot.domain.repositories.position_repository import IPositionRepository
from traderbot.infrastructure.persistence.database import DatabaseManager
from traderbot.infrastructure.persistence.mappers.position_mapper import PositionMapper
from traderbot.infrastructure.persistence.models import PositionModel
from traderbot.shared.logging.logger import get_logger

logger = get_logger("position_repository")


class PositionRepositoryImpl(IPositionRepository):

    def __init__(self, db: DatabaseManager):
        self._db = db
        self._mapper = PositionMapper()

    async def get_open_by_symbol(self, symbol: str) -> Optional[Position]:
        async with self._db.session() as session:
            result = await session.execute(
                select(PositionModel)
                .where(PositionModel.symbol == symbol, PositionModel.is_open.is_(True))
                .order_by(desc(PositionModel.opened_at))
                .limit(1)
            )
            model = result.scalar_one_or_none()
            return self._mapper.to_entity(model) if model is not None else None

    async def save(self, position: Position) -> Position:
        async with self._db.session() as session:
            if position.id is None:
                model = PositionModel(**self._mapper.to_model(position))
                session.add(model)
            else:
                model = await session.get(PositionModel, position.id)
                if model is None:
                    raise LookupError(f"Posición id={position.id} no existe")
                self._mapper.apply(model, position)
            await session.commit()

            position.id = model.id
            logger.debug("Posición persistida: id=%s symbol=%s", model.id, model.symbol)
            return position

    async def list_all(self, symbol: Optional[str] = None, limit: int = 100) -> List[Position]:
        query = select(PositionModel)
        if symbol:
            query = query.where(PositionModel.symbol == symbol)
        query = query.order_by(desc(PositionModel.opened_at), desc(PositionModel.id)).limit(limit)

        async with self._db.session() as session:
            result = await session.execute(query)
            return [self._mapper.to_entity(m) for m in result.scalars().all()]
