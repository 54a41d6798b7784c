"""
TraderBot – Application Service: PositionLedger
=================================================
Dueño de la posición abierta/cerrada de cada símbolo.

El repositorio es la ÚNICA fuente de verdad: el motor relee la
posición al inicio de cada ciclo y nunca guarda una copia propia
entre ciclos.

INVARIANTE:
  A lo sumo una posición abierta por símbolo. Intentar guardar una
  segunda posición abierta distinta → LedgerConsistencyError.
"""

from __future__ import annotations

from typing import List, Optional

from traderbot.domain.entities.position import Position
from traderbot.domain.exceptions.domain_errors import LedgerConsistencyError
from traderbot.domain.repositories.position_repository import IPositionRepository
from traderbot.shared.logging.logger import get_logger

logger = get_logger("position_ledger")


class PositionLedger:

    def __init__(self, repository: IPositionRepository) -> None:
        self._repo = repository

    async def get_open_position(self, symbol: str) -> Optional[Position]:
        return await self._repo.get_open_by_symbol(symbol)

    async def save(self, position: Position) -> Position:
        """
        Inserta (asigna id) o actualiza la posición.

        Raises:
            LedgerConsistencyError si ya existe OTRA posición abierta
            para el mismo símbolo.
        """
        if position.is_open:
            current = await self._repo.get_open_by_symbol(position.symbol)
            if current is not None and (position.id is None or current.id != position.id):
                logger.critical(
                    "Segunda posición abierta para %s rechazada (abierta id=%s)",
                    position.symbol, current.id,
                )
                raise LedgerConsistencyError(
                    f"Ya existe una posición abierta para {position.symbol} (id={current.id})",
                    symbol=position.symbol,
                    order_id=position.open_order_id,
                )

        saved = await self._repo.save(position)
        logger.debug("Posición guardada: %r", saved)
        return saved

    async def list_all(self, symbol: Optional[str] = None, limit: int = 100) -> List[Position]:
        """Historial (más recientes primero)."""
        return await self._repo.list_all(symbol=symbol, limit=limit)
