"""
In-Memory Repositories.

Implementaciones en memoria para ejecución sin MySQL (db_enabled=False)
y para tests. Guardan COPIAS: quien lee no comparte instancias con
quien escribió, igual que con una base de datos real.
"""

from __future__ import annotations

import itertools
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from traderbot.domain.entities.candle import Candle
from traderbot.domain.entities.position import Position
from traderbot.domain.repositories.candle_repository import ICandleRepository
from traderbot.domain.repositories.position_repository import IPositionRepository


class InMemoryCandleRepository(ICandleRepository):

    def __init__(self) -> None:
        self._candles: Dict[Tuple[str, datetime], Candle] = {}

    def __len__(self) -> int:
        return len(self._candles)

    async def save(self, candle: Candle) -> bool:
        if candle.key in self._candles:
            return False
        self._candles[candle.key] = candle
        return True

    async def get_range(self, symbol: str, start: datetime, end: datetime) -> List[Candle]:
        return sorted(
            (c for c in self._candles.values()
             if c.symbol == symbol and start <= c.timestamp <= end),
            key=lambda c: c.timestamp,
        )

    async def get_latest(self, symbol: str, limit: int = 100) -> List[Candle]:
        candles = sorted(
            (c for c in self._candles.values() if c.symbol == symbol),
            key=lambda c: c.timestamp,
        )
        return candles[-limit:] if limit > 0 else []


class InMemoryPositionRepository(IPositionRepository):

    def __init__(self) -> None:
        self._positions: Dict[int, Position] = {}
        self._ids = itertools.count(1)

    async def get_open_by_symbol(self, symbol: str) -> Optional[Position]:
        for position in self._positions.values():
            if position.symbol == symbol and position.is_open:
                return position.copy()
        return None

    async def save(self, position: Position) -> Position:
        if position.id is None:
            position.id = next(self._ids)
        elif position.id not in self._positions:
            raise LookupError(f"Posición id={position.id} no existe")
        self._positions[position.id] = position.copy()
        return position

    async def list_all(self, symbol: Optional[str] = None, limit: int = 100) -> List[Position]:
        positions = [
            p.copy() for p in self._positions.values()
            if symbol is None or p.symbol == symbol
        ]
        positions.sort(key=lambda p: (p.opened_at, p.id), reverse=True)
        return positions[:limit]
