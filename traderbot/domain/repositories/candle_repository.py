"""
TraderBot – Domain Repository Interface: Candle
=================================================
Contrato del almacén de velas.

La clave natural de una vela es (symbol, timestamp): guardar dos
veces la misma vela NO debe duplicarla.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from traderbot.domain.entities.candle import Candle


class ICandleRepository(ABC):
    """Interfaz abstracta para repositorio de velas."""

    @abstractmethod
    async def save(self, candle: Candle) -> bool:
        """
        Persiste una vela si no existía.

        Returns:
            True si se insertó, False si ya existía (idempotente).
        """
        pass

    @abstractmethod
    async def get_range(self, symbol: str, start: datetime, end: datetime) -> List[Candle]:
        """Velas con start ≤ timestamp ≤ end, en orden ascendente."""
        pass

    @abstractmethod
    async def get_latest(self, symbol: str, limit: int = 100) -> List[Candle]:
        """Últimas `limit` velas en orden ascendente."""
        pass
