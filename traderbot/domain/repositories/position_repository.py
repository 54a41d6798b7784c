"""
TraderBot – Domain Repository Interface: Position
===================================================
Contrato de persistencia de posiciones.

REGLA DE CLEAN ARCHITECTURE:
- Esta interfaz vive en domain/ (capa interna)
- Las implementaciones viven en infrastructure/ (memoria, MySQL)

INVARIANTE QUE DEBEN RESPETAR LAS IMPLEMENTACIONES:
  A lo sumo UNA posición abierta por símbolo.
  Las posiciones cerradas se conservan como historial.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from traderbot.domain.entities.position import Position


class IPositionRepository(ABC):
    """Interfaz abstracta para repositorio de posiciones."""

    @abstractmethod
    async def get_open_by_symbol(self, symbol: str) -> Optional[Position]:
        """
        Returns:
            La posición abierta del símbolo, o None si no hay.
        """
        pass

    @abstractmethod
    async def save(self, position: Position) -> Position:
        """
        Inserta (id None) o actualiza (id asignado) una posición.

        Returns:
            La posición con id asignado.
        """
        pass

    @abstractmethod
    async def list_all(self, symbol: Optional[str] = None, limit: int = 100) -> List[Position]:
        """Historial, más recientes primero."""
        pass
