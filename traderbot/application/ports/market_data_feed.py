"""
TraderBot – Application Port: Market Data Feed
================================================
Interfaz para recibir velas del exchange.

El feed es un ITERADOR ASÍNCRONO, no un par de handlers de eventos:
quien consume decide el ritmo y la contrapresión llega naturalmente
hasta el socket.

El feed puede entregar duplicados o velas fuera de orden; el pipeline
aguas abajo es quien lo tolera.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncIterator

from traderbot.domain.entities.candle import Candle


class IMarketDataFeed(ABC):
    """
    Interfaz para proveer velas en tiempo real.

    IMPLEMENTACIONES POSIBLES:
    - BitgetCandleFeed (WebSocket real-time)
    - Feed en memoria (tests, replay)
    """

    @abstractmethod
    async def subscribe(self, symbol: str, timeframe: str) -> AsyncIterator[Candle]:
        """
        Abre la suscripción y retorna el stream de velas.

        Raises:
            ExternalServiceError si no se pudo suscribir.
        """
        pass

    @abstractmethod
    async def unsubscribe(self) -> None:
        """Cierra la suscripción; el stream termina limpiamente."""
        pass
