"""
TraderBot – Application Port: Event Publisher
===============================================
Interfaz para publicar eventos a sistemas externos.

Los servicios publican eventos; la infraestructura decide CÓMO
entregarlos (bus en memoria, WebSocket, message queue...).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Any

from traderbot.domain.events.domain_events import DomainEvent


class IEventPublisher(ABC):
    """Interfaz para publicar eventos del sistema."""

    @abstractmethod
    async def publish(
        self,
        topic: str,
        data: Dict[str, Any],
    ) -> None:
        """
        Publica un evento a un tópico.

        Args:
            topic: Nombre del tópico (e.g. "position_opened", "bot_status")
            data: Datos del evento (serializable a JSON)
        """
        pass

    async def publish_event(self, event: DomainEvent) -> None:
        """Publica un DomainEvent en su tópico."""
        await self.publish(event.topic, event.to_dict())
