"""
TraderBot – Event Bus (asyncio.Queue fan-out)
===============================================
Implementación de IEventPublisher en memoria.

Arquitectura:
  ┌────────────────┐         ┌───────────┐
  │ DecisionEngine │──evt──▸ │ Event Bus │──▸ Consumer 1 (WS / logs)
  │ BotLifecycle   │         │ (fan-out) │──▸ Consumer 2 ...
  └────────────────┘         └───────────┘

- Cada consumidor tiene su propia asyncio.Queue acotada.
- Cola llena → se descarta el evento MÁS ANTIGUO (drop-oldest): el
  productor (el ciclo de decisión) NUNCA se bloquea por un consumidor lento.
- Los handlers registrados se invocan en línea; un handler que falla
  se loguea y no afecta al resto.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional

from traderbot.application.ports.event_publisher import IEventPublisher
from traderbot.shared.logging.logger import get_logger

logger = get_logger("event_bus")

Handler = Callable[[Dict[str, Any]], Awaitable[None]]


class EventBus(IEventPublisher):
    """Fan-out event bus basado en asyncio.Queue."""

    def __init__(self, max_queue_size: int = 10_000) -> None:
        self._max_queue_size = max_queue_size
        # topic → lista de (queue, nombre_consumidor)
        self._subscribers: Dict[str, List[tuple[asyncio.Queue, str]]] = {}
        self._handlers: Dict[str, List[Handler]] = {}
        self._lock = asyncio.Lock()

    async def subscribe(self, topic: str, consumer_name: str) -> asyncio.Queue:
        """
        Registrar un consumidor en un tópico.
        Retorna la Queue exclusiva de ese consumidor.
        """
        async with self._lock:
            queue: asyncio.Queue = asyncio.Queue(maxsize=self._max_queue_size)
            self._subscribers.setdefault(topic, []).append((queue, consumer_name))
            logger.info(
                "Consumidor '%s' suscrito a tópico '%s' (max_queue=%d)",
                consumer_name,
                topic,
                self._max_queue_size,
            )
            return queue

    def register_handler(self, topic: str, handler: Handler) -> None:
        """Handler async invocado en cada publicación del tópico."""
        self._handlers.setdefault(topic, []).append(handler)
        logger.info("Handler registrado para tópico '%s'", topic)

    async def publish(self, topic: str, data: Dict[str, Any]) -> None:
        """
        Publicar un evento a todos los suscriptores de un tópico.
        Política drop-oldest si la cola está llena → el productor NUNCA se bloquea.
        """
        for handler in self._handlers.get(topic, []):
            try:
                await handler(data)
            except Exception as exc:
                logger.error("Error en handler de '%s': %s", topic, exc)

        for queue, consumer_name in self._subscribers.get(topic, []):
            if queue.full():
                try:
                    queue.get_nowait()
                    logger.warning(
                        "Cola llena para '%s' en tópico '%s' – evento antiguo descartado",
                        consumer_name,
                        topic,
                    )
                except asyncio.QueueEmpty:
                    pass
            try:
                queue.put_nowait(data)
            except asyncio.QueueFull:
                logger.error(
                    "No se pudo encolar evento para '%s' (tópico '%s')",
                    consumer_name,
                    topic,
                )

    async def unsubscribe_all(self, topic: Optional[str] = None) -> None:
        """Desuscribir todos los consumidores (cleanup al shutdown)."""
        async with self._lock:
            if topic:
                self._subscribers.pop(topic, None)
                self._handlers.pop(topic, None)
                logger.info("Todos los suscriptores del tópico '%s' eliminados", topic)
            else:
                self._subscribers.clear()
                self._handlers.clear()
                logger.info("Todos los suscriptores eliminados (shutdown)")

    @property
    def subscriber_count(self) -> int:
        return sum(len(subs) for subs in self._subscribers.values())
