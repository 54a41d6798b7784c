"""
TraderBot – Application Service: BotLifecycle
===============================================
Máquina de estados del bot: dueña ÚNICA de BotStatus.

  Stopped ──start()──▸ Starting ──subscribe ok──▸ Running
                          │                          │
                          └──subscribe falla──▸ Error ◂── feed cae
  Running | Error ──stop()──▸ Stopped

- Una sola transición en vuelo (asyncio.Lock). Si otra start()/stop()
  llega mientras tanto → BUSY, sin esperar.
- start() con el bot corriendo / stop() con el bot detenido son no-ops
  con warning, NO excepciones.
- El fallo al suscribirse deja el estado en Error y se propaga.
- Un carril del pipeline detenido por LedgerConsistencyError pasa el bot
  a Error; solo stop() + start() lo reanuda.

El pump es la única tarea productora:
    async for candle in stream: await pipeline.submit(candle)
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Optional

from traderbot.application.ports.event_publisher import IEventPublisher
from traderbot.application.ports.market_data_feed import IMarketDataFeed
from traderbot.application.services.candle_pipeline import CandlePipeline
from traderbot.domain.entities.candle import Candle
from traderbot.domain.events.domain_events import BotStatusChanged
from traderbot.domain.value_objects.bot_status import BotStatus
from traderbot.shared.logging.logger import get_logger

logger = get_logger("bot_lifecycle")


class LifecycleOutcome(str, Enum):
    STARTED = "STARTED"
    STOPPED = "STOPPED"
    ALREADY_RUNNING = "ALREADY_RUNNING"
    ALREADY_STOPPED = "ALREADY_STOPPED"
    BUSY = "BUSY"


@dataclass(frozen=True)
class LifecycleResult:
    outcome: LifecycleOutcome
    status: BotStatus
    message: str = ""

    @property
    def changed(self) -> bool:
        """True si hubo transición real de estado."""
        return self.outcome in (LifecycleOutcome.STARTED, LifecycleOutcome.STOPPED)

    def to_dict(self) -> dict:
        return {
            "outcome": self.outcome.value,
            "status": self.status.value,
            "message": self.message,
        }


class BotLifecycle:

    def __init__(
        self,
        feed: IMarketDataFeed,
        pipeline: CandlePipeline,
        symbol: str,
        timeframe: str,
        event_publisher: Optional[IEventPublisher] = None,
    ) -> None:
        self._feed = feed
        self._pipeline = pipeline
        self._symbol = symbol
        self._timeframe = timeframe
        self._events = event_publisher
        self._status = BotStatus.STOPPED
        self._lock = asyncio.Lock()
        self._pump_task: Optional[asyncio.Task] = None
        self._stopping = False
        self._last_error: Optional[str] = None
        pipeline.set_halt_handler(self._on_lane_halted)

    @property
    def status(self) -> BotStatus:
        return self._status

    def snapshot(self) -> dict:
        return {
            "status": self._status.value,
            "symbol": self._symbol,
            "timeframe": self._timeframe,
            "last_error": self._last_error,
            "pipeline": self._pipeline.snapshot(),
        }

    # ════════════════════════════════════════════════════════════════
    #  TRANSICIONES
    # ════════════════════════════════════════════════════════════════

    async def start(self) -> LifecycleResult:
        """
        Arranca feed + pipeline.

        Raises:
            La excepción de subscribe() (estado queda en Error).
        """
        if self._lock.locked():
            logger.warning("start() ignorado: hay una transición en curso")
            return LifecycleResult(LifecycleOutcome.BUSY, self._status, "transition in progress")

        async with self._lock:
            if self._status is BotStatus.RUNNING:
                logger.warning("start() ignorado: el bot ya está corriendo")
                return LifecycleResult(
                    LifecycleOutcome.ALREADY_RUNNING, self._status, "bot already running",
                )

            if self._status is BotStatus.ERROR:
                # Restos de una sesión caída
                await self._teardown()

            await self._set_status(BotStatus.STARTING)
            try:
                stream = await self._feed.subscribe(self._symbol, self._timeframe)
            except Exception as exc:
                logger.error("Suscripción al feed falló para %s: %s", self._symbol, exc)
                await self._set_status(BotStatus.ERROR, str(exc))
                raise

            await self._pipeline.start()
            self._stopping = False
            # RUNNING antes del pump: un fallo temprano del stream debe ganar
            await self._set_status(BotStatus.RUNNING)
            self._pump_task = asyncio.create_task(
                self._pump(stream), name=f"feed-pump-{self._symbol}",
            )
            logger.info("Bot iniciado: %s %s", self._symbol, self._timeframe)
            return LifecycleResult(LifecycleOutcome.STARTED, self._status, "bot started")

    async def stop(self) -> LifecycleResult:
        """Detiene feed + pipeline. El ciclo en vuelo termina."""
        if self._lock.locked():
            logger.warning("stop() ignorado: hay una transición en curso")
            return LifecycleResult(LifecycleOutcome.BUSY, self._status, "transition in progress")

        async with self._lock:
            if self._status is BotStatus.STOPPED:
                logger.warning("stop() ignorado: el bot ya está detenido")
                return LifecycleResult(
                    LifecycleOutcome.ALREADY_STOPPED, self._status, "bot already stopped",
                )

            await self._teardown()
            await self._set_status(BotStatus.STOPPED)
            logger.info("Bot detenido: %s", self._symbol)
            return LifecycleResult(LifecycleOutcome.STOPPED, self._status, "bot stopped")

    # ════════════════════════════════════════════════════════════════
    #  INTERNOS
    # ════════════════════════════════════════════════════════════════

    async def _teardown(self) -> None:
        self._stopping = True
        try:
            await self._feed.unsubscribe()
        except Exception as exc:
            logger.error("Error al desuscribir el feed de %s: %s", self._symbol, exc)

        if self._pump_task is not None:
            if not self._pump_task.done():
                self._pump_task.cancel()
            try:
                await self._pump_task
            except asyncio.CancelledError:
                pass
            self._pump_task = None

        await self._pipeline.stop()

    async def _pump(self, stream: AsyncIterator[Candle]) -> None:
        try:
            async for candle in stream:
                await self._pipeline.submit(candle)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            if not self._stopping:
                logger.error("Stream del feed cayó para %s: %s", self._symbol, exc, exc_info=True)
                await self._set_status(BotStatus.ERROR, str(exc))
            return

        if not self._stopping:
            logger.error("Stream del feed terminó inesperadamente para %s", self._symbol)
            await self._set_status(BotStatus.ERROR, "feed stream ended")

    async def _on_lane_halted(self, symbol: str, error: str) -> None:
        if self._stopping:
            return
        logger.critical("Trading detenido para %s por ledger incoherente: %s", symbol, error)
        await self._set_status(BotStatus.ERROR, f"ledger inconsistency on {symbol}: {error}")

    async def _set_status(self, status: BotStatus, message: str = "") -> None:
        previous = self._status
        self._status = status
        if status is BotStatus.ERROR:
            self._last_error = message
        elif status is BotStatus.RUNNING:
            self._last_error = None
        logger.debug("BotStatus %s → %s", previous.value, status.value)
        if self._events is not None:
            await self._events.publish_event(BotStatusChanged(
                previous=previous.value,
                current=status.value,
                message=message,
            ))
