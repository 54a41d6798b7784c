"""
TraderBot – Application Service: CandlePipeline
=================================================
Entrega ordenada y serializada de velas al motor de decisión.

Arquitectura:
  ┌──────┐  submit()  ┌──────────────────────────┐   worker   ┌────────────────┐
  │ Feed │──────────▸ │ PriorityQueue[symbol]    │──────────▸ │ DecisionEngine │
  │ pump │ (espera si │ (ts, seq, candle)        │ (1 ciclo   │ .process()     │
  └──────┘  está llena)└──────────────────────────┘  a la vez) └────────────────┘

GARANTÍAS:
- UN worker por símbolo → a lo sumo un ciclo de decisión en vuelo.
- El worker siempre toma la vela MÁS ANTIGUA encolada.
- Velas con timestamp ≤ al último procesado se descartan (duplicadas o
  atrasadas) → orden de procesamiento no decreciente.
- El almacén de velas es idempotente en (symbol, timestamp): la primera
  escritura gana.
- Cola acotada: submit() espera si está llena (contrapresión hacia el
  feed, sin descartes silenciosos).
- Un ciclo que falla se loguea y se publica como `cycle_failed`; el
  worker sigue con la siguiente vela.
- LedgerConsistencyError detiene el carril del símbolo (orden en el
  exchange que el ledger no refleja): se descartan las velas encoladas,
  submit() devuelve False y se avisa al halt handler. El carril sigue
  parado hasta el siguiente start().

STOP:
  Se marca el stop event. El ciclo en vuelo termina (una orden ya
  enviada nunca se aborta), no arranca ninguno nuevo y las velas
  encoladas se descartan.
"""

from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Awaitable, Callable, Dict, Optional

from traderbot.application.ports.event_publisher import IEventPublisher
from traderbot.domain.entities.candle import Candle
from traderbot.domain.events.domain_events import CycleFailed
from traderbot.domain.exceptions.domain_errors import LedgerConsistencyError, ValidationError
from traderbot.domain.repositories.candle_repository import ICandleRepository
from traderbot.shared.logging.logger import get_logger

if TYPE_CHECKING:
    from traderbot.application.use_cases.decision_engine import DecisionEngine

logger = get_logger("candle_pipeline")

HaltHandler = Callable[[str, str], Awaitable[None]]


@dataclass
class _Lane:
    """Cola + worker + contadores de un símbolo."""
    symbol: str
    engine: DecisionEngine
    queue: asyncio.PriorityQueue
    task: Optional[asyncio.Task] = None
    busy: bool = False
    last_timestamp: Optional[datetime] = None
    processed: int = 0
    dropped: int = 0
    failed: int = 0
    last_error: Optional[str] = None
    halted: bool = False


class CandlePipeline:

    def __init__(
        self,
        candle_repository: ICandleRepository,
        event_publisher: Optional[IEventPublisher] = None,
        max_queue_size: int = 1000,
    ) -> None:
        self._candles = candle_repository
        self._events = event_publisher
        self._max_queue_size = max_queue_size
        self._lanes: Dict[str, _Lane] = {}
        self._seq = itertools.count()
        self._stop_event = asyncio.Event()
        self._running = False
        self._halt_handler: Optional[HaltHandler] = None

    @property
    def is_running(self) -> bool:
        return self._running

    def register(self, engine: DecisionEngine) -> None:
        """Asocia un motor a su símbolo (una cola y un worker por símbolo)."""
        if engine.symbol in self._lanes:
            raise ValidationError(
                f"Símbolo ya registrado en el pipeline: {engine.symbol}",
                field="symbol",
                value=engine.symbol,
            )
        self._lanes[engine.symbol] = _Lane(
            symbol=engine.symbol,
            engine=engine,
            queue=asyncio.PriorityQueue(maxsize=self._max_queue_size),
        )

    def set_halt_handler(self, handler: Optional[HaltHandler]) -> None:
        """Callback async (symbol, error_message) invocado cuando un carril se detiene."""
        self._halt_handler = handler

    # ════════════════════════════════════════════════════════════════
    #  PRODUCTOR
    # ════════════════════════════════════════════════════════════════

    async def submit(self, candle: Candle) -> bool:
        """
        Encola una vela. Espera si la cola del símbolo está llena.

        Returns:
            False si la vela se rechazó (inválida, símbolo desconocido o
            carril detenido).
        """
        try:
            candle.validate()
        except ValidationError as exc:
            logger.warning("Vela rechazada: %s", exc.message)
            return False

        lane = self._lanes.get(candle.symbol)
        if lane is None:
            logger.warning("Vela de símbolo no registrado descartada: %s", candle.symbol)
            return False
        if lane.halted:
            return False

        # seq desempata timestamps iguales sin comparar Candles
        await lane.queue.put((candle.timestamp, next(self._seq), candle))
        if lane.halted:
            # El carril se detuvo mientras esperábamos sitio en la cola
            self._discard_queued(lane)
            return False
        return True

    # ════════════════════════════════════════════════════════════════
    #  LIFECYCLE
    # ════════════════════════════════════════════════════════════════

    async def start(self) -> None:
        if self._running:
            return
        self._stop_event = asyncio.Event()
        for lane in self._lanes.values():
            lane.halted = False
            lane.task = asyncio.create_task(
                self._worker(lane), name=f"candle-worker-{lane.symbol}",
            )
        self._running = True
        logger.info("CandlePipeline iniciado (%d símbolos)", len(self._lanes))

    async def stop(self) -> None:
        if not self._running:
            return
        self._stop_event.set()

        tasks = []
        for lane in self._lanes.values():
            if lane.task is None:
                continue
            if not lane.busy:
                # Esperando la cola: se puede cancelar sin cortar un ciclo
                lane.task.cancel()
            tasks.append(lane.task)
        await asyncio.gather(*tasks, return_exceptions=True)

        discarded = 0
        for lane in self._lanes.values():
            lane.task = None
            discarded += self._discard_queued(lane)

        self._running = False
        logger.info("CandlePipeline detenido (%d velas encoladas descartadas)", discarded)

    async def wait_idle(self) -> None:
        """Espera a que todas las velas encoladas hayan sido procesadas."""
        for lane in self._lanes.values():
            await lane.queue.join()

    def snapshot(self) -> dict:
        return {
            symbol: {
                "queued": lane.queue.qsize(),
                "processed": lane.processed,
                "dropped": lane.dropped,
                "failed": lane.failed,
                "busy": lane.busy,
                "last_timestamp": lane.last_timestamp.isoformat() if lane.last_timestamp else None,
                "last_error": lane.last_error,
                "halted": lane.halted,
            }
            for symbol, lane in self._lanes.items()
        }

    # ════════════════════════════════════════════════════════════════
    #  WORKER
    # ════════════════════════════════════════════════════════════════

    async def _worker(self, lane: _Lane) -> None:
        while not self._stop_event.is_set() and not lane.halted:
            _, _, candle = await lane.queue.get()
            try:
                if self._stop_event.is_set():
                    break
                lane.busy = True
                await self._run_cycle(lane, candle)
            finally:
                lane.busy = False
                lane.queue.task_done()

        if lane.halted:
            discarded = self._discard_queued(lane)
            logger.critical(
                "Carril %s detenido (%d velas encoladas descartadas)", lane.symbol, discarded,
            )
            await self._notify_halt(lane)

    async def _run_cycle(self, lane: _Lane, candle: Candle) -> None:
        if lane.last_timestamp is not None and candle.timestamp <= lane.last_timestamp:
            lane.dropped += 1
            logger.warning(
                "Vela duplicada/atrasada descartada: %s %s (último procesado %s)",
                candle.symbol, candle.timestamp.isoformat(), lane.last_timestamp.isoformat(),
            )
            return

        try:
            inserted = await self._candles.save(candle)
            lane.last_timestamp = candle.timestamp
            if not inserted:
                lane.dropped += 1
                logger.warning(
                    "Vela ya almacenada, ciclo omitido: %s %s",
                    candle.symbol, candle.timestamp.isoformat(),
                )
                return

            result = await lane.engine.process(candle, self._stop_event)
            lane.processed += 1

            if self._events is not None:
                await self._events.publish("candle_processed", {
                    "symbol": candle.symbol,
                    "timestamp": candle.timestamp.isoformat(),
                    "close": str(candle.close),
                    "action": result.action.value,
                    "reason": result.reason,
                })
        except LedgerConsistencyError as exc:
            lane.failed += 1
            lane.last_error = str(exc)
            lane.halted = True
            logger.critical(
                "Ledger incoherente para %s @ %s, se detiene el carril: %s",
                candle.symbol, candle.timestamp.isoformat(), exc,
            )
            await self._publish_failure(candle, exc)
        except Exception as exc:
            lane.failed += 1
            lane.last_error = str(exc)
            logger.error(
                "Ciclo fallido para %s @ %s: %s",
                candle.symbol, candle.timestamp.isoformat(), exc,
                exc_info=True,
            )
            await self._publish_failure(candle, exc)

    async def _publish_failure(self, candle: Candle, exc: Exception) -> None:
        if self._events is None:
            return
        try:
            await self._events.publish_event(CycleFailed(
                symbol=candle.symbol,
                candle_timestamp=candle.timestamp.isoformat(),
                error=str(exc),
            ))
        except Exception as publish_exc:
            logger.error("No se pudo publicar cycle_failed de %s: %s", candle.symbol, publish_exc)

    async def _notify_halt(self, lane: _Lane) -> None:
        if self._halt_handler is None:
            return
        try:
            await self._halt_handler(lane.symbol, lane.last_error or "")
        except Exception as exc:
            logger.error("Halt handler falló para %s: %s", lane.symbol, exc)

    @staticmethod
    def _discard_queued(lane: _Lane) -> int:
        count = 0
        while True:
            try:
                lane.queue.get_nowait()
            except asyncio.QueueEmpty:
                return count
            lane.queue.task_done()
            count += 1
