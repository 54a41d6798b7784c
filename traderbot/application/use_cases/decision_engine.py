"""
TraderBot – Use Case: DecisionEngine
======================================
Máquina de estados de la estrategia martingala para UN símbolo.

═══════════════════════════════════════════════════════════════
                  ESTADOS (por símbolo)
═══════════════════════════════════════════════════════════════

        ┌──────────── cierre (TP / SL) ────────────┐
        ▼                                          │
     ┌──────┐   BUY con confianza > umbral    ┌─────────┐
     │ FLAT │ ──────── y tamaño > 0 ────────▸ │ HOLDING │ ──┐ sin umbral:
     └──────┘                                 └─────────┘ ◂─┘ mark + save
        │ ▲
        └─┘ gate de riesgo cerrado / señal no califica / paso al tope

El estado NO se guarda en el motor: se deriva de la posición abierta
en el ledger, que se relee al inicio de cada ciclo.

ORDEN DE EFECTOS (por qué el ledger va DESPUÉS del exchange):
  1. decisión pura (RiskGate + señal)
  2. ¿stop solicitado? → ciclo abandonado, nada irreversible ocurrió
  3. execute_trade()          ← irreversible
  4. ledger.save()            ← solo tras confirmación
  5. MartingaleState          ← solo tras persistir
  6. evento de dominio

  Si 3 falla: ni el ledger ni la martingala se tocan y el error sube.
  Si 4 falla: la orden YA existe en el exchange → LedgerConsistencyError,
  log CRITICAL con el order_id. Nunca se silencia.

MARTINGALA AL CERRAR:
  profit% > 0                                  → step = 0
  should_apply_martingale(step, profit_loss)   → step + 1
  (el step "siguiente" es distinto del grabado en la posición cerrada)
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional

from traderbot.application.ports.event_publisher import IEventPublisher
from traderbot.application.ports.market_analyzer import IMarketAnalyzer
from traderbot.application.ports.trade_executor import ITradeExecutor
from traderbot.application.services.balance_query import BalanceQuery
from traderbot.application.services.position_ledger import PositionLedger
from traderbot.domain.entities.candle import Candle
from traderbot.domain.entities.martingale_state import MartingaleState
from traderbot.domain.entities.position import Position
from traderbot.domain.events.domain_events import PositionClosed, PositionOpened
from traderbot.domain.exceptions.domain_errors import LedgerConsistencyError
from traderbot.domain.repositories.candle_repository import ICandleRepository
from traderbot.domain.services.risk_gate import RiskGate
from traderbot.domain.value_objects.analysis_signal import SignalKind
from traderbot.domain.value_objects.symbol import Symbol
from traderbot.domain.value_objects.timeframe import TimeFrame
from traderbot.domain.value_objects.trade_intent import OrderSide, TradeIntent
from traderbot.shared.logging.logger import get_logger

logger = get_logger("decision_engine")


class DecisionAction(str, Enum):
    NONE = "NONE"            # flat y sin señal que califique
    OPENED = "OPENED"
    HELD = "HELD"
    CLOSED = "CLOSED"
    SKIPPED = "SKIPPED"      # gate de riesgo cerrado
    ABANDONED = "ABANDONED"  # stop solicitado antes de enviar la orden


@dataclass
class DecisionResult:
    """Resultado de un ciclo de decisión."""
    action: DecisionAction
    position: Optional[Position] = None
    reason: str = ""
    order_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "action": self.action.value,
            "reason": self.reason,
            "order_id": self.order_id,
            "position": self.position.to_dict() if self.position else None,
        }


class DecisionEngine:
    """
    Caso de uso: decidir abrir / mantener / cerrar ante cada vela.

    Dependencias inyectadas (todas abstractas salvo RiskGate, que es
    dominio puro). Un ciclo a la vez por símbolo: lo garantiza el
    CandlePipeline, no el motor.
    """

    def __init__(
        self,
        symbol: str,
        risk_gate: RiskGate,
        ledger: PositionLedger,
        balance_query: BalanceQuery,
        analyzer: IMarketAnalyzer,
        executor: ITradeExecutor,
        candle_repository: ICandleRepository,
        event_publisher: Optional[IEventPublisher] = None,
        confidence_threshold: Decimal = Decimal("0.7"),
        analysis_window: int = 20,
        timeframe: str = "5m",
        initial_capital: Decimal = Decimal("100"),
    ) -> None:
        self._symbol = str(Symbol.parse(symbol))
        self._balance_asset = Symbol.parse(symbol).quote
        self._risk = risk_gate
        self._ledger = ledger
        self._balances = balance_query
        self._analyzer = analyzer
        self._executor = executor
        self._candles = candle_repository
        self._events = event_publisher
        self._confidence_threshold = Decimal(str(confidence_threshold))
        self._analysis_window = max(1, analysis_window)
        self._timeframe = TimeFrame.parse(timeframe)
        self._state = MartingaleState(
            max_steps=risk_gate.config.max_martingale_steps,
            equity_peak=Decimal(str(initial_capital)),
        )
        self._restored = False

    @property
    def symbol(self) -> str:
        return self._symbol

    @property
    def martingale_state(self) -> MartingaleState:
        return self._state

    # ════════════════════════════════════════════════════════════════
    #  CICLO
    # ════════════════════════════════════════════════════════════════

    async def process(
        self,
        candle: Candle,
        stop_event: Optional[asyncio.Event] = None,
    ) -> DecisionResult:
        """
        Ejecuta un ciclo completo para la vela.

        Args:
            candle: Vela ya validada y persistida por el pipeline.
            stop_event: Si está activo antes de enviar una orden, el
                ciclo se abandona sin efectos.

        Raises:
            TradeExecutionError (u otra excepción del exchange): sin
                cambios en ledger ni martingala.
            LedgerConsistencyError: orden confirmada pero no registrada.
        """
        candle.validate()

        position = await self._ledger.get_open_position(self._symbol)

        if not self._restored:
            # Tras un reinicio, el paso vigente es el de la posición abierta
            if position is not None:
                self._state.restore(position.martingale_step)
                logger.info(
                    "Paso de martingala restaurado desde posición abierta: %d",
                    self._state.step,
                )
            self._restored = True

        if position is None:
            return await self._evaluate_entry(candle, stop_event)
        return await self._evaluate_exit(position, candle, stop_event)

    # ─── FLAT ───────────────────────────────────────────────────────

    async def _evaluate_entry(
        self,
        candle: Candle,
        stop_event: Optional[asyncio.Event],
    ) -> DecisionResult:
        balance = await self._balances.get_balance(self._balance_asset)
        self._state.observe_equity(balance)
        drawdown = self._risk.current_drawdown(self._state.equity_peak, balance)

        if not self._risk.can_open_position(balance, drawdown):
            logger.warning(
                "Gate de riesgo cerrado para %s (balance=%s, drawdown=%s) – ciclo omitido",
                self._symbol, balance, drawdown,
            )
            return DecisionResult(
                DecisionAction.SKIPPED,
                reason=f"risk gate closed: balance={balance} drawdown={drawdown}",
            )

        recent = await self._recent_candles(candle)
        signal = await self._analyzer.analyze(recent)

        if signal.kind is not SignalKind.BUY or signal.confidence <= self._confidence_threshold:
            logger.debug(
                "Señal no califica: %s conf=%s (umbral %s)",
                signal.kind.value, signal.confidence, self._confidence_threshold,
            )
            return DecisionResult(
                DecisionAction.NONE,
                reason=f"signal {signal.kind.value} conf={signal.confidence}",
            )

        size = self._risk.calculate_position_size(balance, self._state.step)
        if size <= 0:
            logger.warning(
                "Paso de martingala %d en el tope (%d) – no se abre",
                self._state.step, self._state.max_steps,
            )
            return DecisionResult(DecisionAction.NONE, reason="martingale step cap reached")

        intent = TradeIntent(
            symbol=self._symbol,
            side=OrderSide.BUY,
            quantity=size / candle.close,
        )

        if stop_event is not None and stop_event.is_set():
            logger.info("Stop solicitado – apertura abandonada para %s", self._symbol)
            return DecisionResult(DecisionAction.ABANDONED, reason="stop requested before open")

        order_id = await self._executor.execute_trade(
            intent.symbol, intent.side, intent.quantity, intent.limit_price,
        )

        position = Position(
            symbol=self._symbol,
            quantity=intent.quantity,
            entry_price=candle.close,
            side=intent.side,
            martingale_step=self._state.step,
            opened_at=candle.timestamp,
            open_order_id=order_id,
        )
        position = await self._persist_after_trade(position, order_id)

        logger.info(
            "Posición ABIERTA %s %s qty=%s @ %s (paso %d, orden %s)",
            position.side.value, self._symbol, position.quantity,
            position.entry_price, position.martingale_step, order_id,
        )
        if self._events is not None:
            await self._events.publish_event(PositionOpened(
                position_id=position.id or 0,
                symbol=self._symbol,
                side=position.side.value,
                quantity=str(position.quantity),
                entry_price=str(position.entry_price),
                martingale_step=position.martingale_step,
                order_id=order_id,
            ))
        return DecisionResult(DecisionAction.OPENED, position=position, order_id=order_id)

    # ─── HOLDING ────────────────────────────────────────────────────

    async def _evaluate_exit(
        self,
        position: Position,
        candle: Candle,
        stop_event: Optional[asyncio.Event],
    ) -> DecisionResult:
        price = candle.close
        profit_percent = position.profit_percent(price)

        if profit_percent is None:
            logger.warning("Posición id=%s con nocional 0 – tick ignorado", position.id)
            return DecisionResult(DecisionAction.NONE, position=position, reason="zero notional")

        profit_loss = position.profit_loss(price)

        if self._risk.hits_take_profit(profit_percent):
            reason = "TAKE_PROFIT"
        elif self._risk.hits_stop_loss(profit_percent):
            reason = "STOP_LOSS"
        else:
            position.mark(price)
            position = await self._ledger.save(position)
            return DecisionResult(
                DecisionAction.HELD,
                position=position,
                reason=f"pnl%={profit_percent:.4f}",
            )

        if stop_event is not None and stop_event.is_set():
            logger.info("Stop solicitado – cierre abandonado para %s", self._symbol)
            return DecisionResult(
                DecisionAction.ABANDONED, position=position, reason="stop requested before close",
            )

        order_id = await self._executor.execute_trade(
            position.symbol, position.side.opposite, position.quantity,
        )

        closed = position.copy()
        closed.close(price, order_id=order_id, closed_at=candle.timestamp)
        closed = await self._persist_after_trade(closed, order_id)

        if profit_percent > 0:
            self._state.reset()
        elif self._risk.should_apply_martingale(self._state.step, profit_loss):
            self._state.advance()

        logger.info(
            "Posición CERRADA %s (%s) pnl=%s pnl%%=%.4f → próximo paso %d (orden %s)",
            self._symbol, reason, closed.realized_pnl, profit_percent,
            self._state.step, order_id,
        )
        if self._events is not None:
            await self._events.publish_event(PositionClosed(
                position_id=closed.id or 0,
                symbol=self._symbol,
                reason=reason,
                close_price=str(price),
                realized_pnl=str(closed.realized_pnl),
                profit_percent=str(profit_percent),
                next_step=self._state.step,
            ))
        return DecisionResult(DecisionAction.CLOSED, position=closed, reason=reason, order_id=order_id)

    # ════════════════════════════════════════════════════════════════
    #  HELPERS
    # ════════════════════════════════════════════════════════════════

    async def _recent_candles(self, candle: Candle) -> list[Candle]:
        """Ventana de análisis: las últimas `analysis_window` velas hasta la actual."""
        span = timedelta(seconds=self._timeframe.seconds * (self._analysis_window - 1))
        candles = await self._candles.get_range(self._symbol, candle.timestamp - span, candle.timestamp)
        if not candles or candles[-1].timestamp != candle.timestamp:
            candles = [*candles, candle]
        return candles

    async def _persist_after_trade(self, position: Position, order_id: str) -> Position:
        try:
            return await self._ledger.save(position)
        except Exception as exc:
            logger.critical(
                "Orden %s CONFIRMADA pero la posición de %s no se pudo registrar: %s",
                order_id, position.symbol, exc,
            )
            if isinstance(exc, LedgerConsistencyError):
                raise
            raise LedgerConsistencyError(
                f"Orden {order_id} confirmada pero no registrada: {exc}",
                symbol=position.symbol,
                order_id=order_id,
            ) from exc
