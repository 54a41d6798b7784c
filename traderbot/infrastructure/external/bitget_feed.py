"""
Bitget WebSocket Candle Feed.

Adapta el canal público de velas de Bitget (API v2) a IMarketDataFeed.

PROTOCOLO:
  → {"op": "subscribe", "args": [{"instType": "SPOT", "channel": "candle5m", "instId": "BTCUSDT"}]}
  ← {"event": "subscribe", "arg": {...}}                       (ack)
  ← {"action": "snapshot", "arg": {...}, "data": [[ts, o, h, l, c, vol, ...], ...]}
  ← {"action": "update",   "arg": {...}, "data": [[ts, o, h, l, c, vol, ...]]}
  → "ping"  /  ← "pong"                                        (heartbeat)

VELAS CERRADAS:
  Bitget re-emite la vela EN CURSO en cada update con el mismo ts.
  Solo se entrega una vela cuando llega otra con ts mayor: en ese
  momento la anterior está cerrada y sus OHLCV son definitivos.

RECONEXIÓN:
  Backoff exponencial con jitter (base·2^n, tope max_delay). El stream
  sobrevive a la reconexión; el pipeline descarta lo que se re-entregue.
"""

from __future__ import annotations

import asyncio
import json
import random
from datetime import datetime, timezone
from decimal import Decimal
from typing import AsyncIterator, List, Optional, Sequence

import websockets
from websockets.asyncio.client import ClientConnection

from traderbot.application.ports.market_data_feed import IMarketDataFeed
from traderbot.domain.entities.candle import Candle
from traderbot.domain.exceptions.domain_errors import ExternalServiceError, ValidationError
from traderbot.domain.value_objects.timeframe import TimeFrame
from traderbot.shared.config.settings import Settings
from traderbot.shared.logging.logger import get_logger

logger = get_logger("bitget_feed")

# Bitget usa mayúsculas para horas/días en los canales de velas
CHANNELS = {
    TimeFrame.ONE_MINUTE: "candle1m",
    TimeFrame.FIVE_MINUTES: "candle5m",
    TimeFrame.FIFTEEN_MINUTES: "candle15m",
    TimeFrame.THIRTY_MINUTES: "candle30m",
    TimeFrame.ONE_HOUR: "candle1H",
    TimeFrame.FOUR_HOURS: "candle4H",
    TimeFrame.ONE_DAY: "candle1D",
}


def parse_kline_row(row: Sequence[str], symbol: str, timeframe: str) -> Candle:
    """
    Convierte una fila [ts_ms, open, high, low, close, base_volume, ...].

    Raises:
        ValidationError si la fila está incompleta o no es numérica.
    """
    if len(row) < 6:
        raise ValidationError(f"Fila de vela incompleta: {row!r}", field="data", value=row)
    try:
        return Candle(
            symbol=symbol,
            timestamp=datetime.fromtimestamp(int(row[0]) / 1000, tz=timezone.utc),
            open=Decimal(str(row[1])),
            high=Decimal(str(row[2])),
            low=Decimal(str(row[3])),
            close=Decimal(str(row[4])),
            volume=Decimal(str(row[5])),
            timeframe=timeframe,
        )
    except (ArithmeticError, ValueError, TypeError) as exc:
        raise ValidationError(f"Fila de vela inválida: {row!r}", field="data", value=row) from exc


class KlineAssembler:
    """
    Retiene la vela en curso y libera las cerradas.

    Las filas pueden llegar desordenadas dentro de un snapshot; se
    ordenan por ts antes de procesarlas.
    """

    def __init__(self, symbol: str, timeframe: str) -> None:
        self._symbol = symbol
        self._timeframe = timeframe
        self._pending: Optional[Candle] = None

    @property
    def pending(self) -> Optional[Candle]:
        return self._pending

    def push(self, rows: Sequence[Sequence[str]]) -> List[Candle]:
        candles = sorted(
            (parse_kline_row(row, self._symbol, self._timeframe) for row in rows),
            key=lambda c: c.timestamp,
        )
        closed: List[Candle] = []
        for candle in candles:
            if self._pending is None or candle.timestamp == self._pending.timestamp:
                self._pending = candle
            elif candle.timestamp > self._pending.timestamp:
                closed.append(self._pending)
                self._pending = candle
            # ts anterior a la vela en curso: re-entrega vieja, se ignora
        return closed


class BitgetCandleFeed(IMarketDataFeed):
    """
    Implementación de IMarketDataFeed sobre el WebSocket público de Bitget.
    """

    def __init__(self, settings: Settings):
        self._settings = settings
        self._ws: Optional[ClientConnection] = None
        self._running = False
        self._subscription: Optional[dict] = None
        self._heartbeat_task: Optional[asyncio.Task] = None

        # Reconexión
        self._reconnect_attempt = 0

        # Stats
        self._candles_emitted = 0
        self._messages_received = 0

    # ════════════════════════════════════════════════════════════════
    #  IMarketDataFeed Implementation
    # ════════════════════════════════════════════════════════════════

    async def subscribe(self, symbol: str, timeframe: str) -> AsyncIterator[Candle]:
        if self._running:
            raise ExternalServiceError("El feed ya tiene una suscripción activa", service="bitget_ws")

        tf = TimeFrame.parse(timeframe)
        self._subscription = {
            "instType": self._settings.feed_inst_type,
            "channel": CHANNELS[tf],
            "instId": symbol,
        }

        # _running antes de conectar: el heartbeat depende de él
        self._running = True
        try:
            await self._connect()
        except Exception as exc:
            self._running = False
            raise ExternalServiceError(
                f"No se pudo conectar a {self._settings.feed_ws_url}: {exc}", service="bitget_ws",
            ) from exc

        logger.info("Suscrito a %s %s (%s)", symbol, tf.value, self._subscription["channel"])
        return self._stream(KlineAssembler(symbol, tf.value))

    async def unsubscribe(self) -> None:
        if not self._running:
            return
        self._running = False

        if self._heartbeat_task is not None:
            self._heartbeat_task.cancel()
            self._heartbeat_task = None

        if self._ws is not None:
            try:
                await self._ws.send(json.dumps({"op": "unsubscribe", "args": [self._subscription]}))
            except websockets.ConnectionClosed:
                pass
            await self._ws.close()
            self._ws = None
        logger.info("Feed desuscrito")

    # ════════════════════════════════════════════════════════════════
    #  Stream
    # ════════════════════════════════════════════════════════════════

    async def _stream(self, assembler: KlineAssembler) -> AsyncIterator[Candle]:
        while self._running:
            ws = self._ws
            if ws is None:
                break
            try:
                async for message in ws:
                    for candle in self._handle_message(message, assembler):
                        self._candles_emitted += 1
                        yield candle
            except websockets.ConnectionClosed:
                logger.warning("Conexión WebSocket cerrada")

            if not self._running:
                break
            await self._reconnect()

    def _handle_message(self, message: str | bytes, assembler: KlineAssembler) -> List[Candle]:
        self._messages_received += 1
        if message == "pong":
            return []

        try:
            data = json.loads(message)
        except json.JSONDecodeError as exc:
            logger.warning("Mensaje no-JSON recibido: %s", exc)
            return []

        if not isinstance(data, dict):
            logger.warning("Mensaje JSON inesperado (%s) ignorado", type(data).__name__)
            return []
        if data.get("event") == "error":
            logger.error("Error de Bitget: %s (code=%s)", data.get("msg"), data.get("code"))
            return []
        if "data" not in data:
            return []

        try:
            return assembler.push(data["data"])
        except ValidationError as exc:
            logger.warning("Vela descartada: %s", exc.message)
            return []

    # ════════════════════════════════════════════════════════════════
    #  Connection Management
    # ════════════════════════════════════════════════════════════════

    async def _connect(self) -> None:
        self._ws = await websockets.connect(self._settings.feed_ws_url)
        await self._ws.send(json.dumps({"op": "subscribe", "args": [self._subscription]}))
        self._reconnect_attempt = 0

        if self._heartbeat_task is not None:
            self._heartbeat_task.cancel()
        self._heartbeat_task = asyncio.create_task(self._heartbeat(), name="bitget-heartbeat")

    async def _reconnect(self) -> None:
        """Reconexión con backoff exponencial hasta conectar o hasta unsubscribe()."""
        while self._running:
            self._reconnect_attempt += 1
            base_delay = self._settings.ws_reconnect_base_delay
            max_delay = self._settings.ws_reconnect_max_delay
            delay = min(base_delay * (2 ** self._reconnect_attempt), max_delay)
            jitter = random.uniform(0, delay * 0.1)

            logger.info("Reconectando en %.2fs (intento %d)", delay + jitter, self._reconnect_attempt)
            await asyncio.sleep(delay + jitter)
            if not self._running:
                return
            try:
                await self._connect()
                logger.info("Reconectado a Bitget")
                return
            except (OSError, websockets.WebSocketException) as exc:
                logger.error("Error reconectando a Bitget: %s", exc)

    async def _heartbeat(self) -> None:
        """Envía pings periódicos para mantener la conexión."""
        while self._running and self._ws is not None:
            await asyncio.sleep(self._settings.ws_heartbeat_interval)
            try:
                await self._ws.send("ping")
            except websockets.ConnectionClosed:
                return

    def get_stats(self) -> dict:
        return {
            "connected": self._ws is not None,
            "running": self._running,
            "subscription": self._subscription,
            "messages_received": self._messages_received,
            "candles_emitted": self._candles_emitted,
            "reconnect_attempt": self._reconnect_attempt,
        }
