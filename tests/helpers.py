"""Helpers compartidos por los tests: velas sintéticas, publisher y feed en memoria."""

import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from traderbot.application.ports.event_publisher import IEventPublisher
from traderbot.application.ports.market_data_feed import IMarketDataFeed
from traderbot.domain.entities.candle import Candle

BASE_TS = datetime(2024, 1, 1, tzinfo=timezone.utc)
SYMBOL = "BTCUSDT"


def make_candle(index=0, close="100", symbol=SYMBOL, open_=None, high=None, low=None, volume="1"):
    """Vela de 5m en BASE_TS + index periodos."""
    close = Decimal(str(close))
    return Candle(
        symbol=symbol,
        timestamp=BASE_TS + timedelta(minutes=5 * index),
        open=Decimal(str(open_)) if open_ is not None else close,
        high=Decimal(str(high)) if high is not None else close,
        low=Decimal(str(low)) if low is not None else close,
        close=close,
        volume=Decimal(str(volume)),
    )


async def wait_until(predicate, timeout=2.0):
    """Cede el loop hasta que predicate() sea True."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.01)


class RecordingPublisher(IEventPublisher):
    def __init__(self):
        self.events = []

    async def publish(self, topic, data):
        self.events.append((topic, data))

    def topics(self):
        return [topic for topic, _ in self.events]


_END = object()


class FakeFeed(IMarketDataFeed):
    """Feed en memoria: push() entrega velas, una excepción encolada rompe el stream."""

    def __init__(self, subscribe_error=None, subscribe_gate=None):
        self.subscribe_calls = 0
        self.unsubscribe_calls = 0
        self.subscribe_error = subscribe_error
        self.subscribe_gate = subscribe_gate
        self._queue = asyncio.Queue()

    async def subscribe(self, symbol, timeframe):
        self.subscribe_calls += 1
        if self.subscribe_gate is not None:
            await self.subscribe_gate.wait()
        if self.subscribe_error is not None:
            raise self.subscribe_error
        self._queue = asyncio.Queue()
        return self._stream(self._queue)

    async def unsubscribe(self):
        self.unsubscribe_calls += 1
        await self._queue.put(_END)

    async def push(self, item):
        await self._queue.put(item)

    async def _stream(self, queue):
        while True:
            item = await queue.get()
            if item is _END:
                return
            if isinstance(item, Exception):
                raise item
            yield item
