import asyncio
import random
from unittest.mock import AsyncMock, MagicMock

import pytest

from traderbot.application.services.candle_pipeline import CandlePipeline
from traderbot.application.services.position_ledger import PositionLedger
from traderbot.application.use_cases.decision_engine import DecisionAction, DecisionResult
from traderbot.domain.exceptions.domain_errors import LedgerConsistencyError, ValidationError
from traderbot.infrastructure.persistence.repositories.memory_repository import (
    InMemoryCandleRepository,
    InMemoryPositionRepository,
)

from tests.helpers import SYMBOL, make_candle


def _mock_engine(symbol=SYMBOL):
    engine = MagicMock()
    engine.symbol = symbol
    engine.process = AsyncMock(return_value=DecisionResult(DecisionAction.NONE))
    return engine


@pytest.fixture
def mock_engine():
    return _mock_engine()


@pytest.fixture
def pipeline(candle_repo, publisher, mock_engine):
    pipe = CandlePipeline(candle_repo, event_publisher=publisher)
    pipe.register(mock_engine)
    return pipe


def _processed_timestamps(engine):
    return [c.args[0].timestamp for c in engine.process.await_args_list]


@pytest.mark.asyncio
async def test_duplicate_candle_processed_once(pipeline, mock_engine, candle_repo):
    candle = make_candle(0)
    await pipeline.submit(candle)
    await pipeline.submit(make_candle(0))

    await pipeline.start()
    await pipeline.wait_idle()
    await pipeline.stop()

    assert mock_engine.process.await_count == 1
    assert len(candle_repo) == 1
    assert pipeline.snapshot()[SYMBOL]["dropped"] == 1


@pytest.mark.asyncio
async def test_already_stored_candle_skips_cycle(pipeline, mock_engine, candle_repo):
    """Re-entrega tras un reinicio: la vela ya está en el almacén."""
    await candle_repo.save(make_candle(0))
    await pipeline.submit(make_candle(0))

    await pipeline.start()
    await pipeline.wait_idle()
    await pipeline.stop()

    mock_engine.process.assert_not_awaited()


@pytest.mark.asyncio
async def test_out_of_order_submissions_processed_in_timestamp_order(pipeline, mock_engine):
    candles = [make_candle(i, close=str(100 + i)) for i in range(8)]
    shuffled = candles[:]
    random.Random(7).shuffle(shuffled)
    for candle in shuffled:
        await pipeline.submit(candle)

    await pipeline.start()
    await pipeline.wait_idle()
    await pipeline.stop()

    assert _processed_timestamps(mock_engine) == [c.timestamp for c in candles]


@pytest.mark.asyncio
async def test_late_candle_dropped_after_newer_processed(pipeline, mock_engine):
    await pipeline.start()
    await pipeline.submit(make_candle(5))
    await pipeline.wait_idle()

    await pipeline.submit(make_candle(3))
    await pipeline.wait_idle()
    await pipeline.stop()

    assert _processed_timestamps(mock_engine) == [make_candle(5).timestamp]


@pytest.mark.asyncio
async def test_never_more_than_one_cycle_in_flight(pipeline, mock_engine):
    in_flight = 0
    peak = 0

    async def slow_process(candle, stop_event=None):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.005)
        in_flight -= 1
        return DecisionResult(DecisionAction.NONE)

    mock_engine.process.side_effect = slow_process
    await pipeline.start()
    await asyncio.gather(*(pipeline.submit(make_candle(i)) for i in range(10)))
    await pipeline.wait_idle()
    await pipeline.stop()

    assert peak == 1


@pytest.mark.asyncio
async def test_failing_cycle_does_not_stop_worker(pipeline, mock_engine, publisher):
    mock_engine.process.side_effect = [
        RuntimeError("boom"),
        DecisionResult(DecisionAction.NONE),
    ]
    await pipeline.submit(make_candle(0))
    await pipeline.submit(make_candle(1))

    await pipeline.start()
    await pipeline.wait_idle()
    await pipeline.stop()

    snap = pipeline.snapshot()[SYMBOL]
    assert snap["failed"] == 1
    assert snap["processed"] == 1
    assert snap["last_error"] == "boom"
    assert publisher.topics() == ["cycle_failed", "candle_processed"]


@pytest.mark.asyncio
async def test_invalid_or_unknown_candles_rejected(pipeline):
    assert not await pipeline.submit(make_candle(0, close="0"))
    assert not await pipeline.submit(make_candle(0, symbol="ETHUSDT"))
    assert pipeline.snapshot()[SYMBOL]["queued"] == 0


def test_register_same_symbol_twice_rejected(pipeline):
    with pytest.raises(ValidationError):
        pipeline.register(_mock_engine())


@pytest.mark.asyncio
async def test_stop_lets_in_flight_cycle_finish_and_discards_queue(pipeline, mock_engine):
    entered = asyncio.Event()
    release = asyncio.Event()

    async def blocking_process(candle, stop_event=None):
        entered.set()
        await release.wait()
        return DecisionResult(DecisionAction.NONE)

    mock_engine.process.side_effect = blocking_process
    for i in range(3):
        await pipeline.submit(make_candle(i))
    await pipeline.start()
    await asyncio.wait_for(entered.wait(), timeout=1)

    stopping = asyncio.create_task(pipeline.stop())
    await asyncio.sleep(0.01)
    assert not stopping.done()
    release.set()
    await asyncio.wait_for(stopping, timeout=1)

    assert mock_engine.process.await_count == 1
    stop_event = mock_engine.process.await_args.args[1]
    assert stop_event.is_set()
    assert pipeline.snapshot()[SYMBOL]["queued"] == 0
    assert not pipeline.is_running


@pytest.mark.asyncio
async def test_full_queue_applies_backpressure(candle_repo, mock_engine):
    pipeline = CandlePipeline(candle_repo, max_queue_size=1)
    pipeline.register(mock_engine)
    await pipeline.submit(make_candle(0))

    pending = asyncio.create_task(pipeline.submit(make_candle(1)))
    await asyncio.sleep(0.01)
    assert not pending.done()

    await pipeline.start()
    assert await asyncio.wait_for(pending, timeout=1)
    await pipeline.wait_idle()
    await pipeline.stop()

    assert mock_engine.process.await_count == 2


@pytest.mark.asyncio
async def test_concurrent_shuffled_delivery_matches_serial_processing(engine_factory, balance_query, analyzer, executor):
    """Mismo estado final de posiciones que procesar en orden, uno a uno."""
    prices = ["100", "101", "103", "102", "100", "98", "99", "101", "104", "103"]
    candles = [make_candle(i, close=p) for i, p in enumerate(prices)]

    # Referencia serial
    serial_candles = InMemoryCandleRepository()
    serial_ledger = PositionLedger(InMemoryPositionRepository())
    serial = engine_factory(ledger=serial_ledger, candle_repository=serial_candles)
    for candle in candles:
        await serial_candles.save(candle)
        await serial.process(candle)

    # Entrega concurrente, desordenada y con duplicados
    piped_candles = InMemoryCandleRepository()
    piped_ledger = PositionLedger(InMemoryPositionRepository())
    piped = engine_factory(ledger=piped_ledger, candle_repository=piped_candles)
    pipeline = CandlePipeline(piped_candles)
    pipeline.register(piped)

    delivery = candles + candles[2:5]
    random.Random(3).shuffle(delivery)
    await asyncio.gather(*(pipeline.submit(c) for c in delivery))
    await pipeline.start()
    await pipeline.wait_idle()
    await pipeline.stop()

    def state(positions):
        return [
            (p.is_open, p.entry_price, p.current_price, p.martingale_step, p.quantity, p.realized_pnl)
            for p in positions
        ]

    serial_positions = await serial_ledger.list_all(SYMBOL)
    piped_positions = await piped_ledger.list_all(SYMBOL)
    assert len(serial_positions) >= 2
    assert state(piped_positions) == state(serial_positions)
    assert piped.martingale_state.step == serial.martingale_state.step


@pytest.mark.asyncio
async def test_untracked_fill_halts_lane(candle_repo, engine, executor, position_repo, publisher):
    """Orden confirmada sin registro en el ledger: no se envía una segunda orden."""
    position_repo.save = AsyncMock(side_effect=ConnectionError("db down"))
    halts = []

    async def on_halt(symbol, error):
        halts.append((symbol, error))

    pipeline = CandlePipeline(candle_repo, event_publisher=publisher)
    pipeline.register(engine)
    pipeline.set_halt_handler(on_halt)
    await pipeline.submit(make_candle(0))
    await pipeline.submit(make_candle(1))

    await pipeline.start()
    await pipeline.wait_idle()

    assert executor.execute_trade.await_count == 1
    snap = pipeline.snapshot()[SYMBOL]
    assert snap["halted"]
    assert snap["failed"] == 1
    assert snap["processed"] == 0
    assert snap["queued"] == 0
    assert "order-1" in snap["last_error"]
    assert halts and halts[0][0] == SYMBOL
    assert publisher.topics().count("cycle_failed") == 1

    assert not await pipeline.submit(make_candle(2))
    assert executor.execute_trade.await_count == 1
    await pipeline.stop()


@pytest.mark.asyncio
async def test_restart_clears_halted_lane(candle_repo, mock_engine):
    mock_engine.process.side_effect = [
        LedgerConsistencyError("not recorded", symbol=SYMBOL, order_id="order-1"),
        DecisionResult(DecisionAction.NONE),
    ]
    pipeline = CandlePipeline(candle_repo)
    pipeline.register(mock_engine)
    await pipeline.start()
    await pipeline.submit(make_candle(0))
    await pipeline.wait_idle()
    assert pipeline.snapshot()[SYMBOL]["halted"]
    await pipeline.stop()

    await pipeline.start()
    assert await pipeline.submit(make_candle(1))
    await pipeline.wait_idle()
    await pipeline.stop()

    snap = pipeline.snapshot()[SYMBOL]
    assert not snap["halted"]
    assert snap["processed"] == 1


@pytest.mark.asyncio
async def test_failure_publish_error_does_not_kill_worker(candle_repo, mock_engine):
    events = MagicMock()
    events.publish = AsyncMock()
    events.publish_event = AsyncMock(side_effect=RuntimeError("bus closed"))
    mock_engine.process.side_effect = [
        RuntimeError("boom"),
        DecisionResult(DecisionAction.NONE),
        DecisionResult(DecisionAction.NONE),
    ]
    pipeline = CandlePipeline(candle_repo, event_publisher=events)
    pipeline.register(mock_engine)
    await pipeline.submit(make_candle(0))
    await pipeline.submit(make_candle(1))

    await pipeline.start()
    await asyncio.wait_for(pipeline.wait_idle(), timeout=1)

    assert await pipeline.submit(make_candle(2))
    await asyncio.wait_for(pipeline.wait_idle(), timeout=1)

    snap = pipeline.snapshot()[SYMBOL]
    assert snap["failed"] == 1
    assert snap["processed"] == 2
    await pipeline.stop()
