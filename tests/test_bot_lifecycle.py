import asyncio
from unittest.mock import AsyncMock

import pytest

from traderbot.application.services.bot_lifecycle import BotLifecycle, LifecycleOutcome
from traderbot.application.services.candle_pipeline import CandlePipeline
from traderbot.domain.value_objects.bot_status import BotStatus

from tests.helpers import SYMBOL, FakeFeed, make_candle, wait_until


@pytest.fixture
def feed():
    return FakeFeed()


@pytest.fixture
def pipeline(candle_repo, engine):
    pipe = CandlePipeline(candle_repo)
    pipe.register(engine)
    return pipe


@pytest.fixture
def lifecycle(feed, pipeline, publisher):
    return BotLifecycle(feed, pipeline, SYMBOL, "5m", event_publisher=publisher)


@pytest.mark.asyncio
async def test_start_subscribes_and_runs(lifecycle, feed, pipeline):
    result = await lifecycle.start()

    assert result.outcome is LifecycleOutcome.STARTED
    assert result.changed
    assert lifecycle.status is BotStatus.RUNNING
    assert feed.subscribe_calls == 1
    assert pipeline.is_running

    await lifecycle.stop()


@pytest.mark.asyncio
async def test_double_start_is_noop(lifecycle, feed):
    await lifecycle.start()

    result = await lifecycle.start()

    assert result.outcome is LifecycleOutcome.ALREADY_RUNNING
    assert not result.changed
    assert feed.subscribe_calls == 1

    await lifecycle.stop()


@pytest.mark.asyncio
async def test_stop_when_stopped_is_noop(lifecycle, feed):
    result = await lifecycle.stop()

    assert result.outcome is LifecycleOutcome.ALREADY_STOPPED
    assert lifecycle.status is BotStatus.STOPPED
    assert feed.unsubscribe_calls == 0


@pytest.mark.asyncio
async def test_stop_after_start(lifecycle, feed, pipeline, publisher):
    await lifecycle.start()

    result = await lifecycle.stop()

    assert result.outcome is LifecycleOutcome.STOPPED
    assert lifecycle.status is BotStatus.STOPPED
    assert feed.unsubscribe_calls == 1
    assert not pipeline.is_running
    statuses = [data["current"] for topic, data in publisher.events if topic == "bot_status"]
    assert statuses == ["Starting", "Running", "Stopped"]


@pytest.mark.asyncio
async def test_subscribe_failure_sets_error_and_propagates(pipeline, publisher):
    feed = FakeFeed(subscribe_error=ConnectionError("ws refused"))
    lifecycle = BotLifecycle(feed, pipeline, SYMBOL, "5m", event_publisher=publisher)

    with pytest.raises(ConnectionError):
        await lifecycle.start()

    assert lifecycle.status is BotStatus.ERROR
    assert lifecycle.snapshot()["last_error"] == "ws refused"
    assert not pipeline.is_running

    result = await lifecycle.stop()
    assert result.outcome is LifecycleOutcome.STOPPED
    assert lifecycle.status is BotStatus.STOPPED


@pytest.mark.asyncio
async def test_stream_failure_moves_to_error(lifecycle, feed):
    await lifecycle.start()

    await feed.push(ConnectionError("socket closed"))
    await wait_until(lambda: lifecycle.status is BotStatus.ERROR)

    assert lifecycle.snapshot()["last_error"] == "socket closed"
    await lifecycle.stop()
    assert lifecycle.status is BotStatus.STOPPED


@pytest.mark.asyncio
async def test_restart_from_error(lifecycle, feed):
    await lifecycle.start()
    await feed.push(ConnectionError("socket closed"))
    await wait_until(lambda: lifecycle.status is BotStatus.ERROR)

    result = await lifecycle.start()

    assert result.outcome is LifecycleOutcome.STARTED
    assert lifecycle.status is BotStatus.RUNNING
    assert feed.subscribe_calls == 2
    await lifecycle.stop()


@pytest.mark.asyncio
async def test_transition_in_progress_reports_busy(pipeline):
    gate = asyncio.Event()
    feed = FakeFeed(subscribe_gate=gate)
    lifecycle = BotLifecycle(feed, pipeline, SYMBOL, "5m")

    starting = asyncio.create_task(lifecycle.start())
    await asyncio.sleep(0)
    assert lifecycle.status is BotStatus.STARTING

    assert (await lifecycle.start()).outcome is LifecycleOutcome.BUSY
    assert (await lifecycle.stop()).outcome is LifecycleOutcome.BUSY

    gate.set()
    result = await asyncio.wait_for(starting, timeout=1)
    assert result.outcome is LifecycleOutcome.STARTED
    assert feed.subscribe_calls == 1
    await lifecycle.stop()


@pytest.mark.asyncio
async def test_feed_candles_reach_the_engine(lifecycle, feed, executor, ledger):
    await lifecycle.start()

    await feed.push(make_candle(0, close="100"))
    await wait_until(lambda: executor.execute_trade.await_count == 1)
    await lifecycle.stop()

    assert (await ledger.get_open_position(SYMBOL)) is not None
    assert lifecycle.snapshot()["pipeline"][SYMBOL]["processed"] == 1


@pytest.mark.asyncio
async def test_untracked_fill_moves_bot_to_error_until_restart(lifecycle, feed, executor, position_repo):
    position_repo.save = AsyncMock(side_effect=ConnectionError("db down"))
    await lifecycle.start()

    await feed.push(make_candle(0))
    await wait_until(lambda: lifecycle.status is BotStatus.ERROR)
    assert "ledger inconsistency" in lifecycle.snapshot()["last_error"]

    await feed.push(make_candle(1))
    await asyncio.sleep(0.05)
    assert executor.execute_trade.await_count == 1

    del position_repo.save
    await lifecycle.stop()
    result = await lifecycle.start()
    assert result.outcome is LifecycleOutcome.STARTED
    assert not lifecycle.snapshot()["pipeline"][SYMBOL]["halted"]

    await feed.push(make_candle(2))
    await wait_until(lambda: executor.execute_trade.await_count == 2)
    assert lifecycle.status is BotStatus.RUNNING
    await lifecycle.stop()
